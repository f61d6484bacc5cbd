"""
Ballot state machine.

This module contains:
- Candidate: immutable snapshot of a named option and its vote count
- Ballot: candidate registry, one vote per caller identity, administrator
  controlled candidate list and a fixed voting deadline

The ballot is Open while the current time is before the deadline and Closed
from the deadline on. The state is never stored; every read compares the
injected clock against the deadline.
"""

import logging
import threading
from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Iterable, List, Optional

from .clock import SystemClock
from .exceptions import (
    AlreadyVotedError,
    InvalidCandidateError,
    NotAdministratorError,
    VotingClosedError,
)

logger = logging.getLogger(__name__)

SECONDS_PER_MINUTE = 60


@dataclass(frozen=True)
class Candidate:
    """
    A named option on the ballot.

    Attributes:
        name: Display name (non-empty, never changes)
        vote_count: Number of votes received so far
    """
    name: str
    vote_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


def _validate_name(name: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Candidate name must be a non-empty string")
    return name


class Ballot:
    """
    A single ballot with a fixed deadline.

    Args:
        administrator: Identity of the caller constructing the ballot; the only
            identity allowed to add candidates later
        candidate_names: Initial candidates, in display order (may be empty)
        duration_minutes: Voting window length, a positive integer
        clock: Object with a ``now()`` method returning whole seconds.
            Defaults to the system clock.

    Raises:
        ValueError: If the duration is not a positive integer or a name is empty
    """

    def __init__(
        self,
        administrator: str,
        candidate_names: Iterable[str],
        duration_minutes: int,
        clock=None
    ):
        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
            raise ValueError("Duration must be an integer number of minutes")
        if duration_minutes <= 0:
            raise ValueError("Duration must be a positive number of minutes")

        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        self._administrator = administrator
        self._candidates: List[Candidate] = [
            Candidate(name=_validate_name(name)) for name in candidate_names
        ]
        self._voters: set = set()
        self._created_at = self._clock.now()
        self._deadline = self._created_at + duration_minutes * SECONDS_PER_MINUTE

        logger.debug(
            f"Ballot created by {administrator} with {len(self._candidates)} "
            f"candidates, deadline={self._deadline}"
        )

    @property
    def administrator(self) -> str:
        return self._administrator

    @property
    def deadline(self) -> int:
        return self._deadline

    @property
    def created_at(self) -> int:
        return self._created_at

    @property
    def clock(self):
        return self._clock

    # Mutations

    def cast_vote(self, voter: str, candidate_index: int) -> Candidate:
        """
        Record one vote from ``voter`` for the candidate at ``candidate_index``.

        Checks run in this order: voting closed, already voted, index range.

        Returns:
            Candidate: Snapshot of the candidate after the vote

        Raises:
            VotingClosedError: If the deadline has been reached
            AlreadyVotedError: If ``voter`` has voted before
            InvalidCandidateError: If the index does not address a candidate
        """
        with self._lock:
            if not self._is_open():
                raise VotingClosedError(self._deadline)
            if voter in self._voters:
                raise AlreadyVotedError(voter)
            self._check_index(candidate_index)

            candidate = self._candidates[candidate_index]
            updated = replace(candidate, vote_count=candidate.vote_count + 1)
            self._candidates[candidate_index] = updated
            self._voters.add(voter)
            return updated

    def add_candidate(self, caller: str, name: str) -> int:
        """
        Append a zero-vote candidate. Allowed before and after the deadline.

        Returns:
            int: Index of the new candidate

        Raises:
            NotAdministratorError: If ``caller`` is not the administrator
            ValueError: If the name is empty
        """
        with self._lock:
            if caller != self._administrator:
                raise NotAdministratorError(caller)
            self._candidates.append(Candidate(name=_validate_name(name)))
            return len(self._candidates) - 1

    # Queries

    def get_all_candidates(self) -> List[Candidate]:
        with self._lock:
            return list(self._candidates)

    def get_candidate(self, index: int) -> Candidate:
        with self._lock:
            self._check_index(index)
            return self._candidates[index]

    def candidate_count(self) -> int:
        with self._lock:
            return len(self._candidates)

    def has_voted(self, identity: str) -> bool:
        with self._lock:
            return identity in self._voters

    def total_votes(self) -> int:
        with self._lock:
            return sum(c.vote_count for c in self._candidates)

    def get_voting_status(self) -> bool:
        """Return True while voting is open (strictly before the deadline)."""
        return self._is_open()

    def get_remaining_time(self) -> int:
        """Seconds left until the deadline, clamped to 0 once it has passed."""
        return max(0, self._deadline - self._clock.now())

    def _is_open(self) -> bool:
        return self._clock.now() < self._deadline

    def _check_index(self, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int) \
                or not 0 <= index < len(self._candidates):
            raise InvalidCandidateError(index, len(self._candidates))

    # Serialization

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot the full ballot state for JSON serialization."""
        with self._lock:
            return {
                "administrator": self._administrator,
                "created_at": self._created_at,
                "deadline": self._deadline,
                "candidates": [c.to_dict() for c in self._candidates],
                "voters": sorted(self._voters),
            }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], clock=None) -> 'Ballot':
        """
        Restore a ballot from ``to_dict`` output.

        Raises:
            ValueError: If the snapshot is malformed or its vote counts do not
                add up to the number of recorded voters
        """
        try:
            administrator = data["administrator"]
            created_at = int(data["created_at"])
            deadline = int(data["deadline"])
            candidates = [
                Candidate(name=_validate_name(c["name"]), vote_count=int(c["vote_count"]))
                for c in data["candidates"]
            ]
            voters = set(data["voters"])
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed ballot snapshot: {e}") from e

        if not isinstance(administrator, str) or not administrator:
            raise ValueError("Ballot snapshot administrator must be a non-empty string")
        if not all(isinstance(v, str) and v for v in voters):
            raise ValueError("Ballot snapshot voters must be non-empty strings")
        if deadline <= created_at:
            raise ValueError("Ballot snapshot deadline must be after its creation time")
        if any(c.vote_count < 0 for c in candidates):
            raise ValueError("Ballot snapshot contains a negative vote count")
        total = sum(c.vote_count for c in candidates)
        if total != len(voters):
            raise ValueError(
                f"Ballot snapshot is inconsistent: {total} votes for {len(voters)} voters"
            )

        ballot = cls.__new__(cls)
        ballot._clock = clock or SystemClock()
        ballot._lock = threading.Lock()
        ballot._administrator = administrator
        ballot._candidates = candidates
        ballot._voters = voters
        ballot._created_at = created_at
        ballot._deadline = deadline
        return ballot


def summarize(ballot: Ballot) -> Dict[str, Any]:
    """Collect the ballot's public state in one dictionary."""
    candidates = ballot.get_all_candidates()
    return {
        "administrator": ballot.administrator,
        "created_at": ballot.created_at,
        "deadline": ballot.deadline,
        "voting_open": ballot.get_voting_status(),
        "remaining_seconds": ballot.get_remaining_time(),
        "candidate_count": len(candidates),
        "total_votes": sum(c.vote_count for c in candidates),
    }


def format_results(candidates: List[Candidate], voting_open: Optional[bool] = None) -> str:
    """Render a plain-text tally table."""
    lines = []
    if voting_open is not None:
        lines.append(f"Voting is {'open' if voting_open else 'closed'}")
    width = max((len(c.name) for c in candidates), default=4)
    for index, candidate in enumerate(candidates):
        lines.append(f"  [{index}] {candidate.name:<{width}}  {candidate.vote_count:>6}")
    return "\n".join(lines)
