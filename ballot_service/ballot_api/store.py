"""Ownership of the hosted ballot and its optional JSON snapshot."""
import json
import logging
import os
import threading
from pathlib import Path
from typing import Iterable, Optional

from ..shared import (
    Ballot,
    BallotAlreadyDeployedError,
    BallotNotDeployedError,
    Candidate,
    SystemClock,
)

logger = logging.getLogger(__name__)


class BallotStore:
    """
    Holds the single ballot served by this process.

    Mutations go through the store so that the snapshot on disk is written in
    the same order the mutations were applied.

    Args:
        clock: Clock handed to the ballot (defaults to the system clock)
        snapshot_path: JSON file persisted after every mutation, or None
    """

    def __init__(self, clock=None, snapshot_path: Optional[str] = None):
        self.clock = clock or SystemClock()
        self.snapshot_path = Path(snapshot_path) if snapshot_path else None
        self._ballot: Optional[Ballot] = None
        self._lock = threading.Lock()

    def initialize(
        self,
        administrator: Optional[str] = None,
        candidate_names: Iterable[str] = (),
        duration_minutes: int = 30
    ) -> None:
        """
        Restore the ballot from the snapshot, or deploy the configured one.

        Nothing is deployed when there is no snapshot and no administrator.
        """
        if self.snapshot_path and self.snapshot_path.exists():
            self.load()
            return
        if administrator:
            self.deploy(administrator, candidate_names, duration_minutes)

    @property
    def deployed(self) -> bool:
        return self._ballot is not None

    @property
    def ballot(self) -> Ballot:
        if self._ballot is None:
            raise BallotNotDeployedError()
        return self._ballot

    def deploy(
        self,
        administrator: str,
        candidate_names: Iterable[str],
        duration_minutes: int
    ) -> Ballot:
        """
        Construct the ballot with ``administrator`` as its owner.

        Raises:
            BallotAlreadyDeployedError: If a ballot exists already
            ValueError: If the duration or a candidate name is invalid
        """
        with self._lock:
            if self._ballot is not None:
                raise BallotAlreadyDeployedError(self._ballot.administrator)
            ballot = Ballot(
                administrator,
                list(candidate_names),
                duration_minutes,
                clock=self.clock
            )
            self._save(ballot)
            self._ballot = ballot

        logger.info(
            f"Ballot deployed: administrator={administrator}, "
            f"candidates={ballot.candidate_count()}, deadline={ballot.deadline}"
        )
        return ballot

    def cast_vote(self, voter: str, candidate_index: int) -> Candidate:
        with self._lock:
            ballot = self.ballot
            previous = ballot.to_dict() if self.snapshot_path else None
            candidate = ballot.cast_vote(voter, candidate_index)
            self._commit(ballot, previous)
        return candidate

    def add_candidate(self, caller: str, name: str) -> int:
        with self._lock:
            ballot = self.ballot
            previous = ballot.to_dict() if self.snapshot_path else None
            index = ballot.add_candidate(caller, name)
            self._commit(ballot, previous)
        return index

    def _commit(self, ballot: Ballot, previous) -> None:
        """
        Persist a mutation, or put the pre-mutation state back if the write fails.

        Must be called with the store lock held.
        """
        try:
            self._save(ballot)
        except OSError as e:
            logger.error(f"Snapshot write failed, mutation rolled back: {e}")
            self._ballot = Ballot.from_dict(previous, clock=self.clock)
            raise

    def load(self) -> Ballot:
        """
        Replace the in-memory ballot with the snapshot on disk.

        Raises:
            ValueError: If the snapshot is missing, unreadable or inconsistent
        """
        if not self.snapshot_path:
            raise ValueError("No snapshot path configured")
        try:
            data = json.loads(self.snapshot_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ValueError(f"Cannot read ballot snapshot {self.snapshot_path}: {e}") from e

        ballot = Ballot.from_dict(data, clock=self.clock)
        with self._lock:
            self._ballot = ballot
        logger.info(
            f"Ballot restored from {self.snapshot_path}: "
            f"{ballot.candidate_count()} candidates, {ballot.total_votes()} votes"
        )
        return ballot

    def _save(self, ballot: Ballot) -> None:
        if not self.snapshot_path:
            return
        tmp_path = self.snapshot_path.with_suffix(self.snapshot_path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(ballot.to_dict(), indent=2), encoding="utf-8")
        os.replace(tmp_path, self.snapshot_path)
        logger.debug(f"Ballot snapshot written to {self.snapshot_path}")

    def check_health(self) -> bool:
        """Return True when the snapshot location (if any) is writable."""
        if not self.snapshot_path:
            return True
        directory = self.snapshot_path.parent
        return directory.is_dir() and os.access(directory, os.W_OK)
