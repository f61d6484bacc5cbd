"""
Domain errors raised by the ballot and its hosting store.

Every error aborts the operation that raised it with no partial effect.
The ``error_type`` attribute is the stable name used on the wire.
"""
from typing import Any, Dict


class BallotError(Exception):
    """Base class for ballot errors."""

    error_type = "BallotError"

    def __init__(self, message: str, **details: Any):
        self.message = message
        self.details: Dict[str, Any] = details
        super().__init__(message)


class InvalidCandidateError(BallotError):
    """Candidate index is outside the valid range."""

    error_type = "InvalidCandidate"

    def __init__(self, index: Any, candidate_count: int):
        self.index = index
        self.candidate_count = candidate_count
        super().__init__(
            f"Invalid candidate index {index}: ballot has {candidate_count} candidates",
            index=index,
            candidate_count=candidate_count
        )


class AlreadyVotedError(BallotError):
    """Caller identity has already cast its vote."""

    error_type = "AlreadyVoted"

    def __init__(self, voter: str):
        self.voter = voter
        super().__init__("You have already voted.", voter=voter)


class VotingClosedError(BallotError):
    """Vote attempted at or after the deadline."""

    error_type = "VotingClosed"

    def __init__(self, deadline: int):
        self.deadline = deadline
        super().__init__(f"Voting has ended. Closed at {deadline}", deadline=deadline)


class NotAdministratorError(BallotError):
    """Caller identity is not the ballot administrator."""

    error_type = "NotAdministrator"

    def __init__(self, caller: str):
        self.caller = caller
        super().__init__("Only the administrator can add candidates.", caller=caller)


class BallotNotDeployedError(BallotError):
    """No ballot has been deployed on this service yet."""

    error_type = "BallotNotDeployed"

    def __init__(self):
        super().__init__("No ballot has been deployed")


class BallotAlreadyDeployedError(BallotError):
    """A ballot already exists; it cannot be replaced."""

    error_type = "BallotAlreadyDeployed"

    def __init__(self, administrator: str):
        self.administrator = administrator
        super().__init__(
            f"A ballot is already deployed by {administrator}",
            administrator=administrator
        )


ERROR_TYPES = {
    cls.error_type: cls
    for cls in (
        InvalidCandidateError,
        AlreadyVotedError,
        VotingClosedError,
        NotAdministratorError,
        BallotNotDeployedError,
        BallotAlreadyDeployedError,
    )
}


def error_from_payload(payload: Dict[str, Any]) -> BallotError:
    """
    Rebuild a domain error from an ``ErrorResponse`` body.

    Unknown error types come back as a plain BallotError.
    """
    error_type = payload.get("error", "BallotError")
    details = payload.get("details") or {}
    cls = ERROR_TYPES.get(error_type, BallotError)
    exc = cls.__new__(cls)
    BallotError.__init__(exc, payload.get("message", error_type), **details)
    for key, value in details.items():
        setattr(exc, key, value)
    if cls is BallotError:
        exc.error_type = error_type
    return exc
