"""
Shared ballot core used by the API service and the client.

This package contains:
- Ballot state machine and Candidate snapshots
- Domain errors
- Clock implementations
"""

from .clock import FakeClock, SystemClock
from .exceptions import (
    AlreadyVotedError,
    BallotAlreadyDeployedError,
    BallotError,
    BallotNotDeployedError,
    ERROR_TYPES,
    InvalidCandidateError,
    NotAdministratorError,
    VotingClosedError,
    error_from_payload,
)
from .models import Ballot, Candidate, format_results, summarize

__all__ = [
    'Ballot',
    'Candidate',
    'summarize',
    'format_results',
    'SystemClock',
    'FakeClock',
    'BallotError',
    'InvalidCandidateError',
    'AlreadyVotedError',
    'VotingClosedError',
    'NotAdministratorError',
    'BallotNotDeployedError',
    'BallotAlreadyDeployedError',
    'ERROR_TYPES',
    'error_from_payload',
]

__version__ = '1.0.0'
