"""Pydantic models for request/response validation."""
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator


class DeployRequest(BaseModel):
    """Ballot construction request model."""

    candidate_names: list[str] = Field(default_factory=list, description="Initial candidates in display order")
    duration_minutes: int = Field(..., gt=0, description="Voting window length in minutes")

    @field_validator("candidate_names")
    @classmethod
    def validate_names(cls, v):
        """Validate every candidate name is non-empty."""
        for name in v:
            if not name or not name.strip():
                raise ValueError("Candidate names cannot be empty")
        return v

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "candidate_names": ["Alice", "Bob", "Charlie"],
            "duration_minutes": 30
        }
    })


class CandidateRequest(BaseModel):
    """Candidate addition request model."""

    name: str = Field(..., min_length=1, description="Candidate name")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        """Validate name is not blank."""
        if not v.strip():
            raise ValueError("Candidate name cannot be empty")
        return v

    model_config = ConfigDict(json_schema_extra={"example": {"name": "David"}})


class VoteRequest(BaseModel):
    """Vote submission request model."""

    candidate_index: int = Field(..., description="Index of the chosen candidate")

    model_config = ConfigDict(json_schema_extra={"example": {"candidate_index": 0}})


class CandidateResponse(BaseModel):
    """Candidate with its position and tally."""

    index: int
    name: str
    vote_count: int


class VoteResponse(BaseModel):
    """Vote submission response model."""

    voter: str = Field(..., description="Identity the vote was attributed to")
    candidate: CandidateResponse
    status: str = Field(default="recorded", description="Status of the submission")
    message: str = Field(default="Vote recorded successfully", description="Response message")


class BallotResponse(BaseModel):
    """Public state of the hosted ballot."""

    administrator: str
    created_at: int = Field(..., description="Construction time, seconds since epoch")
    deadline: int = Field(..., description="Voting deadline, seconds since epoch")
    voting_open: bool
    remaining_seconds: int
    candidate_count: int
    total_votes: int

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "administrator": "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
            "created_at": 1700000000,
            "deadline": 1700001800,
            "voting_open": True,
            "remaining_seconds": 1800,
            "candidate_count": 3,
            "total_votes": 0
        }
    })


class AdministratorResponse(BaseModel):
    administrator: str


class VoterStatusResponse(BaseModel):
    address: str
    has_voted: bool


class VotingStatusResponse(BaseModel):
    voting_open: bool


class RemainingTimeResponse(BaseModel):
    remaining_seconds: int = Field(..., ge=0)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: Literal["healthy", "unhealthy"] = Field(..., description="Overall health status")
    ballot_deployed: bool
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Health check timestamp")


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: dict = Field(default_factory=dict, description="Additional error details")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "error": "AlreadyVoted",
            "message": "You have already voted.",
            "details": {"voter": "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"}
        }
    })
