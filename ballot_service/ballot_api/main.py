"""
FastAPI application hosting a single ballot.

Every mutating request is attributed to the identity in the caller header
(``X-Caller-Address`` by default). Authenticating that identity is the job of
the proxy in front of this service.
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from pydantic import ValidationError
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from ..shared import (
    AlreadyVotedError,
    BallotAlreadyDeployedError,
    BallotError,
    BallotNotDeployedError,
    InvalidCandidateError,
    NotAdministratorError,
    VotingClosedError,
    summarize,
)
from .config import settings
from .models import (
    AdministratorResponse,
    BallotResponse,
    CandidateRequest,
    CandidateResponse,
    DeployRequest,
    ErrorResponse,
    HealthResponse,
    RemainingTimeResponse,
    VoteRequest,
    VoteResponse,
    VoterStatusResponse,
    VotingStatusResponse,
)
from .store import BallotStore

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Prometheus metrics
votes_cast = Counter(
    "votes_cast_total",
    "Total number of votes recorded",
    ["candidate"]
)
candidates_added = Counter(
    "candidates_added_total",
    "Total number of candidates appended after construction"
)
ballot_errors = Counter(
    "ballot_errors_total",
    "Total number of rejected ballot operations",
    ["error_type"]
)
request_duration = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status"]
)

ERROR_STATUS = {
    InvalidCandidateError: status.HTTP_400_BAD_REQUEST,
    VotingClosedError: status.HTTP_400_BAD_REQUEST,
    AlreadyVotedError: status.HTTP_409_CONFLICT,
    NotAdministratorError: status.HTTP_403_FORBIDDEN,
    BallotNotDeployedError: status.HTTP_404_NOT_FOUND,
    BallotAlreadyDeployedError: status.HTTP_409_CONFLICT,
}

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid candidate, voting closed or invalid input"},
    404: {"model": ErrorResponse, "description": "No ballot deployed"},
}

ballot_store = BallotStore(snapshot_path=settings.BALLOT_SNAPSHOT_PATH)

# Rate limiter
limiter = Limiter(key_func=get_remote_address)


def get_store() -> BallotStore:
    """Dependency returning the process-wide ballot store."""
    return ballot_store


def get_caller(request: Request) -> str:
    """Dependency extracting the calling identity from the caller header."""
    caller = request.headers.get(settings.CALLER_HEADER, "").strip()
    if not caller:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing {settings.CALLER_HEADER} header"
        )
    return caller


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger.info(f"Starting {settings.SERVICE_NAME} service...")

    try:
        ballot_store.initialize(
            administrator=settings.BALLOT_ADMINISTRATOR,
            candidate_names=settings.BALLOT_CANDIDATES,
            duration_minutes=settings.BALLOT_DURATION_MINUTES
        )
        if not ballot_store.deployed:
            logger.info("No ballot configured; waiting for a deployment request")
        logger.info(f"{settings.SERVICE_NAME} started successfully")

    except Exception as e:
        logger.error(f"Failed to start {settings.SERVICE_NAME}: {e}")
        raise

    yield

    logger.info(f"Shutting down {settings.SERVICE_NAME} service...")


# Create FastAPI app
app = FastAPI(
    title="Ballot API",
    description="Single ballot with an administrator-managed candidate list and a fixed deadline",
    version=settings.API_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def prometheus_middleware(request: Request, call_next):
    """Middleware to track request duration."""
    start = time.perf_counter()
    response = await call_next(request)
    route = request.scope.get("route")
    request_duration.labels(
        method=request.method,
        endpoint=getattr(route, "path", request.url.path),
        status=response.status_code
    ).observe(time.perf_counter() - start)
    return response


@app.exception_handler(BallotError)
async def ballot_error_handler(request: Request, exc: BallotError) -> JSONResponse:
    """Translate domain errors into ErrorResponse bodies."""
    ballot_errors.labels(error_type=exc.error_type).inc()
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc.error_type}: {exc}")
    return JSONResponse(
        status_code=ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST),
        content=ErrorResponse(
            error=exc.error_type,
            message=exc.message,
            details=exc.details
        ).model_dump()
    )


@app.exception_handler(ValidationError)
async def response_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Responses that fail their own schema are server faults, not bad input."""
    logger.error(f"Error building response for {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error="InternalError", message="Internal server error").model_dump()
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    ballot_errors.labels(error_type="ValidationError").inc()
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error="ValidationError", message=str(exc)).model_dump()
    )


def _candidate_response(index: int, candidate) -> CandidateResponse:
    return CandidateResponse(index=index, name=candidate.name, vote_count=candidate.vote_count)


@app.post(
    f"{settings.api_prefix}/ballot",
    response_model=BallotResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        **ERROR_RESPONSES,
        409: {"model": ErrorResponse, "description": "Ballot already deployed"},
    }
)
@limiter.limit(settings.RATE_LIMIT)
def deploy_ballot(
    request: Request,
    body: DeployRequest,
    caller: str = Depends(get_caller),
    store: BallotStore = Depends(get_store)
) -> BallotResponse:
    """
    Deploy the ballot. The caller becomes its administrator.

    - **candidate_names**: initial candidates, in display order
    - **duration_minutes**: voting window length
    """
    ballot = store.deploy(caller, body.candidate_names, body.duration_minutes)
    return BallotResponse(**summarize(ballot))


@app.get(
    f"{settings.api_prefix}/ballot",
    response_model=BallotResponse,
    responses=ERROR_RESPONSES
)
def get_ballot(store: BallotStore = Depends(get_store)) -> BallotResponse:
    """Public state of the ballot: administrator, deadline, status and totals."""
    return BallotResponse(**summarize(store.ballot))


@app.get(
    f"{settings.api_prefix}/ballot/administrator",
    response_model=AdministratorResponse,
    responses=ERROR_RESPONSES
)
def get_administrator(store: BallotStore = Depends(get_store)) -> AdministratorResponse:
    return AdministratorResponse(administrator=store.ballot.administrator)


@app.get(
    f"{settings.api_prefix}/candidates",
    response_model=list[CandidateResponse],
    responses=ERROR_RESPONSES
)
def get_all_candidates(store: BallotStore = Depends(get_store)) -> list[CandidateResponse]:
    """All candidates in index order with their current tallies."""
    return [
        _candidate_response(index, candidate)
        for index, candidate in enumerate(store.ballot.get_all_candidates())
    ]


@app.get(
    f"{settings.api_prefix}/candidates/{{index}}",
    response_model=CandidateResponse,
    responses=ERROR_RESPONSES
)
def get_candidate(index: int, store: BallotStore = Depends(get_store)) -> CandidateResponse:
    return _candidate_response(index, store.ballot.get_candidate(index))


@app.post(
    f"{settings.api_prefix}/candidates",
    response_model=CandidateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        **ERROR_RESPONSES,
        403: {"model": ErrorResponse, "description": "Caller is not the administrator"},
    }
)
@limiter.limit(settings.RATE_LIMIT)
def add_candidate(
    request: Request,
    body: CandidateRequest,
    caller: str = Depends(get_caller),
    store: BallotStore = Depends(get_store)
) -> CandidateResponse:
    """
    Append a candidate. Administrator only; allowed after the deadline too.

    - **name**: candidate name
    """
    index = store.add_candidate(caller, body.name)
    candidates_added.inc()
    logger.info(f"Candidate added: index={index}, name={body.name}")
    return CandidateResponse(index=index, name=body.name, vote_count=0)


@app.post(
    f"{settings.api_prefix}/vote",
    response_model=VoteResponse,
    responses={
        **ERROR_RESPONSES,
        409: {"model": ErrorResponse, "description": "Caller has already voted"},
        429: {"description": "Rate limit exceeded"},
    }
)
@limiter.limit(settings.RATE_LIMIT)
def cast_vote(
    request: Request,
    vote: VoteRequest,
    caller: str = Depends(get_caller),
    store: BallotStore = Depends(get_store)
) -> VoteResponse:
    """
    Cast the caller's single vote.

    - **candidate_index**: index of the chosen candidate

    Rejected when voting is closed, when the caller has voted already or when
    the index does not address a candidate.
    """
    candidate = store.cast_vote(caller, vote.candidate_index)
    votes_cast.labels(candidate=candidate.name).inc()
    logger.info(f"Vote recorded: voter={caller}, candidate={vote.candidate_index}")
    return VoteResponse(
        voter=caller,
        candidate=_candidate_response(vote.candidate_index, candidate)
    )


@app.get(
    f"{settings.api_prefix}/voters/{{address:path}}",
    response_model=VoterStatusResponse,
    responses=ERROR_RESPONSES
)
def get_voter(address: str, store: BallotStore = Depends(get_store)) -> VoterStatusResponse:
    return VoterStatusResponse(address=address, has_voted=store.ballot.has_voted(address))


@app.get(
    f"{settings.api_prefix}/status",
    response_model=VotingStatusResponse,
    responses=ERROR_RESPONSES
)
def get_voting_status(store: BallotStore = Depends(get_store)) -> VotingStatusResponse:
    """True strictly before the deadline, false from the deadline on."""
    return VotingStatusResponse(voting_open=store.ballot.get_voting_status())


@app.get(
    f"{settings.api_prefix}/remaining-time",
    response_model=RemainingTimeResponse,
    responses=ERROR_RESPONSES
)
def get_remaining_time(store: BallotStore = Depends(get_store)) -> RemainingTimeResponse:
    return RemainingTimeResponse(remaining_seconds=store.ballot.get_remaining_time())


@app.get(
    f"{settings.api_prefix}/health",
    response_model=HealthResponse,
    responses={
        503: {"model": HealthResponse, "description": "Service unhealthy"}
    }
)
def health_check(store: BallotStore = Depends(get_store)):
    """
    Check health of the service.

    Unhealthy when the configured snapshot location is not writable.
    """
    try:
        healthy = store.check_health()
    except OSError as e:
        logger.error(f"Snapshot health check error: {e}")
        healthy = False

    response = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        ballot_deployed=store.deployed,
        timestamp=datetime.utcnow()
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=response.model_dump(mode="json")
    )


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


@app.get("/")
async def root():
    """Root endpoint with API information."""
    prefix = settings.api_prefix
    return {
        "service": settings.SERVICE_NAME,
        "version": settings.API_VERSION,
        "status": "running",
        "caller_header": settings.CALLER_HEADER,
        "endpoints": {
            "ballot": f"{prefix}/ballot",
            "candidates": f"{prefix}/candidates",
            "vote": f"{prefix}/vote",
            "status": f"{prefix}/status",
            "remaining_time": f"{prefix}/remaining-time",
            "health": f"{prefix}/health",
            "metrics": "/metrics"
        }
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ballot_service.ballot_api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.log_level.lower()
    )
