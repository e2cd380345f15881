"""FastAPI application for the freelance marketplace: jobs, proposals and accounts."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.auth import CurrentPrincipal
from marketplace.config import Settings, configure_logging, get_settings
from marketplace.database.client import get_supabase_client
from marketplace.exceptions import MarketplaceError
from marketplace.models.job import Job, JobStatus
from marketplace.models.proposal import Proposal
from marketplace.models.user import User
from marketplace.repositories.job_repository import JobRepository
from marketplace.repositories.memory_repository import (
    InMemoryJobRepository,
    InMemoryProposalRepository,
    InMemoryUserRepository,
)
from marketplace.repositories.proposal_repository import ProposalRepository
from marketplace.repositories.user_repository import UserRepository
from marketplace.services.job_locks import JobLockRegistry
from marketplace.services.job_service import JobService
from marketplace.services.proposal_service import ProposalService
from marketplace.services.status_transition_service import StatusTransitionService
from marketplace.services.user_service import UserService
from marketplace.api.schemas.job_schemas import (
    CreateJobRequest,
    JobListResponse,
    UpdateJobStatusRequest
)
from marketplace.api.schemas.proposal_schemas import (
    CreateProposalRequest,
    DecideProposalRequest,
    ProposalListResponse
)
from marketplace.api.schemas.user_schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserListResponse
)
from marketplace.api.schemas.responses import MessageResponse

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Services wired to one set of repositories."""
    job_service: JobService
    proposal_service: ProposalService
    transition_service: StatusTransitionService
    user_service: UserService


def build_services(
    settings: Settings,
    job_repository=None,
    proposal_repository=None,
    user_repository=None
) -> Services:
    """Wire repositories and services.

    Repositories not passed in are created for settings.storage_backend
    ("supabase" or "memory"). Job and transition services share one lock
    registry so every job-scoped write is serialized per job.

    Args:
        settings: Application settings.
        job_repository: Optional job repository override.
        proposal_repository: Optional proposal repository override.
        user_repository: Optional user repository override.

    Returns:
        Services container.
    """
    if settings.storage_backend == "memory":
        job_repository = job_repository or InMemoryJobRepository()
        proposal_repository = proposal_repository or InMemoryProposalRepository()
        user_repository = user_repository or InMemoryUserRepository()
    elif settings.storage_backend == "supabase":
        if not (job_repository and proposal_repository and user_repository):
            db_client = get_supabase_client(settings.supabase_url, settings.supabase_key)
            job_repository = job_repository or JobRepository(db_client)
            proposal_repository = proposal_repository or ProposalRepository(db_client)
            user_repository = user_repository or UserRepository(db_client)
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND '{settings.storage_backend}'")

    job_locks = JobLockRegistry()
    return Services(
        job_service=JobService(job_repository, proposal_repository, job_locks),
        proposal_service=ProposalService(job_repository, proposal_repository),
        transition_service=StatusTransitionService(job_repository, proposal_repository, job_locks),
        user_service=UserService(user_repository, settings)
    )


settings = get_settings()
configure_logging(settings)

app = FastAPI(title="Freelance Marketplace API")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.services = build_services(settings)


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the services wired for this app."""
    return request.app.state.services


# Global exception handlers
@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    """Convert domain errors to their HTTP status codes.

    NotFoundError → 404, ConflictError → 409, ForbiddenError → 403,
    ValidationError → 422, AuthenticationError → 401.
    """
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc)},
        headers=headers
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Convert remaining ValueErrors to appropriate HTTP status codes.

    Automatically handles common patterns:
    - "not found" → 404 Not Found
    - "duplicate" or "already exists" → 409 Conflict
    - Everything else → 400 Bad Request
    """
    error_msg = str(exc).lower()

    if "not found" in error_msg:
        status_code = 404
    elif "duplicate" in error_msg or "already exists" in error_msg:
        status_code = 409
    else:
        status_code = 400

    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc)}
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Convert unhandled exceptions to 500 Internal Server Error without exposing details."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


def _split_skills(skills: Optional[str]) -> Optional[List[str]]:
    if not skills:
        return None
    return [skill.strip() for skill in skills.split(",") if skill.strip()]


@app.get("/")
def root():
    """Health check endpoint.

    Returns:
        Dictionary with status indicator.
    """
    return {"status": "ok"}


# Auth endpoints

@app.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(request: RegisterRequest, services: Services = Depends(get_services)):
    """Create a freelancer or business account and return an access token.

    Args:
        request: RegisterRequest with email, password, role and optional profile.

    Returns:
        AuthResponse with the bearer token and the created user.
    """
    user, token = services.user_service.register(
        email=request.email,
        password=request.password,
        role=request.role,
        profile=request.profile
    )
    return AuthResponse(access_token=token, user=user)


@app.post("/auth/login", response_model=AuthResponse)
def login(request: LoginRequest, services: Services = Depends(get_services)):
    """Exchange email and password for an access token."""
    user, token = services.user_service.login(request.email, request.password)
    return AuthResponse(access_token=token, user=user)


# User endpoints

@app.get("/users/me", response_model=User)
def get_me(principal: CurrentPrincipal, services: Services = Depends(get_services)):
    """Get the authenticated user's account."""
    return services.user_service.get_user(principal.id)


@app.put("/users/profile", response_model=User)
def update_profile(
    principal: CurrentPrincipal,
    updates: Dict[str, Any] = Body(...),
    services: Services = Depends(get_services)
):
    """Merge fields into the authenticated user's profile.

    Args:
        updates: Profile fields to set (name, bio, skills, hourly_rate, company_name...).

    Returns:
        Updated user.
    """
    return services.user_service.update_profile(principal, updates)


@app.get("/users/freelancers", response_model=UserListResponse)
def list_freelancers(
    skills: Optional[str] = None,
    hourly_rate_min: Optional[float] = None,
    hourly_rate_max: Optional[float] = None,
    services: Services = Depends(get_services)
):
    """List freelancers.

    Args:
        skills: Comma-separated skills; freelancers with any of them match.
        hourly_rate_min: Minimum hourly rate.
        hourly_rate_max: Maximum hourly rate.
    """
    users = services.user_service.list_freelancers(
        skills=_split_skills(skills),
        hourly_rate_min=hourly_rate_min,
        hourly_rate_max=hourly_rate_max
    )
    return UserListResponse(users=users, total=len(users))


@app.get("/users/businesses", response_model=UserListResponse)
def list_businesses(industry: Optional[str] = None, services: Services = Depends(get_services)):
    """List businesses, optionally filtered by industry."""
    users = services.user_service.list_businesses(industry)
    return UserListResponse(users=users, total=len(users))


# Job endpoints

@app.post("/jobs", response_model=Job, status_code=201)
def create_job(
    request: CreateJobRequest,
    principal: CurrentPrincipal,
    services: Services = Depends(get_services)
):
    """Post a new job (business accounts only).

    Args:
        request: CreateJobRequest with title, description, skills, budget, deadline, is_urgent.

    Returns:
        Created job.
    """
    return services.job_service.create_job(principal, request)


@app.get("/jobs", response_model=JobListResponse)
def list_jobs(
    status: str = JobStatus.OPEN.value,
    search: Optional[str] = None,
    skills: Optional[str] = None,
    budget_min: Optional[float] = None,
    budget_max: Optional[float] = None,
    services: Services = Depends(get_services)
):
    """List jobs with optional filters.

    Args:
        status: Status filter (default "open"; "all" for every status).
        search: Text searched in title, description and skills.
        skills: Comma-separated skills; jobs requiring any of them match.
        budget_min: Keep jobs whose budget reaches this amount.
        budget_max: Keep jobs whose budget starts at or below this amount.

    Returns:
        JobListResponse sorted newest first.
    """
    jobs = services.job_service.list_jobs(
        status=status,
        search=search,
        skills=_split_skills(skills),
        budget_min=budget_min,
        budget_max=budget_max
    )
    return JobListResponse(jobs=jobs, total=len(jobs))


@app.get("/jobs/my-jobs", response_model=JobListResponse)
def list_my_jobs(principal: CurrentPrincipal, services: Services = Depends(get_services)):
    """List every job owned by the authenticated business."""
    jobs = services.job_service.list_my_jobs(principal)
    return JobListResponse(jobs=jobs, total=len(jobs))


@app.get("/jobs/{job_id}", response_model=Job)
def get_job(job_id: str, services: Services = Depends(get_services)):
    """Get a specific job by ID."""
    return services.job_service.get_job(job_id)


@app.put("/jobs/{job_id}", response_model=Job)
def update_job(
    job_id: str,
    principal: CurrentPrincipal,
    updates: Dict[str, Any] = Body(...),
    services: Services = Depends(get_services)
):
    """Edit an open job owned by the authenticated business.

    Args:
        job_id: ID of the job.
        updates: Fields to change. Status and ownership fields are rejected.

    Returns:
        Updated job.
    """
    return services.job_service.update_job(job_id, principal, updates)


@app.patch("/jobs/{job_id}/status", response_model=Job)
def update_job_status(
    job_id: str,
    request: UpdateJobStatusRequest,
    principal: CurrentPrincipal,
    services: Services = Depends(get_services)
):
    """Complete or cancel a job owned by the authenticated business.

    Args:
        job_id: ID of the job.
        request: UpdateJobStatusRequest with "completed" or "cancelled".

    Returns:
        Updated job.
    """
    return services.transition_service.set_job_status(job_id, principal, request.status)


@app.delete("/jobs/{job_id}", response_model=MessageResponse)
def delete_job(job_id: str, principal: CurrentPrincipal, services: Services = Depends(get_services)):
    """Delete an open job owned by the authenticated business, with its proposals."""
    services.job_service.delete_job(job_id, principal)
    return MessageResponse(message="Job deleted successfully")


# Proposal endpoints

@app.post("/proposals", response_model=Proposal, status_code=201)
def submit_proposal(
    request: CreateProposalRequest,
    principal: CurrentPrincipal,
    services: Services = Depends(get_services)
):
    """Submit a proposal for an open job (freelancer accounts only).

    Args:
        request: CreateProposalRequest with job_id, cover_letter, bid_amount, estimated_duration.

    Returns:
        Created proposal with status pending.
    """
    proposal_data = request.model_dump(exclude={"job_id"})
    return services.transition_service.submit_proposal(request.job_id, principal, proposal_data)


@app.get("/proposals/my-proposals", response_model=ProposalListResponse)
def list_my_proposals(principal: CurrentPrincipal, services: Services = Depends(get_services)):
    """List the authenticated freelancer's proposals, newest first."""
    proposals = services.proposal_service.list_my_proposals(principal)
    return ProposalListResponse(proposals=proposals, total=len(proposals))


@app.get("/proposals/job/{job_id}", response_model=ProposalListResponse)
def list_job_proposals(job_id: str, principal: CurrentPrincipal, services: Services = Depends(get_services)):
    """List a job's proposals.

    The owning business and admins get all proposals; a freelancer who
    bid on the job gets only their own.
    """
    proposals = services.proposal_service.list_job_proposals(job_id, principal)
    return ProposalListResponse(proposals=proposals, total=len(proposals))


@app.get("/proposals/{proposal_id}", response_model=Proposal)
def get_proposal(proposal_id: str, principal: CurrentPrincipal, services: Services = Depends(get_services)):
    """Get a proposal visible to the authenticated user."""
    return services.proposal_service.get_proposal(proposal_id, principal)


@app.patch("/proposals/{proposal_id}/status", response_model=Proposal)
def decide_proposal(
    proposal_id: str,
    request: DecideProposalRequest,
    principal: CurrentPrincipal,
    services: Services = Depends(get_services)
):
    """Accept or reject a pending proposal (owning business only).

    Accepting moves the job to in-progress and rejects the job's other
    pending proposals.

    Args:
        proposal_id: ID of the proposal.
        request: DecideProposalRequest with "accept" or "reject".

    Returns:
        Updated proposal.
    """
    return services.transition_service.decide_proposal(proposal_id, principal, request.decision)


@app.patch("/proposals/{proposal_id}/withdraw", response_model=Proposal)
def withdraw_proposal(proposal_id: str, principal: CurrentPrincipal, services: Services = Depends(get_services)):
    """Withdraw a pending proposal (submitting freelancer only)."""
    return services.transition_service.withdraw_proposal(proposal_id, principal)
