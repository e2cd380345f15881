"""Pytest configuration and fixtures."""

import os
import secrets

import pytest

# Unit tests always run against the in-memory store with a throwaway signing key
os.environ["STORAGE_BACKEND"] = "memory"
os.environ.setdefault("JWT_SECRET_KEY", f"test-only-{secrets.token_urlsafe(32)}")

from fastapi.testclient import TestClient  # noqa: E402

from marketplace.auth import create_access_token  # noqa: E402
from marketplace.config import get_settings  # noqa: E402
from marketplace.main import app, build_services  # noqa: E402
from marketplace.models.job import JobDraft  # noqa: E402
from marketplace.models.proposal import ProposalDraft  # noqa: E402
from marketplace.models.user import Principal  # noqa: E402
from marketplace.repositories.memory_repository import (  # noqa: E402
    InMemoryJobRepository,
    InMemoryProposalRepository,
    InMemoryUserRepository,
)


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def job_repository():
    return InMemoryJobRepository()


@pytest.fixture
def proposal_repository():
    return InMemoryProposalRepository()


@pytest.fixture
def user_repository():
    return InMemoryUserRepository()


@pytest.fixture
def services(settings, job_repository, proposal_repository, user_repository):
    """Services wired to fresh in-memory repositories."""
    return build_services(
        settings,
        job_repository=job_repository,
        proposal_repository=proposal_repository,
        user_repository=user_repository
    )


@pytest.fixture
def business():
    return Principal(id="biz_1", role="business")


@pytest.fixture
def other_business():
    return Principal(id="biz_2", role="business")


@pytest.fixture
def freelancer():
    return Principal(id="fl_1", role="freelancer")


@pytest.fixture
def other_freelancer():
    return Principal(id="fl_2", role="freelancer")


@pytest.fixture
def admin():
    return Principal(id="adm_1", role="admin")


@pytest.fixture
def job_draft():
    return JobDraft(
        title="Build a landing page",
        description="Responsive landing page for a product launch",
        skills=["React", "CSS"],
        budget={"type": "fixed", "min": 500, "max": 1000},
    )


@pytest.fixture
def proposal_draft():
    return ProposalDraft(
        cover_letter="I have shipped a dozen landing pages.",
        bid_amount=800,
        estimated_duration={"value": 2, "unit": "weeks"},
    )


@pytest.fixture
def open_job(services, business, job_draft):
    """An open job owned by `business`."""
    return services.job_service.create_job(business, job_draft)


@pytest.fixture
def client(services):
    """Test client whose app uses this test's in-memory services."""
    previous = app.state.services
    app.state.services = services
    yield TestClient(app)
    app.state.services = previous


@pytest.fixture
def auth_headers(settings):
    """Build Authorization headers for a principal."""
    def _headers(principal: Principal) -> dict:
        token = create_access_token(principal.id, principal.role, settings)
        return {"Authorization": f"Bearer {token}"}
    return _headers
