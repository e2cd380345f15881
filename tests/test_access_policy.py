"""Tests for role and ownership rules."""

import pytest

from marketplace.exceptions import ForbiddenError
from marketplace.models.job import Job
from marketplace.models.proposal import Proposal
from marketplace.models.user import Principal
from marketplace.services.access_policy import Action, authorize, is_allowed


@pytest.fixture
def job():
    return Job(
        id="job_1",
        title="Logo",
        description="Design a logo",
        business_id="biz_1",
        skills=["Illustrator"],
        budget={"type": "fixed", "min": 100, "max": 200},
    )


@pytest.fixture
def proposal():
    return Proposal(
        id="prop_1",
        job_id="job_1",
        freelancer_id="fl_1",
        cover_letter="Hi",
        bid_amount=150,
        estimated_duration={"value": 3, "unit": "days"},
    )


class TestRoleRules:
    """Actions gated on role alone."""

    def test_only_business_creates_jobs(self, business, freelancer, admin):
        assert is_allowed(business, Action.CREATE_JOB)
        assert not is_allowed(freelancer, Action.CREATE_JOB)
        assert not is_allowed(admin, Action.CREATE_JOB)

    def test_only_freelancer_submits_proposals(self, business, freelancer, admin):
        assert is_allowed(freelancer, Action.SUBMIT_PROPOSAL)
        assert not is_allowed(business, Action.SUBMIT_PROPOSAL)
        assert not is_allowed(admin, Action.SUBMIT_PROPOSAL)


class TestOwnershipRules:
    """Actions gated on owning the job or proposal."""

    @pytest.mark.parametrize("action", [
        Action.EDIT_JOB,
        Action.DELETE_JOB,
        Action.SET_JOB_STATUS,
        Action.DECIDE_PROPOSAL,
    ])
    def test_job_owner_actions(self, action, job, business, other_business, freelancer, admin):
        assert is_allowed(business, action, job=job)
        assert not is_allowed(other_business, action, job=job)
        assert not is_allowed(freelancer, action, job=job)
        assert not is_allowed(admin, action, job=job)

    def test_business_with_freelancer_id_cannot_withdraw(self, proposal):
        # Same ID but wrong role
        impostor = Principal(id="fl_1", role="business")
        assert not is_allowed(impostor, Action.WITHDRAW_PROPOSAL, proposal=proposal)

    def test_withdraw_requires_submitting_freelancer(self, proposal, freelancer, other_freelancer):
        assert is_allowed(freelancer, Action.WITHDRAW_PROPOSAL, proposal=proposal)
        assert not is_allowed(other_freelancer, Action.WITHDRAW_PROPOSAL, proposal=proposal)

    def test_view_job_proposals(self, job, business, other_business, freelancer, admin):
        assert is_allowed(business, Action.VIEW_JOB_PROPOSALS, job=job)
        assert is_allowed(admin, Action.VIEW_JOB_PROPOSALS, job=job)
        assert not is_allowed(other_business, Action.VIEW_JOB_PROPOSALS, job=job)
        assert not is_allowed(freelancer, Action.VIEW_JOB_PROPOSALS, job=job)

    def test_view_single_proposal(self, job, proposal, business, other_business, freelancer, other_freelancer, admin):
        assert is_allowed(freelancer, Action.VIEW_PROPOSAL, job=job, proposal=proposal)
        assert is_allowed(business, Action.VIEW_PROPOSAL, job=job, proposal=proposal)
        assert is_allowed(admin, Action.VIEW_PROPOSAL, job=job, proposal=proposal)
        assert not is_allowed(other_freelancer, Action.VIEW_PROPOSAL, job=job, proposal=proposal)
        assert not is_allowed(other_business, Action.VIEW_PROPOSAL, job=job, proposal=proposal)

    def test_missing_job_denies_owner_actions(self, business):
        assert not is_allowed(business, Action.EDIT_JOB, job=None)


def test_authorize_raises_forbidden(freelancer):
    with pytest.raises(ForbiddenError, match="create job"):
        authorize(freelancer, Action.CREATE_JOB)
