"""Tests for job and proposal status changes."""

import pytest

from marketplace.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from marketplace.models.proposal import ProposalDraft
from marketplace.models.user import Principal


def _submit(services, job_id, freelancer_id, bid=500):
    return services.transition_service.submit_proposal(
        job_id,
        Principal(id=freelancer_id, role="freelancer"),
        ProposalDraft(
            cover_letter=f"Proposal from {freelancer_id}",
            bid_amount=bid,
            estimated_duration={"value": 2, "unit": "weeks"},
        ),
    )


class TestSubmitProposal:
    """Tests for submitting proposals."""

    def test_submit_creates_pending_proposal_and_links_job(self, services, open_job, freelancer, proposal_draft):
        proposal = services.transition_service.submit_proposal(open_job.id, freelancer, proposal_draft)

        assert proposal.status == "pending"
        assert proposal.freelancer_id == freelancer.id
        assert proposal.bid_amount == 800
        assert proposal.estimated_duration.unit == "weeks"
        assert services.job_service.get_job(open_job.id).proposal_ids == [proposal.id]

    def test_resubmitting_same_pair_conflicts(self, services, open_job):
        _submit(services, open_job.id, "fl_1")

        with pytest.raises(ConflictError, match="already submitted"):
            _submit(services, open_job.id, "fl_1")

        assert len(services.job_service.get_job(open_job.id).proposal_ids) == 1

    def test_resubmitting_after_withdrawal_conflicts(self, services, open_job):
        first = _submit(services, open_job.id, "fl_1")
        services.transition_service.withdraw_proposal(first.id, Principal(id="fl_1", role="freelancer"))

        with pytest.raises(ConflictError, match="already submitted"):
            _submit(services, open_job.id, "fl_1")

        assert services.job_service.get_job(open_job.id).proposal_ids == [first.id]

    def test_resubmitting_after_rejection_conflicts(self, services, open_job, business):
        first = _submit(services, open_job.id, "fl_1")
        services.transition_service.decide_proposal(first.id, business, "reject")

        assert services.job_service.get_job(open_job.id).status == "open"
        with pytest.raises(ConflictError, match="already submitted"):
            _submit(services, open_job.id, "fl_1")

        assert services.job_service.get_job(open_job.id).proposal_ids == [first.id]

    def test_business_cannot_submit(self, services, open_job, business, proposal_draft):
        with pytest.raises(ForbiddenError):
            services.transition_service.submit_proposal(open_job.id, business, proposal_draft)

    def test_unknown_job(self, services, freelancer, proposal_draft):
        with pytest.raises(NotFoundError):
            services.transition_service.submit_proposal("missing", freelancer, proposal_draft)

    @pytest.mark.parametrize("payload", [
        {"cover_letter": "Hi", "bid_amount": 0, "estimated_duration": {"value": 1, "unit": "days"}},
        {"cover_letter": "Hi", "bid_amount": -10, "estimated_duration": {"value": 1, "unit": "days"}},
        {"cover_letter": "Hi", "bid_amount": 10, "estimated_duration": {"value": 1, "unit": "years"}},
        {"cover_letter": "   ", "bid_amount": 10, "estimated_duration": {"value": 1, "unit": "days"}},
        {"bid_amount": 10, "estimated_duration": {"value": 1, "unit": "days"}},
    ])
    def test_malformed_proposal_rejected(self, services, open_job, freelancer, payload):
        with pytest.raises(ValidationError):
            services.transition_service.submit_proposal(open_job.id, freelancer, payload)

    def test_cannot_submit_to_cancelled_job(self, services, open_job, business, freelancer, proposal_draft):
        services.transition_service.set_job_status(open_job.id, business, "cancelled")

        with pytest.raises(ConflictError, match="no longer accepting"):
            services.transition_service.submit_proposal(open_job.id, freelancer, proposal_draft)


class TestDecideProposal:
    """Tests for accepting and rejecting proposals."""

    def test_accept_one_rejects_the_rest(self, services, open_job, business):
        p1 = _submit(services, open_job.id, "fl_1")
        p2 = _submit(services, open_job.id, "fl_2")
        p3 = _submit(services, open_job.id, "fl_3")

        accepted = services.transition_service.decide_proposal(p1.id, business, "accept")

        assert accepted.status == "accepted"
        job = services.job_service.get_job(open_job.id)
        assert job.status == "in-progress"
        assert job.hired_freelancer_id == "fl_1"
        assert services.proposal_service.get_proposal(p2.id, business).status == "rejected"
        assert services.proposal_service.get_proposal(p3.id, business).status == "rejected"

        with pytest.raises(ConflictError):
            services.transition_service.decide_proposal(p2.id, business, "accept")

        with pytest.raises(ConflictError):
            _submit(services, open_job.id, "fl_4")

    def test_accept_leaves_withdrawn_proposals_alone(self, services, open_job, business):
        p1 = _submit(services, open_job.id, "fl_1")
        p2 = _submit(services, open_job.id, "fl_2")
        services.transition_service.withdraw_proposal(p2.id, Principal(id="fl_2", role="freelancer"))

        services.transition_service.decide_proposal(p1.id, business, "accept")

        assert services.proposal_service.get_proposal(p2.id, business).status == "withdrawn"

    def test_reject_keeps_job_open(self, services, open_job, business):
        p1 = _submit(services, open_job.id, "fl_1")
        p2 = _submit(services, open_job.id, "fl_2")

        rejected = services.transition_service.decide_proposal(p1.id, business, "reject")

        assert rejected.status == "rejected"
        assert services.job_service.get_job(open_job.id).status == "open"
        assert services.proposal_service.get_proposal(p2.id, business).status == "pending"

    def test_rejected_proposal_is_terminal(self, services, open_job, business):
        p1 = _submit(services, open_job.id, "fl_1")
        services.transition_service.decide_proposal(p1.id, business, "reject")

        with pytest.raises(ConflictError):
            services.transition_service.decide_proposal(p1.id, business, "accept")

    def test_only_job_owner_decides(self, services, open_job, other_business, freelancer, admin):
        p1 = _submit(services, open_job.id, "fl_1")

        for principal in (other_business, freelancer, admin):
            with pytest.raises(ForbiddenError):
                services.transition_service.decide_proposal(p1.id, principal, "accept")

        assert services.job_service.get_job(open_job.id).status == "open"

    def test_unknown_decision(self, services, open_job, business):
        p1 = _submit(services, open_job.id, "fl_1")

        with pytest.raises(ValidationError):
            services.transition_service.decide_proposal(p1.id, business, "maybe")

    def test_unknown_proposal(self, services, business):
        with pytest.raises(NotFoundError):
            services.transition_service.decide_proposal("missing", business, "accept")

    def test_cannot_accept_on_cancelled_job(self, services, open_job, business):
        p1 = _submit(services, open_job.id, "fl_1")
        services.transition_service.set_job_status(open_job.id, business, "cancelled")

        with pytest.raises(ConflictError):
            services.transition_service.decide_proposal(p1.id, business, "accept")

        assert services.proposal_service.get_proposal(p1.id, business).status == "pending"


class TestWithdrawProposal:
    """Tests for withdrawing proposals."""

    def test_withdraw_pending(self, services, open_job, freelancer, proposal_draft):
        proposal = services.transition_service.submit_proposal(open_job.id, freelancer, proposal_draft)

        withdrawn = services.transition_service.withdraw_proposal(proposal.id, freelancer)

        assert withdrawn.status == "withdrawn"

    def test_withdraw_twice_conflicts(self, services, open_job, freelancer, proposal_draft):
        proposal = services.transition_service.submit_proposal(open_job.id, freelancer, proposal_draft)
        services.transition_service.withdraw_proposal(proposal.id, freelancer)

        with pytest.raises(ConflictError, match="Can only withdraw pending proposals"):
            services.transition_service.withdraw_proposal(proposal.id, freelancer)

    def test_withdraw_accepted_conflicts(self, services, open_job, business, freelancer, proposal_draft):
        proposal = services.transition_service.submit_proposal(open_job.id, freelancer, proposal_draft)
        services.transition_service.decide_proposal(proposal.id, business, "accept")

        with pytest.raises(ConflictError):
            services.transition_service.withdraw_proposal(proposal.id, freelancer)

    def test_other_freelancer_cannot_withdraw(self, services, open_job, freelancer, other_freelancer, proposal_draft):
        proposal = services.transition_service.submit_proposal(open_job.id, freelancer, proposal_draft)

        with pytest.raises(ForbiddenError):
            services.transition_service.withdraw_proposal(proposal.id, other_freelancer)


class TestSetJobStatus:
    """Tests for completing and cancelling jobs."""

    def test_complete_in_progress_job_keeps_hire(self, services, open_job, business):
        p1 = _submit(services, open_job.id, "fl_1")
        services.transition_service.decide_proposal(p1.id, business, "accept")

        job = services.transition_service.set_job_status(open_job.id, business, "completed")

        assert job.status == "completed"
        assert job.hired_freelancer_id == "fl_1"

    def test_cancel_in_progress_job_clears_hire(self, services, open_job, business):
        p1 = _submit(services, open_job.id, "fl_1")
        services.transition_service.decide_proposal(p1.id, business, "accept")

        job = services.transition_service.set_job_status(open_job.id, business, "cancelled")

        assert job.status == "cancelled"
        assert job.hired_freelancer_id is None

    def test_open_job_cannot_be_completed(self, services, open_job, business):
        with pytest.raises(ConflictError):
            services.transition_service.set_job_status(open_job.id, business, "completed")

    def test_terminal_job_stays_terminal(self, services, open_job, business):
        services.transition_service.set_job_status(open_job.id, business, "cancelled")

        with pytest.raises(ConflictError):
            services.transition_service.set_job_status(open_job.id, business, "completed")
        with pytest.raises(ConflictError):
            services.transition_service.set_job_status(open_job.id, business, "cancelled")

    @pytest.mark.parametrize("status", ["open", "in-progress", "archived"])
    def test_status_not_settable_directly(self, services, open_job, business, status):
        with pytest.raises(ValidationError):
            services.transition_service.set_job_status(open_job.id, business, status)

    def test_non_owner_cannot_cancel(self, services, open_job, other_business):
        with pytest.raises(ForbiddenError):
            services.transition_service.set_job_status(open_job.id, other_business, "cancelled")
