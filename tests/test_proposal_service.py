"""Tests for proposal visibility."""

import pytest

from marketplace.exceptions import ForbiddenError, NotFoundError


@pytest.fixture
def proposal(services, open_job, freelancer, proposal_draft):
    return services.transition_service.submit_proposal(open_job.id, freelancer, proposal_draft)


def test_owner_and_admin_see_all_job_proposals(services, open_job, proposal, business, admin, other_freelancer, proposal_draft):
    second = services.transition_service.submit_proposal(open_job.id, other_freelancer, proposal_draft)

    for principal in (business, admin):
        ids = {p.id for p in services.proposal_service.list_job_proposals(open_job.id, principal)}
        assert ids == {proposal.id, second.id}


def test_freelancer_sees_only_own_proposal_on_job(services, open_job, proposal, freelancer, other_freelancer, proposal_draft):
    services.transition_service.submit_proposal(open_job.id, other_freelancer, proposal_draft)

    visible = services.proposal_service.list_job_proposals(open_job.id, freelancer)

    assert [p.id for p in visible] == [proposal.id]


def test_outsiders_cannot_list_job_proposals(services, open_job, proposal, other_business, other_freelancer):
    for principal in (other_business, other_freelancer):
        with pytest.raises(ForbiddenError):
            services.proposal_service.list_job_proposals(open_job.id, principal)


def test_list_job_proposals_unknown_job(services, business):
    with pytest.raises(NotFoundError):
        services.proposal_service.list_job_proposals("missing", business)


def test_get_proposal_visibility(services, proposal, freelancer, business, admin, other_freelancer, other_business):
    for principal in (freelancer, business, admin):
        assert services.proposal_service.get_proposal(proposal.id, principal).id == proposal.id

    for principal in (other_freelancer, other_business):
        with pytest.raises(ForbiddenError):
            services.proposal_service.get_proposal(proposal.id, principal)


def test_my_proposals(services, open_job, proposal, freelancer, business, job_draft, proposal_draft):
    another_job = services.job_service.create_job(business, job_draft)
    another = services.transition_service.submit_proposal(another_job.id, freelancer, proposal_draft)

    ids = {p.id for p in services.proposal_service.list_my_proposals(freelancer)}

    assert ids == {proposal.id, another.id}


def test_business_has_no_my_proposals(services, business):
    with pytest.raises(ForbiddenError):
        services.proposal_service.list_my_proposals(business)
