"""Read-side service for proposals."""

from typing import List

from marketplace.exceptions import ForbiddenError, NotFoundError
from marketplace.models.job import Job
from marketplace.models.proposal import Proposal
from marketplace.models.user import Principal, UserRole
from marketplace.repositories.job_repository import JobRepository
from marketplace.repositories.proposal_repository import ProposalRepository
from marketplace.services.access_policy import Action, authorize, is_allowed


class ProposalService:
    """Service for looking up proposals with visibility rules applied.

    Attributes:
        job_repository: Repository for job data access.
        proposal_repository: Repository for proposal data access.
    """

    def __init__(self, job_repository: JobRepository, proposal_repository: ProposalRepository):
        """Initialize the service with repositories.

        Args:
            job_repository: JobRepository instance.
            proposal_repository: ProposalRepository instance.
        """
        self.job_repository = job_repository
        self.proposal_repository = proposal_repository

    def get_proposal(self, proposal_id: str, principal: Principal) -> Proposal:
        """Get a proposal visible to the caller.

        Args:
            proposal_id: Proposal ID.
            principal: Submitting freelancer, owning business or admin.

        Returns:
            Proposal.

        Raises:
            NotFoundError: If proposal not found.
            ForbiddenError: If the caller may not see it.
        """
        proposal_row = self.proposal_repository.get_by_id(proposal_id)
        if not proposal_row:
            raise NotFoundError(f"Proposal with ID {proposal_id} not found")
        proposal = Proposal.model_validate(proposal_row)

        job_row = self.job_repository.get_by_id(proposal.job_id)
        job = Job.model_validate(job_row) if job_row else None
        authorize(principal, Action.VIEW_PROPOSAL, job=job, proposal=proposal)
        return proposal

    def list_my_proposals(self, principal: Principal) -> List[Proposal]:
        """List the calling freelancer's proposals, newest first.

        Raises:
            ForbiddenError: If principal is not a freelancer.
        """
        authorize(principal, Action.VIEW_OWN_PROPOSALS)
        return [
            Proposal.model_validate(row)
            for row in self.proposal_repository.get_by_freelancer(principal.id)
        ]

    def list_job_proposals(self, job_id: str, principal: Principal) -> List[Proposal]:
        """List the proposals of a job that the caller may see.

        The owning business and admins see every proposal. A freelancer
        who bid on the job sees only their own.

        Args:
            job_id: Job ID.
            principal: Caller.

        Returns:
            Proposals in submission order.

        Raises:
            NotFoundError: If job not found.
            ForbiddenError: If the caller has no proposal on the job and does not own it.
        """
        job_row = self.job_repository.get_by_id(job_id)
        if not job_row:
            raise NotFoundError(f"Job with ID {job_id} not found")
        job = Job.model_validate(job_row)

        if is_allowed(principal, Action.VIEW_JOB_PROPOSALS, job=job):
            return [Proposal.model_validate(row) for row in self.proposal_repository.get_by_job(job_id)]

        if principal.role == UserRole.FREELANCER:
            own = self.proposal_repository.get_by_job_and_freelancer(job_id, principal.id)
            if own:
                return [Proposal.model_validate(own)]

        raise ForbiddenError("Not authorized to view proposals for this job")
