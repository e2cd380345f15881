"""Service owning every job and proposal status change."""

import logging
from typing import Any, Dict, Optional, Union

from marketplace.constants import (
    HIRED_JOB_STATUSES,
    JOB_STATUS_TRANSITIONS,
    MANUAL_JOB_STATUSES,
    PROPOSAL_STATUS_TRANSITIONS,
)
from marketplace.exceptions import ConflictError, NotFoundError, ValidationError
from marketplace.models.job import Job, JobStatus
from marketplace.models.proposal import (
    Proposal,
    ProposalDecision,
    ProposalDraft,
    ProposalStatus,
)
from marketplace.models.user import Principal
from marketplace.repositories.job_repository import JobRepository
from marketplace.repositories.proposal_repository import ProposalRepository
from marketplace.services.access_policy import Action, authorize
from marketplace.services.job_locks import JobLockRegistry
from marketplace.utils.validation import parse_model

logger = logging.getLogger(__name__)


class StatusTransitionService:
    """Validates and applies status changes to jobs and proposals.

    This is the only code path that writes Job.status or Proposal.status.
    Every operation runs under the job's lock from the shared
    JobLockRegistry, and every status write is conditional on the status
    read beforehand, so concurrent requests against one job cannot both win.

    Accepting a proposal is one failure unit: the job is claimed
    (open -> in-progress), the proposal accepted, then all other pending
    proposals of the job rejected in a single write. If a step fails the
    steps already applied are reverted before the error propagates.

    Attributes:
        job_repository: Repository for job data access.
        proposal_repository: Repository for proposal data access.
        job_locks: Registry of per-job locks shared with JobService.
    """

    def __init__(
        self,
        job_repository: JobRepository,
        proposal_repository: ProposalRepository,
        job_locks: Optional[JobLockRegistry] = None
    ):
        """Initialize the service with its repositories.

        Args:
            job_repository: JobRepository (or in-memory equivalent).
            proposal_repository: ProposalRepository (or in-memory equivalent).
            job_locks: Lock registry; a private one is created if omitted.
        """
        self.job_repository = job_repository
        self.proposal_repository = proposal_repository
        self.job_locks = job_locks or JobLockRegistry()

    def submit_proposal(
        self,
        job_id: str,
        principal: Principal,
        proposal_data: Union[ProposalDraft, Dict[str, Any]]
    ) -> Proposal:
        """Create a pending proposal for an open job.

        Args:
            job_id: Job to bid on.
            principal: Freelancer submitting the proposal.
            proposal_data: Cover letter, bid amount and estimated duration.

        Returns:
            The created proposal.

        Raises:
            ForbiddenError: If principal is not a freelancer.
            ValidationError: If proposal_data is malformed.
            NotFoundError: If the job does not exist.
            ConflictError: If the job is not open or the freelancer already bid on it.
        """
        authorize(principal, Action.SUBMIT_PROPOSAL)
        draft = parse_model(ProposalDraft, proposal_data)

        with self.job_locks.hold(job_id):
            job = self._get_job(job_id)
            if job.status != JobStatus.OPEN:
                raise ConflictError("This job is no longer accepting proposals")

            if self.proposal_repository.get_by_job_and_freelancer(job_id, principal.id):
                raise ConflictError("You have already submitted a proposal for this job")

            proposal_row = self.proposal_repository.create({
                "job_id": job_id,
                "freelancer_id": principal.id,
                **draft.model_dump(mode="json"),
                "status": ProposalStatus.PENDING.value
            })

            try:
                job_row = self.job_repository.append_proposal(job_id, proposal_row["id"])
            except Exception:
                self.proposal_repository.delete(proposal_row["id"])
                raise

            # Another process may have accepted or cancelled the job meanwhile
            if not job_row or job_row.get("status") != JobStatus.OPEN.value:
                self.proposal_repository.delete(proposal_row["id"])
                raise ConflictError("This job is no longer accepting proposals")

        logger.info(f"Proposal {proposal_row['id']} submitted for job {job_id} by {principal.id}")
        return Proposal.model_validate(proposal_row)

    def decide_proposal(
        self,
        proposal_id: str,
        principal: Principal,
        decision: Union[ProposalDecision, str]
    ) -> Proposal:
        """Accept or reject a pending proposal on behalf of the job owner.

        Accepting moves the job to in-progress, records the hired freelancer
        and rejects every other pending proposal of the job. Withdrawn and
        already-rejected proposals are left alone.

        Args:
            proposal_id: Proposal to decide on.
            principal: Business owning the parent job.
            decision: "accept" or "reject".

        Returns:
            The updated proposal.

        Raises:
            ValidationError: If decision is unknown.
            NotFoundError: If the proposal or its job does not exist.
            ForbiddenError: If principal does not own the job.
            ConflictError: If the proposal is not pending, or the job is not open when accepting.
        """
        decision = self._parse_decision(decision)
        proposal = self._get_proposal(proposal_id)

        with self.job_locks.hold(proposal.job_id):
            proposal = self._get_proposal(proposal_id)
            job = self._get_job(proposal.job_id)
            authorize(principal, Action.DECIDE_PROPOSAL, job=job)
            self._require_pending(proposal)

            if decision == ProposalDecision.REJECT:
                return self._transition_proposal(proposal, ProposalStatus.REJECTED)

            if job.status != JobStatus.OPEN:
                raise ConflictError(f"Job {job.id} is {job.status}; proposals can only be accepted while it is open")

            return self._accept(job, proposal)

    def withdraw_proposal(self, proposal_id: str, principal: Principal) -> Proposal:
        """Withdraw a pending proposal on behalf of the freelancer who submitted it.

        Args:
            proposal_id: Proposal to withdraw.
            principal: Freelancer owning the proposal.

        Returns:
            The withdrawn proposal.

        Raises:
            NotFoundError: If the proposal does not exist.
            ForbiddenError: If principal does not own the proposal.
            ConflictError: If the proposal is not pending.
        """
        proposal = self._get_proposal(proposal_id)
        authorize(principal, Action.WITHDRAW_PROPOSAL, proposal=proposal)

        with self.job_locks.hold(proposal.job_id):
            proposal = self._get_proposal(proposal_id)
            self._require_pending(proposal, "Can only withdraw pending proposals")
            return self._transition_proposal(proposal, ProposalStatus.WITHDRAWN)

    def set_job_status(
        self,
        job_id: str,
        principal: Principal,
        new_status: Union[JobStatus, str]
    ) -> Job:
        """Complete or cancel a job on behalf of its owner.

        Only completed and cancelled can be set directly: a job is never
        re-opened, and in-progress is reached only by accepting a proposal.
        Cancelling an in-progress job clears the hired freelancer.

        Args:
            job_id: Job to update.
            principal: Business owning the job.
            new_status: "completed" or "cancelled".

        Returns:
            The updated job.

        Raises:
            ValidationError: If new_status is unknown or cannot be set directly.
            NotFoundError: If the job does not exist.
            ForbiddenError: If principal does not own the job.
            ConflictError: If the transition is not allowed from the current status.
        """
        new_status = self._parse_job_status(new_status)
        if new_status.value not in MANUAL_JOB_STATUSES:
            raise ValidationError(
                f"Job status can only be set to {', '.join(sorted(MANUAL_JOB_STATUSES))}; "
                f"'{new_status.value}' is reached through the proposal workflow"
            )

        with self.job_locks.hold(job_id):
            job = self._get_job(job_id)
            authorize(principal, Action.SET_JOB_STATUS, job=job)

            if new_status.value not in JOB_STATUS_TRANSITIONS[job.status]:
                raise ConflictError(f"Cannot move job from {job.status} to {new_status.value}")

            updates = {"status": new_status.value}
            if new_status.value not in HIRED_JOB_STATUSES:
                updates["hired_freelancer_id"] = None

            job_row = self.job_repository.update_if_status(job_id, job.status, updates)
            if not job_row:
                raise ConflictError(f"Job {job_id} changed concurrently; retry the request")

        logger.info(f"Job {job_id} moved from {job.status} to {new_status.value} by {principal.id}")
        return Job.model_validate(job_row)

    def _accept(self, job: Job, proposal: Proposal) -> Proposal:
        claimed = self.job_repository.update_if_status(
            job.id,
            JobStatus.OPEN.value,
            {"status": JobStatus.IN_PROGRESS.value, "hired_freelancer_id": proposal.freelancer_id}
        )
        if not claimed:
            logger.warning(f"Job {job.id} was claimed concurrently while accepting proposal {proposal.id}")
            raise ConflictError(f"Job {job.id} is no longer open")

        accepted_row = None
        try:
            accepted_row = self.proposal_repository.update_if_status(
                proposal.id,
                ProposalStatus.PENDING.value,
                {"status": ProposalStatus.ACCEPTED.value}
            )
            if not accepted_row:
                raise ConflictError(f"Proposal {proposal.id} is no longer pending")

            rejected = self.proposal_repository.reject_pending_for_job(job.id, exclude_id=proposal.id)
        except Exception as error:
            logger.error(f"Accepting proposal {proposal.id} for job {job.id} failed, reverting: {error}")
            self._revert_acceptance(job.id, proposal.id, proposal_accepted=accepted_row is not None)
            raise

        logger.info(
            f"Proposal {proposal.id} accepted for job {job.id}; "
            f"{len(rejected)} competing proposal(s) rejected"
        )
        return Proposal.model_validate(accepted_row)

    def _revert_acceptance(self, job_id: str, proposal_id: str, proposal_accepted: bool) -> None:
        try:
            if proposal_accepted:
                self.proposal_repository.update_if_status(
                    proposal_id,
                    ProposalStatus.ACCEPTED.value,
                    {"status": ProposalStatus.PENDING.value}
                )
            self.job_repository.update_if_status(
                job_id,
                JobStatus.IN_PROGRESS.value,
                {"status": JobStatus.OPEN.value, "hired_freelancer_id": None}
            )
        except Exception as error:
            logger.error(f"Failed to revert acceptance of proposal {proposal_id} on job {job_id}: {error}")

    def _transition_proposal(self, proposal: Proposal, new_status: ProposalStatus) -> Proposal:
        if new_status.value not in PROPOSAL_STATUS_TRANSITIONS[proposal.status]:
            raise ConflictError(f"Cannot move proposal from {proposal.status} to {new_status.value}")

        proposal_row = self.proposal_repository.update_if_status(
            proposal.id,
            ProposalStatus.PENDING.value,
            {"status": new_status.value}
        )
        if not proposal_row:
            raise ConflictError(f"Proposal {proposal.id} is no longer pending")

        logger.info(f"Proposal {proposal.id} moved from pending to {new_status.value}")
        return Proposal.model_validate(proposal_row)

    @staticmethod
    def _require_pending(proposal: Proposal, message: Optional[str] = None) -> None:
        if proposal.status != ProposalStatus.PENDING:
            raise ConflictError(message or f"Proposal {proposal.id} is {proposal.status}, not pending")

    @staticmethod
    def _parse_decision(decision: Union[ProposalDecision, str]) -> ProposalDecision:
        try:
            return ProposalDecision(decision)
        except ValueError:
            raise ValidationError(f"Unknown decision '{decision}'; expected accept or reject")

    @staticmethod
    def _parse_job_status(status: Union[JobStatus, str]) -> JobStatus:
        try:
            return JobStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown job status '{status}'")

    def _get_job(self, job_id: str) -> Job:
        job_row = self.job_repository.get_by_id(job_id)
        if not job_row:
            raise NotFoundError(f"Job with ID {job_id} not found")
        return Job.model_validate(job_row)

    def _get_proposal(self, proposal_id: str) -> Proposal:
        proposal_row = self.proposal_repository.get_by_id(proposal_id)
        if not proposal_row:
            raise NotFoundError(f"Proposal with ID {proposal_id} not found")
        return Proposal.model_validate(proposal_row)
