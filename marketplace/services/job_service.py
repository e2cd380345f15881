"""Service for job management and business logic."""

import logging
from typing import Any, Dict, List, Optional, Union

from marketplace.constants import ALL_STATUSES, PROTECTED_JOB_FIELDS
from marketplace.exceptions import ConflictError, NotFoundError, ValidationError
from marketplace.models.job import Job, JobDraft, JobStatus, JobUpdate, normalize_skills
from marketplace.models.user import Principal
from marketplace.repositories.job_repository import JobRepository
from marketplace.repositories.proposal_repository import ProposalRepository
from marketplace.services.access_policy import Action, authorize
from marketplace.services.job_locks import JobLockRegistry
from marketplace.utils.validation import parse_model

logger = logging.getLogger(__name__)


class JobService:
    """Service for managing job postings with business logic.

    Status changes are not made here; see StatusTransitionService.

    Attributes:
        job_repository: Repository for job data access.
        proposal_repository: Repository used to remove a deleted job's proposals.
        job_locks: Registry of per-job locks shared with StatusTransitionService.
    """

    def __init__(
        self,
        job_repository: JobRepository,
        proposal_repository: ProposalRepository,
        job_locks: Optional[JobLockRegistry] = None
    ):
        """Initialize the service with repositories.

        Args:
            job_repository: JobRepository instance.
            proposal_repository: ProposalRepository instance.
            job_locks: Lock registry; a private one is created if omitted.
        """
        self.job_repository = job_repository
        self.proposal_repository = proposal_repository
        self.job_locks = job_locks or JobLockRegistry()

    def create_job(self, principal: Principal, job_data: Union[JobDraft, Dict[str, Any]]) -> Job:
        """Create a new open job owned by the calling business.

        Args:
            principal: Business posting the job.
            job_data: Title, description, skills, budget, deadline, is_urgent.

        Returns:
            Created job.

        Raises:
            ForbiddenError: If principal is not a business.
            ValidationError: If required fields are missing or invalid.
        """
        authorize(principal, Action.CREATE_JOB)
        draft = parse_model(JobDraft, job_data)

        job_row = self.job_repository.create({
            **draft.model_dump(mode="json"),
            "business_id": principal.id,
            "status": JobStatus.OPEN.value,
            "hired_freelancer_id": None,
            "proposal_ids": []
        })

        logger.info(f"Job {job_row.get('id')} created by business {principal.id}")
        return Job.model_validate(job_row)

    def get_job(self, job_id: str) -> Job:
        """Get a job by ID.

        Args:
            job_id: Job ID.

        Returns:
            Job.

        Raises:
            NotFoundError: If job not found.
        """
        job_row = self.job_repository.get_by_id(job_id)
        if not job_row:
            raise NotFoundError(f"Job with ID {job_id} not found")
        return Job.model_validate(job_row)

    def list_jobs(
        self,
        status: Optional[str] = JobStatus.OPEN.value,
        search: Optional[str] = None,
        skills: Optional[List[str]] = None,
        budget_min: Optional[float] = None,
        budget_max: Optional[float] = None
    ) -> List[Job]:
        """List jobs with optional filters, newest first.

        Args:
            status: Status filter; defaults to open, "all" disables it.
            search: Case-insensitive text matched against title, description and skills.
            skills: A job matches if it requires any of these skills.
            budget_min: Keep jobs whose budget reaches at least this amount.
            budget_max: Keep jobs whose budget starts at or below this amount.

        Returns:
            Matching jobs.

        Raises:
            ValidationError: If status is unknown or the budget bounds are inverted.

        Note:
            Text and budget filters run in memory after the status/skills query.
        """
        status_value = self._status_filter(status)
        if budget_min is not None and budget_max is not None and budget_min > budget_max:
            raise ValidationError("budget_min cannot exceed budget_max")

        skills = normalize_skills(skills) if skills else None
        job_rows = self.job_repository.list_jobs(status=status_value, skills=skills)
        jobs = [Job.model_validate(row) for row in job_rows]

        if search and search.strip():
            term = search.strip().lower()
            jobs = [
                job for job in jobs
                if term in job.title.lower()
                or term in job.description.lower()
                or any(term in skill.lower() for skill in job.skills)
            ]

        if budget_min is not None:
            jobs = [job for job in jobs if job.budget.max >= budget_min]
        if budget_max is not None:
            jobs = [job for job in jobs if job.budget.min <= budget_max]

        return jobs

    def list_my_jobs(self, principal: Principal) -> List[Job]:
        """List every job owned by the calling business, in any status.

        Args:
            principal: Business whose jobs to list.

        Returns:
            Jobs, newest first.

        Raises:
            ForbiddenError: If principal is not a business.
        """
        authorize(principal, Action.VIEW_OWN_JOBS)
        job_rows = self.job_repository.list_jobs(business_id=principal.id)
        return [Job.model_validate(row) for row in job_rows]

    def update_job(
        self,
        job_id: str,
        principal: Principal,
        updates: Union[JobUpdate, Dict[str, Any]]
    ) -> Job:
        """Edit an open job.

        Args:
            job_id: Job ID.
            principal: Business owning the job.
            updates: Fields to change; omitted fields stay unchanged.

        Returns:
            Updated job.

        Raises:
            ValidationError: If a protected field is included or values are invalid.
            NotFoundError: If job not found.
            ForbiddenError: If principal does not own the job.
            ConflictError: If the job is no longer open.
        """
        if isinstance(updates, dict):
            # Status and ownership only change through the transition service
            for field in PROTECTED_JOB_FIELDS:
                if field in updates:
                    raise ValidationError(f"Cannot manually update {field}")

        changes = parse_model(JobUpdate, updates).model_dump(mode="json", exclude_unset=True)
        if not changes:
            raise ValidationError("No fields to update")

        with self.job_locks.hold(job_id):
            job = self.get_job(job_id)
            authorize(principal, Action.EDIT_JOB, job=job)

            if job.status != JobStatus.OPEN:
                raise ConflictError(f"Job {job_id} is {job.status}; only open jobs can be edited")

            # Re-validate the merged document so budget/skills invariants hold
            merged = parse_model(Job, {**job.model_dump(mode="json"), **changes})
            job_row = self.job_repository.update_if_status(
                job_id,
                JobStatus.OPEN.value,
                merged.model_dump(mode="json", include=set(changes))
            )
            if not job_row:
                raise ConflictError(f"Job {job_id} changed concurrently; retry the request")

        logger.info(f"Job {job_id} updated by business {principal.id}: {sorted(changes)}")
        return Job.model_validate(job_row)

    def delete_job(self, job_id: str, principal: Principal) -> bool:
        """Delete an open job, then its proposals.

        Args:
            job_id: Job ID.
            principal: Business owning the job.

        Returns:
            True if deletion successful.

        Raises:
            NotFoundError: If job not found.
            ForbiddenError: If principal does not own the job.
            ConflictError: If the job is no longer open.
        """
        with self.job_locks.hold(job_id):
            job = self.get_job(job_id)
            authorize(principal, Action.DELETE_JOB, job=job)

            if job.status != JobStatus.OPEN:
                raise ConflictError(f"Job {job_id} is {job.status}; only open jobs can be deleted")

            # Job first so a failed delete never leaves an open job stripped of its proposals
            self.job_repository.delete(job_id)
            self.proposal_repository.delete_by_job(job_id)

        logger.info(f"Job {job_id} deleted by business {principal.id}")
        return True

    @staticmethod
    def _status_filter(status: Optional[str]) -> Optional[str]:
        if not status or status == ALL_STATUSES:
            return None
        try:
            return JobStatus(status).value
        except ValueError:
            raise ValidationError(f"Unknown job status '{status}'")
