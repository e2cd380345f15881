"""Repository for job data access operations."""

import logging
from typing import Dict, List, Optional, Any

from supabase import Client

from marketplace.constants import APPEND_PROPOSAL_ATTEMPTS, JOBS_TABLE
from marketplace.exceptions import ConflictError
from marketplace.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class JobRepository(BaseRepository):
    """Job postings stored in the Supabase jobs table."""

    def __init__(self, db_client: Client):
        super().__init__(db_client, JOBS_TABLE)

    def list_jobs(
        self,
        status: Optional[str] = None,
        business_id: Optional[str] = None,
        skills: Optional[List[str]] = None
    ) -> List[Dict[str, Any]]:
        """Fetch jobs matching every given filter, newest first.

        Args:
            status: Only jobs in this status.
            business_id: Only jobs owned by this business.
            skills: Only jobs whose skills array shares at least one entry.

        Returns:
            Job rows.
        """
        query = self._table().select("*")
        if status:
            query = query.eq("status", status)
        if business_id:
            query = query.eq("business_id", business_id)
        if skills:
            query = query.overlaps("skills", skills)

        return self._run(query.order("created_at", desc=True), "list jobs")

    def append_proposal(self, job_id: str, proposal_id: str) -> Optional[Dict[str, Any]]:
        """Add a proposal ID to the end of a job's proposal_ids.

        Returns:
            Updated job row, None if the job does not exist.

        Raises:
            ConflictError: If the job kept changing under every attempt.
        """
        return append_proposal_id(self, job_id, proposal_id)


def append_proposal_id(repository, job_id: str, proposal_id: str) -> Optional[Dict[str, Any]]:
    """Append to proposal_ids with an optimistic read-modify-write.

    The write is conditional on the updated_at value read, so two API
    processes appending to the same job cannot overwrite each other's IDs;
    the loser re-reads and tries again.

    Args:
        repository: Job repository offering get_by_id and update_if_unchanged.
        job_id: Job to append to.
        proposal_id: Proposal to append.

    Returns:
        Updated job row, None if the job does not exist.

    Raises:
        ConflictError: After APPEND_PROPOSAL_ATTEMPTS lost races.
    """
    for _ in range(APPEND_PROPOSAL_ATTEMPTS):
        job_row = repository.get_by_id(job_id)
        if not job_row:
            return None

        proposal_ids = list(job_row.get("proposal_ids") or [])
        if proposal_id in proposal_ids:
            return job_row

        updated = repository.update_if_unchanged(
            job_id,
            job_row.get("updated_at"),
            {"proposal_ids": proposal_ids + [proposal_id]}
        )
        if updated:
            return updated
        logger.info(f"Job {job_id} changed while appending proposal {proposal_id}; retrying")

    raise ConflictError(f"Job {job_id} is being modified concurrently; retry the request")
