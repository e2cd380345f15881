"""Repository for proposal data access operations."""

from typing import Dict, List, Optional, Any

from supabase import Client

from marketplace.constants import PROPOSALS_TABLE
from marketplace.exceptions import ConflictError
from marketplace.repositories.base_repository import BaseRepository, utc_now_iso


def is_unique_violation(error: Exception) -> bool:
    """Whether a driver error is Postgres unique_violation (SQLSTATE 23505)."""
    message = str(error)
    return "23505" in message or "duplicate key" in message.lower()


class ProposalRepository(BaseRepository):
    """Proposals stored in the Supabase proposals table.

    The table has a unique index on (job_id, freelancer_id), which backs the
    one-proposal-per-freelancer-per-job rule across API processes.
    """

    def __init__(self, db_client: Client):
        super().__init__(db_client, PROPOSALS_TABLE)

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a proposal.

        Raises:
            ConflictError: If the freelancer already has a proposal on the job.
            Exception: If the insert fails for any other reason.
        """
        try:
            rows = self._table().insert(data).execute().data
        except Exception as error:
            if is_unique_violation(error):
                raise ConflictError("A proposal for this job already exists for this freelancer")
            raise Exception(f"Failed to create proposal: {str(error)}")
        return rows[0] if rows else {}

    def get_by_job(self, job_id: str) -> List[Dict[str, Any]]:
        """All proposals of a job, oldest first."""
        query = self._table().select("*").eq("job_id", job_id).order("created_at")
        return self._run(query, "get proposals by job")

    def get_by_job_and_freelancer(self, job_id: str, freelancer_id: str) -> Optional[Dict[str, Any]]:
        """The freelancer's proposal on a job in any status, or None."""
        query = (
            self._table()
            .select("*")
            .eq("job_id", job_id)
            .eq("freelancer_id", freelancer_id)
            .limit(1)
        )
        return self._first(query, "get proposal by job and freelancer")

    def get_by_freelancer(self, freelancer_id: str) -> List[Dict[str, Any]]:
        """All proposals a freelancer submitted, newest first."""
        query = (
            self._table()
            .select("*")
            .eq("freelancer_id", freelancer_id)
            .order("created_at", desc=True)
        )
        return self._run(query, "get proposals by freelancer")

    def reject_pending_for_job(self, job_id: str, exclude_id: str) -> List[Dict[str, Any]]:
        """Reject every pending proposal of a job except exclude_id.

        One UPDATE statement, so the siblings change together or not at all.

        Args:
            job_id: Job whose proposals to reject.
            exclude_id: The accepted proposal.

        Returns:
            Rows that moved to rejected.
        """
        query = (
            self._table()
            .update({"status": "rejected", "updated_at": utc_now_iso()})
            .eq("job_id", job_id)
            .eq("status", "pending")
            .neq("id", exclude_id)
        )
        return self._run(query, "reject pending proposals")

    def delete_by_job(self, job_id: str) -> bool:
        """Delete every proposal of a job."""
        self._run(self._table().delete().eq("job_id", job_id), "delete proposals by job")
        return True
