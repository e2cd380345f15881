"""In-memory repositories for local development and testing.

They mirror the Supabase repositories method for method. Records are
stored as plain dicts and copied on the way in and out, so callers never
share state with the store. Every write holds the store lock, which makes
conditional and bulk updates atomic the way single SQL statements are.
"""

import copy
import threading
import uuid
from typing import Callable, Dict, List, Optional, Any

from marketplace.exceptions import ConflictError
from marketplace.repositories.base_repository import utc_now_iso
from marketplace.repositories.job_repository import append_proposal_id


class InMemoryRepository:
    """Dict-backed store with the same CRUD surface as BaseRepository."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        self._records: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.RLock()

    def _select(self, predicate: Callable[[Dict[str, Any]], bool]) -> List[Dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(r) for r in self._records.values() if predicate(r)]

    @staticmethod
    def _newest_first(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return sorted(records, key=lambda r: r.get("created_at") or "", reverse=True)

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._records.get(record_id)
            return copy.deepcopy(record) if record else None

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        record = copy.deepcopy(data)
        record.setdefault("id", str(uuid.uuid4()))
        now = utc_now_iso()
        record.setdefault("created_at", now)
        record.setdefault("updated_at", now)
        with self._lock:
            if record["id"] in self._records:
                raise ConflictError(f"{self.table_name} {record['id']} already exists")
            self._records[record["id"]] = record
            return copy.deepcopy(record)

    def update(self, record_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                return None
            record.update(copy.deepcopy(updates))
            record["updated_at"] = utc_now_iso()
            return copy.deepcopy(record)

    def update_if_unchanged(
        self,
        record_id: str,
        expected_updated_at: str,
        updates: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._records.get(record_id)
            if record is None or record.get("updated_at") != expected_updated_at:
                return None
            return self.update(record_id, updates)

    def update_if_status(
        self,
        record_id: str,
        expected_status: str,
        updates: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._records.get(record_id)
            if record is None or record.get("status") != expected_status:
                return None
            return self.update(record_id, updates)

    def delete(self, record_id: str) -> bool:
        with self._lock:
            self._records.pop(record_id, None)
            return True


class InMemoryJobRepository(InMemoryRepository):
    """In-memory counterpart of JobRepository."""

    def __init__(self):
        super().__init__("jobs")

    def list_jobs(
        self,
        status: Optional[str] = None,
        business_id: Optional[str] = None,
        skills: Optional[List[str]] = None
    ) -> List[Dict[str, Any]]:
        def matches(job: Dict[str, Any]) -> bool:
            if status and job.get("status") != status:
                return False
            if business_id and job.get("business_id") != business_id:
                return False
            if skills and not set(skills) & set(job.get("skills") or []):
                return False
            return True

        return self._newest_first(self._select(matches))

    def append_proposal(self, job_id: str, proposal_id: str) -> Optional[Dict[str, Any]]:
        return append_proposal_id(self, job_id, proposal_id)


class InMemoryProposalRepository(InMemoryRepository):
    """In-memory counterpart of ProposalRepository, including the (job, freelancer) unique index."""

    def __init__(self):
        super().__init__("proposals")

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            if self.get_by_job_and_freelancer(data["job_id"], data["freelancer_id"]):
                raise ConflictError("A proposal for this job already exists for this freelancer")
            return super().create(data)

    def get_by_job(self, job_id: str) -> List[Dict[str, Any]]:
        proposals = self._select(lambda p: p.get("job_id") == job_id)
        return sorted(proposals, key=lambda p: p.get("created_at") or "")

    def get_by_job_and_freelancer(self, job_id: str, freelancer_id: str) -> Optional[Dict[str, Any]]:
        found = self._select(
            lambda p: p.get("job_id") == job_id and p.get("freelancer_id") == freelancer_id
        )
        return found[0] if found else None

    def get_by_freelancer(self, freelancer_id: str) -> List[Dict[str, Any]]:
        return self._newest_first(self._select(lambda p: p.get("freelancer_id") == freelancer_id))

    def reject_pending_for_job(self, job_id: str, exclude_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            siblings = [
                p["id"] for p in self._records.values()
                if p.get("job_id") == job_id and p.get("status") == "pending" and p["id"] != exclude_id
            ]
            return [self.update(proposal_id, {"status": "rejected"}) for proposal_id in siblings]

    def delete_by_job(self, job_id: str) -> bool:
        with self._lock:
            for proposal_id in [p["id"] for p in self._records.values() if p.get("job_id") == job_id]:
                del self._records[proposal_id]
            return True


class InMemoryUserRepository(InMemoryRepository):
    """In-memory counterpart of UserRepository, including the unique email index."""

    def __init__(self):
        super().__init__("users")

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            if self.get_by_email(data["email"]):
                raise ConflictError(f"User with email {data['email']} already exists")
            return super().create(data)

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        wanted = email.strip().lower()
        found = self._select(lambda u: u.get("email") == wanted)
        return found[0] if found else None

    def list_by_role(self, role: str) -> List[Dict[str, Any]]:
        return self._newest_first(self._select(lambda u: u.get("role") == role))
