"""Repository for user account data access operations."""

from typing import Dict, List, Optional, Any

from supabase import Client

from marketplace.constants import USERS_TABLE
from marketplace.exceptions import ConflictError
from marketplace.repositories.base_repository import BaseRepository
from marketplace.repositories.proposal_repository import is_unique_violation


class UserRepository(BaseRepository):
    """Accounts stored in the Supabase users table.

    Rows include the bcrypt password hash; services strip it before
    returning users to callers. Emails are stored lower-cased and unique.
    """

    def __init__(self, db_client: Client):
        super().__init__(db_client, USERS_TABLE)

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert an account.

        Raises:
            ConflictError: If the email is already registered.
            Exception: If the insert fails for any other reason.
        """
        try:
            rows = self._table().insert(data).execute().data
        except Exception as error:
            if is_unique_violation(error):
                raise ConflictError(f"User with email {data.get('email')} already exists")
            raise Exception(f"Failed to create user: {str(error)}")
        return rows[0] if rows else {}

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Account with this email (case-insensitive), or None."""
        query = self._table().select("*").eq("email", email.strip().lower()).limit(1)
        return self._first(query, "get user by email")

    def list_by_role(self, role: str) -> List[Dict[str, Any]]:
        """All accounts with a role, newest first."""
        query = self._table().select("*").eq("role", role).order("created_at", desc=True)
        return self._run(query, "list users by role")
