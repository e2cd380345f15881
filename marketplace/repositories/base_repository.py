"""Shared Supabase table access for the marketplace repositories."""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Any

from supabase import Client


def utc_now_iso() -> str:
    """Current UTC timestamp in ISO-8601 form, as stored in the database."""
    return datetime.now(timezone.utc).isoformat()


class BaseRepository:
    """Row-level access to one Supabase table.

    Lookups and updates that match no row return None. Driver failures are
    re-raised as Exception("Failed to <action>: ...") with the table name in
    the action, so callers can tell an absent row from a broken connection.

    Attributes:
        db_client: Supabase client used for every query.
        table_name: Table backing this repository ("jobs", "proposals", "users").
    """

    def __init__(self, db_client: Client, table_name: str):
        """Bind the repository to a table.

        Args:
            db_client: Supabase client.
            table_name: Table backing this repository.
        """
        self.db_client = db_client
        self.table_name = table_name

    def _table(self):
        return self.db_client.table(self.table_name)

    def _run(self, query, action: str) -> List[Dict[str, Any]]:
        """Execute a query builder and return its rows.

        Raises:
            Exception: Wrapping the driver error, labelled with action.
        """
        try:
            return query.execute().data or []
        except Exception as error:
            raise Exception(f"Failed to {action}: {str(error)}")

    def _first(self, query, action: str) -> Optional[Dict[str, Any]]:
        rows = self._run(query, action)
        return rows[0] if rows else None

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one row by primary key.

        Args:
            record_id: Row ID.

        Returns:
            The row, or None if no row has that ID.
        """
        query = self._table().select("*").eq("id", record_id).limit(1)
        return self._first(query, f"get {self.table_name} by ID")

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a row; the database assigns id and timestamps.

        Args:
            data: Column values.

        Returns:
            The inserted row.

        Raises:
            Exception: If the insert fails, including constraint violations.
        """
        return self._first(self._table().insert(data), f"create {self.table_name}") or {}

    def update(self, record_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Set columns on one row and refresh updated_at.

        Args:
            record_id: Row ID.
            updates: Columns to set.

        Returns:
            The updated row, or None if no row has that ID.
        """
        query = self._table().update({**updates, "updated_at": utc_now_iso()}).eq("id", record_id)
        return self._first(query, f"update {self.table_name}")

    def update_if_unchanged(
        self,
        record_id: str,
        expected_updated_at: str,
        updates: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """Set columns on one row only if nobody wrote it since it was read.

        Optimistic check on updated_at, for read-modify-write of columns
        such as arrays that a status condition does not protect.

        Args:
            record_id: Row ID.
            expected_updated_at: updated_at value seen when the row was read.
            updates: Columns to set.

        Returns:
            The updated row, or None if the row is gone or was written meanwhile.
        """
        query = (
            self._table()
            .update({**updates, "updated_at": utc_now_iso()})
            .eq("id", record_id)
            .eq("updated_at", expected_updated_at)
        )
        return self._first(query, f"update {self.table_name}")

    def update_if_status(
        self,
        record_id: str,
        expected_status: str,
        updates: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """Set columns on one row only while its status is expected_status.

        Issued as a single UPDATE ... WHERE id = ? AND status = ?, so of two
        writers racing from the same status only one gets a row back.

        Args:
            record_id: Row ID.
            expected_status: Status the row must still have.
            updates: Columns to set.

        Returns:
            The updated row, or None if the row is gone or its status moved on.
        """
        query = (
            self._table()
            .update({**updates, "updated_at": utc_now_iso()})
            .eq("id", record_id)
            .eq("status", expected_status)
        )
        return self._first(query, f"update {self.table_name} status")

    def delete(self, record_id: str) -> bool:
        """Delete one row. Deleting a missing row is not an error."""
        self._run(self._table().delete().eq("id", record_id), f"delete {self.table_name}")
        return True
