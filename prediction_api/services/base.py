from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..adapters.supabase_client import fetch_one, first_row, run_rows
from ..errors import ValidationError
from ..ports.storage import StorageClient


class BaseService:
    """Generic table operations shared by the CRUD services.

    Lookups that find nothing return None (or False for deletes) so callers can
    map absence to a 404; real storage failures raise StorageError.
    """

    def __init__(self, client: StorageClient) -> None:
        self.client = client

    def find_all(
        self,
        table: str,
        order_by: str = "created_at",
        select: str = "*",
        desc: bool = False,
    ) -> List[Dict[str, Any]]:
        query = self.client.table(table).select(select).order(order_by, desc=desc)
        return run_rows(query, f"Failed to fetch {table}")

    def find_by_id(
        self,
        table: str,
        record_id: Any,
        id_field: str = "id",
        select: str = "*",
    ) -> Optional[Dict[str, Any]]:
        query = self.client.table(table).select(select).eq(id_field, record_id)
        return fetch_one(query, f"Failed to fetch {table}")

    def find_by_criteria(
        self,
        table: str,
        criteria: Dict[str, Any],
        select: str = "*",
    ) -> List[Dict[str, Any]]:
        query = self.client.table(table).select(select)
        for column, value in criteria.items():
            query = query.eq(column, value)
        return run_rows(query, f"Failed to fetch {table}")

    def create(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        rows = run_rows(self.client.table(table).insert(payload), f"Failed to create {table}")
        return rows[0] if rows else payload

    def update(
        self,
        table: str,
        record_id: Any,
        payload: Dict[str, Any],
        id_field: str = "id",
    ) -> Optional[Dict[str, Any]]:
        if not payload:
            raise ValidationError("No fields to update")
        query = self.client.table(table).update(payload).eq(id_field, record_id)
        return first_row(run_rows(query, f"Failed to update {table}"))

    def delete(self, table: str, record_id: Any, id_field: str = "id") -> bool:
        query = self.client.table(table).delete().eq(id_field, record_id)
        return bool(run_rows(query, f"Failed to delete {table}"))
