"""
Base store — shared Supabase client access for all stores.

All domain-specific stores inherit from this class to get
standardised insert / upsert / select / update / delete primitives.
Every Supabase APIError is logged and re-raised as DatabaseError so
callers only deal with the app exception hierarchy.
"""

import logging
from typing import Any, Dict, List

from postgrest.exceptions import APIError

from app.core.config import settings
from app.core.exceptions import DatabaseError
from app.clients.supabase_client import SupabaseClient

logger = logging.getLogger("base_store")


class BaseStore:
    """Base class for all Supabase stores providing shared CRUD operations."""

    def __init__(self, supabase_client: SupabaseClient | None = None) -> None:
        self._supabase_client = supabase_client or SupabaseClient(settings)

    @property
    def _client(self):
        """Get the Supabase client instance."""
        return self._supabase_client.client

    async def _insert(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Insert rows into a table, returning the stored rows."""
        if not rows:
            return []
        try:
            response = self._client.table(table).insert(rows).execute()
            return response.data or []
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", table, str(e))
            raise DatabaseError(table, f"insert failed: {e}") from e

    async def _upsert(
        self, table: str, rows: List[Dict[str, Any]], on_conflict: str | None = None
    ) -> List[Dict[str, Any]]:
        """Upsert rows into a table (insert or update on conflict)."""
        if not rows:
            return []
        try:
            if on_conflict:
                response = self._client.table(table).upsert(rows, on_conflict=on_conflict).execute()
            else:
                response = self._client.table(table).upsert(rows).execute()
            return response.data or []
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", table, str(e))
            raise DatabaseError(table, f"upsert failed: {e}") from e

    async def _select(
        self,
        table: str,
        columns: str = "*",
        filters: Dict[str, Any] | None = None,
        in_filters: Dict[str, List[Any]] | None = None,
        order_by: str | None = None,
        desc: bool = False,
    ) -> List[Dict[str, Any]]:
        """Select rows from a table with optional equality / membership filters."""
        try:
            query = self._client.table(table).select(columns)
            if filters:
                for key, value in filters.items():
                    query = query.eq(key, value)
            if in_filters:
                for key, values in in_filters.items():
                    query = query.in_(key, values)
            if order_by:
                query = query.order(order_by, desc=desc)
            response = query.execute()
            return response.data or []
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", table, str(e))
            raise DatabaseError(table, f"select failed: {e}") from e

    async def _update(
        self, table: str, filters: Dict[str, Any], payload: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        """Update rows in a table matching the filters."""
        try:
            query = self._client.table(table).update(payload)
            for key, value in filters.items():
                query = query.eq(key, value)
            response = query.execute()
            return response.data or []
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", table, str(e))
            raise DatabaseError(table, f"update failed: {e}") from e

    async def _delete(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Delete rows matching the filters, returning the deleted rows."""
        if not filters:
            raise ValueError("refusing to delete without filters")
        try:
            query = self._client.table(table).delete()
            for key, value in filters.items():
                query = query.eq(key, value)
            response = query.execute()
            return response.data or []
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", table, str(e))
            raise DatabaseError(table, f"delete failed: {e}") from e
