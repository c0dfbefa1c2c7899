from __future__ import annotations

from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError as PostgrestError
from supabase import Client, ClientOptions, create_client

from ..config import setup_logger
from ..errors import ConfigurationError, StorageError, is_no_rows
from ..ports.storage import QueryBuilder
from ..settings import SUPABASE_SERVICE_ROLE_KEY, SUPABASE_URL

log = setup_logger(__name__)


def build_client(url: Optional[str] = None, key: Optional[str] = None) -> Client:
    """Create a service-role supabase client for server-side use."""

    url = url or SUPABASE_URL
    key = key or SUPABASE_SERVICE_ROLE_KEY
    if not url:
        raise ConfigurationError("Missing SUPABASE_URL environment variable")
    if not key:
        raise ConfigurationError("Missing SUPABASE_SERVICE_ROLE_KEY environment variable")

    options = ClientOptions(auto_refresh_token=False, persist_session=False)
    log.info("supabase_client_created url=%s", url)
    return create_client(url, key, options=options)


def run(query: QueryBuilder, failure_message: str) -> Any:
    """Execute a query and return its rows, wrapping PostgREST failures."""
    try:
        return query.execute().data
    except PostgrestError as exc:
        log.error("%s: %s", failure_message, getattr(exc, "message", exc))
        raise StorageError.wrap(failure_message, exc) from exc


def run_rows(query: QueryBuilder, failure_message: str) -> List[Dict[str, Any]]:
    return list(run(query, failure_message) or [])


def run_counted(query: QueryBuilder, failure_message: str) -> tuple[List[Dict[str, Any]], int]:
    """Execute a `count="exact"` query, returning `(rows, total)`."""
    try:
        result = query.execute()
    except PostgrestError as exc:
        log.error("%s: %s", failure_message, getattr(exc, "message", exc))
        raise StorageError.wrap(failure_message, exc) from exc
    rows = list(result.data or [])
    total = result.count if result.count is not None else len(rows)
    return rows, total


def fetch_one(query: QueryBuilder, failure_message: str) -> Optional[Dict[str, Any]]:
    """Run `.single()`; a no-rows response is "absent", not an error."""
    try:
        return query.single().execute().data
    except PostgrestError as exc:
        if is_no_rows(exc):
            return None
        log.error("%s: %s", failure_message, getattr(exc, "message", exc))
        raise StorageError.wrap(failure_message, exc) from exc


def first_row(rows: Any) -> Optional[Dict[str, Any]]:
    if isinstance(rows, list):
        return rows[0] if rows else None
    return rows or None
