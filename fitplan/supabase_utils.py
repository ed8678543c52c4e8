from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from .config import Settings
from .errors import StoreError
from .store import DataStore

logger = logging.getLogger(__name__)


def get_supabase_client(settings: Settings) -> Optional[Client]:
    if not settings.supabase_url or not settings.supabase_key:
        return None
    return create_client(settings.supabase_url, settings.supabase_key)


def _store_error(action: str, table: str, exc: Exception) -> StoreError:
    # postgrest's APIError carries code/message/details; HTTP errors carry status_code
    status = getattr(exc, "code", None) or getattr(exc, "status_code", None)
    body = getattr(exc, "details", None) or getattr(exc, "message", None) or str(exc)
    return StoreError(f"Supabase {action} failed for {table}: {exc}", status=status, body=body)


def db_insert(sb: Client, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sb.table(table).insert(rows).execute().data  # type: ignore


def db_select(sb: Client, table: str, **filters) -> List[Dict[str, Any]]:
    q = sb.table(table).select("*")
    for k, v in filters.items():
        q = q.eq(k, v)
    return q.execute().data  # type: ignore


def db_delete(sb: Client, table: str, **filters) -> List[Dict[str, Any]]:
    q = sb.table(table).delete()
    for k, v in filters.items():
        q = q.eq(k, v)
    return q.execute().data  # type: ignore


class SupabaseStore(DataStore):
    """:class:`DataStore` over supabase-py's PostgREST table API."""

    def __init__(self, client: Client) -> None:
        self._sb = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseStore":
        client = get_supabase_client(settings)
        if client is None:
            raise StoreError("Supabase is not configured (SUPABASE_URL / key missing)")
        return cls(client)

    def insert(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        try:
            data = db_insert(self._sb, table, rows)
        except Exception as exc:
            raise _store_error("insert", table, exc) from exc
        logger.debug("Inserted %d row(s) into %s", len(rows), table)
        return data or []

    def query(self, table: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        try:
            return db_select(self._sb, table, **(filters or {})) or []
        except Exception as exc:
            raise _store_error("select", table, exc) from exc

    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        if not filters:
            raise ValueError("Refusing to delete without filters")
        try:
            return len(db_delete(self._sb, table, **filters) or [])
        except Exception as exc:
            raise _store_error("delete", table, exc) from exc
