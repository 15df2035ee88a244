from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from supabase import Client, create_client

from config import settings


logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A read or write against the remote store failed."""


class StoreNotConfiguredError(Exception):
    """Supabase credentials are missing; the app runs in fallback mode."""


class AmbiguousReferenceError(StoreError):
    def __init__(self, table: str, column: str, value: str, count: int) -> None:
        super().__init__(f"Ambiguous {column} '{value}': matches {count} {table} records")
        self.table = table
        self.column = column
        self.value = value


_client: Optional[Client] = None


def init_client(url: Optional[str] = None, key: Optional[str] = None) -> Optional[Client]:
    """Create the shared Supabase client. Returns None in fallback mode."""
    global _client
    url = url if url is not None else settings.SUPABASE_URL
    key = key if key is not None else settings.SUPABASE_ANON_KEY
    if not url or not key:
        logger.warning("Supabase environment variables are missing. Using fallback mode.")
        _client = None
        return None
    _client = create_client(url, key)
    return _client


def set_client(client: Optional[Any]) -> None:
    global _client
    _client = client


def get_client() -> Client:
    if _client is None:
        raise StoreNotConfiguredError(settings.FALLBACK_WARNING)
    return _client


def is_connected() -> bool:
    return _client is not None


def error_message(exc: BaseException) -> str:
    """Prefer the PostgREST/storage error text over the exception repr."""
    msg = getattr(exc, "message", None)
    if isinstance(msg, str) and msg:
        return msg
    return str(exc) or exc.__class__.__name__


def _execute(query, action: str):
    try:
        return query.execute()
    except StoreError:
        raise
    except Exception as e:
        logger.error(f"Store {action} failed: {e}")
        raise StoreError(error_message(e)) from e


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ilike behaves as case-insensitive equality."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# --- Table helpers ---

def list_rows(
    table: str,
    columns: str = "*",
    order: Optional[str] = None,
    desc: bool = False,
    filters: Optional[Mapping[str, Any]] = None,
) -> List[Dict[str, Any]]:
    query = get_client().table(table).select(columns)
    for column, value in (filters or {}).items():
        query = query.eq(column, value)
    if order:
        query = query.order(order, desc=desc)
    res = _execute(query, f"select from {table}")
    return list(res.data or [])


def get_row(table: str, key_column: str, key: Any) -> Optional[Dict[str, Any]]:
    query = get_client().table(table).select("*").eq(key_column, key).limit(1)
    res = _execute(query, f"select from {table}")
    rows = res.data or []
    return rows[0] if rows else None


def insert_row(table: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
    query = get_client().table(table).insert([dict(payload)])
    res = _execute(query, f"insert into {table}")
    rows = res.data or []
    return rows[0] if rows else dict(payload)


def update_row(table: str, key_column: str, key: Any, payload: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    query = get_client().table(table).update(dict(payload)).eq(key_column, key)
    res = _execute(query, f"update {table}")
    rows = res.data or []
    return rows[0] if rows else None


def delete_row(table: str, key_column: str, key: Any) -> int:
    query = get_client().table(table).delete().eq(key_column, key)
    res = _execute(query, f"delete from {table}")
    return len(res.data or [])


# --- Foreign-key resolution ---

def resolve_reference(table: str, name_column: str, name: Optional[str], id_column: str = "id") -> Optional[str]:
    """Return the key of the single ``table`` row whose ``name_column`` equals
    ``name`` case-insensitively, or None when nothing matches.

    Raises AmbiguousReferenceError when more than one row matches.
    """
    if not name or not str(name).strip():
        return None
    value = str(name).strip()
    query = get_client().table(table).select(id_column).ilike(name_column, escape_like(value)).limit(2)
    rows = _execute(query, f"lookup in {table}").data or []
    if not rows:
        logger.warning(f"No {table} found for {name_column}='{value}'")
        return None
    if len(rows) > 1:
        raise AmbiguousReferenceError(table, name_column, value, len(rows))
    return rows[0].get(id_column)


def _exists(table: str, key: Optional[str]) -> Optional[str]:
    if not key:
        return None
    row = get_row(table, "id", key)
    return row.get("id") if row else None


def resolve_university_id(name: Optional[str]) -> Optional[str]:
    return resolve_reference("university", "name", name)


def resolve_organizer_id(name: Optional[str]) -> Optional[str]:
    return resolve_reference("organizer", "orgName", name, id_column="orgId")


def resolve_competition_id(title: Optional[str]) -> Optional[str]:
    return resolve_reference("competition", "title", title)


def resolve_timeline_id(timeline_id: Optional[str]) -> Optional[str]:
    return _exists("timeline", timeline_id)


def resolve_history_id(history_id: Optional[str]) -> Optional[str]:
    return _exists("history", history_id)


def list_competition_refs(columns: Sequence[str] = ("id", "title", "timelineId", "historyId")) -> List[Dict[str, Any]]:
    return list_rows("competition", ", ".join(columns), order="title")
