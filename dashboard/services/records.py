from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Iterable

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def format_timestamp(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    return str(value)


def stringify_id(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def parse_date(value: Any) -> datetime:
    """Parse an RSS pubDate (RFC 2822) or ISO timestamp; unparseable sorts oldest."""
    if isinstance(value, datetime):
        parsed = value
    elif not value:
        return _EPOCH
    else:
        text = str(value).strip()
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def newest_first(rows: Iterable[dict[str, Any]], key: str) -> list[dict[str, Any]]:
    return sorted(rows, key=lambda row: parse_date(row.get(key)), reverse=True)


def first_row(response: Any) -> dict[str, Any] | None:
    rows = getattr(response, "data", None) or []
    return rows[0] if rows else None


def list_owned(
    supa: Any,
    table: str,
    user_id: str,
    *,
    order_by: str = "created_at",
    limit: int | None = None,
    filters: dict[str, Any] | None = None,
) -> list[dict[str, Any]]:
    query = supa.table(table).select("*").eq("user_id", str(user_id))
    for column, value in (filters or {}).items():
        query = query.eq(column, value)
    query = query.order(order_by, desc=True)
    if limit is not None:
        query = query.limit(limit)
    return query.execute().data or []


def get_owned(supa: Any, table: str, user_id: str, record_id: str) -> dict[str, Any] | None:
    response = (
        supa.table(table)
        .select("*")
        .eq("id", str(record_id))
        .eq("user_id", str(user_id))
        .limit(1)
        .execute()
    )
    return first_row(response)


def update_owned(
    supa: Any, table: str, user_id: str, record_id: str, changes: dict[str, Any]
) -> dict[str, Any] | None:
    response = (
        supa.table(table)
        .update(changes)
        .eq("id", str(record_id))
        .eq("user_id", str(user_id))
        .execute()
    )
    return first_row(response)


def delete_owned(supa: Any, table: str, user_id: str, record_id: str) -> bool:
    response = (
        supa.table(table)
        .delete()
        .eq("id", str(record_id))
        .eq("user_id", str(user_id))
        .execute()
    )
    return bool(response.data)
