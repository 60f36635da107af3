from __future__ import annotations

import logging
from typing import Any

from supabase import Client

from . import events
from .records import delete_owned, first_row, get_owned, list_owned, update_owned, utc_now

logger = logging.getLogger(__name__)

TABLE = "notes"
DEFAULT_LIMIT = 3


def list_notes(supa: Client, user_id: str, limit: int | None = DEFAULT_LIMIT) -> list[dict[str, Any]]:
    """Most recently edited notes first."""
    try:
        return list_owned(supa, TABLE, user_id, order_by="updated_at", limit=limit)
    except Exception:
        logger.exception("notes.list_fail user=%s", user_id)
        return []


def get_note(supa: Client, user_id: str, note_id: str) -> dict[str, Any] | None:
    try:
        return get_owned(supa, TABLE, user_id, note_id)
    except Exception:
        logger.exception("notes.get_fail user=%s note=%s", user_id, note_id)
        return None


def add_note(supa: Client, user_id: str, content: str, tags: list[str] | None = None) -> dict[str, Any] | None:
    now = utc_now()
    row = {
        "user_id": str(user_id),
        "content": content,
        "tags": tags or [],
        "created_at": now,
        "updated_at": now,
    }
    try:
        created = first_row(supa.table(TABLE).insert(row).execute())
    except Exception:
        logger.exception("notes.add_fail user=%s", user_id)
        return None
    events.notes.emit(str(user_id))
    return created


def update_note(
    supa: Client,
    user_id: str,
    note_id: str,
    *,
    content: str | None = None,
    tags: list[str] | None = None,
) -> bool:
    payload: dict[str, Any] = {"updated_at": utc_now()}
    if content is not None:
        payload["content"] = content
    if tags is not None:
        payload["tags"] = tags
    try:
        updated = update_owned(supa, TABLE, user_id, note_id, payload)
    except Exception:
        logger.exception("notes.update_fail user=%s note=%s", user_id, note_id)
        return False
    if updated is None:
        return False
    events.notes.emit(str(user_id))
    return True


def delete_note(supa: Client, user_id: str, note_id: str) -> bool:
    try:
        deleted = delete_owned(supa, TABLE, user_id, note_id)
    except Exception:
        logger.exception("notes.delete_fail user=%s note=%s", user_id, note_id)
        return False
    if deleted:
        events.notes.emit(str(user_id))
    return deleted
