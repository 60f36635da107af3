# dashboard/services/books.py
"""
Reading list (`reading_list` table) and Open Library lookups.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx
from supabase import Client

from dashboard.app.config import settings
from dashboard.app.domain.models import BookStatus

from . import events
from .errors import ServiceError
from .http import fetch
from .records import delete_owned, first_row, get_owned, list_owned, update_owned, utc_now

logger = logging.getLogger(__name__)

TABLE = "reading_list"
COVER_URL = "https://covers.openlibrary.org/b/id/{cover_id}-{size}.jpg"
COVER_SIZES = ("S", "M", "L")
UNKNOWN_AUTHOR = "Unknown Author"
UPDATABLE_FIELDS = (
    "book_title",
    "author",
    "book_cover_url",
    "status",
    "rating",
    "started_reading_date",
    "finished_reading_date",
)


def _status_value(status: BookStatus | str | None) -> str | None:
    if status is None:
        return None
    return BookStatus(status).value


def list_books(supa: Client, user_id: str, status: BookStatus | str | None = None) -> list[dict[str, Any]]:
    filters = {"status": _status_value(status)} if status else None
    try:
        return list_owned(supa, TABLE, user_id, filters=filters)
    except Exception:
        logger.exception("books.list_fail user=%s", user_id)
        return []


def currently_reading(supa: Client, user_id: str) -> list[dict[str, Any]]:
    return list_books(supa, user_id, BookStatus.READING)


def get_book(supa: Client, user_id: str, book_id: str) -> dict[str, Any] | None:
    try:
        return get_owned(supa, TABLE, user_id, book_id)
    except Exception:
        logger.exception("books.get_fail user=%s book=%s", user_id, book_id)
        return None


def add_book(supa: Client, user_id: str, data: dict[str, Any]) -> dict[str, Any] | None:
    title = (data.get("book_title") or "").strip()
    author = (data.get("author") or "").strip()
    if not title or not author:
        return None

    status = _status_value(data.get("status")) or BookStatus.BACKLOG.value
    now = utc_now()
    row = {
        "user_id": str(user_id),
        "book_title": title,
        "author": author,
        "book_cover_url": data.get("book_cover_url"),
        "status": status,
        "rating": data.get("rating"),
        "started_reading_date": now if status == BookStatus.READING.value else None,
        "finished_reading_date": now if status == BookStatus.FINISHED.value else None,
    }
    try:
        created = first_row(supa.table(TABLE).insert(row).execute())
    except Exception:
        logger.exception("books.add_fail user=%s title=%s", user_id, title)
        return None
    events.books.emit(str(user_id))
    return created


def status_dates(current: dict[str, Any], new_status: str) -> dict[str, Any]:
    """Reading dates to set when a book moves to `new_status`.

    The first move to Reading stamps the start date; a move to Finished stamps
    the finish date (and the start date when it was never set).
    """
    now = utc_now()
    changes: dict[str, Any] = {}
    if new_status == BookStatus.READING.value and not current.get("started_reading_date"):
        changes["started_reading_date"] = now
    if new_status == BookStatus.FINISHED.value:
        if current.get("status") != BookStatus.FINISHED.value or not current.get("finished_reading_date"):
            changes["finished_reading_date"] = now
        if not current.get("started_reading_date"):
            changes["started_reading_date"] = now
    return changes


def update_book(supa: Client, user_id: str, book_id: str, changes: dict[str, Any]) -> bool:
    payload = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
    try:
        if "status" in payload:
            payload["status"] = _status_value(payload["status"])
            current = get_owned(supa, TABLE, user_id, book_id)
            if current is None:
                return False
            for key, value in status_dates(current, payload["status"]).items():
                payload.setdefault(key, value)
        if not payload:
            return False
        updated = update_owned(supa, TABLE, user_id, book_id, payload)
    except Exception:
        logger.exception("books.update_fail user=%s book=%s", user_id, book_id)
        return False
    if updated is None:
        return False
    events.books.emit(str(user_id))
    return True


def delete_book(supa: Client, user_id: str, book_id: str) -> bool:
    try:
        deleted = delete_owned(supa, TABLE, user_id, book_id)
    except Exception:
        logger.exception("books.delete_fail user=%s book=%s", user_id, book_id)
        return False
    if deleted:
        events.books.emit(str(user_id))
    return deleted


# ---------- Open Library ----------

def cover_url(cover_id: int | None, size: str = "M") -> str:
    if not cover_id:
        return ""
    if size not in COVER_SIZES:
        raise ValueError(f"Unsupported cover size: {size}")
    return COVER_URL.format(cover_id=cover_id, size=size)


def format_book(doc: dict[str, Any]) -> dict[str, Any]:
    authors = doc.get("author_name") or []
    return {
        "book_title": doc.get("title") or "",
        "author": authors[0] if authors else UNKNOWN_AUTHOR,
        "book_cover_url": cover_url(doc.get("cover_i")),
    }


def search_books(query: str, limit: int = 5, *, client: httpx.Client | None = None) -> list[dict[str, Any]]:
    """Raw Open Library docs matching a title query; empty on any failure."""
    if not query or not query.strip():
        return []
    try:
        response = fetch(
            settings.OPEN_LIBRARY_SEARCH_URL,
            params={"title": query, "limit": limit},
            client=client,
        )
        data = response.json()
    except (ServiceError, ValueError) as exc:
        logger.warning("books.search_fail query=%s error=%s", query, exc)
        return []
    if not isinstance(data, dict):
        return []
    return data.get("docs") or []
