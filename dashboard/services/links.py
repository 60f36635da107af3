from __future__ import annotations

import logging
from typing import Any

import httpx
from supabase import Client

from . import events
from .content import extract_metadata
from .errors import ServiceError
from .records import delete_owned, first_row, get_owned, list_owned, update_owned, utc_now

logger = logging.getLogger(__name__)

TABLE = "links"
RECENT_LIMIT = 5
UPDATABLE_FIELDS = ("url", "title", "image", "tags", "is_favorite", "is_archive")


def list_links(supa: Client, user_id: str) -> list[dict[str, Any]]:
    try:
        return list_owned(supa, TABLE, user_id)
    except Exception:
        logger.exception("links.list_fail user=%s", user_id)
        return []


def recent_links(supa: Client, user_id: str, limit: int = RECENT_LIMIT) -> list[dict[str, Any]]:
    return list_links(supa, user_id)[:limit]


def get_link(supa: Client, user_id: str, link_id: str) -> dict[str, Any] | None:
    try:
        return get_owned(supa, TABLE, user_id, link_id)
    except Exception:
        logger.exception("links.get_fail user=%s link=%s", user_id, link_id)
        return None


def add_link(
    supa: Client, user_id: str, data: dict[str, Any], *, client: httpx.Client | None = None
) -> dict[str, Any] | None:
    url = (data.get("url") or "").strip()
    if not url:
        return None

    title = data.get("title")
    image = data.get("image")
    if not title:
        try:
            metadata = extract_metadata(url, client=client)
            title = metadata.title or None
            image = image or metadata.image or None
        except ServiceError as exc:
            logger.warning("links.metadata_fail url=%s error=%s", url, exc)

    row = {
        "user_id": str(user_id),
        "url": url,
        "title": title or "Untitled",
        "image": image,
        "tags": data.get("tags") or [],
        "is_favorite": bool(data.get("is_favorite", False)),
        "is_archive": bool(data.get("is_archive", False)),
    }
    try:
        created = first_row(supa.table(TABLE).insert(row).execute())
    except Exception:
        logger.exception("links.add_fail user=%s url=%s", user_id, url)
        return None

    events.links.emit(str(user_id))
    return created


def update_link(supa: Client, user_id: str, link_id: str, changes: dict[str, Any]) -> bool:
    payload = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
    payload["updated_at"] = utc_now()
    try:
        updated = update_owned(supa, TABLE, user_id, link_id, payload)
    except Exception:
        logger.exception("links.update_fail user=%s link=%s", user_id, link_id)
        return False
    if updated is None:
        return False
    events.links.emit(str(user_id))
    return True


def delete_link(supa: Client, user_id: str, link_id: str) -> bool:
    try:
        deleted = delete_owned(supa, TABLE, user_id, link_id)
    except Exception:
        logger.exception("links.delete_fail user=%s link=%s", user_id, link_id)
        return False
    if deleted:
        events.links.emit(str(user_id))
    return deleted
