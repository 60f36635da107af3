from __future__ import annotations

import logging
from typing import Any, Iterable, Literal

from supabase import Client

from . import events

logger = logging.getLogger(__name__)

ContentType = Literal["links", "articles", "notes"]
CONTENT_TYPES: tuple[ContentType, ...] = ("links", "articles", "notes")

_tag_cache: dict[str, list[str]] = {}


def invalidate(user_id: str) -> None:
    _tag_cache.pop(str(user_id), None)


_unsubscribers = [getattr(events, name).subscribe(invalidate) for name in CONTENT_TYPES]


def normalize_tags(tags: Iterable[Any]) -> list[str]:
    """Drop empties and exact duplicates, sort case-insensitively."""
    unique = {str(tag) for tag in tags if tag}
    return sorted(unique, key=lambda tag: (tag.casefold(), tag))


def _tags_from_rows(rows: Iterable[dict[str, Any]]) -> list[Any]:
    return [tag for row in rows for tag in (row.get("tags") or [])]


def _select_tags(supa: Client, table: str, user_id: str) -> list[dict[str, Any]]:
    response = supa.table(table).select("tags").eq("user_id", str(user_id)).execute()
    return response.data or []


def fetch_tags_by_content_type(supa: Client, user_id: str, content_type: ContentType) -> list[str]:
    if content_type not in CONTENT_TYPES:
        raise ValueError(f"Unknown content type: {content_type}")
    try:
        rows = _select_tags(supa, content_type, user_id)
    except Exception:
        logger.exception("tags.fetch_fail table=%s user=%s", content_type, user_id)
        return []
    return normalize_tags(_tags_from_rows(rows))


def fetch_all_tags(supa: Client, user_id: str, *, use_cache: bool = True) -> list[str]:
    """Every tag used on the user's links, articles and notes.

    A table that fails to load is logged and skipped.
    """
    key = str(user_id)
    if use_cache and key in _tag_cache:
        return list(_tag_cache[key])

    collected: list[Any] = []
    for table in CONTENT_TYPES:
        try:
            collected.extend(_tags_from_rows(_select_tags(supa, table, key)))
        except Exception:
            logger.exception("tags.fetch_fail table=%s user=%s", table, key)

    tags = normalize_tags(collected)
    _tag_cache[key] = tags
    logger.info("tags.loaded user=%s count=%d", key, len(tags))
    return list(tags)


def suggest(all_tags: Iterable[str], text: str, current: Iterable[str] = ()) -> list[str]:
    """Tags containing `text`, prefix matches first, excluding ones already applied."""
    needle = (text or "").strip().casefold()
    if not needle:
        return []
    applied = {tag.casefold() for tag in current}
    matches = [
        tag for tag in all_tags
        if needle in tag.casefold() and tag.casefold() not in applied
    ]
    return sorted(matches, key=lambda tag: (not tag.casefold().startswith(needle), tag.casefold()))


def tag_exists(all_tags: Iterable[str], tag: str) -> bool:
    target = (tag or "").strip().casefold()
    return any(existing.casefold() == target for existing in all_tags)
