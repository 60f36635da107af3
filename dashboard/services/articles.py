from __future__ import annotations

import logging
import time
from typing import Any

import httpx
from supabase import Client

from . import events
from .content import extract_article, extract_metadata, reading_time
from .errors import ServiceError
from .records import delete_owned, first_row, get_owned, list_owned, update_owned, utc_now

logger = logging.getLogger(__name__)

TABLE = "articles"
RECENT_LIMIT = 5
BACKFILL_BATCH_SIZE = 50
BACKFILL_PAUSE_SECONDS = 0.5
UPDATABLE_FIELDS = ("url", "title", "image", "tags", "is_favorite", "is_archive", "body")


def list_articles(supa: Client, user_id: str) -> list[dict[str, Any]]:
    try:
        return list_owned(supa, TABLE, user_id)
    except Exception:
        logger.exception("articles.list_fail user=%s", user_id)
        return []


def recent_articles(supa: Client, user_id: str, limit: int = RECENT_LIMIT) -> list[dict[str, Any]]:
    rows = [row for row in list_articles(supa, user_id) if not row.get("is_archive")]
    return rows[:limit]


def get_article(supa: Client, user_id: str, article_id: str) -> dict[str, Any] | None:
    try:
        return get_owned(supa, TABLE, user_id, article_id)
    except Exception:
        logger.exception("articles.get_fail user=%s article=%s", user_id, article_id)
        return None


def add_article(
    supa: Client, user_id: str, data: dict[str, Any], *, client: httpx.Client | None = None
) -> dict[str, Any] | None:
    """Save an article, filling title/image from page metadata and the body from extraction."""
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
            logger.warning("articles.metadata_fail url=%s error=%s", url, exc)

    body: str | None = None
    minutes: int | None = None
    try:
        article = extract_article(url, client=client)
        body = article.content
        minutes = reading_time(body).minutes
    except ServiceError as exc:
        logger.warning("articles.extract_fail url=%s error=%s", url, exc)

    row = {
        "user_id": str(user_id),
        "url": url,
        "title": title or "Untitled",
        "body": body,
        "image": image,
        "tags": data.get("tags") or [],
        "is_favorite": bool(data.get("is_favorite", False)),
        "is_archive": bool(data.get("is_archive", False)),
        "reading_time_minutes": minutes,
    }
    try:
        created = first_row(supa.table(TABLE).insert(row).execute())
    except Exception:
        logger.exception("articles.add_fail user=%s url=%s", user_id, url)
        return None

    events.articles.emit(str(user_id))
    return created


def update_article(supa: Client, user_id: str, article_id: str, changes: dict[str, Any]) -> bool:
    payload = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
    if payload.get("body"):
        payload["reading_time_minutes"] = reading_time(payload["body"]).minutes
    payload["updated_at"] = utc_now()
    try:
        updated = update_owned(supa, TABLE, user_id, article_id, payload)
    except Exception:
        logger.exception("articles.update_fail user=%s article=%s", user_id, article_id)
        return False
    if updated is None:
        return False
    events.articles.emit(str(user_id))
    return True


def delete_article(supa: Client, user_id: str, article_id: str) -> bool:
    try:
        deleted = delete_owned(supa, TABLE, user_id, article_id)
    except Exception:
        logger.exception("articles.delete_fail user=%s article=%s", user_id, article_id)
        return False
    if deleted:
        events.articles.emit(str(user_id))
    return deleted


def articles_missing_reading_time(supa: Client) -> list[dict[str, Any]]:
    response = (
        supa.table(TABLE)
        .select("id, body")
        .is_("reading_time_minutes", "null")
        .not_.is_("body", "null")
        .execute()
    )
    return response.data or []


def backfill_reading_time(
    supa: Client,
    *,
    batch_size: int = BACKFILL_BATCH_SIZE,
    pause: float = BACKFILL_PAUSE_SECONDS,
    dry_run: bool = False,
) -> int:
    """Fill `reading_time_minutes` for stored articles that have a body.

    Rows are written one by one in batches, sleeping `pause` seconds between
    batches. Returns the number of articles updated.
    """
    pending = articles_missing_reading_time(supa)
    logger.info("articles.backfill_found count=%d", len(pending))
    batches = [pending[i:i + batch_size] for i in range(0, len(pending), batch_size)]

    updated = 0
    for index, batch in enumerate(batches, start=1):
        logger.info("articles.backfill_batch n=%d/%d size=%d", index, len(batches), len(batch))
        for row in batch:
            if not row.get("body"):
                continue
            minutes = reading_time(row["body"]).minutes
            if not dry_run:
                try:
                    supa.table(TABLE).update({"reading_time_minutes": minutes}).eq("id", row["id"]).execute()
                except Exception:
                    logger.exception("articles.backfill_fail article=%s", row.get("id"))
                    continue
            updated += 1
        if pause and index < len(batches):
            time.sleep(pause)

    logger.info("articles.backfill_done updated=%d dry_run=%s", updated, dry_run)
    return updated
