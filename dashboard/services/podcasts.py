# dashboard/services/podcasts.py
"""
Podcast subscriptions and stored episodes.

Feeds live in `podcast_feeds`, episodes in `podcast_episodes`; every query is
scoped by `user_id`. Mutations log failures and return a success value instead
of raising, and notify `events.podcasts` on success.
"""
from __future__ import annotations

import logging
import math
import threading
from typing import Any, Iterable

import httpx
from supabase import Client

from dashboard.app.domain.models import EpisodeView, FeedEpisode, FeedMetadata

from . import events
from .feeds import ERROR_GUID_PREFIX, fetch_feed
from .records import first_row, newest_first, parse_date, utc_now

logger = logging.getLogger(__name__)

FEEDS_TABLE = "podcast_feeds"
EPISODES_TABLE = "podcast_episodes"
RECENT_EPISODES_LIMIT = 10
TEMP_ID_PREFIX = "temp-"

EPISODE_STATUS_FIELDS = ("is_played", "is_favorite", "is_archived", "is_in_queue", "play_position")

_episode_count_cache: dict[tuple[str, str], int] = {}
# episode_count runs in threadpool workers while change events clear entries
_cache_lock = threading.Lock()


def _forget_user_counts(user_id: str) -> None:
    with _cache_lock:
        for key in [key for key in list(_episode_count_cache) if key[0] == str(user_id)]:
            _episode_count_cache.pop(key, None)


def clear_episode_count_cache(user_id: str, feed_id: str | None = None) -> None:
    if feed_id is None:
        _forget_user_counts(user_id)
        return
    with _cache_lock:
        _episode_count_cache.pop((str(user_id), str(feed_id)), None)


unsubscribe_count_cache = events.podcasts.subscribe(_forget_user_counts)


# ---------- reads ----------

def list_feeds(supa: Client, user_id: str) -> list[dict[str, Any]]:
    try:
        response = (
            supa.table(FEEDS_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .execute()
        )
    except Exception:
        logger.exception("podcasts.list_feeds_fail user=%s", user_id)
        return []
    return response.data or []


def get_feed(supa: Client, user_id: str, feed_id: str) -> dict[str, Any] | None:
    response = (
        supa.table(FEEDS_TABLE)
        .select("*")
        .eq("id", str(feed_id))
        .eq("user_id", str(user_id))
        .limit(1)
        .execute()
    )
    return first_row(response)


def get_episode(supa: Client, user_id: str, episode_id: str) -> dict[str, Any] | None:
    response = (
        supa.table(EPISODES_TABLE)
        .select("*")
        .eq("id", str(episode_id))
        .eq("user_id", str(user_id))
        .limit(1)
        .execute()
    )
    return first_row(response)


def filter_view(rows: Iterable[dict[str, Any]], view: EpisodeView) -> list[dict[str, Any]]:
    """Apply a named episode view to stored rows, newest first."""
    if view == EpisodeView.INBOX:
        selected = [
            row for row in rows
            if not row.get("is_archived") and not row.get("is_in_queue") and not row.get("is_played")
        ]
    elif view == EpisodeView.QUEUE:
        selected = [row for row in rows if row.get("is_in_queue")]
    elif view == EpisodeView.FAVORITES:
        selected = [row for row in rows if row.get("is_favorite")]
    elif view == EpisodeView.RECENT:
        selected = [row for row in rows if not row.get("is_archived")]
    else:
        selected = list(rows)

    ordered = newest_first(selected, "published_date")
    if view == EpisodeView.RECENT:
        return ordered[:RECENT_EPISODES_LIMIT]
    return ordered


def list_episodes(
    supa: Client, user_id: str, view: EpisodeView = EpisodeView.ALL
) -> list[dict[str, Any]]:
    try:
        response = (
            supa.table(EPISODES_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("published_date", desc=True)
            .execute()
        )
    except Exception:
        logger.exception("podcasts.list_episodes_fail user=%s view=%s", user_id, view.value)
        return []
    return filter_view(response.data or [], view)


# ---------- ingestion ----------

def _episode_row(feed_row: dict[str, Any], user_id: str, episode: FeedEpisode) -> dict[str, Any]:
    return {
        "feed_id": feed_row["id"],
        "user_id": str(user_id),
        "guid": episode.guid,
        "title": episode.title,
        "description": episode.description,
        "audio_url": episode.audio_url,
        "published_date": episode.published_date,
        "duration": episode.duration,
        "image_url": episode.image_url or feed_row.get("artwork_url"),
        "is_played": False,
        "is_favorite": False,
        "is_archived": False,
        "is_in_queue": False,
        "play_position": 0,
    }


def _stored_guids(supa: Client, user_id: str, feed_id: str) -> set[str]:
    response = (
        supa.table(EPISODES_TABLE)
        .select("guid")
        .eq("feed_id", str(feed_id))
        .eq("user_id", str(user_id))
        .execute()
    )
    return {row["guid"] for row in response.data or [] if row.get("guid")}


def ingest_episodes(
    supa: Client, user_id: str, feed_row: dict[str, Any], episodes: Iterable[FeedEpisode]
) -> int:
    """Insert the episodes whose GUID the feed does not already have.

    Existing GUIDs are loaded first, so ingesting the same feed twice adds no
    rows. Items that failed to parse are never stored. Returns the number of
    inserted episodes.
    """
    seen = _stored_guids(supa, user_id, feed_row["id"])
    rows: list[dict[str, Any]] = []
    for episode in episodes:
        if episode.guid in seen or episode.guid.startswith(ERROR_GUID_PREFIX):
            continue
        seen.add(episode.guid)
        rows.append(_episode_row(feed_row, user_id, episode))

    if not rows:
        return 0
    supa.table(EPISODES_TABLE).insert(rows).execute()
    logger.info("podcasts.ingest feed=%s inserted=%d", feed_row["id"], len(rows))
    return len(rows)


def _latest_episode(metadata: FeedMetadata) -> FeedEpisode | None:
    if not metadata.episodes:
        return None
    return max(metadata.episodes, key=lambda episode: parse_date(episode.published_date))


def subscribe(
    supa: Client, user_id: str, feed_url: str, *, client: httpx.Client | None = None
) -> dict[str, Any] | None:
    """Store a new feed and its newest episode. Returns the feed row or None."""
    if not feed_url or not feed_url.strip():
        return None
    try:
        metadata = fetch_feed(feed_url, client=client)
        response = (
            supa.table(FEEDS_TABLE)
            .insert(
                {
                    "user_id": str(user_id),
                    "feed_url": feed_url,
                    "title": metadata.title,
                    "author": metadata.author,
                    "description": metadata.description,
                    "artwork_url": metadata.artwork_url,
                    "website_url": metadata.website_url,
                    "last_updated": utc_now(),
                }
            )
            .execute()
        )
        feed_row = first_row(response)
        if feed_row is None:
            logger.error("podcasts.subscribe_no_row url=%s", feed_url)
            return None
    except Exception:
        logger.exception("podcasts.subscribe_fail user=%s url=%s", user_id, feed_url)
        return None

    latest = _latest_episode(metadata)
    if latest is not None:
        try:
            ingest_episodes(supa, user_id, feed_row, [latest])
        except Exception:
            # the feed stays subscribed; a refresh picks the episode up later
            logger.exception("podcasts.subscribe_episode_fail feed=%s", feed_row.get("id"))

    events.podcasts.emit(str(user_id))
    return feed_row


def refresh_feed(
    supa: Client, user_id: str, feed_id: str, *, client: httpx.Client | None = None
) -> int | None:
    """Re-read a feed, update its metadata and store unseen episodes.

    Returns the number of new episodes, or None when the refresh failed.
    """
    try:
        feed_row = get_feed(supa, user_id, feed_id)
        if feed_row is None:
            logger.warning("podcasts.refresh_missing feed=%s", feed_id)
            return None

        metadata = fetch_feed(feed_row["feed_url"], client=client)
        now = utc_now()
        changes = {
            "title": metadata.title or feed_row.get("title"),
            "author": metadata.author or feed_row.get("author"),
            "description": metadata.description or feed_row.get("description"),
            "artwork_url": metadata.artwork_url or feed_row.get("artwork_url"),
            "website_url": metadata.website_url or feed_row.get("website_url"),
            "last_updated": now,
            "updated_at": now,
        }
        (
            supa.table(FEEDS_TABLE)
            .update(changes)
            .eq("id", str(feed_id))
            .eq("user_id", str(user_id))
            .execute()
        )
        inserted = ingest_episodes(supa, user_id, {**feed_row, **changes}, metadata.episodes)
    except Exception:
        logger.exception("podcasts.refresh_fail user=%s feed=%s", user_id, feed_id)
        return None

    clear_episode_count_cache(user_id, feed_id)
    events.podcasts.emit(str(user_id))
    return inserted


def list_feed_episodes(
    supa: Client, user_id: str, feed_id: str, *, client: httpx.Client | None = None
) -> list[dict[str, Any]]:
    """Live feed episodes merged with stored rows by GUID, newest first.

    Episodes not stored yet carry a `temp-<guid>` id.
    """
    try:
        feed_row = get_feed(supa, user_id, feed_id)
        if feed_row is None:
            return []
        metadata = fetch_feed(feed_row["feed_url"], client=client)
        response = (
            supa.table(EPISODES_TABLE)
            .select("*")
            .eq("feed_id", str(feed_id))
            .eq("user_id", str(user_id))
            .execute()
        )
    except Exception:
        logger.exception("podcasts.feed_episodes_fail user=%s feed=%s", user_id, feed_id)
        return []

    stored = {row.get("guid"): row for row in response.data or []}
    now = utc_now()
    merged: list[dict[str, Any]] = []
    for episode in metadata.episodes:
        row = stored.get(episode.guid)
        if row is None:
            row = {
                **_episode_row(feed_row, user_id, episode),
                "id": f"{TEMP_ID_PREFIX}{episode.guid}",
                "created_at": now,
                "updated_at": now,
            }
        merged.append(row)

    temporary = sum(1 for row in merged if str(row.get("id", "")).startswith(TEMP_ID_PREFIX))
    logger.info("podcasts.feed_episodes feed=%s total=%d temporary=%d", feed_id, len(merged), temporary)
    return newest_first(merged, "published_date")


def episode_count(
    supa: Client, user_id: str, feed_id: str, *, client: httpx.Client | None = None
) -> int:
    key = (str(user_id), str(feed_id))
    with _cache_lock:
        cached = _episode_count_cache.get(key)
    if cached is not None:
        return cached
    try:
        feed_row = get_feed(supa, user_id, feed_id)
        if feed_row is None:
            return 0
        metadata = fetch_feed(feed_row["feed_url"], client=client)
    except Exception:
        logger.exception("podcasts.episode_count_fail user=%s feed=%s", user_id, feed_id)
        return 0
    count = len(metadata.episodes)
    with _cache_lock:
        _episode_count_cache[key] = count
    return count


# ---------- mutations ----------

def update_episode_status(
    supa: Client, user_id: str, episode_id: str, changes: dict[str, Any]
) -> bool:
    payload = {key: value for key, value in changes.items() if key in EPISODE_STATUS_FIELDS}
    if "play_position" in payload and payload["play_position"] is not None:
        payload["play_position"] = max(0, math.floor(payload["play_position"]))
    payload["updated_at"] = utc_now()
    try:
        response = (
            supa.table(EPISODES_TABLE)
            .update(payload)
            .eq("id", str(episode_id))
            .eq("user_id", str(user_id))
            .execute()
        )
    except Exception:
        logger.exception("podcasts.update_episode_fail user=%s episode=%s", user_id, episode_id)
        return False
    if not response.data:
        logger.warning("podcasts.update_episode_missing episode=%s", episode_id)
        return False
    return True


def save_position(
    supa: Client, user_id: str, episode_id: str, position: float, *, played: bool = False
) -> bool:
    changes: dict[str, Any] = {"play_position": position}
    if played:
        changes["is_played"] = True
    return update_episode_status(supa, user_id, episode_id, changes)


def delete_feed(supa: Client, user_id: str, feed_id: str) -> bool:
    # episodes are removed by the ON DELETE CASCADE on podcast_episodes.feed_id
    try:
        response = (
            supa.table(FEEDS_TABLE)
            .delete()
            .eq("id", str(feed_id))
            .eq("user_id", str(user_id))
            .execute()
        )
    except Exception:
        logger.exception("podcasts.delete_feed_fail user=%s feed=%s", user_id, feed_id)
        return False
    if not response.data:
        return False
    events.podcasts.emit(str(user_id))
    return True
