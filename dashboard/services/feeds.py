from __future__ import annotations

import logging
import hashlib
import secrets
from typing import Any

import feedparser  # type: ignore
import httpx
from bs4 import BeautifulSoup

from dashboard.app.domain.models import FeedEpisode, FeedMetadata

from .errors import InvalidFeedError, MissingParameterError, UpstreamFormatError
from .http import FEED_USER_AGENT, fetch_text

logger = logging.getLogger(__name__)

UNKNOWN_PODCAST = "Unknown Podcast"
UNKNOWN_AUTHOR = "Unknown Author"
UNTITLED_EPISODE = "Untitled Episode"
ERROR_GUID_PREFIX = "error-episode-"


def _clean(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _image_href(node: Any) -> str | None:
    if not isinstance(node, dict):
        return None
    return _clean(node.get("href")) or _clean(node.get("url"))


def _placeholder_guid(entry: dict) -> str:
    """Stable stand-in for items without guid or link, derived from what they do carry."""
    fingerprint = "\n".join(
        [
            _clean(entry.get("title")) or "",
            _audio_url(entry),
            _clean(entry.get("published")) or "",
        ]
    )
    return "episode-" + hashlib.sha1(fingerprint.encode("utf-8")).hexdigest()[:12]


def parse_duration(value: object) -> int:
    """Convert an itunes:duration value to whole seconds.

    Accepts `HH:MM:SS`, `MM:SS` or plain seconds. Anything else is 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(0, int(value))

    text = str(value).strip()
    if not text:
        return 0

    if ":" in text:
        parts = text.split(":")
        if len(parts) not in (2, 3):
            return 0
        try:
            numbers = [int(part) for part in parts]
        except ValueError:
            return 0
        if any(number < 0 for number in numbers):
            return 0
        if len(numbers) == 3:
            hours, minutes, seconds = numbers
            return hours * 3600 + minutes * 60 + seconds
        minutes, seconds = numbers
        return minutes * 60 + seconds

    try:
        return max(0, int(float(text)))
    except ValueError:
        return 0


def resolve_guid(entry: dict) -> str:
    """Dedupe key for an item: guid, then link, then a placeholder hashed from the item.

    feedparser exposes both the plain `<guid>` text and the attribute form
    (`<guid isPermaLink="...">`) as `id`.
    """
    return (
        _clean(entry.get("id"))
        or _clean(entry.get("guid"))
        or _clean(entry.get("link"))
        or _placeholder_guid(entry)
    )


def _audio_url(entry: dict) -> str:
    for enclosure in entry.get("enclosures") or []:
        href = _clean(enclosure.get("href")) or _clean(enclosure.get("url"))
        if href:
            return href
    for link in entry.get("links") or []:
        if link.get("rel") == "enclosure" and _clean(link.get("href")):
            return str(link["href"]).strip()
    return ""


def _episode_from_entry(entry: dict) -> FeedEpisode:
    return FeedEpisode(
        guid=resolve_guid(entry),
        title=_clean(entry.get("title")) or UNTITLED_EPISODE,
        description=_clean(entry.get("summary")) or _clean(entry.get("itunes_summary")) or "",
        audio_url=_audio_url(entry),
        published_date=_clean(entry.get("published")) or "",
        duration=parse_duration(entry.get("itunes_duration")),
        image_url=_image_href(entry.get("image")),
    )


def _error_episode() -> FeedEpisode:
    return FeedEpisode(
        guid=ERROR_GUID_PREFIX + secrets.token_hex(6),
        title="Error parsing episode",
        description="",
        audio_url="",
        published_date="",
        duration=0,
        image_url=None,
    )


def parse_episodes(entries: list) -> list[FeedEpisode]:
    episodes: list[FeedEpisode] = []
    for entry in entries:
        try:
            episodes.append(_episode_from_entry(entry))
        except Exception as exc:
            logger.warning("feed.item_parse_fail error=%s", exc)
            episodes.append(_error_episode())
    return episodes


def _has_channel(parsed: Any) -> bool:
    if parsed.get("version"):
        return True
    feed = parsed.get("feed") or {}
    return bool(feed.get("title") or parsed.get("entries"))


def _channel_text(xml: str) -> dict[str, str]:
    # feedparser folds <description>/<itunes:subtitle> and <author>/<itunes:author>
    # into one key each, last tag wins, so read these straight off <channel>.
    channel = BeautifulSoup(xml, "html.parser").find("channel")
    if channel is None:
        return {}
    found: dict[str, str] = {}
    for name in ("description", "itunes:summary", "itunes:author", "author"):
        node = channel.find(name, recursive=False)
        text = _clean(node.get_text()) if node is not None else None
        if text:
            found[name] = text
    return found


def parse_feed(xml: str) -> FeedMetadata:
    parsed = feedparser.parse(xml)
    if not _has_channel(parsed):
        raise InvalidFeedError("Invalid podcast feed format")

    channel = parsed.get("feed") or {}
    raw = _channel_text(xml)
    return FeedMetadata(
        title=_clean(channel.get("title")) or UNKNOWN_PODCAST,
        author=(
            raw.get("itunes:author")
            or raw.get("author")
            or _clean(channel.get("author"))
            or UNKNOWN_AUTHOR
        ),
        description=(
            raw.get("description")
            or raw.get("itunes:summary")
            or _clean(channel.get("subtitle"))
            or _clean(channel.get("summary"))
            or ""
        ),
        artwork_url=_image_href(channel.get("image")) or "",
        website_url=_clean(channel.get("link")) or "",
        episodes=parse_episodes(parsed.get("entries") or []),
    )


def fetch_feed(url: str, *, client: httpx.Client | None = None) -> FeedMetadata:
    if not url or not url.strip():
        raise MissingParameterError("URL parameter is required")

    logger.info("feed.fetch url=%s", url)
    xml = fetch_text(
        url,
        headers={"User-Agent": FEED_USER_AGENT, "Cache-Control": "no-store"},
        client=client,
    )
    logger.debug("feed.received url=%s head=%s", url, xml[:200])

    try:
        metadata = parse_feed(xml)
    except InvalidFeedError:
        logger.error("feed.invalid url=%s", url)
        raise
    except Exception as exc:
        logger.exception("feed.parse_fail url=%s", url)
        raise UpstreamFormatError("Failed to parse podcast feed XML") from exc

    logger.info("feed.ok url=%s episodes=%d", url, len(metadata.episodes))
    return metadata
