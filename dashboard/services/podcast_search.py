from __future__ import annotations

import logging
from typing import Any

import httpx

from dashboard.app.config import settings

from .errors import MissingParameterError, UpstreamFormatError
from .http import fetch

logger = logging.getLogger(__name__)


def _reshape(result: dict[str, Any]) -> dict[str, Any]:
    return {
        "collectionId": result.get("collectionId"),
        "collectionName": result.get("collectionName"),
        "artistName": result.get("artistName"),
        "artworkUrl100": result.get("artworkUrl100"),
        "artworkUrl600": result.get("artworkUrl600"),
        "feedUrl": result.get("feedUrl"),
        "genres": result.get("genres") or [],
        "releaseDate": result.get("releaseDate"),
        "trackCount": result.get("trackCount"),
    }


def filter_podcasts(results: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep only podcast results that expose an RSS feed."""
    return [
        _reshape(result)
        for result in results
        if result.get("kind") == "podcast" and result.get("feedUrl")
    ]


def search_podcasts(term: str, *, client: httpx.Client | None = None) -> dict[str, Any]:
    if not term or not term.strip():
        raise MissingParameterError("Search term is required")

    logger.info("podcast_search.query term=%s", term)
    response = fetch(
        settings.ITUNES_SEARCH_URL,
        params={
            "term": term,
            "media": "podcast",
            "limit": settings.PODCAST_SEARCH_LIMIT,
            "entity": "podcast",
        },
        headers={"Accept": "application/json"},
        client=client,
    )

    try:
        data = response.json()
    except ValueError as exc:
        logger.error("podcast_search.bad_json term=%s", term)
        raise UpstreamFormatError("Failed to parse iTunes API response") from exc

    results = data.get("results") if isinstance(data, dict) else None
    if not results:
        return {"podcasts": []}

    podcasts = filter_podcasts(results)
    logger.info("podcast_search.ok term=%s results=%d", term, len(podcasts))
    return {"podcasts": podcasts}
