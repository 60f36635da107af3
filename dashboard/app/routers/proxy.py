# dashboard/app/routers/proxy.py
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from dashboard.app.schemas.proxy import (
    ArticleContentResponse,
    ErrorResponse,
    PodcastFeedResponse,
    PodcastSearchResponse,
    UrlMetadataResponse,
)
from dashboard.services import content, feeds, podcast_search
from dashboard.services.errors import ServiceError

router = APIRouter(prefix="/api", tags=["proxy"])
log = logging.getLogger("proxy")

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def _run(event: str, fallback_message: str, func: Callable[..., Any], *args: Any) -> Any:
    """Run a blocking proxy call and turn failures into `{error}` responses."""
    try:
        return await run_in_threadpool(func, *args)
    except ServiceError as exc:
        log.warning("%s status=%s error=%s", event, exc.status_code, exc)
        return _error(str(exc), exc.status_code)
    except Exception:
        log.exception("%s unexpected", event)
        return _error(fallback_message, 500)


@router.get("/article-content", response_model=ArticleContentResponse, responses=_ERROR_RESPONSES)
async def article_content(url: Optional[str] = Query(default=None)):
    if not url:
        return _error("URL parameter is required", 400)
    result = await _run(
        "proxy.article_content_fail", "Failed to fetch article content", content.extract_article, url
    )
    if isinstance(result, JSONResponse):
        return result
    return ArticleContentResponse(
        content=result.content,
        textContent=result.text_content,
        length=result.length,
        title=result.title,
        excerpt=result.excerpt,
    )


@router.get("/url-metadata", response_model=UrlMetadataResponse, responses=_ERROR_RESPONSES)
async def url_metadata(url: Optional[str] = Query(default=None)):
    if not url:
        return _error("URL parameter is required", 400)
    result = await _run(
        "proxy.url_metadata_fail", "Failed to fetch URL metadata", content.extract_metadata, url
    )
    if isinstance(result, JSONResponse):
        return result
    return UrlMetadataResponse(title=result.title, description=result.description, image=result.image)


@router.get("/podcast-feed", response_model=PodcastFeedResponse, responses=_ERROR_RESPONSES)
async def podcast_feed(url: Optional[str] = Query(default=None)):
    if not url:
        return _error("URL parameter is required", 400)
    result = await _run(
        "proxy.podcast_feed_fail", "Failed to fetch podcast feed", feeds.fetch_feed, url
    )
    if isinstance(result, JSONResponse):
        return result
    return PodcastFeedResponse(**result.to_payload())


@router.get("/podcast-search", response_model=PodcastSearchResponse, responses=_ERROR_RESPONSES)
async def search(term: Optional[str] = Query(default=None)):
    if not term:
        return _error("Search term is required", 400)
    result = await _run(
        "proxy.podcast_search_fail", "Failed to search podcasts", podcast_search.search_podcasts, term
    )
    if isinstance(result, JSONResponse):
        return result
    return PodcastSearchResponse(**result)
