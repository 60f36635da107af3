# dashboard/app/routers/podcasts.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from starlette.concurrency import run_in_threadpool
from supabase import Client

from dashboard.app.deps import CurrentUser, get_current_user, get_supabase
from dashboard.app.domain.models import EpisodeView
from dashboard.app.schemas.podcasts import (
    EpisodeCountResponse,
    EpisodeResponse,
    EpisodeStatusUpdate,
    FeedResponse,
    RefreshResponse,
    SubscribeRequest,
)
from dashboard.services import podcasts as podcast_service
from dashboard.services.records import format_timestamp, stringify_id

router = APIRouter(prefix="/podcasts", tags=["podcasts"])

_STATUS_COLUMNS = {
    "isPlayed": "is_played",
    "isFavorite": "is_favorite",
    "isArchived": "is_archived",
    "isInQueue": "is_in_queue",
    "playPosition": "play_position",
}


def _feed_from_row(row: dict[str, Any]) -> FeedResponse:
    return FeedResponse(
        id=stringify_id(row.get("id")),
        feedUrl=row.get("feed_url") or "",
        title=row.get("title") or "Unknown Podcast",
        author=row.get("author"),
        description=row.get("description"),
        artworkUrl=row.get("artwork_url"),
        websiteUrl=row.get("website_url"),
        lastUpdated=format_timestamp(row.get("last_updated")),
        createdAt=format_timestamp(row.get("created_at")),
        updatedAt=format_timestamp(row.get("updated_at")),
    )


def _episode_from_row(row: dict[str, Any]) -> EpisodeResponse:
    return EpisodeResponse(
        id=stringify_id(row.get("id")),
        feedId=stringify_id(row.get("feed_id")),
        guid=row.get("guid") or "",
        title=row.get("title") or "Untitled Episode",
        description=row.get("description"),
        audioUrl=row.get("audio_url") or "",
        publishedDate=row.get("published_date"),
        duration=int(row.get("duration") or 0),
        imageUrl=row.get("image_url"),
        isPlayed=bool(row.get("is_played")),
        isFavorite=bool(row.get("is_favorite")),
        isArchived=bool(row.get("is_archived")),
        isInQueue=bool(row.get("is_in_queue")),
        playPosition=int(row.get("play_position") or 0),
        createdAt=format_timestamp(row.get("created_at")),
        updatedAt=format_timestamp(row.get("updated_at")),
    )


@router.get("/feeds", response_model=list[FeedResponse])
async def list_feeds(
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> list[FeedResponse]:
    rows = await run_in_threadpool(podcast_service.list_feeds, supa, str(user.id))
    return [_feed_from_row(row) for row in rows]


@router.post("/feeds", response_model=FeedResponse, status_code=status.HTTP_201_CREATED)
async def subscribe(
    payload: SubscribeRequest,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> FeedResponse:
    row = await run_in_threadpool(podcast_service.subscribe, supa, str(user.id), payload.feedUrl)
    if row is None:
        raise HTTPException(status_code=500, detail="Could not subscribe to podcast feed")
    return _feed_from_row(row)


@router.post("/feeds/{feed_id}/refresh", response_model=RefreshResponse)
async def refresh_feed(
    feed_id: str,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> RefreshResponse:
    owner_id = str(user.id)
    inserted = await run_in_threadpool(podcast_service.refresh_feed, supa, owner_id, feed_id)
    if inserted is None:
        raise HTTPException(status_code=500, detail="Could not refresh podcast feed")
    row = await run_in_threadpool(podcast_service.get_feed, supa, owner_id, feed_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Podcast feed not found")
    return RefreshResponse(feed=_feed_from_row(row), newEpisodes=inserted)


@router.get("/feeds/{feed_id}/episodes", response_model=list[EpisodeResponse])
async def list_feed_episodes(
    feed_id: str,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> list[EpisodeResponse]:
    rows = await run_in_threadpool(podcast_service.list_feed_episodes, supa, str(user.id), feed_id)
    return [_episode_from_row(row) for row in rows]


@router.get("/feeds/{feed_id}/episode-count", response_model=EpisodeCountResponse)
async def episode_count(
    feed_id: str,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> EpisodeCountResponse:
    count = await run_in_threadpool(podcast_service.episode_count, supa, str(user.id), feed_id)
    return EpisodeCountResponse(feedId=feed_id, count=count)


@router.delete("/feeds/{feed_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_feed(
    feed_id: str,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> Response:
    ok = await run_in_threadpool(podcast_service.delete_feed, supa, str(user.id), feed_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Podcast feed not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/episodes", response_model=list[EpisodeResponse])
async def list_episodes(
    view: EpisodeView = EpisodeView.ALL,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> list[EpisodeResponse]:
    rows = await run_in_threadpool(podcast_service.list_episodes, supa, str(user.id), view)
    return [_episode_from_row(row) for row in rows]


@router.patch("/episodes/{episode_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_episode_status(
    episode_id: str,
    payload: EpisodeStatusUpdate,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> Response:
    if episode_id.startswith(podcast_service.TEMP_ID_PREFIX):
        raise HTTPException(status_code=400, detail="Episode is not stored yet")
    changes = {
        _STATUS_COLUMNS[key]: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None
    }
    if not changes:
        raise HTTPException(status_code=400, detail="No status fields provided")
    ok = await run_in_threadpool(
        podcast_service.update_episode_status, supa, str(user.id), episode_id, changes
    )
    if not ok:
        raise HTTPException(status_code=404, detail="Episode not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
