from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from starlette.concurrency import run_in_threadpool
from supabase import Client

from dashboard.app.deps import CurrentUser, get_current_user, get_supabase
from dashboard.app.schemas.library import ArticleResponse, SavedUrlCreate, SavedUrlUpdate
from dashboard.services import articles as article_service
from dashboard.services.content import extract_domain
from dashboard.services.records import format_timestamp, stringify_id

router = APIRouter(prefix="/articles", tags=["articles"])


def _article_from_row(row: dict[str, Any]) -> ArticleResponse:
    return ArticleResponse(
        id=stringify_id(row.get("id")),
        url=row.get("url") or "",
        domain=extract_domain(row.get("url") or ""),
        title=row.get("title") or "Untitled",
        body=row.get("body"),
        image=row.get("image"),
        tags=row.get("tags") or [],
        isFavorite=bool(row.get("is_favorite")),
        isArchive=bool(row.get("is_archive")),
        readingTimeMinutes=row.get("reading_time_minutes"),
        createdAt=format_timestamp(row.get("created_at")),
        updatedAt=format_timestamp(row.get("updated_at")),
    )


def saved_url_changes(payload: SavedUrlCreate | SavedUrlUpdate) -> dict[str, Any]:
    """Wire fields of a create/update body mapped to column names."""
    data = payload.model_dump(exclude_unset=isinstance(payload, SavedUrlUpdate))
    columns = {"isFavorite": "is_favorite", "isArchive": "is_archive"}
    return {columns.get(key, key): value for key, value in data.items()}


@router.get("/", response_model=list[ArticleResponse])
async def list_articles(
    recent: bool = False,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> list[ArticleResponse]:
    loader = article_service.recent_articles if recent else article_service.list_articles
    rows = await run_in_threadpool(loader, supa, str(user.id))
    return [_article_from_row(row) for row in rows]


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: str,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> ArticleResponse:
    row = await run_in_threadpool(article_service.get_article, supa, str(user.id), article_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Article not found")
    return _article_from_row(row)


@router.post("/", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def add_article(
    payload: SavedUrlCreate,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> ArticleResponse:
    row = await run_in_threadpool(
        article_service.add_article, supa, str(user.id), saved_url_changes(payload)
    )
    if row is None:
        raise HTTPException(status_code=500, detail="Could not save article")
    return _article_from_row(row)


@router.patch("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_article(
    article_id: str,
    payload: SavedUrlUpdate,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> Response:
    ok = await run_in_threadpool(
        article_service.update_article, supa, str(user.id), article_id, saved_url_changes(payload)
    )
    if not ok:
        raise HTTPException(status_code=404, detail="Article not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(
    article_id: str,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> Response:
    ok = await run_in_threadpool(article_service.delete_article, supa, str(user.id), article_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Article not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
