from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from starlette.concurrency import run_in_threadpool
from supabase import Client

from dashboard.app.deps import CurrentUser, get_current_user, get_supabase
from dashboard.app.routers.articles import saved_url_changes
from dashboard.app.schemas.library import LinkResponse, SavedUrlCreate, SavedUrlUpdate
from dashboard.services import links as link_service
from dashboard.services.content import extract_domain
from dashboard.services.records import format_timestamp, stringify_id

router = APIRouter(prefix="/links", tags=["links"])


def _link_from_row(row: dict[str, Any]) -> LinkResponse:
    return LinkResponse(
        id=stringify_id(row.get("id")),
        url=row.get("url") or "",
        domain=extract_domain(row.get("url") or ""),
        title=row.get("title") or "Untitled",
        image=row.get("image"),
        tags=row.get("tags") or [],
        isFavorite=bool(row.get("is_favorite")),
        isArchive=bool(row.get("is_archive")),
        createdAt=format_timestamp(row.get("created_at")),
        updatedAt=format_timestamp(row.get("updated_at")),
    )


@router.get("/", response_model=list[LinkResponse])
async def list_links(
    recent: bool = False,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> list[LinkResponse]:
    loader = link_service.recent_links if recent else link_service.list_links
    rows = await run_in_threadpool(loader, supa, str(user.id))
    return [_link_from_row(row) for row in rows]


@router.get("/{link_id}", response_model=LinkResponse)
async def get_link(
    link_id: str,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> LinkResponse:
    row = await run_in_threadpool(link_service.get_link, supa, str(user.id), link_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Link not found")
    return _link_from_row(row)


@router.post("/", response_model=LinkResponse, status_code=status.HTTP_201_CREATED)
async def add_link(
    payload: SavedUrlCreate,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> LinkResponse:
    row = await run_in_threadpool(link_service.add_link, supa, str(user.id), saved_url_changes(payload))
    if row is None:
        raise HTTPException(status_code=500, detail="Could not save link")
    return _link_from_row(row)


@router.patch("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_link(
    link_id: str,
    payload: SavedUrlUpdate,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> Response:
    ok = await run_in_threadpool(
        link_service.update_link, supa, str(user.id), link_id, saved_url_changes(payload)
    )
    if not ok:
        raise HTTPException(status_code=404, detail="Link not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_link(
    link_id: str,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> Response:
    ok = await run_in_threadpool(link_service.delete_link, supa, str(user.id), link_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Link not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
