from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from starlette.concurrency import run_in_threadpool
from supabase import Client

from dashboard.app.deps import CurrentUser, get_current_user, get_supabase
from dashboard.app.schemas.library import TagsResponse
from dashboard.services import tags as tag_service

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("/", response_model=TagsResponse)
async def list_tags(
    content_type: Optional[Literal["links", "articles", "notes"]] = Query(default=None, alias="type"),
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> TagsResponse:
    if content_type:
        tags = await run_in_threadpool(
            tag_service.fetch_tags_by_content_type, supa, str(user.id), content_type
        )
    else:
        tags = await run_in_threadpool(tag_service.fetch_all_tags, supa, str(user.id))
    return TagsResponse(tags=tags)


@router.get("/suggestions", response_model=TagsResponse)
async def suggestions(
    q: str = Query(default=""),
    current: Optional[list[str]] = Query(default=None),
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> TagsResponse:
    all_tags = await run_in_threadpool(tag_service.fetch_all_tags, supa, str(user.id))
    return TagsResponse(tags=tag_service.suggest(all_tags, q, current or []))
