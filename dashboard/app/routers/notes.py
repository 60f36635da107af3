from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from starlette.concurrency import run_in_threadpool
from supabase import Client

from dashboard.app.deps import CurrentUser, get_current_user, get_supabase
from dashboard.app.schemas.library import NoteCreate, NoteResponse, NoteUpdate
from dashboard.services import notes as note_service
from dashboard.services.records import format_timestamp, stringify_id

router = APIRouter(prefix="/notes", tags=["notes"])


def _note_from_row(row: dict[str, Any]) -> NoteResponse:
    return NoteResponse(
        id=stringify_id(row.get("id")),
        content=row.get("content") or "",
        tags=row.get("tags") or [],
        createdAt=format_timestamp(row.get("created_at")),
        updatedAt=format_timestamp(row.get("updated_at")),
    )


@router.get("/", response_model=list[NoteResponse])
async def list_notes(
    limit: Optional[int] = Query(default=note_service.DEFAULT_LIMIT, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> list[NoteResponse]:
    rows = await run_in_threadpool(note_service.list_notes, supa, str(user.id), limit)
    return [_note_from_row(row) for row in rows]


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: str,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> NoteResponse:
    row = await run_in_threadpool(note_service.get_note, supa, str(user.id), note_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Note not found")
    return _note_from_row(row)


@router.post("/", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def add_note(
    payload: NoteCreate,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> NoteResponse:
    row = await run_in_threadpool(note_service.add_note, supa, str(user.id), payload.content, payload.tags)
    if row is None:
        raise HTTPException(status_code=500, detail="Could not save note")
    return _note_from_row(row)


@router.patch("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_note(
    note_id: str,
    payload: NoteUpdate,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> Response:
    ok = await run_in_threadpool(
        note_service.update_note,
        supa,
        str(user.id),
        note_id,
        content=payload.content,
        tags=payload.tags,
    )
    if not ok:
        raise HTTPException(status_code=404, detail="Note not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: str,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> Response:
    ok = await run_in_threadpool(note_service.delete_note, supa, str(user.id), note_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Note not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
