from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from starlette.concurrency import run_in_threadpool
from supabase import Client

from dashboard.app.deps import CurrentUser, get_current_user, get_supabase
from dashboard.app.schemas.preferences import PreferencesResponse, PreferencesUpdate
from dashboard.services import preferences as preference_service

router = APIRouter(prefix="/preferences", tags=["preferences"])


def _response(document: dict) -> PreferencesResponse:
    typed = preference_service.to_domain(document)
    return PreferencesResponse(**preference_service.to_document(typed))


@router.get("/", response_model=PreferencesResponse)
async def get_preferences(
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> PreferencesResponse:
    stored = await run_in_threadpool(preference_service.load_preferences, supa, str(user.id))
    return _response(stored)


@router.patch("/", response_model=PreferencesResponse)
async def update_preferences(
    payload: PreferencesUpdate,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> PreferencesResponse:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    merged = await run_in_threadpool(
        preference_service.update_preferences, supa, str(user.id), changes
    )
    if merged is None:
        raise HTTPException(status_code=500, detail="Could not save preferences")
    return _response(merged)
