from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from starlette.concurrency import run_in_threadpool

from dashboard.app.schemas.widgets import OnThisDayResponse, PokemonResponse
from dashboard.services import widgets as widget_service
from dashboard.services.errors import ServiceError

router = APIRouter(prefix="/widgets", tags=["widgets"])
log = logging.getLogger("widgets")


@router.get("/pokemon-of-the-day", response_model=PokemonResponse)
async def pokemon_of_the_day() -> PokemonResponse:
    try:
        data = await run_in_threadpool(widget_service.pokemon_of_the_day)
    except ServiceError as exc:
        log.warning("widgets.pokemon_fail error=%s", exc)
        raise HTTPException(status_code=exc.status_code, detail=str(exc))
    return PokemonResponse(**data)


@router.get("/on-this-day", response_model=OnThisDayResponse)
async def on_this_day() -> OnThisDayResponse:
    try:
        events = await run_in_threadpool(widget_service.on_this_day)
    except ServiceError as exc:
        log.warning("widgets.on_this_day_fail error=%s", exc)
        raise HTTPException(status_code=exc.status_code, detail=str(exc))
    return OnThisDayResponse(events=events)
