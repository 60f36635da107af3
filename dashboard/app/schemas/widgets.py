from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class PokemonResponse(BaseModel):
    id: int
    name: str
    sprite: str = ""
    flavorText: str = ""
    types: list[str] = Field(default_factory=list)


class HistoricalPage(BaseModel):
    title: str = ""
    extract: str = ""
    thumbnail: Optional[str] = None
    url: Optional[str] = None


class HistoricalEvent(BaseModel):
    text: str
    year: str
    pages: list[HistoricalPage] = Field(default_factory=list)


class OnThisDayResponse(BaseModel):
    events: list[HistoricalEvent] = Field(default_factory=list)
