from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any

import httpx

from dashboard.app.config import settings

from .errors import UpstreamFormatError
from .http import fetch

logger = logging.getLogger(__name__)

TOTAL_POKEMON = 1025
ON_THIS_DAY_LIMIT = 5
NO_FLAVOR_TEXT = "No description available."
_FLAVOR_BREAKS = re.compile(r"[\n\f\u000c]")


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def date_hash(text: str) -> int:
    """32-bit string hash (`h = h * 31 + c`, wrapping on overflow)."""
    result = 0
    for char in text:
        result = _to_int32(_to_int32(result << 5) - result + ord(char))
    return result


def pokemon_of_the_day_id(day: date | None = None) -> int:
    day = day or date.today()
    seed = f"{day.year}-{day.month}-{day.day}"
    return abs(date_hash(seed)) % TOTAL_POKEMON + 1


def _get_json(url: str, client: httpx.Client | None) -> Any:
    response = fetch(url, headers={"Accept": "application/json"}, client=client)
    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamFormatError(f"Invalid JSON from {url}") from exc


def english_flavor_text(species: dict[str, Any]) -> str:
    for entry in species.get("flavor_text_entries") or []:
        if (entry.get("language") or {}).get("name") == "en" and entry.get("flavor_text"):
            return _FLAVOR_BREAKS.sub(" ", entry["flavor_text"])
    return NO_FLAVOR_TEXT


def pokemon_sprite(pokemon: dict[str, Any]) -> str:
    sprites = pokemon.get("sprites") or {}
    artwork = ((sprites.get("other") or {}).get("official-artwork") or {}).get("front_default")
    return artwork or sprites.get("front_default") or ""


def fetch_pokemon(pokemon_id: int, *, client: httpx.Client | None = None) -> dict[str, Any]:
    base = settings.POKEAPI_URL.rstrip("/")
    pokemon = _get_json(f"{base}/pokemon/{pokemon_id}", client)
    species = _get_json(f"{base}/pokemon-species/{pokemon_id}", client)
    return {
        "id": pokemon.get("id", pokemon_id),
        "name": pokemon.get("name") or "",
        "sprite": pokemon_sprite(pokemon),
        "flavorText": english_flavor_text(species),
        "types": [slot["type"]["name"] for slot in pokemon.get("types") or [] if slot.get("type")],
    }


def pokemon_of_the_day(day: date | None = None, *, client: httpx.Client | None = None) -> dict[str, Any]:
    pokemon_id = pokemon_of_the_day_id(day)
    logger.info("widgets.pokemon id=%d", pokemon_id)
    return fetch_pokemon(pokemon_id, client=client)


def _year(event: dict[str, Any]) -> int:
    try:
        return int(str(event.get("year")).strip())
    except ValueError:
        return 0


def _page(page: dict[str, Any]) -> dict[str, Any]:
    thumbnail = page.get("thumbnail") or {}
    desktop = (page.get("content_urls") or {}).get("desktop") or {}
    return {
        "title": page.get("title") or "",
        "extract": page.get("extract") or "",
        "thumbnail": thumbnail.get("source"),
        "url": desktop.get("page"),
    }


def top_events(events: list[dict[str, Any]], limit: int = ON_THIS_DAY_LIMIT) -> list[dict[str, Any]]:
    ordered = sorted(events, key=_year, reverse=True)[:limit]
    return [
        {
            "text": event.get("text") or "",
            "year": str(event.get("year") or ""),
            "pages": [_page(page) for page in event.get("pages") or []],
        }
        for event in ordered
    ]


def on_this_day(day: date | None = None, *, client: httpx.Client | None = None) -> list[dict[str, Any]]:
    day = day or date.today()
    url = f"{settings.ON_THIS_DAY_URL.rstrip('/')}/{day.month:02d}/{day.day:02d}"
    data = _get_json(url, client)
    events = data.get("events") if isinstance(data, dict) else None
    return top_events(events or [])
