from __future__ import annotations

from datetime import date

import pytest

from dashboard.app.config import settings
from dashboard.services import widgets
from dashboard.services.errors import FetchFailedError
from dashboard.services.events import CHANNELS, EventChannel


class TestEventChannel:
    def test_delivers_user_id(self) -> None:
        channel = EventChannel("test")
        received: list[str] = []
        channel.subscribe(received.append)

        channel.emit("user-1")

        assert received == ["user-1"]

    def test_unsubscribe(self) -> None:
        channel = EventChannel("test")
        received: list[str] = []
        unsubscribe = channel.subscribe(received.append)

        unsubscribe()
        unsubscribe()
        channel.emit("user-1")

        assert received == []
        assert len(channel) == 0

    def test_failing_subscriber_does_not_stop_delivery(self) -> None:
        channel = EventChannel("test")
        received: list[str] = []

        def broken(user_id: str) -> None:
            raise RuntimeError("boom")

        channel.subscribe(broken)
        channel.subscribe(received.append)

        channel.emit("user-1")

        assert received == ["user-1"]

    def test_channels_registry(self) -> None:
        assert set(CHANNELS) == {"articles", "links", "notes", "books", "podcasts"}


class TestPokemonOfTheDay:
    def test_hash_matches_js_string_hash(self) -> None:
        assert widgets.date_hash("") == 0
        assert widgets.date_hash("a") == 97
        assert widgets.date_hash("ab") == 97 * 31 + 98

    def test_hash_wraps_to_int32(self) -> None:
        value = widgets.date_hash("2024-12-31" * 5)
        assert -(2**31) <= value < 2**31

    def test_id_in_range_and_stable(self) -> None:
        for day in range(1, 29):
            pokemon_id = widgets.pokemon_of_the_day_id(date(2024, 2, day))
            assert 1 <= pokemon_id <= widgets.TOTAL_POKEMON
        assert widgets.pokemon_of_the_day_id(date(2024, 2, 3)) == widgets.pokemon_of_the_day_id(date(2024, 2, 3))

    def test_english_flavor_text(self) -> None:
        species = {
            "flavor_text_entries": [
                {"flavor_text": "Un pokemon", "language": {"name": "fr"}},
                {"flavor_text": "Line one\nline\ftwo", "language": {"name": "en"}},
            ]
        }
        assert widgets.english_flavor_text(species) == "Line one line two"
        assert widgets.english_flavor_text({}) == widgets.NO_FLAVOR_TEXT

    def test_fetch_pokemon(self, make_client) -> None:
        base = settings.POKEAPI_URL
        client = make_client(
            {
                f"{base}/pokemon/25": {
                    "id": 25,
                    "name": "pikachu",
                    "sprites": {"front_default": "https://img/25.png"},
                    "types": [{"type": {"name": "electric"}}],
                },
                f"{base}/pokemon-species/25": {"flavor_text_entries": []},
            }
        )

        pokemon = widgets.fetch_pokemon(25, client=client)

        assert pokemon == {
            "id": 25,
            "name": "pikachu",
            "sprite": "https://img/25.png",
            "flavorText": widgets.NO_FLAVOR_TEXT,
            "types": ["electric"],
        }

    def test_fetch_pokemon_upstream_failure(self, make_client) -> None:
        with pytest.raises(FetchFailedError):
            widgets.fetch_pokemon(25, client=make_client({}))


class TestOnThisDay:
    def test_top_events_newest_first(self) -> None:
        events = [{"text": str(year), "year": year} for year in (1900, 2001, 1500, 1999, 2020, 1066)]

        top = widgets.top_events(events)

        assert [event["year"] for event in top] == ["2020", "2001", "1999", "1900", "1500"]

    def test_pages_reshaped(self) -> None:
        event = {
            "text": "Something happened",
            "year": 1969,
            "pages": [
                {
                    "title": "Moon",
                    "extract": "The Moon",
                    "thumbnail": {"source": "https://img/moon.jpg"},
                    "content_urls": {"desktop": {"page": "https://en.wikipedia.org/wiki/Moon"}},
                }
            ],
        }

        page = widgets.top_events([event])[0]["pages"][0]

        assert page == {
            "title": "Moon",
            "extract": "The Moon",
            "thumbnail": "https://img/moon.jpg",
            "url": "https://en.wikipedia.org/wiki/Moon",
        }

    def test_requests_month_and_day(self, make_client) -> None:
        url = f"{settings.ON_THIS_DAY_URL}/07/04"
        client = make_client({url: {"events": [{"text": "x", "year": "1776"}]}})

        assert widgets.on_this_day(date(2024, 7, 4), client=client)[0]["year"] == "1776"
