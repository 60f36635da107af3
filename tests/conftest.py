from __future__ import annotations

import os

os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")

import copy
import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable, Optional

import httpx
import pytest

from dashboard.app.domain.errors import PlaybackError
from dashboard.player.audio import AudioBackend
from dashboard.services import podcasts, tags

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@dataclass
class FakeResponse:
    data: list[dict[str, Any]]
    count: Optional[int] = None


class FakeQuery:
    """Chainable stand-in for a PostgREST request builder over in-memory rows."""

    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self._db = db
        self._table = table
        self._action = "select"
        self._columns: Optional[list[str]] = None
        self._count: Optional[str] = None
        self._payload: Any = None
        self._filters: list[tuple[bool, Callable[[dict[str, Any]], bool]]] = []
        self._negate_next = False
        self._order: list[tuple[str, bool]] = []
        self._limit: Optional[int] = None

    # ---------- verbs ----------
    def select(self, columns: str = "*", count: Optional[str] = None) -> "FakeQuery":
        self._action = "select"
        self._count = count
        if columns.strip() != "*":
            self._columns = [column.strip() for column in columns.split(",")]
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self._action = "insert"
        self._payload = payload
        return self

    def upsert(self, payload: Any) -> "FakeQuery":
        self._action = "upsert"
        self._payload = payload
        return self

    def update(self, payload: dict[str, Any]) -> "FakeQuery":
        self._action = "update"
        self._payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self._action = "delete"
        return self

    # ---------- filters ----------
    @property
    def not_(self) -> "FakeQuery":
        self._negate_next = True
        return self

    def _add_filter(self, predicate: Callable[[dict[str, Any]], bool]) -> "FakeQuery":
        self._filters.append((self._negate_next, predicate))
        self._negate_next = False
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        return self._add_filter(lambda row: row.get(column) == value)

    def is_(self, column: str, value: Any) -> "FakeQuery":
        expected = None if value in (None, "null") else value
        return self._add_filter(lambda row: row.get(column) is expected)

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order.append((column, desc))
        return self

    def limit(self, size: int) -> "FakeQuery":
        self._limit = size
        return self

    # ---------- execution ----------
    def _matches(self, row: dict[str, Any]) -> bool:
        return all(predicate(row) != negate for negate, predicate in self._filters)

    def execute(self) -> FakeResponse:
        if self._table in self._db.failing_tables:
            raise RuntimeError(f"table {self._table} unavailable")
        self._db.executed.append((self._table, self._action))
        rows = self._db.tables.setdefault(self._table, [])

        if self._action in ("insert", "upsert"):
            items = self._payload if isinstance(self._payload, list) else [self._payload]
            stored = [self._db._store(self._table, item, upsert=self._action == "upsert") for item in items]
            return FakeResponse(data=copy.deepcopy(stored))

        matched = [row for row in rows if self._matches(row)]

        if self._action == "update":
            for row in matched:
                row.update(copy.deepcopy(self._payload))
            return FakeResponse(data=copy.deepcopy(matched))

        if self._action == "delete":
            self._db.tables[self._table] = [row for row in rows if not self._matches(row)]
            return FakeResponse(data=copy.deepcopy(matched))

        for column, desc in reversed(self._order):
            matched.sort(key=lambda row: (row.get(column) is None, str(row.get(column) or "")), reverse=desc)
        total = len(matched)
        if self._limit is not None:
            matched = matched[: self._limit]
        if self._columns is not None:
            matched = [{column: row.get(column) for column in self._columns} for row in matched]
        return FakeResponse(data=copy.deepcopy(matched), count=total if self._count else None)


class FakeAuth:
    def __init__(self) -> None:
        self.users: dict[str, Any] = {}

    def get_user(self, token: str) -> Any:
        if token not in self.users:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=self.users[token])


@dataclass
class FakeSupabase:
    tables: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    failing_tables: set[str] = field(default_factory=set)
    executed: list[tuple[str, str]] = field(default_factory=list)
    auth: FakeAuth = field(default_factory=FakeAuth)

    def __post_init__(self) -> None:
        self._ids = itertools.count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def _store(self, table: str, item: dict[str, Any], *, upsert: bool = False) -> dict[str, Any]:
        rows = self.tables.setdefault(table, [])
        if upsert and "id" in item:
            for row in rows:
                if row.get("id") == item["id"]:
                    row.update(copy.deepcopy(item))
                    return row
        now = datetime.now(timezone.utc).isoformat()
        row = {"id": f"{table}-{next(self._ids)}", "created_at": now, "updated_at": now}
        row.update(copy.deepcopy(item))
        rows.append(row)
        return row

    def seed(self, table: str, *items: dict[str, Any]) -> list[dict[str, Any]]:
        return [self._store(table, item) for item in items]


@pytest.fixture
def supa() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture(autouse=True)
def _clear_caches():
    tags._tag_cache.clear()
    podcasts._episode_count_cache.clear()
    yield
    tags._tag_cache.clear()
    podcasts._episode_count_cache.clear()


def mock_client(routes: dict[str, Any]) -> httpx.Client:
    """httpx client answering each URL (without query string) from `routes`.

    A route value is a (status, body) tuple, a body alone (status 200), or an
    exception instance to raise.
    """
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        url = str(request.url).split("?", 1)[0]
        if url not in routes:
            return httpx.Response(404, text="not found")
        route = routes[url]
        if isinstance(route, Exception):
            raise route
        status, body = route if isinstance(route, tuple) else (200, route)
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    client.requests = requests  # type: ignore[attr-defined]
    return client


class StubAudioBackend(AudioBackend):
    def __init__(self, duration: Optional[float] = 600.0) -> None:
        self.loaded: list[str] = []
        self.calls: list[str] = []
        self.rate = 1.0
        self.fail_play = False
        self._time = 0.0
        self._duration = duration

    def load(self, url: str) -> None:
        self.loaded.append(url)
        self.calls.append("load")
        self._time = 0.0

    def unload(self) -> None:
        self.calls.append("unload")

    async def play(self) -> None:
        self.calls.append("play")
        if self.fail_play:
            raise PlaybackError(self.loaded[-1], "NotAllowedError")

    def pause(self) -> None:
        self.calls.append("pause")

    def seek(self, seconds: float) -> None:
        self.calls.append("seek")
        self._time = seconds

    def set_rate(self, rate: float) -> None:
        self.rate = rate

    @property
    def current_time(self) -> float:
        return self._time

    @property
    def duration(self) -> Optional[float]:
        return self._duration

    def advance(self, seconds: float) -> None:
        self._time += seconds


@pytest.fixture
def backend() -> StubAudioBackend:
    return StubAudioBackend()


@pytest.fixture
def make_client() -> Callable[[dict[str, Any]], httpx.Client]:
    return mock_client
