from __future__ import annotations

import pytest

from dashboard.app.config import settings
from dashboard.services import articles, books, events, links, notes

USER_ID = "user-1"
PAGE_URL = "https://blog.example.com/post"

PAGE_HTML = (
    "<html><head><title>Writing Services</title>"
    '<meta property="og:image" content="https://img.example.com/og.png"></head>'
    "<body><div class='post'><p>" + " ".join(["word"] * 450) + ", more, words.</p></div></body></html>"
)


class _Recorder:
    def __init__(self, channel: events.EventChannel) -> None:
        self.calls: list[str] = []
        self._unsubscribe = channel.subscribe(self.calls.append)

    def close(self) -> None:
        self._unsubscribe()


@pytest.fixture
def article_events():
    recorder = _Recorder(events.articles)
    yield recorder
    recorder.close()


class TestAddArticle:
    def test_fills_metadata_body_and_reading_time(self, supa, make_client, article_events) -> None:
        client = make_client({PAGE_URL: PAGE_HTML})

        created = articles.add_article(supa, USER_ID, {"url": PAGE_URL, "tags": ["py"]}, client=client)

        assert created is not None
        assert created["title"] == "Writing Services"
        assert created["image"] == "https://img.example.com/og.png"
        assert created["reading_time_minutes"] == 3
        assert "word word" in created["body"]
        assert created["tags"] == ["py"]
        assert article_events.calls == [USER_ID]

    def test_explicit_title_skips_metadata(self, supa, make_client) -> None:
        client = make_client({PAGE_URL: PAGE_HTML})

        created = articles.add_article(supa, USER_ID, {"url": PAGE_URL, "title": "Mine"}, client=client)

        assert created["title"] == "Mine"
        assert len(client.requests) == 1

    def test_unreachable_page_still_saves(self, supa, make_client) -> None:
        client = make_client({PAGE_URL: (500, "boom")})

        created = articles.add_article(supa, USER_ID, {"url": PAGE_URL}, client=client)

        assert created["title"] == "Untitled"
        assert created["body"] is None
        assert created["reading_time_minutes"] is None

    def test_requires_url(self, supa) -> None:
        assert articles.add_article(supa, USER_ID, {"url": "  "}) is None


class TestArticleReads:
    def test_recent_skips_archived(self, supa) -> None:
        supa.seed(
            articles.TABLE,
            *[
                {"user_id": USER_ID, "title": f"a{n}", "is_archive": n == 6, "created_at": f"2024-01-{n:02d}"}
                for n in range(1, 8)
            ],
        )

        recent = articles.recent_articles(supa, USER_ID)

        assert [row["title"] for row in recent] == ["a7", "a5", "a4", "a3", "a2"]

    def test_list_is_scoped_to_user(self, supa) -> None:
        supa.seed(articles.TABLE, {"user_id": "user-2", "title": "theirs"})
        assert articles.list_articles(supa, USER_ID) == []

    def test_list_failure_returns_empty(self, supa) -> None:
        supa.failing_tables.add(articles.TABLE)
        assert articles.list_articles(supa, USER_ID) == []


class TestUpdateArticle:
    def test_body_change_recomputes_reading_time(self, supa, article_events) -> None:
        row = supa.seed(articles.TABLE, {"user_id": USER_ID, "title": "t", "reading_time_minutes": 1})[0]
        body = "<p>" + " ".join(["w"] * 650) + "</p>"

        assert articles.update_article(supa, USER_ID, row["id"], {"body": body, "user_id": "evil"})

        stored = supa.tables[articles.TABLE][0]
        assert stored["reading_time_minutes"] == 4
        assert stored["user_id"] == USER_ID
        assert article_events.calls == [USER_ID]

    def test_missing_row(self, supa) -> None:
        assert articles.update_article(supa, USER_ID, "nope", {"title": "x"}) is False

    def test_delete(self, supa) -> None:
        row = supa.seed(articles.TABLE, {"user_id": USER_ID, "title": "t"})[0]

        assert articles.delete_article(supa, USER_ID, row["id"]) is True
        assert articles.delete_article(supa, USER_ID, row["id"]) is False


class TestBackfillReadingTime:
    def _seed(self, supa) -> None:
        supa.seed(
            articles.TABLE,
            {"user_id": USER_ID, "body": "<p>" + " ".join(["w"] * 250) + "</p>", "reading_time_minutes": None},
            {"user_id": USER_ID, "body": "<p>short</p>", "reading_time_minutes": None},
            {"user_id": USER_ID, "body": None, "reading_time_minutes": None},
            {"user_id": USER_ID, "body": "<p>done</p>", "reading_time_minutes": 7},
        )

    def test_updates_rows_missing_reading_time(self, supa) -> None:
        self._seed(supa)

        updated = articles.backfill_reading_time(supa, batch_size=1, pause=0)

        assert updated == 2
        minutes = [row["reading_time_minutes"] for row in supa.tables[articles.TABLE]]
        assert minutes == [2, 1, None, 7]

    def test_dry_run_writes_nothing(self, supa) -> None:
        self._seed(supa)

        assert articles.backfill_reading_time(supa, pause=0, dry_run=True) == 2
        assert [row["reading_time_minutes"] for row in supa.tables[articles.TABLE]][:2] == [None, None]

    def test_sleeps_between_batches(self, supa, monkeypatch) -> None:
        self._seed(supa)
        pauses: list[float] = []
        monkeypatch.setattr(articles.time, "sleep", pauses.append)

        articles.backfill_reading_time(supa, batch_size=1, pause=0.5)

        assert pauses == [0.5]


class TestLinks:
    def test_add_fetches_metadata(self, supa, make_client) -> None:
        client = make_client({PAGE_URL: PAGE_HTML})

        created = links.add_link(supa, USER_ID, {"url": PAGE_URL}, client=client)

        assert created["title"] == "Writing Services"
        assert created["image"] == "https://img.example.com/og.png"
        assert "body" not in created

    def test_recent_links_limit(self, supa) -> None:
        supa.seed(links.TABLE, *[{"user_id": USER_ID, "created_at": f"2024-01-{n:02d}"} for n in range(1, 9)])
        assert len(links.recent_links(supa, USER_ID)) == links.RECENT_LIMIT

    def test_update_and_delete_emit(self, supa) -> None:
        row = supa.seed(links.TABLE, {"user_id": USER_ID, "title": "t"})[0]
        recorder = _Recorder(events.links)
        try:
            assert links.update_link(supa, USER_ID, row["id"], {"is_favorite": True})
            assert links.delete_link(supa, USER_ID, row["id"])
        finally:
            recorder.close()

        assert recorder.calls == [USER_ID, USER_ID]


class TestNotes:
    def test_list_most_recently_updated_first(self, supa) -> None:
        supa.seed(
            notes.TABLE,
            {"user_id": USER_ID, "content": "old", "updated_at": "2024-01-01T00:00:00+00:00"},
            {"user_id": USER_ID, "content": "new", "updated_at": "2024-03-01T00:00:00+00:00"},
            {"user_id": USER_ID, "content": "mid", "updated_at": "2024-02-01T00:00:00+00:00"},
            {"user_id": USER_ID, "content": "oldest", "updated_at": "2023-01-01T00:00:00+00:00"},
        )

        assert [row["content"] for row in notes.list_notes(supa, USER_ID)] == ["new", "mid", "old"]
        assert len(notes.list_notes(supa, USER_ID, limit=None)) == 4

    def test_add_and_partial_update(self, supa) -> None:
        created = notes.add_note(supa, USER_ID, "hello", ["a"])

        assert notes.update_note(supa, USER_ID, created["id"], tags=["b"])

        stored = notes.get_note(supa, USER_ID, created["id"])
        assert stored["content"] == "hello"
        assert stored["tags"] == ["b"]

    def test_update_other_users_note(self, supa) -> None:
        created = notes.add_note(supa, USER_ID, "hello")
        assert notes.update_note(supa, "user-2", created["id"], content="x") is False


class TestStatusDates:
    def test_first_move_to_reading(self) -> None:
        changes = books.status_dates({"status": "Backlog"}, "Reading")
        assert set(changes) == {"started_reading_date"}

    def test_reading_again_keeps_start(self) -> None:
        assert books.status_dates({"started_reading_date": "2024-01-01"}, "Reading") == {}

    def test_finished_sets_both_when_never_started(self) -> None:
        changes = books.status_dates({"status": "Backlog"}, "Finished")
        assert set(changes) == {"started_reading_date", "finished_reading_date"}

    def test_abandoned_sets_nothing(self) -> None:
        assert books.status_dates({"status": "Reading"}, "Abandoned") == {}


class TestBooks:
    def test_add_requires_title_and_author(self, supa) -> None:
        assert books.add_book(supa, USER_ID, {"book_title": "Dune"}) is None

    def test_add_reading_stamps_start(self, supa) -> None:
        created = books.add_book(supa, USER_ID, {"book_title": "Dune", "author": "Herbert", "status": "Reading"})

        assert created["status"] == "Reading"
        assert created["started_reading_date"]
        assert created["finished_reading_date"] is None

    def test_add_defaults_to_backlog(self, supa) -> None:
        created = books.add_book(supa, USER_ID, {"book_title": "Dune", "author": "Herbert"})
        assert created["status"] == "Backlog"

    def test_update_status_sets_dates(self, supa) -> None:
        created = books.add_book(supa, USER_ID, {"book_title": "Dune", "author": "Herbert"})

        assert books.update_book(supa, USER_ID, created["id"], {"status": "Finished"})

        stored = books.get_book(supa, USER_ID, created["id"])
        assert stored["finished_reading_date"]
        assert stored["started_reading_date"]

    def test_explicit_dates_win(self, supa) -> None:
        created = books.add_book(supa, USER_ID, {"book_title": "Dune", "author": "Herbert"})

        books.update_book(
            supa, USER_ID, created["id"], {"status": "Reading", "started_reading_date": "2020-05-01"}
        )

        assert books.get_book(supa, USER_ID, created["id"])["started_reading_date"] == "2020-05-01"

    def test_currently_reading(self, supa) -> None:
        books.add_book(supa, USER_ID, {"book_title": "A", "author": "x", "status": "Reading"})
        books.add_book(supa, USER_ID, {"book_title": "B", "author": "x"})

        assert [row["book_title"] for row in books.currently_reading(supa, USER_ID)] == ["A"]

    def test_invalid_status_is_rejected(self, supa) -> None:
        created = books.add_book(supa, USER_ID, {"book_title": "A", "author": "x"})
        assert books.update_book(supa, USER_ID, created["id"], {"status": "Lost"}) is False


class TestOpenLibrary:
    def test_cover_url(self) -> None:
        assert books.cover_url(123) == "https://covers.openlibrary.org/b/id/123-M.jpg"
        assert books.cover_url(123, "L").endswith("123-L.jpg")
        assert books.cover_url(None) == ""

    def test_cover_url_bad_size(self) -> None:
        with pytest.raises(ValueError):
            books.cover_url(1, "XL")

    def test_format_book(self) -> None:
        formatted = books.format_book({"title": "Dune", "cover_i": 9})
        assert formatted == {
            "book_title": "Dune",
            "author": books.UNKNOWN_AUTHOR,
            "book_cover_url": "https://covers.openlibrary.org/b/id/9-M.jpg",
        }

    def test_search(self, make_client) -> None:
        docs = [{"title": "Dune", "author_name": ["Frank Herbert"], "cover_i": 1}]
        client = make_client({settings.OPEN_LIBRARY_SEARCH_URL: {"docs": docs}})

        assert books.search_books("dune", client=client) == docs
        params = client.requests[0].url.params
        assert params["title"] == "dune"
        assert params["limit"] == "5"

    def test_search_failure_is_empty(self, make_client) -> None:
        client = make_client({settings.OPEN_LIBRARY_SEARCH_URL: (503, "down")})
        assert books.search_books("dune", client=client) == []
