from __future__ import annotations

import pytest

from dashboard.app.domain.models import ReaderBackground
from dashboard.services import events, preferences, tags

USER_ID = "user-1"


def _seed_tags(supa) -> None:
    supa.seed("links", {"user_id": USER_ID, "tags": ["python", "Web"]})
    supa.seed("articles", {"user_id": USER_ID, "tags": ["python", "apis"]}, {"user_id": USER_ID, "tags": None})
    supa.seed("notes", {"user_id": USER_ID, "tags": ["ideas", ""]})
    supa.seed("notes", {"user_id": "user-2", "tags": ["secret"]})


class TestNormalizeTags:
    def test_dedupes_and_sorts_case_insensitively(self) -> None:
        assert tags.normalize_tags(["b", "A", "b", "", None, "a"]) == ["A", "a", "b"]


class TestFetchTags:
    def test_all_tags_across_tables(self, supa) -> None:
        _seed_tags(supa)
        assert tags.fetch_all_tags(supa, USER_ID) == ["apis", "ideas", "python", "Web"]

    def test_by_content_type(self, supa) -> None:
        _seed_tags(supa)
        assert tags.fetch_tags_by_content_type(supa, USER_ID, "articles") == ["apis", "python"]

    def test_unknown_content_type(self, supa) -> None:
        with pytest.raises(ValueError):
            tags.fetch_tags_by_content_type(supa, USER_ID, "books")

    def test_failing_table_is_skipped(self, supa) -> None:
        _seed_tags(supa)
        supa.failing_tables.add("links")

        assert tags.fetch_all_tags(supa, USER_ID) == ["apis", "ideas", "python"]

    def test_cache_invalidated_by_content_change(self, supa) -> None:
        _seed_tags(supa)
        tags.fetch_all_tags(supa, USER_ID)
        supa.seed("links", {"user_id": USER_ID, "tags": ["zeta"]})

        assert "zeta" not in tags.fetch_all_tags(supa, USER_ID)

        events.links.emit(USER_ID)

        assert "zeta" in tags.fetch_all_tags(supa, USER_ID)


class TestSuggest:
    ALL = ["apis", "happy", "python", "pytest", "Web"]

    def test_prefix_matches_first(self) -> None:
        assert tags.suggest(self.ALL, "py") == ["pytest", "python", "happy"]

    def test_excludes_applied_tags(self) -> None:
        assert tags.suggest(self.ALL, "py", current=["Python"]) == ["pytest", "happy"]

    def test_empty_query(self) -> None:
        assert tags.suggest(self.ALL, "  ") == []

    def test_tag_exists(self) -> None:
        assert tags.tag_exists(self.ALL, " web ")
        assert not tags.tag_exists(self.ALL, "rust")


class TestMergePreferences:
    def test_defaults(self) -> None:
        assert preferences.merge_preferences(None) == preferences.DEFAULT_PREFERENCES

    def test_nested_audio_merge(self) -> None:
        merged = preferences.merge_preferences(
            {"readerBackgroundColor": "sepia", "audioPlayerPreferences": {"playbackSpeed": 1.5}},
            {"audioPlayerPreferences": {"forwardSkipSeconds": 45, "backwardSkipSeconds": None}},
        )

        assert merged["readerBackgroundColor"] == "sepia"
        assert merged["audioPlayerPreferences"] == {
            "forwardSkipSeconds": 45,
            "backwardSkipSeconds": 15,
            "playbackSpeed": 1.5,
        }

    def test_defaults_not_mutated(self) -> None:
        preferences.merge_preferences({"audioPlayerPreferences": {"playbackSpeed": 2.0}})
        assert preferences.DEFAULT_PREFERENCES["audioPlayerPreferences"]["playbackSpeed"] == 1.0


class TestStoredPreferences:
    def test_load_and_update(self, supa) -> None:
        supa.seed("users", {"id": USER_ID, "preferences": {"readerBackgroundColor": "green"}})

        updated = preferences.update_preferences(
            supa, USER_ID, {"audioPlayerPreferences": {"playbackSpeed": 1.25}}
        )

        assert updated["readerBackgroundColor"] == "green"
        assert updated["audioPlayerPreferences"]["playbackSpeed"] == 1.25
        assert preferences.load_preferences(supa, USER_ID) == updated

    def test_load_failure_returns_defaults(self, supa) -> None:
        supa.failing_tables.add("users")
        assert preferences.load_preferences(supa, USER_ID) == preferences.DEFAULT_PREFERENCES

    def test_to_domain(self) -> None:
        prefs = preferences.to_domain({"readerBackgroundColor": "purple"})

        assert prefs.reader_background_color is ReaderBackground.DEFAULT
        assert prefs.audio_player.forward_skip_seconds == 30

    def test_to_domain_ignores_unusable_audio_values(self) -> None:
        prefs = preferences.to_domain(
            {"audioPlayerPreferences": {"backwardSkipSeconds": -5, "playbackSpeed": "fast"}}
        )

        assert prefs.audio_player.backward_skip_seconds == 15
        assert prefs.audio_player.playback_speed == 1.0

    def test_non_dict_document_is_defaults(self) -> None:
        assert preferences.merge_preferences("garbage") == preferences.DEFAULT_PREFERENCES  # type: ignore[arg-type]

    def test_to_document_round_trip(self) -> None:
        document = {"readerBackgroundColor": "sepia", "audioPlayerPreferences": {"forwardSkipSeconds": 10, "backwardSkipSeconds": 5, "playbackSpeed": 1.5}}

        assert preferences.to_document(preferences.to_domain(document)) == document
