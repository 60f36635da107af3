from __future__ import annotations

import copy
import logging
from typing import Any

from supabase import Client

from dashboard.app.domain.models import AudioPlayerPreferences, ReaderBackground, UserPreferences

from .records import first_row, utc_now

logger = logging.getLogger(__name__)

TABLE = "users"
AUDIO_KEY = "audioPlayerPreferences"

DEFAULT_PREFERENCES: dict[str, Any] = {
    "readerBackgroundColor": ReaderBackground.DEFAULT.value,
    AUDIO_KEY: {
        "forwardSkipSeconds": 30,
        "backwardSkipSeconds": 15,
        "playbackSpeed": 1.0,
    },
}


def merge_preferences(stored: dict[str, Any] | None, changes: dict[str, Any] | None = None) -> dict[str, Any]:
    """Layer `stored` then `changes` over the defaults; audio settings merge key by key."""
    merged = copy.deepcopy(DEFAULT_PREFERENCES)
    for layer in (stored, changes):
        if not isinstance(layer, dict):
            continue
        audio = layer.get(AUDIO_KEY)
        merged.update({key: value for key, value in layer.items() if key != AUDIO_KEY})
        if isinstance(audio, dict):
            merged[AUDIO_KEY].update({key: value for key, value in audio.items() if value is not None})
    return merged


def load_preferences(supa: Client, user_id: str) -> dict[str, Any]:
    try:
        response = (
            supa.table(TABLE)
            .select("preferences")
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
    except Exception:
        logger.exception("preferences.load_fail user=%s", user_id)
        return merge_preferences(None)
    row = first_row(response) or {}
    return merge_preferences(row.get("preferences"))


def update_preferences(supa: Client, user_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
    """Persist the merged document. Returns it, or None when the write failed."""
    merged = merge_preferences(load_preferences(supa, user_id), changes)
    try:
        (
            supa.table(TABLE)
            .update({"preferences": merged, "updated_at": utc_now()})
            .eq("id", str(user_id))
            .execute()
        )
    except Exception:
        logger.exception("preferences.update_fail user=%s", user_id)
        return None
    return merged


def _audio_value(audio: dict[str, Any], key: str, cast: type) -> Any:
    try:
        value = cast(audio[key])
    except (TypeError, ValueError):
        return DEFAULT_PREFERENCES[AUDIO_KEY][key]
    return value if value > 0 else DEFAULT_PREFERENCES[AUDIO_KEY][key]


def to_domain(preferences: dict[str, Any]) -> UserPreferences:
    """Typed preferences; stored values that are unknown or unusable fall back to the defaults."""
    merged = merge_preferences(preferences)
    try:
        background = ReaderBackground(merged["readerBackgroundColor"])
    except ValueError:
        background = ReaderBackground.DEFAULT
    audio = merged[AUDIO_KEY]
    return UserPreferences(
        reader_background_color=background,
        audio_player=AudioPlayerPreferences(
            forward_skip_seconds=_audio_value(audio, "forwardSkipSeconds", int),
            backward_skip_seconds=_audio_value(audio, "backwardSkipSeconds", int),
            playback_speed=_audio_value(audio, "playbackSpeed", float),
        ),
    )


def to_document(preferences: UserPreferences) -> dict[str, Any]:
    audio = preferences.audio_player
    return {
        "readerBackgroundColor": preferences.reader_background_color.value,
        AUDIO_KEY: {
            "forwardSkipSeconds": audio.forward_skip_seconds,
            "backwardSkipSeconds": audio.backward_skip_seconds,
            "playbackSpeed": audio.playback_speed,
        },
    }
