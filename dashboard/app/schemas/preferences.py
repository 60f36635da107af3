from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

ReaderBackgroundValue = Literal["default", "green", "sepia"]


class AudioPlayerPreferencesModel(BaseModel):
    forwardSkipSeconds: int = 30
    backwardSkipSeconds: int = 15
    playbackSpeed: float = 1.0


class PreferencesResponse(BaseModel):
    readerBackgroundColor: ReaderBackgroundValue = "default"
    audioPlayerPreferences: AudioPlayerPreferencesModel = Field(
        default_factory=AudioPlayerPreferencesModel
    )


class AudioPlayerPreferencesUpdate(BaseModel):
    forwardSkipSeconds: Optional[int] = Field(default=None, ge=1, le=600)
    backwardSkipSeconds: Optional[int] = Field(default=None, ge=1, le=600)
    playbackSpeed: Optional[float] = Field(default=None, gt=0, le=4)


class PreferencesUpdate(BaseModel):
    readerBackgroundColor: Optional[ReaderBackgroundValue] = None
    audioPlayerPreferences: Optional[AudioPlayerPreferencesUpdate] = None
