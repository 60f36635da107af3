# dashboard/app/domain/models.py
"""
Domain models for the dashboard.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class BookStatus(str, Enum):
    """Reading list status of a book."""
    BACKLOG = "Backlog"
    READING = "Reading"
    FINISHED = "Finished"
    ABANDONED = "Abandoned"


class EpisodeView(str, Enum):
    """Named filters over a user's stored episodes."""
    ALL = "all"
    INBOX = "inbox"
    QUEUE = "queue"
    FAVORITES = "favorites"
    RECENT = "recent"


class PlayerState(str, Enum):
    """States of the podcast playback controller."""
    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"


class ReaderBackground(str, Enum):
    DEFAULT = "default"
    GREEN = "green"
    SEPIA = "sepia"


@dataclass
class FeedEpisode:
    """An episode as read from a podcast RSS feed (not yet stored)."""
    guid: str
    title: str
    description: str
    audio_url: str
    published_date: str
    duration: int  # seconds
    image_url: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "guid": self.guid,
            "title": self.title,
            "description": self.description,
            "audioUrl": self.audio_url,
            "publishedDate": self.published_date,
            "duration": self.duration,
            "imageUrl": self.image_url,
        }


@dataclass
class FeedMetadata:
    """Channel-level metadata plus the episode list of a podcast feed."""
    title: str
    author: str
    description: str
    artwork_url: str
    website_url: str
    episodes: list[FeedEpisode] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "author": self.author,
            "description": self.description,
            "artworkUrl": self.artwork_url,
            "websiteUrl": self.website_url,
            "episodes": [episode.to_payload() for episode in self.episodes],
        }


@dataclass
class PlayableEpisode:
    """The subset of a stored episode the audio player needs."""
    id: str
    audio_url: str
    title: str = ""
    duration: int = 0
    play_position: int = 0

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "PlayableEpisode":
        return cls(
            id=str(row.get("id")),
            audio_url=str(row.get("audio_url") or ""),
            title=str(row.get("title") or ""),
            duration=int(row.get("duration") or 0),
            play_position=int(row.get("play_position") or 0),
        )


@dataclass
class ArticleContent:
    """Result of a content-extraction pass over a web page."""
    content: str
    text_content: str
    length: int
    title: Optional[str] = None
    excerpt: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.content.strip()


@dataclass
class UrlMetadata:
    """Link preview metadata scraped from a page's meta tags."""
    title: str = ""
    description: str = ""
    image: str = ""


@dataclass
class ReadingTime:
    words: int
    minutes: int


@dataclass
class AudioPlayerPreferences:
    forward_skip_seconds: int = 30
    backward_skip_seconds: int = 15
    playback_speed: float = 1.0


@dataclass
class UserPreferences:
    reader_background_color: ReaderBackground = ReaderBackground.DEFAULT
    audio_player: AudioPlayerPreferences = field(default_factory=AudioPlayerPreferences)
