from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class AudioBackend(ABC):
    """A single audio source the playback controller drives.

    Implementations report buffering through the controller's
    `handle_waiting` / `handle_can_play` / `handle_ended` hooks.
    `play` raises `PlaybackError` when the source cannot start.
    """

    @abstractmethod
    def load(self, source: str) -> None:
        pass

    @abstractmethod
    def unload(self) -> None:
        pass

    @abstractmethod
    async def play(self) -> None:
        pass

    @abstractmethod
    def pause(self) -> None:
        pass

    @abstractmethod
    def seek(self, position: float) -> None:
        pass

    @abstractmethod
    def set_rate(self, rate: float) -> None:
        pass

    @property
    @abstractmethod
    def current_time(self) -> float:
        pass

    @property
    @abstractmethod
    def duration(self) -> Optional[float]:
        """Length of the loaded source in seconds, None while unknown."""
