from __future__ import annotations


class DashboardError(Exception):
    pass


class PlaybackError(DashboardError):
    def __init__(self, source: str, reason: str = "Playback failed"):
        super().__init__(f"{reason}: {source}")
        self.source = source
        self.reason = reason
