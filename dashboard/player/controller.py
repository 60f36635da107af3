# dashboard/player/controller.py
"""
Podcast playback state machine.

IDLE -> LOADING -> PLAYING <-> PAUSED. `is_loading` follows the backend's
waiting/can-play signals independently of the state. While PLAYING the
position is saved every `save_interval` seconds.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import math
from typing import Any, Awaitable, Callable, Optional, Union

from starlette.concurrency import run_in_threadpool

from dashboard.app.config import settings
from dashboard.app.domain.errors import PlaybackError
from dashboard.app.domain.models import AudioPlayerPreferences, PlayableEpisode, PlayerState
from dashboard.services import podcasts, preferences

from .audio import AudioBackend

log = logging.getLogger("player")

SavePosition = Callable[[str, int, bool], Union[Any, Awaitable[Any]]]


def supabase_position_saver(supa: Any, user_id: str) -> SavePosition:
    """Persist positions into `podcast_episodes` for one user."""
    def save(episode_id: str, position: int, played: bool) -> bool:
        return podcasts.save_position(supa, user_id, episode_id, position, played=played)

    return save


def controller_for_user(backend: AudioBackend, supa: Any, user_id: str, **kwargs: Any) -> "PlaybackController":
    """Controller using the user's skip and speed preferences, saving to Supabase."""
    prefs = preferences.to_domain(preferences.load_preferences(supa, user_id))
    return PlaybackController(
        backend,
        supabase_position_saver(supa, user_id),
        preferences=prefs.audio_player,
        **kwargs,
    )


class PlaybackController:
    def __init__(
        self,
        backend: AudioBackend,
        save_position: SavePosition,
        *,
        preferences: Optional[AudioPlayerPreferences] = None,
        save_interval: float = settings.POSITION_SAVE_INTERVAL_SECONDS,
    ) -> None:
        prefs = preferences or AudioPlayerPreferences(
            forward_skip_seconds=settings.DEFAULT_FORWARD_SKIP_SECONDS,
            backward_skip_seconds=settings.DEFAULT_BACKWARD_SKIP_SECONDS,
        )
        self._backend = backend
        self._save_position = save_position
        self._save_interval = save_interval
        self._autosave: Optional[asyncio.Task[None]] = None

        self.state = PlayerState.IDLE
        self.is_loading = False
        self.current_episode: Optional[PlayableEpisode] = None
        self.playback_rate = prefs.playback_speed
        self.forward_skip_seconds = prefs.forward_skip_seconds
        self.backward_skip_seconds = prefs.backward_skip_seconds

    # ---------- read-only views ----------

    @property
    def is_playing(self) -> bool:
        return self.state == PlayerState.PLAYING

    @property
    def position(self) -> float:
        if self.current_episode is None:
            return 0.0
        return self._backend.current_time

    @property
    def duration(self) -> Optional[float]:
        if self.current_episode is None:
            return None
        known = self._backend.duration
        if known is not None and known > 0 and math.isfinite(known):
            return known
        return float(self.current_episode.duration) if self.current_episode.duration > 0 else None

    @property
    def autosave_running(self) -> bool:
        return self._autosave is not None and not self._autosave.done()

    # ---------- state + timer ----------

    def _set_state(self, state: PlayerState) -> None:
        previous, self.state = self.state, state
        if state == PlayerState.PLAYING and previous != PlayerState.PLAYING:
            self._start_autosave()
        elif state != PlayerState.PLAYING:
            self._stop_autosave()

    def _start_autosave(self) -> None:
        self._stop_autosave()
        self._autosave = asyncio.create_task(self._autosave_loop(), name="player-autosave")

    def _stop_autosave(self) -> None:
        if self._autosave is not None:
            self._autosave.cancel()
            self._autosave = None

    async def _autosave_loop(self) -> None:
        while True:
            await asyncio.sleep(self._save_interval)
            await self._persist()

    async def _persist(self, *, played: bool = False) -> None:
        episode = self.current_episode
        if episode is None:
            return
        position = max(0, math.floor(self._backend.current_time))
        episode.play_position = position
        try:
            if inspect.iscoroutinefunction(self._save_position):
                await self._save_position(episode.id, position, played)
            else:
                await run_in_threadpool(self._save_position, episode.id, position, played)
        except Exception:
            log.exception("player.save_fail episode=%s position=%s", episode.id, position)

    async def _start(self) -> bool:
        try:
            await self._backend.play()
        except PlaybackError as exc:
            log.error("player.play_fail episode=%s error=%s", self._episode_id, exc)
            self.is_loading = False
            self._set_state(PlayerState.PAUSED)
            return False
        self._set_state(PlayerState.PLAYING)
        return True

    @property
    def _episode_id(self) -> Optional[str]:
        return self.current_episode.id if self.current_episode else None

    # ---------- transport ----------

    async def play(self, episode: PlayableEpisode) -> bool:
        """Play `episode`, resuming instead when it is already loaded."""
        if self.current_episode is not None and self.current_episode.id == episode.id:
            if self.is_playing:
                return True
            return await self.resume()

        if self.current_episode is not None:
            await self._persist()
            self._backend.pause()

        self.current_episode = episode
        self.is_loading = True
        self._set_state(PlayerState.LOADING)
        self._backend.load(episode.audio_url)
        if episode.play_position > 0:
            self._backend.seek(episode.play_position)
        self._backend.set_rate(self.playback_rate)
        log.info("player.load episode=%s position=%s", episode.id, episode.play_position)
        return await self._start()

    async def pause(self) -> None:
        if not self.is_playing:
            return
        self._backend.pause()
        self.is_loading = False
        self._set_state(PlayerState.PAUSED)
        await self._persist()

    async def resume(self) -> bool:
        if self.current_episode is None or self.is_playing:
            return False
        self.is_loading = True
        return await self._start()

    async def toggle(self) -> None:
        if self.is_playing:
            await self.pause()
        else:
            await self.resume()

    async def stop(self) -> None:
        if self.current_episode is None:
            return
        self._stop_autosave()
        await self._persist()
        self._backend.pause()
        self._backend.unload()
        self.current_episode = None
        self.is_loading = False
        self._set_state(PlayerState.IDLE)

    def clamp(self, target: float) -> float:
        """Clamp a position to [0, duration]; only the lower bound applies while duration is unknown."""
        position = max(0.0, float(target))
        duration = self.duration
        if duration is not None:
            position = min(position, duration)
        return position

    def seek(self, target: float) -> float:
        if self.current_episode is None:
            return 0.0
        position = self.clamp(target)
        self.is_loading = True
        self._backend.seek(position)
        return position

    def skip_forward(self, seconds: Optional[float] = None) -> float:
        step = self.forward_skip_seconds if seconds is None else seconds
        return self.seek(self.position + step)

    def skip_backward(self, seconds: Optional[float] = None) -> float:
        step = self.backward_skip_seconds if seconds is None else seconds
        return self.seek(self.position - step)

    def set_playback_rate(self, rate: float) -> None:
        if rate <= 0:
            raise ValueError("Playback rate must be positive")
        self.playback_rate = rate
        if self.current_episode is not None:
            self._backend.set_rate(rate)

    # ---------- backend signals ----------

    def handle_waiting(self) -> None:
        self.is_loading = True

    def handle_can_play(self) -> None:
        self.is_loading = False

    async def handle_ended(self) -> None:
        self.is_loading = False
        self._set_state(PlayerState.PAUSED)
        await self._persist(played=True)

    async def close(self) -> None:
        self._stop_autosave()
        if self.current_episode is not None:
            await self._persist()
