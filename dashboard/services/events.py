from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

Subscriber = Callable[[str], None]


class EventChannel:
    """Fan-out of "data changed" notifications for one entity type.

    Subscribers receive the id of the user whose data changed.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def emit(self, user_id: str) -> None:
        for callback in list(self._subscribers):
            try:
                callback(user_id)
            except Exception:
                logger.exception("events.subscriber_fail channel=%s", self.name)

    def __len__(self) -> int:
        return len(self._subscribers)


articles = EventChannel("articles")
links = EventChannel("links")
notes = EventChannel("notes")
books = EventChannel("books")
podcasts = EventChannel("podcasts")

CHANNELS = {channel.name: channel for channel in (articles, links, notes, books, podcasts)}
