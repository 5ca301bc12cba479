"""Routes announcement text to the injected sink and sequences delayed follow-ups."""

from __future__ import annotations

import asyncio
from collections import deque
import logging
from typing import Callable

logger = logging.getLogger(__name__)

AnnouncementSink = Callable[[str], None]
TextFormatter = Callable[[str], str]


class Announcer:
    """Emits announcement content; the delivery mechanism belongs to the sink."""

    def __init__(self, sink: AnnouncementSink, formatter: TextFormatter | None = None) -> None:
        self._sink = sink
        self._formatter = formatter
        self._pending: set[asyncio.Task[None]] = set()

    def announce(self, text: str) -> None:
        if not text:
            return
        content = self._formatter(text) if self._formatter else text
        try:
            self._sink(content)
        except Exception:
            logger.exception("Announcement sink failed for %r", content)

    def announce_all(self, texts: list[str]) -> None:
        for text in texts:
            self.announce(text)

    def announce_later(self, texts: list[str], delay_seconds: float) -> asyncio.Task[None] | None:
        """Speak ``texts`` after a delay. Must be called from the session's event loop."""
        if not texts:
            return None
        task = asyncio.get_running_loop().create_task(self._deliver_later(list(texts), delay_seconds))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def cancel_pending(self) -> None:
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()

    def has_pending(self) -> bool:
        return any(not task.done() for task in self._pending)

    async def _deliver_later(self, texts: list[str], delay_seconds: float) -> None:
        await asyncio.sleep(delay_seconds)
        self.announce_all(texts)


class BufferedAnnouncementSink:
    """Sink that queues announcements until a client drains them."""

    def __init__(self, max_items: int = 200) -> None:
        self._items: deque[str] = deque(maxlen=max_items)

    def __call__(self, text: str) -> None:
        self._items.append(text)

    def drain(self) -> list[str]:
        items = list(self._items)
        self._items.clear()
        return items

    def peek(self) -> list[str]:
        return list(self._items)
