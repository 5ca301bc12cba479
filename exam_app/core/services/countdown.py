"""Single ticking clock that drives timed warnings and auto-submission."""

from __future__ import annotations

import asyncio
from enum import Enum, auto
import logging
from typing import Callable

from exam_app.constants import speech_constants as speech
from exam_app.constants.exam_constants import (
    CRITICAL_WARNING_SECONDS,
    FIVE_MINUTE_WARNING_SECONDS,
    PERIODIC_NOTICE_INTERVAL_SECONDS,
    TEN_MINUTE_WARNING_SECONDS,
    TICK_INTERVAL_SECONDS,
)
from exam_app.core.models import SessionState

logger = logging.getLogger(__name__)

_WARNINGS = {
    TEN_MINUTE_WARNING_SECONDS: speech.TEN_MINUTE_WARNING,
    FIVE_MINUTE_WARNING_SECONDS: speech.FIVE_MINUTE_WARNING,
    CRITICAL_WARNING_SECONDS: speech.CRITICAL_WARNING,
}


class CountdownStatus(Enum):
    IDLE = auto()
    RUNNING = auto()
    EXPIRED = auto()
    CANCELLED = auto()


def threshold_notices(remaining_seconds: int) -> tuple[list[str], bool]:
    """Return the notices due at ``remaining_seconds`` and whether a warning is among them."""
    notices: list[str] = []
    if remaining_seconds > 0 and remaining_seconds % PERIODIC_NOTICE_INTERVAL_SECONDS == 0:
        notices.append(speech.PERIODIC_TIME_TEMPLATE.format(minutes=remaining_seconds // 60))
    warning = _WARNINGS.get(remaining_seconds)
    if warning is not None:
        notices.append(warning)
    return notices, warning is not None


class CountdownController:
    """Idle -> Running -> Expired | Cancelled. Sole writer of ``remaining_seconds``."""

    def __init__(
        self,
        state: SessionState,
        announce: Callable[[str], None],
        on_expired: Callable[[], object],
        tick_interval_seconds: float = TICK_INTERVAL_SECONDS,
    ) -> None:
        self._state = state
        self._announce = announce
        self._on_expired = on_expired
        self._tick_interval = tick_interval_seconds
        self._status = CountdownStatus.IDLE
        self._task: asyncio.Task[None] | None = None

    @property
    def status(self) -> CountdownStatus:
        return self._status

    def start(self, duration_seconds: int) -> asyncio.Task[None]:
        if self._status is not CountdownStatus.IDLE:
            raise RuntimeError(f"Countdown cannot start from state {self._status.name}.")
        self._state.remaining_seconds = max(0, duration_seconds)
        self._status = CountdownStatus.RUNNING
        logger.info("Countdown started with %d seconds", self._state.remaining_seconds)
        if self._state.remaining_seconds > 0:
            self._emit_notices(self._state.remaining_seconds)
        self._task = asyncio.get_running_loop().create_task(self._run(), name="exam-countdown")
        return self._task

    def cancel(self) -> None:
        """Stop the clock. No tick fires afterwards. Safe to call repeatedly."""
        if self._status not in (CountdownStatus.IDLE, CountdownStatus.RUNNING):
            return
        self._status = CountdownStatus.CANCELLED
        logger.debug("Countdown cancelled at %d seconds", self._state.remaining_seconds)
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _run(self) -> None:
        while self._state.remaining_seconds > 0:
            await asyncio.sleep(self._tick_interval)
            if self._status is not CountdownStatus.RUNNING or self._state.is_completed:
                return
            self._state.remaining_seconds = max(0, self._state.remaining_seconds - 1)
            self._emit_notices(self._state.remaining_seconds)

        if self._status is CountdownStatus.RUNNING and not self._state.is_completed:
            self._expire()

    def _emit_notices(self, remaining_seconds: int) -> None:
        notices, is_warning = threshold_notices(remaining_seconds)
        if is_warning:
            self._state.timer_warning_visible = True
        for notice in notices:
            logger.info("Timer notice at %d seconds: %s", remaining_seconds, notice)
            self._announce(notice)

    def _expire(self) -> None:
        self._status = CountdownStatus.EXPIRED
        logger.info("Countdown expired")
        self._announce(speech.TIME_UP)
        self._on_expired()
