"""Reaction point for integrity violations reported by an external monitor."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import logging
from typing import Callable

from exam_app.constants import speech_constants as speech
from exam_app.constants.exam_constants import EXIT_WARNING_DISPLAY_SECONDS
from exam_app.core.models import SecurityViolation, SessionState, ViolationSeverity

logger = logging.getLogger(__name__)


class SecurityViolationReactor:
    """Warns the student without touching questions, answers or the clock."""

    def __init__(
        self,
        state: SessionState,
        announce: Callable[[str], None],
        display_seconds: float = EXIT_WARNING_DISPLAY_SECONDS,
    ) -> None:
        self._state = state
        self._announce = announce
        self._display_seconds = display_seconds
        self._violations: list[SecurityViolation] = []
        self._clear_task: asyncio.Task[None] | None = None
        self._closed = False

    def report_violation(
        self,
        description: str = "Attempted to leave the exam",
        severity: ViolationSeverity = ViolationSeverity.WARNING,
    ) -> bool:
        """Handle one violation. Returns False once the session is completed or closed."""
        if self._state.is_completed or self._closed:
            logger.debug("Ignoring violation on a finished session: %s", description)
            return False

        violation = SecurityViolation(
            description=description, severity=severity, occurred_at=datetime.now(timezone.utc)
        )
        self._violations.append(violation)
        self._state.violation_count += 1
        logger.warning("%s security violation: %s", severity.name, description)

        self._announce(speech.SECURITY_VIOLATION)
        self._state.exit_warning_visible = True
        self._schedule_clear()
        return True

    def violations(self) -> list[SecurityViolation]:
        return list(self._violations)

    def dismiss_warning(self) -> None:
        self._cancel_clear()
        self._state.exit_warning_visible = False

    def cancel(self) -> None:
        """Stop the pending clear and refuse further reports."""
        self._closed = True
        self._cancel_clear()

    def _schedule_clear(self) -> None:
        self._cancel_clear()
        self._clear_task = asyncio.get_running_loop().create_task(self._clear_after_delay())

    def _cancel_clear(self) -> None:
        if self._clear_task is not None and not self._clear_task.done():
            self._clear_task.cancel()
        self._clear_task = None

    async def _clear_after_delay(self) -> None:
        await asyncio.sleep(self._display_seconds)
        self._state.exit_warning_visible = False
