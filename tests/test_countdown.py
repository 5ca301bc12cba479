import asyncio

import pytest

from exam_app.constants import speech_constants as speech
from exam_app.core.models import SessionState
from exam_app.core.services.countdown import CountdownController, CountdownStatus, threshold_notices


def _run_to_end(duration_seconds):
    async def scenario():
        state = SessionState()
        notices = []
        expirations = []
        controller = CountdownController(
            state, notices.append, lambda: expirations.append(True), tick_interval_seconds=0
        )
        await controller.start(duration_seconds)
        return state, notices, expirations, controller.status

    return asyncio.run(scenario())


def test_threshold_notices():
    assert threshold_notices(3600) == (["You have 60 minutes remaining."], False)
    assert threshold_notices(1800) == (["You have 30 minutes remaining."], False)
    assert threshold_notices(600) == ([speech.TEN_MINUTE_WARNING], True)
    assert threshold_notices(300) == ([speech.FIVE_MINUTE_WARNING], True)
    assert threshold_notices(60) == ([speech.CRITICAL_WARNING], True)
    assert threshold_notices(599) == ([], False)
    assert threshold_notices(0) == ([], False)


def test_one_minute_exam_emits_critical_warning_then_expires():
    state, notices, expirations, status = _run_to_end(60)

    assert notices == [speech.CRITICAL_WARNING, speech.TIME_UP]
    assert expirations == [True]
    assert status is CountdownStatus.EXPIRED
    assert state.remaining_seconds == 0
    assert state.timer_warning_visible


def test_fifteen_minute_exam_emits_each_warning_once():
    _, notices, expirations, _ = _run_to_end(15 * 60)

    assert notices == [
        speech.TEN_MINUTE_WARNING,
        speech.FIVE_MINUTE_WARNING,
        speech.CRITICAL_WARNING,
        speech.TIME_UP,
    ]
    assert expirations == [True]


def test_cancel_stops_ticks():
    async def scenario():
        state = SessionState()
        notices = []
        controller = CountdownController(state, notices.append, lambda: None, tick_interval_seconds=0)
        controller.start(120)
        for _ in range(5):
            await asyncio.sleep(0)
        controller.cancel()
        remaining = state.remaining_seconds
        for _ in range(10):
            await asyncio.sleep(0)
        controller.cancel()
        return state, notices, controller.status, remaining

    state, notices, status, remaining = asyncio.run(scenario())

    assert status is CountdownStatus.CANCELLED
    assert 0 < remaining < 120
    assert state.remaining_seconds == remaining
    assert speech.TIME_UP not in notices


def test_completed_session_is_never_expired():
    async def scenario():
        state = SessionState()
        expirations = []
        controller = CountdownController(
            state, lambda _text: None, lambda: expirations.append(True), tick_interval_seconds=0
        )
        task = controller.start(5)
        state.is_completed = True
        await task
        return state, expirations

    state, expirations = asyncio.run(scenario())

    assert expirations == []
    assert state.remaining_seconds == 5


def test_start_twice_is_rejected():
    async def scenario():
        controller = CountdownController(SessionState(), lambda _text: None, lambda: None)
        controller.start(10)
        try:
            with pytest.raises(RuntimeError):
                controller.start(10)
        finally:
            controller.cancel()

    asyncio.run(scenario())
