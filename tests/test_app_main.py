import asyncio

import pytest

from app_main import _build_registry, _parse_args
from exam_app.server.api_server import StartPayload


def _first_announcements(tmp_path, *flags):
    (tmp_path / "math.txt").write_text("Q: What is **2+2**?\nCORRECT: 4\n", encoding="utf-8")
    registry = _build_registry(_parse_args(["--questions-dir", str(tmp_path), *flags]))

    async def scenario():
        session = await registry.create_session(StartPayload(exam_id="math", student_id="s-1"))
        announcements = registry.drain_announcements(session.session_id)
        await registry.dispose_all()
        return announcements

    return asyncio.run(scenario())


def test_speech_text_flag_prepares_announcements_for_speech(tmp_path):
    announcements = _first_announcements(tmp_path, "--speech-text")

    assert "Question 1 of 1: What is 2 plus 2?" in announcements
    assert not any("**" in text for text in announcements)


def test_announcements_keep_markup_without_speech_text_flag(tmp_path):
    announcements = _first_announcements(tmp_path)

    assert "Question 1 of 1: What is **2+2**?" in announcements


@pytest.mark.parametrize(("argv", "expected"), [([], False), (["--speech-text"], True)])
def test_speech_text_flag_defaults_off(argv, expected):
    assert _parse_args(argv).speech_text is expected
