"""FastAPI server that exposes exam sessions to browser and speech clients."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
import logging
import time
from typing import Callable

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field
import uvicorn

from exam_app.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from exam_app.constants.exam_constants import DEFAULT_SUBJECT
from exam_app.constants.network_constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    FINISHED_SESSION_RETENTION_SECONDS,
)
from exam_app.core.errors import NotFound, SourceUnavailable
from exam_app.core.exam_session import ExamSession
from exam_app.core.models import (
    NavigationAction,
    NavigationResult,
    Question,
    ScoreResult,
    StudentIdentity,
    SubmitMode,
    ViolationSeverity,
)
from exam_app.core.services.announcer import BufferedAnnouncementSink
from exam_app.core.services.attempt_repository import AttemptRepository, InMemoryAttemptRepository
from exam_app.core.services.navigation import focus_action_for_key, focus_action_for_swipe
from exam_app.core.services.question_loader import QuestionSource
from exam_app.core.services.similarity import SimilarityScorer, TextSimilarityScorer
from exam_app.core.settings import SessionSettings

logger = logging.getLogger(__name__)


class StartPayload(BaseModel):
    """Payload schema for starting an exam session."""

    exam_id: str = Field(min_length=1)
    student_id: str = Field(min_length=1)
    display_name: str = ""
    title: str | None = None
    subject: str = DEFAULT_SUBJECT
    duration_minutes: int | None = Field(default=None, ge=0)


class AnswerPayload(BaseModel):
    value: str


class NavigatePayload(BaseModel):
    """Either an explicit action, a key name (TAB, SHIFT_TAB, ENTER) or a horizontal swipe."""

    action: NavigationAction | None = None
    key: str | None = None
    swipe_distance_px: float | None = None


class SubmitPayload(BaseModel):
    mode: SubmitMode = SubmitMode.MANUAL


class ViolationPayload(BaseModel):
    description: str = "Attempted to leave the exam"
    severity: ViolationSeverity = ViolationSeverity.WARNING


@dataclass(slots=True)
class _RegisteredSession:
    session: ExamSession
    sink: BufferedAnnouncementSink
    result_delivered_at: float | None = None


class SessionRegistry:
    """Owns the running exam sessions and the collaborators they share."""

    def __init__(
        self,
        question_source: QuestionSource,
        repository: AttemptRepository | None = None,
        similarity_scorer: SimilarityScorer | None = None,
        settings_factory: Callable[[], SessionSettings] = SessionSettings,
        retention_seconds: float = FINISHED_SESSION_RETENTION_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._question_source = question_source
        self._repository = repository if repository is not None else InMemoryAttemptRepository()
        self._scorer = similarity_scorer or TextSimilarityScorer()
        self._settings_factory = settings_factory
        self._retention_seconds = retention_seconds
        self._clock = clock
        self._sessions: dict[str, _RegisteredSession] = {}

    @property
    def repository(self) -> AttemptRepository:
        return self._repository

    async def create_session(self, payload: StartPayload) -> ExamSession:
        self.evict_finished()
        sink = BufferedAnnouncementSink()
        session = ExamSession(
            student=StudentIdentity(payload.student_id, payload.display_name or payload.student_id),
            question_source=self._question_source,
            repository=self._repository,
            similarity_scorer=self._scorer,
            announcement_sink=sink,
            settings=self._settings_factory(),
        )
        self._sessions[session.session_id] = _RegisteredSession(session, sink)
        try:
            await session.start(
                payload.exam_id,
                title=payload.title,
                subject=payload.subject,
                duration_minutes=payload.duration_minutes,
            )
        except Exception:
            self.remove(session.session_id)
            raise
        logger.info("Registered session %s for exam %s", session.session_id, payload.exam_id)
        return session

    def get(self, session_id: str) -> ExamSession:
        return self._entry(session_id).session

    def drain_announcements(self, session_id: str) -> list[str]:
        return self._entry(session_id).sink.drain()

    def mark_result_delivered(self, session_id: str) -> None:
        entry = self._sessions.get(session_id)
        if entry is not None and entry.result_delivered_at is None:
            entry.result_delivered_at = self._clock()

    def evict_finished(self) -> None:
        """Drop graded sessions whose result was delivered longer than the retention window ago."""
        now = self._clock()
        expired = [
            session_id
            for session_id, entry in self._sessions.items()
            if entry.result_delivered_at is not None
            and now - entry.result_delivered_at >= self._retention_seconds
        ]
        for session_id in expired:
            logger.info("Evicting finished session %s", session_id)
            self.remove(session_id)

    def remove(self, session_id: str) -> None:
        entry = self._sessions.pop(session_id, None)
        if entry is not None:
            entry.session.dispose()

    async def dispose_all(self) -> None:
        """Dispose every session, then let submissions that already started finish saving."""
        sessions = [entry.session for entry in self._sessions.values()]
        self._sessions.clear()
        for session in sessions:
            session.dispose()
        await asyncio.gather(*(session.finish_submission() for session in sessions))

    def session_ids(self) -> list[str]:
        return list(self._sessions)

    def _entry(self, session_id: str) -> _RegisteredSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise KeyError(f"Unknown session {session_id}") from None


def _question_payload(question: Question | None) -> dict[str, object] | None:
    if question is None:
        return None
    return {
        "id": question.id,
        "number": question.number,
        "text": question.text,
        "type": question.type,
        "options": list(question.options) if question.options else [],
        "points": question.point_value,
    }


def _navigation_payload(result: NavigationResult) -> dict[str, object]:
    return {
        "signal": result.signal.value,
        "is_boundary": result.is_boundary,
        "announcements": list(result.announcements),
        "followups": list(result.followups),
    }


def _score_payload(result: ScoreResult) -> dict[str, object]:
    return {
        "score": result.score,
        "total_points": result.total_points,
        "record_id": result.record_id,
        "persisted": result.persisted,
        "already_submitted": result.already_submitted,
        "enhanced": result.enhanced,
    }


def _session_payload(session: ExamSession) -> dict[str, object]:
    payload = asdict(session.snapshot())
    payload["session_id"] = session.session_id
    payload["title"] = session.title
    payload["question"] = _question_payload(session.current_question)
    return payload


def create_api_app(registry: SessionRegistry) -> FastAPI:
    """Create a FastAPI application wired to the provided session registry."""

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        logger.info("Shutting down; disposing %d sessions", len(registry.session_ids()))
        await registry.dispose_all()

    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, lifespan=lifespan)

    @app.get("/")
    async def about() -> dict[str, object]:
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "license": APP_LICENSE,
            "about": APP_ABOUT_TEXT,
            "active_sessions": len(registry.session_ids()),
        }

    def session_dependency(session_id: str) -> ExamSession:
        try:
            return registry.get(session_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Unknown session {session_id}") from exc

    @app.post("/sessions", status_code=201)
    async def start_session(payload: StartPayload) -> dict[str, object]:
        try:
            session = await registry.create_session(payload)
        except NotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except SourceUnavailable as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return _session_payload(session)

    @app.get("/sessions/{session_id}")
    async def get_session(session: ExamSession = Depends(session_dependency)) -> dict[str, object]:
        return _session_payload(session)

    @app.post("/sessions/{session_id}/answer")
    async def select_answer(
        payload: AnswerPayload,
        session: ExamSession = Depends(session_dependency),
    ) -> dict[str, object]:
        return _navigation_payload(session.select_answer(payload.value))

    @app.post("/sessions/{session_id}/navigate")
    async def navigate(
        payload: NavigatePayload,
        session: ExamSession = Depends(session_dependency),
    ) -> dict[str, object]:
        if payload.action is not None:
            action = payload.action
        elif payload.key is not None:
            action = focus_action_for_key(payload.key)
            if action is None:
                raise HTTPException(status_code=422, detail=f"Unsupported key {payload.key!r}")
        elif payload.swipe_distance_px is not None:
            action = focus_action_for_swipe(payload.swipe_distance_px)
            if action is None:
                return {"signal": None, "is_boundary": False, "announcements": [], "followups": []}
        else:
            raise HTTPException(status_code=422, detail="Provide an action, a key or a swipe distance.")
        return _navigation_payload(session.navigate(action))

    @app.post("/sessions/{session_id}/submit")
    async def submit(
        payload: SubmitPayload,
        session: ExamSession = Depends(session_dependency),
    ) -> dict[str, object]:
        result = await session.submit(payload.mode)
        if result is None:
            raise HTTPException(status_code=409, detail="Session was closed before it could be submitted.")
        registry.mark_result_delivered(session.session_id)
        return _score_payload(result)

    @app.post("/sessions/{session_id}/violations", status_code=202)
    async def report_violation(
        payload: ViolationPayload,
        session: ExamSession = Depends(session_dependency),
    ) -> dict[str, object]:
        accepted = session.report_violation(payload.description, payload.severity)
        return {"accepted": accepted, "violation_count": session.snapshot().violation_count}

    @app.get("/sessions/{session_id}/announcements")
    async def drain_announcements(session_id: str) -> dict[str, object]:
        try:
            return {"announcements": registry.drain_announcements(session_id)}
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Unknown session {session_id}") from exc

    @app.get("/sessions/{session_id}/result")
    async def get_result(session: ExamSession = Depends(session_dependency)) -> dict[str, object]:
        if session.result is None:
            raise HTTPException(status_code=404, detail="The exam has not been graded yet.")
        registry.mark_result_delivered(session.session_id)
        return _score_payload(session.result)

    @app.delete("/sessions/{session_id}", status_code=204)
    async def close_session(session: ExamSession = Depends(session_dependency)) -> None:
        registry.remove(session.session_id)

    return app


def run_api_server(
    registry: SessionRegistry,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API with uvicorn until interrupted."""
    app = create_api_app(registry)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
