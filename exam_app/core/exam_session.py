"""Facade owning every service of a single timed exam attempt."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable
from uuid import uuid4

from exam_app.constants import speech_constants as speech
from exam_app.constants.exam_constants import DEFAULT_SUBJECT
from exam_app.core.errors import NotFound, SourceUnavailable
from exam_app.core.models import (
    FocusKind,
    NavigationAction,
    NavigationResult,
    NavigationSignal,
    Question,
    ScoreResult,
    SecurityViolation,
    SessionSnapshot,
    SessionState,
    StudentIdentity,
    SubmitMode,
    ViolationSeverity,
    option_answer_value,
)
from exam_app.core.question_importer import load_fallback_questions
from exam_app.core.services.announcer import AnnouncementSink, Announcer, BufferedAnnouncementSink
from exam_app.core.services.answer_store import AnswerStore
from exam_app.core.services.attempt_repository import AttemptRepository, InMemoryAttemptRepository
from exam_app.core.services.countdown import CountdownController
from exam_app.core.services.navigation import Navigator, describe_question
from exam_app.core.services.question_loader import QuestionSetLoader, QuestionSource, order_questions
from exam_app.core.services.scoring import ScoringPipeline, SubmissionContext
from exam_app.core.services.security_reactor import SecurityViolationReactor
from exam_app.core.services.similarity import SimilarityScorer, TextSimilarityScorer
from exam_app.core.settings import SessionSettings
from exam_app.core.speech_text import prepare_for_speech

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[int, int], None]


class ExamSession:
    """Facade for exam services: loader, answers, countdown, navigation, security and scoring.

    All methods must be called from the event loop that runs the session.
    Submission is guarded by ``SessionState.is_completed``, which is set
    before the scoring pipeline first suspends, so a timer expiry racing a
    manual submit results in exactly one pipeline run.
    """

    def __init__(
        self,
        student: StudentIdentity,
        question_source: QuestionSource,
        repository: AttemptRepository | None = None,
        similarity_scorer: SimilarityScorer | None = None,
        announcement_sink: AnnouncementSink | None = None,
        on_complete: CompletionCallback | None = None,
        settings: SessionSettings | None = None,
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or uuid4().hex
        self._student = student
        self._settings = settings or SessionSettings()
        self._loader = QuestionSetLoader(question_source)
        self._repository = repository if repository is not None else InMemoryAttemptRepository()
        self._scorer = similarity_scorer or TextSimilarityScorer()
        self._on_complete = on_complete

        self._state = SessionState()
        self._answers = AnswerStore()
        self._announcer = Announcer(
            announcement_sink if announcement_sink is not None else BufferedAnnouncementSink(),
            prepare_for_speech if self._settings.prepare_speech else None,
        )
        self._countdown = CountdownController(
            self._state,
            self._announcer.announce,
            self._on_countdown_expired,
            self._settings.tick_interval_seconds,
        )
        self._security = SecurityViolationReactor(
            self._state, self._announcer.announce, self._settings.exit_warning_seconds
        )

        self._navigator: Navigator | None = None
        self._questions: list[Question] = []
        self._exam_id: str | None = None
        self._title = ""
        self._subject = DEFAULT_SUBJECT

        self._submission_task: asyncio.Task[ScoreResult] | None = None
        self._completed = asyncio.Event()
        self._result: ScoreResult | None = None
        self._completion_notified = False
        self._disposed = False

    # --- Read-only views ---

    @property
    def student(self) -> StudentIdentity:
        return self._student

    @property
    def exam_id(self) -> str | None:
        return self._exam_id

    @property
    def title(self) -> str:
        return self._title

    @property
    def questions(self) -> list[Question]:
        return list(self._questions)

    @property
    def current_question(self) -> Question | None:
        return self._navigator.current_question if self._navigator else None

    @property
    def is_started(self) -> bool:
        return self._navigator is not None

    @property
    def is_completed(self) -> bool:
        return self._state.is_completed

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def result(self) -> ScoreResult | None:
        return self._result

    def answers(self) -> dict[str, str]:
        return self._answers.snapshot()

    def snapshot(self) -> SessionSnapshot:
        state = self._state
        current = self.current_question
        return SessionSnapshot(
            exam_id=self._exam_id,
            question_count=len(self._questions),
            current_question_index=state.current_question_index,
            current_question_id=current.id if current else None,
            is_reviewing_unanswered=state.is_reviewing_unanswered,
            current_unanswered_index=state.current_unanswered_index,
            unanswered_question_ids=tuple(state.unanswered_snapshot),
            focused_element=state.focused_element,
            remaining_seconds=state.remaining_seconds,
            is_completed=state.is_completed,
            timer_warning_visible=state.timer_warning_visible,
            exit_warning_visible=state.exit_warning_visible,
            using_fallback_questions=state.using_fallback_questions,
            violation_count=state.violation_count,
            answered_count=self._answers.answered_count(self._questions),
        )

    # --- Lifecycle ---

    async def start(
        self,
        exam_id: str,
        *,
        title: str | None = None,
        subject: str = DEFAULT_SUBJECT,
        duration_minutes: int | None = None,
    ) -> list[Question]:
        """Load the ordered questions, announce the first one and start the clock.

        Raises ``NotFound`` when the exam has no questions. A question source
        failure degrades to the bundled practice set instead of failing.
        """
        if self._navigator is not None:
            raise RuntimeError("Exam session has already been started.")
        if self._disposed:
            raise RuntimeError("Exam session has been disposed.")

        self._exam_id = exam_id
        self._title = title or exam_id
        self._subject = subject
        try:
            questions = await self._loader.load(exam_id)
        except NotFound:
            logger.warning("No questions found for exam %s", exam_id)
            self._announcer.announce(speech.NO_QUESTIONS_MESSAGE)
            raise
        except SourceUnavailable as exc:
            if not self._settings.use_fallback_questions:
                raise
            logger.warning("Question source unavailable for exam %s (%s); using fallback questions", exam_id, exc)
            questions = order_questions(load_fallback_questions())
            self._state.using_fallback_questions = True
            self._announcer.announce(speech.FALLBACK_QUESTIONS_NOTICE)

        if self._disposed:
            logger.debug("Session %s disposed while loading questions", self.session_id)
            return list(questions)

        self._questions = list(questions)
        self._navigator = Navigator(self._state, self._questions)

        first = describe_question(self._questions[0], 0, len(self._questions))
        self._announcer.announce(speech.EXAM_LOADED_TEMPLATE.format(title=self._title))
        self._announcer.announce_all(first.announcements)
        self._announcer.announce_later(
            first.followups + [speech.NAVIGATION_HINT], self._settings.first_question_delay_seconds
        )

        minutes = self._settings.duration_minutes if duration_minutes is None else duration_minutes
        self._countdown.start(max(0, minutes) * 60)
        logger.info(
            "Started exam %s for student %s with %d questions",
            exam_id, self._student.student_id, len(self._questions),
        )
        return self.questions

    def dispose(self) -> None:
        """Release timers and pending announcements. Safe to call repeatedly.

        An already started submission keeps running to completion.
        """
        if self._disposed:
            return
        self._disposed = True
        self._countdown.cancel()
        self._announcer.cancel_pending()
        self._security.cancel()
        logger.debug("Disposed exam session %s", self.session_id)

    async def __aenter__(self) -> ExamSession:
        return self

    async def __aexit__(self, exc_type, exc, traceback) -> None:
        self.dispose()

    # --- Answers and navigation ---

    def select_answer(self, value: str) -> NavigationResult:
        if self._state.is_completed:
            return NavigationResult(NavigationSignal.SESSION_CLOSED)
        question = self._require_navigator().current_question
        self._answers.set(question.id, value)
        result = NavigationResult(
            NavigationSignal.ANSWER_SELECTED, [speech.ANSWER_SELECTED_TEMPLATE.format(answer=value)]
        )
        self._deliver(result)
        return result

    def navigate(self, action: NavigationAction | str) -> NavigationResult:
        if self._state.is_completed:
            return NavigationResult(NavigationSignal.SESSION_CLOSED)
        navigator = self._require_navigator()
        action = NavigationAction(action)

        if action is NavigationAction.ACTIVATE:
            return self._activate_focused()
        if action is NavigationAction.NEXT:
            result = navigator.advance()
        elif action is NavigationAction.PREVIOUS:
            result = navigator.retreat()
        elif action is NavigationAction.REVIEW_UNANSWERED:
            result = navigator.enter_review(self._answers.unanswered_questions(self._questions))
        elif action is NavigationAction.REVIEW_NEXT:
            result = navigator.review_advance()
        elif action is NavigationAction.REVIEW_PREVIOUS:
            result = navigator.review_retreat()
        elif action is NavigationAction.EXIT_REVIEW:
            result = navigator.exit_review()
        elif action is NavigationAction.FOCUS_NEXT:
            result = navigator.cycle_focus(1)
        else:
            result = navigator.cycle_focus(-1)
        self._deliver(result)
        return result

    def status_text(self) -> list[str]:
        answered = self._answers.answered_count(self._questions)
        unanswered = len(self._questions) - answered
        texts = [
            speech.STATUS_TEMPLATE.format(
                answered=answered,
                total=len(self._questions),
                minutes=self._state.remaining_seconds // 60,
            )
        ]
        if unanswered:
            texts.append(speech.UNANSWERED_REMAINING_TEMPLATE.format(count=unanswered))
        else:
            texts.append(speech.ALL_ANSWERED)
        return texts

    def _activate_focused(self) -> NavigationResult:
        navigator = self._require_navigator()
        target = navigator.focused_target()
        if target.kind is FocusKind.OPTION:
            option = navigator.current_question.options[target.option_index]
            return self.select_answer(option_answer_value(option))
        if target.kind is FocusKind.PREVIOUS:
            result = navigator.retreat()
        elif target.kind is FocusKind.NEXT:
            result = navigator.advance()
        elif target.kind is FocusKind.SUBMIT:
            result = NavigationResult(NavigationSignal.SUBMIT_REQUESTED, self.status_text())
        else:
            index = self._state.current_question_index
            result = describe_question(navigator.current_question, index, len(self._questions))
        self._deliver(result)
        return result

    def _deliver(self, result: NavigationResult) -> None:
        self._announcer.announce_all(result.announcements)
        self._announcer.announce_later(result.followups, self._settings.options_delay_seconds)

    def _require_navigator(self) -> Navigator:
        if self._navigator is None:
            raise RuntimeError("Exam session has not been started.")
        return self._navigator

    # --- Security ---

    def report_violation(
        self,
        description: str = "Attempted to leave the exam",
        severity: ViolationSeverity = ViolationSeverity.WARNING,
    ) -> bool:
        return self._security.report_violation(description, severity)

    def violations(self) -> list[SecurityViolation]:
        return self._security.violations()

    def dismiss_exit_warning(self) -> None:
        self._security.dismiss_warning()

    def dismiss_timer_warning(self) -> None:
        self._state.timer_warning_visible = False

    # --- Submission ---

    async def submit(self, mode: SubmitMode | str = SubmitMode.MANUAL) -> ScoreResult | None:
        """Grade and persist the attempt. Repeated calls share the first run's result."""
        task = self._begin_submission(SubmitMode(mode))
        if task is None:
            return self._result
        return await asyncio.shield(task)

    async def wait_for_completion(self) -> ScoreResult | None:
        await self._completed.wait()
        return self._result

    async def finish_submission(self) -> ScoreResult | None:
        """Wait for a started submission to run out. Returns at once when none was started."""
        if self._submission_task is not None:
            await asyncio.wait({self._submission_task})
        return self._result

    def _begin_submission(self, mode: SubmitMode) -> asyncio.Task[ScoreResult] | None:
        if self._submission_task is not None:
            logger.debug("Ignoring %s submit for session %s; already submitting", mode.value, self.session_id)
            return self._submission_task
        self._require_navigator()
        if self._disposed:
            logger.warning("Ignoring %s submit for disposed session %s", mode.value, self.session_id)
            return None

        # Everything up to create_task runs without suspension.
        self._state.is_completed = True
        self._countdown.cancel()
        self._announcer.cancel_pending()
        logger.info("Submitting exam %s for student %s (%s)", self._exam_id, self._student.student_id, mode.value)
        self._announcer.announce(speech.SUBMITTING)

        context = SubmissionContext(
            exam_id=self._exam_id or "",
            title=self._title,
            subject=self._subject,
            student=self._student,
            questions=list(self._questions),
            answers=self._answers.snapshot(),
        )
        task = asyncio.get_running_loop().create_task(
            self._run_pipeline(context), name=f"exam-submission-{self.session_id}"
        )
        task.add_done_callback(self._on_submission_done)
        self._submission_task = task
        return task

    async def _run_pipeline(self, context: SubmissionContext) -> ScoreResult:
        pipeline = ScoringPipeline(
            self._scorer,
            self._repository,
            self._announcer.announce,
            self._settings.similarity_threshold,
            self._settings.enhancement_threshold,
        )
        result = await pipeline.run(context)
        self._result = result
        self._announcer.announce(speech.SCORE_TEMPLATE.format(score=result.score, total=result.total_points))
        self._notify_complete(result)
        return result

    def _notify_complete(self, result: ScoreResult) -> None:
        if self._completion_notified:
            return
        self._completion_notified = True
        if self._on_complete is None:
            return
        try:
            self._on_complete(result.score, result.total_points)
        except Exception:
            logger.exception("Completion callback failed for session %s", self.session_id)

    def _on_submission_done(self, task: asyncio.Task[ScoreResult]) -> None:
        if task.cancelled():
            logger.warning("Submission for session %s was cancelled", self.session_id)
        elif task.exception() is not None:
            logger.error(
                "Submission for session %s failed", self.session_id, exc_info=task.exception()
            )
        self._completed.set()

    def _on_countdown_expired(self) -> None:
        if self._state.is_completed:
            return
        self._begin_submission(SubmitMode.TIMEOUT)
