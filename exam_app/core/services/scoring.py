"""Grades a submitted exam, persists the attempt once and runs the enhancement pass.

Pipeline order:
    1. grade every question with its type-specific strategy
    2. aggregate awarded and possible points
    3. skip persistence when the student already has an attempt for the exam
    4. save the attempt record
    5. re-check short answers with the stricter enhancement threshold and
       update the stored record if the score went up
    6. hand the final (score, total_points) back to the caller

Point awards are integers. Similarity-based partial credit is floored.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import math
from typing import Callable

from exam_app.constants import speech_constants as speech
from exam_app.constants.exam_constants import ENHANCEMENT_SIMILARITY_THRESHOLD, SIMILARITY_THRESHOLD
from exam_app.core.errors import PersistenceFailure, ScoringCollaboratorFailure
from exam_app.core.models import (
    ExamAttemptRecord,
    Question,
    QuestionAttempt,
    QuestionType,
    ScoreResult,
    StudentIdentity,
    is_blank,
)
from exam_app.core.services.attempt_repository import AttemptRepository
from exam_app.core.services.similarity import SimilarityScorer

logger = logging.getLogger(__name__)

_SIMILARITY_TYPES = frozenset({QuestionType.SHORT_ANSWER.value, QuestionType.FILL_IN_THE_BLANK.value})
_ENHANCED_TYPES = frozenset({QuestionType.SHORT_ANSWER.value})


@dataclass(slots=True)
class SubmissionContext:
    """Everything the pipeline needs about one submission."""

    exam_id: str
    title: str
    subject: str
    student: StudentIdentity
    questions: list[Question]
    answers: dict[str, str]


def _matches_exactly(answer: str, correct_answer: str) -> bool:
    return answer.casefold() == correct_answer.casefold()


def _contains_either_way(answer: str, correct_answer: str) -> bool:
    answer_folded = answer.casefold()
    correct_folded = correct_answer.casefold()
    return answer_folded in correct_folded or correct_folded in answer_folded


class ScoringPipeline:
    """Turns a question list plus answers into a graded, persisted attempt."""

    def __init__(
        self,
        scorer: SimilarityScorer,
        repository: AttemptRepository,
        announce: Callable[[str], None] | None = None,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
        enhancement_threshold: float = ENHANCEMENT_SIMILARITY_THRESHOLD,
    ) -> None:
        self._scorer = scorer
        self._repository = repository
        self._announce = announce or (lambda _text: None)
        self._similarity_threshold = similarity_threshold
        self._enhancement_threshold = enhancement_threshold

    async def run(self, context: SubmissionContext) -> ScoreResult:
        attempts = await self.grade_all(context.questions, context.answers)
        score = sum(attempt.awarded_points for attempt in attempts)
        total_points = sum(attempt.point_value for attempt in attempts)
        logger.info(
            "Graded exam %s for student %s: %d/%d",
            context.exam_id, context.student.student_id, score, total_points,
        )

        if await self._already_submitted(context):
            logger.info(
                "Student %s already submitted exam %s; skipping record creation",
                context.student.student_id, context.exam_id,
            )
            self._announce(speech.ALREADY_SUBMITTED)
            return ScoreResult(score=score, total_points=total_points, already_submitted=True)

        record = self.build_record(context, attempts, score, total_points)
        try:
            record.record_id = await self._persist(self._repository.save_attempt, record)
        except PersistenceFailure:
            logger.error("Failed to save attempt for exam %s", context.exam_id, exc_info=True)
            self._announce(speech.SAVE_FAILED)
            return ScoreResult(score=score, total_points=total_points)

        await self._mark_completed(context)

        final_score = score
        if await self.enhance(record.question_attempts):
            final_score = sum(attempt.awarded_points for attempt in record.question_attempts)
        if final_score != score:
            logger.info("Updating attempt %s with enhanced score %d (was %d)", record.record_id, final_score, score)
            record.score = final_score
            try:
                await self._persist(self._repository.update_attempt, record)
            except PersistenceFailure:
                logger.error("Failed to update attempt %s", record.record_id, exc_info=True)

        if final_score > score:
            self._announce(speech.SUBMITTED_WITH_BONUS_TEMPLATE.format(bonus=final_score - score))
        else:
            self._announce(speech.SUBMITTED)
        return ScoreResult(
            score=final_score,
            total_points=total_points,
            record_id=record.record_id,
            persisted=True,
            enhanced=final_score != score,
        )

    # --- Step 1: grading ---

    async def grade_all(self, questions: list[Question], answers: dict[str, str]) -> list[QuestionAttempt]:
        return [await self.grade_question(question, answers.get(question.id) or "") for question in questions]

    async def grade_question(self, question: Question, answer: str) -> QuestionAttempt:
        points = question.point_value
        if question.type in _SIMILARITY_TYPES:
            is_correct, awarded = await self._grade_by_similarity(question, answer, points)
        else:
            is_correct = _matches_exactly(answer, question.correct_answer)
            awarded = points if is_correct else 0
        logger.debug(
            "Question %s (%s): answer=%r correct=%s awarded=%d/%d",
            question.id, question.type, answer, is_correct, awarded, points,
        )
        return QuestionAttempt(
            question_id=question.id,
            question_text=question.text,
            correct_answer=question.correct_answer,
            student_answer=answer,
            is_correct=is_correct,
            type=question.type,
            options=question.options,
            point_value=points,
            awarded_points=awarded,
        )

    async def _grade_by_similarity(self, question: Question, answer: str, points: int) -> tuple[bool, int]:
        if answer and question.correct_answer:
            try:
                similarity = await self.similarity(answer, question.correct_answer)
            except ScoringCollaboratorFailure:
                logger.warning("Similarity scoring failed for question %s; using containment", question.id, exc_info=True)
            else:
                if similarity >= self._similarity_threshold:
                    return True, points
                return False, math.floor(similarity * points)
        is_correct = _contains_either_way(answer, question.correct_answer)
        return is_correct, points if is_correct else 0

    async def similarity(self, student_text: str, reference_text: str) -> float:
        """Ask the scorer for a similarity, clamped to [0, 1]."""
        try:
            value = float(await self._scorer.similarity(student_text, reference_text))
        except Exception as exc:
            raise ScoringCollaboratorFailure(f"Similarity scorer failed: {exc}") from exc
        if math.isnan(value):
            raise ScoringCollaboratorFailure("Similarity scorer returned NaN.")
        return min(1.0, max(0.0, value))

    # --- Step 4: record ---

    @staticmethod
    def build_record(
        context: SubmissionContext,
        attempts: list[QuestionAttempt],
        score: int,
        total_points: int,
    ) -> ExamAttemptRecord:
        answered = sum(1 for question in context.questions if not is_blank(context.answers.get(question.id)))
        return ExamAttemptRecord(
            exam_id=context.exam_id,
            title=context.title,
            subject=context.subject,
            submitted_at=datetime.now(timezone.utc),
            score=score,
            total_points=total_points,
            answered_count=answered,
            total_questions=len(context.questions),
            question_attempts=attempts,
            student_id=context.student.student_id,
            student_name=context.student.display_name,
        )

    # --- Step 5: enhancement ---

    async def enhance(self, attempts: list[QuestionAttempt]) -> bool:
        """Re-grade short answers with the stricter threshold. Only ever raises a grade."""
        changed = False
        for attempt in attempts:
            if attempt.type not in _ENHANCED_TYPES or attempt.is_correct or is_blank(attempt.student_answer):
                continue
            try:
                similarity = await self.similarity(attempt.student_answer, attempt.correct_answer)
            except ScoringCollaboratorFailure:
                logger.warning("Enhancement scoring failed for question %s", attempt.question_id, exc_info=True)
                continue
            if similarity >= self._enhancement_threshold:
                attempt.is_correct = True
                attempt.awarded_points = max(attempt.awarded_points, attempt.point_value)
                changed = True
        return changed

    # --- Persistence helpers ---

    async def _already_submitted(self, context: SubmissionContext) -> bool:
        try:
            return await self._persist(
                self._repository.has_attempt, context.student.student_id, context.exam_id
            )
        except PersistenceFailure:
            logger.warning(
                "Could not check previous attempts for exam %s; treating as first submission",
                context.exam_id, exc_info=True,
            )
            return False

    async def _mark_completed(self, context: SubmissionContext) -> None:
        try:
            await self._persist(
                self._repository.mark_exam_completed, context.exam_id, context.student.student_id
            )
        except PersistenceFailure:
            logger.error("Failed to mark exam %s as completed", context.exam_id, exc_info=True)

    @staticmethod
    async def _persist(operation, *args):
        try:
            return await operation(*args)
        except PersistenceFailure:
            raise
        except Exception as exc:
            raise PersistenceFailure(f"{getattr(operation, '__name__', 'operation')} failed: {exc}") from exc
