"""Navigation and accessibility-focus state machine for an exam session.

Two mutually exclusive modes share one ``SessionState``:

* Normal: ``advance``/``retreat`` walk the ordered question list.
* ReviewingUnanswered: ``review_advance``/``review_retreat`` walk a
  snapshot of the questions that were unanswered when review began, and
  re-locate ``current_question_index`` on every step.

Independently, ``focused_element`` is a cursor over the current question's
accessibility elements: 0 is the question text, 1..N are its options and
N+1..N+3 are the previous, next and submit controls. Keyboard and swipe
input both end up in ``cycle_focus`` so they always agree.

Transitions never speak directly. They return a ``NavigationResult``
carrying the text to announce now and the follow-ups to announce after a
short delay.
"""

from __future__ import annotations

from exam_app.constants import speech_constants as speech
from exam_app.constants.exam_constants import CONTROL_SLOT_COUNT, MIN_SWIPE_DISTANCE_PX
from exam_app.core.models import (
    FocusKind,
    FocusTarget,
    NavigationAction,
    NavigationResult,
    NavigationSignal,
    Question,
    SessionState,
    option_display_text,
    option_letter,
)

_KEY_ACTIONS = {
    "TAB": NavigationAction.FOCUS_NEXT,
    "SHIFT_TAB": NavigationAction.FOCUS_PREVIOUS,
    "ENTER": NavigationAction.ACTIVATE,
}


def focus_action_for_key(key: str) -> NavigationAction | None:
    """Map a discrete key name to its navigation action."""
    return _KEY_ACTIONS.get(key.upper())


def focus_action_for_swipe(distance_px: float) -> NavigationAction | None:
    """Map a horizontal swipe to a focus move. Short drags are ignored."""
    if abs(distance_px) < MIN_SWIPE_DISTANCE_PX:
        return None
    return NavigationAction.FOCUS_NEXT if distance_px > 0 else NavigationAction.FOCUS_PREVIOUS


def describe_question(question: Question, index: int, total: int) -> NavigationResult:
    """Announcement for landing on a question: its text now, options or a hint later."""
    result = NavigationResult(
        signal=NavigationSignal.MOVED,
        announcements=[speech.QUESTION_TEMPLATE.format(number=index + 1, total=total, text=question.text)],
    )
    if question.options:
        result.followups.append(speech.OPTIONS_TEMPLATE.format(options=". ".join(question.options)))
    else:
        result.followups.append(speech.TYPE_HINTS.get(question.type, speech.DEFAULT_TYPE_HINT))
    return result


class Navigator:
    """Owns every transition of the question pointer and focus cursor."""

    def __init__(self, state: SessionState, questions: list[Question]) -> None:
        if not questions:
            raise ValueError("Navigation requires at least one question.")
        self._state = state
        self._questions = list(questions)
        self._index_by_id = {question.id: index for index, question in enumerate(self._questions)}

    @property
    def current_question(self) -> Question:
        return self._questions[self._state.current_question_index]

    @property
    def question_count(self) -> int:
        return len(self._questions)

    def element_count(self) -> int:
        """Question text + options + previous/next/submit controls."""
        return 1 + self.current_question.option_count + CONTROL_SLOT_COUNT

    # --- Normal mode ---

    def advance(self) -> NavigationResult:
        if self._state.is_reviewing_unanswered:
            return self.review_advance()
        if self._state.current_question_index >= len(self._questions) - 1:
            return NavigationResult(NavigationSignal.LAST_QUESTION, [speech.LAST_QUESTION_BOUNDARY])
        return self._move_to(self._state.current_question_index + 1)

    def retreat(self) -> NavigationResult:
        if self._state.is_reviewing_unanswered:
            return self.review_retreat()
        if self._state.current_question_index <= 0:
            return NavigationResult(NavigationSignal.FIRST_QUESTION, [speech.FIRST_QUESTION_BOUNDARY])
        return self._move_to(self._state.current_question_index - 1)

    # --- Review mode ---

    def enter_review(self, unanswered: list[Question]) -> NavigationResult:
        snapshot = [question.id for question in unanswered if question.id in self._index_by_id]
        if not snapshot:
            return NavigationResult(NavigationSignal.NOTHING_TO_REVIEW, [speech.REVIEW_NOTHING_UNANSWERED])

        self._state.is_reviewing_unanswered = True
        self._state.unanswered_snapshot = snapshot
        self._state.current_unanswered_index = 0
        index = self._relocate_to_snapshot_entry()
        question = self._questions[index]
        return NavigationResult(
            NavigationSignal.REVIEW_STARTED,
            [
                speech.REVIEW_STARTED_TEMPLATE.format(
                    number=index + 1,
                    total=len(self._questions),
                    remaining=len(snapshot),
                    text=question.text,
                )
            ],
        )

    def review_advance(self) -> NavigationResult:
        if not self._state.is_reviewing_unanswered:
            return NavigationResult(NavigationSignal.NOT_REVIEWING, [speech.NOT_REVIEWING])
        if self._state.current_unanswered_index >= len(self._state.unanswered_snapshot) - 1:
            return NavigationResult(NavigationSignal.LAST_UNANSWERED, [speech.REVIEW_LAST_BOUNDARY])
        self._state.current_unanswered_index += 1
        return self._review_step(speech.REVIEW_NEXT_TEMPLATE)

    def review_retreat(self) -> NavigationResult:
        if not self._state.is_reviewing_unanswered:
            return NavigationResult(NavigationSignal.NOT_REVIEWING, [speech.NOT_REVIEWING])
        if self._state.current_unanswered_index <= 0:
            return NavigationResult(NavigationSignal.FIRST_UNANSWERED, [speech.REVIEW_FIRST_BOUNDARY])
        self._state.current_unanswered_index -= 1
        return self._review_step(speech.REVIEW_PREVIOUS_TEMPLATE)

    def exit_review(self) -> NavigationResult:
        if not self._state.is_reviewing_unanswered:
            return NavigationResult(NavigationSignal.NOT_REVIEWING, [speech.NOT_REVIEWING])
        self._state.is_reviewing_unanswered = False
        self._state.current_unanswered_index = 0
        self._state.unanswered_snapshot = []
        return NavigationResult(NavigationSignal.REVIEW_EXITED, [speech.REVIEW_EXITED])

    # --- Accessibility focus ---

    def cycle_focus(self, direction: int) -> NavigationResult:
        """Move the focus cursor by ``direction`` steps, wrapping in both directions."""
        self._state.focused_element = (self._state.focused_element + direction) % self.element_count()
        return NavigationResult(NavigationSignal.FOCUS_MOVED, [self.describe_focus()])

    def focused_target(self) -> FocusTarget:
        focused = self._state.focused_element
        option_count = self.current_question.option_count
        if focused == 0:
            return FocusTarget(FocusKind.QUESTION)
        if focused <= option_count:
            return FocusTarget(FocusKind.OPTION, option_index=focused - 1)
        control = (FocusKind.PREVIOUS, FocusKind.NEXT, FocusKind.SUBMIT)
        return FocusTarget(control[focused - option_count - 1])

    def describe_focus(self) -> str:
        target = self.focused_target()
        question = self.current_question
        if target.kind is FocusKind.QUESTION:
            return speech.QUESTION_TEXT_TEMPLATE.format(text=question.text)
        if target.kind is FocusKind.OPTION:
            option = question.options[target.option_index]
            return speech.OPTION_TEMPLATE.format(
                letter=option_letter(target.option_index), text=option_display_text(option)
            )
        if target.kind is FocusKind.PREVIOUS:
            return speech.PREVIOUS_BUTTON
        if target.kind is FocusKind.NEXT:
            return speech.NEXT_BUTTON
        return speech.SUBMIT_BUTTON

    # --- Internals ---

    def _move_to(self, index: int) -> NavigationResult:
        self._state.current_question_index = index
        self._state.focused_element = 0
        return describe_question(self._questions[index], index, len(self._questions))

    def _relocate_to_snapshot_entry(self) -> int:
        question_id = self._state.unanswered_snapshot[self._state.current_unanswered_index]
        index = self._index_by_id[question_id]
        self._state.current_question_index = index
        self._state.focused_element = 0
        return index

    def _review_step(self, template: str) -> NavigationResult:
        index = self._relocate_to_snapshot_entry()
        return NavigationResult(
            NavigationSignal.MOVED,
            [
                template.format(
                    number=index + 1,
                    total=len(self._questions),
                    position=self._state.current_unanswered_index + 1,
                    count=len(self._state.unanswered_snapshot),
                    text=self._questions[index].text,
                )
            ],
        )
