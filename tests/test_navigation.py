import pytest

from exam_app.constants import speech_constants as speech
from exam_app.core.models import (
    FocusKind,
    NavigationAction,
    NavigationSignal,
    Question,
    QuestionType,
    SessionState,
)
from exam_app.core.services.navigation import (
    Navigator,
    describe_question,
    focus_action_for_key,
    focus_action_for_swipe,
)

QUESTIONS = [
    Question(
        id="mc",
        text="Capital of France?",
        correct_answer="A",
        type=QuestionType.MULTIPLE_CHOICE.value,
        options=("A. Paris", "B. Rome", "C. Berlin", "D. Madrid"),
        number=1,
    ),
    Question(id="sa", text="Define a stack.", type=QuestionType.SHORT_ANSWER.value, number=1),
    Question(
        id="tf",
        text="The sun is a star.",
        correct_answer="True",
        type=QuestionType.TRUE_FALSE.value,
        options=("True", "False"),
        number=2,
    ),
]

_DIRECTIONS = {NavigationAction.FOCUS_NEXT: 1, NavigationAction.FOCUS_PREVIOUS: -1}


def _navigator():
    state = SessionState()
    return state, Navigator(state, QUESTIONS)


def test_requires_questions():
    with pytest.raises(ValueError):
        Navigator(SessionState(), [])


def test_advance_announces_question_and_resets_focus():
    state, navigator = _navigator()
    state.focused_element = 3

    result = navigator.advance()

    assert result.signal is NavigationSignal.MOVED
    assert state.current_question_index == 1
    assert state.focused_element == 0
    assert result.announcements == ["Question 2 of 3: Define a stack."]
    assert result.followups == [speech.TYPE_HINTS["SHORT_ANSWER"]]


def test_boundaries_are_signals_not_moves():
    state, navigator = _navigator()

    first = navigator.retreat()
    navigator.advance()
    navigator.advance()
    last = navigator.advance()

    assert first.signal is NavigationSignal.FIRST_QUESTION and first.is_boundary
    assert last.signal is NavigationSignal.LAST_QUESTION and last.is_boundary
    assert last.announcements == [speech.LAST_QUESTION_BOUNDARY]
    assert state.current_question_index == 2


def test_options_follow_the_question():
    result = describe_question(QUESTIONS[0], 0, 3)

    assert result.followups == ["Options: A. Paris. B. Rome. C. Berlin. D. Madrid"]


def test_focus_cycles_over_question_options_and_controls():
    state, navigator = _navigator()

    assert navigator.element_count() == 8
    navigator.cycle_focus(1)
    assert navigator.focused_target().kind is FocusKind.OPTION
    assert navigator.describe_focus() == "Option A: Paris"

    navigator.cycle_focus(-2)
    assert state.focused_element == 7
    assert navigator.focused_target().kind is FocusKind.SUBMIT

    navigator.cycle_focus(1)
    assert state.focused_element == 0
    assert navigator.describe_focus() == "Question text: Capital of France?"


def test_question_without_options_keeps_four_slots():
    state, navigator = _navigator()
    navigator.advance()

    assert navigator.element_count() == 4
    kinds = []
    for _ in range(4):
        navigator.cycle_focus(1)
        kinds.append(navigator.focused_target().kind)

    assert kinds == [FocusKind.PREVIOUS, FocusKind.NEXT, FocusKind.SUBMIT, FocusKind.QUESTION]


def test_keyboard_and_swipe_reach_the_same_focus():
    key_state, key_navigator = _navigator()
    swipe_state, swipe_navigator = _navigator()

    for key, distance in [("TAB", 180.0), ("TAB", 120.0), ("shift_tab", -240.0), ("TAB", 101.0)] * 3:
        key_navigator.cycle_focus(_DIRECTIONS[focus_action_for_key(key)])
        swipe_navigator.cycle_focus(_DIRECTIONS[focus_action_for_swipe(distance)])

    assert key_state.focused_element == swipe_state.focused_element == 6


def test_short_swipes_and_unknown_keys_are_ignored():
    assert focus_action_for_swipe(99.0) is None
    assert focus_action_for_swipe(-40.0) is None
    assert focus_action_for_key("ESCAPE") is None
    assert focus_action_for_key("enter") is NavigationAction.ACTIVATE


def test_review_walks_unanswered_snapshot():
    state, navigator = _navigator()

    started = navigator.enter_review([QUESTIONS[1], QUESTIONS[2]])
    assert started.signal is NavigationSignal.REVIEW_STARTED
    assert state.current_question_index == 1
    assert "You have 2 unanswered questions remaining." in started.announcements[0]

    navigator.advance()
    assert state.current_question_index == 2
    assert state.current_unanswered_index == 1

    assert navigator.review_advance().signal is NavigationSignal.LAST_UNANSWERED
    assert state.current_question_index == 2

    navigator.review_retreat()
    assert state.current_question_index == 1
    assert navigator.retreat().signal is NavigationSignal.FIRST_UNANSWERED


def test_exit_review_keeps_question_index():
    state, navigator = _navigator()
    navigator.enter_review([QUESTIONS[2]])

    result = navigator.exit_review()

    assert result.signal is NavigationSignal.REVIEW_EXITED
    assert not state.is_reviewing_unanswered
    assert state.current_question_index == 2
    assert state.current_unanswered_index == 0
    assert state.unanswered_snapshot == []


def test_review_without_unanswered_questions():
    state, navigator = _navigator()

    assert navigator.enter_review([]).signal is NavigationSignal.NOTHING_TO_REVIEW
    assert navigator.review_advance().signal is NavigationSignal.NOT_REVIEWING
    assert navigator.exit_review().signal is NavigationSignal.NOT_REVIEWING
    assert not state.is_reviewing_unanswered
