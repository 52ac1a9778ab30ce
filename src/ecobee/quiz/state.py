"""
Quiz state and transitions

QuizState is an immutable value. Every transition is a pure function
(state, action) -> new state, so a session can be rebuilt by replaying
its actions.
"""

from dataclasses import dataclass, replace
from functools import reduce as fold
from typing import Any, Iterable, Optional, Union

from .schema import (
    QUIZ_QUESTIONS,
    CapturedItem,
    NavigationError,
    QuizCompleteError,
    QuizQuestion,
    QuizResponse,
    UnknownQuestionError,
    ValidationError,
    normalize_answer,
    validate_response,
)


@dataclass(frozen=True)
class QuizState:
    """
    Snapshot of a quiz session.

    Attributes:
        question_count: Number of questions in the quiz
        index: Current question index, 0 <= index <= question_count
        responses: Committed responses, in question order
        captured_items: Scanned products, in scan order
        pending_answer: Uncommitted answer for the current question
        complete: True once every question has been answered
    """
    question_count: int
    index: int = 0
    responses: tuple[QuizResponse, ...] = ()
    captured_items: tuple[CapturedItem, ...] = ()
    pending_answer: Any = None
    complete: bool = False

    def __post_init__(self):
        if not 0 <= self.index <= self.question_count:
            raise ValueError(f"Index {self.index} outside [0, {self.question_count}]")
        if self.complete != (self.index == self.question_count):
            raise ValueError("Completion flag out of sync with index")

    def response_for(self, question_id: str) -> Optional[QuizResponse]:
        """Committed response for a question, if any."""
        for response in self.responses:
            if response.question_id == question_id:
                return response
        return None

    @property
    def answers(self) -> dict[str, Any]:
        """Map question_id -> committed answer."""
        return {r.question_id: r.answer for r in self.responses}

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "question_count": self.question_count,
            "complete": self.complete,
            "pending_answer": self.pending_answer,
            "responses": [r.to_dict() for r in self.responses],
            "captured_items": [i.to_dict() for i in self.captured_items],
        }


# =============================================================================
# Actions
# =============================================================================

@dataclass(frozen=True)
class AnswerRecorded:
    """User picked or typed an answer for the current question."""
    value: Any


@dataclass(frozen=True)
class Advanced:
    """User moved forward; commit the pending answer."""
    timestamp: Optional[str] = None


@dataclass(frozen=True)
class Retreated:
    """User moved back one question."""
    pass


@dataclass(frozen=True)
class ItemCaptured:
    """A scanned product was attached to the session."""
    item: CapturedItem


Action = Union[AnswerRecorded, Advanced, Retreated, ItemCaptured]


def initial_state(questions: tuple[QuizQuestion, ...] = QUIZ_QUESTIONS) -> QuizState:
    """Fresh state positioned on the first question."""
    return QuizState(question_count=len(questions))


def _upsert_response(
    responses: tuple[QuizResponse, ...],
    response: QuizResponse,
    questions: tuple[QuizQuestion, ...],
) -> tuple[QuizResponse, ...]:
    """Insert or replace, keeping question order."""
    order = {q.id: i for i, q in enumerate(questions)}
    by_id = {r.question_id: r for r in responses}
    by_id[response.question_id] = response
    for question_id in by_id:
        if question_id not in order:
            raise UnknownQuestionError(question_id)
    return tuple(sorted(by_id.values(), key=lambda r: order[r.question_id]))


def _advance(state: QuizState, action: Advanced, questions: tuple[QuizQuestion, ...]) -> QuizState:
    question = questions[state.index]
    error = validate_response(question, state.pending_answer)
    if error:
        raise ValidationError(question.id, error)

    answer = normalize_answer(question, state.pending_answer)
    existing = state.response_for(question.id)
    if existing is not None and existing.answer == answer:
        response = existing
    elif action.timestamp:
        response = QuizResponse(question.id, answer, timestamp=action.timestamp)
    else:
        response = QuizResponse(question.id, answer)

    new_index = state.index + 1
    return replace(
        state,
        index=new_index,
        responses=_upsert_response(state.responses, response, questions),
        pending_answer=None,
        complete=new_index == state.question_count,
    )


def _retreat(state: QuizState, questions: tuple[QuizQuestion, ...]) -> QuizState:
    if state.index == 0:
        raise NavigationError("Already at the first question")
    previous = questions[state.index - 1]
    committed = state.response_for(previous.id)
    return replace(
        state,
        index=state.index - 1,
        pending_answer=committed.answer if committed else None,
    )


def reduce(
    state: QuizState,
    action: Action,
    questions: tuple[QuizQuestion, ...] = QUIZ_QUESTIONS,
) -> QuizState:
    """
    Apply one action to a state.

    Args:
        state: Current state (never modified)
        action: Action to apply
        questions: Question set the state was created for

    Returns:
        New state

    Raises:
        ValidationError: Advanced with an unacceptable pending answer
        NavigationError: Retreated from the first question
        QuizCompleteError: Navigation or answering after completion
    """
    if len(questions) != state.question_count:
        raise ValueError("State was created for a different question set")

    if isinstance(action, ItemCaptured):
        return replace(state, captured_items=state.captured_items + (action.item,))

    if state.complete:
        raise QuizCompleteError(f"Quiz is complete; cannot apply {type(action).__name__}")

    if isinstance(action, AnswerRecorded):
        return replace(state, pending_answer=action.value)
    if isinstance(action, Advanced):
        return _advance(state, action, questions)
    if isinstance(action, Retreated):
        return _retreat(state, questions)

    raise TypeError(f"Unknown action: {action!r}")


def replay(
    actions: Iterable[Action],
    questions: tuple[QuizQuestion, ...] = QUIZ_QUESTIONS,
    state: Optional[QuizState] = None,
) -> QuizState:
    """Rebuild a state by applying actions in order."""
    start = state if state is not None else initial_state(questions)
    return fold(lambda s, a: reduce(s, a, questions), actions, start)
