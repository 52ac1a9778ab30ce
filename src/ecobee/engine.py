"""
Quiz engine

Owns the QuizState for one session and funnels every change through the
reducer in quiz.state. On completion the responses go to the scoring
service; if it can't be reached the local fallback scorer fills in.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .classifier import ScanResult, Suggestion, captured_item_from_scan, classify_product
from .config import Config
from .providers import ProviderError, RecognitionService, ScoringService
from .providers import get_recognition_service, get_scoring_service
from .quiz.schema import QUIZ_QUESTIONS, CapturedItem, QuestionCategory, QuestionType, QuizQuestion, QuizResponse
from .quiz.state import (
    Action,
    Advanced,
    AnswerRecorded,
    ItemCaptured,
    QuizState,
    Retreated,
    initial_state,
    reduce,
)
from .scoring.fallback import FallbackScorer
from .scoring.result import ScoringResult

logger = logging.getLogger(__name__)


# =============================================================================
# Suggestion rules
# =============================================================================

def _suggest_single(question: QuizQuestion, pending: Any, token: str) -> Optional[Any]:
    if token not in question.option_values or token == pending:
        return None
    return token


def _suggest_multiple(question: QuizQuestion, pending: Any, token: str) -> Optional[Any]:
    if token not in question.option_values:
        return None
    current = tuple(pending) if isinstance(pending, (list, tuple, set, frozenset)) else ()
    if token in current:
        return None
    return current + (token,)


# Answer type -> how a suggested token becomes the new pending answer.
# Types missing here (scale, text) never take suggestions.
SUGGESTION_RULES: dict[QuestionType, Callable[[QuizQuestion, Any, str], Optional[Any]]] = {
    QuestionType.SINGLE: _suggest_single,
    QuestionType.MULTIPLE: _suggest_multiple,
}


@dataclass(frozen=True)
class ScanOutcome:
    """What a scan did to the session."""
    item: Optional[CapturedItem]
    suggestion: Optional[Suggestion] = None
    applied: bool = False


class QuizEngine:
    """
    Drives a single quiz session.

    Usage:
        engine = QuizEngine(scoring_service=BackendScoringService())
        engine.record_answer("plant-based")
        await engine.advance()
        ...
        result = await engine.advance()  # on the last question
    """

    def __init__(
        self,
        scoring_service: Optional[ScoringService] = None,
        recognition_service: Optional[RecognitionService] = None,
        questions: tuple[QuizQuestion, ...] = QUIZ_QUESTIONS,
        fallback_scorer: Optional[FallbackScorer] = None,
        session_id: Optional[str] = None,
    ):
        """
        Initialize engine.

        Args:
            scoring_service: Remote scorer; None scores locally with the fallback
            recognition_service: Barcode/image recognition; None disables scan()
            questions: Ordered question set
            fallback_scorer: Degraded-path scorer (defaults to one for questions)
            session_id: Session identifier (generated if not given)
        """
        if not questions:
            raise ValueError("A quiz needs at least one question")
        self.questions = questions
        self.scoring_service = scoring_service
        self.recognition_service = recognition_service
        self.fallback_scorer = fallback_scorer or FallbackScorer(questions)
        self.session_id = session_id or uuid.uuid4().hex

        self._state = initial_state(questions)
        self._actions: list[Action] = []
        self._result: Optional[ScoringResult] = None

    @classmethod
    def from_config(cls, cfg: Optional[Config] = None, **kwargs) -> "QuizEngine":
        """Engine wired to the services named by a config."""
        kwargs.setdefault("scoring_service", get_scoring_service(cfg))
        kwargs.setdefault("recognition_service", get_recognition_service(cfg))
        return cls(**kwargs)

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> QuizState:
        return self._state

    @property
    def actions(self) -> list[Action]:
        """Actions applied so far; replaying them rebuilds the current state."""
        return list(self._actions)

    @property
    def index(self) -> int:
        return self._state.index

    @property
    def is_complete(self) -> bool:
        return self._state.complete

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        if self._state.complete:
            return None
        return self.questions[self._state.index]

    @property
    def pending_answer(self) -> Any:
        return self._state.pending_answer

    @property
    def responses(self) -> tuple[QuizResponse, ...]:
        return self._state.responses

    @property
    def captured_items(self) -> tuple[CapturedItem, ...]:
        return self._state.captured_items

    @property
    def result(self) -> Optional[ScoringResult]:
        return self._result

    @property
    def progress(self) -> float:
        """Fraction of questions answered, 0.0 to 1.0."""
        return self._state.index / self._state.question_count

    def _dispatch(self, action: Action) -> QuizState:
        self._state = reduce(self._state, action, self.questions)
        self._actions.append(action)
        return self._state

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def record_answer(self, value: Any) -> None:
        """
        Store a candidate answer for the current question.

        Raises:
            QuizCompleteError: The quiz is already complete
        """
        self._dispatch(AnswerRecorded(value))

    async def advance(self) -> Optional[ScoringResult]:
        """
        Commit the pending answer and move to the next question.

        Returns:
            ScoringResult if this completed the quiz, else None

        Raises:
            ValidationError: Pending answer not acceptable (state unchanged)
            QuizCompleteError: The quiz is already complete
        """
        question = self.questions[self._state.index] if not self._state.complete else None
        new_state = reduce(self._state, Advanced(), self.questions)

        # Log the commit with its timestamp so replay reproduces it exactly
        committed = new_state.response_for(question.id)
        self._state = new_state
        self._actions.append(Advanced(timestamp=committed.timestamp))
        logger.debug(f"Committed {question.id}={committed.answer!r} ({new_state.index}/{new_state.question_count})")

        if not new_state.complete:
            return None

        self._result = await self._score()
        return self._result

    def retreat(self) -> None:
        """
        Go back one question, restoring its committed answer as pending.

        Raises:
            NavigationError: Already at the first question
            QuizCompleteError: The quiz is already complete
        """
        self._dispatch(Retreated())
        logger.debug(f"Retreated to question {self._state.index}")

    def record_captured_item(self, item: CapturedItem) -> None:
        """Attach a scanned product; never affects navigation."""
        self._dispatch(ItemCaptured(item))

    async def _score(self) -> ScoringResult:
        state = self._state
        if self.scoring_service is not None:
            try:
                result = await self.scoring_service.score(state.responses, state.captured_items, self.session_id)
                logger.debug(f"Scored by {self.scoring_service.name}: {result.composite} ({result.grade})")
                return result
            except ProviderError as e:
                logger.warning(f"Scoring service {self.scoring_service.name} failed, using fallback: {e}")
        else:
            logger.debug("No scoring service configured, using fallback")

        result = self.fallback_scorer.score(state.responses)
        result.items = [i.to_dict() for i in state.captured_items]
        return result

    # -------------------------------------------------------------------------
    # Scanning
    # -------------------------------------------------------------------------

    def _item_type(self) -> str:
        question = self.current_question
        if question is not None and question.category == QuestionCategory.CLOTHING:
            return "clothing"
        return "food"

    def apply_suggestion(self, suggestion: Suggestion) -> bool:
        """
        Apply a classifier suggestion to the active question if a rule allows it.

        Returns:
            True if the pending answer was changed
        """
        question = self.current_question
        if question is None or question.category != suggestion.category:
            return False

        rule = SUGGESTION_RULES.get(question.type)
        if rule is None:
            return False

        new_pending = rule(question, self._state.pending_answer, suggestion.answer)
        if new_pending is None:
            return False

        self._dispatch(AnswerRecorded(new_pending))
        logger.debug(f"Applied suggestion {suggestion.answer!r} to {question.id}")
        return True

    def apply_scan(self, scan: ScanResult, item_type: Optional[str] = None) -> ScanOutcome:
        """
        Record a recognition result and apply any food suggestion it yields.

        Args:
            scan: Result from the recognition service
            item_type: "food" or "clothing" (defaults from the active question)

        Returns:
            ScanOutcome; item is None when the scan was not usable
        """
        if not scan.usable:
            logger.debug(f"Ignoring unusable scan: {scan.error or 'no barcode'}")
            return ScanOutcome(item=None)

        item_type = item_type or self._item_type()
        item = captured_item_from_scan(scan, item_type)
        self.record_captured_item(item)

        suggestion = None
        if item_type == "food":
            suggestion = classify_product(scan.product_name, scan.detected_category)

        applied = suggestion is not None and self.apply_suggestion(suggestion)
        return ScanOutcome(item=item, suggestion=suggestion, applied=applied)

    async def scan(self, image: bytes, product_type: Optional[str] = None) -> Optional[ScanOutcome]:
        """
        Send an image to the recognition service and apply the result.

        Returns:
            ScanOutcome, or None if no recognition service is available or it failed
        """
        if self.recognition_service is None:
            logger.debug("No recognition service configured")
            return None

        product_type = product_type or self._item_type()
        try:
            result = await self.recognition_service.scan(image, product_type)
        except ProviderError as e:
            logger.warning(f"Recognition service {self.recognition_service.name} failed: {e}")
            return None
        return self.apply_scan(result, product_type)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def reset(self) -> None:
        """Discard the session and start over with a new session id."""
        self._state = initial_state(self.questions)
        self._actions = []
        self._result = None
        self.session_id = uuid.uuid4().hex

    async def aclose(self) -> None:
        for service in (self.scoring_service, self.recognition_service):
            if service is not None:
                await service.aclose()

    def __repr__(self) -> str:
        return (
            f"QuizEngine(session_id={self.session_id!r}, "
            f"index={self._state.index}/{self._state.question_count}, "
            f"complete={self._state.complete})"
        )
