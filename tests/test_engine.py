"""
Tests for the quiz engine.
"""

import pytest

from ecobee.classifier import ScanResult, Suggestion
from ecobee.config import Config
from ecobee.engine import SUGGESTION_RULES, QuizEngine
from ecobee.providers import BackendScoringService
from ecobee.providers.mock import MockRecognitionService, MockScoringService, sample_scan_payload
from ecobee.quiz.schema import (
    QUIZ_QUESTIONS,
    CapturedItem,
    NavigationError,
    QuestionCategory,
    QuestionType,
    QuizCompleteError,
    QuizOption,
    QuizQuestion,
    ValidationError,
)
from ecobee.quiz.state import replay
from ecobee.scoring import ScoreSource


ANSWERS = {
    "food_today": "plant-based",
    "clothing_today": ["second-hand", "repaired"],
    "transport_today": "bike",
    "energy_use": 4,
    "waste_habits": ["recycled"],
    "water_use": 3,
    "one_change": "  Cook a plant-based dinner  ",
}

FOOD_CHOICES = (
    QuizOption("packaged", "Packaged"),
    QuizOption("plant-based", "Plants"),
)


async def finish(engine: QuizEngine):
    result = None
    while not engine.is_complete:
        engine.record_answer(ANSWERS[engine.current_question.id])
        result = await engine.advance()
    return result


async def skip_to(engine: QuizEngine, question_id: str):
    while engine.current_question.id != question_id:
        engine.record_answer(ANSWERS[engine.current_question.id])
        await engine.advance()


class TestNavigation:
    """Tests for engine navigation."""

    @pytest.mark.asyncio
    async def test_advance_returns_none_midway(self):
        """Test advance returns a result only on completion."""
        engine = QuizEngine()
        engine.record_answer("mixed")

        assert await engine.advance() is None
        assert engine.index == 1
        assert engine.progress == pytest.approx(1 / len(QUIZ_QUESTIONS))

    @pytest.mark.asyncio
    async def test_validation_failure_keeps_index(self):
        """Test a rejected answer leaves the engine on the same question."""
        engine = QuizEngine()
        engine.record_answer("pizza")

        with pytest.raises(ValidationError):
            await engine.advance()

        assert engine.index == 0
        assert engine.pending_answer == "pizza"

    @pytest.mark.asyncio
    async def test_advance_without_answer(self):
        engine = QuizEngine()
        with pytest.raises(ValidationError, match="selection required"):
            await engine.advance()

    def test_retreat_at_start(self):
        with pytest.raises(NavigationError):
            QuizEngine().retreat()

    @pytest.mark.asyncio
    async def test_retreat_round_trip(self):
        """Test going back and forward keeps the same response."""
        engine = QuizEngine()
        await skip_to(engine, "transport_today")
        before = engine.state.response_for("clothing_today")

        engine.retreat()
        assert engine.pending_answer == ("second-hand", "repaired")
        await engine.advance()

        assert engine.state.response_for("clothing_today") == before
        assert engine.current_question.id == "transport_today"

    @pytest.mark.asyncio
    async def test_replay_matches(self):
        """Test the action log rebuilds the engine's state."""
        engine = QuizEngine()
        await skip_to(engine, "energy_use")
        engine.retreat()
        engine.record_answer("walk")
        await engine.advance()

        assert replay(engine.actions) == engine.state

    def test_requires_questions(self):
        with pytest.raises(ValueError):
            QuizEngine(questions=())


class TestCompletion:
    """Tests for scoring on completion."""

    @pytest.mark.asyncio
    async def test_remote_scoring(self):
        """Test completed quizzes go to the scoring service."""
        service = MockScoringService()
        engine = QuizEngine(scoring_service=service, session_id="session-1")

        result = await finish(engine)

        assert engine.is_complete
        assert engine.current_question is None
        assert engine.result is result
        assert result.source == ScoreSource.MOCK
        assert len(service.calls) == 1
        assert service.calls[0]["session_id"] == "session-1"
        assert len(service.calls[0]["responses"]) == len(QUIZ_QUESTIONS)

    @pytest.mark.asyncio
    async def test_fallback_on_failure(self):
        """Test a failing scoring service falls back locally."""
        engine = QuizEngine(scoring_service=MockScoringService(fail=True))

        result = await finish(engine)

        assert result.source == ScoreSource.FALLBACK
        assert result.composite == 15
        assert result.grade == "A"

    @pytest.mark.asyncio
    async def test_fallback_on_unreachable_backend(self):
        """Test an unreachable backend degrades to the fallback."""
        import httpx

        def refuse(request):
            raise httpx.ConnectError("connection refused")

        service = BackendScoringService(base_url="http://test", transport=httpx.MockTransport(refuse))
        engine = QuizEngine(scoring_service=service)

        result = await finish(engine)
        await engine.aclose()

        assert result.is_fallback

    @pytest.mark.asyncio
    async def test_no_service_uses_fallback(self):
        result = await finish(QuizEngine())
        assert result.source == ScoreSource.FALLBACK

    @pytest.mark.asyncio
    async def test_fallback_includes_items(self):
        """Test captured items are carried into fallback results."""
        engine = QuizEngine()
        engine.record_captured_item(CapturedItem(item_type="food", category="snack"))

        result = await finish(engine)

        assert result.items[0]["category"] == "snack"

    @pytest.mark.asyncio
    async def test_complete_is_terminal(self):
        """Test no navigation after completion."""
        engine = QuizEngine()
        await finish(engine)

        with pytest.raises(QuizCompleteError):
            engine.record_answer("mixed")
        with pytest.raises(QuizCompleteError):
            await engine.advance()
        with pytest.raises(QuizCompleteError):
            engine.retreat()

    @pytest.mark.asyncio
    async def test_text_answer_trimmed(self):
        engine = QuizEngine()
        await finish(engine)
        assert engine.state.answers["one_change"] == "Cook a plant-based dinner"

    @pytest.mark.asyncio
    async def test_reset(self):
        """Test reset starts a fresh session."""
        engine = QuizEngine()
        old_session = engine.session_id
        await finish(engine)

        engine.reset()

        assert engine.index == 0
        assert engine.result is None
        assert engine.actions == []
        assert engine.session_id != old_session

    def test_from_config_offline(self):
        engine = QuizEngine.from_config(Config.offline_mode())
        assert isinstance(engine.scoring_service, MockScoringService)
        assert isinstance(engine.recognition_service, MockRecognitionService)


class TestScanning:
    """Tests for scans and answer suggestions."""

    def test_scan_applies_food_suggestion(self):
        """Test a snack scan on the food question suggests packaged."""
        engine = QuizEngine()

        outcome = engine.apply_scan(ScanResult.from_dict(sample_scan_payload()))

        assert outcome.applied
        assert outcome.suggestion == Suggestion("packaged")
        assert engine.pending_answer == "packaged"
        assert engine.captured_items == (outcome.item,)
        assert outcome.item.item_type == "food"

    @pytest.mark.asyncio
    async def test_suggestion_not_applied_to_other_questions(self):
        """Test suggestions never touch non-food questions."""
        engine = QuizEngine()
        await skip_to(engine, "transport_today")
        engine.record_answer("walk")

        outcome = engine.apply_scan(ScanResult.from_dict(sample_scan_payload()))

        assert outcome.suggestion.answer == "packaged"
        assert not outcome.applied
        assert engine.pending_answer == "walk"
        assert engine.state.answers["food_today"] == "plant-based"
        assert len(engine.captured_items) == 1

    @pytest.mark.asyncio
    async def test_clothing_scan(self):
        """Test scans on the clothing question capture clothing items."""
        engine = QuizEngine()
        await skip_to(engine, "clothing_today")

        outcome = engine.apply_scan(ScanResult.from_dict(sample_scan_payload(name="Denim jacket", category="Apparel")))

        assert outcome.item.item_type == "clothing"
        assert outcome.suggestion is None
        assert not outcome.applied

    def test_unusable_scan(self):
        """Test failed scans capture nothing."""
        engine = QuizEngine()

        outcome = engine.apply_scan(ScanResult.failed("No barcode detected"))

        assert outcome.item is None
        assert engine.captured_items == ()

    def test_no_match_leaves_answer(self):
        """Test an unclassifiable product keeps the pending answer."""
        engine = QuizEngine()
        engine.record_answer("mixed")

        outcome = engine.apply_scan(ScanResult.from_dict(sample_scan_payload(name="Widget", category="Hardware")))

        assert outcome.suggestion is None
        assert engine.pending_answer == "mixed"

    @pytest.mark.asyncio
    async def test_scan_after_completion(self):
        """Test scans still attach items once complete."""
        engine = QuizEngine()
        await finish(engine)

        outcome = engine.apply_scan(ScanResult.from_dict(sample_scan_payload()))

        assert outcome.item is not None
        assert not outcome.applied

    @pytest.mark.asyncio
    async def test_scan_via_service(self):
        engine = QuizEngine(recognition_service=MockRecognitionService())
        outcome = await engine.scan(b"jpeg-bytes")

        assert outcome.applied
        assert engine.recognition_service.calls == 1

    @pytest.mark.asyncio
    async def test_scan_service_failure(self):
        """Test recognition failures yield no suggestion."""
        engine = QuizEngine(recognition_service=MockRecognitionService(fail=True))
        engine.record_answer("mixed")

        assert await engine.scan(b"jpeg-bytes") is None
        assert engine.pending_answer == "mixed"
        assert engine.captured_items == ()

    @pytest.mark.asyncio
    async def test_scan_without_service(self):
        assert await QuizEngine().scan(b"jpeg-bytes") is None


class TestSuggestionRules:
    """Tests for the answer-type suggestion rules."""

    def test_table_covers_choice_types(self):
        assert set(SUGGESTION_RULES) == {QuestionType.SINGLE, QuestionType.MULTIPLE}

    def test_multiple_adds_token(self):
        """Test suggestions are added to a multiple-choice selection."""
        question = QuizQuestion("snacks", QuestionCategory.FOOD, QuestionType.MULTIPLE, "Snacks?", options=FOOD_CHOICES)
        engine = QuizEngine(questions=(question,))
        engine.record_answer(["plant-based"])

        assert engine.apply_suggestion(Suggestion("packaged"))
        assert engine.pending_answer == ("plant-based", "packaged")
        assert not engine.apply_suggestion(Suggestion("packaged"))

    def test_scale_never_applied(self):
        question = QuizQuestion("hunger", QuestionCategory.FOOD, QuestionType.SCALE, "Hungry?", scale_max=5)
        engine = QuizEngine(questions=(question,))

        assert not engine.apply_suggestion(Suggestion("packaged"))
        assert engine.pending_answer is None

    def test_token_must_be_an_option(self):
        question = QuizQuestion("lunch", QuestionCategory.FOOD, QuestionType.SINGLE, "Lunch?", options=FOOD_CHOICES)
        engine = QuizEngine(questions=(question,))

        assert not engine.apply_suggestion(Suggestion("meat-heavy"))
        assert engine.apply_suggestion(Suggestion("plant-based"))
        assert engine.pending_answer == "plant-based"
