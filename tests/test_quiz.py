"""
Tests for quiz schema, validation, and state transitions.
"""

import pytest

from ecobee.quiz.schema import (
    QUIZ_QUESTIONS,
    CapturedItem,
    NavigationError,
    QuestionCategory,
    QuestionType,
    QuizCompleteError,
    QuizOption,
    QuizQuestion,
    QuizResponse,
    SustainabilityData,
    UnknownQuestionError,
    ValidationError,
    get_question,
    get_quiz_dict,
    normalize_answer,
    validate_response,
)
from ecobee.quiz.state import (
    Advanced,
    AnswerRecorded,
    ItemCaptured,
    QuizState,
    Retreated,
    initial_state,
    reduce,
    replay,
)


ANSWERS = {
    "food_today": "plant-based",
    "clothing_today": ("second-hand",),
    "transport_today": "bike",
    "energy_use": 4,
    "waste_habits": ("recycled", "reusables"),
    "water_use": 3,
    "one_change": "Cycle to campus twice",
}


def answer_all(state: QuizState) -> QuizState:
    for question in QUIZ_QUESTIONS[state.index:]:
        state = reduce(state, AnswerRecorded(ANSWERS[question.id]))
        state = reduce(state, Advanced())
    return state


class TestQuizQuestions:
    """Tests for the static question set."""

    def test_ids_are_unique(self):
        """Test question ids are unique."""
        ids = [q.id for q in QUIZ_QUESTIONS]
        assert len(ids) == len(set(ids))

    def test_choice_questions_have_options(self):
        """Test single/multiple questions carry options."""
        for q in QUIZ_QUESTIONS:
            if q.type in (QuestionType.SINGLE, QuestionType.MULTIPLE):
                assert q.options, q.id
            if q.type == QuestionType.SCALE:
                assert q.scale_max

    def test_food_options(self):
        """Test food question exposes the classifier tokens."""
        q = get_question("food_today")
        assert q.category == QuestionCategory.FOOD
        assert q.option_values == ["plant-based", "mixed", "meat-heavy", "packaged"]

    def test_get_question_unknown(self):
        """Test unknown ids fail loudly."""
        with pytest.raises(UnknownQuestionError):
            get_question("nope")

    def test_quiz_dict(self):
        """Test JSON-ready question list."""
        data = get_quiz_dict()
        assert len(data) == len(QUIZ_QUESTIONS)
        assert data[0]["type"] == "single"
        assert data[3]["scale_max"] == 5

    def test_question_round_trip(self):
        """Test question serialization."""
        q = get_question("waste_habits")
        assert QuizQuestion.from_dict(q.to_dict()) == q


class TestValidateResponse:
    """Tests for validate_response."""

    def test_single_accepts_option(self):
        assert validate_response(get_question("food_today"), "mixed") is None

    def test_single_rejects_unknown(self):
        """Test single choice needs an allowed token."""
        q = get_question("food_today")
        assert validate_response(q, "pizza") == "selection required"
        assert validate_response(q, None) == "selection required"

    def test_multiple_rejects_empty(self):
        """Test empty selection is rejected."""
        q = get_question("clothing_today")
        assert validate_response(q, ()) == "select at least one option"
        assert validate_response(q, set()) == "select at least one option"

    def test_multiple_rejects_bare_string(self):
        """Test a bare string is not a selection."""
        q = get_question("clothing_today")
        assert validate_response(q, "second-hand") == "select at least one option"

    def test_multiple_accepts_every_subset(self):
        """Test any non-empty subset of options passes."""
        q = get_question("clothing_today")
        values = q.option_values
        for mask in range(1, 2 ** len(values)):
            subset = [v for i, v in enumerate(values) if mask & (1 << i)]
            assert validate_response(q, subset) is None

    def test_multiple_rejects_unknown_token(self):
        q = get_question("clothing_today")
        assert validate_response(q, ["second-hand", "stolen"]) == "invalid option: stolen"

    def test_scale_range(self):
        """Test scale accepts exactly 1..max."""
        q = get_question("energy_use")
        for value in range(1, 6):
            assert validate_response(q, value) is None
        assert validate_response(q, 0) == "choose a value between 1 and 5"
        assert validate_response(q, 6) == "choose a value between 1 and 5"

    def test_scale_rejects_non_integers(self):
        """Test scale rejects floats, strings and bools."""
        q = get_question("energy_use")
        for value in (2.5, "3", None, True):
            assert validate_response(q, value) == "a whole number is required"

    def test_text_requires_content(self):
        """Test text must be non-blank."""
        q = get_question("one_change")
        assert validate_response(q, "   ") == "response required"
        assert validate_response(q, "") == "response required"
        assert validate_response(q, " walk more ") is None


class TestNormalizeAnswer:
    """Tests for normalize_answer."""

    def test_multiple_option_order(self):
        """Test multiple answers are ordered by option and deduplicated."""
        q = get_question("clothing_today")
        assert normalize_answer(q, ["repaired", "second-hand", "repaired"]) == ("second-hand", "repaired")

    def test_text_trimmed(self):
        assert normalize_answer(get_question("one_change"), "  walk  ") == "walk"

    def test_single_unchanged(self):
        assert normalize_answer(get_question("food_today"), "mixed") == "mixed"


class TestModels:
    """Tests for response and item models."""

    def test_response_round_trip(self):
        """Test tuple answers survive serialization."""
        r = QuizResponse("clothing_today", ("second-hand",), timestamp="2024-05-01T10:00:00+00:00")
        data = r.to_dict()

        assert data["answer"] == ["second-hand"]
        assert QuizResponse.from_dict(data) == r

    def test_captured_item_validation(self):
        """Test item type and confidence are checked."""
        with pytest.raises(ValueError):
            CapturedItem(item_type="furniture", category="chair")
        with pytest.raises(ValueError):
            CapturedItem(item_type="food", category="snack", confidence=1.5)

    def test_captured_item_to_dict(self):
        """Test wire keys for captured items."""
        item = CapturedItem(item_type="food", category="snack", barcode="123")
        data = item.to_dict()

        assert data["type"] == "food"
        assert data["sustainabilityData"] is None
        assert CapturedItem.from_dict(data) == item

    def test_sustainability_defaults(self):
        """Test missing sub-scores default to 50."""
        data = SustainabilityData.from_dict({
            "name": "Oat milk",
            "sustainability_score": {"carbon_footprint": 20},
        })

        assert data.carbon_footprint == 20
        assert data.packaging_score == 50
        assert data.boundary_impacts["climate"] == 20
        assert data.boundary_impacts["biogeochemical"] == 50

    def test_option_description_optional(self):
        assert "description" not in QuizOption("a", "A").to_dict()


class TestReducer:
    """Tests for quiz state transitions."""

    def test_initial_state(self):
        state = initial_state()
        assert state.index == 0
        assert state.complete is False
        assert state.responses == ()

    def test_record_answer_keeps_index(self):
        """Test recording doesn't move or validate."""
        state = reduce(initial_state(), AnswerRecorded("not an option"))
        assert state.index == 0
        assert state.pending_answer == "not an option"

    def test_advance_validation_failure(self):
        """Test failed validation leaves the state alone."""
        state = reduce(initial_state(), AnswerRecorded("pizza"))

        with pytest.raises(ValidationError) as exc:
            reduce(state, Advanced())

        assert exc.value.question_id == "food_today"
        assert exc.value.message == "selection required"
        assert state.index == 0
        assert state.responses == ()

    def test_advance_commits(self):
        """Test advance commits and moves on by one."""
        state = reduce(initial_state(), AnswerRecorded("mixed"))
        state = reduce(state, Advanced())

        assert state.index == 1
        assert state.pending_answer is None
        assert state.answers == {"food_today": "mixed"}

    def test_retreat_at_start(self):
        """Test retreat from the first question."""
        with pytest.raises(NavigationError):
            reduce(initial_state(), Retreated())

    def test_retreat_restores_answer(self):
        """Test retreat puts the committed answer back as pending."""
        state = reduce(initial_state(), AnswerRecorded("mixed"))
        state = reduce(state, Advanced())
        state = reduce(state, Retreated())

        assert state.index == 0
        assert state.pending_answer == "mixed"
        assert state.response_for("food_today").answer == "mixed"

    def test_retreat_advance_round_trip(self):
        """Test retreat then advance reproduces the identical response."""
        state = reduce(initial_state(), AnswerRecorded("mixed"))
        state = reduce(state, Advanced())
        before = state.response_for("food_today")

        state = reduce(state, Retreated())
        state = reduce(state, Advanced())

        assert state.response_for("food_today") is before
        assert state.index == 1

    def test_changed_answer_replaces(self):
        """Test re-answering replaces in place."""
        state = reduce(initial_state(), AnswerRecorded("mixed"))
        state = reduce(state, Advanced())
        state = reduce(state, AnswerRecorded(["second-hand"]))
        state = reduce(state, Advanced())
        state = reduce(state, Retreated())
        state = reduce(state, Retreated())
        state = reduce(state, AnswerRecorded("plant-based"))
        state = reduce(state, Advanced())

        assert [r.question_id for r in state.responses] == ["food_today", "clothing_today"]
        assert state.answers["food_today"] == "plant-based"

    def test_completion(self):
        """Test answering every question completes the quiz."""
        state = answer_all(initial_state())

        assert state.complete is True
        assert state.index == len(QUIZ_QUESTIONS)
        assert len(state.responses) == len(QUIZ_QUESTIONS)
        assert state.answers["waste_habits"] == ("recycled", "reusables")

    def test_complete_is_terminal(self):
        """Test navigation after completion is refused."""
        state = answer_all(initial_state())

        for action in (AnswerRecorded("x"), Advanced(), Retreated()):
            with pytest.raises(QuizCompleteError):
                reduce(state, action)

    def test_items_after_completion(self):
        """Test captured items can still be attached."""
        state = answer_all(initial_state())
        item = CapturedItem(item_type="food", category="snack")

        state = reduce(state, ItemCaptured(item))
        assert state.captured_items == (item,)

    def test_items_never_move_index(self):
        state = reduce(initial_state(), ItemCaptured(CapturedItem(item_type="clothing", category="shirt")))
        assert state.index == 0
        assert len(state.captured_items) == 1

    def test_unknown_action(self):
        with pytest.raises(TypeError):
            reduce(initial_state(), "jump")

    def test_state_invariants(self):
        """Test completion flag must match index."""
        with pytest.raises(ValueError):
            QuizState(question_count=3, index=3, complete=False)
        with pytest.raises(ValueError):
            QuizState(question_count=3, index=4, complete=True)

    def test_replay(self):
        """Test replaying actions with fixed timestamps is reproducible."""
        stamp = "2024-05-01T10:00:00+00:00"
        actions = [
            AnswerRecorded("meat-heavy"),
            Advanced(timestamp=stamp),
            AnswerRecorded(["fast-fashion"]),
            Advanced(timestamp=stamp),
            Retreated(),
        ]

        first = replay(actions)
        second = replay(actions)

        assert first == second
        assert first.index == 1
        assert first.pending_answer == ("fast-fashion",)
