"""
Quiz system for ecobee

Question set, answer validation, and the immutable session state with its
reducer.
"""

from .schema import (
    QUIZ_QUESTIONS,
    CapturedItem,
    NavigationError,
    QuestionCategory,
    QuestionType,
    QuizCompleteError,
    QuizError,
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
from .state import (
    Action,
    Advanced,
    AnswerRecorded,
    ItemCaptured,
    QuizState,
    Retreated,
    initial_state,
    reduce,
    replay,
)

__all__ = [
    # Schema
    "QUIZ_QUESTIONS",
    "QuizQuestion",
    "QuizOption",
    "QuizResponse",
    "QuestionType",
    "QuestionCategory",
    "CapturedItem",
    "SustainabilityData",
    "get_question",
    "get_quiz_dict",
    "validate_response",
    "normalize_answer",
    # Errors
    "QuizError",
    "ValidationError",
    "UnknownQuestionError",
    "QuizCompleteError",
    "NavigationError",
    # State
    "QuizState",
    "Action",
    "AnswerRecorded",
    "Advanced",
    "Retreated",
    "ItemCaptured",
    "initial_state",
    "reduce",
    "replay",
]
