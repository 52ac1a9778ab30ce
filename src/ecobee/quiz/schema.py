"""
Quiz schema and data structures

Defines the lifestyle questionnaire, response records, scanned product items,
and per-question answer validation.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class QuizError(Exception):
    """Base exception for quiz engine errors."""
    pass


class ValidationError(QuizError):
    """Answer rejected for the current question."""

    def __init__(self, question_id: str, message: str):
        super().__init__(f"{question_id}: {message}")
        self.question_id = question_id
        self.message = message


class UnknownQuestionError(QuizError, KeyError):
    """A response referenced a question that is not in the question set."""
    pass


class QuizCompleteError(QuizError):
    """Operation attempted after the quiz reached its terminal state."""
    pass


class NavigationError(QuizError):
    """Illegal move, e.g. going back from the first question."""
    pass


class QuestionType(str, Enum):
    """Types of quiz questions."""
    SINGLE = "single"
    MULTIPLE = "multiple"
    SCALE = "scale"
    TEXT = "text"


class QuestionCategory(str, Enum):
    """Lifestyle areas a question belongs to."""
    FOOD = "food"
    CLOTHING = "clothing"
    TRANSPORT = "transport"
    LIFESTYLE = "lifestyle"
    REFLECTION = "reflection"


@dataclass(frozen=True)
class QuizOption:
    """An option for single/multiple questions."""
    value: str
    label: str
    description: str = ""

    def to_dict(self) -> dict:
        result = {"value": self.value, "label": self.label}
        if self.description:
            result["description"] = self.description
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "QuizOption":
        return cls(
            value=data["value"],
            label=data["label"],
            description=data.get("description", ""),
        )


@dataclass(frozen=True)
class QuizQuestion:
    """A single quiz question."""
    id: str
    category: QuestionCategory
    type: QuestionType
    text: str
    options: tuple[QuizOption, ...] = ()
    scale_max: Optional[int] = None
    placeholder: str = ""

    @property
    def option_values(self) -> list[str]:
        return [o.value for o in self.options]

    def to_dict(self) -> dict:
        result = {
            "id": self.id,
            "category": self.category.value,
            "type": self.type.value,
            "text": self.text,
        }
        if self.options:
            result["options"] = [o.to_dict() for o in self.options]
        if self.scale_max is not None:
            result["scale_max"] = self.scale_max
        if self.placeholder:
            result["placeholder"] = self.placeholder
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "QuizQuestion":
        return cls(
            id=data["id"],
            category=QuestionCategory(data["category"]),
            type=QuestionType(data["type"]),
            text=data["text"],
            options=tuple(QuizOption.from_dict(o) for o in data.get("options", [])),
            scale_max=data.get("scale_max"),
            placeholder=data.get("placeholder", ""),
        )


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class QuizResponse:
    """Committed answer to a quiz question."""
    question_id: str
    answer: Any  # str for single/text, tuple[str, ...] for multiple, int for scale
    timestamp: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict:
        answer = list(self.answer) if isinstance(self.answer, tuple) else self.answer
        return {
            "question_id": self.question_id,
            "answer": answer,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QuizResponse":
        answer = data["answer"]
        if isinstance(answer, list):
            answer = tuple(answer)
        return cls(
            question_id=data["question_id"],
            answer=answer,
            timestamp=data.get("timestamp") or _utc_now(),
        )


@dataclass(frozen=True)
class SustainabilityData:
    """
    Sustainability payload returned by the recognition service for a product.

    Sub-scores are 0-100; missing ones default to a neutral 50.
    """
    name: str = ""
    brand: str = ""
    category: str = ""
    description: str = ""
    ingredients: tuple[str, ...] = ()
    overall_score: float = 50
    environmental_impact: float = 50
    carbon_footprint: float = 50
    packaging_score: float = 50
    recyclability: float = 50
    ethical_sourcing: float = 50
    certifications: tuple[str, ...] = ()
    improvement_suggestions: tuple[str, ...] = ()
    eco_rating: str = ""
    environmental_tips: tuple[str, ...] = ()
    alternatives: tuple[dict, ...] = ()  # {"name": ..., "reason": ...}

    @property
    def detailed_scores(self) -> dict[str, float]:
        return {
            "overall_score": self.overall_score,
            "environmental_impact": self.environmental_impact,
            "carbon_footprint": self.carbon_footprint,
            "packaging_score": self.packaging_score,
            "recyclability": self.recyclability,
            "ethical_sourcing": self.ethical_sourcing,
        }

    @property
    def boundary_impacts(self) -> dict[str, float]:
        """Product sub-scores projected onto the five planetary boundaries."""
        return {
            "climate": self.carbon_footprint,
            "biosphere": self.environmental_impact,
            "biogeochemical": self.packaging_score,
            "freshwater": self.environmental_impact,
            "aerosols": self.environmental_impact,
        }

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "brand": self.brand,
            "category": self.category,
            "description": self.description,
            "ingredients": list(self.ingredients),
            "eco_rating": self.eco_rating,
            "environmental_tips": list(self.environmental_tips),
            "alternatives": [dict(a) for a in self.alternatives],
            "certifications": list(self.certifications),
            "improvement_suggestions": list(self.improvement_suggestions),
            "detailed_scores": self.detailed_scores,
            "boundary_impacts": self.boundary_impacts,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SustainabilityData":
        """Parse the service's `sustainability` record (nested `sustainability_score`)."""
        scores = data.get("sustainability_score") or data.get("detailed_scores") or {}

        def score(key: str) -> float:
            value = scores.get(key)
            return float(value) if value is not None else 50.0

        return cls(
            name=data.get("name") or "",
            brand=data.get("brand") or "",
            category=data.get("category") or "",
            description=data.get("description") or "",
            ingredients=tuple(data.get("ingredients") or ()),
            overall_score=score("overall_score"),
            environmental_impact=score("environmental_impact"),
            carbon_footprint=score("carbon_footprint"),
            packaging_score=score("packaging_score"),
            recyclability=score("recyclability"),
            ethical_sourcing=score("ethical_sourcing"),
            certifications=tuple(scores.get("certifications") or data.get("certifications") or ()),
            improvement_suggestions=tuple(
                scores.get("improvement_suggestions") or data.get("improvement_suggestions") or ()
            ),
            eco_rating=data.get("eco_rating") or "",
            environmental_tips=tuple(data.get("environmental_tips") or ()),
            alternatives=tuple(data.get("alternatives") or ()),
        )


@dataclass(frozen=True)
class CapturedItem:
    """A scanned real-world product attached to the session."""
    item_type: str  # "food" or "clothing"
    category: str
    materials: tuple[str, ...] = ()
    barcode: Optional[str] = None
    confidence: float = 0.9
    source: str = "barcode"
    product_name: str = ""
    sustainability: Optional[SustainabilityData] = None

    def __post_init__(self):
        if self.item_type not in ("food", "clothing"):
            raise ValueError(f"Unknown item type: {self.item_type!r}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be within [0, 1], got {self.confidence}")

    def to_dict(self) -> dict:
        return {
            "type": self.item_type,
            "category": self.category,
            "materials": list(self.materials),
            "barcode": self.barcode,
            "confidence": self.confidence,
            "source": self.source,
            "product_name": self.product_name,
            "sustainabilityData": self.sustainability.to_dict() if self.sustainability else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CapturedItem":
        sustainability = data.get("sustainabilityData")
        return cls(
            item_type=data["type"],
            category=data.get("category", "unknown"),
            materials=tuple(data.get("materials", ())),
            barcode=data.get("barcode"),
            confidence=float(data.get("confidence", 0.9)),
            source=data.get("source", "barcode"),
            product_name=data.get("product_name", ""),
            sustainability=SustainabilityData.from_dict(sustainability) if sustainability else None,
        )


# =============================================================================
# QUIZ QUESTIONS (Static)
# =============================================================================

QUIZ_QUESTIONS: tuple[QuizQuestion, ...] = (
    QuizQuestion(
        id="food_today",
        category=QuestionCategory.FOOD,
        type=QuestionType.SINGLE,
        text="What best describes what you ate today?",
        options=(
            QuizOption("plant-based", "Mostly plant-based", "Vegetables, grains, legumes, fruit"),
            QuizOption("mixed", "A mix", "Some meat or dairy alongside plants"),
            QuizOption("meat-heavy", "Meat-heavy", "Meat with most meals"),
            QuizOption("packaged", "Processed / packaged", "Snacks, ready meals, takeaway"),
        ),
    ),
    QuizQuestion(
        id="clothing_today",
        category=QuestionCategory.CLOTHING,
        type=QuestionType.MULTIPLE,
        text="Where did the clothes you're wearing today come from?",
        options=(
            QuizOption("second-hand", "Second-hand or vintage"),
            QuizOption("sustainable-brand", "Sustainable or certified brand"),
            QuizOption("fast-fashion", "Fast-fashion retailer"),
            QuizOption("repaired", "Repaired, swapped or handmade"),
        ),
    ),
    QuizQuestion(
        id="transport_today",
        category=QuestionCategory.TRANSPORT,
        type=QuestionType.SINGLE,
        text="How did you mostly get around today?",
        options=(
            QuizOption("walk", "Walked"),
            QuizOption("bike", "Cycled"),
            QuizOption("public", "Public transport"),
            QuizOption("electric", "Electric vehicle"),
            QuizOption("car", "Petrol or diesel car"),
        ),
    ),
    QuizQuestion(
        id="energy_use",
        category=QuestionCategory.LIFESTYLE,
        type=QuestionType.SCALE,
        text="How careful were you with energy today? (1 = not at all, 5 = very)",
        scale_max=5,
    ),
    QuizQuestion(
        id="waste_habits",
        category=QuestionCategory.LIFESTYLE,
        type=QuestionType.MULTIPLE,
        text="Which of these did you do today?",
        options=(
            QuizOption("recycled", "Recycled"),
            QuizOption("composted", "Composted food waste"),
            QuizOption("reusables", "Used a reusable bottle, cup or bag"),
            QuizOption("refused-plastic", "Refused single-use plastic"),
            QuizOption("none", "None of these"),
        ),
    ),
    QuizQuestion(
        id="water_use",
        category=QuestionCategory.LIFESTYLE,
        type=QuestionType.SCALE,
        text="How mindful were you of water use today? (1 = not at all, 5 = very)",
        scale_max=5,
    ),
    QuizQuestion(
        id="one_change",
        category=QuestionCategory.REFLECTION,
        type=QuestionType.TEXT,
        text="What is one change you'd like to make this week?",
        placeholder="e.g., cycle to campus twice, cook a plant-based dinner",
    ),
)


def get_question(question_id: str, questions: tuple[QuizQuestion, ...] = QUIZ_QUESTIONS) -> QuizQuestion:
    """Look up a question by id, failing loudly if it doesn't exist."""
    for question in questions:
        if question.id == question_id:
            return question
    raise UnknownQuestionError(question_id)


def get_quiz_dict() -> list[dict]:
    """Get quiz questions as list of dicts (for JSON serialization)."""
    return [q.to_dict() for q in QUIZ_QUESTIONS]


def validate_response(question: QuizQuestion, value: Any) -> Optional[str]:
    """
    Validate a candidate answer for a question.

    Args:
        question: The question being answered
        value: Candidate answer

    Returns:
        Error message, or None if the answer is acceptable
    """
    if question.type == QuestionType.SINGLE:
        if not isinstance(value, str) or value not in question.option_values:
            return "selection required"
        return None

    if question.type == QuestionType.MULTIPLE:
        if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
            return "select at least one option"
        if not value:
            return "select at least one option"
        for token in value:
            if token not in question.option_values:
                return f"invalid option: {token}"
        return None

    if question.type == QuestionType.SCALE:
        # bool is an int subclass; True is not a rating
        if isinstance(value, bool) or not isinstance(value, int):
            return "a whole number is required"
        maximum = question.scale_max or 5
        if not 1 <= value <= maximum:
            return f"choose a value between 1 and {maximum}"
        return None

    if question.type == QuestionType.TEXT:
        if not isinstance(value, str) or not value.strip():
            return "response required"
        return None

    raise ValueError(f"Unsupported question type: {question.type}")


def normalize_answer(question: QuizQuestion, value: Any) -> Any:
    """Canonical form of an accepted answer."""
    if question.type == QuestionType.MULTIPLE:
        chosen = set(value)
        return tuple(v for v in question.option_values if v in chosen)
    if question.type == QuestionType.TEXT:
        return value.strip()
    return value
