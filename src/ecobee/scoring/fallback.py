"""
Fallback scorer

Local approximation used when the scoring service can't be reached. Only the
food and transport answers move the score; everything else keeps the
baseline. Results are tagged ScoreSource.FALLBACK.
"""

import logging
import random
from typing import Iterable, Optional

from ..config import config
from ..quiz.schema import QUIZ_QUESTIONS, QuestionCategory, QuizQuestion, QuizResponse, get_question
from .result import (
    BOUNDARY_NAMES,
    Boundary,
    Recommendation,
    ScoreSource,
    ScoringResult,
    clamp,
    grade_for,
)

logger = logging.getLogger(__name__)


FOOD_DELTAS = {
    "plant-based": -20,
    "mixed": -5,
    "meat-heavy": 15,
    "packaged": 10,
}

TRANSPORT_DELTAS = {
    "walk": -15,
    "bike": -15,
    "public": -5,
    "electric": 5,
    "car": 20,
}

# How strongly each boundary reacts to the (food, transport) deltas
BOUNDARY_WEIGHTS = {
    Boundary.CLIMATE: (1.0, 1.0),
    Boundary.BIOSPHERE: (1.2, 0.3),
    Boundary.BIOGEOCHEMICAL: (1.1, 0.4),
    Boundary.FRESHWATER: (0.9, 0.2),
    Boundary.AEROSOLS: (0.3, 1.2),
}

RECOMMENDATIONS = {
    Boundary.CLIMATE: [
        ("Choose more plant-based meals", "Reduce climate impact by 50%"),
        ("Use public transport or walk more", "Lower your carbon footprint"),
    ],
    Boundary.BIOSPHERE: [
        ("Swap one meat meal a day for a plant-based one", "Less land cleared for grazing and feed"),
        ("Pick seasonal, locally grown produce", "Supports healthier local ecosystems"),
    ],
    Boundary.BIOGEOCHEMICAL: [
        ("Cut down on packaged and processed food", "Less fertiliser run-off and packaging waste"),
        ("Compost food scraps", "Returns nutrients to soil instead of landfill"),
    ],
    Boundary.FRESHWATER: [
        ("Eat fewer water-intensive foods like beef and nuts", "Saves thousands of litres per week"),
        ("Shorten showers and fix leaks", "Direct cut in household water use"),
    ],
    Boundary.AEROSOLS: [
        ("Walk or cycle for short trips", "Less exhaust and particulate pollution"),
        ("Combine errands into one car trip", "Fewer cold starts and emissions"),
    ],
}


class FallbackScorer:
    """
    Deterministic approximation of the remote scorer.

    Boundary scores are a fixed weighting of the same answer deltas that move
    the composite. Optional jitter is drawn from an injected random source, so
    seeded runs are reproducible.
    """

    def __init__(
        self,
        questions: tuple[QuizQuestion, ...] = QUIZ_QUESTIONS,
        baseline: Optional[float] = None,
        jitter: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize scorer.

        Args:
            questions: Question set responses refer to
            baseline: Starting composite (defaults to config)
            jitter: +/- bound of random noise per boundary (defaults to config)
            rng: Random source for jitter (defaults to one seeded from config)
        """
        self.questions = questions
        self.baseline = config.scoring.baseline if baseline is None else baseline
        self.jitter = config.scoring.jitter if jitter is None else jitter
        self.rng = rng if rng is not None else random.Random(config.scoring.seed)

    def _category_delta(
        self,
        responses: Iterable[QuizResponse],
        category: QuestionCategory,
        deltas: dict[str, int],
    ) -> int:
        """Delta from the first response in a category whose answer has one."""
        for response in responses:
            question = get_question(response.question_id, self.questions)
            if question.category == category and response.answer in deltas:
                return deltas[response.answer]
        return 0

    def score(self, responses: Iterable[QuizResponse]) -> ScoringResult:
        """
        Compute an approximate score.

        Args:
            responses: Committed quiz responses

        Returns:
            ScoringResult tagged as fallback

        Raises:
            UnknownQuestionError: A response refers to a question not in the set
        """
        responses = list(responses)
        food = self._category_delta(responses, QuestionCategory.FOOD, FOOD_DELTAS)
        transport = self._category_delta(responses, QuestionCategory.TRANSPORT, TRANSPORT_DELTAS)

        composite = clamp(self.baseline + food + transport)

        averages = {}
        for boundary, (food_weight, transport_weight) in BOUNDARY_WEIGHTS.items():
            value = self.baseline + food * food_weight + transport * transport_weight
            if self.jitter > 0:
                value += self.rng.uniform(-self.jitter, self.jitter)
            averages[boundary.value] = round(clamp(value), 1)

        result = ScoringResult(
            per_boundary_averages=averages,
            composite=composite,
            grade=grade_for(composite),
            boundary_details={
                "method": "fallback",
                "food_delta": food,
                "transport_delta": transport,
            },
            source=ScoreSource.FALLBACK,
        )
        result.recommendations = self._recommendations(result)

        logger.debug(f"Fallback score {composite} ({result.grade}) from {len(responses)} responses")
        return result

    def _recommendations(self, result: ScoringResult) -> list[Recommendation]:
        """Two actions for the boundary with the worst impact score."""
        worst = result.worst_boundary
        current = result.per_boundary_averages[worst.value]
        return [
            Recommendation(
                action=action,
                impact=impact,
                boundary=BOUNDARY_NAMES[worst],
                current_score=current,
            )
            for action, impact in RECOMMENDATIONS[worst]
        ]


def score_offline(responses: Iterable[QuizResponse]) -> ScoringResult:
    """Score with default fallback settings."""
    return FallbackScorer().score(responses)
