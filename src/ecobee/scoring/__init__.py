"""
Scoring for ecobee

Result structures shared by the remote scoring service and the local
fallback scorer.
"""

from .result import (
    Boundary,
    BOUNDARY_NAMES,
    Recommendation,
    ScoreSource,
    ScoringResult,
    grade_for,
)
from .fallback import FallbackScorer, score_offline

__all__ = [
    "Boundary",
    "BOUNDARY_NAMES",
    "Recommendation",
    "ScoreSource",
    "ScoringResult",
    "grade_for",
    "FallbackScorer",
    "score_offline",
]
