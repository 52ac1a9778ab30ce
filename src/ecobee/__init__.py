"""
ecobee: lifestyle sustainability quiz engine.

Walks a user through a short daily-habits questionnaire, folds in scanned
products, and scores the result against five planetary boundaries.
"""

__version__ = "0.1.0"

from .config import config
from .classifier import Suggestion, classify_product, captured_item_from_scan, ScanResult
from .engine import QuizEngine, ScanOutcome, SUGGESTION_RULES
from .scoring import Boundary, ScoreSource, ScoringResult, FallbackScorer, score_offline
from .chat import ChatAssistant

__all__ = [
    # Config
    "config",
    # Classifier
    "Suggestion",
    "classify_product",
    "captured_item_from_scan",
    "ScanResult",
    # Engine
    "QuizEngine",
    "ScanOutcome",
    "SUGGESTION_RULES",
    # Scoring
    "Boundary",
    "ScoreSource",
    "ScoringResult",
    "FallbackScorer",
    "score_offline",
    # Chat
    "ChatAssistant",
]
