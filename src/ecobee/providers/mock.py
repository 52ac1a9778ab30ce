"""
Mock services for testing

Return configurable results without making network calls.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from ..classifier import ScanResult
from ..quiz.schema import QUIZ_QUESTIONS, CapturedItem, QuizQuestion, QuizResponse
from ..scoring.fallback import FallbackScorer
from ..scoring.result import ScoreSource, ScoringResult
from .base import ChatService, RecognitionService, ScoringService, TransportError


@dataclass
class MockScoringService(ScoringService):
    """
    Mock scoring service.

    Returns fixed_result if given, otherwise scores locally with the
    fallback algorithm and tags the result as mock.
    """

    fixed_result: Optional[ScoringResult] = None
    fail: bool = False
    delay_seconds: float = 0.0
    questions: tuple[QuizQuestion, ...] = QUIZ_QUESTIONS
    calls: list[dict] = field(default_factory=list)

    @property
    def name(self) -> str:
        return "mock"

    async def score(
        self,
        responses: Sequence[QuizResponse],
        items: Sequence[CapturedItem],
        session_id: str,
    ) -> ScoringResult:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        self.calls.append({
            "responses": list(responses),
            "items": list(items),
            "session_id": session_id,
        })

        if self.fail:
            raise TransportError("Simulated scoring service failure")

        if self.fixed_result is not None:
            return self.fixed_result

        result = FallbackScorer(self.questions, jitter=0).score(responses)
        result.source = ScoreSource.MOCK
        result.items = [i.to_dict() for i in items]
        result.boundary_details["method"] = "mock"
        return result


@dataclass
class MockRecognitionService(RecognitionService):
    """Mock recognition service; returns fixed_result or a canned snack scan."""

    fixed_result: Optional[ScanResult] = None
    fail: bool = False
    calls: int = 0

    @property
    def name(self) -> str:
        return "mock"

    async def scan(self, image: bytes, product_type: str = "food") -> ScanResult:
        self.calls += 1
        if self.fail:
            raise TransportError("Simulated recognition service failure")
        if self.fixed_result is not None:
            return self.fixed_result
        return ScanResult.from_dict(sample_scan_payload())


@dataclass
class MockChatService(ChatService):
    """Mock chat service; echoes the message unless fixed_reply or reply_generator is set."""

    fixed_reply: Optional[str] = None
    reply_generator: Optional[Callable[[str, str], str]] = None
    fail: bool = False
    messages: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return "mock"

    async def reply(self, message: str, context: str, *, model: Optional[str] = None) -> str:
        self.messages.append(message)
        if self.fail:
            raise TransportError("Simulated chat service failure")
        if self.fixed_reply is not None:
            return self.fixed_reply
        if self.reply_generator is not None:
            return self.reply_generator(message, context)
        return f"Mock reply to: {message}"


def sample_scan_payload(
    name: str = "Haribo Tangfastics",
    category: str = "Confectioneries",
    barcode: str = "5000299225028",
) -> dict:
    """Recognition-service payload for a scanned product, in wire format."""
    return {
        "success": True,
        "barcode": barcode,
        "detected": True,
        "product_info": {
            "name": name,
            "category": category,
            "confidence": 0.95,
        },
        "product_details": {"name": name, "brand": "Haribo"},
        "sustainability": {
            "name": name,
            "brand": "Haribo",
            "category": category,
            "ingredients": ["glucose syrup", "sugar", "gelatine"],
            "eco_rating": "D",
            "sustainability_score": {
                "overall_score": 35,
                "environmental_impact": 60,
                "carbon_footprint": 55,
                "packaging_score": 70,
                "recyclability": 30,
                "ethical_sourcing": 45,
            },
            "environmental_tips": ["Buy sweets loose or in paper bags"],
        },
    }
