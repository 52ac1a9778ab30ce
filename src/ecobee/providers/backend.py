"""
EcoBee backend service clients

Talks to the EcoBee API over HTTP for scoring, barcode recognition, and chat.
All three share one lazily created httpx client per service instance.
"""

import logging
from typing import Optional, Sequence

import httpx

from ..classifier import ScanResult
from ..config import config
from ..quiz.schema import QUIZ_QUESTIONS, CapturedItem, QuizQuestion, QuizResponse, get_question
from ..scoring.result import ScoreSource, ScoringResult
from .base import ChatService, RecognitionService, ScoringService, TransportError

logger = logging.getLogger(__name__)


class BackendClient:
    """
    Shared HTTP plumbing for the backend services.

    Base URL and timeout come from:
    1. Constructor arguments
    2. ECOBEE_API_URL / ECOBEE_API_TIMEOUT environment variables
    """

    name = "backend"
    path_setting = ""  # BackendConfig field holding this service's endpoint

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        path: Optional[str] = None,
    ):
        """
        Initialize client.

        Args:
            base_url: API base URL (falls back to config)
            timeout: Request timeout in seconds; None waits for the server
            transport: Custom httpx transport (used by tests)
            path: Endpoint path (falls back to config)
        """
        self._base_url = (base_url or config.backend.base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else config.backend.timeout_seconds
        self._transport = transport
        self.path = path or getattr(config.backend, self.path_setting)
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Lazy initialization of HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def _post(self, path: str, **kwargs) -> dict:
        """POST and decode a JSON object, mapping every failure to TransportError."""
        client = self._get_client()
        try:
            response = await client.post(path, **kwargs)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise TransportError(f"{path} returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{path} unreachable: {e}") from e
        except ValueError as e:
            raise TransportError(f"{path} returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise TransportError(f"{path} returned {type(data).__name__}, expected an object")
        return data

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class BackendScoringService(BackendClient, ScoringService):
    """Scores completed quizzes via POST /api/intake."""

    path_setting = "intake_path"

    def __init__(self, *args, questions: tuple[QuizQuestion, ...] = QUIZ_QUESTIONS, **kwargs):
        super().__init__(*args, **kwargs)
        self.questions = questions

    def _response_payload(self, response: QuizResponse) -> dict:
        question = get_question(response.question_id, self.questions)
        payload = response.to_dict()
        payload["question_text"] = question.text
        payload["category"] = question.category.value
        return payload

    async def score(
        self,
        responses: Sequence[QuizResponse],
        items: Sequence[CapturedItem],
        session_id: str,
    ) -> ScoringResult:
        payload = {
            "quiz_responses": [self._response_payload(r) for r in responses],
            "items": [i.to_dict() for i in items],
            "session_id": session_id,
            "user_id": None,
        }
        data = await self._post(self.path, json=payload)

        scoring = data.get("scoring_result")
        if not scoring:
            raise TransportError("No scoring result received")
        try:
            result = ScoringResult.from_dict(scoring)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise TransportError(f"Malformed scoring result: {e}") from e

        result.source = ScoreSource.REMOTE
        logger.debug(f"Remote score {result.composite} ({result.grade}) for session {session_id}")
        return result


class BackendRecognitionService(BackendClient, RecognitionService):
    """Recognises products via POST /api/scan-barcode."""

    path_setting = "scan_path"

    async def scan(self, image: bytes, product_type: str = "food") -> ScanResult:
        data = await self._post(
            self.path,
            files={"image": ("capture.jpg", image, "image/jpeg")},
            data={"product_type": product_type},
        )
        return ScanResult.from_dict(data)


class BackendChatService(BackendClient, ChatService):
    """Chat replies via POST /api/chat."""

    path_setting = "chat_path"

    async def reply(self, message: str, context: str, *, model: Optional[str] = None) -> str:
        data = await self._post(self.path, json={"message": message, "context": context})
        return data.get("response") or ""
