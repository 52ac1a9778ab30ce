"""
Base protocol for external service providers

Defines the interfaces for the scoring, recognition, and chat collaborators
the quiz engine talks to.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ..classifier import ScanResult
from ..quiz.schema import CapturedItem, QuizResponse
from ..scoring.result import ScoringResult


class ProviderError(Exception):
    """Base exception for provider errors."""
    pass


class TransportError(ProviderError):
    """Service unreachable, returned a non-success status, or sent an unusable payload."""
    pass


class AuthenticationError(TransportError):
    """Credentials missing or rejected."""
    pass


class ScoringService(ABC):
    """Authoritative scorer for a completed quiz."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g., 'backend', 'mock')."""
        pass

    @abstractmethod
    async def score(
        self,
        responses: Sequence[QuizResponse],
        items: Sequence[CapturedItem],
        session_id: str,
    ) -> ScoringResult:
        """
        Score a completed quiz.

        Args:
            responses: Committed responses in question order
            items: Captured items in scan order
            session_id: Session identifier

        Returns:
            ScoringResult

        Raises:
            TransportError: Service unreachable or response unusable
        """
        pass

    async def aclose(self) -> None:
        """Release network resources."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class RecognitionService(ABC):
    """Barcode / image recognition."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def scan(self, image: bytes, product_type: str = "food") -> ScanResult:
        """
        Recognise a product in an image.

        Args:
            image: Encoded image bytes (JPEG/PNG)
            product_type: "food" or "clothing" hint

        Returns:
            ScanResult (success may be False when nothing was detected)

        Raises:
            TransportError: Service unreachable
        """
        pass

    async def aclose(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class ChatService(ABC):
    """Sustainability chat assistant."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def reply(self, message: str, context: str, *, model: Optional[str] = None) -> str:
        """
        Get an assistant reply.

        Args:
            message: User message
            context: Context string describing the user's results

        Returns:
            Reply text

        Raises:
            TransportError: Service unreachable
            AuthenticationError: Missing credentials
        """
        pass

    async def aclose(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
