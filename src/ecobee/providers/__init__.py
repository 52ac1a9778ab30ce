"""
External service providers for ecobee

Scoring, product recognition, and chat collaborators with a common interface.
Currently: EcoBee backend (httpx), Mistral chat (openai), and mocks.
"""

from typing import Optional

from ..config import Config, config as default_config
from .backend import BackendChatService, BackendRecognitionService, BackendScoringService
from .base import (
    AuthenticationError,
    ChatService,
    ProviderError,
    RecognitionService,
    ScoringService,
    TransportError,
)
from .mistral import MistralChatService
from .mock import MockChatService, MockRecognitionService, MockScoringService


def get_scoring_service(cfg: Optional[Config] = None) -> ScoringService:
    """Scoring service for the given config (mock when offline)."""
    cfg = cfg or default_config
    if cfg.offline:
        return MockScoringService()
    return BackendScoringService(
        base_url=cfg.backend.base_url,
        timeout=cfg.backend.timeout_seconds,
        path=cfg.backend.intake_path,
    )


def get_recognition_service(cfg: Optional[Config] = None) -> RecognitionService:
    """Recognition service for the given config (mock when offline)."""
    cfg = cfg or default_config
    if cfg.offline:
        return MockRecognitionService()
    return BackendRecognitionService(
        base_url=cfg.backend.base_url,
        timeout=cfg.backend.timeout_seconds,
        path=cfg.backend.scan_path,
    )


def get_chat_service(cfg: Optional[Config] = None) -> ChatService:
    """
    Chat service for the given config.

    Raises:
        ValueError: Unknown chat provider name
    """
    cfg = cfg or default_config
    provider = "mock" if cfg.offline else cfg.chat.provider
    if provider == "mock":
        return MockChatService()
    if provider == "mistral":
        return MistralChatService(api_key=cfg.chat.mistral_api_key, default_model=cfg.chat.model)
    if provider == "backend":
        return BackendChatService(
            base_url=cfg.backend.base_url,
            timeout=cfg.backend.timeout_seconds,
            path=cfg.backend.chat_path,
        )
    raise ValueError(f"Unknown chat provider: {provider}")


__all__ = [
    "ProviderError",
    "TransportError",
    "AuthenticationError",
    "ScoringService",
    "RecognitionService",
    "ChatService",
    "BackendScoringService",
    "BackendRecognitionService",
    "BackendChatService",
    "MistralChatService",
    "MockScoringService",
    "MockRecognitionService",
    "MockChatService",
    "get_scoring_service",
    "get_recognition_service",
    "get_chat_service",
]
