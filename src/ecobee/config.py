"""
ecobee configuration

Service endpoints, fallback scoring knobs, and chat provider settings live here.
Environment variables override defaults for deployment flexibility.
"""

import os
from dataclasses import dataclass, field
from typing import Literal, Optional


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "")
    return float(raw) if raw else None


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "")
    return int(raw) if raw else None


@dataclass
class BackendConfig:
    """Where the scoring, recognition and chat services live"""
    base_url: str = os.getenv("ECOBEE_API_URL", "http://localhost:8000")
    timeout_seconds: Optional[float] = _optional_float("ECOBEE_API_TIMEOUT")  # None = wait for the server
    intake_path: str = "/api/intake"
    scan_path: str = "/api/scan-barcode"
    chat_path: str = "/api/chat"


@dataclass
class ScoringConfig:
    """Local fallback scorer"""
    baseline: float = float(os.getenv("FALLBACK_BASELINE", "50"))
    jitter: float = float(os.getenv("FALLBACK_JITTER", "0.0"))  # +/- bound, 0 = deterministic
    seed: Optional[int] = _optional_int("FALLBACK_SEED")


@dataclass
class ChatConfig:
    """Chat assistant backend"""
    provider: Literal["backend", "mistral", "mock"] = os.getenv("CHAT_PROVIDER", "backend")
    model: str = os.getenv("CHAT_MODEL", "mistral-small-latest")
    mistral_api_key: str = os.getenv("MISTRAL_API_KEY", "")
    max_tokens: int = int(os.getenv("CHAT_MAX_TOKENS", "600"))
    temperature: float = float(os.getenv("CHAT_TEMPERATURE", "0.7"))


@dataclass
class Config:
    """Master config, import this"""
    backend: BackendConfig = field(default_factory=BackendConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    offline: bool = os.getenv("ECOBEE_OFFLINE", "false").lower() == "true"

    @classmethod
    def offline_mode(cls) -> "Config":
        """Mock collaborators everywhere, no network"""
        cfg = cls()
        cfg.offline = True
        cfg.chat.provider = "mock"
        return cfg

    @classmethod
    def reproducible_mode(cls, seed: int = 0, jitter: float = 5.0) -> "Config":
        """Seeded jitter on fallback boundary scores"""
        cfg = cls()
        cfg.scoring.seed = seed
        cfg.scoring.jitter = jitter
        return cfg


# Singleton
config = Config()
