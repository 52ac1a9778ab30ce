"""
Scoring result structures

Shared shape for results from the remote scoring service and the local
fallback scorer, so display code never needs to know which one produced it.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Boundary(str, Enum):
    """Planetary boundaries a score is decomposed into."""
    CLIMATE = "climate"
    BIOSPHERE = "biosphere"
    BIOGEOCHEMICAL = "biogeochemical"
    FRESHWATER = "freshwater"
    AEROSOLS = "aerosols"


BOUNDARY_NAMES = {
    Boundary.CLIMATE: "Climate Change",
    Boundary.BIOSPHERE: "Biosphere Integrity",
    Boundary.BIOGEOCHEMICAL: "Biogeochemical Flows",
    Boundary.FRESHWATER: "Freshwater Use",
    Boundary.AEROSOLS: "Aerosols & Novel Entities",
}


class ScoreSource(str, Enum):
    """Where a ScoringResult came from."""
    REMOTE = "remote"
    FALLBACK = "fallback"
    MOCK = "mock"


# Composite thresholds (inclusive upper bound, grade). Lower impact is better.
GRADE_THRESHOLDS = [
    (30, "A"),
    (50, "B"),
    (70, "C"),
]


def grade_for(composite: float) -> str:
    """Letter grade for a composite impact score."""
    for threshold, grade in GRADE_THRESHOLDS:
        if composite <= threshold:
            return grade
    return "D"


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


@dataclass
class Recommendation:
    """Suggested action tied to a boundary."""
    action: str
    impact: str
    boundary: str
    current_score: float

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "impact": self.impact,
            "boundary": self.boundary,
            "current_score": self.current_score,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Recommendation":
        return cls(
            action=data["action"],
            impact=data.get("impact", ""),
            boundary=data.get("boundary", ""),
            current_score=float(data.get("current_score", 0)),
        )


@dataclass
class ScoringResult:
    """
    Environmental impact score for a completed quiz.

    per_boundary_averages holds one 0-100 impact score per Boundary;
    composite is the 0-100 aggregate (lower is better).
    """
    per_boundary_averages: dict[str, float]
    composite: float
    grade: str
    recommendations: list[Recommendation] = field(default_factory=list)
    items: list[dict] = field(default_factory=list)
    boundary_details: dict[str, Any] = field(default_factory=dict)
    source: ScoreSource = ScoreSource.REMOTE

    def __post_init__(self):
        missing = [b.value for b in Boundary if b.value not in self.per_boundary_averages]
        if missing:
            raise ValueError(f"Missing boundary scores: {', '.join(missing)}")

    @property
    def is_fallback(self) -> bool:
        return self.source == ScoreSource.FALLBACK

    @property
    def worst_boundary(self) -> Boundary:
        """Boundary with the highest impact score; ties go to the earlier boundary."""
        return max(Boundary, key=lambda b: self.per_boundary_averages[b.value])

    @property
    def best_boundary(self) -> Boundary:
        return min(Boundary, key=lambda b: self.per_boundary_averages[b.value])

    def to_dict(self) -> dict:
        return {
            "items": self.items,
            "per_boundary_averages": dict(self.per_boundary_averages),
            "composite": self.composite,
            "grade": self.grade,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "boundary_details": self.boundary_details,
            "source": self.source.value,
        }

    @classmethod
    def from_dict(cls, data: dict, source: ScoreSource = ScoreSource.REMOTE) -> "ScoringResult":
        """
        Build from a service payload.

        Raises:
            KeyError / ValueError / TypeError: Payload doesn't have the expected shape
        """
        averages = {k: float(v) for k, v in data["per_boundary_averages"].items()}
        composite = float(data["composite"])
        known = {s.value for s in ScoreSource}
        tag = data.get("source")
        if tag in known:
            source = ScoreSource(tag)
        return cls(
            per_boundary_averages=averages,
            composite=composite,
            grade=data.get("grade") or grade_for(composite),
            recommendations=[Recommendation.from_dict(r) for r in data.get("recommendations", [])],
            items=list(data.get("items", [])),
            boundary_details=dict(data.get("boundary_details") or {}),
            source=source,
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)
