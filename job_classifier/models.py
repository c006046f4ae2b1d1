"""Core data models for job complexity classification."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TrafficLight(Enum):
    """Per-job severity. Ordered green < amber < red."""
    GREEN = "green"
    AMBER = "amber"
    RED = "red"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    TrafficLight.GREEN: 0,
    TrafficLight.AMBER: 1,
    TrafficLight.RED: 2,
}


class RecommendedRoute(Enum):
    """Operational next step for a job or a whole call."""
    INSTANT = "instant"
    VIDEO = "video"
    VISIT = "visit"
    REFER = "refer"

    @property
    def action_label(self) -> str:
        """Button text shown to the call handler."""
        return _ACTION_LABELS[self]


_ACTION_LABELS = {
    RecommendedRoute.INSTANT: "Book Job",
    RecommendedRoute.VIDEO: "Send Video Request",
    RecommendedRoute.VISIT: "Schedule Visit",
    RecommendedRoute.REFER: "Refer to Specialist",
}


@dataclass(frozen=True)
class JobInput:
    """A job detected in a call, as supplied by the transcription/SKU layer."""
    id: str
    description: str
    matched: bool = False
    sku_id: Optional[str] = None
    sku_name: Optional[str] = None


@dataclass
class ClassificationResult:
    """Classification of a single job."""
    traffic_light: TrafficLight
    recommended_route: RecommendedRoute
    confidence: int  # 0-100
    tier: int  # 1 or 2
    signals: list[str] = field(default_factory=list)
    complexity_score: Optional[int] = None  # 0-10
    needs_specialist: Optional[bool] = None
    reasoning: Optional[str] = None
    needs_review: bool = False

    def to_dict(self) -> dict:
        return {
            "traffic_light": self.traffic_light.value,
            "recommended_route": self.recommended_route.value,
            "confidence": self.confidence,
            "tier": self.tier,
            "signals": list(self.signals),
            "complexity_score": self.complexity_score,
            "needs_specialist": self.needs_specialist,
            "reasoning": self.reasoning,
            "needs_review": self.needs_review,
        }


@dataclass
class ClassificationOutput:
    """Single-job classification plus timing."""
    result: ClassificationResult
    processing_time_ms: float

    def to_dict(self) -> dict:
        return {
            "result": self.result.to_dict(),
            "processing_time_ms": round(self.processing_time_ms, 2),
        }


@dataclass
class OverallRecommendation:
    """Call-level routing recommendation."""
    route: RecommendedRoute
    reason: str
    confidence: int  # 0-100
    job_ids: list[str] = field(default_factory=list)  # Jobs that determined the route

    @property
    def action_label(self) -> str:
        return self.route.action_label

    def to_dict(self) -> dict:
        return {
            "route": self.route.value,
            "reason": self.reason,
            "confidence": self.confidence,
            "job_ids": list(self.job_ids),
            "action_label": self.action_label,
        }
