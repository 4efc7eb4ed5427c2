"""Core data structures for DataPilot."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


def generate_id() -> str:
    return uuid.uuid4().hex[:12]


# ---------------------------------------------------------------------------
# Provider responses
# ---------------------------------------------------------------------------


@dataclass
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class ModelResponse:
    text: str | None = None
    usage: TokenUsage = field(default_factory=TokenUsage)
    raw: Any = None


# ---------------------------------------------------------------------------
# Gateway results
# ---------------------------------------------------------------------------


@dataclass
class GatewayResult(Generic[T]):
    """Tagged result: either a real payload or a degraded stand-in for one.

    Both carry a usable ``value``; ``ok`` tells them apart.
    """

    value: T
    ok: bool = True
    error: str | None = None

    @classmethod
    def degraded(cls, value: T, error: str) -> "GatewayResult[T]":
        return cls(value=value, ok=False, error=error)


@dataclass
class CodeResult:
    code: str
    explanation: str


# ---------------------------------------------------------------------------
# Plan and artifacts
# ---------------------------------------------------------------------------

STEP_STATUSES = ("pending", "active", "completed", "failed")

_ALLOWED_TRANSITIONS = {
    "pending": {"active"},
    "active": {"completed", "failed"},
    "completed": set(),
    "failed": set(),
}


class InvalidTransition(ValueError):
    """A step status change that would move backwards or skip a state."""


@dataclass
class PlanStep:
    id: int
    description: str
    status: str = "pending"  # pending | active | completed | failed
    code: str | None = None
    explanation: str | None = None

    def transition(self, status: str):
        if status not in STEP_STATUSES:
            raise InvalidTransition(f"Step {self.id}: unknown status {status!r}")
        if status not in _ALLOWED_TRANSITIONS.get(self.status, set()):
            raise InvalidTransition(f"Step {self.id}: cannot go from {self.status} to {status}")
        self.status = status

    @property
    def finished(self) -> bool:
        return self.status in ("completed", "failed")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "status": self.status,
            "code": self.code,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class Artifact:
    id: str
    title: str
    kind: str  # code | narrative
    content: str
    language: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "kind": self.kind,
            "content": self.content,
            "language": self.language,
        }


@dataclass
class LogEntry:
    role: str  # Planner | Coder | Reviewer | Summary | User | System
    content: str
    kind: str = "info"  # info | code | success | error | plan
    id: str = field(default_factory=generate_id)
    ts: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {"id": self.id, "role": self.role, "content": self.content, "kind": self.kind, "ts": self.ts}


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass
class Event:
    type: str
    run_id: str
    ts: float = field(default_factory=time.time)
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"type": self.type, "run_id": self.run_id, "ts": self.ts, "data": self.data}


# ---------------------------------------------------------------------------
# Telemetry
# ---------------------------------------------------------------------------


@dataclass
class BatchRecord:
    id: str
    timestamp: str
    version: str
    quality: str
    drift_level: str

    def to_dict(self) -> dict:
        # "drift" duplicates "driftLevel" for older dashboard builds
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "version": self.version,
            "quality": self.quality,
            "drift": self.drift_level,
            "driftLevel": self.drift_level,
        }


@dataclass
class MetricsSnapshot:
    accuracy: float
    accuracy_change: float
    f1_score: float
    drift_score: float
    drift_status: str  # Normal | Warning | Critical
    avg_latency: float
    model_status: str
    drift_chart_labels: list[str] = field(default_factory=list)
    drift_chart_values: list[float] = field(default_factory=list)
    recent_batches: list[BatchRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Dashboard wire format: camelCase keys, display-formatted scalars."""
        return {
            "accuracy": f"{self.accuracy:.1f}%",
            "accuracyChange": f"{self.accuracy_change:.1f}%",
            "f1Score": f"{self.f1_score:.3f}",
            "driftScore": f"{self.drift_score:.2f}",
            "driftStatus": self.drift_status,
            "avgLatency": f"{int(self.avg_latency)}ms",
            "modelStatus": self.model_status,
            "driftChartLabels": list(self.drift_chart_labels),
            "driftChartValues": list(self.drift_chart_values),
            "recentBatches": [b.to_dict() for b in self.recent_batches],
        }
