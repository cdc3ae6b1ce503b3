"""
Data models for the risk decision engine.

Source configuration, per-call source results, normalizer output, the consensus
decision, and escalation rules. Value objects produced per assessment are
frozen; SourceDescriptor.enabled and PerformanceRecord are the only state that
changes after load.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

SCORE_MIN = 0
SCORE_MAX = 10
CONFIDENCE_MIN = 0
CONFIDENCE_MAX = 100
DEFAULT_ACCURACY_SCORE = 0.8


class ContentType(str, Enum):
    """Coarse message domain used to pick a weight profile."""

    PROTECTED = "protected"
    INFORMAL = "informal"
    EVASION_SUSPECTED = "evasion-suspected"
    GENERAL = "general"


class ActionCategory(str, Enum):
    """Enforcement action, ordered by severity."""

    NONE = "none"
    WARN = "warn"
    DELETE = "delete"
    MUTE = "mute"
    BAN = "ban"

    @property
    def severity(self) -> int:
        return _ACTION_ORDER.index(self)


_ACTION_ORDER = (
    ActionCategory.NONE,
    ActionCategory.WARN,
    ActionCategory.DELETE,
    ActionCategory.MUTE,
    ActionCategory.BAN,
)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (vendor scores are never negative)."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    return int(max(SCORE_MIN, min(SCORE_MAX, round_half_up(value))))


def clamp_confidence(value: float) -> int:
    return int(max(CONFIDENCE_MIN, min(CONFIDENCE_MAX, round_half_up(value))))


@dataclass
class SourceDescriptor:
    """
    Static configuration for one scoring source.

    Loaded once at startup. Only `enabled` may change afterwards (admin toggle).
    A source whose credential_env is set but empty in the environment is
    treated as unavailable and never called.
    """

    name: str
    display_name: str
    capability_tags: frozenset[str]
    base_weight: float
    timeout_sec: float
    rate_limit_per_min: int
    enabled: bool = True
    cost_per_call: float = 0.0
    credential_env: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "capability_tags": sorted(self.capability_tags),
            "base_weight": self.base_weight,
            "timeout_sec": self.timeout_sec,
            "rate_limit_per_min": self.rate_limit_per_min,
            "enabled": self.enabled,
            "cost_per_call": self.cost_per_call,
        }


@dataclass(frozen=True)
class SourceContext:
    """Per-message context handed to every source call."""

    author_id: str
    channel_id: str
    channel_name: str | None = None
    content_type_hint: ContentType | None = None


@dataclass(frozen=True)
class SourceResult:
    """
    Normalized output of one source call.

    Every adapter maps its native response into this shape. A result with
    `error` set is recorded but excluded from scoring.
    """

    score: int = 0
    confidence: int = 0
    reasoning: tuple[str, ...] = ()
    response_time_ms: float = 0.0
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def scored(
        cls,
        score: float,
        confidence: float,
        reasoning: list[str] | tuple[str, ...],
        details: dict[str, Any] | None = None,
    ) -> SourceResult:
        """Build a successful result, clamping score to 0–10 and confidence to 0–100."""
        return cls(
            score=clamp_score(score),
            confidence=clamp_confidence(confidence),
            reasoning=tuple(reasoning),
            details=dict(details or {}),
        )

    @classmethod
    def failed(cls, error: str, response_time_ms: float = 0.0) -> SourceResult:
        return cls(error=error, response_time_ms=response_time_ms)

    @property
    def usable(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "confidence": self.confidence,
            "reasoning": list(self.reasoning),
            "response_time_ms": round(self.response_time_ms, 2),
            "error": self.error,
        }


@dataclass
class PerformanceRecord:
    """
    Rolling performance estimate for one source.

    Mutated after every assessment and shared across concurrent assessments;
    each record carries its own lock so updates on different sources never
    contend.
    """

    source: str
    total_calls: int = 0
    successful_calls: int = 0
    average_response_time_ms: float = 0.0
    accuracy_score: float = DEFAULT_ACCURACY_SCORE
    last_updated: float = field(default_factory=time.time)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def success_rate(self) -> float:
        if self.total_calls == 0:
            return 0.0
        return self.successful_calls / self.total_calls

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "total_calls": self.total_calls,
            "successful_calls": self.successful_calls,
            "success_rate": round(self.success_rate * 100),
            "average_response_time_ms": round(self.average_response_time_ms, 2),
            "accuracy_score": self.accuracy_score,
            "last_updated": self.last_updated,
        }


@dataclass(frozen=True)
class DetectedTechnique:
    """One evasion technique found by the normalizer."""

    technique: str
    severity: int

    def to_dict(self) -> dict[str, Any]:
        return {"technique": self.technique, "severity": self.severity}


@dataclass(frozen=True)
class EvasionResult:
    """Canonical text plus the evasion techniques that produced the difference."""

    normalized_text: str
    detected_techniques: tuple[DetectedTechnique, ...]
    was_modified: bool

    @property
    def techniques(self) -> list[str]:
        return [t.technique for t in self.detected_techniques]

    @property
    def max_severity(self) -> int:
        return max((t.severity for t in self.detected_techniques), default=0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "normalized_text": self.normalized_text,
            "detected_techniques": [t.to_dict() for t in self.detected_techniques],
            "was_modified": self.was_modified,
        }


@dataclass(frozen=True)
class ConsensusDecision:
    """
    The engine's single output per assessment.

    final_score is the adjusted weighted score (0–10, not rounded); action_category
    is derived from it by fixed thresholds.
    """

    final_score: float
    confidence: int
    action_category: ActionCategory
    violation_type: str | None
    reasoning: tuple[str, ...]
    sources_consulted: int
    consensus_reached: bool
    variance: float
    per_source_scores: dict[str, dict[str, int]]
    content_type: ContentType = ContentType.GENERAL
    processing_method: str = "multi_source_consensus"

    @property
    def requires_moderation(self) -> bool:
        return self.action_category is not ActionCategory.NONE

    def to_dict(self) -> dict[str, Any]:
        return {
            "final_score": round(self.final_score, 2),
            "confidence": self.confidence,
            "action_category": self.action_category.value,
            "violation_type": self.violation_type,
            "reasoning": list(self.reasoning),
            "sources_consulted": self.sources_consulted,
            "consensus_reached": self.consensus_reached,
            "variance": round(self.variance, 4),
            "per_source_scores": self.per_source_scores,
            "content_type": self.content_type.value,
            "processing_method": self.processing_method,
        }


@dataclass(frozen=True)
class EscalationRung:
    """One step of an escalation ladder. duration_sec == 0 means no expiry."""

    action: ActionCategory
    duration_sec: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action.value, "duration_sec": self.duration_sec}


@dataclass(frozen=True)
class EscalationRule:
    """
    Escalation ladder for one violation type.

    score_threshold is the minimum final score at which the rule is enforced;
    the last rung repeats once the violation count runs past the ladder.
    """

    violation_type: str
    name: str
    severity: int
    score_threshold: float
    rungs: tuple[EscalationRung, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "violation_type": self.violation_type,
            "name": self.name,
            "severity": self.severity,
            "score_threshold": self.score_threshold,
            "rungs": [r.to_dict() for r in self.rungs],
        }
