"""
Decision engine: the public entry point of the risk decision core.

Wires registry, adapters, orchestrator, tracker and consensus scorer
together. assess() always returns a ConsensusDecision: empty text
short-circuits before any fan-out, a total source outage degrades to the
fallback decision, and an unexpected internal error is logged and degraded
the same way.
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, replace
from typing import Any, Mapping

import httpx

from backend_modguard.agent_worker.orchestrator import ProviderOrchestrator
from backend_modguard.agent_worker.performance import PerformanceTracker
from backend_modguard.alerts.escalation import (
    escalate as ladder_escalate,
    format_duration,
    get_rule,
    meets_threshold,
)
from backend_modguard.analysis_engine.consensus import ConsensusScorer
from backend_modguard.analysis_engine.models import (
    ActionCategory,
    ConsensusDecision,
    ContentType,
    EscalationRung,
    SourceContext,
    SourceDescriptor,
)
from backend_modguard.config.settings import EngineSettings, get_settings
from backend_modguard.modguard_logging import get_logger
from backend_modguard.sources.base import ScoringSource
from backend_modguard.sources.factory import build_sources
from backend_modguard.sources.registry import SourceRegistry

logger = get_logger(__name__)

EMPTY_INPUT_CONFIDENCE = 100
ANONYMOUS_CONTEXT = SourceContext(author_id="unknown", channel_id="unknown")


@dataclass(frozen=True)
class EnforcementPlan:
    """What the caller should do for one decision given the user's history."""

    action: ActionCategory
    duration_sec: int
    violation_type: str | None
    violation_number: int
    enforced: bool
    reason: str

    @property
    def duration_text(self) -> str | None:
        if self.action in (ActionCategory.MUTE, ActionCategory.BAN):
            return format_duration(self.duration_sec)
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "duration_sec": self.duration_sec,
            "duration_text": self.duration_text,
            "violation_type": self.violation_type,
            "violation_number": self.violation_number,
            "enforced": self.enforced,
            "reason": self.reason,
        }


class DecisionEngine:
    """
    One engine per process. Holds its own copy of the source table so runtime
    toggles never touch the cached settings object.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        *,
        adapters: Mapping[str, ScoringSource] | None = None,
        client: httpx.AsyncClient | None = None,
        tracker: PerformanceTracker | None = None,
    ):
        self.settings = settings or get_settings()
        self.registry = SourceRegistry([replace(d) for d in self.settings.sources])
        self.tracker = tracker or PerformanceTracker(self.registry.names())
        if adapters is None:
            adapters = build_sources(self.registry, client=client)
        self.adapters: dict[str, ScoringSource] = dict(adapters)
        self.orchestrator = ProviderOrchestrator(self.registry, self.adapters, self.tracker)
        self.scorer = ConsensusScorer(
            self.settings.weight_profiles,
            self.tracker,
            thresholds=self.settings.thresholds,
            settings=self.settings.consensus,
            default_weight=self.settings.default_source_weight,
        )
        self._count_lock = threading.Lock()
        self._total_assessments = 0

    @property
    def total_assessments(self) -> int:
        return self._total_assessments

    def _empty_decision(self) -> ConsensusDecision:
        return ConsensusDecision(
            final_score=0.0,
            confidence=EMPTY_INPUT_CONFIDENCE,
            action_category=ActionCategory.NONE,
            violation_type=None,
            reasoning=("empty input",),
            sources_consulted=0,
            consensus_reached=True,
            variance=0.0,
            per_source_scores={},
            content_type=ContentType.GENERAL,
            processing_method="empty_input",
        )

    async def assess(self, text: str, context: SourceContext | None = None) -> ConsensusDecision:
        """Score one message. Never raises (except on task cancellation)."""
        with self._count_lock:
            self._total_assessments += 1
        context = context or ANONYMOUS_CONTEXT

        if not text or not text.strip():
            logger.debug("assessment_empty_input", author_id=context.author_id)
            return self._empty_decision()

        try:
            outcome = await self.orchestrator.assess(text, context)
            decision = self.scorer.decide(
                outcome.results, outcome.content_type, text, outcome.evasion
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(
                "assessment_failed",
                text=text,
                author_id=context.author_id,
                channel_id=context.channel_id,
            )
            return self.scorer.fallback_decision()

        if decision.requires_moderation:
            logger.info(
                "moderation_recommended",
                text=text,
                author_id=context.author_id,
                channel_id=context.channel_id,
                action=decision.action_category.value,
                violation_type=decision.violation_type,
                final_score=round(decision.final_score, 2),
            )
        return decision

    def escalate(self, violation_type: str, user_violation_count: int) -> EscalationRung:
        return ladder_escalate(violation_type, user_violation_count)

    def plan_enforcement(
        self, decision: ConsensusDecision, user_violation_count: int
    ) -> EnforcementPlan:
        """
        Turn a decision into a concrete action for a user with
        user_violation_count prior violations of the decision's type.

        No action is taken when the decision carries no violation type or its
        score is below that violation type's enforcement threshold.
        Warn-band and delete-band decisions are therefore never enforced: they
        map to DISRESPECTFUL (threshold 4) and TOXIC_BEHAVIOR (threshold 5),
        whose thresholds sit above the top of their bands.
        """
        violation_type = decision.violation_type
        violation_number = user_violation_count + 1
        if violation_type is None:
            return EnforcementPlan(
                action=ActionCategory.NONE,
                duration_sec=0,
                violation_type=None,
                violation_number=violation_number,
                enforced=False,
                reason="no violation detected",
            )

        rule = get_rule(violation_type)
        if not meets_threshold(violation_type, decision.final_score):
            logger.info(
                "enforcement_below_threshold",
                violation_type=violation_type,
                final_score=round(decision.final_score, 2),
                threshold=rule.score_threshold,
            )
            return EnforcementPlan(
                action=ActionCategory.NONE,
                duration_sec=0,
                violation_type=violation_type,
                violation_number=violation_number,
                enforced=False,
                reason=(
                    f"score {decision.final_score:.2f} below threshold "
                    f"{rule.score_threshold:g} for {violation_type}"
                ),
            )

        rung = ladder_escalate(violation_type, user_violation_count)
        return EnforcementPlan(
            action=rung.action,
            duration_sec=rung.duration_sec,
            violation_type=violation_type,
            violation_number=violation_number,
            enforced=True,
            reason=f"{rule.name} (violation #{violation_number})",
        )

    def set_source_enabled(self, name: str, enabled: bool) -> SourceDescriptor:
        """Admin toggle; raises UnknownSourceError for an unknown name."""
        return self.registry.set_enabled(name, enabled)

    def record_feedback(self, source: str, accuracy: float) -> float:
        """Feed an externally measured accuracy (0-1) back into source weighting."""
        self.registry.get(source)
        return self.tracker.set_accuracy(source, accuracy)

    def system_status(self) -> dict[str, Any]:
        """Per-source configuration and performance, plus engine totals."""
        stats = self.tracker.snapshot()
        sources = []
        for descriptor in self.registry.all():
            entry = descriptor.to_dict()
            entry["available"] = self.registry.is_available(descriptor.name)
            entry["has_adapter"] = descriptor.name in self.adapters
            entry["performance"] = stats.get(descriptor.name)
            sources.append(entry)
        return {
            "total_assessments": self._total_assessments,
            "callable_sources": [s.name for s in self.orchestrator.callable_sources()],
            "sources": sources,
        }

    async def aclose(self) -> None:
        for adapter in self.adapters.values():
            await adapter.aclose()
