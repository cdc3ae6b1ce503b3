"""
Consensus scorer: combine per-source results into one decision.

Weighted vote with a disagreement penalty. Each usable result is weighted by
its content-type profile weight times the source's accuracy multiplier; score
variance across sources decides whether consensus was reached, and
disagreement lowers confidence without changing the score itself.
"""

from __future__ import annotations

from typing import Mapping

import numpy as np

from backend_modguard.agent_worker.performance import PerformanceTracker
from backend_modguard.analysis_engine.models import (
    SCORE_MAX,
    SCORE_MIN,
    ActionCategory,
    ConsensusDecision,
    ContentType,
    EvasionResult,
    SourceResult,
    clamp_confidence,
)
from backend_modguard.analysis_engine.normalizer import bypass_techniques
from backend_modguard.config.settings import (
    DEFAULT_SOURCE_WEIGHT,
    ActionThresholds,
    ConsensusSettings,
)
from backend_modguard.modguard_logging import get_logger

logger = get_logger(__name__)

VIOLATION_TYPE_BY_ACTION: dict[ActionCategory, str | None] = {
    ActionCategory.BAN: "SEVERE_TOXICITY",
    ActionCategory.MUTE: "HARASSMENT",
    ActionCategory.DELETE: "TOXIC_BEHAVIOR",
    ActionCategory.WARN: "DISRESPECTFUL",
    ActionCategory.NONE: None,
}

FALLBACK_REASON = "no sources available"


def action_for_score(score: float, thresholds: ActionThresholds | None = None) -> ActionCategory:
    """Map a 0-10 score to an action by fixed thresholds."""
    t = thresholds or ActionThresholds()
    if score >= t.ban:
        return ActionCategory.BAN
    if score >= t.mute:
        return ActionCategory.MUTE
    if score >= t.delete:
        return ActionCategory.DELETE
    if score >= t.warn:
        return ActionCategory.WARN
    return ActionCategory.NONE


class ConsensusScorer:
    """Stateless apart from the tracker it reads accuracy from."""

    def __init__(
        self,
        weight_profiles: Mapping[ContentType, Mapping[str, float]],
        tracker: PerformanceTracker,
        *,
        thresholds: ActionThresholds | None = None,
        settings: ConsensusSettings | None = None,
        default_weight: float = DEFAULT_SOURCE_WEIGHT,
    ):
        self.weight_profiles = weight_profiles
        self.tracker = tracker
        self.thresholds = thresholds or ActionThresholds()
        self.settings = settings or ConsensusSettings()
        self.default_weight = default_weight

    def profile_weight(self, source: str, content_type: ContentType) -> float:
        return self.weight_profiles.get(content_type, {}).get(source, self.default_weight)

    def effective_weight(self, source: str, content_type: ContentType) -> float:
        return self.profile_weight(source, content_type) * self.tracker.accuracy(source)

    def fallback_decision(
        self,
        content_type: ContentType = ContentType.GENERAL,
        processing_method: str = "fallback",
    ) -> ConsensusDecision:
        """
        Fixed zero-risk decision used when no source produced a usable result.

        Local normalizer/classifier signal is not consulted here.
        """
        return ConsensusDecision(
            final_score=0.0,
            confidence=self.settings.fallback_confidence,
            action_category=ActionCategory.NONE,
            violation_type=None,
            reasoning=(FALLBACK_REASON,),
            sources_consulted=0,
            consensus_reached=False,
            variance=0.0,
            per_source_scores={},
            content_type=content_type,
            processing_method=processing_method,
        )

    def _confidence(self, consensus_reached: bool, usable: list[SourceResult]) -> int:
        s = self.settings
        confidence = s.base_confidence
        confidence += s.consensus_bonus if consensus_reached else -s.disagreement_penalty
        confident = sum(1 for r in usable if r.confidence > s.high_confidence_cutoff)
        if confident / len(usable) >= s.high_confidence_ratio:
            confidence += s.high_confidence_bonus
        return clamp_confidence(confidence)

    def _adjust_for_content_type(
        self, average: float, content_type: ContentType
    ) -> tuple[float, list[str]]:
        s = self.settings
        if content_type is ContentType.PROTECTED and average < s.protected_adjust_below:
            return (
                max(0.0, average - s.protected_adjustment),
                [f"protected content adjustment (-{s.protected_adjustment:g})"],
            )
        if content_type is ContentType.INFORMAL and average < s.informal_adjust_below:
            return (
                max(0.0, average - s.informal_adjustment),
                [f"informal context adjustment (-{s.informal_adjustment:g})"],
            )
        return average, []

    def decide(
        self,
        results: Mapping[str, SourceResult],
        content_type: ContentType,
        text: str,
        evasion: EvasionResult | None = None,
    ) -> ConsensusDecision:
        """
        Aggregate results into a ConsensusDecision.

        Results with an error are ignored. With no usable result the fixed
        fallback decision is returned.
        """
        usable = {name: r for name, r in results.items() if r.usable}
        if not usable:
            logger.warning(
                "consensus_fallback",
                attempted=len(results),
                content_type=content_type.value,
            )
            return self.fallback_decision(content_type)

        names = list(usable)
        scores = np.array([usable[n].score for n in names], dtype=float)
        weights = np.array([self.effective_weight(n, content_type) for n in names], dtype=float)

        total_weight = float(weights.sum())
        if total_weight > 0:
            average = float(np.dot(scores, weights) / total_weight)
        else:
            # Every usable source has zero effective weight; fall back to a plain mean.
            average = float(scores.mean())

        variance = float(np.var(scores))
        consensus_reached = variance < self.settings.variance_threshold
        confidence = self._confidence(consensus_reached, list(usable.values()))

        adjusted, adjustment_notes = self._adjust_for_content_type(average, content_type)
        final_score = float(min(SCORE_MAX, max(SCORE_MIN, adjusted)))
        action = action_for_score(final_score, self.thresholds)

        reasoning: list[str] = []
        for name in names:
            reasoning.extend(usable[name].reasoning)
        reasoning.extend(adjustment_notes)
        bypass = bypass_techniques(text, evasion) if evasion is not None else []
        if bypass:
            reasoning.append(f"evasion techniques detected: {', '.join(bypass)}")

        decision = ConsensusDecision(
            final_score=final_score,
            confidence=confidence,
            action_category=action,
            violation_type=VIOLATION_TYPE_BY_ACTION[action],
            reasoning=tuple(dict.fromkeys(reasoning)),
            sources_consulted=len(usable),
            consensus_reached=consensus_reached,
            variance=variance,
            per_source_scores={
                n: {"score": usable[n].score, "confidence": usable[n].confidence} for n in names
            },
            content_type=content_type,
        )
        logger.info(
            "consensus_decided",
            final_score=round(final_score, 2),
            confidence=confidence,
            action=action.value,
            sources=len(usable),
            variance=round(variance, 4),
            content_type=content_type.value,
            text_length=len(text),
        )
        return decision
