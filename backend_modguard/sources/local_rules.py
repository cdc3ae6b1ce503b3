"""
Local rule source: in-process scoring that does its own evasion handling.

Receives the original text like every other source, re-runs the normalizer,
and matches threat phrases and profanity against the canonical form. Evasion
on top of a hit multiplies the score (bypass penalty). Protected content
short-circuits to a confident zero.
"""

from __future__ import annotations

import re

from backend_modguard.analysis_engine.classifier import is_protected_content
from backend_modguard.analysis_engine.models import (
    ContentType,
    SourceContext,
    SourceDescriptor,
    SourceResult,
)
from backend_modguard.analysis_engine.normalizer import bypass_techniques, normalize
from backend_modguard.sources.base import ScoringSource

SEVERE_THREAT_PHRASES: tuple[str, ...] = (
    "kill yourself",
    "kill urself",
    "kill your self",
    "kys",
    "neck yourself",
    "go die",
    "hope you die",
    "i will kill you",
    "i'll kill you",
)
THREAT_SCORE = 9
THREAT_CONFIDENCE = 90

# Word stems; suffixes are allowed ("fucking", "shitty").
PROFANITY_STEMS: tuple[str, ...] = (
    "fuck", "shit", "bitch", "cunt", "asshole", "bastard", "dick", "whore",
    "slut", "motherfuck", "retard", "fag",
)
INSULT_WORDS: tuple[str, ...] = (
    "idiot", "stupid", "moron", "loser", "dumb", "trash", "pathetic",
    "worthless", "hate you", "shut up",
)
PROFANITY_POINTS = 3
INSULT_POINTS = 2
BYPASS_PENALTY_MULTIPLIER = 1.5

MATCH_CONFIDENCE = 85
CLEAN_CONFIDENCE = 70
PROTECTED_CONFIDENCE = 95


def _phrase_pattern(phrases: tuple[str, ...], allow_suffix: bool = False) -> re.Pattern[str]:
    # Vocabulary is matched in canonical form ("kill" -> "kil", "asshole" -> "ashole").
    canonical = {normalize(p).normalized_text for p in phrases}
    alternatives = "|".join(re.escape(p) for p in sorted(canonical, key=len, reverse=True))
    tail = r"[a-z]*" if allow_suffix else ""
    return re.compile(rf"(?<![a-z])(?:{alternatives}){tail}(?![a-z])")


_THREAT_RE = _phrase_pattern(SEVERE_THREAT_PHRASES)
_PROFANITY_RE = _phrase_pattern(PROFANITY_STEMS, allow_suffix=True)
_INSULT_RE = _phrase_pattern(INSULT_WORDS)


class LocalRuleSource(ScoringSource):
    """Phrase and profanity rules over normalized text."""

    def __init__(self, descriptor: SourceDescriptor):
        super().__init__(descriptor)

    async def evaluate(self, text: str, context: SourceContext) -> SourceResult:
        return self.score_text(text, context)

    def score_text(self, text: str, context: SourceContext) -> SourceResult:
        """Synchronous scoring; evaluate() only wraps this."""
        if context.content_type_hint is ContentType.PROTECTED or is_protected_content(text, context):
            return SourceResult.scored(
                0,
                PROTECTED_CONFIDENCE,
                ["local rules: protected content detected"],
                details={"protected_context": True},
            )

        evasion = normalize(text)
        canonical = evasion.normalized_text

        threat = _THREAT_RE.search(canonical)
        if threat:
            return SourceResult.scored(
                THREAT_SCORE,
                THREAT_CONFIDENCE,
                [f"local rules: severe threat phrase '{threat.group(0)}'"],
                details={"threat": threat.group(0), "techniques": evasion.techniques},
            )

        profanity = sorted({m.group(0) for m in _PROFANITY_RE.finditer(canonical)})
        insults = sorted({m.group(0) for m in _INSULT_RE.finditer(canonical)})
        score: float = len(profanity) * PROFANITY_POINTS + len(insults) * INSULT_POINTS

        reasoning: list[str] = []
        if profanity:
            reasoning.append(f"local rules: profanity {', '.join(profanity)}")
        if insults:
            reasoning.append(f"local rules: insult {', '.join(insults)}")
        bypass = bypass_techniques(text, evasion)
        if score > 0 and bypass:
            score *= BYPASS_PENALTY_MULTIPLIER
            reasoning.append(
                f"local rules: bypass penalty x{BYPASS_PENALTY_MULTIPLIER} ({', '.join(bypass)})"
            )
        if not reasoning:
            reasoning.append("local rules: no patterns matched")

        return SourceResult.scored(
            score,
            MATCH_CONFIDENCE if score > 0 else CLEAN_CONFIDENCE,
            reasoning,
            details={
                "profanity": profanity,
                "insults": insults,
                "techniques": evasion.techniques,
            },
        )
