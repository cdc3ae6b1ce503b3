"""
Keyword model source: word-list scorer with positive-context dampening.

Cheap and private; runs in-process on the raw lower-cased text (no evasion
handling, that is what local_rules is for).
"""

from __future__ import annotations

import re

from backend_modguard.analysis_engine.models import SourceContext, SourceResult
from backend_modguard.sources.base import ScoringSource

TOXIC_WORDS: tuple[str, ...] = ("fuck", "shit", "damn", "hell", "bitch", "crap")
POSITIVE_WORDS: tuple[str, ...] = ("love", "great", "awesome", "thank", "please", "good")
POINTS_PER_MATCH = 2
POSITIVE_DAMPENING = 2
MATCH_CONFIDENCE = 80
NO_MATCH_CONFIDENCE = 60

_TOXIC_RE = re.compile(r"(?<![a-z])(" + "|".join(TOXIC_WORDS) + r")(?:ing|ed|er|s|ty|y)?(?![a-z])")
_POSITIVE_RE = re.compile(r"(?<![a-z])(" + "|".join(POSITIVE_WORDS) + r")[a-z]*")


class KeywordModelSource(ScoringSource):
    async def evaluate(self, text: str, context: SourceContext) -> SourceResult:
        lowered = text.lower()
        matches = sorted({m.group(1) for m in _TOXIC_RE.finditer(lowered)})
        positive = _POSITIVE_RE.search(lowered) is not None

        score = len(matches) * POINTS_PER_MATCH
        if positive:
            score = max(0, score - POSITIVE_DAMPENING)

        if matches:
            reasoning = [f"keyword model: {', '.join(matches)}"]
        else:
            reasoning = ["keyword model: no significant toxicity"]
        return SourceResult.scored(
            score,
            MATCH_CONFIDENCE if matches else NO_MATCH_CONFIDENCE,
            reasoning,
            details={"matches": matches, "positive_context": positive},
        )
