"""
Provider orchestrator: fan out one message to every enabled source.

Normalizer and classifier run first (synchronous, pure). Then one task per
enabled source that has an adapter, each bounded by its own timeout; the join
waits for every task to settle. A failure or timeout becomes a SourceResult
with error set for that source only and never cancels its siblings.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from backend_modguard.agent_worker.performance import PerformanceTracker
from backend_modguard.analysis_engine.classifier import classify
from backend_modguard.analysis_engine.models import (
    ContentType,
    EvasionResult,
    SourceContext,
    SourceResult,
)
from backend_modguard.analysis_engine.normalizer import normalize
from backend_modguard.modguard_logging import get_logger
from backend_modguard.sources.base import ScoringSource
from backend_modguard.sources.registry import SourceRegistry

logger = get_logger(__name__)


@dataclass
class OrchestrationOutcome:
    """Everything one fan-out produced, keyed by source name."""

    results: dict[str, SourceResult] = field(default_factory=dict)
    content_type: ContentType = ContentType.GENERAL
    evasion: EvasionResult | None = None

    @property
    def usable_results(self) -> dict[str, SourceResult]:
        return {name: r for name, r in self.results.items() if r.usable}

    @property
    def has_data(self) -> bool:
        return any(r.usable for r in self.results.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": {name: r.to_dict() for name, r in self.results.items()},
            "content_type": self.content_type.value,
            "evasion": self.evasion.to_dict() if self.evasion else None,
        }


class ProviderOrchestrator:
    """Concurrent, failure-isolated fan-out over the registry's enabled sources."""

    def __init__(
        self,
        registry: SourceRegistry,
        adapters: Mapping[str, ScoringSource],
        tracker: PerformanceTracker,
    ):
        self.registry = registry
        self.adapters = adapters
        self.tracker = tracker

    def callable_sources(self) -> list[ScoringSource]:
        """Enabled sources with an adapter, in registry order."""
        return [
            self.adapters[d.name]
            for d in self.registry.enabled()
            if d.name in self.adapters
        ]

    async def _call_source(
        self,
        source: ScoringSource,
        text: str,
        context: SourceContext,
    ) -> SourceResult:
        timeout = source.descriptor.timeout_sec
        start = time.perf_counter()
        try:
            result = await asyncio.wait_for(source.evaluate(text, context), timeout=timeout)
        except asyncio.TimeoutError:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.warning("source_timeout", source=source.name, timeout_sec=timeout)
            return SourceResult.failed(f"timeout after {timeout}s", response_time_ms=elapsed_ms)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.warning("source_failed", source=source.name, error=str(e))
            return SourceResult.failed(str(e) or e.__class__.__name__, response_time_ms=elapsed_ms)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug("source_scored", source=source.name, score=result.score, latency_ms=round(elapsed_ms, 2))
        return replace(result, response_time_ms=elapsed_ms)

    async def assess(self, text: str, context: SourceContext) -> OrchestrationOutcome:
        """
        Normalize, classify, then query every callable source with the
        original text. Returns results for every attempted source.
        """
        evasion = normalize(text)
        content_type = classify(text, context)
        context = replace(context, content_type_hint=content_type)

        sources = self.callable_sources()
        if not sources:
            logger.warning("no_callable_sources", content_type=content_type.value)
            return OrchestrationOutcome(content_type=content_type, evasion=evasion)

        settled = await asyncio.gather(
            *(self._call_source(source, text, context) for source in sources)
        )
        results = {source.name: result for source, result in zip(sources, settled)}

        for name, result in results.items():
            self.tracker.record(name, result.usable, result.response_time_ms)

        logger.info(
            "sources_settled",
            attempted=len(results),
            usable=sum(1 for r in results.values() if r.usable),
            content_type=content_type.value,
            techniques=evasion.techniques,
        )
        return OrchestrationOutcome(results=results, content_type=content_type, evasion=evasion)
