"""
Base class for scoring sources.

Every source maps its native output into a SourceResult. Sources may raise on
failure (SourceCallError, httpx errors, anything else); the orchestrator owns
timeouts and turns exceptions into SourceResult.failed, so an adapter never
needs to catch its own errors just to report them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from backend_modguard.analysis_engine.models import SourceContext, SourceDescriptor, SourceResult


class ScoringSource(ABC):
    """One independent scorer, bound to its descriptor."""

    def __init__(self, descriptor: SourceDescriptor):
        self.descriptor = descriptor

    @property
    def name(self) -> str:
        return self.descriptor.name

    @abstractmethod
    async def evaluate(self, text: str, context: SourceContext) -> SourceResult:
        """
        Score the original (unnormalized) text.

        Returns a SourceResult with score 0-10 and confidence 0-100.
        response_time_ms is filled in by the orchestrator.
        """

    async def aclose(self) -> None:
        """Release network resources. Local sources have none."""
        return None
