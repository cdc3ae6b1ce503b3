"""
Scoring sources: independent scorers queried concurrently per message.

Local rule and keyword sources run in-process; vendor adapters call out over
HTTP. All map their output into SourceResult.
"""

from backend_modguard.sources.base import ScoringSource
from backend_modguard.sources.factory import build_sources
from backend_modguard.sources.registry import SourceRegistry

__all__ = ["ScoringSource", "SourceRegistry", "build_sources"]
