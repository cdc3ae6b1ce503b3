"""
Analysis engine package: text canonicalization, content typing, consensus.

Normalizer and classifier are pure and synchronous. The consensus scorer is
imported from backend_modguard.analysis_engine.consensus directly since it
depends on the config layer.
"""

from backend_modguard.analysis_engine.classifier import classify
from backend_modguard.analysis_engine.models import (
    ActionCategory,
    ConsensusDecision,
    ContentType,
    EvasionResult,
    SourceContext,
    SourceDescriptor,
    SourceResult,
)
from backend_modguard.analysis_engine.normalizer import normalize

__all__ = [
    "ActionCategory",
    "ConsensusDecision",
    "ContentType",
    "EvasionResult",
    "SourceContext",
    "SourceDescriptor",
    "SourceResult",
    "classify",
    "normalize",
]
