"""
Engine settings: source descriptor table, weight profiles, decision thresholds.

Responsibilities:
- Provide the default source table and per-content-type weight profiles.
- Apply an optional JSON override (MODGUARD_CONFIG_PATH) validated with pydantic.
- Validate weight profiles at load; a bad profile raises ConfigValidationError
  instead of silently skewing scores.
- Expose get_settings() as the single cached settings object.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from backend_modguard.analysis_engine.models import ContentType, SourceDescriptor
from backend_modguard.config.env import get_config_path, get_disabled_sources
from backend_modguard.core.exceptions import ConfigValidationError
from backend_modguard.modguard_logging import get_logger

logger = get_logger(__name__)

DEFAULT_SOURCE_WEIGHT = 0.1
WEIGHT_SUM_TOLERANCE = 0.05


def default_sources() -> list[SourceDescriptor]:
    """Fresh copies of the built-in source table (enabled is mutable per engine)."""
    return [
        SourceDescriptor(
            name="perspective",
            display_name="Perspective API",
            capability_tags=frozenset({"toxicity", "threats", "harassment"}),
            base_weight=0.25,
            timeout_sec=5.0,
            rate_limit_per_min=100,
            credential_env="PERSPECTIVE_API_KEY",
        ),
        SourceDescriptor(
            name="huggingface",
            display_name="Hugging Face toxic-bert",
            capability_tags=frozenset({"general_toxicity", "context"}),
            base_weight=0.20,
            timeout_sec=8.0,
            rate_limit_per_min=30,
            credential_env="HUGGINGFACE_API_KEY",
        ),
        SourceDescriptor(
            name="google_cloud",
            display_name="Google Cloud Natural Language",
            capability_tags=frozenset({"sentiment", "context", "language_detection"}),
            base_weight=0.20,
            timeout_sec=6.0,
            rate_limit_per_min=1000,
            cost_per_call=0.001,
            credential_env="GOOGLE_CLOUD_API_KEY",
        ),
        SourceDescriptor(
            name="azure",
            display_name="Azure Text Analytics",
            capability_tags=frozenset({"sentiment", "key_phrases", "entities"}),
            base_weight=0.15,
            timeout_sec=6.0,
            rate_limit_per_min=1000,
            enabled=False,
            cost_per_call=0.001,
            credential_env="AZURE_TEXT_ANALYTICS_KEY",
        ),
        SourceDescriptor(
            name="keyword_model",
            display_name="Local keyword model",
            capability_tags=frozenset({"privacy", "speed", "gaming_context"}),
            base_weight=0.10,
            timeout_sec=1.0,
            rate_limit_per_min=999999,
        ),
        SourceDescriptor(
            name="local_rules",
            display_name="Local rules",
            capability_tags=frozenset({"protected_context", "gaming_terms", "known_patterns"}),
            base_weight=0.10,
            timeout_sec=0.1,
            rate_limit_per_min=999999,
        ),
    ]


def default_weight_profiles() -> dict[ContentType, dict[str, float]]:
    return {
        ContentType.PROTECTED: {
            "local_rules": 0.4,
            "keyword_model": 0.3,
            "perspective": 0.2,
            "huggingface": 0.1,
        },
        ContentType.INFORMAL: {
            "local_rules": 0.3,
            "perspective": 0.25,
            "huggingface": 0.25,
            "keyword_model": 0.2,
        },
        ContentType.GENERAL: {
            "perspective": 0.3,
            "huggingface": 0.25,
            "google_cloud": 0.25,
            "local_rules": 0.2,
        },
        ContentType.EVASION_SUSPECTED: {
            "local_rules": 0.4,
            "perspective": 0.3,
            "huggingface": 0.2,
            "keyword_model": 0.1,
        },
    }


@dataclass(frozen=True)
class ActionThresholds:
    """Minimum final score for each action; below warn means none."""

    ban: float = 7.0
    mute: float = 5.0
    delete: float = 3.0
    warn: float = 2.0


@dataclass(frozen=True)
class ConsensusSettings:
    """Constants of the consensus confidence formula."""

    variance_threshold: float = 2.0
    base_confidence: int = 70
    consensus_bonus: int = 20
    disagreement_penalty: int = 10
    high_confidence_cutoff: int = 70
    high_confidence_ratio: float = 0.6
    high_confidence_bonus: int = 10
    protected_adjust_below: float = 3.0
    protected_adjustment: float = 1.0
    informal_adjust_below: float = 4.0
    informal_adjustment: float = 0.5
    fallback_confidence: int = 30


@dataclass
class EngineSettings:
    """Everything the engine reads at startup. Loaded once; see get_settings()."""

    sources: list[SourceDescriptor] = field(default_factory=default_sources)
    weight_profiles: dict[ContentType, dict[str, float]] = field(
        default_factory=default_weight_profiles
    )
    default_source_weight: float = DEFAULT_SOURCE_WEIGHT
    thresholds: ActionThresholds = field(default_factory=ActionThresholds)
    consensus: ConsensusSettings = field(default_factory=ConsensusSettings)

    def source_names(self) -> list[str]:
        return [s.name for s in self.sources]

    def to_dict(self) -> dict[str, Any]:
        return {
            "sources": [s.to_dict() for s in self.sources],
            "weight_profiles": {ct.value: dict(p) for ct, p in self.weight_profiles.items()},
            "default_source_weight": self.default_source_weight,
        }


# --- JSON override schema ---


class SourceOverride(BaseModel):
    """Per-source fields an operator may override."""

    enabled: bool | None = Field(None, description="Enable or disable the source")
    base_weight: float | None = Field(None, ge=0.0, le=1.0, description="Informational base weight")
    timeout_sec: float | None = Field(None, gt=0.0, description="Per-call timeout in seconds")
    rate_limit_per_min: int | None = Field(None, ge=1, description="Advisory rate limit")


class ConfigOverride(BaseModel):
    """Top-level shape of the MODGUARD_CONFIG_PATH file."""

    sources: dict[str, SourceOverride] = Field(default_factory=dict)
    weight_profiles: dict[ContentType, dict[str, float]] = Field(default_factory=dict)


def validate_weight_profiles(
    profiles: dict[ContentType, dict[str, float]],
    known_sources: list[str] | set[str],
) -> None:
    """
    Raise ConfigValidationError unless every content type has a profile that
    names only known sources, uses non-negative weights, and sums to 1.0
    within WEIGHT_SUM_TOLERANCE.
    """
    known = set(known_sources)
    missing = [ct.value for ct in ContentType if ct not in profiles]
    if missing:
        raise ConfigValidationError(f"weight profiles missing for content types: {missing}")
    for content_type, profile in profiles.items():
        unknown = sorted(set(profile) - known)
        if unknown:
            raise ConfigValidationError(
                f"weight profile {content_type.value!r} names unknown sources: {unknown}"
            )
        negative = sorted(name for name, w in profile.items() if w < 0)
        if negative:
            raise ConfigValidationError(
                f"weight profile {content_type.value!r} has negative weights: {negative}"
            )
        total = math.fsum(profile.values())
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ConfigValidationError(
                f"weight profile {content_type.value!r} sums to {total:.3f}, expected 1.0"
            )


def _read_override(path: Path) -> ConfigOverride:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigValidationError(f"cannot read config override {path}: {e}") from e
    try:
        return ConfigOverride.model_validate(raw)
    except ValidationError as e:
        raise ConfigValidationError(f"invalid config override {path}: {e}") from e


def _apply_override(settings: EngineSettings, override: ConfigOverride) -> None:
    by_name = {s.name: i for i, s in enumerate(settings.sources)}
    for name, source_override in override.sources.items():
        if name not in by_name:
            raise ConfigValidationError(f"config override names unknown source: {name!r}")
        changes = source_override.model_dump(exclude_none=True)
        idx = by_name[name]
        settings.sources[idx] = replace(settings.sources[idx], **changes)
    for content_type, profile in override.weight_profiles.items():
        settings.weight_profiles[content_type] = dict(profile)


def load_settings(
    config_path: Path | None = None,
    disabled_sources: list[str] | None = None,
) -> EngineSettings:
    """
    Build settings from defaults, an optional JSON override and a disabled list.

    config_path / disabled_sources default to MODGUARD_CONFIG_PATH and
    MODGUARD_DISABLED_SOURCES. Raises ConfigValidationError on bad input.
    """
    settings = EngineSettings()
    path = config_path if config_path is not None else get_config_path()
    if path is not None:
        _apply_override(settings, _read_override(path))
        logger.info("config_override_applied", path=str(path))

    names = set(settings.source_names())
    disabled = disabled_sources if disabled_sources is not None else get_disabled_sources()
    for name in disabled:
        if name not in names:
            raise ConfigValidationError(f"cannot disable unknown source: {name!r}")
    for source in settings.sources:
        if source.name in disabled:
            source.enabled = False

    validate_weight_profiles(settings.weight_profiles, names)
    logger.info(
        "settings_loaded",
        sources=len(settings.sources),
        enabled=[s.name for s in settings.sources if s.enabled],
    )
    return settings


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """
    Return the process-wide settings, loading them on first call.

    Callers that toggle sources at runtime do so on their own registry copy,
    never on this object.
    """
    return load_settings()
