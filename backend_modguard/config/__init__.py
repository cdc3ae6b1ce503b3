"""
Configuration management for the ModGuard decision engine.

Loads the source table and weight profiles from defaults plus an optional
override file, and credentials from environment variables (.env supported).
"""

from backend_modguard.config.settings import (  # noqa: F401
    ActionThresholds,
    ConsensusSettings,
    EngineSettings,
    get_settings,
    load_settings,
    validate_weight_profiles,
)

__all__ = [
    "ActionThresholds",
    "ConsensusSettings",
    "EngineSettings",
    "get_settings",
    "load_settings",
    "validate_weight_profiles",
]
