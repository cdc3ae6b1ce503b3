"""
Tests for settings loading: defaults, JSON overrides, disabled sources,
weight profile validation, and env parsing.
"""

from __future__ import annotations

import json

import pytest

from backend_modguard.analysis_engine.models import ContentType
from backend_modguard.config import env
from backend_modguard.config.settings import (
    EngineSettings,
    default_weight_profiles,
    get_settings,
    load_settings,
    validate_weight_profiles,
)
from backend_modguard.core.exceptions import ConfigValidationError

SOURCE_NAMES = ["perspective", "huggingface", "google_cloud", "azure", "keyword_model", "local_rules"]


def _write(tmp_path, payload):
    path = tmp_path / "modguard.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_defaults():
    settings = load_settings()
    assert settings.source_names() == SOURCE_NAMES
    enabled = {s.name for s in settings.sources if s.enabled}
    assert enabled == set(SOURCE_NAMES) - {"azure"}
    assert settings.thresholds.ban == 7
    assert settings.consensus.fallback_confidence == 30


def test_default_profiles_are_valid():
    validate_weight_profiles(default_weight_profiles(), SOURCE_NAMES)


def test_profile_missing_content_type():
    profiles = default_weight_profiles()
    del profiles[ContentType.INFORMAL]
    with pytest.raises(ConfigValidationError, match="missing"):
        validate_weight_profiles(profiles, SOURCE_NAMES)


def test_profile_unknown_source():
    profiles = default_weight_profiles()
    profiles[ContentType.GENERAL] = {"perspective": 0.5, "mystery": 0.5}
    with pytest.raises(ConfigValidationError, match="mystery"):
        validate_weight_profiles(profiles, SOURCE_NAMES)


def test_profile_negative_weight():
    profiles = default_weight_profiles()
    profiles[ContentType.GENERAL] = {"perspective": 1.2, "huggingface": -0.2}
    with pytest.raises(ConfigValidationError, match="negative"):
        validate_weight_profiles(profiles, SOURCE_NAMES)


def test_profile_sum_tolerance():
    profiles = default_weight_profiles()
    profiles[ContentType.GENERAL] = {"perspective": 0.5, "huggingface": 0.47}
    validate_weight_profiles(profiles, SOURCE_NAMES)
    profiles[ContentType.GENERAL] = {"perspective": 0.5, "huggingface": 0.3}
    with pytest.raises(ConfigValidationError, match="sums to"):
        validate_weight_profiles(profiles, SOURCE_NAMES)


def test_override_file(tmp_path):
    path = _write(
        tmp_path,
        {
            "sources": {"perspective": {"timeout_sec": 2.5, "enabled": False}},
            "weight_profiles": {"general": {"local_rules": 0.6, "keyword_model": 0.4}},
        },
    )
    settings = load_settings(config_path=path)

    perspective = next(s for s in settings.sources if s.name == "perspective")
    assert perspective.timeout_sec == 2.5
    assert perspective.enabled is False
    assert settings.weight_profiles[ContentType.GENERAL] == {"local_rules": 0.6, "keyword_model": 0.4}


def test_override_from_env(tmp_path, monkeypatch):
    path = _write(tmp_path, {"sources": {"azure": {"enabled": True}}})
    monkeypatch.setenv("MODGUARD_CONFIG_PATH", str(path))

    settings = load_settings()

    assert next(s for s in settings.sources if s.name == "azure").enabled is True


def test_override_bad_profile_rejected(tmp_path):
    path = _write(tmp_path, {"weight_profiles": {"general": {"perspective": 0.2}}})
    with pytest.raises(ConfigValidationError):
        load_settings(config_path=path)


def test_override_unknown_source_rejected(tmp_path):
    path = _write(tmp_path, {"sources": {"mystery": {"enabled": True}}})
    with pytest.raises(ConfigValidationError, match="mystery"):
        load_settings(config_path=path)


def test_override_schema_violation(tmp_path):
    path = _write(tmp_path, {"sources": {"perspective": {"timeout_sec": -1}}})
    with pytest.raises(ConfigValidationError, match="invalid config override"):
        load_settings(config_path=path)


def test_override_unreadable(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigValidationError, match="cannot read"):
        load_settings(config_path=path)


def test_disabled_sources_from_env(monkeypatch):
    monkeypatch.setenv("MODGUARD_DISABLED_SOURCES", "google_cloud, huggingface")
    settings = load_settings()
    disabled = {s.name for s in settings.sources if not s.enabled}
    assert disabled == {"google_cloud", "huggingface", "azure"}


def test_disabling_unknown_source_rejected():
    with pytest.raises(ConfigValidationError, match="unknown source"):
        load_settings(disabled_sources=["mystery"])


def test_default_settings_are_independent():
    first, second = EngineSettings(), EngineSettings()
    first.sources[0].enabled = False
    assert second.sources[0].enabled is True


def test_get_settings_is_cached():
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()


def test_credentials(monkeypatch):
    assert env.get_credential("PERSPECTIVE_API_KEY") is None
    assert env.has_credential(None) is True
    assert env.has_credential("PERSPECTIVE_API_KEY") is False
    monkeypatch.setenv("PERSPECTIVE_API_KEY", "  abc  ")
    assert env.get_credential("PERSPECTIVE_API_KEY") == "abc"
    assert env.has_credential("PERSPECTIVE_API_KEY") is True


def test_azure_endpoint_trailing_slash(monkeypatch):
    assert env.get_azure_endpoint() is None
    monkeypatch.setenv("AZURE_TEXT_ANALYTICS_ENDPOINT", "https://x.example.com/")
    assert env.get_azure_endpoint() == "https://x.example.com"


def test_disabled_sources_parsing(monkeypatch):
    assert env.get_disabled_sources() == []
    monkeypatch.setenv("MODGUARD_DISABLED_SOURCES", " azure,, perspective ")
    assert env.get_disabled_sources() == ["azure", "perspective"]


@pytest.mark.parametrize(
    "value,masked",
    [(None, "unset"), ("", "unset"), ("short", "***"), ("abcdefghijkl", "abcd***")],
)
def test_mask_secret(value, masked):
    assert env.mask_secret(value) == masked


def test_startup_banner_masks_keys(monkeypatch, capsys):
    monkeypatch.setenv("PERSPECTIVE_API_KEY", "supersecretkey")
    env.print_modguard_startup("test")
    out = capsys.readouterr().out
    assert "PERSPECTIVE_API_KEY=supe***" in out
    assert "supersecretkey" not in out
    assert "HUGGINGFACE_API_KEY=unset" in out
