"""
Pytest fixtures for ModGuard tests. Fake scoring sources stand in for vendors;
credential env vars are cleared so nothing reaches the network.
"""

from __future__ import annotations

import asyncio

import pytest

from backend_modguard.analysis_engine.models import (
    SourceContext,
    SourceDescriptor,
    SourceResult,
)
from backend_modguard.sources.base import ScoringSource

_ENV_VARS = (
    "PERSPECTIVE_API_KEY",
    "HUGGINGFACE_API_KEY",
    "GOOGLE_CLOUD_API_KEY",
    "AZURE_TEXT_ANALYTICS_KEY",
    "AZURE_TEXT_ANALYTICS_ENDPOINT",
    "MODGUARD_CONFIG_PATH",
    "MODGUARD_DISABLED_SOURCES",
)


class FakeSource(ScoringSource):
    """Scoring source returning a canned result, raising, or sleeping first."""

    def __init__(
        self,
        descriptor: SourceDescriptor,
        result: SourceResult | None = None,
        error: Exception | None = None,
        delay_sec: float = 0.0,
    ):
        super().__init__(descriptor)
        self.result = result or SourceResult.scored(0, 70, [f"{descriptor.name}: clean"])
        self.error = error
        self.delay_sec = delay_sec
        self.calls: list[tuple[str, SourceContext]] = []

    async def evaluate(self, text: str, context: SourceContext) -> SourceResult:
        self.calls.append((text, context))
        if self.delay_sec:
            await asyncio.sleep(self.delay_sec)
        if self.error is not None:
            raise self.error
        return self.result


def make_descriptor(name: str, timeout_sec: float = 1.0, enabled: bool = True) -> SourceDescriptor:
    return SourceDescriptor(
        name=name,
        display_name=name.title(),
        capability_tags=frozenset({"toxicity"}),
        base_weight=0.2,
        timeout_sec=timeout_sec,
        rate_limit_per_min=100,
        enabled=enabled,
    )


def scored(score: int, confidence: int = 80, reason: str | None = None) -> SourceResult:
    return SourceResult.scored(score, confidence, [reason or f"scored {score}"])


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """No credentials or overrides leak in from the developer's shell."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def context() -> SourceContext:
    return SourceContext(author_id="user-1", channel_id="chan-1", channel_name="general")


@pytest.fixture
def settings():
    """Fresh default settings (no env, no override file)."""
    from backend_modguard.config.settings import EngineSettings

    return EngineSettings()


@pytest.fixture
def make_engine(settings):
    """
    Build a DecisionEngine whose adapters are FakeSources.

        engine, fakes = make_engine({"perspective": scored(4)})
    """
    from backend_modguard.decisions.engine import DecisionEngine

    def _make(results: dict[str, SourceResult | Exception]):
        by_name = {d.name: d for d in settings.sources}
        fakes: dict[str, FakeSource] = {}
        for name, outcome in results.items():
            if isinstance(outcome, Exception):
                fakes[name] = FakeSource(by_name[name], error=outcome)
            else:
                fakes[name] = FakeSource(by_name[name], result=outcome)
        engine = DecisionEngine(settings, adapters=fakes)
        for name in fakes:
            # azure ships disabled; tests that give it an adapter want it called
            engine.set_source_enabled(name, True)
        return engine, fakes

    return _make


@pytest.fixture
def client(make_engine):
    """FastAPI TestClient over an engine with a single fake perspective source scoring 4."""
    from fastapi.testclient import TestClient

    from backend_modguard.api_server.server import create_app

    engine, _ = make_engine({"perspective": scored(4, 80, "perspective: attribute analysis")})
    with TestClient(create_app(engine)) as test_client:
        yield test_client
