"""
Tests for the provider orchestrator: concurrent fan-out, per-source timeouts,
failure isolation, skipped sources, and tracker reporting.

Async code is driven with asyncio.run.
"""

from __future__ import annotations

import asyncio
import time

from backend_modguard.agent_worker.orchestrator import ProviderOrchestrator
from backend_modguard.agent_worker.performance import PerformanceTracker
from backend_modguard.analysis_engine.models import ContentType
from backend_modguard.core.exceptions import SourceCallError
from backend_modguard.sources.registry import SourceRegistry

from conftest import FakeSource, make_descriptor, scored


def _orchestrator(fakes: list[FakeSource], extra_descriptors=()):
    registry = SourceRegistry([f.descriptor for f in fakes] + list(extra_descriptors))
    tracker = PerformanceTracker(registry.names())
    return ProviderOrchestrator(registry, {f.name: f for f in fakes}, tracker), tracker


def test_every_enabled_source_gets_original_text(context):
    alpha = FakeSource(make_descriptor("alpha"), result=scored(3))
    beta = FakeSource(make_descriptor("beta"), result=scored(5))
    orchestrator, _ = _orchestrator([alpha, beta])

    outcome = asyncio.run(orchestrator.assess("F.U.C.K you", context))

    assert set(outcome.results) == {"alpha", "beta"}
    for fake in (alpha, beta):
        assert len(fake.calls) == 1
        text, ctx = fake.calls[0]
        assert text == "F.U.C.K you"
        assert ctx.content_type_hint is ContentType.EVASION_SUSPECTED
    assert outcome.content_type is ContentType.EVASION_SUSPECTED
    assert outcome.evasion.normalized_text == "fuck you"


def test_timeout_isolated_to_one_source(context):
    slow = FakeSource(make_descriptor("slow", timeout_sec=0.05), result=scored(9), delay_sec=1.0)
    fast = FakeSource(make_descriptor("fast"), result=scored(2))
    orchestrator, tracker = _orchestrator([slow, fast])

    outcome = asyncio.run(orchestrator.assess("hello", context))

    assert outcome.results["slow"].error is not None
    assert "timeout" in outcome.results["slow"].error
    assert outcome.results["fast"].usable
    assert outcome.results["fast"].score == 2
    assert tracker.get("slow").successful_calls == 0
    assert tracker.get("slow").total_calls == 1
    assert tracker.get("fast").successful_calls == 1


def test_exception_captured_not_raised(context):
    broken = FakeSource(make_descriptor("broken"), error=SourceCallError("broken", "HTTP 500", 500))
    crashing = FakeSource(make_descriptor("crashing"), error=RuntimeError("boom"))
    ok = FakeSource(make_descriptor("ok"), result=scored(1))
    orchestrator, tracker = _orchestrator([broken, crashing, ok])

    outcome = asyncio.run(orchestrator.assess("hello", context))

    assert outcome.results["broken"].error == "broken: HTTP 500"
    assert outcome.results["crashing"].error == "boom"
    assert outcome.results["ok"].usable
    assert list(outcome.usable_results) == ["ok"]
    assert tracker.get("crashing").total_calls == 1


def test_calls_run_concurrently(context):
    fakes = [
        FakeSource(make_descriptor(name), result=scored(1), delay_sec=0.3)
        for name in ("one", "two", "three")
    ]
    orchestrator, _ = _orchestrator(fakes)

    start = time.perf_counter()
    outcome = asyncio.run(orchestrator.assess("hello", context))
    elapsed = time.perf_counter() - start

    assert len(outcome.usable_results) == 3
    # Sequential would take ~0.9s
    assert elapsed < 0.75


def test_disabled_source_never_called(context):
    on = FakeSource(make_descriptor("on"), result=scored(2))
    off = FakeSource(make_descriptor("off", enabled=False), result=scored(9))
    orchestrator, tracker = _orchestrator([on, off])

    outcome = asyncio.run(orchestrator.assess("hello", context))

    assert set(outcome.results) == {"on"}
    assert off.calls == []
    assert tracker.get("off").total_calls == 0


def test_source_without_adapter_is_skipped(context):
    present = FakeSource(make_descriptor("present"), result=scored(2))
    orchestrator, _ = _orchestrator([present], extra_descriptors=[make_descriptor("no-credential")])

    outcome = asyncio.run(orchestrator.assess("hello", context))

    assert set(outcome.results) == {"present"}


def test_no_callable_sources_returns_no_data(context):
    off = FakeSource(make_descriptor("off", enabled=False))
    orchestrator, _ = _orchestrator([off])

    outcome = asyncio.run(orchestrator.assess("hello", context))

    assert outcome.results == {}
    assert outcome.has_data is False
    assert outcome.content_type is ContentType.GENERAL


def test_latency_recorded(context):
    fake = FakeSource(make_descriptor("timed"), result=scored(1), delay_sec=0.02)
    orchestrator, tracker = _orchestrator([fake])

    outcome = asyncio.run(orchestrator.assess("hello", context))

    assert outcome.results["timed"].response_time_ms >= 15
    assert tracker.get("timed").average_response_time_ms > 0
