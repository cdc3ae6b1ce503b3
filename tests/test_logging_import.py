"""
Test that modguard_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from modguard_logging and use the logger."""
    from backend_modguard.modguard_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_bind_source_logger():
    """bind_source returns a logger usable with extra keyword fields."""
    from backend_modguard.modguard_logging import bind_source

    logger = bind_source("perspective")
    logger.info("source_scored", score=3, latency_ms=12.5)


def test_engine_package_imports():
    """Top-level packages import cleanly in dependency order."""
    import backend_modguard.api_server.app  # noqa: F401
    import backend_modguard.decisions  # noqa: F401
    from backend_modguard.analysis_engine.consensus import ConsensusScorer  # noqa: F401


def test_message_text_is_redacted():
    """A text field is logged as length plus a short preview, never in full."""
    from backend_modguard.modguard_logging.logger import TEXT_PREVIEW_CHARS, _redact_text

    long_text = "x" * (TEXT_PREVIEW_CHARS + 10)
    event = _redact_text(None, "info", {"event": "e", "text": long_text})
    assert "text" not in event
    assert event["text_length"] == len(long_text)
    assert event["text_preview"] == "x" * TEXT_PREVIEW_CHARS + "..."

    short = _redact_text(None, "info", {"event": "e", "text": "hi"})
    assert short["text_preview"] == "hi"
