"""
Tests for the escalation ladder: lookups, sticky last rung, monotonic
severity, thresholds and duration formatting.
"""

from __future__ import annotations

import pytest

from backend_modguard.alerts.escalation import (
    DAY_SEC,
    HOUR_SEC,
    VIOLATION_TYPES,
    escalate,
    format_duration,
    get_rule,
    meets_threshold,
)
from backend_modguard.analysis_engine.models import ActionCategory
from backend_modguard.core.exceptions import UnknownViolationTypeError


def test_disrespectful_third_offense_is_mute():
    rung = escalate("DISRESPECTFUL", 2)
    assert rung.action is ActionCategory.MUTE
    assert rung.duration_sec == HOUR_SEC


def test_first_offense_uses_first_rung():
    assert escalate("DISRESPECTFUL", 0).action is ActionCategory.WARN
    assert escalate("HARASSMENT", 0).action is ActionCategory.MUTE
    assert escalate("HARASSMENT", 0).duration_sec == DAY_SEC
    assert escalate("RACISM", 0).action is ActionCategory.BAN


@pytest.mark.parametrize("violation_type", sorted(VIOLATION_TYPES))
def test_last_rung_is_sticky(violation_type):
    last = len(get_rule(violation_type).rungs) - 1
    expected = escalate(violation_type, last)
    for count in range(last, last + 10):
        assert escalate(violation_type, count) == expected


@pytest.mark.parametrize("violation_type", sorted(VIOLATION_TYPES))
def test_severity_never_decreases(violation_type):
    severities = [escalate(violation_type, n).action.severity for n in range(8)]
    assert severities == sorted(severities)


def test_unknown_violation_type():
    with pytest.raises(UnknownViolationTypeError):
        escalate("JAYWALKING", 0)
    with pytest.raises(KeyError):
        get_rule("JAYWALKING")


def test_negative_count_rejected():
    with pytest.raises(ValueError):
        escalate("SPAM", -1)


def test_meets_threshold():
    assert meets_threshold("DISRESPECTFUL", 4)
    assert not meets_threshold("DISRESPECTFUL", 3.9)
    assert meets_threshold("SEVERE_TOXICITY", 8)
    assert not meets_threshold("SEVERE_TOXICITY", 7.5)


def test_rule_table_shape():
    assert set(VIOLATION_TYPES) == {
        "DISRESPECTFUL",
        "HARASSMENT",
        "RACISM",
        "SPAM",
        "TOXIC_BEHAVIOR",
        "SCAM",
        "SEVERE_TOXICITY",
    }
    for rule in VIOLATION_TYPES.values():
        assert rule.rungs
        assert 0 <= rule.score_threshold <= 10


@pytest.mark.parametrize(
    "seconds,text",
    [
        (0, "Permanent"),
        (60, "Less than 1 hour"),
        (HOUR_SEC, "1 hour"),
        (2 * HOUR_SEC, "2 hours"),
        (DAY_SEC, "1 day"),
        (7 * DAY_SEC, "7 days"),
    ],
)
def test_format_duration(seconds, text):
    assert format_duration(seconds) == text
