"""
Escalation ladder: violation type + prior count -> concrete action.

Pure lookup over a fixed rule table. The rung index is
min(count, len(rungs) - 1), so the last rung is absorbing: once a user runs
past the ladder they keep getting its final action. Violation counts are owned
by the caller; this module never stores or resets them.
"""

from __future__ import annotations

from backend_modguard.analysis_engine.models import ActionCategory, EscalationRule, EscalationRung
from backend_modguard.core.exceptions import UnknownViolationTypeError

HOUR_SEC = 60 * 60
DAY_SEC = 24 * HOUR_SEC

WARN = EscalationRung(ActionCategory.WARN)
BAN = EscalationRung(ActionCategory.BAN)


def _mute(duration_sec: int) -> EscalationRung:
    return EscalationRung(ActionCategory.MUTE, duration_sec)


VIOLATION_TYPES: dict[str, EscalationRule] = {
    rule.violation_type: rule
    for rule in (
        EscalationRule(
            violation_type="DISRESPECTFUL",
            name="Disrespectful Interaction",
            severity=3,
            score_threshold=4,
            rungs=(WARN, WARN, _mute(HOUR_SEC), BAN),
        ),
        EscalationRule(
            violation_type="HARASSMENT",
            name="Harassment/Bullying/Hate Speech",
            severity=7,
            score_threshold=6,
            rungs=(_mute(DAY_SEC), _mute(7 * DAY_SEC), BAN),
        ),
        EscalationRule(
            violation_type="RACISM",
            name="Racism/Discrimination",
            severity=10,
            score_threshold=8,
            rungs=(BAN,),
        ),
        EscalationRule(
            violation_type="SPAM",
            name="Excessive Messaging/Flooding",
            severity=4,
            score_threshold=5,
            rungs=(WARN, _mute(HOUR_SEC), _mute(DAY_SEC), BAN),
        ),
        EscalationRule(
            violation_type="TOXIC_BEHAVIOR",
            name="Toxic Behavior Pattern",
            severity=6,
            score_threshold=5,
            rungs=(WARN, _mute(HOUR_SEC), _mute(DAY_SEC), BAN),
        ),
        EscalationRule(
            violation_type="SCAM",
            name="Scam/Fraud Content",
            severity=8,
            score_threshold=7,
            rungs=(BAN,),
        ),
        EscalationRule(
            violation_type="SEVERE_TOXICITY",
            name="Severe Toxic Content",
            severity=9,
            score_threshold=8,
            rungs=(BAN,),
        ),
    )
}


def get_rule(violation_type: str) -> EscalationRule:
    try:
        return VIOLATION_TYPES[violation_type]
    except KeyError:
        raise UnknownViolationTypeError(violation_type) from None


def rung_index(rule: EscalationRule, user_violation_count: int) -> int:
    return min(user_violation_count, len(rule.rungs) - 1)


def escalate(violation_type: str, user_violation_count: int) -> EscalationRung:
    """
    Return the rung for a user with user_violation_count prior violations of
    this type (0 = first offense).

    Raises UnknownViolationTypeError for an unknown type and ValueError for a
    negative count.
    """
    if user_violation_count < 0:
        raise ValueError(f"violation count must be >= 0, got {user_violation_count}")
    rule = get_rule(violation_type)
    return rule.rungs[rung_index(rule, user_violation_count)]


def meets_threshold(violation_type: str, score: float) -> bool:
    """True when score is high enough for the rule to be enforced at all."""
    return score >= get_rule(violation_type).score_threshold


def format_duration(duration_sec: int) -> str:
    """Human-readable duration: days, else hours; 0 means no expiry."""
    if duration_sec <= 0:
        return "Permanent"
    days = duration_sec // DAY_SEC
    hours = (duration_sec % DAY_SEC) // HOUR_SEC
    if days > 0:
        return f"{days} day{'s' if days > 1 else ''}"
    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''}"
    return "Less than 1 hour"
