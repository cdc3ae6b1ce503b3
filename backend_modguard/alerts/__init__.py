"""
Escalation rules: per-violation-type action ladders.
"""

from backend_modguard.alerts.escalation import (
    VIOLATION_TYPES,
    escalate,
    format_duration,
    get_rule,
    meets_threshold,
)

__all__ = ["VIOLATION_TYPES", "escalate", "format_duration", "get_rule", "meets_threshold"]
