"""
Application-level exceptions.

Source failures are captured per call by the orchestrator and never reach the
caller of DecisionEngine.assess; the remaining exceptions signal programming or
configuration errors and are raised where they occur.
"""

from __future__ import annotations


class ModGuardError(Exception):
    """Base class for all engine errors."""


class ConfigValidationError(ModGuardError):
    """Source table or weight profiles failed validation at load time."""


class SourceCallError(ModGuardError):
    """A scoring source call failed (network, HTTP status, malformed response)."""

    def __init__(self, source: str, message: str, status_code: int | None = None):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.status_code = status_code


class UnknownSourceError(ModGuardError, KeyError):
    """No source descriptor is registered under the given name."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"unknown scoring source: {self.name}"


class UnknownViolationTypeError(ModGuardError, KeyError):
    """No escalation rule exists for the given violation type."""

    def __init__(self, violation_type: str):
        super().__init__(violation_type)
        self.violation_type = violation_type

    def __str__(self) -> str:
        return f"unknown violation type: {self.violation_type}"
