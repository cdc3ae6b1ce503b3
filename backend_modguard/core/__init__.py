"""Shared primitives: application exceptions."""

from backend_modguard.core.exceptions import (
    ConfigValidationError,
    ModGuardError,
    SourceCallError,
    UnknownSourceError,
    UnknownViolationTypeError,
)

__all__ = [
    "ConfigValidationError",
    "ModGuardError",
    "SourceCallError",
    "UnknownSourceError",
    "UnknownViolationTypeError",
]
