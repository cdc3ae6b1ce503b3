"""
Source descriptor registry.

Read-only table of scoring sources loaded at startup. The only runtime
mutation is the admin enable/disable toggle. Availability also requires the
source's credential to be present in the environment.
"""

from __future__ import annotations

from backend_modguard.analysis_engine.models import SourceDescriptor
from backend_modguard.config.env import has_credential
from backend_modguard.core.exceptions import UnknownSourceError
from backend_modguard.modguard_logging import get_logger

logger = get_logger(__name__)


class SourceRegistry:
    """Named lookup over SourceDescriptor, in table order."""

    def __init__(self, descriptors: list[SourceDescriptor]):
        self._descriptors: dict[str, SourceDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in self._descriptors:
                raise ValueError(f"duplicate source name: {descriptor.name}")
            self._descriptors[descriptor.name] = descriptor

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def get(self, name: str) -> SourceDescriptor:
        try:
            return self._descriptors[name]
        except KeyError:
            raise UnknownSourceError(name) from None

    def all(self) -> list[SourceDescriptor]:
        return list(self._descriptors.values())

    def names(self) -> list[str]:
        return list(self._descriptors)

    def is_available(self, name: str) -> bool:
        """Enabled and credentialed (sources without credential_env always are)."""
        descriptor = self.get(name)
        return descriptor.enabled and has_credential(descriptor.credential_env)

    def enabled(self) -> list[SourceDescriptor]:
        return [d for d in self._descriptors.values() if d.enabled]

    def set_enabled(self, name: str, enabled: bool) -> SourceDescriptor:
        descriptor = self.get(name)
        if descriptor.enabled != enabled:
            descriptor.enabled = enabled
            logger.info("source_toggled", source=name, enabled=enabled)
        return descriptor
