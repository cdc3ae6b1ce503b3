"""
Build the adapter set for a registry.

A remote source whose credential is missing gets no adapter: it is never
called and never reported as a failure. Local sources are always built.
"""

from __future__ import annotations

import httpx

from backend_modguard.analysis_engine.models import SourceDescriptor
from backend_modguard.config.env import get_azure_endpoint, get_credential
from backend_modguard.modguard_logging import get_logger
from backend_modguard.sources.base import ScoringSource
from backend_modguard.sources.keyword_model import KeywordModelSource
from backend_modguard.sources.local_rules import LocalRuleSource
from backend_modguard.sources.registry import SourceRegistry
from backend_modguard.sources.remote import (
    AzureSource,
    GoogleCloudSource,
    HuggingFaceSource,
    PerspectiveSource,
)

logger = get_logger(__name__)

_LOCAL_SOURCES: dict[str, type[ScoringSource]] = {
    "local_rules": LocalRuleSource,
    "keyword_model": KeywordModelSource,
}
_REMOTE_SOURCES = {
    "perspective": PerspectiveSource,
    "huggingface": HuggingFaceSource,
    "google_cloud": GoogleCloudSource,
}


def _build_one(
    descriptor: SourceDescriptor,
    client: httpx.AsyncClient | None,
) -> ScoringSource | None:
    if descriptor.name in _LOCAL_SOURCES:
        return _LOCAL_SOURCES[descriptor.name](descriptor)

    api_key = get_credential(descriptor.credential_env)
    if api_key is None:
        logger.info("source_skipped_no_credential", source=descriptor.name, env=descriptor.credential_env)
        return None
    if descriptor.name == "azure":
        endpoint = get_azure_endpoint()
        if endpoint is None:
            logger.info("source_skipped_no_endpoint", source=descriptor.name)
            return None
        return AzureSource(descriptor, api_key, endpoint, client=client)
    remote_cls = _REMOTE_SOURCES.get(descriptor.name)
    if remote_cls is None:
        logger.warning("source_has_no_adapter", source=descriptor.name)
        return None
    return remote_cls(descriptor, api_key, client=client)


def build_sources(
    registry: SourceRegistry,
    client: httpx.AsyncClient | None = None,
) -> dict[str, ScoringSource]:
    """
    Return name -> adapter for every descriptor that can be called.

    Disabled sources still get an adapter so an admin can re-enable them at
    runtime; the orchestrator checks `enabled` per assessment.
    """
    adapters: dict[str, ScoringSource] = {}
    for descriptor in registry.all():
        adapter = _build_one(descriptor, client)
        if adapter is not None:
            adapters[descriptor.name] = adapter
    logger.info("sources_built", adapters=sorted(adapters))
    return adapters
