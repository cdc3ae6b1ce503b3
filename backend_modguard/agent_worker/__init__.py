"""
Agent worker: concurrent source fan-out and per-source performance tracking.
"""

from backend_modguard.agent_worker.orchestrator import OrchestrationOutcome, ProviderOrchestrator
from backend_modguard.agent_worker.performance import PerformanceTracker

__all__ = ["OrchestrationOutcome", "PerformanceTracker", "ProviderOrchestrator"]
