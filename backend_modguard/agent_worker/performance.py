"""
Per-source performance tracker.

Records call counts, success counts and a blended response time for every
source the orchestrator attempts, and holds the accuracy multiplier used by
the consensus scorer. Accuracy only changes through set_accuracy (external
feedback); there is no internal learning loop.

Each PerformanceRecord carries its own lock. Concurrent assessments updating
different sources never contend, and updates to the same source are
serialized so no increment is lost.
"""

from __future__ import annotations

import threading
import time
from typing import Any

from backend_modguard.analysis_engine.models import DEFAULT_ACCURACY_SCORE, PerformanceRecord
from backend_modguard.modguard_logging import get_logger

logger = get_logger(__name__)


class PerformanceTracker:
    """Process-lifetime performance stats keyed by source name."""

    def __init__(self, source_names: list[str] | None = None):
        self._records: dict[str, PerformanceRecord] = {}
        # Guards creation of new records only; updates use the per-record lock.
        self._registry_lock = threading.Lock()
        for name in source_names or []:
            self._record_for(name)

    def _record_for(self, source: str) -> PerformanceRecord:
        record = self._records.get(source)
        if record is not None:
            return record
        with self._registry_lock:
            record = self._records.get(source)
            if record is None:
                record = PerformanceRecord(source=source, accuracy_score=DEFAULT_ACCURACY_SCORE)
                self._records[source] = record
            return record

    def record(self, source: str, succeeded: bool, latency_ms: float) -> None:
        """
        Count one attempted call. On success, blend the latency into the
        running average as (old + new) / 2, starting from 0.
        """
        record = self._record_for(source)
        with record._lock:
            record.total_calls += 1
            if succeeded:
                record.successful_calls += 1
                record.average_response_time_ms = (
                    record.average_response_time_ms + latency_ms
                ) / 2
            record.last_updated = time.time()

    def accuracy(self, source: str) -> float:
        """Accuracy multiplier for source; 0.8 until feedback says otherwise."""
        return self._record_for(source).accuracy_score

    def set_accuracy(self, source: str, value: float) -> float:
        """External feedback hook. Value is clamped to [0, 1]; returns the stored value."""
        clamped = max(0.0, min(1.0, float(value)))
        record = self._record_for(source)
        with record._lock:
            record.accuracy_score = clamped
            record.last_updated = time.time()
        logger.info("source_accuracy_updated", source=source, accuracy=clamped)
        return clamped

    def get(self, source: str) -> PerformanceRecord:
        return self._record_for(source)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Point-in-time copy of every record as plain dicts."""
        out: dict[str, dict[str, Any]] = {}
        for name, record in list(self._records.items()):
            with record._lock:
                out[name] = record.to_dict()
        return out
