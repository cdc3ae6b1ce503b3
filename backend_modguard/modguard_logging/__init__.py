"""
Structured logging for Backend ModGuard.

JSON logs with timestamp, event_type, source and decision fields.
Use get_logger() in all engine modules for aggregation-friendly output.
"""

from backend_modguard.modguard_logging.logger import bind_source, configure_structlog, get_logger

__all__ = ["bind_source", "configure_structlog", "get_logger"]
