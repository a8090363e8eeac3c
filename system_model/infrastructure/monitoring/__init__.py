"""
Infrastructure Monitoring Module

Structured logging with correlation IDs and OpenTelemetry trace context for
coordinator operations and store access.
"""

from .logging import (
    correlation_context,
    get_correlation_id,
    log_coordinator_operation,
    setup_structured_logging,
)

__all__ = [
    "correlation_context",
    "get_correlation_id",
    "log_coordinator_operation",
    "setup_structured_logging",
]
