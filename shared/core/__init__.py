"""Shared core utilities for the stringing shop services.

Provides common health check and logging functionality.
"""

from .health import ServiceHealth, HealthStatus, ExternalProbe, mask_secret
from .logging_config import (
    setup_logging,
    get_logger,
    RequestLoggingMiddleware,
    set_request_context,
    generate_request_id,
    LoggerAdapter,
)

__all__ = [
    # Health checks
    "ServiceHealth",
    "HealthStatus",
    "ExternalProbe",
    "mask_secret",
    # Logging
    "setup_logging",
    "get_logger",
    "RequestLoggingMiddleware",
    "set_request_context",
    "generate_request_id",
    "LoggerAdapter",
]
