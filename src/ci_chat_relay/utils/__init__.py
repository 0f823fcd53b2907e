"""Utility functions and helpers.

This module provides various utilities for the CI Chat Relay:
- async_helpers: Error taxonomy and retry factory
- security: Secret redaction
- logging: Structured logging with secret sanitization
- health: Health check utilities
"""

from ci_chat_relay.utils.async_helpers import (
    ApiError,
    FormatError,
    NotFoundError,
    RelayError,
    TransportError,
    UsageError,
    create_retry,
)
from ci_chat_relay.utils.health import (
    HealthChecker,
    HealthReport,
    HealthStatus,
)
from ci_chat_relay.utils.logging import (
    LogFormat,
    bind_context,
    configure_logging,
    unbind_context,
)
from ci_chat_relay.utils.security import (
    RedactionError,
    SecretRedactor,
    SecurityError,
)

__all__ = [
    # Errors
    "ApiError",
    "FormatError",
    "NotFoundError",
    "RelayError",
    "TransportError",
    "UsageError",
    "create_retry",
    # Health
    "HealthChecker",
    "HealthReport",
    "HealthStatus",
    # Logging
    "LogFormat",
    "bind_context",
    "configure_logging",
    "unbind_context",
    # Security
    "RedactionError",
    "SecretRedactor",
    "SecurityError",
]
