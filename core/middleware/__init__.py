"""
Core middleware package.

- Exception handlers mapping pipeline failures to HTTP responses
- Structured logging with PII masking
"""

from core.middleware.error_handling import (
    setup_error_handlers,
    sanitize_error_message,
)

from core.middleware.logging import (
    StructuredFormatter,
    StructuredLoggingMiddleware,
    setup_logging,
)

__all__ = [
    "setup_error_handlers",
    "sanitize_error_message",
    "StructuredFormatter",
    "StructuredLoggingMiddleware",
    "setup_logging",
]
