# =============================================================================
# MIDDLEWARE PACKAGE
# =============================================================================
#
# Middleware for:
#   - Request validation & size limiting
#   - Structured logging & request tracing
#   - Prometheus metrics
#   - Error handling
#
# =============================================================================

from bgremover.api.middleware.errors import register_exception_handlers
from bgremover.api.middleware.logging import (
    RequestLoggingMiddleware,
    ctx_logger,
    get_request_id,
    setup_logging,
)
from bgremover.api.middleware.metrics import (
    MetricsMiddleware,
    metrics,
    metrics_endpoint,
)
from bgremover.api.middleware.validation import (
    FileValidator,
    SizeLimitMiddleware,
    file_validator,
    get_validated_file,
)

__all__ = [
    # Validation
    "SizeLimitMiddleware",
    "FileValidator",
    "file_validator",
    "get_validated_file",
    # Logging
    "RequestLoggingMiddleware",
    "ctx_logger",
    "get_request_id",
    "setup_logging",
    # Metrics
    "MetricsMiddleware",
    "metrics_endpoint",
    "metrics",
    # Errors
    "register_exception_handlers",
]
