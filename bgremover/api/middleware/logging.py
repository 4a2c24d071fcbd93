# =============================================================================
# LOGGING & REQUEST TRACING MODULE
# =============================================================================
#
# Provides:
#   - One request ID per HTTP request (header, request.state, context var)
#   - JSON log lines in production, coloured lines in development
#   - Keyword fields for uploads, removals and view-state changes
#   - One "request completed" line per request with timing
#
# =============================================================================

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from bgremover.core.config import settings

REQUEST_ID_HEADER = "X-Request-ID"

# Request ID available throughout request lifecycle
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Polled or scraped paths; logging them would drown the page flow
QUIET_PATHS = {"/health", "/ready", "/state", "/metrics"}

# Fields printed first (in this order) by the development formatter
LEADING_FIELDS = ("from_state", "to_state", "filename", "reason")


def get_request_id(request: Request | None = None) -> str:
    """Resolve the current request ID.

    The context var is gone once the request has left the logging
    middleware (e.g. in the outermost 500 handler), so the ID stored on
    ``request.state`` or sent by the client is preferred when a request is
    at hand.
    """
    if request is not None:
        stored = getattr(request.state, "request_id", None)
        if stored:
            return stored
        sent = request.headers.get(REQUEST_ID_HEADER)
        if sent:
            return sent
    return request_id_var.get()


def _record_fields(record: logging.LogRecord) -> dict:
    return getattr(record, "fields", None) or {}


# =============================================================================
# FORMATTERS
# =============================================================================


class JsonFormatter(logging.Formatter):
    """One JSON object per line, in Cloud Logging's field names."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id

        entry.update(
            {key: value for key, value in _record_fields(record).items() if value is not None}
        )

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Readable single-line output for local runs."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, self.RESET)
        request_id = request_id_var.get()
        prefix = f"[{request_id[:8]}] " if request_id else ""

        fields = _record_fields(record)
        ordered = [key for key in LEADING_FIELDS if key in fields]
        ordered += [key for key in fields if key not in LEADING_FIELDS]
        suffix = " ".join(
            f"{key}={fields[key]}" for key in ordered if fields[key] is not None
        )

        line = f"{color}{record.levelname:8}{self.RESET} {prefix}{record.name} - {record.getMessage()}"
        if suffix:
            line = f"{line} | {suffix}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging() -> logging.Logger:
    """Route all application logging through one stdout handler."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if settings.is_production() else ConsoleFormatter())
    root_logger.handlers = [handler]

    # core.logging installed its own handler for non-web use; drop it so
    # lines are not printed twice
    logging.getLogger("bgremover").handlers = []

    # Set levels for noisy libraries
    for name in ("uvicorn.access", "httpx", "google_genai"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


# =============================================================================
# CONTEXT-AWARE LOGGER
# =============================================================================


class ContextLogger:
    """Logger taking keyword fields, e.g. ``info("Upload received", filename=...)``."""

    def __init__(self, name: str = "bgremover.api"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, msg: str, fields: dict):
        self._logger.log(level, msg, extra={"fields": fields})

    def info(self, msg: str, **fields):
        self._log(logging.INFO, msg, fields)

    def warning(self, msg: str, **fields):
        self._log(logging.WARNING, msg, fields)

    def error(self, msg: str, **fields):
        self._log(logging.ERROR, msg, fields)


ctx_logger = ContextLogger()


# =============================================================================
# REQUEST LOGGING MIDDLEWARE
# =============================================================================


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns the request ID and logs each request once it completes."""

    async def dispatch(self, request: Request, call_next):
        # Reuse the caller's ID (load balancer / client) or mint one
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception as e:
            ctx_logger.error(
                "Request failed with exception",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.time() - start_time) * 1000, 2),
                error=f"{type(e).__name__}: {e}",
            )
            raise
        finally:
            duration_ms = round((time.time() - start_time) * 1000, 2)

        if request.url.path not in QUIET_PATHS:
            log = ctx_logger.info if response.status_code < 400 else ctx_logger.warning
            log(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        request_id_var.reset(token)

        return response
