# =============================================================================
# ERROR HANDLING MODULE
# =============================================================================
#
# Every failure leaves the service as the same JSON body:
#
#   {"error": {"code": ..., "message": ..., "request_id": ..., "details": ...}}
#
# Domain errors keep their machine-readable reason in ``details.reason``.
#
# =============================================================================

import traceback

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bgremover.api.middleware.logging import ctx_logger, get_request_id
from bgremover.api.middleware.metrics import metrics
from bgremover.core.config import settings
from bgremover.core.exceptions import (
    BgRemoverError,
    EncodingError,
    InferenceError,
    TransportFault,
)

# (status code, error code) per domain exception
DOMAIN_ERRORS: dict[type[BgRemoverError], tuple[int, str]] = {
    EncodingError: (400, "ENCODING_ERROR"),
    InferenceError: (502, "NO_IMAGE_IN_RESPONSE"),
    TransportFault: (502, "UPSTREAM_ERROR"),
}


def error_body(
    request: Request,
    status_code: int,
    message: str,
    error_code: str | None = None,
    details: dict | None = None,
) -> JSONResponse:
    """Build the JSON error response for ``request``."""
    error = {
        "code": error_code or f"ERR_{status_code}",
        "message": message,
        "request_id": get_request_id(request),
    }
    if details:
        error["details"] = details

    return JSONResponse(status_code=status_code, content={"error": error})


# =============================================================================
# HANDLERS
# =============================================================================


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """404s, 413s and rejected uploads raised by the routes."""
    ctx_logger.warning(
        "Request rejected",
        status_code=exc.status_code,
        detail=str(exc.detail),
        path=request.url.path,
    )
    return error_body(request, exc.status_code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing or malformed form fields (e.g. no ``file`` part)."""
    problems = [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    ctx_logger.warning("Invalid request", path=request.url.path, errors=problems)
    return error_body(
        request,
        422,
        "Request validation failed",
        error_code="VALIDATION_ERROR",
        details={"errors": problems},
    )


async def domain_exception_handler(request: Request, exc: BgRemoverError) -> JSONResponse:
    """Encoding, inference and transport failures of a removal."""
    status_code, error_code = DOMAIN_ERRORS.get(type(exc), (500, "REMOVAL_ERROR"))

    ctx_logger.warning(
        "Background removal failed",
        reason=exc.reason,
        error_code=error_code,
        message=str(exc),
        path=request.url.path,
    )
    metrics.record_error(type(exc).__name__, request)

    return error_body(
        request,
        status_code,
        str(exc),
        error_code=error_code,
        details={"reason": exc.reason},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything else; the message is generic in production."""
    ctx_logger.error(
        "Unhandled exception",
        path=request.url.path,
        error=f"{type(exc).__name__}: {exc}",
        traceback=traceback.format_exc(),
    )

    # Don't expose internals in production
    if settings.is_production():
        message = "An internal error occurred. Please try again later."
    else:
        message = f"{type(exc).__name__}: {exc}"

    return error_body(request, 500, message, error_code="INTERNAL_ERROR")


def register_exception_handlers(app):
    """Install the handlers above on ``app``."""
    # FastAPI's HTTPException subclasses Starlette's, so one handler covers both
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(BgRemoverError, domain_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
