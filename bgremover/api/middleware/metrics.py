# =============================================================================
# METRICS MODULE (Prometheus)
# =============================================================================
#
# What is exported on GET /metrics:
#   - HTTP traffic per route template (count, latency, in flight)
#   - Removals per surface ("ui" page or "api" endpoint) and outcome
#   - Page view-state transitions
#   - Upload sizes and errors by exception type
#
# =============================================================================

import time

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware

# Label for requests no route matched (404s, scanners)
UNMATCHED_ROUTE = "unmatched"


# =============================================================================
# HTTP METRICS
# =============================================================================

HTTP_REQUESTS = Counter(
    "bgremover_http_requests_total",
    "HTTP requests by route template",
    ["method", "route", "status_code"],
)

HTTP_LATENCY = Histogram(
    "bgremover_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "route"],
    # Page hits are fast; the JSON endpoint waits on the model
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

# The route is only known after routing, so in-flight requests are per method
HTTP_IN_FLIGHT = Gauge(
    "bgremover_http_requests_in_flight",
    "HTTP requests currently being served",
    ["method"],
)

ERRORS = Counter(
    "bgremover_errors_total",
    "Errors by exception type and route",
    ["type", "route"],
)


# =============================================================================
# REMOVAL METRICS
# =============================================================================

REMOVALS = Counter(
    "bgremover_removals_total",
    "Background removals by surface and outcome",
    ["source", "outcome"],
)

REMOVAL_DURATION = Histogram(
    "bgremover_removal_duration_seconds",
    "Encoding plus model round trip",
    ["source"],
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0),
)

VIEW_TRANSITIONS = Counter(
    "bgremover_view_transitions_total",
    "Page view-state changes",
    ["from_state", "to_state"],
)

UPLOAD_SIZE = Histogram(
    "bgremover_upload_size_bytes",
    "Size of accepted uploads",
    buckets=(
        100 * 1024,  # 100 KB
        500 * 1024,  # 500 KB
        1024 * 1024,  # 1 MB
        5 * 1024 * 1024,  # 5 MB
        10 * 1024 * 1024,  # 10 MB (default limit)
    ),
)


def route_label(request: Request) -> str:
    """Route template of a request that went through the router.

    Starlette stores the matched route in the scope, so this is only
    meaningful once ``call_next`` has returned.
    """
    route = request.scope.get("route")
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    return template or UNMATCHED_ROUTE


# =============================================================================
# MIDDLEWARE
# =============================================================================


class MetricsMiddleware(BaseHTTPMiddleware):
    """Counts and times every request except scrapes of /metrics."""

    async def dispatch(self, request: Request, call_next):
        # Don't measure the scraper
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        HTTP_IN_FLIGHT.labels(method=method).inc()
        start_time = time.time()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        except Exception as e:
            ERRORS.labels(type=type(e).__name__, route=route_label(request)).inc()
            raise
        finally:
            route = route_label(request)
            HTTP_IN_FLIGHT.labels(method=method).dec()
            HTTP_REQUESTS.labels(method=method, route=route, status_code=status_code).inc()
            HTTP_LATENCY.labels(method=method, route=route).observe(time.time() - start_time)


async def metrics_endpoint(request: Request) -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


# =============================================================================
# RECORDER
# =============================================================================


class MetricsRecorder:
    """Entry points for metrics the routes and the page controller report."""

    @staticmethod
    def file_uploaded(size_bytes: int):
        UPLOAD_SIZE.observe(size_bytes)

    @staticmethod
    def removal_finished(source: str, succeeded: bool, duration: float | None = None):
        outcome = "succeeded" if succeeded else "failed"
        REMOVALS.labels(source=source, outcome=outcome).inc()
        if duration is not None:
            REMOVAL_DURATION.labels(source=source).observe(duration)

    @staticmethod
    def view_changed(from_state: str, to_state: str):
        VIEW_TRANSITIONS.labels(from_state=from_state, to_state=to_state).inc()

    @staticmethod
    def record_error(error_type: str, request: Request):
        ERRORS.labels(type=error_type, route=route_label(request)).inc()


metrics = MetricsRecorder()
