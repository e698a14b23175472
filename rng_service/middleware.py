"""
Request middleware: correlation IDs, HTTP metrics and error bodies.

Registered in ``create_app`` so that a request passes through them in that
order; the error handler is innermost so metrics see the final status.
"""
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
import structlog

from .api.schemas import ErrorResponse
from .errors import ApiError
from .metrics import Metrics
from .responses import IndentedJSONResponse

log = structlog.get_logger()

CORRELATION_HEADER = "X-Correlation-ID"


def error_response(status_code: int, message: str) -> IndentedJSONResponse:
    body = ErrorResponse(error=message)
    return IndentedJSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def api_error_handler(request: Request, exc: ApiError) -> IndentedJSONResponse:
    """Render caller-facing errors as ``{"error": ..., "timestamp": ...}``."""
    log.warning(
        "api.error",
        status_code=exc.status_code,
        error=exc.message,
        error_type=exc.__class__.__name__,
    )
    return error_response(exc.status_code, exc.message)


def route_label(request: Request, api_prefix: str) -> str:
    """
    Route template for the request, e.g. ``/api/v1/GetAverageRNG/{username}``.

    Depending on the FastAPI version, routes included with a prefix report
    their template with or without it, so the prefix is restored here.
    Unmatched requests fall back to the raw path.
    """
    template = getattr(request.scope.get("route"), "path", None)
    if template is None:
        return request.url.path
    if request.url.path.startswith(api_prefix) and not template.startswith(api_prefix):
        return api_prefix + template
    return template


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with a correlation ID.

    The ID is taken from the X-Correlation-ID header or generated, bound to
    the structlog context together with the method and path of the request,
    and echoed back on the response, including error responses.
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=correlation_id,
            http_method=request.method,
            http_path=request.url.path,
        )

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Counts requests and their latency per route template and status."""

    def __init__(self, app, metrics: Metrics, api_prefix: str = ""):
        super().__init__(app)
        self.metrics = metrics
        self.api_prefix = api_prefix

    async def dispatch(self, request: Request, call_next):
        # The exposition endpoint is not counted
        if request.url.path.startswith("/metrics"):
            return await call_next(request)

        active = self.metrics.http_requests_active.labels(service=self.metrics.service_name)
        active.inc()
        start_time = time.time()

        try:
            response = await call_next(request)
            duration = time.time() - start_time
            path = route_label(request, self.api_prefix)

            self.metrics.http_requests_total.labels(
                service=self.metrics.service_name,
                method=request.method,
                path=path,
                status=response.status_code,
            ).inc()
            self.metrics.http_request_duration.labels(
                service=self.metrics.service_name,
                method=request.method,
                path=path,
            ).observe(duration)

            log.info(
                "http_request",
                http_status=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            return response
        finally:
            active.dec()


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turns unhandled exceptions into a 500 error body."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            log.error(
                "unhandled.exception",
                error=str(exc),
                error_type=exc.__class__.__name__,
                exc_info=True,
            )
            return error_response(500, "An unexpected error occurred")
