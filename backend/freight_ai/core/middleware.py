"""
Request context middleware.

- Reuses X-Trace-ID (or X-Request-ID) from the incoming request, else generates one
- Generates a request id per request
- Echoes both ids in response headers
- Records HTTP metrics and a completion log line
"""
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging import (
    generate_id,
    get_logger,
    set_request_id,
    set_trace_id,
)
from .metrics import record_http_request

logger = get_logger(__name__)


class TraceIDMiddleware(BaseHTTPMiddleware):
    """Bind trace/request ids to the logging context for each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        trace_id = (
            request.headers.get("X-Trace-ID")
            or request.headers.get("X-Request-ID")
            or generate_id()
        )
        request_id = generate_id()

        set_trace_id(trace_id)
        set_request_id(request_id)
        request.state.start_time = time.time()

        try:
            response = await call_next(request)
        finally:
            duration = time.time() - request.state.start_time

        # Metrics use the route template so path parameters do not explode label cardinality.
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        record_http_request(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
            duration_seconds=duration,
        )
        logger.info(
            "http_request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=int(duration * 1000),
        )

        response.headers["X-Trace-ID"] = trace_id
        response.headers["X-Request-ID"] = request_id
        return response
