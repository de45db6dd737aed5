"""
Custom middleware for authflow

Includes:
- Request ID tracking for request tracing
- HTTP metrics collection for Prometheus monitoring
"""
import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from authflow import metrics


REQUEST_ID_PATTERN = re.compile(r"[A-Za-z0-9._-]{1,64}")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Adds X-Request-ID header to all requests and responses.

    A client-supplied X-Request-ID is reused only when it is a short token of
    letters, digits, '.', '_' or '-'; anything else (empty, oversized, or
    carrying characters that could forge log lines) is replaced by a UUID.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID", "")
        if not REQUEST_ID_PATTERN.fullmatch(request_id):
            request_id = str(uuid.uuid4())

        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


class HTTPMetricsMiddleware(BaseHTTPMiddleware):
    """
    Middleware to collect HTTP metrics for Prometheus.

    Tracks:
    - Total requests by method, endpoint, and status
    - Request duration by method and endpoint
    - Requests in progress by method and endpoint
    """

    # Routes are fixed, anything else collapses into one label
    KNOWN_PATHS = {"/", "/health", "/metrics", "/register", "/login", "/2fa/setup", "/2fa/verify",
                   "/docs", "/openapi.json", "/redoc"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        method = request.method
        path = self._normalize_path(request.url.path)

        metrics.http_requests_in_progress.labels(method=method, endpoint=path).inc()
        start_time = time.time()

        try:
            response = await call_next(request)

            metrics.http_requests_total.labels(
                method=method,
                endpoint=path,
                status=response.status_code
            ).inc()

            metrics.http_request_duration_seconds.labels(
                method=method,
                endpoint=path
            ).observe(time.time() - start_time)

            return response

        finally:
            metrics.http_requests_in_progress.labels(method=method, endpoint=path).dec()

    def _normalize_path(self, path: str) -> str:
        """Map unknown paths to a single label to bound cardinality"""
        if len(path) > 1:
            path = path.rstrip("/")
        return path if path in self.KNOWN_PATHS else "/{other}"
