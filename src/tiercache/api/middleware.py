"""Correlation and request logging middleware.

Binds request and correlation IDs for logging, writes one log line per
request and reports the handling time in a ``server-timing`` header.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from tiercache.observability.logging import correlation_id_var, request_id_var

logger = logging.getLogger(__name__)


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Binds correlation context and logs each request once it completes.

    Headers:
    - x-request-id: Unique ID for this request (generated when absent)
    - x-correlation-id: ID for tracking across services (defaults to request ID)
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        correlation_id = request.headers.get("x-correlation-id") or request_id

        request_token = request_id_var.set(request_id)
        correlation_token = correlation_id_var.set(correlation_id)
        start = time.perf_counter()

        try:
            request.state.request_id = request_id
            request.state.correlation_id = correlation_id

            response = await call_next(request)

            duration_ms = (time.perf_counter() - start) * 1000
            client = request.client.host if request.client else "-"
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"in {duration_ms:.1f}ms (client {client})"
            )

            response.headers["x-request-id"] = request_id
            response.headers["x-correlation-id"] = correlation_id
            response.headers["server-timing"] = f"app;dur={duration_ms:.1f}"
            return response

        finally:
            request_id_var.reset(request_token)
            correlation_id_var.reset(correlation_token)
