"""
Request middleware for the topology API.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from system_model.infrastructure.monitoring.logging import correlation_context

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Correlation ID middleware.

    Honours an incoming ``X-Correlation-ID`` header or generates one, keeps
    it in scope for every log record written while serving the request and
    echoes it back on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        incoming = request.headers.get(CORRELATION_HEADER) or None
        start = time.perf_counter()

        with correlation_context(incoming) as correlation_id:
            request.state.correlation_id = correlation_id
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"({duration_ms:.1f}ms)"
            )

        response.headers[CORRELATION_HEADER] = correlation_id
        return response  # type: ignore[no-any-return]
