from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging import get_logger

logger = get_logger("request")


class TraceLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request with trace_id/span_id injected by the logging factory.

    Completed lines carry the status code and latency; 4xx/5xx are logged
    at WARNING.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        path = request.url.path
        logger.debug("Incoming request", extra={"path": path, "method": request.method})

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 3)

        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            "Completed request",
            extra={
                "path": path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response
