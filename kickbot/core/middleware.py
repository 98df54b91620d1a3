"""HTTP middleware for the dashboard API."""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from kickbot.core.logging import clear_correlation_id, set_correlation_id

logger = logging.getLogger("kickbot.requests")

CORRELATION_ID_HEADER = "X-Correlation-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a correlation ID to each request and log its outcome.

    The ID is taken from the ``X-Correlation-ID`` header when the dashboard
    sends one and echoed back on the response.
    """

    def __init__(self, app: ASGIApp, slow_request_ms: float = 1000.0):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or uuid.uuid4().hex
        set_correlation_id(correlation_id)
        started = time.perf_counter()
        route = f"{request.method} {request.url.path}"

        try:
            try:
                response = await call_next(request)
            except Exception:
                logger.exception(
                    "Request failed",
                    extra={"route": route, "elapsed_ms": self._elapsed_ms(started)},
                )
                raise

            elapsed_ms = self._elapsed_ms(started)
            level = logging.WARNING if elapsed_ms >= self.slow_request_ms else logging.INFO
            logger.log(
                level,
                "Request handled",
                extra={
                    "route": route,
                    "status_code": response.status_code,
                    "elapsed_ms": elapsed_ms,
                },
            )

            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            # Cleared last so the request log lines above keep the ID.
            clear_correlation_id()

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return round((time.perf_counter() - started) * 1000, 2)


__all__ = ["CORRELATION_ID_HEADER", "RequestContextMiddleware"]
