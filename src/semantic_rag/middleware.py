"""HTTP middleware: request ids and request timing."""

import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from semantic_rag.utils.logging import get_logger, log_request, set_request_id

logger = get_logger("middleware")

REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Adopt the caller's X-Request-ID (or mint one) and echo it back."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        set_request_id(request_id)

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class TimingMiddleware(BaseHTTPMiddleware):
    """Log every request with its duration and cache outcome."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        log_request(
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            client=request.client.host if request.client else None,
            semantic_cache=response.headers.get("X-Semantic-Cache"),
        )
        response.headers[PROCESS_TIME_HEADER] = f"{elapsed_ms:.2f}ms"
        return response


def setup_middleware(app: FastAPI) -> None:
    """Register middleware; the last one added runs first.

    RequestID wraps Timing so the request log line carries the id.
    """
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    logger.debug("Middleware configured: RequestID, Timing")
