"""FastAPI middleware for observability.

Provides request ID correlation, access logging and latency metrics for all
HTTP requests.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .request_id import resolve_request_id, set_request_id
from .logging_config import get_logger
from .metrics import http_request_duration_seconds

logger = get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to generate and inject request IDs."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with request ID.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            Response: HTTP response with X-Request-ID header
        """
        request_id = resolve_request_id(request.headers.get("X-Request-ID"))
        set_request_id(request_id)

        # Query strings carry capability tokens, so only the path is logged
        start_time = time.time()
        logger.info(
            f"{request.method} {request.url.path}",
            extra={"method": request.method, "path": request.url.path},
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {type(e).__name__}",
                extra={"path": request.url.path, "duration_ms": round(duration_ms, 2)},
                exc_info=True,
            )
            raise

        duration = time.time() - start_time
        http_request_duration_seconds.labels(
            method=request.method, status_code=str(response.status_code)
        ).observe(duration)
        logger.info(
            f"Request completed: {response.status_code}",
            extra={
                "status_code": response.status_code,
                "duration_ms": round(duration * 1000, 2),
            },
        )

        response.headers["X-Request-ID"] = request_id
        return response
