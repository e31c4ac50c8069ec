"""Request logging and rate limiting middleware."""

import logging
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from marketplace.database.rate_limit import RateLimitStore, build_rate_limit_store

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request, tagged with a request id echoed back to the caller."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "user_id": request.headers.get("X-User-ID"),
        }
        started = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            elapsed = time.monotonic() - started
            logger.exception(
                "%s %s raised after %.3fs",
                request.method,
                request.url.path,
                elapsed,
                extra={**context, "duration_s": round(elapsed, 3)},
            )
            raise

        elapsed = time.monotonic() - started
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s -> %s (%.3fs)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
            extra={**context, "status_code": response.status_code, "duration_s": round(elapsed, 3)},
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window rate limiting keyed by client address.

    Counters live in a ``RateLimitStore`` so several instances can share them.
    """

    def __init__(
        self,
        app,
        requests_per_window: int = 60,
        window_seconds: int = 60,
        store: Optional[RateLimitStore] = None,
    ) -> None:
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds
        self.store = store or build_rate_limit_store()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Check rate limits and process request."""
        client_id = request.client.host if request.client else "unknown"

        try:
            hits = await self.store.hit(client_id, self.window_seconds, self.requests_per_window)
        except Exception as e:
            # fail open while the counter store is unreachable
            logger.error("Rate-limit store unavailable: %s", e)
            return await call_next(request)

        if hits > self.requests_per_window:
            logger.warning("Rate limit exceeded for %s", client_id)
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "message": "Rate limit exceeded",
                    "code": "RATE_LIMITED",
                    "retry_after": self.window_seconds,
                },
                headers={"Retry-After": str(self.window_seconds)},
            )

        return await call_next(request)
