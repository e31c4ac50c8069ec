"""API package."""

from marketplace.api.errors import register_exception_handlers
from marketplace.api.middleware import LoggingMiddleware, RateLimitMiddleware
from marketplace.api.routes import router

__all__ = [
    "router",
    "register_exception_handlers",
    "LoggingMiddleware",
    "RateLimitMiddleware",
]
