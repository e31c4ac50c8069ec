"""ASGI entrypoint for the marketplace API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketplace.api.errors import register_exception_handlers
from marketplace.api.middleware import LoggingMiddleware, RateLimitMiddleware
from marketplace.api.routes import router
from marketplace.config import get_settings
from marketplace.database.mongodb import mongodb
from marketplace.utils.logger import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s %s (%s)", settings.app_name, settings.app_version, settings.environment)
    await mongodb.connect()
    logger.info("Connected to MongoDB database '%s'", settings.mongodb_database)
    try:
        yield
    finally:
        await mongodb.disconnect()
        logger.info("MongoDB connection closed")


def install_middleware(app: FastAPI) -> None:
    """Register middleware; the last one added runs first on each request."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_period,
    )


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="B2B marketplace backend: carts, checkout and orders",
    lifespan=lifespan,
)
install_middleware(app)
app.include_router(router)
register_exception_handlers(app)


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "marketplace.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
