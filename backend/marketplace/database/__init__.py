"""Database package."""

from marketplace.database.mongodb import MongoDB, mongodb
from marketplace.database.rate_limit import (
    InMemoryRateLimitStore,
    MongoRateLimitStore,
    RateLimitStore,
    build_rate_limit_store,
)

__all__ = [
    "MongoDB",
    "mongodb",
    "RateLimitStore",
    "InMemoryRateLimitStore",
    "MongoRateLimitStore",
    "build_rate_limit_store",
]
