"""Navigation badge counters and buyer profile statistics.

Each counter is an independent read. They run concurrently and a failing
read is logged and shown as zero, so one broken collection never blocks the
page that displays the badges.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Any, Awaitable, Optional

from marketplace.database.mongodb import MongoDB, mongodb
from marketplace.models.request import BadgeCounts, ProfileStats
from marketplace.models.user import Identity

logger = logging.getLogger(__name__)


async def _gather_isolated(reads: dict[str, Awaitable[Any]], defaults: dict[str, Any]) -> dict[str, Any]:
    """Await all reads concurrently, replacing failures with their default."""
    names = list(reads)
    results = await asyncio.gather(*reads.values(), return_exceptions=True)
    values: dict[str, Any] = {}
    for name, result in zip(names, results):
        if isinstance(result, Exception):
            logger.warning("Counter %s failed, defaulting: %s", name, result)
            values[name] = defaults[name]
        elif isinstance(result, BaseException):
            raise result
        else:
            values[name] = result if result is not None else defaults[name]
    return values


class BadgeService:
    """Fan-out reads behind the buyer dashboard badges."""

    def __init__(self, database: Optional[MongoDB] = None) -> None:
        self.db = database or mongodb

    async def get_badge_counts(self, identity: Identity) -> BadgeCounts:
        if not identity.is_buyer:
            return BadgeCounts()

        values = await _gather_isolated(
            {
                "cartItemsCount": self.db.count_cart_items(identity.id),
                "activeOrdersCount": self.db.count_active_orders(identity.id),
                "unreadMessagesCount": self.db.count_unread_messages(identity.id),
                "favoritesCount": self.db.count_favorites(identity.id),
            },
            defaults={
                "cartItemsCount": 0,
                "activeOrdersCount": 0,
                "unreadMessagesCount": 0,
                "favoritesCount": 0,
            },
        )
        return BadgeCounts(**values)

    async def get_profile_stats(self, identity: Identity) -> ProfileStats:
        values = await _gather_isolated(
            {
                "totalOrders": self.db.count_orders(buyer_id=identity.id),
                "activeOrders": self.db.count_active_orders(identity.id),
                "totalSpent": self.db.sum_order_totals(identity.id),
                "favoriteProducts": self.db.count_favorites(identity.id),
            },
            defaults={
                "totalOrders": 0,
                "activeOrders": 0,
                "totalSpent": Decimal("0"),
                "favoriteProducts": 0,
            },
        )
        return ProfileStats(**values)


# Global badge service instance
badge_service = BadgeService()
