"""Order listing, detail, cancellation and statistics."""

import logging
import math
from datetime import timedelta
from typing import Optional

from marketplace.database.mongodb import MongoDB, mongodb
from marketplace.exceptions import (
    ForbiddenError,
    OrderNotCancellableError,
    OrderNotFoundError,
)
from marketplace.models.order import (
    CANCELLABLE_ORDER_STATUSES,
    Cancellation,
    OrderInDB,
    OrderListItem,
    OrderListResponse,
    OrderStatus,
    OrderStatusStats,
    Pagination,
    StatusHistoryEntry,
)
from marketplace.models.user import Identity
from marketplace.utils.helpers import sanitize_text, utcnow

logger = logging.getLogger(__name__)

DATE_FILTER_DAYS = {"30": 30, "90": 90, "365": 365}


def _list_item(order: OrderInDB) -> OrderListItem:
    return OrderListItem(
        orderNumber=order.orderNumber,
        buyerId=order.buyerId,
        sellerId=order.sellerId,
        itemCount=len(order.items),
        totalAmount=order.totalAmount,
        currency=order.currency,
        status=order.status,
        orderDate=order.createdAt,
        expectedDelivery=order.shipping.estimatedDelivery,
    )


class OrderService:
    """Read and cancel orders for the parties involved in them."""

    def __init__(self, database: Optional[MongoDB] = None) -> None:
        self.db = database or mongodb

    async def _paginate(self, page: int, limit: int, **filters) -> OrderListResponse:
        page = max(page, 1)
        limit = max(limit, 1)
        total_items = await self.db.count_orders(**filters)
        total_pages = math.ceil(total_items / limit)
        orders = await self.db.find_orders(skip=(page - 1) * limit, limit=limit, **filters)
        return OrderListResponse(
            orders=[_list_item(order) for order in orders],
            pagination=Pagination(
                currentPage=page,
                totalPages=total_pages,
                totalItems=total_items,
                hasNext=page < total_pages,
                hasPrev=page > 1,
            ),
        )

    async def list_buyer_orders(
        self,
        buyer_id: str,
        *,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
        search: Optional[str] = None,
        date_filter: Optional[str] = None,
    ) -> OrderListResponse:
        """Buyer's orders, newest first; ``date_filter`` is 30, 90 or 365 days."""
        created_after = None
        if date_filter in DATE_FILTER_DAYS:
            created_after = utcnow() - timedelta(days=DATE_FILTER_DAYS[date_filter])
        return await self._paginate(
            page,
            limit,
            buyer_id=buyer_id,
            status=status,
            search=search,
            created_after=created_after,
        )

    async def list_seller_orders(
        self, seller_id: str, *, page: int = 1, limit: int = 10, status: Optional[str] = None
    ) -> OrderListResponse:
        return await self._paginate(page, limit, seller_id=seller_id, status=status)

    async def get_order(self, identity: Identity, order_number: str) -> OrderInDB:
        """Order detail, visible to its buyer and seller only."""
        order = await self.db.get_order(order_number)
        if order is None or identity.id not in (order.buyerId, order.sellerId):
            raise OrderNotFoundError(f"Order not found: {order_number}")
        return order

    async def cancel_order(
        self, identity: Identity, order_number: str, reason: str = ""
    ) -> OrderInDB:
        """Buyer cancels an order that has not gone past processing."""
        order = await self.get_order(identity, order_number)
        if order.buyerId != identity.id:
            raise ForbiddenError("Only the buyer can cancel this order")
        if not order.can_be_cancelled:
            raise OrderNotCancellableError(f"Order in status '{order.status}' cannot be cancelled")

        now = utcnow()
        reason = sanitize_text(reason)
        cancelled = await self.db.transition_order_status(
            order_number,
            from_statuses=CANCELLABLE_ORDER_STATUSES,
            entry=StatusHistoryEntry(
                status=OrderStatus.CANCELLED.value,
                timestamp=now,
                updatedBy=identity.id,
                notes=reason or "Cancelled by buyer",
            ),
            extra={
                "cancellation": Cancellation(
                    reason=reason, cancelledBy=identity.id, cancelledDate=now
                ).model_dump()
            },
        )
        if cancelled is None:
            # status moved on between the read and the update
            raise OrderNotCancellableError("Order status changed, it can no longer be cancelled")

        logger.info("Order %s cancelled by %s", order_number, identity.id)
        return cancelled

    async def get_order_stats(self, identity: Identity) -> dict[str, OrderStatusStats]:
        party_field = "sellerId" if identity.is_seller else "buyerId"
        return await self.db.order_stats_by_status(party_field, identity.id)


# Global order service instance
order_service = OrderService()
