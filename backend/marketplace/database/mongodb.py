"""MongoDB database connection and operations."""

import logging
import re
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, Optional

from bson.codec_options import CodecOptions, TypeCodec, TypeRegistry
from bson.decimal128 import Decimal128
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError

from marketplace.config import get_settings
from marketplace.exceptions import OrderNumberConflictError
from marketplace.models.cart import CartInDB, CartLineItem
from marketplace.models.favorite import FavoriteInDB
from marketplace.models.order import (
    ACTIVE_ORDER_STATUSES,
    OrderInDB,
    OrderStatusStats,
    StatusHistoryEntry,
)
from marketplace.models.product import ProductBase
from marketplace.models.user import UserCreate, UserInDB

logger = logging.getLogger(__name__)
settings = get_settings()

UNREAD_MESSAGE_STATUSES = ("sent", "delivered")


class DecimalCodec(TypeCodec):
    """Store ``decimal.Decimal`` as BSON Decimal128 and read it back."""

    python_type = Decimal
    bson_type = Decimal128

    def transform_python(self, value: Decimal) -> Decimal128:
        return Decimal128(value)

    def transform_bson(self, value: Decimal128) -> Decimal:
        return value.to_decimal()


CODEC_OPTIONS = CodecOptions(
    type_registry=TypeRegistry([DecimalCodec()]),
    tz_aware=True,
    tzinfo=UTC,
)


class MongoDB:
    """MongoDB connection manager."""

    def __init__(self) -> None:
        """Initialize MongoDB connection."""
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> None:
        """Connect to MongoDB."""
        try:
            self.client = AsyncIOMotorClient(
                settings.mongodb_url,
                maxPoolSize=settings.mongodb_max_pool_size,
                minPoolSize=settings.mongodb_min_pool_size,
            )
            self.db = self.client.get_database(
                settings.mongodb_database, codec_options=CODEC_OPTIONS
            )

            # Test connection
            await self.client.admin.command("ping")
            logger.info("Connected to MongoDB: %s", settings.mongodb_database)

            await self._create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB: %s", e)
            raise

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("Disconnected from MongoDB")

    def collection(self, name: str) -> AsyncIOMotorCollection:
        """Named collection of the connected database."""
        if self.db is None:
            raise ConnectionError("Database not connected")
        return self.db[name]

    async def _create_indexes(self) -> None:
        """Create database indexes."""
        users = self.collection(settings.mongodb_user_collection)
        await users.create_index("userId", unique=True, name="userId_unique")
        await users.create_index("email", name="email_index")

        products = self.collection(settings.mongodb_product_collection)
        await products.create_index("productId", unique=True, name="productId_unique")
        await products.create_index("manufacturerId", name="manufacturer_index")

        carts = self.collection(settings.mongodb_cart_collection)
        await carts.create_index("buyerId", unique=True, name="buyerId_unique")
        await carts.create_index([("lastActivity", DESCENDING)], name="lastActivity_index")

        orders = self.collection(settings.mongodb_order_collection)
        await orders.create_index("orderNumber", unique=True, name="orderNumber_unique")
        await orders.create_index(
            [("buyerId", ASCENDING), ("status", ASCENDING)], name="buyer_status_index"
        )
        await orders.create_index(
            [("sellerId", ASCENDING), ("status", ASCENDING)], name="seller_status_index"
        )
        await orders.create_index(
            [("status", ASCENDING), ("createdAt", DESCENDING)], name="status_created_index"
        )

        favorites = self.collection(settings.mongodb_favorite_collection)
        await favorites.create_index(
            [("buyerId", ASCENDING), ("productId", ASCENDING)],
            unique=True,
            name="buyer_product_unique",
        )

        messages = self.collection(settings.mongodb_message_collection)
        await messages.create_index(
            [("recipientId", ASCENDING), ("status", ASCENDING)], name="recipient_status_index"
        )
        logger.info("MongoDB indexes created")

    # ── Accounts ──────────────────────────────────────────────────────────────

    async def create_user(self, user: UserCreate) -> UserInDB:
        """Create a new company account."""
        try:
            user_data = UserInDB(**user.model_dump()).model_dump()
            await self.collection(settings.mongodb_user_collection).insert_one(user_data)
            return UserInDB(**user_data)

        except DuplicateKeyError:
            raise ValueError(f"User with userId '{user.userId}' already exists")

    async def get_user(self, user_id: str) -> Optional[UserInDB]:
        """Get account by ID."""
        user_data = await self.collection(settings.mongodb_user_collection).find_one(
            {"userId": user_id}, {"_id": 0}
        )

        if user_data:
            return UserInDB(**user_data)
        return None

    # ── Catalog ───────────────────────────────────────────────────────────────

    async def upsert_product(self, product: ProductBase) -> None:
        """Insert or replace a catalog product."""
        data = product.model_dump()
        data["updatedAt"] = datetime.now(UTC)
        await self.collection(settings.mongodb_product_collection).replace_one(
            {"productId": product.productId}, data, upsert=True
        )

    async def get_product(self, product_id: str) -> Optional[ProductBase]:
        """Get catalog product by ID."""
        data = await self.collection(settings.mongodb_product_collection).find_one(
            {"productId": product_id}, {"_id": 0}
        )
        if data:
            return ProductBase(**data)
        return None

    async def delete_all_products(self) -> int:
        result = await self.collection(settings.mongodb_product_collection).delete_many({})
        return result.deleted_count

    # ── Carts ─────────────────────────────────────────────────────────────────

    async def get_cart(self, buyer_id: str) -> Optional[CartInDB]:
        """Get the buyer's cart."""
        data = await self.collection(settings.mongodb_cart_collection).find_one(
            {"buyerId": buyer_id}, {"_id": 0}
        )
        if data:
            return CartInDB(**data)
        return None

    async def create_cart(self, buyer_id: str) -> CartInDB:
        """Create an empty cart, or return the one a concurrent request created."""
        cart = CartInDB(buyerId=buyer_id)
        try:
            await self.collection(settings.mongodb_cart_collection).insert_one(cart.model_dump())
            return cart
        except DuplicateKeyError:
            existing = await self.get_cart(buyer_id)
            if existing is None:
                raise
            return existing

    async def replace_cart_items(
        self, buyer_id: str, items: list[CartLineItem], expected_version: int
    ) -> bool:
        """Overwrite the cart lines if nobody wrote the cart since ``expected_version``."""
        now = datetime.now(UTC)
        item_docs = [item.model_dump() for item in items]
        result = await self.collection(settings.mongodb_cart_collection).update_one(
            {"buyerId": buyer_id, "version": expected_version},
            {
                "$set": {
                    "items": item_docs,
                    "totalItems": len(items),
                    "totalAmount": sum((item.totalPrice for item in items), Decimal("0")),
                    "updatedAt": now,
                    "lastActivity": now,
                },
                "$inc": {"version": 1},
            },
        )
        return result.matched_count == 1

    async def remove_cart_items(
        self, buyer_id: str, item_ids: list[str], expected_version: int
    ) -> bool:
        """Pull the given lines in one version-guarded update."""
        now = datetime.now(UTC)
        result = await self.collection(settings.mongodb_cart_collection).update_one(
            {"buyerId": buyer_id, "version": expected_version},
            [
                {
                    "$set": {
                        "items": {
                            "$filter": {
                                "input": "$items",
                                "cond": {"$not": [{"$in": ["$$this.itemId", list(item_ids)]}]},
                            }
                        }
                    }
                },
                {
                    "$set": {
                        "totalItems": {"$size": "$items"},
                        "totalAmount": {"$sum": "$items.totalPrice"},
                        "version": {"$add": ["$version", 1]},
                        "updatedAt": now,
                        "lastActivity": now,
                    }
                },
            ],
        )
        return result.matched_count == 1

    async def count_cart_items(self, buyer_id: str) -> int:
        cart = await self.get_cart(buyer_id)
        return cart.totalItems if cart else 0

    # ── Orders ────────────────────────────────────────────────────────────────

    async def insert_order(self, order: OrderInDB) -> None:
        """Persist a new order; the unique index rejects a reused order number."""
        try:
            await self.collection(settings.mongodb_order_collection).insert_one(
                order.model_dump()
            )
        except DuplicateKeyError as e:
            logger.warning("Order number collision for %s: %s", order.orderNumber, e)
            raise OrderNumberConflictError(
                f"Order number {order.orderNumber} already exists"
            ) from e

    async def delete_orders(self, order_numbers: list[str]) -> int:
        """Remove orders by number (checkout compensation)."""
        if not order_numbers:
            return 0
        result = await self.collection(settings.mongodb_order_collection).delete_many(
            {"orderNumber": {"$in": order_numbers}}
        )
        return result.deleted_count

    async def get_order(self, order_number: str) -> Optional[OrderInDB]:
        data = await self.collection(settings.mongodb_order_collection).find_one(
            {"orderNumber": order_number}, {"_id": 0}
        )
        if data:
            return OrderInDB(**data)
        return None

    @staticmethod
    def _order_query(
        *,
        buyer_id: Optional[str] = None,
        seller_id: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        created_after: Optional[datetime] = None,
    ) -> dict[str, Any]:
        query: dict[str, Any] = {}
        if buyer_id is not None:
            query["buyerId"] = buyer_id
        if seller_id is not None:
            query["sellerId"] = seller_id
        if status:
            query["status"] = status
        if search:
            query["orderNumber"] = {"$regex": re.escape(search), "$options": "i"}
        if created_after is not None:
            query["createdAt"] = {"$gte": created_after}
        return query

    async def find_orders(
        self, *, skip: int = 0, limit: int = 10, **filters: Any
    ) -> list[OrderInDB]:
        """List orders newest first."""
        cursor = (
            self.collection(settings.mongodb_order_collection)
            .find(self._order_query(**filters), {"_id": 0})
            .sort("createdAt", DESCENDING)
            .skip(skip)
            .limit(limit)
        )
        orders = await cursor.to_list(length=limit)
        return [OrderInDB(**order) for order in orders]

    async def count_orders(self, **filters: Any) -> int:
        return await self.collection(settings.mongodb_order_collection).count_documents(
            self._order_query(**filters)
        )

    async def transition_order_status(
        self,
        order_number: str,
        *,
        from_statuses: tuple[str, ...],
        entry: StatusHistoryEntry,
        extra: Optional[dict[str, Any]] = None,
    ) -> Optional[OrderInDB]:
        """Move an order to ``entry.status`` if it is still in one of ``from_statuses``."""
        update_set = {"status": entry.status, "updatedAt": entry.timestamp, **(extra or {})}
        data = await self.collection(settings.mongodb_order_collection).find_one_and_update(
            {"orderNumber": order_number, "status": {"$in": list(from_statuses)}},
            {"$set": update_set, "$push": {"statusHistory": entry.model_dump()}},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
        )
        if data:
            return OrderInDB(**data)
        return None

    async def count_active_orders(self, buyer_id: str) -> int:
        return await self.collection(settings.mongodb_order_collection).count_documents(
            {"buyerId": buyer_id, "status": {"$in": list(ACTIVE_ORDER_STATUSES)}}
        )

    async def sum_order_totals(self, buyer_id: str) -> Decimal:
        cursor = self.collection(settings.mongodb_order_collection).aggregate(
            [
                {"$match": {"buyerId": buyer_id}},
                {"$group": {"_id": None, "total": {"$sum": "$totalAmount"}}},
            ]
        )
        rows = await cursor.to_list(length=1)
        return rows[0]["total"] if rows else Decimal("0")

    async def order_stats_by_status(
        self, party_field: str, party_id: str
    ) -> dict[str, OrderStatusStats]:
        """Group a buyer's or seller's orders by status."""
        cursor = self.collection(settings.mongodb_order_collection).aggregate(
            [
                {"$match": {party_field: party_id}},
                {
                    "$group": {
                        "_id": "$status",
                        "count": {"$sum": 1},
                        "totalValue": {"$sum": "$totalAmount"},
                    }
                },
            ]
        )
        rows = await cursor.to_list(length=None)
        return {
            row["_id"]: OrderStatusStats(count=row["count"], totalValue=row["totalValue"])
            for row in rows
        }

    # ── Favorites & messages ──────────────────────────────────────────────────

    async def add_favorite(self, favorite: FavoriteInDB) -> bool:
        """Save a favorite; False when it was already saved."""
        try:
            await self.collection(settings.mongodb_favorite_collection).insert_one(
                favorite.model_dump()
            )
            return True
        except DuplicateKeyError:
            return False

    async def remove_favorite(self, buyer_id: str, product_id: str) -> bool:
        result = await self.collection(settings.mongodb_favorite_collection).delete_one(
            {"buyerId": buyer_id, "productId": product_id}
        )
        return result.deleted_count > 0

    async def list_favorites(self, buyer_id: str) -> list[FavoriteInDB]:
        cursor = (
            self.collection(settings.mongodb_favorite_collection)
            .find({"buyerId": buyer_id}, {"_id": 0})
            .sort("addedAt", DESCENDING)
        )
        return [FavoriteInDB(**doc) for doc in await cursor.to_list(length=None)]

    async def count_favorites(self, buyer_id: str) -> int:
        return await self.collection(settings.mongodb_favorite_collection).count_documents(
            {"buyerId": buyer_id}
        )

    async def count_unread_messages(self, recipient_id: str) -> int:
        return await self.collection(settings.mongodb_message_collection).count_documents(
            {"recipientId": recipient_id, "status": {"$in": list(UNREAD_MESSAGE_STATUSES)}}
        )


# Global MongoDB instance
mongodb = MongoDB()
