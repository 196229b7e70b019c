"""
MongoDB (document store) implementation of the order repository.
"""

from typing import Any, Dict, List, Optional, Sequence

from pymongo import AsyncMongoClient
from pymongo.errors import BulkWriteError, PyMongoError

from ..core.exceptions import (
    OrderNotFoundError,
    RepositoryConnectionError,
    RepositoryError,
)
from ..core.setting import get_settings
from ..models.order import Order, Status, normalize_order_id, parse_status
from ..utils.logging import setup_order_logging as setup_logging
from .base import OrderRepository

logger = setup_logging(
    "order_service.repository.mongodb", log_level=get_settings().LOG_LEVEL
)

DUPLICATE_KEY_ERROR_CODE = 11000

# Never hand the driver's internal ObjectId back to callers
_ORDER_PROJECTION = {"_id": 0}


class MongoDBOrderRepository(OrderRepository):
    """Orders stored as documents in a single collection, keyed by ``orderId``."""

    backend = "mongodb"

    def __init__(self, collection: Any, client: Optional[AsyncMongoClient] = None):
        self.collection = collection
        self.client = client

    @classmethod
    async def connect(
        cls,
        uri: str,
        db_name: str,
        collection_name: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> "MongoDBOrderRepository":
        """Connect, verify the server answers and ensure the ``orderId`` index."""
        client_kwargs: Dict[str, Any] = {}
        if username:
            client_kwargs["username"] = username
            client_kwargs["password"] = password

        client: Optional[AsyncMongoClient] = None
        try:
            client = AsyncMongoClient(uri, **client_kwargs)
            await client.admin.command("ping")

            collection = client[db_name][collection_name]
            # The unique index is what makes repeated inserts of an order a no-op
            await collection.create_index("orderId", unique=True)
        except PyMongoError as exc:
            logger.error(
                "Failed to connect to MongoDB",
                extra={
                    "backend": cls.backend,
                    "database": db_name,
                    "collection": collection_name,
                    "error_type": type(exc).__name__,
                    "operation": "connect",
                },
            )
            if client is not None:
                await client.close()
            raise RepositoryConnectionError(cls.backend) from exc

        logger.info(
            "Connected to MongoDB",
            extra={
                "backend": cls.backend,
                "database": db_name,
                "collection": collection_name,
                "authenticated": bool(username),
                "operation": "connect",
            },
        )
        return cls(collection, client)

    async def insert_orders(self, orders: Sequence[Order]) -> None:
        if not orders:
            logger.info(
                "No orders to insert into database",
                extra={"backend": self.backend, "operation": "insert_orders"},
            )
            return

        documents = [order.to_document() for order in orders]
        try:
            result = await self.collection.insert_many(documents, ordered=False)
            inserted = len(result.inserted_ids)
        except BulkWriteError as exc:
            inserted = self._count_inserted_ignoring_duplicates(exc, len(documents))
        except PyMongoError as exc:
            raise self._wrap("insert_orders", exc) from exc

        logger.info(
            "Inserted orders",
            extra={
                "backend": self.backend,
                "operation": "insert_orders",
                "count": inserted,
                "skipped": len(documents) - inserted,
            },
        )

    def _count_inserted_ignoring_duplicates(
        self, exc: BulkWriteError, attempted: int
    ) -> int:
        details = exc.details or {}
        write_errors = details.get("writeErrors", [])

        if details.get("writeConcernErrors") or any(
            error.get("code") != DUPLICATE_KEY_ERROR_CODE for error in write_errors
        ):
            raise self._wrap("insert_orders", exc) from exc

        return details.get("nInserted", attempted - len(write_errors))

    async def get_pending_orders(self) -> List[Order]:
        return await self.get_orders_by_status(Status.PENDING)

    async def get_orders_by_status(self, status: Status) -> List[Order]:
        status = parse_status(status)
        try:
            cursor = self.collection.find(
                {"status": int(status)}, _ORDER_PROJECTION
            )
            documents = await cursor.to_list(length=None)
        except PyMongoError as exc:
            raise self._wrap("get_orders_by_status", exc) from exc

        return [Order.from_document(document) for document in documents]

    async def get_order(self, order_id: str) -> Order:
        order_id = normalize_order_id(order_id)
        try:
            document = await self.collection.find_one(
                {"orderId": order_id}, _ORDER_PROJECTION
            )
        except PyMongoError as exc:
            raise self._wrap("get_order", exc) from exc

        if document is None:
            raise OrderNotFoundError(order_id)
        return Order.from_document(document)

    async def update_order(self, order: Order) -> None:
        document = order.to_document()
        try:
            result = await self.collection.update_one(
                {"orderId": order.order_id},
                {
                    "$set": {
                        "customerId": document["customerId"],
                        "items": document["items"],
                        "status": document["status"],
                    }
                },
            )
        except PyMongoError as exc:
            raise self._wrap("update_order", exc) from exc

        if result.matched_count == 0:
            raise OrderNotFoundError(order.order_id)

        logger.info(
            "Updated order",
            extra={
                "backend": self.backend,
                "operation": "update_order",
                "order_id": order.order_id,
                "status": int(order.status),
            },
        )

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()

    def _wrap(self, operation: str, exc: Exception) -> RepositoryError:
        logger.error(
            f"MongoDB {operation} failed",
            extra={
                "backend": self.backend,
                "operation": operation,
                "error_type": type(exc).__name__,
            },
        )
        return RepositoryError(operation, self.backend)
