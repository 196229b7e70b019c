"""
Azure Cosmos DB (SQL API) implementation of the order repository.

All documents of one deployment live in a single logical partition. The
partition key name and value are fixed when the repository is created: every
write stamps the value onto the document and every read is scoped to it.
"""

from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from azure.core.exceptions import AzureError
from azure.cosmos.aio import ContainerProxy, CosmosClient
from azure.cosmos.exceptions import (
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)
from azure.identity.aio import DefaultAzureCredential

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
    "order_service.repository.cosmosdb", log_level=get_settings().LOG_LEVEL
)

ORDERS_BY_STATUS_QUERY = "SELECT * FROM c WHERE c.status = @status"


class PartitionKey(NamedTuple):
    name: str
    value: str


class CosmosAuth(str, Enum):
    """How the Cosmos client obtains its credentials."""

    SHARED_KEY = "shared_key"
    WORKLOAD_IDENTITY = "workload_identity"


class CosmosDBOrderRepository(OrderRepository):
    backend = "cosmosdb"

    def __init__(
        self,
        container: ContainerProxy,
        partition_key: PartitionKey,
        client: Optional[CosmosClient] = None,
        credential: Optional[DefaultAzureCredential] = None,
    ):
        self.container = container
        self.partition_key = partition_key
        self.client = client
        self.credential = credential

    @classmethod
    async def connect(
        cls,
        endpoint: str,
        db_name: str,
        container_name: str,
        partition_key: PartitionKey,
        auth: CosmosAuth = CosmosAuth.SHARED_KEY,
        key: Optional[str] = None,
    ) -> "CosmosDBOrderRepository":
        """Create a client with the requested auth strategy and verify the container.

        With ``CosmosAuth.WORKLOAD_IDENTITY`` no key is used; credentials come
        from the ambient identity (workload identity, managed identity,
        environment) through ``DefaultAzureCredential``.
        """
        credential: Optional[DefaultAzureCredential] = None
        if auth is CosmosAuth.WORKLOAD_IDENTITY:
            credential = DefaultAzureCredential()
            client_credential: Any = credential
        else:
            client_credential = key

        client: Optional[CosmosClient] = None
        try:
            client = CosmosClient(endpoint, credential=client_credential)
            container = client.get_database_client(db_name).get_container_client(
                container_name
            )
            await container.read()
        except (AzureError, ValueError, TypeError) as exc:
            logger.error(
                "Failed to connect to Cosmos DB",
                extra={
                    "backend": cls.backend,
                    "database": db_name,
                    "container": container_name,
                    "auth": auth.value,
                    "error_type": type(exc).__name__,
                    "operation": "connect",
                },
            )
            if client is not None:
                await client.close()
            if credential is not None:
                await credential.close()
            raise RepositoryConnectionError(cls.backend) from exc

        logger.info(
            "Connected to Cosmos DB",
            extra={
                "backend": cls.backend,
                "database": db_name,
                "container": container_name,
                "partition_key": partition_key.name,
                "auth": auth.value,
                "operation": "connect",
            },
        )
        return cls(container, partition_key, client=client, credential=credential)

    def _to_document(self, order: Order) -> Dict[str, Any]:
        document = order.to_document()
        document["id"] = order.order_id
        document[self.partition_key.name] = self.partition_key.value
        return document

    async def insert_orders(self, orders: Sequence[Order]) -> None:
        if not orders:
            logger.info(
                "No orders to insert into database",
                extra={"backend": self.backend, "operation": "insert_orders"},
            )
            return

        inserted = 0
        for order in orders:
            try:
                await self.container.create_item(body=self._to_document(order))
                inserted += 1
            except CosmosResourceExistsError:
                # Same id already stored in this partition (queue redelivery)
                continue
            except AzureError as exc:
                raise self._wrap("insert_orders", exc) from exc

        logger.info(
            "Inserted orders",
            extra={
                "backend": self.backend,
                "operation": "insert_orders",
                "count": inserted,
                "skipped": len(orders) - inserted,
            },
        )

    async def get_pending_orders(self) -> List[Order]:
        return await self.get_orders_by_status(Status.PENDING)

    async def get_orders_by_status(self, status: Status) -> List[Order]:
        status = parse_status(status)
        try:
            items = self.container.query_items(
                query=ORDERS_BY_STATUS_QUERY,
                parameters=[{"name": "@status", "value": int(status)}],
                partition_key=self.partition_key.value,
            )
            documents = [item async for item in items]
        except AzureError as exc:
            raise self._wrap("get_orders_by_status", exc) from exc

        return [Order.from_document(document) for document in documents]

    async def get_order(self, order_id: str) -> Order:
        order_id = normalize_order_id(order_id)
        try:
            document = await self.container.read_item(
                item=order_id, partition_key=self.partition_key.value
            )
        except CosmosResourceNotFoundError:
            raise OrderNotFoundError(order_id) from None
        except AzureError as exc:
            raise self._wrap("get_order", exc) from exc

        return Order.from_document(document)

    async def update_order(self, order: Order) -> None:
        # The partition is taken from the body, which always carries our value
        try:
            await self.container.replace_item(
                item=order.order_id, body=self._to_document(order)
            )
        except CosmosResourceNotFoundError:
            raise OrderNotFoundError(order.order_id) from None
        except AzureError as exc:
            raise self._wrap("update_order", exc) from exc

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
        if self.credential is not None:
            await self.credential.close()

    def _wrap(self, operation: str, exc: Exception) -> RepositoryError:
        logger.error(
            f"Cosmos DB {operation} failed",
            extra={
                "backend": self.backend,
                "operation": operation,
                "error_type": type(exc).__name__,
                "status_code": getattr(exc, "status_code", None),
            },
        )
        return RepositoryError(operation, self.backend)
