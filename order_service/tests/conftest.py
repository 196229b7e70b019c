"""
Pytest configuration and fixtures for Order Service tests.

The repository backends are exercised against in-memory stand-ins for a
MongoDB collection and a Cosmos DB container that implement the subset of
the driver APIs the repositories call.
"""

import os
from copy import deepcopy
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple

import pytest

os.environ["ENVIRONMENT"] = "test"

from azure.cosmos.exceptions import (  # noqa: E402
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)
from pymongo.errors import BulkWriteError  # noqa: E402

from order_service.app.models.order import Item, Order, Status  # noqa: E402
from order_service.app.repository.cosmosdb import (  # noqa: E402
    CosmosDBOrderRepository,
    PartitionKey,
)
from order_service.app.repository.mongodb import (  # noqa: E402
    DUPLICATE_KEY_ERROR_CODE,
    MongoDBOrderRepository,
)

PARTITION_KEY = PartitionKey("storeId", "pet-store")


class FakeMongoCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self.documents = documents

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        return list(self.documents)


class FakeMongoCollection:
    """In-memory collection with a unique index on ``orderId``."""

    def __init__(self) -> None:
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.find_filters: List[Dict[str, Any]] = []

    @staticmethod
    def _project(document: Dict[str, Any], projection: Optional[Dict[str, int]]):
        excluded = {key for key, flag in (projection or {}).items() if not flag}
        return {k: deepcopy(v) for k, v in document.items() if k not in excluded}

    def _matches(self, document: Dict[str, Any], query: Dict[str, Any]) -> bool:
        return all(document.get(key) == value for key, value in query.items())

    async def insert_many(self, documents, ordered: bool = True):
        inserted_ids = []
        write_errors = []
        for index, document in enumerate(documents):
            order_id = document["orderId"]
            if order_id in self.documents:
                write_errors.append(
                    {
                        "index": index,
                        "code": DUPLICATE_KEY_ERROR_CODE,
                        "errmsg": "E11000 duplicate key error",
                    }
                )
                if ordered:
                    break
                continue
            stored = deepcopy(document)
            stored["_id"] = f"oid-{order_id}"
            self.documents[order_id] = stored
            inserted_ids.append(stored["_id"])

        if write_errors:
            raise BulkWriteError(
                {
                    "writeErrors": write_errors,
                    "writeConcernErrors": [],
                    "nInserted": len(inserted_ids),
                }
            )
        return SimpleNamespace(inserted_ids=inserted_ids)

    def find(self, query: Dict[str, Any], projection=None) -> FakeMongoCursor:
        self.find_filters.append(query)
        return FakeMongoCursor(
            [
                self._project(document, projection)
                for document in self.documents.values()
                if self._matches(document, query)
            ]
        )

    async def find_one(self, query: Dict[str, Any], projection=None):
        for document in self.documents.values():
            if self._matches(document, query):
                return self._project(document, projection)
        return None

    async def update_one(self, query: Dict[str, Any], update: Dict[str, Any]):
        for document in self.documents.values():
            if self._matches(document, query):
                document.update(deepcopy(update["$set"]))
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)


class FakeAsyncItems:
    def __init__(self, items: List[Dict[str, Any]]):
        self._items = iter(items)

    def __aiter__(self):
        return self

    async def __anext__(self) -> Dict[str, Any]:
        try:
            return next(self._items)
        except StopIteration:
            raise StopAsyncIteration


class FakeCosmosContainer:
    """In-memory container; items are unique per (partition value, id)."""

    def __init__(self, partition_key_name: str) -> None:
        self.partition_key_name = partition_key_name
        self.items: Dict[Tuple[Any, str], Dict[str, Any]] = {}
        self.queries: List[Dict[str, Any]] = []
        self.written: List[Dict[str, Any]] = []

    def _key(self, body: Dict[str, Any]) -> Tuple[Any, str]:
        return body.get(self.partition_key_name), body["id"]

    async def create_item(self, body: Dict[str, Any]) -> Dict[str, Any]:
        self.written.append(deepcopy(body))
        key = self._key(body)
        if key in self.items:
            raise CosmosResourceExistsError(status_code=409, message="Conflict")
        stored = deepcopy(body)
        stored["_rid"] = f"rid-{body['id']}"
        stored["_etag"] = '"0000"'
        self.items[key] = stored
        return deepcopy(stored)

    def query_items(self, query: str, parameters=None, partition_key=None, **kwargs):
        self.queries.append(
            {"query": query, "parameters": parameters, "partition_key": partition_key}
        )
        values = {param["name"]: param["value"] for param in parameters or []}
        return FakeAsyncItems(
            [
                deepcopy(document)
                for (partition, _), document in self.items.items()
                if (partition_key is None or partition == partition_key)
                and document.get("status") == values.get("@status")
            ]
        )

    async def read_item(self, item: str, partition_key: Any) -> Dict[str, Any]:
        try:
            return deepcopy(self.items[(partition_key, item)])
        except KeyError:
            raise CosmosResourceNotFoundError(status_code=404, message="Not Found")

    async def replace_item(self, item: str, body: Dict[str, Any]) -> Dict[str, Any]:
        self.written.append(deepcopy(body))
        key = (body.get(self.partition_key_name), item)
        if key not in self.items:
            raise CosmosResourceNotFoundError(status_code=404, message="Not Found")
        self.items[key] = deepcopy(body)
        return deepcopy(body)


@pytest.fixture
def mongo_collection() -> FakeMongoCollection:
    return FakeMongoCollection()


@pytest.fixture
def cosmos_container() -> FakeCosmosContainer:
    return FakeCosmosContainer(PARTITION_KEY.name)


@pytest.fixture
def mongo_repository(mongo_collection) -> MongoDBOrderRepository:
    return MongoDBOrderRepository(mongo_collection)


@pytest.fixture
def cosmos_repository(cosmos_container) -> CosmosDBOrderRepository:
    return CosmosDBOrderRepository(cosmos_container, PARTITION_KEY)


@pytest.fixture(params=["mongodb", "cosmosdb"])
def repository(request, mongo_collection, cosmos_container):
    """Each backend in turn, over an empty store."""
    if request.param == "mongodb":
        return MongoDBOrderRepository(mongo_collection)
    return CosmosDBOrderRepository(cosmos_container, PARTITION_KEY)


def make_order(
    order_id: str,
    status: Status = Status.PENDING,
    customer_id: str = "4242",
    quantity: int = 1,
) -> Order:
    return Order(
        order_id=order_id,
        customer_id=customer_id,
        items=[Item(product_id=1, quantity=quantity, price=9.99)],
        status=status,
    )


@pytest.fixture
def order_factory():
    """Build orders with sensible defaults"""
    return make_order


@pytest.fixture
def sample_orders() -> List[Order]:
    """Orders covering every status."""
    return [
        make_order("1", Status.PENDING),
        make_order("2", Status.PENDING, customer_id="77"),
        make_order("3", Status.PROCESSING),
        make_order("4", Status.COMPLETE),
        make_order("5", Status.COMPLETE, quantity=3),
    ]


@pytest.fixture
def partition_key() -> PartitionKey:
    """Partition used by the ``cosmos_repository`` fixture"""
    return PARTITION_KEY
