"""
Order queue base classes and interfaces.
"""

import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List

from aiokafka import TopicPartition  # type: ignore

from ...core.exceptions import QueueError
from ...core.setting import get_settings
from ...models.order import Order
from ...utils.logging import setup_order_logging as setup_logging

logger = setup_logging(
    "order_service.events.base", log_level=get_settings().LOG_LEVEL
)


@dataclass
class OrderBatch:
    """Orders received in one queue read.

    ``start_offsets`` holds the first offset read per partition (where to
    rewind to), ``offsets`` the next offset to commit once the orders are stored.
    """

    orders: List[Order] = field(default_factory=list)
    offsets: Dict[TopicPartition, int] = field(default_factory=dict)
    start_offsets: Dict[TopicPartition, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.orders)


class OrderQueue(ABC):
    """Abstract source of newly placed orders"""

    def __init__(self) -> None:
        # One batch in flight at a time so committed offsets only move forward
        self._receive_lock = asyncio.Lock()

    @abstractmethod
    async def get_orders_from_queue(self) -> OrderBatch:
        """Receive the orders currently waiting in the queue"""

    @abstractmethod
    async def commit(self, batch: OrderBatch) -> None:
        """Acknowledge a batch after its orders were persisted"""

    @abstractmethod
    async def rewind(self, batch: OrderBatch) -> None:
        """Reposition the queue so the batch is read again by the next receive"""

    @asynccontextmanager
    async def receive(self) -> AsyncIterator[OrderBatch]:
        """Receive a batch and settle it when the block exits.

        A block that completes commits the batch; a block that raises rewinds
        it so the orders are delivered again. A failed commit is only logged:
        the orders are stored and a redelivery is skipped as duplicates.

        Usage::

            async with order_queue.receive() as batch:
                await order_service.insert_orders(batch.orders)
        """
        async with self._receive_lock:
            batch = await self.get_orders_from_queue()
            try:
                yield batch
            except Exception:
                logger.warning(
                    "Rewinding order queue after failed batch",
                    extra={"count": len(batch), "operation": "queue_rewind"},
                )
                await self.rewind(batch)
                raise

            try:
                await self.commit(batch)
            except QueueError as e:
                logger.warning(
                    "Failed to acknowledge queued orders",
                    extra={"error_type": type(e).__name__, "count": len(batch)},
                )
