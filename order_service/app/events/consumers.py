"""
Kafka consumer that supplies newly placed orders to the fetch endpoint.

Messages are pulled on demand rather than streamed: each fetch reads whatever
is waiting (bounded by ``max_messages`` and ``receive_timeout_ms``) and the
offsets are committed only after the orders have been written to the store.
A batch that could not be stored is rewound with ``seek`` so the next fetch
reads it again. Redelivered messages are absorbed by the duplicate-tolerant
insert.
"""

import asyncio
import json
from typing import Any, Optional

from aiokafka import AIOKafkaConsumer  # type: ignore
from aiokafka.errors import KafkaConnectionError, KafkaError  # type: ignore

from ..core.exceptions import QueueError, QueueUnavailableError
from ..core.setting import get_settings
from ..models.order import Order
from ..utils.logging import setup_order_logging as setup_logging
from .base import OrderBatch, OrderQueue

logger = setup_logging(
    "order_service.events.queue", log_level=get_settings().LOG_LEVEL
)


class OrderQueueConsumer(OrderQueue):
    """Order queue backed by a Kafka topic, with connection retry logic"""

    def __init__(
        self,
        bootstrap_servers: str,
        topic: str,
        group_id: str,
        client_id: str,
        max_messages: int = 100,
        receive_timeout_ms: int = 1000,
        max_retries: int = 5,
        retry_delay: float = 2.0,
    ):
        super().__init__()
        self.bootstrap_servers = bootstrap_servers
        self.topic = topic
        self.group_id = group_id
        self.client_id = client_id
        self.max_messages = max_messages
        self.receive_timeout_ms = receive_timeout_ms
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.consumer: Optional[AIOKafkaConsumer] = None
        self.is_connected = False

    def _create_consumer(self) -> AIOKafkaConsumer:
        return AIOKafkaConsumer(
            self.topic,
            bootstrap_servers=self.bootstrap_servers,
            group_id=self.group_id,
            client_id=self.client_id,
            enable_auto_commit=False,
            auto_offset_reset="earliest",
        )

    async def start(self, timeout: float = 30.0) -> None:
        """Start the consumer, retrying with exponential backoff.

        When every attempt fails the consumer stays disconnected and
        ``get_orders_from_queue`` raises ``QueueUnavailableError``.
        """
        for attempt in range(self.max_retries):
            consumer = self._create_consumer()
            try:
                logger.info(
                    "Attempting order queue connection",
                    extra={
                        "attempt": attempt + 1,
                        "max_retries": self.max_retries,
                        "topic": self.topic,
                        "operation": "queue_connect",
                    },
                )
                await asyncio.wait_for(consumer.start(), timeout=timeout)  # type: ignore

                self.consumer = consumer
                self.is_connected = True
                logger.info(
                    "Order queue consumer connected", extra={"topic": self.topic}
                )
                return

            except (KafkaConnectionError, asyncio.TimeoutError) as e:
                await self._stop_quietly(consumer)
                delay = self.retry_delay * (2**attempt)
                logger.warning(
                    f"Order queue connection attempt {attempt + 1} failed: {e}. "
                    f"Retrying in {delay} seconds..."
                )
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(delay)

        logger.error(
            f"Failed to connect to the order queue after {self.max_retries} attempts. "
            "Fetching orders is unavailable until restart"
        )
        self.is_connected = False

    async def stop(self) -> None:
        """Stop the consumer"""
        if self.consumer is not None:
            await self._stop_quietly(self.consumer)
            logger.info("Order queue consumer stopped", extra={"topic": self.topic})
        self.consumer = None
        self.is_connected = False

    async def _stop_quietly(self, consumer: AIOKafkaConsumer) -> None:
        try:
            await consumer.stop()  # type: ignore
        except KafkaError as e:
            logger.warning(
                "Error stopping order queue consumer",
                extra={"error": str(e), "operation": "stop_consumer"},
            )

    async def get_orders_from_queue(self) -> OrderBatch:
        if not self.is_connected or self.consumer is None:
            raise QueueUnavailableError("Order queue consumer is not connected")

        try:
            records_by_partition = await self.consumer.getmany(  # type: ignore
                timeout_ms=self.receive_timeout_ms,
                max_records=self.max_messages,
            )
        except KafkaError as e:
            logger.error(
                "Failed to receive orders from queue",
                extra={"topic": self.topic, "error_type": type(e).__name__},
            )
            raise QueueError("Failed to receive orders from queue") from e

        batch = OrderBatch()
        for partition, records in records_by_partition.items():
            for record in records:
                order = self._decode(record)
                if order is not None:
                    batch.orders.append(order)
            if records:
                batch.start_offsets[partition] = records[0].offset
                # Committed offset is the next one to read
                batch.offsets[partition] = records[-1].offset + 1

        logger.info(
            "Received orders from queue",
            extra={"topic": self.topic, "count": len(batch.orders)},
        )
        return batch

    def _decode(self, record: Any) -> Optional[Order]:
        try:
            return Order.model_validate(json.loads(record.value))
        except (TypeError, ValueError) as e:
            # Undecodable messages can never be stored; drop them instead of
            # blocking the partition
            logger.warning(
                "Skipping malformed order message",
                extra={
                    "topic": record.topic,
                    "partition": record.partition,
                    "offset": record.offset,
                    "error": str(e),
                },
            )
            return None

    async def commit(self, batch: OrderBatch) -> None:
        if not batch.offsets:
            return
        if not self.is_connected or self.consumer is None:
            raise QueueUnavailableError("Order queue consumer is not connected")

        try:
            await self.consumer.commit(dict(batch.offsets))  # type: ignore
        except KafkaError as e:
            logger.error(
                "Failed to commit order queue offsets",
                extra={"topic": self.topic, "error_type": type(e).__name__},
            )
            raise QueueError("Failed to commit order queue offsets") from e

    async def rewind(self, batch: OrderBatch) -> None:
        if not batch.start_offsets:
            return
        if not self.is_connected or self.consumer is None:
            raise QueueUnavailableError("Order queue consumer is not connected")

        try:
            for partition, offset in batch.start_offsets.items():
                self.consumer.seek(partition, offset)  # type: ignore
        except KafkaError as e:
            logger.error(
                "Failed to rewind order queue",
                extra={"topic": self.topic, "error_type": type(e).__name__},
            )
            raise QueueError("Failed to rewind order queue") from e

        logger.info(
            "Rewound order queue",
            extra={"topic": self.topic, "partitions": len(batch.start_offsets)},
        )
