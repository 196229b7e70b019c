"""
Order Service queue management.
Initializes and manages the Kafka consumer feeding the fetch endpoint.
"""

from typing import Optional

from ..events.consumers import OrderQueueConsumer
from ..utils.logging import setup_order_logging as setup_logging
from .setting import get_settings

logger = setup_logging(
    "order_service.core.events", log_level=get_settings().LOG_LEVEL
)

# Global instance
_order_queue: Optional[OrderQueueConsumer] = None


async def init_events() -> None:
    """Start the order queue consumer.

    A broker outage does not stop the service from starting; reads and
    updates keep working and only the fetch endpoint fails.
    """
    global _order_queue

    settings = get_settings()
    _order_queue = OrderQueueConsumer(
        bootstrap_servers=settings.ORDER_QUEUE_BOOTSTRAP_SERVERS,
        topic=settings.ORDER_QUEUE_TOPIC,
        group_id=settings.ORDER_QUEUE_GROUP_ID,
        client_id=f"{settings.APP_NAME}-consumer",
        max_messages=settings.ORDER_QUEUE_MAX_MESSAGES,
        receive_timeout_ms=settings.ORDER_QUEUE_RECEIVE_TIMEOUT_MS,
    )
    await _order_queue.start(timeout=30.0)

    if _order_queue.is_connected:
        logger.info("Order queue consumer initialized successfully")
    else:
        logger.warning("Order queue unavailable, fetch endpoint will fail")


async def close_events() -> None:
    """Stop the order queue consumer"""
    global _order_queue

    try:
        if _order_queue:
            await _order_queue.stop()
    finally:
        _order_queue = None


def get_order_queue() -> Optional[OrderQueueConsumer]:
    """Get the order queue consumer instance"""
    return _order_queue
