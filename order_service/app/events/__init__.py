"""
Events module for the Order Service.

The order queue is the intake for newly placed orders. The makeline worker
triggers a fetch, which drains the queue into the order store.

Consumers:
    - OrderQueueConsumer: Kafka-backed order queue read on demand
"""

from .base import OrderBatch, OrderQueue
from .consumers import OrderQueueConsumer

__all__ = [
    "OrderBatch",
    "OrderQueue",
    "OrderQueueConsumer",
]
