"""
FastAPI dependency injection for Order Service

The order service is built once at startup and kept on ``app.state``; every
request handler receives that same instance. The order queue consumer is
managed by ``core.events``.
"""

from typing import Optional

from fastapi import Depends, Request

from ..core.events import get_order_queue
from ..core.exceptions import QueueUnavailableError
from ..events.base import OrderQueue
from ..services.order_service import OrderService

# =====================================================
# SERVICE DEPENDENCIES
# =====================================================


def get_order_service(request: Request) -> OrderService:
    """Provide the process-wide OrderService instance"""
    order_service: Optional[OrderService] = getattr(
        request.app.state, "order_service", None
    )
    if order_service is None:
        raise RuntimeError("Order service is not initialized")
    return order_service


def get_order_queue_dependency() -> OrderQueue:
    """Provide the order queue consumer"""
    order_queue = get_order_queue()
    if order_queue is None:
        raise QueueUnavailableError("Order queue consumer is not initialized")
    return order_queue


# =====================================================
# COMMON DEPENDENCY ALIASES
# =====================================================

OrderServiceDep = Depends(get_order_service)
OrderQueueDep = Depends(get_order_queue_dependency)
