"""
Order repository contract shared by every storage backend.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from ..models.order import Order, Status


class OrderRepository(ABC):
    """Persistence operations available to the order service.

    Implementations must be safe to share between concurrent requests;
    connection pooling is left to the underlying driver.
    """

    @abstractmethod
    async def insert_orders(self, orders: Sequence[Order]) -> None:
        """Insert new orders, skipping any whose ID is already stored."""

    @abstractmethod
    async def get_pending_orders(self) -> List[Order]:
        """Return every order in ``Status.PENDING``."""

    @abstractmethod
    async def get_orders_by_status(self, status: Status) -> List[Order]:
        """Return every order whose status equals ``status``.

        Raises:
            InvalidOrderStatusError: ``status`` is not a known ``Status``
        """

    @abstractmethod
    async def get_order(self, order_id: str) -> Order:
        """Return the order with the given normalized ID.

        Raises:
            OrderNotFoundError: no order has this ID
        """

    @abstractmethod
    async def update_order(self, order: Order) -> None:
        """Replace customer, items and status of an existing order.

        Raises:
            OrderNotFoundError: no order has ``order.order_id``
        """

    async def close(self) -> None:
        """Release the driver client."""
