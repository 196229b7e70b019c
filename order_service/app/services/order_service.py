"""
Order service: the single object request handlers use to reach the store.
"""

from typing import List, Sequence

from ..models.order import Order, Status
from ..repository.base import OrderRepository


class OrderService:
    """Delegates every call to the repository chosen at startup.

    Holds no state besides the repository, so one instance is shared by all
    concurrent requests.
    """

    def __init__(self, repository: OrderRepository):
        self.repository = repository

    async def insert_orders(self, orders: Sequence[Order]) -> None:
        await self.repository.insert_orders(orders)

    async def get_pending_orders(self) -> List[Order]:
        return await self.repository.get_pending_orders()

    async def get_orders_by_status(self, status: Status) -> List[Order]:
        return await self.repository.get_orders_by_status(status)

    async def get_order(self, order_id: str) -> Order:
        return await self.repository.get_order(order_id)

    async def update_order(self, order: Order) -> None:
        await self.repository.update_order(order)

    async def close(self) -> None:
        await self.repository.close()
