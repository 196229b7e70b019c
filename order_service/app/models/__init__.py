"""
Order Service Models

Order entity, line items and the status lifecycle shared by every
repository backend.
"""

from .order import Item, Order, Status, normalize_order_id, parse_status

__all__ = [
    "Item",
    "Order",
    "Status",
    "normalize_order_id",
    "parse_status",
]
