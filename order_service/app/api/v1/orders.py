from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from ...core.exceptions import (
    InvalidOrderIdError,
    InvalidOrderStatusError,
    OrderNotFoundError,
    OrderServiceError,
    QueueError,
)
from ...core.setting import get_settings
from ...events.base import OrderQueue
from ...models.order import Order, Status, normalize_order_id, parse_status
from ...services.order_service import OrderService
from ...utils.logging import setup_order_logging as setup_logging
from ..deps import OrderQueueDep, OrderServiceDep

logger = setup_logging(
    "order_service.api.orders", log_level=get_settings().LOG_LEVEL
)


def validate_order_id(order_id: str) -> str:
    """Validate and normalize an order ID from the request"""
    try:
        return normalize_order_id(order_id)
    except InvalidOrderIdError:
        logger.info("Rejected invalid order id", extra={"order_id": order_id})
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid order ID format",
        )


def validate_status(raw_status: Optional[str]) -> Status:
    """Validate the ``status`` query parameter (0, 1 or 2)"""
    if raw_status is None or raw_status == "":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing status query parameter",
        )
    try:
        return parse_status(raw_status)
    except InvalidOrderStatusError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid order status",
        )


def _server_error(message: str, exc: Exception) -> HTTPException:
    logger.error(
        message,
        extra={
            "error_type": type(exc).__name__,
            "operation": getattr(exc, "operation", None),
        },
    )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


router = APIRouter(prefix="/order")


@router.get("/fetch", response_model=List[Order])
async def fetch_orders(
    order_service: OrderService = OrderServiceDep,
    order_queue: OrderQueue = OrderQueueDep,
) -> List[Order]:
    """Move queued orders into the store and return the pending ones.

    Used by the makeline worker.
    """
    try:
        async with order_queue.receive() as batch:
            await order_service.insert_orders(batch.orders)
    except QueueError as e:
        raise _server_error("Failed to fetch orders from queue", e)
    except OrderServiceError as e:
        raise _server_error("Failed to save orders to database", e)

    try:
        return await order_service.get_pending_orders()
    except OrderServiceError as e:
        raise _server_error("Failed to get pending orders from database", e)


@router.get("", response_model=List[Order])
async def list_orders_by_status(
    status_param: Optional[str] = Query(None, alias="status"),
    order_service: OrderService = OrderServiceDep,
) -> List[Order]:
    """List orders with the given status, e.g. ``GET /order?status=2``"""
    order_status = validate_status(status_param)

    try:
        return await order_service.get_orders_by_status(order_status)
    except OrderServiceError as e:
        raise _server_error("Failed to get orders by status", e)


@router.get("/{order_id}", response_model=Order)
async def get_order(
    order_id: str,
    order_service: OrderService = OrderServiceDep,
) -> Order:
    """Get a single order by ID"""
    sanitized_order_id = validate_order_id(order_id)

    try:
        return await order_service.get_order(sanitized_order_id)
    except OrderNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found",
        )
    except OrderServiceError as e:
        raise _server_error("Failed to get order from database", e)


@router.put("", status_code=status.HTTP_202_ACCEPTED)
async def update_order(
    order: Order,
    order_service: OrderService = OrderServiceDep,
) -> Response:
    """Replace status, items and customer of an order.

    The admin "Ship" action sends the order with ``status`` 2 (Complete).
    """
    try:
        await order_service.update_order(order)
    except OrderNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found",
        )
    except OrderServiceError as e:
        raise _server_error("Failed to update order status", e)

    return Response(status_code=status.HTTP_202_ACCEPTED)
