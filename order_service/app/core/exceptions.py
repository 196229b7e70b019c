"""
Order Service exceptions.

Repositories and the queue consumer raise these; the API layer translates
them into HTTP responses and the startup path treats the configuration and
connection errors as fatal.
"""

from typing import Iterable


class OrderServiceError(Exception):
    """Base class for all order service errors."""


class ConfigurationError(OrderServiceError):
    """Required settings are missing; the service cannot start."""

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__(
            f"Missing required configuration: {', '.join(self.missing)}"
        )


class RepositoryError(OrderServiceError):
    """A backing store operation failed."""

    def __init__(self, operation: str, backend: str):
        self.operation = operation
        self.backend = backend
        super().__init__(f"{backend} operation '{operation}' failed")


class RepositoryConnectionError(RepositoryError):
    """The backing store could not be reached or rejected the credentials."""

    def __init__(self, backend: str):
        super().__init__("connect", backend)


class OrderNotFoundError(OrderServiceError):
    """No order exists with the given ID."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class InvalidOrderIdError(ValueError):
    """An order ID is not the decimal representation of a non-negative integer."""


class InvalidOrderStatusError(ValueError):
    """A status value is outside Pending(0), Processing(1), Complete(2)."""


class QueueError(OrderServiceError):
    """Reading from the order queue failed."""


class QueueUnavailableError(QueueError):
    """The order queue consumer is not connected."""
