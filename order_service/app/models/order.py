import re
from enum import IntEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.exceptions import InvalidOrderIdError, InvalidOrderStatusError

_ORDER_ID_PATTERN = re.compile(r"\+?[0-9]+")
_STATUS_PATTERN = re.compile(r"[+-]?[0-9]{1,3}")


class Status(IntEnum):
    PENDING = 0
    PROCESSING = 1
    COMPLETE = 2


def normalize_order_id(value: Any) -> str:
    """Return the canonical decimal form of an order ID.

    Accepts a non-negative ``int`` or a string of ASCII digits with an
    optional leading ``+`` and surrounding whitespace. Leading zeros are
    dropped, so ``"007"`` and ``7`` both become ``"7"``.
    """
    if isinstance(value, bool):
        raise InvalidOrderIdError(f"Invalid order ID: {value!r}")

    if isinstance(value, int):
        if value < 0:
            raise InvalidOrderIdError(f"Invalid order ID: {value!r}")
        return str(value)

    if not isinstance(value, str):
        raise InvalidOrderIdError(f"Invalid order ID: {value!r}")

    candidate = value.strip()
    if not _ORDER_ID_PATTERN.fullmatch(candidate):
        raise InvalidOrderIdError(f"Invalid order ID: {value!r}")

    # Strip on the string rather than via int() so arbitrarily long IDs stay valid
    return candidate.lstrip("+").lstrip("0") or "0"


def parse_status(value: Any) -> Status:
    """Convert a raw status value (int or numeric string) into a ``Status``."""
    if isinstance(value, Status):
        return value

    if isinstance(value, bool):
        raise InvalidOrderStatusError(f"Invalid order status: {value!r}")

    if isinstance(value, str):
        candidate = value.strip()
        if not _STATUS_PATTERN.fullmatch(candidate):
            raise InvalidOrderStatusError(f"Invalid order status: {value!r}")
        value = int(candidate)

    if not isinstance(value, int):
        raise InvalidOrderStatusError(f"Invalid order status: {value!r}")

    try:
        return Status(value)
    except ValueError:
        raise InvalidOrderStatusError(f"Invalid order status: {value!r}") from None


class Item(BaseModel):
    """Order line item.

    Opaque to the service. The store UI fields are typed when present; any
    of them may be missing and unknown keys are kept as-is.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    product_id: Optional[int] = Field(default=None, alias="productId")
    quantity: Optional[int] = None
    price: Optional[float] = None


class Order(BaseModel):
    """Customer order as exchanged with the queue, the UI and the stores."""

    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(alias="orderId")
    customer_id: str = Field(alias="customerId")
    items: List[Item] = Field(default_factory=list)
    status: Status = Status.PENDING

    @field_validator("order_id", mode="before")
    @classmethod
    def _normalize_order_id(cls, value: Any) -> str:
        return normalize_order_id(value)

    def to_document(self) -> Dict[str, Any]:
        """Serialize to the stored/wire shape (camelCase keys, integer status)."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Order":
        """Build an order from a stored document, ignoring store metadata."""
        return cls.model_validate(document)
