"""
Ordering Error Taxonomy

Every failure path of the ordering core raises one of these, so callers can
tell the kinds apart without parsing messages. The HTTP layer maps
``error_code`` values to status codes.

Classes:
    - Input validation: EmptyOrder, InvalidQuantity, InvalidStatus, OrderTotalOutOfRange
    - Reference: LineItemNotFound, OrderNotFound, MenuItemNotFound
    - Authorization: Forbidden
    - State: InvalidTransition
    - Store: PersistenceFailure
"""

from typing import Any, Optional

from storefront.models import MAX_QUANTITY


class OrderingError(Exception):
    """Base class for all ordering-core errors."""

    error_code = "ordering_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "detail": self.message}


class EmptyOrder(OrderingError):
    error_code = "empty_order"

    def __init__(self):
        super().__init__("Order must contain at least one item")


class InvalidQuantity(OrderingError):
    error_code = "invalid_quantity"

    def __init__(self, menu_item_id: int, quantity: Any):
        super().__init__(
            f"Quantity for menu item {menu_item_id} must be an integer from 1 to {MAX_QUANTITY}, got {quantity!r}"
        )
        self.menu_item_id = menu_item_id
        self.quantity = quantity


class OrderTotalOutOfRange(OrderingError):
    error_code = "order_total_out_of_range"

    def __init__(self, total: Any, limit: Any):
        super().__init__(f"Order total {total} exceeds the maximum of {limit}")
        self.total = total
        self.limit = limit


class LineItemNotFound(OrderingError):
    error_code = "line_item_not_found"

    def __init__(self, menu_item_id: int):
        super().__init__(f"Menu item with ID {menu_item_id} not found")
        self.menu_item_id = menu_item_id


class MenuItemNotFound(OrderingError):
    error_code = "menu_item_not_found"

    def __init__(self, menu_item_id: int):
        super().__init__(f"Menu item #{menu_item_id} not found")
        self.menu_item_id = menu_item_id


class OrderNotFound(OrderingError):
    error_code = "order_not_found"

    def __init__(self, order_id: int):
        super().__init__(f"Order #{order_id} not found")
        self.order_id = order_id


class Forbidden(OrderingError):
    error_code = "forbidden"

    def __init__(self, message: str = "Only administrators can perform this action"):
        super().__init__(message)


class InvalidStatus(OrderingError):
    error_code = "invalid_status"

    def __init__(self, value: Any, valid: Optional[list[str]] = None):
        detail = f"Invalid status value {value!r}"
        if valid:
            detail += f". Options: {valid}"
        super().__init__(detail)
        self.value = value


class InvalidTransition(OrderingError):
    error_code = "invalid_transition"

    def __init__(self, order_id: int, current: Any, requested: Any):
        current_value = getattr(current, "value", current)
        requested_value = getattr(requested, "value", requested)
        super().__init__(
            f"Order #{order_id} cannot move from {current_value} to {requested_value}"
        )
        self.order_id = order_id
        self.current = current
        self.requested = requested


class PersistenceFailure(OrderingError):
    """The store rejected or failed a read/write. Never retried automatically."""

    error_code = "persistence_failure"

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        message = f"Database error during {operation}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
        self.operation = operation
        self.cause = cause
