"""
Ordering Service

Order creation (price snapshot + total) and the order status state machine.

Usage:
    from storefront.services.ordering import build_order, set_status

    order = await build_order(db, user_id=7, line_requests=[
        LineRequest(menu_item_id=1, quantity=2),
    ])
    order = await set_status(db, order.id, "PROCESSING", Role.ADMIN)
"""

from storefront.services.ordering.builder import build_order, compute_lines
from storefront.services.ordering.errors import (
    EmptyOrder,
    Forbidden,
    InvalidQuantity,
    InvalidStatus,
    InvalidTransition,
    LineItemNotFound,
    MenuItemNotFound,
    OrderingError,
    OrderNotFound,
    OrderTotalOutOfRange,
    PersistenceFailure,
)
from storefront.services.ordering.queries import (
    delete_order,
    get_order,
    list_orders,
    load_order,
    page_count,
)
from storefront.services.ordering.status_machine import (
    PERMISSIVE_POLICY,
    STRICT_POLICY,
    TransitionPolicy,
    get_transition_policy,
    set_status,
)

__all__ = [
    "build_order",
    "compute_lines",
    "set_status",
    "get_order",
    "list_orders",
    "load_order",
    "delete_order",
    "page_count",
    "TransitionPolicy",
    "PERMISSIVE_POLICY",
    "STRICT_POLICY",
    "get_transition_policy",
    "OrderingError",
    "EmptyOrder",
    "InvalidQuantity",
    "LineItemNotFound",
    "OrderTotalOutOfRange",
    "MenuItemNotFound",
    "OrderNotFound",
    "Forbidden",
    "InvalidStatus",
    "InvalidTransition",
    "PersistenceFailure",
]
