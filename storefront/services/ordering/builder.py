"""
Order Builder

Turns a customer's line requests into a persisted order:

    1. Reject empty requests and bad quantities (no I/O yet)
    2. Resolve every distinct menu item in one query
    3. Snapshot each resolved price into an OrderItem and sum the total
    4. Write the order and all of its items in one transaction

Prices are ``decimal.Decimal`` end to end, so totals over many lines do not
drift. The total is stored once; later catalog price changes never touch it.
"""

import logging
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models import (
    MAX_MONEY,
    MAX_QUANTITY,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
    User,
)
from storefront.schemas import LineRequest
from storefront.services.ordering.errors import (
    EmptyOrder,
    InvalidQuantity,
    LineItemNotFound,
    OrderTotalOutOfRange,
    PersistenceFailure,
)
from storefront.services.ordering.queries import load_order

logger = logging.getLogger(__name__)

DEFAULT_QUANTITY = 1


def _normalize_quantity(line: LineRequest) -> int:
    quantity = line.quantity
    if quantity is None:
        return DEFAULT_QUANTITY
    # bool is an int subclass; True is not a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantity(line.menu_item_id, quantity)
    if not 1 <= quantity <= MAX_QUANTITY:
        raise InvalidQuantity(line.menu_item_id, quantity)
    return quantity


def compute_lines(
    line_requests: Sequence[LineRequest],
    prices: dict[int, Decimal],
) -> tuple[list[OrderItem], Decimal]:
    """
    Build snapshot order items and their total from resolved prices.

    Args:
        line_requests: Lines in submission order
        prices: Current unit price per menu item id

    Returns:
        (order items in submission order, total)

    Raises:
        LineItemNotFound: First line whose menu item has no price
        OrderTotalOutOfRange: The total does not fit a money column
    """
    items = []
    total = Decimal("0")

    for line in line_requests:
        quantity = _normalize_quantity(line)
        unit_price = prices.get(line.menu_item_id)
        if unit_price is None:
            raise LineItemNotFound(line.menu_item_id)

        items.append(
            OrderItem(
                menu_item_id=line.menu_item_id,
                quantity=quantity,
                unit_price=unit_price,
            )
        )
        total += unit_price * quantity

    if total > MAX_MONEY:
        raise OrderTotalOutOfRange(total, MAX_MONEY)

    return items, total


async def _resolve_menu_items(db: AsyncSession, menu_item_ids: set[int]) -> dict[int, MenuItem]:
    try:
        result = await db.execute(select(MenuItem).where(MenuItem.id.in_(menu_item_ids)))
    except SQLAlchemyError as e:
        logger.exception(f"Catalog lookup failed: {e}")
        raise PersistenceFailure("menu item lookup", e) from e

    return {item.id: item for item in result.scalars().all()}


async def build_order(
    db: AsyncSession,
    user_id: int,
    line_requests: Sequence[LineRequest],
    metadata: Optional[dict] = None,
) -> Order:
    """
    Create an order for ``user_id`` from ``line_requests``.

    Once the write has committed, a failed re-read is logged and the
    in-session order (items, menu items and owner attached before the
    write) is returned in place of an error.

    Args:
        db: Session owned by the caller; committed here on success
        user_id: Owner, as resolved by the access gate
        line_requests: Non-empty sequence of (menu_item_id, quantity)
        metadata: Optional delivery_address / contact_number / payment_method

    Returns:
        The persisted order with items and owner loaded, status PENDING

    Raises:
        EmptyOrder: No line requests
        InvalidQuantity: A quantity that is not an integer from 1 to MAX_QUANTITY
        LineItemNotFound: A menu item id that does not exist
        OrderTotalOutOfRange: The total does not fit a money column
        PersistenceFailure: The store failed before the commit; nothing was written
    """
    if not line_requests:
        raise EmptyOrder()

    for line in line_requests:
        _normalize_quantity(line)

    menu_items = await _resolve_menu_items(db, {line.menu_item_id for line in line_requests})
    prices = {item_id: Decimal(item.price) for item_id, item in menu_items.items()}
    items, total = compute_lines(line_requests, prices)

    for item in items:
        item.menu_item = menu_items[item.menu_item_id]

    try:
        owner = await db.get(User, user_id)
    except SQLAlchemyError as e:
        logger.exception(f"Owner lookup failed for user {user_id}: {e}")
        raise PersistenceFailure("owner lookup", e) from e

    fields = {
        "delivery_address": None,
        "contact_number": None,
        "payment_method": None,
        **(metadata or {}),
    }
    order = Order(
        user_id=user_id,
        total_price=total,
        status=OrderStatus.PENDING,
        items=items,
        updated_at=None,
        **fields,
    )
    if owner is not None:
        order.user = owner

    try:
        db.add(order)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Failed to persist order for user {user_id}: {e}")
        raise PersistenceFailure("order creation", e) from e

    logger.info(
        f"Order #{order.id} created for user {user_id}: "
        f"{len(items)} line(s), total {total}"
    )

    try:
        return await load_order(db, order.id)
    except PersistenceFailure:
        logger.error(f"Order #{order.id} is saved but could not be reloaded; returning it as built")
        return order
