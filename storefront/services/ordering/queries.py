"""
Order read path and administrative deletion.

Read access: the owning user or an administrator. Deletion: administrators
only; the order's items go with it.
"""

import logging
import math
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.models import Order, OrderItem, OrderStatus, Role
from storefront.services.access.base import Caller
from storefront.services.ordering.errors import (
    Forbidden,
    InvalidStatus,
    OrderNotFound,
    PersistenceFailure,
)

logger = logging.getLogger(__name__)


def _order_query():
    return (
        select(Order)
        .options(
            selectinload(Order.user),
            selectinload(Order.items).selectinload(OrderItem.menu_item),
        )
        .execution_options(populate_existing=True)
    )


def require_admin(role: Role, action: str = "perform this action") -> None:
    """Raise Forbidden unless ``role`` is ADMIN."""
    if role != Role.ADMIN:
        raise Forbidden(f"Only administrators can {action}")


def parse_status(value) -> OrderStatus:
    """Accept an OrderStatus or its name in any case."""
    if isinstance(value, OrderStatus):
        return value
    if isinstance(value, str):
        try:
            return OrderStatus(value.strip().upper())
        except ValueError:
            pass
    raise InvalidStatus(value, [s.value for s in OrderStatus])


async def load_order(db: AsyncSession, order_id: int) -> Order:
    """
    Fetch an order with its items, their menu items and the owner.

    Raises:
        OrderNotFound: No such order
        PersistenceFailure: The store failed
    """
    try:
        result = await db.execute(_order_query().where(Order.id == order_id))
        order = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.exception(f"Failed to load order #{order_id}: {e}")
        raise PersistenceFailure("order lookup", e) from e

    if order is None:
        raise OrderNotFound(order_id)
    return order


async def get_order(db: AsyncSession, order_id: int, caller: Caller) -> Order:
    """Return an order the caller owns, or any order for an admin."""
    order = await load_order(db, order_id)

    if order.user_id != caller.user_id and not caller.is_admin:
        logger.warning(f"User {caller.user_id} denied read access to order #{order_id}")
        raise Forbidden("You do not have permission to view this order")

    return order


async def list_orders(
    db: AsyncSession,
    caller: Caller,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Order], int]:
    """
    Page through orders, newest first.

    Admins see every order; other callers only their own.

    Returns:
        (orders on this page, total matching orders)
    """
    query = _order_query().order_by(Order.created_at.desc(), Order.id.desc())
    count_query = select(func.count(Order.id))

    if status:
        status_enum = parse_status(status)
        query = query.where(Order.status == status_enum)
        count_query = count_query.where(Order.status == status_enum)

    if not caller.is_admin:
        query = query.where(Order.user_id == caller.user_id)
        count_query = count_query.where(Order.user_id == caller.user_id)

    query = query.offset((page - 1) * limit).limit(limit)

    try:
        total = (await db.execute(count_query)).scalar() or 0
        orders = list((await db.execute(query)).scalars().all())
    except SQLAlchemyError as e:
        logger.exception(f"Failed to list orders: {e}")
        raise PersistenceFailure("order listing", e) from e

    return orders, total


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


async def delete_order(db: AsyncSession, order_id: int, caller_role: Role) -> None:
    """
    Delete an order and its items.

    Raises:
        Forbidden: Caller is not an admin
        OrderNotFound: No such order
        PersistenceFailure: The store failed; nothing was deleted
    """
    require_admin(caller_role, "delete orders")
    order = await load_order(db, order_id)

    try:
        await db.delete(order)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Failed to delete order #{order_id}: {e}")
        raise PersistenceFailure("order deletion", e) from e

    logger.info(f"Order #{order_id} deleted")
