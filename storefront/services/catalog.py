"""
Catalog Store

Menu item lookup and administrative maintenance. Straight persistence:
price changes here never reach existing orders, which carry their own
snapshot prices.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models import MenuCategory, MenuItem
from storefront.schemas import MenuItemCreate, MenuItemUpdate
from storefront.services.ordering.errors import MenuItemNotFound, PersistenceFailure

logger = logging.getLogger(__name__)

# Explicit nulls clear these; for any other field a null is ignored.
NULLABLE_FIELDS = frozenset({"description", "image_url"})


async def list_menu_items(
    db: AsyncSession,
    category: Optional[MenuCategory] = None,
    include_unavailable: bool = False,
) -> list[MenuItem]:
    """Menu items ordered by category then name; available ones only by default."""
    query = select(MenuItem).order_by(MenuItem.category, MenuItem.name)

    if category is not None:
        query = query.where(MenuItem.category == category)
    if not include_unavailable:
        query = query.where(MenuItem.is_available.is_(True))

    try:
        result = await db.execute(query)
    except SQLAlchemyError as e:
        logger.exception(f"Menu listing failed: {e}")
        raise PersistenceFailure("menu listing", e) from e
    return list(result.scalars().all())


async def get_menu_item(db: AsyncSession, item_id: int) -> MenuItem:
    try:
        item = await db.get(MenuItem, item_id)
    except SQLAlchemyError as e:
        logger.exception(f"Menu item #{item_id} lookup failed: {e}")
        raise PersistenceFailure("menu item lookup", e) from e
    if item is None:
        raise MenuItemNotFound(item_id)
    return item


async def _commit(db: AsyncSession, operation: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception(f"Catalog {operation} failed: {e}")
        raise PersistenceFailure(f"menu item {operation}", e) from e


async def create_menu_item(db: AsyncSession, data: MenuItemCreate) -> MenuItem:
    item = MenuItem(**data.model_dump())
    db.add(item)
    await _commit(db, "creation")

    logger.info(f"Menu item #{item.id} created: {item.name} @ {item.price}")
    return item


async def update_menu_item(db: AsyncSession, item_id: int, data: MenuItemUpdate) -> MenuItem:
    """Apply only the fields present in ``data``."""
    item = await get_menu_item(db, item_id)

    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_FIELDS
    }
    for field, value in changes.items():
        setattr(item, field, value)

    await _commit(db, "update")

    logger.info(f"Menu item #{item_id} updated: {sorted(changes)}")
    return item


async def delete_menu_item(db: AsyncSession, item_id: int) -> None:
    item = await get_menu_item(db, item_id)
    await db.delete(item)
    await _commit(db, "deletion")

    logger.info(f"Menu item #{item_id} deleted")
