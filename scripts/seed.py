"""
Demo Data Seeder

Creates the tables and inserts demo users and menu items.
Run from project root: python scripts/seed.py

Users created (ids are printed at the end):
    - admin@storefront.local (ADMIN)
    - customer@storefront.local (USER)
"""

import asyncio
import os
import sys
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from storefront.database import async_session_maker, engine, init_db
from storefront.models import MenuCategory, MenuItem, Role, User

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

USERS = [
    {"name": "Store Admin", "email": "admin@storefront.local", "role": Role.ADMIN},
    {"name": "Demo Customer", "email": "customer@storefront.local", "role": Role.USER},
]

MENU_ITEMS = [
    {"name": "Iced Milk Coffee", "price": Decimal("29"), "category": MenuCategory.DRINK},
    {"name": "Peach Tea", "price": Decimal("35"), "category": MenuCategory.DRINK},
    {"name": "Matcha Latte", "price": Decimal("45"), "category": MenuCategory.DRINK},
    {"name": "Banh Mi", "price": Decimal("25"), "category": MenuCategory.FOOD},
    {"name": "Chicken Rice", "price": Decimal("55"), "category": MenuCategory.FOOD},
    {"name": "Flan", "price": Decimal("15"), "category": MenuCategory.DESSERT},
    {"name": "Mango Sticky Rice", "price": Decimal("40"), "category": MenuCategory.DESSERT},
    {"name": "Spring Rolls", "price": Decimal("30"), "category": MenuCategory.SNACK},
    {"name": "Dried Squid", "price": Decimal("50"), "category": MenuCategory.SNACK,
     "is_available": False},
]


async def seed() -> None:
    await init_db()

    async with async_session_maker() as session:
        for data in USERS:
            existing = await session.execute(select(User).where(User.email == data["email"]))
            if existing.scalar_one_or_none() is None:
                session.add(User(**data))

        existing_names = set((await session.execute(select(MenuItem.name))).scalars().all())
        for data in MENU_ITEMS:
            if data["name"] not in existing_names:
                session.add(MenuItem(**data))

        await session.commit()

        users = (await session.execute(select(User).order_by(User.id))).scalars().all()
        items = (await session.execute(select(MenuItem).order_by(MenuItem.id))).scalars().all()

    print("=" * 60)
    print("🌱 SEED COMPLETE")
    print("=" * 60)
    for user in users:
        print(f"   User #{user.id}: {user.email} ({user.role.value})")
    print(f"   Menu items: {len(items)}")
    print("=" * 60)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
