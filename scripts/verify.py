"""
Order Integrity Verification Script

Checks every stored order against the ordering invariants:
    - total_price equals the sum of unit_price x quantity over its items
    - every order has at least one item, every quantity is >= 1
Run from project root: python scripts/verify.py
"""

import asyncio
import os
import sys
from collections import Counter
from datetime import datetime
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from storefront.database import async_session_maker, engine
from storefront.models import Order

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


def check_order(order: Order) -> list[str]:
    """Return the invariant violations for one order."""
    problems = []
    if not order.items:
        problems.append("no items")

    expected = sum((item.unit_price * item.quantity for item in order.items), Decimal("0"))
    if expected != order.total_price:
        problems.append(f"total {order.total_price} != items sum {expected}")

    bad_quantities = [item.id for item in order.items if item.quantity < 1]
    if bad_quantities:
        problems.append(f"non-positive quantity on items {bad_quantities}")

    return problems


async def verify_orders() -> bool:
    """Verify stored orders; returns True when all pass."""
    print("=" * 60)
    print("🔍 ORDER VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 60)

    async with async_session_maker() as session:
        result = await session.execute(select(Order).options(selectinload(Order.items)))
        orders = result.scalars().all()

    await engine.dispose()

    print("\n📊 STATISTICS:")
    print(f"   Total Orders: {len(orders)}")
    for status, count in sorted(Counter(o.status.value for o in orders).items()):
        print(f"   {status}: {count}")

    failures = {}
    for order in orders:
        problems = check_order(order)
        if problems:
            failures[order.id] = problems

    if failures:
        print(f"\n⚠️ {len(failures)} order(s) violate invariants:")
        for order_id, problems in list(failures.items())[:10]:
            print(f"   Order #{order_id}: {'; '.join(problems)}")
    else:
        print("\n✅ All order totals match their items")

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE")
    print("=" * 60)

    return not failures


if __name__ == "__main__":
    ok = asyncio.run(verify_orders())
    sys.exit(0 if ok else 1)
