"""
Order Flow Simulation Script

Fires concurrent orders at a running API, then walks a share of them
through the status machine as the admin.
Run from project root (after scripts/seed.py): python scripts/simulate.py

Expects the header access gate (ACCESS_GATE_MODE=header).
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50
USER_HEADER = "X-User-Id"

DELIVERY_ADDRESSES = [None, "12 Le Loi", "48 Nguyen Hue", "7 Hai Ba Trung", "210 Pasteur"]
PAYMENT_METHODS = [None, "cash", "card", "transfer"]


def generate_order_payload(menu_ids: list[int]) -> dict[str, Any]:
    """Generate a random order body from the live menu."""
    lines = []
    for menu_item_id in random.sample(menu_ids, k=min(len(menu_ids), random.randint(1, 4))):
        line = {"menu_item_id": menu_item_id}
        # Leave quantity out sometimes; the API defaults it to 1
        if random.random() < 0.7:
            line["quantity"] = random.randint(1, 3)
        lines.append(line)

    return {
        "items": lines,
        "delivery_address": random.choice(DELIVERY_ADDRESSES),
        "payment_method": random.choice(PAYMENT_METHODS),
    }


async def send_order(
    client: httpx.AsyncClient,
    order_num: int,
    user_id: int,
    menu_ids: list[int],
) -> dict[str, Any]:
    """Place one order."""
    payload = generate_order_payload(menu_ids)
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/orders",
            json=payload,
            headers={USER_HEADER: str(user_id)},
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            data = response.json()
            return {
                "order_num": order_num,
                "success": True,
                "order_id": data["id"],
                "total": Decimal(str(data["total_price"])),
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


async def advance_order(
    client: httpx.AsyncClient,
    order_id: int,
    admin_id: int,
) -> list[int]:
    """Move an order along a random path; returns the response codes."""
    path = random.choice([
        ["PROCESSING", "COMPLETED"],
        ["CANCELLED"],
        ["PROCESSING", "CANCELLED"],
        ["COMPLETED", "PENDING"],  # second step must be rejected (terminal)
    ])
    codes = []
    for status in path:
        response = await client.put(
            f"{API_BASE_URL}/api/orders/{order_id}",
            json={"status": status},
            headers={USER_HEADER: str(admin_id)},
        )
        codes.append(response.status_code)
    return codes


async def run_simulation(
    user_id: int,
    admin_id: int,
    num_orders: int = TOTAL_ORDERS,
) -> dict[str, Any]:
    """
    Run the simulation.

    Args:
        user_id: Customer placing the orders
        admin_id: Admin changing statuses
        num_orders: Number of orders to place
    """
    print("=" * 70)
    print("🔥 ORDER FLOW SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        menu = (await client.get(f"{API_BASE_URL}/api/menu")).json()
        menu_ids = [item["id"] for item in menu]
        if not menu_ids:
            print("\n❌ Menu is empty. Run scripts/seed.py first.")
            return {"total": num_orders, "successful": 0, "failed": num_orders}

        tasks = [send_order(client, i + 1, user_id, menu_ids) for i in range(num_orders)]
        results = await asyncio.gather(*tasks)

        successful = [r for r in results if r["success"]]
        transitions = await asyncio.gather(*[
            advance_order(client, r["order_id"], admin_id)
            for r in successful[: len(successful) // 2]
        ])

    total_time = round(time.time() - start_time, 2)
    failed = [r for r in results if not r["success"]]

    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        total_revenue = sum((r["total"] for r in successful), Decimal("0"))
        print(f"\n📈 Average Response: {avg_time}s")
        print(f"💰 Total Ordered: {total_revenue}")

    codes = [code for path in transitions for code in path]
    print(f"\n🔁 Status updates: {codes.count(200)} accepted, {codes.count(409)} rejected")

    if failed:
        print("\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("Next: python scripts/verify.py")
    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Order Flow Simulation")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--user-id", type=int, default=2, help="Customer user id")
    parser.add_argument("--admin-id", type=int, default=1, help="Admin user id")
    args = parser.parse_args()

    asyncio.run(run_simulation(args.user_id, args.admin_id, args.orders))
