"""
Rush Hour Simulation Script

Fires concurrent orders from random tables at a running API, then walks
every created order through the kitchen workflow.
Run from project root: python scripts/simulate.py
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
API_BASE_URL = "http://localhost:5000"
TOTAL_ORDERS = 50
TABLE_NUMBERS = list(range(1, 11))
PAYMENT_METHODS = ["cash", "online", "card"]
STATUS_SEQUENCE = ["preparing", "ready", "delivered"]


async def fetch_menu(client: httpx.AsyncClient) -> list[dict[str, Any]]:
    """Available, orderable menu items."""
    response = await client.get(f"{API_BASE_URL}/api/menu")
    response.raise_for_status()
    return [item for item in response.json()["data"] if item["is_available"]]


def generate_order_payload(menu: list[dict[str, Any]]) -> dict[str, Any]:
    """A random cart for a random table."""
    picks = random.sample(menu, k=min(len(menu), random.randint(1, 4)))
    return {
        "table_number": random.choice(TABLE_NUMBERS),
        "currency": random.choice(["INR", "USD"]),
        "payment_method": random.choice(PAYMENT_METHODS),
        "items": [
            {
                "id": item["id"],
                "name": item["name"],
                "quantity": random.randint(1, 3),
                "price_inr": item["price_inr"],
                "price_usd": item["price_usd"],
            }
            for item in picks
        ],
    }


async def send_order(
    client: httpx.AsyncClient,
    menu: list[dict[str, Any]],
    order_num: int,
) -> dict[str, Any]:
    """Place one order and time it."""
    payload = generate_order_payload(menu)
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/orders", json=payload, timeout=30.0)
    except httpx.HTTPError as e:
        return {"order_num": order_num, "success": False, "error": str(e)}

    elapsed = round(time.time() - start_time, 3)
    body = response.json()
    if response.status_code != 200:
        return {
            "order_num": order_num,
            "success": False,
            "error": body.get("message", response.text[:100]),
            "time": elapsed,
        }

    order = body["data"]
    return {
        "order_num": order_num,
        "success": True,
        "order_id": order["id"],
        "total": Decimal(order["total_amount_inr"]),
        "time": elapsed,
    }


async def walk_order(client: httpx.AsyncClient, order_id: int) -> bool:
    """Move an order pending -> preparing -> ready -> delivered."""
    for status in STATUS_SEQUENCE:
        response = await client.put(
            f"{API_BASE_URL}/api/orders/{order_id}/status",
            json={"order_status": status},
            timeout=30.0,
        )
        if response.status_code != 200:
            print(f"   Order #{order_id} stuck before '{status}': {response.text[:100]}")
            return False
    return True


async def run_simulation(num_orders: int = TOTAL_ORDERS, walk: bool = True) -> dict[str, Any]:
    print("=" * 70)
    print("RUSH HOUR SIMULATION")
    print("=" * 70)
    print(f"Total Orders: {num_orders}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        menu = await fetch_menu(client)
        if not menu:
            print("Menu is empty. Run scripts/seed.py first.")
            return {"total": num_orders, "successful": 0, "failed": num_orders}

        results = await asyncio.gather(
            *(send_order(client, menu, i + 1) for i in range(num_orders))
        )

        successful = [r for r in results if r["success"]]
        walked = 0
        if walk and successful:
            print(f"\nWalking {len(successful)} order(s) through the kitchen...")
            outcomes = await asyncio.gather(
                *(walk_order(client, r["order_id"]) for r in successful)
            )
            walked = sum(outcomes)

    total_time = round(time.time() - start_time, 2)
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"Successful Orders: {len(successful)}/{num_orders}")
    print(f"Failed Orders: {len(failed)}/{num_orders}")
    if walk:
        print(f"Delivered: {walked}/{len(successful)}")
    print(f"Total Time: {total_time}s")

    if successful:
        times = [r["time"] for r in successful]
        total_revenue = sum((r["total"] for r in successful), Decimal("0"))
        print("\nPerformance Metrics:")
        print(f"   Average Response: {round(sum(times) / len(times), 3)}s")
        print(f"   Fastest: {min(times)}s")
        print(f"   Slowest: {max(times)}s")
        print(f"   Total Revenue: INR {total_revenue}")

    if failed:
        print("\nFailed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "delivered": walked,
        "total_time": total_time,
    }


async def preflight() -> bool:
    """Health check before firing orders."""
    async with httpx.AsyncClient() as client:
        try:
            response = await client.get(f"{API_BASE_URL}/api/health")
        except httpx.HTTPError as e:
            print(f"API unreachable: {e}")
            return False

    if response.status_code != 200:
        print(f"Health check failed: {response.text}")
        return False

    data = response.json()
    print(f"Status: {data.get('status')}")
    print(f"Database: {data.get('database')}")
    print(f"Notifications: {data.get('notification_service')}")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Rush Hour Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--no-walk", action="store_true", help="Only place orders")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    if not asyncio.run(preflight()):
        sys.exit(1)

    asyncio.run(run_simulation(num_orders=args.orders, walk=not args.no_walk))
