"""
Concurrency Simulation Script

Fires concurrent order traffic at a running API and checks that every order
still reconciles afterwards: each line's subtotal equals quantity times its
unit price, and the order total equals the sum of its subtotals.

Phases:
    1. Create orders for random customers
    2. Race several modify calls against each order
    3. Flip statuses concurrently (some orders leave the modifiable window)
    4. Race one more round of modifies, then verify every order

Run from project root (with the API running and seeded):
    python scripts/simulate.py --orders 50 --racers 4
"""

import argparse
import asyncio
import random
import sys
import time
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:3000"
TOTAL_ORDERS = 50
RACERS_PER_ORDER = 4

FIRST_NAMES = ["John", "Jane", "Mike", "Sarah", "Tom", "Emma", "David", "Lisa", "Chris", "Amy"]
LAST_NAMES = ["Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis", "Wilson", "Taylor"]
STATUSES = ["pending", "preparing", "ready", "delivered", "canceled"]


def generate_random_customer() -> dict[str, str]:
    """Generate a customer with a unique email."""
    first = random.choice(FIRST_NAMES)
    last = random.choice(LAST_NAMES)
    return {
        "name": f"{first} {last}",
        "email": f"{first}.{last}.{uuid.uuid4().hex[:8]}@example.com".lower(),
        "phone": f"555-{random.randint(100, 999)}-{random.randint(1000, 9999)}",
    }


def generate_random_items(menu_ids: list[int]) -> list[dict[str, int]]:
    """Between one and four lines, repeats allowed."""
    return [
        {"menu_item_id": random.choice(menu_ids), "quantity": random.randint(1, 3)}
        for _ in range(random.randint(1, 4))
    ]


def timed_result(name: str, start: float, response: httpx.Response | None = None, error: str | None = None) -> dict[str, Any]:
    elapsed = round(time.time() - start, 3)
    if response is None:
        return {"call": name, "success": False, "status": None, "error": (error or "")[:100], "time": elapsed}
    success = response.status_code < 300
    return {
        "call": name,
        "success": success,
        "status": response.status_code,
        "data": response.json() if success else None,
        "error": None if success else response.text[:100],
        "time": elapsed,
    }


async def call(client: httpx.AsyncClient, name: str, method: str, path: str, **kwargs) -> dict[str, Any]:
    start = time.time()
    try:
        response = await client.request(method, f"{API_BASE_URL}{path}", timeout=30.0, **kwargs)
    except httpx.HTTPError as e:
        return timed_result(name, start, error=str(e))
    return timed_result(name, start, response)


# =============================================================================
# PHASES
# =============================================================================

async def fetch_menu_ids(client: httpx.AsyncClient) -> list[int]:
    response = await client.get(f"{API_BASE_URL}/menu", params={"limit": 100})
    response.raise_for_status()
    return [item["id"] for item in response.json()["menu_items"]]


async def create_order(client: httpx.AsyncClient, menu_ids: list[int]) -> dict[str, Any]:
    registered = await call(client, "register", "POST", "/customer", json=generate_random_customer())
    if not registered["success"]:
        return registered
    return await call(
        client,
        "create",
        "POST",
        "/order",
        json={"customer_id": registered["data"]["id"], "items": generate_random_items(menu_ids)},
    )


async def race_modifications(client: httpx.AsyncClient, order_ids: list[int], menu_ids: list[int], racers: int) -> list[dict[str, Any]]:
    tasks = [
        call(client, "modify", "PATCH", f"/order/modify/{order_id}", json={"items": generate_random_items(menu_ids)})
        for order_id in order_ids
        for _ in range(racers)
    ]
    return await asyncio.gather(*tasks)


async def flip_statuses(client: httpx.AsyncClient, order_ids: list[int]) -> list[dict[str, Any]]:
    tasks = [
        call(client, "status", "PATCH", f"/order/{order_id}", json={"status": random.choice(STATUSES)})
        for order_id in order_ids
    ]
    return await asyncio.gather(*tasks)


def reconciliation_errors(order: dict[str, Any]) -> list[str]:
    """Describe every way an order's money fails to add up."""
    errors = []
    total = Decimal("0.00")
    for item in order["items"]:
        unit_price = Decimal(str(item["unit_price"]))
        subtotal = Decimal(str(item["subtotal"]))
        if unit_price * item["quantity"] != subtotal:
            errors.append(f"item #{item['id']}: {item['quantity']} x {unit_price} != {subtotal}")
        total += subtotal
    if total != Decimal(str(order["total_amount"])):
        errors.append(f"total {order['total_amount']} != sum of subtotals {total}")
    return errors


async def verify_orders(client: httpx.AsyncClient, order_ids: list[int]) -> dict[int, list[str]]:
    fetched = await asyncio.gather(*(call(client, "fetch", "GET", f"/order/{order_id}") for order_id in order_ids))
    problems = {}
    for order_id, result in zip(order_ids, fetched):
        if not result["success"]:
            problems[order_id] = [f"could not fetch: {result['error']}"]
            continue
        errors = reconciliation_errors(result["data"])
        if errors:
            problems[order_id] = errors
    return problems


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

def summarize(label: str, results: list[dict[str, Any]]) -> None:
    successful = [r for r in results if r["success"]]
    by_status: dict[Any, int] = {}
    for r in results:
        if not r["success"]:
            by_status[r["status"]] = by_status.get(r["status"], 0) + 1

    print(f"\n{label}: {len(successful)}/{len(results)} successful")
    if successful:
        times = [r["time"] for r in successful]
        print(f"   Average: {round(sum(times) / len(times), 3)}s  Fastest: {min(times)}s  Slowest: {max(times)}s")
    for code, count in sorted(by_status.items(), key=lambda kv: str(kv[0])):
        print(f"   Refused with {code}: {count}")


async def run_simulation(num_orders: int = TOTAL_ORDERS, racers: int = RACERS_PER_ORDER) -> bool:
    """
    Run every phase and verify the results.

    Returns:
        True when every order reconciles
    """
    print("=" * 70)
    print("CONCURRENCY SIMULATION")
    print("=" * 70)
    print(f"Orders: {num_orders}   Racers per order: {racers}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        health = await client.get(f"{API_BASE_URL}/health")
        if health.status_code != 200 or health.json().get("status") != "operational":
            print(f"API is not healthy: {health.text}")
            return False

        menu_ids = await fetch_menu_ids(client)
        if not menu_ids:
            print("Menu is empty, run scripts/seed.py first")
            return False

        created = await asyncio.gather(*(create_order(client, menu_ids) for _ in range(num_orders)))
        summarize("Create", created)
        order_ids = [r["data"]["id"] for r in created if r["success"]]

        summarize("Modify race", await race_modifications(client, order_ids, menu_ids, racers))
        summarize("Status flips", await flip_statuses(client, order_ids))
        summarize("Modify race after flips", await race_modifications(client, order_ids, menu_ids, racers))

        problems = await verify_orders(client, order_ids)

    total_time = round(time.time() - start_time, 2)

    print("\n" + "=" * 70)
    print("VERIFICATION")
    print("=" * 70)
    print(f"Orders checked: {len(order_ids)}")
    print(f"Orders with problems: {len(problems)}")
    for order_id, errors in list(problems.items())[:5]:
        print(f"   Order #{order_id}: {'; '.join(errors)}")
    print(f"Total time: {total_time}s")
    print("=" * 70)

    return not problems


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Concurrency Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--racers", type=int, default=RACERS_PER_ORDER, help="Concurrent modify calls per order")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    ok = asyncio.run(run_simulation(args.orders, args.racers))
    sys.exit(0 if ok else 1)
