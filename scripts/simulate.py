"""
Order Rush Simulation Script

Fires many storefront carts at a running API concurrently to check that
every submission comes back with an order id and nothing is half-written.
Run from project root: python scripts/simulate.py

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import sys
import os
import random
import time
import argparse
from datetime import datetime
from decimal import Decimal
from typing import Any

import httpx
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:3000")
TOTAL_ORDERS = 50

# Sample data for random carts
FIRST_NAMES = ["Ana", "Bruno", "Carla", "Diego", "Eduarda", "Felipe", "Gabriela", "Heitor", "Isabela", "João"]
LAST_NAMES = ["Silva", "Santos", "Oliveira", "Souza", "Lima", "Pereira", "Costa", "Almeida", "Ribeiro", "Gomes"]
STREETS = ["Rua das Flores", "Av. Brasil", "Rua Sete de Setembro", "Av. Paulista", "Rua XV de Novembro"]
PAYMENT_METHODS = ["pix", "dinheiro", "cartao"]
NOTES = ["", "Sem cebola", "Troco para 100", "Tocar a campainha", "Deixar na portaria"]


def generate_random_customer() -> dict[str, str]:
    """Generate random customer info."""
    first = random.choice(FIRST_NAMES)
    last = random.choice(LAST_NAMES)
    return {
        "nome": f"{first} {last}",
        "telefone": f"119{random.randint(10000000, 99999999)}",
        "email": random.choice(["", f"{first.lower()}@example.com"]),
        "endereco": f"{random.choice(STREETS)}, {random.randint(1, 999)}",
    }


def generate_random_items(produtos: list[dict]) -> list[dict]:
    """Pick 0-4 products from the live catalog."""
    items = []
    for produto in random.sample(produtos, k=min(len(produtos), random.randint(0, 4))):
        items.append({
            "id": produto["id"],
            "quantidade": random.randint(1, 3),
            "preco": str(produto["preco"]),
        })
    return items


def generate_cart(produtos: list[dict]) -> dict[str, Any]:
    """Generate payload for /api/pedidos."""
    cliente = generate_random_customer()
    itens = generate_random_items(produtos)
    total = sum(Decimal(i["preco"]) * i["quantidade"] for i in itens)

    return {
        "cliente": cliente,
        "itens": itens,
        "endereco_entrega": cliente["endereco"],
        "forma_pagamento": random.choice(PAYMENT_METHODS),
        "observacoes": random.choice(NOTES),
        "total": f"{total:.2f}",
    }


async def send_order(
    client: httpx.AsyncClient,
    order_num: int,
    produtos: list[dict],
) -> dict[str, Any]:
    """Submit one cart."""
    payload = generate_cart(produtos)
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/pedidos",
            json=payload,
            timeout=30.0
        )
        elapsed = round(time.time() - start_time, 3)
        data = response.json()

        if response.status_code == 200 and data.get("success"):
            return {
                "order_num": order_num,
                "success": True,
                "order_id": data.get("pedidoId"),
                "items": len(payload["itens"]),
                "total": Decimal(payload["total"]),
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": str(data.get("error", response.text))[:100],
            "time": elapsed,
        }
    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """
    Run the order rush.

    Args:
        num_orders: Number of carts to submit concurrently
    """
    print("=" * 70)
    print("🔥 ORDER RUSH - CONCURRENT CART SUBMISSION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        response = await client.get(f"{API_BASE_URL}/api/produtos")
        produtos = response.json() if response.status_code == 200 else []
        if not produtos:
            print("\n⚠️ No available products; carts will have no items.")

        print("\n🚀 Firing orders...\n")
        tasks = [send_order(client, i + 1, produtos) for i in range(num_orders)]
        results = await asyncio.gather(*tasks)

    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)

    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        min_time = min(r["time"] for r in successful)
        max_time = max(r["time"] for r in successful)
        total_revenue = sum(r["total"] for r in successful)
        total_items = sum(r["items"] for r in successful)

        print(f"\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min_time}s")
        print(f"   Slowest: {max_time}s")
        print(f"   🧾 Line Items: {total_items}")
        print(f"   💰 Total Revenue: R$ {total_revenue:.2f}")

    if failed:
        print(f"\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("🔍 VERIFICATION STEPS")
    print("=" * 70)
    print("1. Run: python scripts/verify.py")
    print(f"2. Check {API_BASE_URL}/api/admin/pedidos for the new orders")
    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results
    }


async def preflight_checks() -> bool:
    """Check individual flows before the rush."""
    print("\n" + "=" * 70)
    print("🧪 PRE-FLIGHT CHECKS")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        print("\n1️⃣ Health Check...")
        try:
            response = await client.get(f"{API_BASE_URL}/health")
        except httpx.HTTPError as e:
            print(f"   ❌ API unreachable: {e}")
            return False
        if response.status_code != 200:
            print(f"   ❌ Failed: {response.text}")
            return False
        print(f"   ✅ {response.json().get('message')}")

        print("\n2️⃣ Store Config...")
        response = await client.get(f"{API_BASE_URL}/api/config")
        if response.status_code == 200:
            config = response.json()
            print(f"   ✅ loja_aberta={config.get('loja_aberta')}")
        else:
            print(f"   ❌ Failed: {response.text[:100]}")
            return False

        print("\n3️⃣ Single Order...")
        response = await client.get(f"{API_BASE_URL}/api/produtos")
        produtos = response.json() if response.status_code == 200 else []
        response = await client.post(f"{API_BASE_URL}/api/pedidos", json=generate_cart(produtos))
        data = response.json()
        if data.get("success"):
            print(f"   ✅ Order #{data.get('pedidoId')} created")
        else:
            print(f"   ⚠️ Response: {data.get('error', response.text)[:100]}")
            return False

    print("\n" + "=" * 70)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Order Rush Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--skip-checks", action="store_true", help="Skip pre-flight checks")
    args = parser.parse_args()

    if not args.skip_checks:
        success = asyncio.run(preflight_checks())
        if not success:
            print("\n❌ Pre-flight checks failed. Fix issues before running simulation.")
            sys.exit(1)

        print("\n✅ Pre-flight checks passed!")

    asyncio.run(run_simulation(num_orders=args.orders))
