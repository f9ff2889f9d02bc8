"""
Order Reconciliation Script

Checks the orders database for integrity problems after a simulation run.
Run from project root: python scripts/verify.py

Author: Khalil_Bannouri
Version: 2.0.0
"""

import os
import sys
from datetime import datetime

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pandas as pd
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError

from nahora_delivery.core.config import get_settings


def sync_url(url: str) -> str:
    """Swap async-only drivers for their blocking counterparts."""
    return url.replace("+aiosqlite", "").replace("+asyncpg", "+psycopg")


def load_frames(url: str) -> dict[str, pd.DataFrame]:
    engine = create_engine(url)
    try:
        with engine.connect() as conn:
            return {
                "clientes": pd.read_sql("SELECT id, nome, telefone FROM clientes", conn),
                "pedidos": pd.read_sql("SELECT id, cliente_id, total, created_at FROM pedidos", conn),
                "itens": pd.read_sql(
                    "SELECT pedido_id, quantidade, preco_unitario FROM pedido_itens", conn
                ),
            }
    finally:
        engine.dispose()


def verify_orders() -> bool:
    """Verify order integrity after simulation."""
    url = sync_url(get_settings().database_url)

    print("=" * 60)
    print("🔍 ORDER VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"🗄️  Database: {url.rsplit('@', 1)[-1]}")
    print("=" * 60)

    try:
        frames = load_frames(url)
        print(f"\n✅ Tables loaded successfully!")
    except SQLAlchemyError as e:
        print(f"\n❌ Could not read the database: {e}")
        print("   Start the API once so the schema exists: nahora-delivery")
        return False

    clientes = frames["clientes"]
    pedidos = frames["pedidos"]
    itens = frames["itens"]

    print(f"\n📊 STATISTICS:")
    print(f"   Customers: {len(clientes)}")
    print(f"   Orders: {len(pedidos)}")
    print(f"   Order Lines: {len(itens)}")

    ok = True

    # Orders with no lines
    empty = pedidos[~pedidos["id"].isin(itens["pedido_id"])]
    if len(empty) > 0:
        print(f"\n⚠️ {len(empty)} orders without lines: {empty['id'].tolist()[:10]}")
    else:
        print(f"\n✅ Every order has lines")

    # Submitted total vs sum of lines
    itens = itens.assign(subtotal=itens["quantidade"] * itens["preco_unitario"].astype(float))
    sums = itens.groupby("pedido_id")["subtotal"].sum().rename("soma_itens")
    merged = pedidos.set_index("id").join(sums, how="inner")
    mismatched = merged[(merged["total"].astype(float) - merged["soma_itens"]).abs() > 0.005]
    if len(mismatched) > 0:
        ok = False
        print(f"\n⚠️ {len(mismatched)} orders whose total differs from their lines:")
        print(mismatched[["total", "soma_itens"]].head(10).to_string())
    else:
        print(f"✅ Order totals match line sums")

    # Orphaned orders
    orphans = pedidos[~pedidos["cliente_id"].isin(clientes["id"])]
    if len(orphans) > 0:
        ok = False
        print(f"\n❌ {len(orphans)} orders point at missing customers!")
    else:
        print(f"✅ No orphaned orders")

    # Repeat customers are stored once per order
    repeats = clientes["telefone"].value_counts()
    repeats = repeats[repeats > 1]
    if len(repeats) > 0:
        print(f"\nℹ️  {len(repeats)} phone numbers appear on more than one customer row")

    if len(pedidos) > 0:
        totals = pedidos["total"].astype(float)
        print(f"\n💰 REVENUE:")
        print(f"   Total: R$ {totals.sum():.2f}")
        print(f"   Average: R$ {totals.mean():.2f}")

        print(f"\n📋 RECENT ORDERS:")
        print("-" * 60)
        recent = pedidos.merge(clientes, left_on="cliente_id", right_on="id", suffixes=("", "_cliente"))
        recent = recent.sort_values(["created_at", "id"]).tail(5)
        print(recent[["id", "nome", "telefone", "total"]].to_string(index=False))

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE" if ok else "❌ VERIFICATION FOUND PROBLEMS")
    print("=" * 60)

    return ok


if __name__ == "__main__":
    sys.exit(0 if verify_orders() else 1)
