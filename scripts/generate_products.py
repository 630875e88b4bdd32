"""
Sample product generator for the purchase validator CLI.

Emits a deterministic JSON array of purchased products. Product ids repeat on
purpose so that a `validate` run shows requests being coalesced.
"""

from __future__ import annotations

import json
import random
import sys
import time
from pathlib import Path
from typing import Any

import typer

app = typer.Typer(help="Generate sample purchased products as JSON.")

_CATALOG = [
    ("subscription.monthly", "monthly1", "paid subscription", 12_990_000),
    ("subscription.yearly", "yearly1", "paid subscription", 99_990_000),
    ("coins.100", "coins100", "consumable", 990_000),
    ("premium.unlock", "premium", "non consumable", 4_990_000),
]
_STORES = ["ios-appstore", "android-playstore"]


def _transaction(rng: random.Random, store: str) -> dict[str, Any]:
    transaction_id = f"{rng.randrange(10**15, 10**16)}"
    if store == "ios-appstore":
        return {
            "type": store,
            "id": transaction_id,
            "appStoreReceipt": f"receipt-{rng.getrandbits(64):016x}",
        }
    return {
        "type": store,
        "id": f"GPA.{transaction_id}",
        "purchaseToken": f"token-{rng.getrandbits(64):016x}",
        "signature": f"sig-{rng.getrandbits(32):08x}",
    }


def _generate_products(count: int, seed: int, distinct: int | None = None) -> list[dict[str, Any]]:
    rng = random.Random(seed)
    catalog = _CATALOG[: distinct or len(_CATALOG)]
    products: list[dict[str, Any]] = []
    for _ in range(count):
        product_id, alias, product_type, price_micros = rng.choice(catalog)
        products.append(
            {
                "id": product_id,
                "alias": alias,
                "type": product_type,
                "currency": "USD",
                "price": f"${price_micros / 1_000_000:.2f}",
                "priceMicros": price_micros,
                "state": "approved",
                "transaction": _transaction(rng, rng.choice(_STORES)),
            }
        )
    return products


@app.command()
def main(
    count: int = typer.Option(
        20,
        "--count",
        "-n",
        help="Number of products to generate.",
    ),
    distinct: int | None = typer.Option(
        None,
        "--distinct",
        "-d",
        min=1,
        max=len(_CATALOG),
        help="Limit the number of distinct product ids.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path = typer.Option(
        Path("products.json"),
        "--output",
        "-o",
        help="JSON output path.",
    ),
) -> None:
    """
    Generate sample purchased products and write them as a JSON array.
    """
    start = time.perf_counter()
    products = _generate_products(count, seed=seed, distinct=distinct)
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as f:
        json.dump(products, f, indent=2)
    distinct_ids = len({p["id"] for p in products})
    typer.echo(
        f"Wrote {count} product(s), {distinct_ids} distinct id(s) -> {output} "
        f"in {time.perf_counter() - start:.2f}s"
    )


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
