"""
Run a list of products through a PurchaseValidator and collect the outcomes.

Usage (example from CLI):
    from purchase_validator.runner import run_validations

    results = asyncio.run(run_validations(products, endpoint="https://validator.example"))

Outputs are saved to `results/` when `persist=True`:
- `results/latest.json` (last run)
- `results/run-<timestamp>.json` (timestamped archive)
"""

from __future__ import annotations

import asyncio
import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from purchase_validator.domain.models import Product
from purchase_validator.transport.abstract import ValidationTransport
from purchase_validator.transport.http import HttpxTransport
from purchase_validator.utils.logging import get_logger
from purchase_validator.validator import PurchaseValidator

log = get_logger(__name__)


def load_products(path: Path | str) -> List[Product]:
    """Read a JSON array (or a single object) of products from disk."""
    with Path(path).open("r", encoding="utf-8") as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = [raw]
    return [Product.model_validate(item) for item in raw]


def _persist_results(payload: dict, results_dir: Path) -> None:
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"run-{timestamp}.json"

    for path in (latest_path, archive_path):
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True, default=str)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})


async def run_validations(
    products: Iterable[Product],
    endpoint: Optional[str] = None,
    transport: Optional[ValidationTransport] = None,
    delay: Optional[float] = None,
    results_dir: Path | str = "results",
    persist: bool = False,
) -> List[Dict[str, Any]]:
    """
    Validate every product and return one result dict per product, in order.

    Parameters
    ----------
    products : iterable[Product]
        Products to validate. Repeated ids are coalesced into one call.
    endpoint : str | None
        Validation service URL. None accepts every product unchecked.
    transport : ValidationTransport | None
        Defaults to an HttpxTransport owned (and closed) by this run.
    delay : float | None
        Debounce delay override in seconds.
    results_dir : Path | str
        Directory to store JSON artifacts.
    persist : bool
        Whether to write results to disk.
    """
    owned_transport = transport is None
    effective_transport = transport if transport is not None else HttpxTransport()
    validator = PurchaseValidator(validator=endpoint, transport=effective_transport, delay=delay)

    items = list(products)
    log.info(
        f"[VALIDATION START] {len(items)} product(s)",
        extra={"products": len(items), "endpoint": endpoint},
    )
    start = time.perf_counter()
    try:
        outcomes = await asyncio.gather(*(validator.validate_async(p) for p in items))
    finally:
        if owned_transport:
            await effective_transport.aclose()
    duration = time.perf_counter() - start

    results: List[Dict[str, Any]] = []
    for product, outcome in zip(items, outcomes):
        data = outcome.data
        if isinstance(data, Product):
            data = data.to_payload()
        results.append({"product_id": product.id, "ok": outcome.ok, "data": data})

    accepted = sum(1 for r in results if r["ok"])
    log.info(
        f"[VALIDATION COMPLETE] {accepted}/{len(results)} accepted",
        extra={"accepted": accepted, "total": len(results), "duration": round(duration, 3)},
    )

    if persist:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoint": endpoint,
            "duration_seconds": round(duration, 3),
            "results": results,
        }
        _persist_results(payload, Path(results_dir))

    return results


__all__ = ["load_products", "run_validations"]
