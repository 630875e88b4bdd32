from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table


def _describe(data: Any) -> str:
    """Short, single-line rendering of an outcome's data."""
    if data is None:
        return "-"
    if isinstance(data, str):
        return data
    if isinstance(data, dict) and "code" in data:
        error = data.get("error")
        message = error.get("message") if isinstance(error, dict) else None
        return f"code {data['code']}: {message}" if message else f"code {data['code']}"
    return json.dumps(data, default=str, sort_keys=True)


def print_results(results: List[Dict[str, Any]], console: Optional[Console] = None) -> None:
    """
    Render validation results as a rich table.

    One row per validated product, in submission order, with a summary caption.
    """
    console = console or Console()

    if not results:
        console.print("[yellow]No results to display.[/yellow]")
        return

    accepted = sum(1 for r in results if r.get("ok"))
    distinct = len({r.get("product_id") for r in results})

    table = Table(
        title="Purchase Validation Results",
        box=box.ROUNDED,
        caption=f"{accepted}/{len(results)} accepted │ {distinct} distinct product(s)",
    )

    table.add_column("#", justify="right", style="dim")
    table.add_column("Product", style="cyan", no_wrap=True)
    table.add_column("Status", justify="center")
    table.add_column("Details", style="magenta", overflow="fold")

    for index, res in enumerate(results, start=1):
        status = "[bold green]valid[/bold green]" if res.get("ok") else "[bold red]rejected[/bold red]"
        table.add_row(str(index), str(res.get("product_id", "Unknown")), status, _describe(res.get("data")))

    console.print(table)


__all__ = ["print_results"]
