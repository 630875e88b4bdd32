from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import typer

from purchase_validator.config import get_settings
from purchase_validator.reporter import print_results
from purchase_validator.runner import load_products, run_validations
from purchase_validator.utils.logging import configure_logging

app = typer.Typer(help="Purchase validator CLI.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"validator={settings.validator_url or '<none: bypass>'} | "
        f"debounce={settings.debounce_ms}ms timeout={settings.http_timeout_seconds}s "
        f"username={settings.application_username or '<unset>'}"
    )


@app.command()
def validate(
    products_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="JSON file holding a product object or an array of products.",
    ),
    validator: Optional[str] = typer.Option(
        None,
        "--validator",
        "-v",
        help="Validation service URL (default from VALIDATOR_URL; none means bypass).",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON instead of a table."),
    persist: bool = typer.Option(False, "--persist", help="Write results under results/."),
    results_dir: Path = typer.Option(Path("results"), "--results-dir", help="Where to persist results."),
) -> None:
    """
    Validate every product in a file, coalescing repeated product ids.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    endpoint = validator or settings.validator_url

    products = load_products(products_file)
    results = asyncio.run(
        run_validations(products, endpoint=endpoint, results_dir=results_dir, persist=persist)
    )

    if as_json:
        typer.echo(json.dumps(results, indent=2, default=str))
    else:
        print_results(results)

    if not all(r["ok"] for r in results):
        raise typer.Exit(code=1)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
