# src/cli/runner.py

"""Headless commands: catalog listing and backend health check."""

import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from src.backend.client import BackendClient
from src.backend.errors import BackendError
from src.config.settings import Settings
from src.models.product import Product
from src.services.catalog_adapter import CatalogAdapter

logger = logging.getLogger("gidersen.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _products_to_dicts(products: list[Product]) -> list[dict[str, object]]:
    """Serialise a product list to plain dicts for JSON output."""
    return [
        {
            "id": p.id,
            "name": p.name,
            "category": p.category,
            "marketplace_price": p.marketplace_price,
            "gidersen_price": p.gidersen_price,
            "discount": p.discount,
            "firm": p.firm,
            "location": p.location,
            "phone": p.phone,
            "image_url": p.image_url,
        }
        for p in products
    ]


def _print_table(products: list[Product]) -> None:
    """Render a Rich table of products to stdout."""
    table = Table(
        title="gidersen.com Ürünler",
        show_lines=True,
        title_style="bold dark_orange",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Ürün", max_width=50)
    table.add_column("Kategori", style="magenta")
    table.add_column("Satıcı")
    table.add_column("Pazar Yeri", justify="right", style="dim")
    table.add_column("Gidersen", justify="right", style="green")
    table.add_column("Kazanç", justify="center")

    sym = Settings.CURRENCY_SYMBOL
    for idx, p in enumerate(products, 1):
        table.add_row(
            str(idx),
            p.name[:50],
            p.category,
            p.firm or "—",
            f"{p.marketplace_price:,.2f} {sym}",
            f"{p.gidersen_price:,.2f} {sym}",
            f"%{p.discount}" if p.discount is not None else "—",
        )

    Console().print(table)


def list_catalog(
    output_format: str = "json",
    category: str | None = None,
    adapter: CatalogAdapter | None = None,
) -> int:
    """Print the active catalog and return an exit code (0=ok, 1=fail)."""
    adapter = adapter or CatalogAdapter(BackendClient())
    try:
        products = adapter.fetch_active_products()
    except BackendError as exc:
        logger.error("Catalog fetch failed: %s", exc)
        _err.print(f"[red]Error: {exc}[/red]")
        return 1

    if category:
        products = [p for p in products if p.category == category]
    _err.print(f"[green]✓ {len(products)} products[/green]")

    if output_format == "table":
        _print_table(products)
    else:
        json.dump(
            _products_to_dicts(products),
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")
    return 0


async def run_health_check() -> int:
    """Run a connectivity check against the backend services."""
    from src.services.health_checker import HealthChecker

    _err.print("[bold]Running backend health check...[/bold]")
    checker = HealthChecker()
    results = await checker.check_all()

    table = Table(
        title="Backend Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Endpoint", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = f"{r.latency_ms:.0f}ms" if r.latency_ms > 0 else "—"
        table.add_row(r.endpoint_id, status, latency, r.message)

    Console().print(table)
    return 1 if any_down else 0
