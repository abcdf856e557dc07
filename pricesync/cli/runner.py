# pricesync/cli/runner.py

"""Headless CLI commands built on :class:`PriceSyncService`."""

import json
import logging
import sys
import time
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from pricesync.config.settings import Settings
from pricesync.errors import ConfigurationError, PersistenceError
from pricesync.services.price_sync import PriceSyncService
from pricesync.storage.catalog_importer import import_catalog

logger = logging.getLogger("pricesync.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def resolve_platforms(platform_csv: str | None) -> list[str] | None:
    """Map a comma-separated list of platform ids to a validated list.

    Returns ``None`` (all platforms) when *platform_csv* is ``None``.
    Raises ``SystemExit`` on unknown ids.
    """
    if platform_csv is None:
        return None
    available = Settings.default_platform_ids()
    requested = [
        p.strip() for p in platform_csv.split(",") if p.strip()
    ]
    unknown = [r for r in requested if r not in available]
    if unknown:
        _err.print(
            f"[red]Unknown platform(s): {', '.join(unknown)}[/red]"
        )
        _err.print(f"[dim]Available: {', '.join(available)}[/dim]")
        raise SystemExit(EXIT_FAILED)
    return requested


def _dump_json(data: Any) -> None:
    json.dump(data, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def _format_rupees(amount: float) -> str:
    return f"₹{amount:,.0f}" if amount == int(amount) else f"₹{amount:,.2f}"


def _platform_label(service: PriceSyncService, platform_id: str) -> str:
    platform = service.platforms.get(platform_id)
    if platform is None:
        return platform_id
    if platform.color:
        return f"[{platform.color}]{platform.name}[/]"
    return platform.name


def _print_sync_table(
    service: PriceSyncService,
    response: dict[str, Any],
) -> None:
    """Render one product's sync results."""
    table = Table(
        title="Price Sync",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Platform")
    table.add_column("Price", justify="right", style="green")
    table.add_column("MRP", justify="right", style="dim")
    table.add_column("Stock", justify="center")

    results: dict[str, Any] = response.get("results", {})
    for platform_id, obs in results.items():
        label = _platform_label(service, platform_id)
        if obs is None:
            table.add_row(label, "—", "—", "[red]no price[/red]")
            continue
        table.add_row(
            label,
            _format_rupees(obs["price"]),
            _format_rupees(obs["mrp"]),
            "✓" if obs["available"] else "[yellow]out[/yellow]",
        )
    Console().print(table)


def run_sync_one(
    product_id: str | None,
    product_name: str | None,
    platform_csv: str | None,
    output_format: str,
) -> int:
    """Sync one product and return an exit code."""
    platforms = resolve_platforms(platform_csv)
    service = PriceSyncService()
    try:
        _err.print(
            f"[bold]Syncing:[/bold] {product_name or product_id}  "
            f"[dim]region={Settings.REGION_PINCODE}[/dim]"
        )
        try:
            response = service.sync_one_product(
                product_id, product_name, platforms,
            )
        except ConfigurationError as exc:
            _err.print(f"[red]Configuration error: {exc}[/red]")
            return EXIT_CONFIG

        if not response.get("success"):
            _err.print(f"[red]Error: {response.get('error')}[/red]")
            return EXIT_FAILED

        if output_format == "json":
            _dump_json(response)
        else:
            _print_sync_table(service, response)
        _err.print(f"[green]{response['message']}[/green]")
    finally:
        service.close()

    results: dict[str, Any] = response.get("results", {})
    found = sum(1 for r in results.values() if r is not None)
    return EXIT_OK if found else EXIT_FAILED


def run_sync_all(
    max_minutes: float | None,
    output_format: str,
) -> int:
    """Sync the whole catalog and return an exit code."""
    deadline = (
        time.monotonic() + max_minutes * 60
        if max_minutes is not None
        else None
    )
    service = PriceSyncService()
    try:
        _err.print("[bold]Starting price scrape for all products...[/bold]")
        summary = service.sync_all_products(deadline=deadline)
    except ConfigurationError as exc:
        _err.print(f"[red]Configuration error: {exc}[/red]")
        return EXIT_CONFIG
    finally:
        service.close()

    if output_format == "json":
        _dump_json(summary)
    elif summary.get("success"):
        _err.print(
            f"[green]✓ {summary['successCount']} ok[/green], "
            f"[red]{summary['errorCount']} errors[/red] "
            f"of {summary['totalProducts']} products"
        )
        if summary.get("message"):
            _err.print(f"[dim]{summary['message']}[/dim]")
    else:
        _err.print(f"[red]Error: {summary.get('error')}[/red]")

    if not summary.get("success") or summary.get("errorCount"):
        return EXIT_FAILED
    return EXIT_OK


def run_search(
    query: str | None,
    barcode: str | None,
    category: str | None,
    output_format: str,
) -> int:
    """List matching products with their stored prices."""
    service = PriceSyncService()
    try:
        listings = service.search_products(
            search=query, barcode=barcode, category=category,
        )

        if not listings:
            _err.print("[yellow]No products found.[/yellow]")
            return EXIT_FAILED

        if output_format == "json":
            _dump_json([
                {
                    "id": item.product.id,
                    "name": item.product.name,
                    "brand": item.product.brand,
                    "size": item.product.size,
                    "category": item.product.category,
                    "barcode": item.product.barcode,
                    "prices": [
                        {
                            "platform_id": r.platform_id,
                            "price": r.price,
                            "mrp": r.mrp,
                            "discount": r.discount,
                            "available": r.available,
                            "price_change": r.price_change,
                            "last_updated": r.last_updated.isoformat(),
                        }
                        for r in item.prices
                    ],
                }
                for item in listings
            ])
            return EXIT_OK

        table = Table(
            title="Products",
            show_lines=True,
            title_style="bold cyan",
        )
        table.add_column("Product", max_width=40)
        table.add_column("Barcode", style="dim")
        table.add_column("Best price", justify="right", style="green")
        table.add_column("Platform")
        table.add_column("Prices", style="dim")

        for item in listings:
            p = item.product
            best = item.cheapest
            table.add_row(
                f"{p.brand} {p.name} [dim]{p.size}[/dim]".strip(),
                p.barcode or "—",
                _format_rupees(best.price) if best else "—",
                _platform_label(service, best.platform_id) if best else "—",
                str(len(item.prices)),
            )
        Console().print(table)
        return EXIT_OK
    finally:
        service.close()


def run_history(
    product_id: str,
    platform_id: str | None,
    output_format: str,
) -> int:
    """Show a product's stored price history."""
    service = PriceSyncService()
    try:
        history = service.price_history(product_id, platform_id)
        if not history:
            _err.print("[yellow]No price history recorded.[/yellow]")
            return EXIT_FAILED

        if output_format == "json":
            _dump_json([
                {
                    "platform_id": h.platform_id,
                    "price": h.price,
                    "mrp": h.mrp,
                    "recorded_at": h.recorded_at.isoformat(),
                }
                for h in history
            ])
            return EXIT_OK

        table = Table(
            title=f"Price history: {product_id}",
            title_style="bold cyan",
        )
        table.add_column("Recorded", style="dim")
        table.add_column("Platform")
        table.add_column("Price", justify="right", style="green")
        table.add_column("MRP", justify="right")
        for h in history:
            table.add_row(
                h.recorded_at.strftime("%Y-%m-%d %H:%M"),
                _platform_label(service, h.platform_id),
                _format_rupees(h.price),
                _format_rupees(h.mrp),
            )
        Console().print(table)
        return EXIT_OK
    finally:
        service.close()


def run_import_products(filepath: Path) -> int:
    """Load a CSV/JSON catalog file into the store."""
    if not filepath.exists():
        _err.print(f"[red]File not found: {filepath}[/red]")
        return EXIT_FAILED

    service = PriceSyncService()
    try:
        count = import_catalog(service.store, filepath)
    except (ValueError, PersistenceError) as exc:
        logger.error("Import failed: %s", exc, exc_info=True)
        _err.print(f"[red]Import failed: {exc}[/red]")
        return EXIT_FAILED
    finally:
        service.close()

    _err.print(f"[green]✓ Imported {count:,} products[/green]")
    return EXIT_OK
