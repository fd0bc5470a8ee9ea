"""arcbridge CLI - inspect and edit ArcSight customer/connector links.

Usage:
    arcbridge customers --search acme
    arcbridge connectors <customer_id>
    arcbridge link <customer_id> <connector_id> [<connector_id> ...]
    arcbridge unlink <customer_id> <connector_id> [<connector_id> ...]
    arcbridge health
    arcbridge diagnose <customer_id>
"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from arcbridge import __version__
from arcbridge.client.api import ArcSightClient
from arcbridge.core.exceptions import ArcBridgeError
from arcbridge.core.logging_config import setup_logging
from arcbridge.core.settings import settings
from arcbridge.services.catalog import Catalog
from arcbridge.services.diagnostics import diagnose_customer
from arcbridge.services.health import HealthAggregator
from arcbridge.services.hierarchy import HierarchyBridge

T = TypeVar("T")

console = Console()

app = typer.Typer(
    name="arcbridge",
    help="ArcSight ESM customer/connector bridge",
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def _root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    setup_logging(verbose, level=None if verbose else settings.log_level)


def _run(operation: Callable[[ArcSightClient], Awaitable[T]]) -> T:
    """Run one operation with a fresh client, mapping domain errors to exit code 1."""

    async def runner() -> T:
        async with ArcSightClient() as client:
            return await operation(client)

    try:
        return asyncio.run(runner())
    except ArcBridgeError as e:
        console.print(f"[red]✗[/red] {type(e).__name__}: {e}")
        raise typer.Exit(code=1) from e


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


@app.command()
def version() -> None:
    """Show arcbridge version."""
    console.print(f"arcbridge {__version__}")


@app.command()
def customers(
    search: str | None = typer.Option(None, "--search", "-s", help="Filter by name, alias, external ID, city or country"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
) -> None:
    """List customers."""
    result = _run(lambda client: Catalog(client).list_customers(search))

    if as_json:
        _print_json([c.to_api() for c in result])
        return

    table = Table(title=f"Customers ({len(result)})", show_header=True)
    table.add_column("Resource ID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("External ID")
    table.add_column("Location")
    for c in result:
        location = ", ".join(v for v in (c.city, c.country) if v)
        table.add_row(c.resource_id, c.name, c.external_id or "", location)
    console.print(table)


@app.command()
def customer(customer_id: str = typer.Argument(..., help="Customer resource ID")) -> None:
    """Show one customer."""
    result = _run(lambda client: Catalog(client).get_customer(customer_id))
    _print_json(result.to_api())


@app.command()
def connectors(
    customer_id: str = typer.Argument(..., help="Customer resource ID"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
) -> None:
    """List connectors (and their devices) reported to a customer."""
    result = _run(lambda client: HierarchyBridge(client).connectors_for_customer(customer_id))

    if as_json:
        _print_json([c.to_api() for c in result])
        return

    table = Table(title=f"Connectors for {customer_id} ({len(result)})", show_header=True)
    table.add_column("Resource ID", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Status")
    table.add_column("Alive")
    table.add_column("Devices")
    for c in result:
        alive = "" if c.alive is None else ("[green]yes[/green]" if c.alive else "[red]no[/red]")
        devices = ", ".join(f"{d.device_vendor} {d.device_product}" for d in c.devices)
        table.add_row(c.resource_id, c.name, c.operational_status or "", alive, devices)
    console.print(table)


@app.command()
def link(
    customer_id: str = typer.Argument(..., help="Customer resource ID"),
    connector_ids: list[str] = typer.Argument(..., help="Connector resource IDs"),
) -> None:
    """Link connectors to a customer."""
    _run(lambda client: HierarchyBridge(client).link_connectors(customer_id, connector_ids))
    console.print(f"[green]✓[/green] Linked {len(connector_ids)} connector(s) to {customer_id}")


@app.command()
def unlink(
    customer_id: str = typer.Argument(..., help="Customer resource ID"),
    connector_ids: list[str] = typer.Argument(..., help="Connector resource IDs"),
) -> None:
    """Unlink connectors from a customer."""
    _run(lambda client: HierarchyBridge(client).unlink_connectors(customer_id, connector_ids))
    console.print(f"[green]✓[/green] Unlinked {len(connector_ids)} connector(s) from {customer_id}")


@app.command()
def health(as_json: bool = typer.Option(False, "--json", help="Print raw JSON")) -> None:
    """Show live/dead connector counts."""
    result = _run(lambda client: HealthAggregator(client).connector_health())

    if as_json:
        _print_json(result.to_api())
        return

    console.print(f"[green]Live:[/green] {len(result.live)}")
    console.print(f"[red]Dead:[/red] {len(result.dead)}")
    console.print(f"Total: {result.total}")


@app.command()
def diagnose(customer_id: str = typer.Argument(..., help="Customer resource ID")) -> None:
    """Trace each step of resolving a customer's connectors."""
    report = _run(lambda client: diagnose_customer(customer_id, client))
    _print_json(report.model_dump(by_alias=True))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
