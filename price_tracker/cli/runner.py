# price_tracker/cli/runner.py

"""Headless CLI commands built on the scrape orchestrator."""

import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from price_tracker.models.errors import CatalogError, ScrapeError, StoreError
from price_tracker.models.observation import PriceObservation
from price_tracker.models.product import TrackedProduct
from price_tracker.services.scrape_orchestrator import (
    ScrapeOrchestrator,
    ScrapeOutcome,
)
from price_tracker.storage.catalog import (
    Catalog,
    is_valid_url,
    load_url_file,
    normalize_url,
)
from price_tracker.storage.observation_store import SQLiteObservationStore

logger = logging.getLogger("price_tracker.cli")

# Stderr console for status messages so stdout stays clean for tables
_err = Console(stderr=True)

_NAME_WIDTH = 65
_PRICE_WIDTH = 15


def _or_dash(value: object) -> str:
    return "—" if value is None else str(value)


def _summary_table(outcomes: list[ScrapeOutcome]) -> Table:
    """Build the ``Name | Price`` table from the successful outcomes."""
    table = Table(
        title="Latest Prices",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Name", max_width=_NAME_WIDTH, overflow="fold")
    table.add_column(
        "Price",
        justify="right",
        style="green",
        max_width=_PRICE_WIDTH,
        overflow="fold",
    )
    for outcome in outcomes:
        if outcome.observation is None:
            continue
        table.add_row(outcome.product.name, str(outcome.observation.value))
    return table


def _history_table(
    name: str, observations: list[PriceObservation],
) -> Table:
    table = Table(
        title=f"Price History: {name}",
        show_lines=False,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Observed (UTC)")
    table.add_column("Price", justify="right", style="green")
    for idx, o in enumerate(observations, 1):
        style = "yellow" if o.is_sold_out else None
        table.add_row(
            str(idx),
            o.observed_at.strftime("%Y-%m-%d %H:%M:%S"),
            str(o.value),
            style=style,
        )
    return table


async def _register_and_store(
    orchestrator: ScrapeOrchestrator,
    catalog: Catalog,
    store: SQLiteObservationStore,
    url: str,
    name: str | None,
) -> TrackedProduct:
    """Register one URL: first scrape, catalog insert, first append."""
    if name is not None and catalog.get(name) is not None:
        raise CatalogError(f"'{name}' is already tracked")
    product, observation = await orchestrator.register(url, name)
    stored = catalog.add(product)
    try:
        store.append(stored.name, observation)
    except StoreError:
        catalog.remove(stored.name)
        raise
    return stored


async def run_track(
    url: str,
    name: str | None = None,
    db_path: Path | None = None,
    orchestrator: ScrapeOrchestrator | None = None,
) -> int:
    """Start tracking a single product URL."""
    if not is_valid_url(url):
        _err.print(f"[red]Not an absolute http(s) URL: {url}[/red]")
        return 1

    catalog = Catalog(db_path)
    store = SQLiteObservationStore(db_path)
    orch = orchestrator or ScrapeOrchestrator()
    try:
        product = await _register_and_store(
            orch, catalog, store, normalize_url(url), name,
        )
    except (ScrapeError, CatalogError) as exc:
        logger.error("Could not track %s: %s", url, exc)
        _err.print(f"[red]Could not track {url}: {exc}[/red]")
        return 1
    finally:
        catalog.close()
        store.close()

    _err.print(f"[green]✓ Tracking '{product.name}'[/green]")
    return 0


async def run_import(
    path: Path,
    db_path: Path | None = None,
    orchestrator: ScrapeOrchestrator | None = None,
) -> int:
    """Track every URL listed in a text file, one per line."""
    if not path.exists():
        _err.print(f"[red]File not found: {path}[/red]")
        return 1

    urls = load_url_file(path)
    catalog = Catalog(db_path)
    store = SQLiteObservationStore(db_path)
    orch = orchestrator or ScrapeOrchestrator()
    failures = 0
    try:
        for url in urls:
            try:
                product = await _register_and_store(
                    orch, catalog, store, normalize_url(url), None,
                )
            except (ScrapeError, CatalogError) as exc:
                failures += 1
                logger.error("Could not track %s: %s", url, exc)
                _err.print(f"[red]✗ {url}: {exc}[/red]")
                continue
            _err.print(f"[green]✓ {product.name}[/green]")
    finally:
        catalog.close()
        store.close()

    _err.print(
        f"[bold]Imported {len(urls) - failures} of {len(urls)} URLs[/bold]"
    )
    return 1 if failures else 0


def run_untrack(
    name: str, purge: bool = False, db_path: Path | None = None,
) -> int:
    """Stop tracking a product, optionally deleting its history."""
    catalog = Catalog(db_path)
    store = SQLiteObservationStore(db_path)
    try:
        if not catalog.remove(name):
            _err.print(f"[yellow]'{name}' is not tracked[/yellow]")
            return 1
        if purge:
            removed = store.purge(name)
            _err.print(f"[dim]Deleted {removed} observations[/dim]")
    finally:
        catalog.close()
        store.close()
    _err.print(f"[green]✓ Stopped tracking '{name}'[/green]")
    return 0


def run_list(db_path: Path | None = None) -> int:
    """Print the catalog with each product's latest price."""
    catalog = Catalog(db_path)
    store = SQLiteObservationStore(db_path)
    try:
        products = catalog.list_products()
        latest = {o.product_id: o for o in store.all()}
    finally:
        catalog.close()
        store.close()

    if not products:
        _err.print("[yellow]No products tracked.[/yellow]")
        return 0

    table = Table(
        title="Tracked Products",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Name", max_width=_NAME_WIDTH, overflow="fold")
    table.add_column("Latest", justify="right", style="green")
    table.add_column("URL", overflow="fold", style="dim")
    for p in products:
        obs = latest.get(p.name)
        table.add_row(p.name, str(obs.value) if obs else "—", p.url)
    Console().print(table)
    return 0


async def run_scrape(
    db_path: Path | None = None,
    orchestrator: ScrapeOrchestrator | None = None,
) -> int:
    """Scrape the whole catalog once and print a summary table."""
    catalog = Catalog(db_path)
    store = SQLiteObservationStore(db_path)
    try:
        products = catalog.list_products()
        if not products:
            _err.print("[yellow]No products tracked.[/yellow]")
            return 0
        orch = orchestrator or ScrapeOrchestrator()
        if orch.store is None:
            orch.store = store
        _err.print(f"[bold]Scraping {len(products)} products...[/bold]")
        outcomes = await orch.run(products)
    finally:
        catalog.close()
        store.close()

    failed = [o for o in outcomes if not o.ok]
    for o in failed:
        reason = o.error.reason if o.error else "unknown"
        _err.print(f"[red]✗ {o.product.name}: {reason}[/red]")

    table = _summary_table(outcomes)
    logger.info("Table Data:\n%s", "\n".join(
        f"{o.product.name} | {o.observation.value}"
        for o in outcomes
        if o.observation is not None
    ))
    Console().print(table)
    _err.print(
        f"[green]✓ {len(outcomes) - len(failed)} observed[/green]"
        + (f", [red]{len(failed)} failed[/red]" if failed else "")
    )
    return 1 if failed else 0


def run_history(name: str, db_path: Path | None = None) -> int:
    """Print every observation of one product with a trend summary."""
    store = SQLiteObservationStore(db_path)
    try:
        observations = store.history(name)
        summary = store.trend_summary(name)
    finally:
        store.close()

    if not observations or summary is None:
        _err.print(f"[yellow]No observations for '{name}'.[/yellow]")
        return 1

    Console().print(_history_table(name, observations))
    _err.print(
        f"[dim]{summary['count']} observations, "
        f"{summary['sold_out_count']} sold out, "
        f"min {_or_dash(summary['min'])}, max {_or_dash(summary['max'])}, "
        f"latest {summary['latest']}[/dim]"
    )
    return 0


def run_chart(
    name: str, open_browser: bool = True, db_path: Path | None = None,
) -> int:
    """Export a price-over-time chart for one product."""
    from price_tracker.storage.chart_exporter import export_price_chart

    store = SQLiteObservationStore(db_path)
    try:
        path = export_price_chart(name, store, open_browser=open_browser)
    finally:
        store.close()

    if path is None:
        _err.print(
            f"[yellow]Not enough priced observations for '{name}'.[/yellow]"
        )
        return 1
    _err.print(f"[green]✓ Chart saved → {path}[/green]")
    return 0
