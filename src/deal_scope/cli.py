"""CLI for the deal-scope rental property analyzer."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv
from typing import Any, List, Optional

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

import typer
from rich.console import Console
from rich.table import Table

from .analysis import DataSourceLookups, PropertyAnalyzer
from .events import EventKind
from .config import get_lookup_settings, load_config
from .filters import filter_analyses, rank_analyses
from .log import configure_logging
from .models import favorite_snapshot
from .storage import Storage, export_csv, export_json

app = typer.Typer(
    name="deal-scope",
    help="Rental property analyzer - rent estimate, cash flow and deal score",
)
console = Console()

# badge -> (label, icon, rich style)
BADGE_STYLES: dict[str, tuple[str, str, str]] = {
    "excellent": ("Excellent Deal", "🟢", "bold green"),
    "good": ("Good Deal", "🟢", "green"),
    "fair": ("Fair Deal", "🟡", "yellow"),
    "risky": ("Risky", "🔴", "red"),
    "avoid": ("Avoid", "🔴", "bold red"),
    "insufficient-data": ("Insufficient Data", "⏳", "dim"),
}


def _get_output_dir(cfg: dict | None = None) -> Path:
    """Output directory for runs (``storage.output_dir`` in config)."""
    return Path((cfg or {}).get("storage", {}).get("output_dir", "output"))


def _get_storage(cfg: dict | None = None) -> Storage:
    return Storage(_get_output_dir(cfg) / "deal_scope.duckdb")


def _run_id() -> str:
    """Generate run ID from timestamp."""
    return datetime.utcnow().strftime("%Y%m%d_%H%M%S")


def _badge_cell(badge: str) -> str:
    label, icon, style = BADGE_STYLES.get(badge, (badge, "", "white"))
    return f"[{style}]{icon} {label}[/{style}]"


def _money(value: Any) -> str:
    return "-" if value is None else f"${value:,.0f}"


def _display_report(rows: list[dict], run_id: str, limit: int = 20) -> None:
    """Display ranked analyses. Rows are EnrichedAnalysis.to_dict() output."""
    if not rows:
        console.print("[yellow]No results to display.[/yellow]")
        return

    table = Table(title=f"Deals (Run {run_id})")
    table.add_column("Rank", style="dim")
    table.add_column("Address", style="cyan")
    table.add_column("Price", justify="right")
    table.add_column("Units", justify="right")
    table.add_column("Rent/unit", justify="right")
    table.add_column("Conf.", style="dim")
    table.add_column("CF/mo", justify="right")
    table.add_column("CoC", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Badge")

    for i, r in enumerate(rows[:limit], 1):
        prop = r.get("property", {})
        addr = prop.get("address", "") or "(no address)"
        addr_display = addr[:30] + "..." if len(addr) > 30 else addr
        roi = r.get("roi")
        table.add_row(
            str(i),
            addr_display,
            _money(prop.get("price")),
            str(r.get("unitCount", 1)),
            _money(r.get("rentEstimate")),
            r.get("rentConfidence", ""),
            _money(r.get("cashFlow")),
            "-" if roi is None else f"{roi:.1f}%",
            str(r.get("investmentScore", 0)),
            _badge_cell(r.get("investmentBadge", "")),
        )

    console.print(table)


def _load_records(
    file: Optional[Path],
    address: Optional[str],
    city: Optional[str],
    state: Optional[str],
    zip_code: Optional[str],
    price: Optional[float],
    beds: Optional[float],
    baths: Optional[float],
    sqft: Optional[float],
    property_type: Optional[str],
    units: Optional[int],
    rehab: Optional[float] = None,
) -> list[dict]:
    """Raw records from a JSON file (object or list) or from the CLI options."""
    if file is not None:
        with open(file) as f:
            data = json.load(f)
        return data if isinstance(data, list) else [data]
    record = {
        "address": address,
        "city": city,
        "state": state,
        "zip": zip_code,
        "price": price,
        "beds": beds,
        "baths": baths,
        "sqft": sqft,
        "propertyType": property_type,
        "unitCount": units,
        "rehabCosts": rehab,
    }
    return [{k: v for k, v in record.items() if v is not None}]


@app.command()
def analyze(
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="JSON file with one record or a list"),
    address: Optional[str] = typer.Option(None, "--address", "-a"),
    city: Optional[str] = typer.Option(None, "--city"),
    state: Optional[str] = typer.Option(None, "--state"),
    zip_code: Optional[str] = typer.Option(None, "--zip"),
    price: Optional[float] = typer.Option(None, "--price", "-p"),
    beds: Optional[float] = typer.Option(None, "--beds"),
    baths: Optional[float] = typer.Option(None, "--baths"),
    sqft: Optional[float] = typer.Option(None, "--sqft"),
    property_type: Optional[str] = typer.Option(None, "--type", help="e.g. 'Single Family', 'Duplex'"),
    units: Optional[int] = typer.Option(None, "--units"),
    rehab: Optional[float] = typer.Option(None, "--rehab", help="Rehab budget, counted as cash invested"),
    offline: bool = typer.Option(False, "--offline", help="Skip external lookups (heuristic rent only)"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> str:
    """Analyze one property (from options) or a batch (from --file)."""
    configure_logging()
    cfg = load_config(config_path)
    records = _load_records(
        file, address, city, state, zip_code, price, beds, baths, sqft, property_type, units, rehab
    )
    if not records or records == [{}]:
        console.print("[red]Nothing to analyze. Pass --file or --address/--price.[/red]")
        raise typer.Exit(1)

    lookups = None if offline else DataSourceLookups.from_settings(get_lookup_settings(cfg))
    analyzer = PropertyAnalyzer(config=cfg)
    console.print(f"[bold]Analyzing {len(records)} propert{'y' if len(records) == 1 else 'ies'}...[/bold]")
    results = asyncio.run(analyzer.analyze_many(records, lookups))

    failed = analyzer.events.of_kind(EventKind.LOOKUP_FAILED)
    for e in failed:
        console.print(f"[yellow]Warning: {e.fields.get('provider')}: {e.fields.get('reason')}[/yellow]")

    ranked = rank_analyses(results)
    run_id = _run_id()
    storage = _get_storage(cfg)
    storage.save_analyses(run_id, ranked)
    storage.close()

    out_dir = _get_output_dir(cfg)
    out_dir.mkdir(parents=True, exist_ok=True)
    csv_path = out_dir / f"analyses_{run_id}.csv"
    json_path = out_dir / f"analyses_{run_id}.json"
    export_csv(ranked, csv_path)
    export_json(ranked, json_path)

    _display_report([a.to_dict() for a in ranked], run_id)
    console.print(f"[green]Analyzed {len(results)} properties. Run ID: {run_id}[/green]")
    console.print(f"  CSV:  {csv_path}")
    console.print(f"  JSON: {json_path}")
    return run_id


@app.command()
def report(
    run_id: Optional[str] = typer.Option(None, "--run", "-r", help="Specific run ID (default: latest)"),
    badge: Optional[List[str]] = typer.Option(None, "--badge", "-b", help="Only these badges (repeatable)"),
    min_cash_flow: Optional[float] = typer.Option(None, "--min-cash-flow", help="Minimum monthly cash flow"),
    max_price: Optional[float] = typer.Option(None, "--max-price"),
    limit: int = typer.Option(20, "--limit", "-n", help="Max deals to show"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """Display a saved run, optionally filtered."""
    cfg = load_config(config_path)
    storage = _get_storage(cfg)
    run_id = run_id or storage.latest_run_id()
    rows = storage.load_analyses(run_id) if run_id else []
    storage.close()
    if not rows:
        console.print("[yellow]No saved analyses found. Run 'analyze' first.[/yellow]")
        raise typer.Exit(1)

    try:
        rows = filter_analyses(rows, badges=badge, min_cash_flow=min_cash_flow, max_price=max_price)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    _display_report(rank_analyses(rows), run_id, limit=limit)


@app.command()
def favorite(
    rank: int = typer.Argument(..., help="Rank of the property in the report (1 = best)"),
    run_id: Optional[str] = typer.Option(None, "--run", "-r", help="Specific run ID (default: latest)"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """Save a snapshot of a ranked property to favorites."""
    cfg = load_config(config_path)
    storage = _get_storage(cfg)
    rows = rank_analyses(storage.load_analyses(run_id))
    if rank < 1 or rank > len(rows):
        storage.close()
        console.print(f"[red]No property at rank {rank} ({len(rows)} in run).[/red]")
        raise typer.Exit(1)

    try:
        snapshot = favorite_snapshot(rows[rank - 1])
    except ValueError as e:
        storage.close()
        console.print(f"[red]Cannot save rank {rank}: {e}.[/red]")
        raise typer.Exit(1)
    storage.save_favorite(snapshot)
    storage.close()
    console.print(
        f"[green]Saved {snapshot.address or snapshot.property_id}[/green] "
        f"{_badge_cell(snapshot.investment_badge)} score {snapshot.quick_score}"
    )


@app.command()
def favorites(
    remove: Optional[str] = typer.Option(None, "--remove", help="Property id to remove"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
) -> None:
    """List saved favorites."""
    cfg = load_config(config_path)
    storage = _get_storage(cfg)
    if remove:
        storage.remove_favorite(remove)
        console.print(f"[dim]Removed {remove}[/dim]")
    saved = storage.load_favorites()
    storage.close()

    if not saved:
        console.print("[yellow]No favorites saved.[/yellow]")
        return

    table = Table(title="Favorites")
    table.add_column("Property", style="cyan")
    table.add_column("Rent", justify="right")
    table.add_column("CF/mo", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Badge")
    table.add_column("Saved", style="dim")
    for s in saved:
        table.add_row(
            s.address or s.property_id,
            _money(s.rent_estimate),
            _money(s.estimated_cash_flow),
            str(s.quick_score),
            _badge_cell(s.investment_badge),
            s.saved_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


if __name__ == "__main__":
    app()
