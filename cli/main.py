"""
Property Indexer - Main CLI Application

Operator commands around the indexing pipeline: replay an event log into a
store, inspect the resulting state, derive content identifiers.
"""
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from config import get_config
from core.cid import derive_content_id, from_hex, HASH_LENGTH
from core.errors import IndexerError
from core.resilience import RetryConfig
from db.entities import AGGREGATE_TYPES, PropertyRecord
from db.sql_store import SqlEntityStore
from db.store import dump_snapshot
from integrations.content_fetcher import ContentFetcher
from integrations.ipfs import build_transport
from observability import shutdown_observability
from observability.tracing import create_span
from pipeline.event_processor import EventProcessor, EventProcessorConfig
from pipeline.events import read_event_log
from pipeline.runner import IndexerRunner

app = typer.Typer(
    name="property-indexer",
    help="Property Indexer - submission event indexing and aggregation",
    add_completion=False
)

console = Console()
logger = logging.getLogger("indexer.cli")


@app.command()
def cid(
    digest: str = typer.Argument(..., help="32-byte hash as hex (0x prefix optional)"),
):
    """Derive the content identifier for a hash."""
    try:
        raw = from_hex(digest)
    except ValueError:
        console.print(f"[red]Error: not valid hex: {digest}[/red]")
        raise typer.Exit(1)

    if len(raw) != HASH_LENGTH:
        console.print(f"[red]Error: expected {HASH_LENGTH} bytes, got {len(raw)}[/red]")
        raise typer.Exit(1)

    typer.echo(derive_content_id(raw))


@app.command()
def replay(
    events_file: Path = typer.Argument(..., help="JSON Lines event log, in delivery order"),
    database_url: Optional[str] = typer.Option(None, "--database-url", "-d", help="Override DATABASE_URL"),
    ipfs_url: Optional[str] = typer.Option(None, "--ipfs-url", help="Override IPFS_API_URL"),
    gateway_url: Optional[str] = typer.Option(None, "--gateway-url", help="Read through an HTTP gateway"),
    max_attempts: Optional[int] = typer.Option(None, "--max-attempts", "-n", min=1, help="Fetch attempts per document"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Replay an event log through the pipeline into the entity store."""
    if not events_file.exists():
        console.print(f"[red]Error: Event log not found: {events_file}[/red]")
        raise typer.Exit(1)

    config = get_config()
    if verbose:
        config.observability.log_level = "DEBUG"
    config.setup_observability()

    attempts = max_attempts or config.ipfs.max_attempts
    transport = build_transport(
        ipfs_url or config.ipfs.api_url,
        gateway_url or config.ipfs.gateway_url,
        timeout=config.ipfs.timeout,
    )
    fetcher = ContentFetcher(
        transport,
        RetryConfig(max_attempts=attempts, base_delay=config.ipfs.retry_base_delay),
    )
    store = SqlEntityStore(database_url or config.store.database_url, echo=config.store.echo)

    try:
        with store, transport:
            processor = EventProcessor(
                store,
                fetcher,
                EventProcessorConfig(content_attempts=attempts, link_attempts=attempts),
            )
            runner = IndexerRunner(processor)
            with create_span("replay", {"events.path": str(events_file)}):
                summary = runner.run(read_event_log(events_file))
    except IndexerError as e:
        logger.error(f"Replay of {events_file} failed: {e}")
        console.print(f"[red]Replay failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    finally:
        shutdown_observability()

    table = Table(title="Replay Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Events", str(summary.events))
    table.add_row("Labelled", str(summary.labelled))
    table.add_row("Timed out", str(summary.timeouts))
    table.add_row("Jurisdiction resolved", str(summary.resolved))
    table.add_row("Aggregate writes", str(summary.aggregate_writes))
    if summary.last_position:
        block, log_index = summary.last_position
        table.add_row("Last position", f"{block}:{log_index}")
    console.print(table)


@app.command()
def snapshot(
    database_url: Optional[str] = typer.Option(None, "--database-url", "-d", help="Override DATABASE_URL"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
    aggregates_only: bool = typer.Option(False, "--aggregates-only", help="Leave out PropertyRecords"),
):
    """Dump the store as deterministic JSON."""
    config = get_config()
    kinds = sorted(AGGREGATE_TYPES) if aggregates_only else None

    try:
        with SqlEntityStore(database_url or config.store.database_url) as store:
            text = dump_snapshot(store, kinds)
    except IndexerError as e:
        logger.error(f"Snapshot failed: {e}")
        console.print(f"[red]Snapshot failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text + "\n", encoding="utf-8")
        console.print(f"[green]Snapshot written to {output}[/green]")
    else:
        typer.echo(text)


@app.command()
def timeouts(
    database_url: Optional[str] = typer.Option(None, "--database-url", "-d", help="Override DATABASE_URL"),
):
    """List records whose content fetch timed out, for reprocessing."""
    config = get_config()

    try:
        with SqlEntityStore(database_url or config.store.database_url) as store:
            records = [r for r in store.iter_kind(PropertyRecord.kind) if r.timed_out]
    except IndexerError as e:
        logger.error(f"Listing timed-out records failed: {e}")
        console.print(f"[red]Store read failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if not records:
        console.print("[green]No timed-out records[/green]")
        return

    table = Table(title=f"Timed-out Records ({len(records)})")
    table.add_column("Record", style="cyan")
    table.add_column("Content ID")
    table.add_column("Block", justify="right")
    for record in records:
        table.add_row(record.id, record.content_id, str(record.block_number))
    console.print(table)


@app.command(name="config")
def show_config():
    """Show the effective configuration."""
    console.print(Panel.fit(
        "[bold blue]Property Indexer - Configuration[/bold blue]",
        border_style="blue"
    ))
    console.print_json(json.dumps(get_config().to_dict()))


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
