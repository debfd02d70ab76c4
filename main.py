#!/usr/bin/env python3
"""
Dram - News Signal Monitor
==========================

Main application entry point with CLI interface.

Usage:
    python main.py --help                    # Show all commands
    python main.py run                       # Fetch, dedup, triage and analyze
    python main.py run --no-analysis         # Skip deep analysis of act_now items
    python main.py sources                   # List configured sources
    python main.py fetch-source SOURCE_ID    # Fetch one source without touching the store
    python main.py seen-status               # Show seen-store statistics
    python main.py seen-clear                # Forget every seen item
"""

import sys
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from dram.ai.providers.claude_cli import ClaudeCliProvider
from dram.config.settings import DramSettings, get_settings
from dram.config.sources import load_sources
from dram.models import FeedSource
from dram.processing.feed_fetcher import FeedFetcher
from dram.processing.pipeline import IngestionPipeline, PipelineResult
from dram.processing.triage import TriageOrchestrator
from dram.storage.seen_store import SeenStore
from dram.utils.exceptions import DramError, get_user_friendly_message
from dram.utils.logging import configure_application_logging

console = Console()
logger = logging.getLogger(__name__)


def _load_settings_or_exit(debug: bool) -> DramSettings:
    try:
        settings = get_settings()
    except DramError as e:
        console.print(f"[bold red]❌ {escape(e.user_message)}[/bold red]")
        sys.exit(1)

    if debug:
        settings.debug = True

    configure_application_logging(
        log_level=settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
    )
    return settings


def _load_sources_or_exit(settings: DramSettings, sources_file: Optional[str]) -> List[FeedSource]:
    try:
        return load_sources(sources_file or settings.sources_file)
    except DramError as e:
        console.print(f"[bold red]❌ {escape(e.user_message)}[/bold red]")
        sys.exit(1)


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """Dram - scored news signals from RSS, Atom and web sources."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option('--sources', 'sources_file', type=click.Path(dir_okay=False), help='JSON source catalog')
@click.option('--no-analysis', is_flag=True, help='Skip deep analysis of act_now items')
@click.pass_context
def run(ctx, sources_file, no_analysis):
    """Run the full pipeline once."""
    settings = _load_settings_or_exit(ctx.obj['debug'])
    sources = _load_sources_or_exit(settings, sources_file)

    console.print(f"[bold blue]📡 Checking {len(sources)} sources[/bold blue]")

    store = SeenStore.from_settings(settings.store)
    orchestrator = TriageOrchestrator(
        ClaudeCliProvider(settings.classification),
        batch_size=settings.classification.batch_size,
    )
    pipeline = IngestionPipeline(
        FeedFetcher(settings.fetch), store, orchestrator, analyze=not no_analysis
    )

    try:
        with store.locked():
            result = asyncio.run(pipeline.run(sources))
    except DramError as e:
        logger.error(f"Run failed: {e}")
        console.print(f"[bold red]❌ {escape(get_user_friendly_message(e))}[/bold red]")
        sys.exit(1)

    _print_run_result(result)


def _print_run_result(result: PipelineResult) -> None:
    table = Table(title="Run Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Sources", f"{result.successful_sources}/{result.total_sources} fetched")
    table.add_row("Items fetched", str(result.items_fetched))
    table.add_row("New items", str(result.new_items))
    for level, count in result.score_counts.items():
        table.add_row(f"Scored {level}", str(count))
    table.add_row("Duration", f"{result.total_time_seconds:.2f}s")
    console.print(table)

    for error in result.errors:
        console.print(f"[yellow]⚠️  {escape(error)}[/yellow]")

    if not result.has_findings:
        console.print("[green]✅ Nothing actionable this run[/green]")
        return

    for item in result.analyzed:
        console.print(f"\n[bold red]🔥 {escape(item.title)}[/bold red]  [dim]{escape(item.source_name)}[/dim]")
        console.print(f"   🔗 {escape(item.url)}")
        if item.what_happened:
            console.print(f"   [bold]What happened:[/bold] {escape(item.what_happened)}")
        if item.why_it_matters:
            console.print(f"   [bold]Why it matters:[/bold] {escape(item.why_it_matters)}")
        if item.whats_the_move:
            console.print(f"   [bold]Move:[/bold] {escape(item.whats_the_move)}")
        if not (item.what_happened or item.why_it_matters):
            console.print(f"   {escape(item.score_reason)}")

    if result.watch:
        console.print(f"\n[bold yellow]👀 Watch ({len(result.watch)})[/bold yellow]")
        for item in result.watch:
            console.print(f"• {escape(item.title)} [dim]({escape(item.source_name)})[/dim]")
            console.print(f"  {escape(item.score_reason)}")
            console.print(f"  🔗 {escape(item.url)}")


@cli.command()
@click.option('--sources', 'sources_file', type=click.Path(dir_okay=False), help='JSON source catalog')
@click.pass_context
def sources(ctx, sources_file):
    """List configured sources."""
    settings = _load_settings_or_exit(ctx.obj['debug'])
    catalog = _load_sources_or_exit(settings, sources_file)

    table = Table(title=f"Configured Sources ({len(catalog)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Type", style="magenta")
    table.add_column("Category", style="green")
    table.add_column("URL", style="dim")

    for source in catalog:
        table.add_row(source.id, source.name, source.type.value, source.category.value, source.url)

    console.print(table)


@cli.command()
@click.argument('source_id')
@click.option('--sources', 'sources_file', type=click.Path(dir_okay=False), help='JSON source catalog')
@click.option('--limit', default=10, show_default=True, help='Items to display')
@click.pass_context
def fetch_source(ctx, source_id, sources_file, limit):
    """Fetch and parse a single source without touching the seen store."""
    settings = _load_settings_or_exit(ctx.obj['debug'])
    catalog = _load_sources_or_exit(settings, sources_file)

    source = next((s for s in catalog if s.id == source_id), None)
    if source is None:
        console.print(f"[bold red]❌ Unknown source: {escape(source_id)}[/bold red]")
        sys.exit(1)

    console.print(f"[bold blue]📡 Fetching {escape(source.name)}: {escape(source.url)}[/bold blue]")

    fetcher = FeedFetcher(settings.fetch)
    results = asyncio.run(fetcher.fetch_sources([source]))
    result = results[0]

    if not result.success:
        console.print(f"[bold red]❌ {escape(result.error or 'Fetch failed')}[/bold red]")
        sys.exit(1)

    console.print(f"[bold green]✅ {result.item_count} items[/bold green]")
    for i, item in enumerate(result.items[:limit], 1):
        console.print(f"\n{i}. [bold]{escape(item.title)}[/bold]")
        console.print(f"   📅 Published: {escape(item.published_at)}")
        console.print(f"   🔗 Link: {escape(item.url)}")
        if item.summary:
            console.print(f"   📝 {escape(item.summary[:200])}")


@cli.command()
@click.pass_context
def seen_status(ctx):
    """Show seen-store statistics."""
    settings = _load_settings_or_exit(ctx.obj['debug'])
    store = SeenStore.from_settings(settings.store)
    stats = store.stats()

    table = Table(title="Seen Store")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Path", str(store.path))
    table.add_row("Retention", f"{settings.store.ttl_days} days")
    table.add_row("Entries", str(stats.entry_count))
    table.add_row("Oldest", stats.oldest.isoformat() if stats.oldest else "-")
    table.add_row("Newest", stats.newest.isoformat() if stats.newest else "-")
    console.print(table)


@cli.command()
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
def seen_clear(ctx, yes):
    """Forget every seen item so the next run reprocesses everything."""
    settings = _load_settings_or_exit(ctx.obj['debug'])
    store = SeenStore.from_settings(settings.store)

    if not yes and not click.confirm(f"Clear {store.path}?"):
        console.print("[yellow]Cancelled[/yellow]")
        return

    try:
        with store.locked():
            store.clear()
    except DramError as e:
        console.print(f"[bold red]❌ {escape(get_user_friendly_message(e))}[/bold red]")
        sys.exit(1)

    console.print("[bold green]✅ Seen store cleared[/bold green]")


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 Dram interrupted by user[/yellow]")
        sys.exit(130)
