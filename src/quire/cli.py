"""Typer-based CLI for Quire."""

import json
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import NoJournalSelectedError, QuireConfig
from .insights import (
    build_monthly_insights,
    calculate_theme_trends,
    collect_data_stats,
    generate_pattern_report,
    previous_month,
)
from .journal_index import (
    IndexLoaded,
    IndexStore,
    load_index,
    load_or_build_index,
    remove_index_item,
    scan_index,
    update_index_item,
    write_index,
)
from .journal_search import AskContext, ask_journal, quick_switch, search_index
from .paths import JournalPaths

app = typer.Typer(
    name="quire",
    help="Quire - local index, retrieval and insights for a markdown journal",
    add_completion=False,
)

console = Console()

JOURNAL_HELP = "Path to journal folder (default: .quire/config.toml journal_root or QUIRE_JOURNAL env)"


@app.callback()
def _root(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _load_config(journal_path: Optional[str]) -> QuireConfig:
    try:
        config = QuireConfig.from_env(journal_path)
        config.require_journal_root()
    except NoJournalSelectedError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(code=1)
    return config


def _stale_index_exit(e: OSError) -> typer.Exit:
    console.print(f"[red]Error: could not write index, it is now stale: {e}[/red]")
    return typer.Exit(code=1)


def _load_store(config: QuireConfig) -> IndexStore:
    """Load the index, rebuilding and persisting it when absent."""
    try:
        store, _ = load_or_build_index(config.require_journal_root(), settings=config.index)
    except OSError as e:
        raise _stale_index_exit(e)
    return store


index_app = typer.Typer(help="Index commands")
app.add_typer(index_app, name="index")


@index_app.command("build")
def index_build(
    journal_path: str = typer.Option(None, "--journal", "-j", help=JOURNAL_HELP),
    init_layout: bool = typer.Option(False, "--init", help="Create missing entries/ and ai/ folders first"),
):
    """Rebuild the index from scratch by scanning entries/ and ai/."""
    config = _load_config(journal_path)
    root = config.require_journal_root()

    if init_layout:
        created = JournalPaths.from_config(config).ensure_layout()
        if created:
            console.print(f"[green]+[/green] Created {len(created)} directories")

    with console.status("Scanning journal...") as status:
        result = scan_index(
            root,
            settings=config.index,
            on_progress=lambda n, rel: status.update(f"Indexed {n} files ({rel})"),
        )
    try:
        path = write_index(root, result.store, settings=config.index)
    except OSError as e:
        raise _stale_index_exit(e)

    console.print(f"[green]Indexed {len(result.store.items)} records[/green] -> {path}")
    if result.skipped:
        console.print(f"[yellow]Skipped {len(result.skipped)} unreadable paths:[/yellow]")
        for p in result.skipped:
            console.print(f"  [dim]{p}[/dim]")


@index_app.command("show")
def index_show(
    journal_path: str = typer.Option(None, "--journal", "-j", help=JOURNAL_HELP),
    limit: int = typer.Option(20, "--limit", "-l", help="Maximum rows to display"),
):
    """Display the persisted index (without rebuilding)."""
    config = _load_config(journal_path)
    result = load_index(config.require_journal_root(), settings=config.index)
    if not isinstance(result, IndexLoaded):
        console.print(f"[yellow]No usable index ({result.reason}).[/yellow] Run 'quire index build'.")
        raise typer.Exit(code=1)

    store = result.store
    table = Table(title=f"{len(store.items)} record(s), built {store.last_built}")
    table.add_column("Date", style="cyan", no_wrap=True)
    table.add_column("Category", style="magenta")
    table.add_column("Title")
    table.add_column("Words", justify="right")
    table.add_column("Id", style="dim")
    for item in sorted(store.items, key=lambda i: (i.date, i.id), reverse=True)[:limit]:
        category = item.category if item.subcategory is None else f"{item.category}:{item.subcategory}"
        table.add_row(item.date, category, escape(item.display_title), str(item.word_count or 0), escape(item.id))
    console.print(table)


@index_app.command("update")
def index_update(
    relative_path: str = typer.Argument(..., help="Path relative to entries/ (or ai/ for AI outputs)"),
    category: str = typer.Option("entry", "--category", "-c", help="'entry' or 'ai-output'"),
    subcategory: str = typer.Option(None, "--subcategory", "-s", help="AI output subcategory"),
    journal_path: str = typer.Option(None, "--journal", "-j", help=JOURNAL_HELP),
):
    """Re-index a single file after it was saved or deleted."""
    config = _load_config(journal_path)
    try:
        update = update_index_item(
            config.require_journal_root(),
            relative_path,
            category,
            subcategory,
            settings=config.index,
        )
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    except OSError as e:
        raise _stale_index_exit(e)

    if update.rebuilt:
        console.print("[dim]Index was missing or outdated and has been rebuilt[/dim]")
    console.print(f"[green]{update.record_id}[/green]: {update.action}")


@index_app.command("remove")
def index_remove(
    relative_path: str = typer.Argument(..., help="Record id to drop from the index"),
    journal_path: str = typer.Option(None, "--journal", "-j", help=JOURNAL_HELP),
):
    """Remove a single record from the index."""
    config = _load_config(journal_path)
    try:
        update = remove_index_item(config.require_journal_root(), relative_path, settings=config.index)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    except OSError as e:
        raise _stale_index_exit(e)
    console.print(f"[green]{update.record_id}[/green]: {update.action}")


@app.command()
def ask(
    query: str = typer.Argument(..., help="Question or keywords"),
    date_start: str = typer.Option(None, "--from", help="Start date (YYYY-MM-DD, inclusive)"),
    date_end: str = typer.Option(None, "--to", help="End date (YYYY-MM-DD, inclusive)"),
    journal_path: str = typer.Option(None, "--journal", "-j", help=JOURNAL_HELP),
    as_json: bool = typer.Option(False, "--json", help="Emit the candidate context as JSON"),
):
    """Find the entries most relevant to a question.

    Ranks entries by keyword matches plus recency and loads their full text,
    ready to hand to a summarizer.
    """
    config = _load_config(journal_path)
    try:
        outcome = ask_journal(config, query, date_start=date_start, date_end=date_end)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    except OSError as e:
        raise _stale_index_exit(e)

    if not isinstance(outcome, AskContext):
        console.print(f"[yellow]{outcome.message()}[/yellow]")
        return

    if as_json:
        payload = {
            "query": outcome.query,
            "date_start": outcome.date_start,
            "date_end": outcome.date_end,
            "sources": [
                {"id": s.record.id, "date": s.record.date, "score": s.score, "content": s.content}
                for s in outcome.sources
            ],
            "missing": outcome.missing,
        }
        console.print_json(json.dumps(payload))
        return

    table = Table(title=f"Top {len(outcome.sources)} entries for {query!r}")
    table.add_column("Score", justify="right", style="cyan")
    table.add_column("Date", no_wrap=True)
    table.add_column("Title")
    table.add_column("Words", justify="right", style="dim")
    for s in outcome.sources:
        table.add_row(str(s.score), s.record.date, escape(s.record.display_title), str(s.record.word_count or 0))
    console.print(table)
    for record_id in outcome.missing:
        console.print(f"[yellow]Indexed but no longer readable:[/yellow] {record_id}")


@app.command()
def switch(
    query: str = typer.Argument("", help="Title or date fragment (empty: most recent)"),
    journal_path: str = typer.Option(None, "--journal", "-j", help=JOURNAL_HELP),
):
    """Quick-switch to an entry or AI output by title or date."""
    config = _load_config(journal_path)
    store = _load_store(config)
    records = quick_switch(store, query, tuning=config.retrieval)

    if not records:
        console.print("[dim]No results found[/dim]" if query else "[dim]No entries yet[/dim]")
        return
    for record in records:
        console.print(f"[cyan]{record.date}[/cyan]  {escape(record.display_title)}  [dim]{escape(record.id)}[/dim]")


@app.command()
def search(
    query: str = typer.Argument(..., help="Text to look for"),
    category: str = typer.Option(None, "--type", "-t", help="Restrict to 'entry' or 'ai-output'"),
    journal_path: str = typer.Option(None, "--journal", "-j", help=JOURNAL_HELP),
):
    """Search titles, dates and indexed text, with highlighted snippets."""
    config = _load_config(journal_path)
    store = _load_store(config)
    try:
        results = search_index(store, query, category=category, tuning=config.retrieval)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if not results:
        console.print("[dim]No results found. Try a different search term or filter.[/dim]")
        return
    for r in results:
        lock = "[yellow](sensitive)[/yellow] " if r.record.sensitive else ""
        console.print(
            f"{lock}[cyan]{r.record.date}[/cyan] [bold]{escape(r.record.display_title)}[/bold] "
            f"[dim]{escape(r.record.id)}[/dim]"
        )
        console.print(f"  {r.snippet}", markup=False, highlight=False)


insights_app = typer.Typer(help="Insight commands")
app.add_typer(insights_app, name="insights")


@insights_app.command("month")
def insights_month(
    month: str = typer.Argument(..., help="Month (YYYY-MM)"),
    compare: bool = typer.Option(True, "--compare/--no-compare", help="Show theme trend against the previous month"),
    journal_path: str = typer.Option(None, "--journal", "-j", help=JOURNAL_HELP),
):
    """Monthly statistics and recurring themes."""
    config = _load_config(journal_path)
    store = _load_store(config)
    try:
        current = build_monthly_insights(month, store, tuning=config.insights)
        previous = build_monthly_insights(previous_month(month), store, tuning=config.insights) if compare else None
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    stats = current.stats
    console.print(f"[bold]{current.month}[/bold]")
    console.print(f"  Entries:        {stats.total_entries}")
    console.print(f"  Days active:    {stats.days_active}/{stats.days_in_month}")
    console.print(f"  Words:          {stats.total_words} (avg {stats.avg_words_per_entry})")
    cov = stats.ai_coverage
    console.print(
        f"  AI outputs:     {cov.daily_reviews} reviews, {cov.weekly_summaries} weekly, "
        f"{cov.highlights} highlights, {cov.monthly_summaries} monthly, {cov.asks} asks"
    )

    themes = calculate_theme_trends(current, previous, tuning=config.insights)
    if themes:
        table = Table(title="Themes")
        table.add_column("Theme", style="magenta")
        table.add_column("Count", justify="right")
        table.add_column("Entries %", justify="right")
        table.add_column("Trend")
        table.add_column("Seen on", style="dim")
        arrows = {"up": "[green]up[/green]", "down": "[red]down[/red]", "flat": "flat", None: "-"}
        for t in themes:
            table.add_row(t.theme, str(t.count), str(t.percentage), arrows[t.trend], ", ".join(t.sample_entries))
        console.print(table)
    else:
        console.print("[dim]No recurring themes this month[/dim]")


@insights_app.command("patterns")
def insights_patterns(
    days: int = typer.Option(None, "--days", "-d", help="Window size in days (default from config)"),
    journal_path: str = typer.Option(None, "--journal", "-j", help=JOURNAL_HELP),
):
    """Themes that keep coming back across recent entries."""
    config = _load_config(journal_path)
    store = _load_store(config)
    try:
        report = generate_pattern_report(store, days, tuning=config.insights)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[bold]Recurring themes {report.date_range.start} .. {report.date_range.end}[/bold]")
    if not report.recurring_themes:
        console.print("[dim]Not enough entries in this window to detect patterns[/dim]")
        return
    for theme in report.recurring_themes:
        console.print(
            f"[magenta]{theme.theme}[/magenta] x{theme.occurrences} in {theme.entry_count} entries "
            f"({theme.first_seen} .. {theme.last_seen}, {theme.trend})"
        )
        for ev in theme.related_entries:
            console.print(f"  [dim]{ev.date}[/dim] {escape(ev.quote)}", highlight=False)


@app.command()
def stats(
    journal_path: str = typer.Option(None, "--journal", "-j", help=JOURNAL_HELP),
):
    """Show what the journal stores on disk."""
    config = _load_config(journal_path)
    root = config.require_journal_root()
    store = _load_store(config)
    data = collect_data_stats(root, store, settings=config.index)

    table = Table(title="Journal data")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in data.model_dump().items():
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)


@app.command()
def version():
    """Show Quire version."""
    from . import __version__
    console.print(f"Quire v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
