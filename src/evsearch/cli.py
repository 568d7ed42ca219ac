"""Command line interface for evsearch."""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from evsearch.client.everything import EverythingClient
from evsearch.client.query import QueryClient, check_service_version
from evsearch.client.sorting import sort_key
from evsearch.config import DEFAULT_SORT, AppConfig, SearchSettings
from evsearch.dedup.reports import ReportPaths
from evsearch.dedup.scanner import DuplicateScanner
from evsearch.errors import (
    QueryFailed,
    ServiceUnavailable,
    ServiceVersionUnsupported,
    UnknownSortKey,
    describe_error,
)
from evsearch.models import DuplicateReview
from evsearch.search.filters import FilterSet
from evsearch.search.session import BatchOutcome, SearchSession
from evsearch.web.app import app as web_app


console = Console()
app = typer.Typer(help="evsearch - batched Everything searches and duplicate cleanup")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _open_client(config: AppConfig) -> EverythingClient:
    try:
        return EverythingClient(config.dll_path)
    except ServiceUnavailable as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)


def _connect(config: AppConfig) -> QueryClient:
    """Open the SDK, select the instance and refuse unsupported services."""
    client = _open_client(config)
    client.set_instance_name(config.settings.instance_name)
    try:
        version = check_service_version(client)
    except ServiceUnavailable as exc:
        console.print(f"[red]{exc} Is Everything running?[/red]")
        raise typer.Exit(code=1)
    except ServiceVersionUnsupported as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    logging.getLogger(__name__).debug("Connected to Everything %s", version)
    return client


def _format_size(size: int | None) -> str:
    return "" if size is None else f"{size:,}"


@app.command()
def search(
    term: str = typer.Argument(..., help="Search text"),
    filter_name: Optional[str] = typer.Option(None, "--filter", help="Filter name, e.g. Files or Folders"),
    sort: int = typer.Option(DEFAULT_SORT, help="Everything sort key (1-26)"),
    match_case: bool = typer.Option(False, "--match-case", help="Case sensitive search"),
    match_path: bool = typer.Option(False, "--match-path", help="Match against full paths"),
    whole_word: bool = typer.Option(False, "--whole-word", help="Match whole words only"),
    regex: bool = typer.Option(False, "--regex", help="Treat the search as a regular expression"),
    pages: int = typer.Option(1, min=1, help="Number of batches to load"),
    instance: str = typer.Option("", help="Everything instance name"),
    dll: Optional[Path] = typer.Option(None, "--dll", help="Path to the Everything SDK library"),
    everything_args: bool = typer.Option(
        False, "--everything-args", help="Print the arguments that open this search in Everything"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search the Everything index."""
    _setup_logging(verbose)
    try:
        sort_key(sort)
    except UnknownSortKey as exc:
        raise typer.BadParameter(str(exc)) from exc

    filters = FilterSet()
    chosen = None
    if filter_name:
        chosen = filters.find(filter_name)
        if chosen is None:
            raise typer.BadParameter(f"Unknown filter: {filter_name}")
        filters = FilterSet(last_filter=chosen)

    settings = SearchSettings(
        match_case=match_case,
        match_path=match_path,
        match_whole_word=whole_word,
        regex_enabled=regex,
        sort_by=sort,
        remember_filter=chosen is not None,
        instance_name=instance,
    )
    config = AppConfig(dll_path=str(dll) if dll else None, settings=settings)
    client = _open_client(config)

    with SearchSession(client, filters, settings) as session:
        if not session.initialize():
            console.print("[red]Everything is not available, see the log for details.[/red]")
            raise typer.Exit(code=1)

        future = session.set_search_term(term) or session.query_batch(append=False)
        batch = future.result()
        for _ in range(pages - 1):
            if batch.outcome != BatchOutcome.COMPLETED:
                break
            if len(session.results) >= (session.total_results or 0):
                break
            batch = session.query_batch(append=True).result()

        if batch.outcome == BatchOutcome.FAILED:
            console.print(f"[red]Search failed: {describe_error(batch.error_code or 0)}[/red]")
            raise typer.Exit(code=1)

        if everything_args:
            console.print(shlex.join(session.launch_arguments()), markup=False)

        results = session.results.snapshot()
        if not results:
            console.print("[yellow]No matches found.[/yellow]")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Name")
        table.add_column("Path")
        table.add_column("Size", justify="right")
        table.add_column("Modified")

        for result in results:
            folder, _, name = result.full_path.replace("\\", "/").rpartition("/")
            modified = result.date_modified.strftime("%Y-%m-%d %H:%M") if result.date_modified else ""
            table.add_row(name, folder, _format_size(result.size) if result.is_file else "", modified)

        console.print(table)
        console.print(f"Showing {len(results)} of {session.total_results} results")


def _ask_delete(review: DuplicateReview) -> bool:
    console.print(
        f"\n[bold]Duplicates found for[/bold] {review.entry.path} ({_format_size(review.entry.size)} bytes)"
    )
    console.print("Same name:")
    for candidate in review.same_name:
        console.print(f"  {candidate.path}", markup=False)
    console.print("Different name:")
    for candidate in review.different_name:
        console.print(f"  {candidate.path}", markup=False)
    return Confirm.ask("Delete this file?", default=False, console=console)


@app.command()
def duplicates(
    folder: Path = typer.Argument(..., help="Folder to scan", resolve_path=True),
    confirm: bool = typer.Option(False, "--confirm", help="Ask before deleting each duplicate"),
    auto_delete_same_name: bool = typer.Option(
        False, "--auto-delete-same-name", help="Delete files that have a same-name duplicate without asking"
    ),
    trash: bool = typer.Option(False, "--trash", help="Move deleted files to the recycle bin"),
    report_dir: Optional[Path] = typer.Option(None, "--report-dir", help="Where to write the reports"),
    instance: str = typer.Option("", help="Everything instance name"),
    dll: Optional[Path] = typer.Option(None, "--dll", help="Path to the Everything SDK library"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Find files sharing size and extension under FOLDER and optionally delete them."""
    _setup_logging(verbose)
    config = AppConfig(
        dll_path=str(dll) if dll else None,
        settings=SearchSettings(instance_name=instance),
        report_dir=report_dir,
    )
    client = _connect(config)
    resolved_reports = config.resolve_report_dir(folder)

    def _progress(done: int, total: int) -> None:
        console.print(f"Processed {done}/{total} files")

    scanner = DuplicateScanner(
        client,
        confirm=_ask_delete if confirm else None,
        auto_delete_same_name=auto_delete_same_name,
        use_trash=trash,
        report_dir=resolved_reports,
        progress=_progress,
    )

    console.print(f"Scanning [bold]{folder}[/bold]...")
    try:
        summary = scanner.scan(folder)
    except QueryFailed as exc:
        console.print(f"[red]Duplicate scan aborted: {exc}[/red]")
        raise typer.Exit(code=1)

    if not summary.all_files:
        console.print("[yellow]No files found.[/yellow]")

    reports = ReportPaths.in_directory(resolved_reports)
    console.print(
        f"Files: {len(summary.all_files)}, unique: {len(summary.uniques)}, "
        f"duplicates: {len(summary.duplicates)}, deleted: {len(summary.deleted)}"
    )
    console.print(f"Reports appended to {reports.all_files.parent}")


@app.command()
def info(
    instance: str = typer.Option("", help="Everything instance name"),
    dll: Optional[Path] = typer.Option(None, "--dll", help="Path to the Everything SDK library"),
) -> None:
    """Show the version of the running Everything service."""
    config = AppConfig(dll_path=str(dll) if dll else None, settings=SearchSettings(instance_name=instance))
    client = _connect(config)
    console.print(
        f"Everything {client.get_major_version()}.{client.get_minor_version()}.{client.get_revision()}"
    )


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
) -> None:
    """Start the HTTP API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - defensive
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    console.print(f"Starting evsearch API on http://{host}:{port}")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
