"""Command-line interface for git-inquisitor."""

from pathlib import Path
from typing import Dict, Optional
import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, MofNCompleteColumn, TimeElapsedColumn
from rich.table import Table

from . import __version__
from .collector import GitDataCollector
from .config import config
from .exceptions import InquisitorError, RepositoryError
from .logging import get_logger
from .models import AggregateDataset
from .report import ReportFormat, default_output_path, get_report_adapter


app = typer.Typer(
    name="git-inquisitor",
    help="Git repository analysis: history details, file level and contributor level statistics.",
    add_completion=False
)
console = Console()
logger = get_logger(__name__)

PHASE_LABELS = {
    "history": "Processing commits...",
    "blame": "Processing file blames...",
}


def validate_repo_path(repo_path: str) -> Path:
    """Resolve repo_path and check it looks like a git repository."""
    path = Path(repo_path).resolve()
    if not path.exists():
        raise RepositoryError(f"Repository path '{path}' does not exist")
    if not path.is_dir():
        raise RepositoryError(f"Repository path '{path}' is not a directory")
    # Working trees carry .git; bare repositories carry HEAD at the top level
    if not (path / ".git").exists() and not (path / "HEAD").is_file():
        raise RepositoryError(
            f"'{path}' does not appear to be a git repository (missing .git directory or HEAD file)"
        )
    return path


def run_collection(collector: GitDataCollector, use_cache: bool = True) -> AggregateDataset:
    """Run the collector with a progress display per phase."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True
    ) as progress:
        tasks: Dict[str, int] = {}

        def on_progress(phase: str, completed: int, total: int) -> None:
            if phase not in tasks:
                tasks[phase] = progress.add_task(PHASE_LABELS.get(phase, phase), total=total)
            progress.update(tasks[phase], completed=completed, total=total)

        collector.progress_callback = on_progress
        return collector.collect(use_cache=use_cache)


def display_summary(collector: GitDataCollector, data: AggregateDataset) -> None:
    """Print a short overview of a collected dataset."""
    table = Table(title="Collection Summary")
    table.add_column("Item", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Repository", escape(data.metadata.repo.url))
    table.add_row("Branch", escape(data.metadata.repo.branch))
    table.add_row("HEAD", data.metadata.repo.commit.sha)
    table.add_row("Commits", str(len(data.history)))
    table.add_row("Files", str(len(data.files)))
    table.add_row("Contributors", str(len(data.contributors)))
    table.add_row("Cache", escape(str(collector.cache_path)))

    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[green]git-inquisitor v{__version__}[/green]")


@app.command()
def collect(
    repo_path: str = typer.Argument(..., help="Path to the git repository"),
    clear_cache: bool = typer.Option(False, "--clear-cache", help="Remove the cached data for HEAD first"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Ignore cached data and collect again"),
) -> None:
    """Collect data from a git repository and cache it."""
    try:
        path = validate_repo_path(repo_path)
        console.print(f"[blue]Collecting data for repository:[/blue] {escape(str(path))}")

        collector = GitDataCollector(str(path))
        if clear_cache and collector.clear_cache():
            console.print("[yellow]Cleared cached data for HEAD[/yellow]")

        data = run_collection(collector, use_cache=not no_cache)
    except InquisitorError as e:
        logger.debug("Collect command failed", repo_path=repo_path, error=str(e))
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if collector.from_cache:
        console.print("[blue]Loaded data from cache.[/blue]")
    elif not collector.cache_saved:
        console.print("[yellow]Warning: collected data could not be cached[/yellow]")

    display_summary(collector, data)
    console.print("[green]Data collection successful.[/green]")


@app.command()
def report(
    repo_path: str = typer.Argument(..., help="Path to the git repository"),
    report_format: ReportFormat = typer.Argument(..., help="Report format (html or json)"),
    output_file_path: Optional[str] = typer.Option(
        None, "--output-file-path", "-o", help="Output file path for the report"
    ),
) -> None:
    """Generate a report, collecting data first if nothing is cached."""
    try:
        path = validate_repo_path(repo_path)
        output = Path(output_file_path) if output_file_path else default_output_path(
            report_format, config.app.report_basename
        )
        output = output.resolve()

        console.print(f"[blue]Generating {report_format.value} report for repository:[/blue] {escape(str(path))}")
        collector = GitDataCollector(str(path))
        data = run_collection(collector)

        adapter = get_report_adapter(report_format)
        adapter.prepare_data(data)
        adapter.write(str(output))
    except InquisitorError as e:
        logger.debug("Report command failed", repo_path=repo_path, error=str(e))
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]{report_format.value.upper()} report generated successfully:[/green] {escape(str(output))}")


def main() -> None:
    app()
