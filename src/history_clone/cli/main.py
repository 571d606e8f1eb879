"""Main CLI interface for History Clone."""

import logging
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from history_clone.core.driver import clone_history
from history_clone.core.errors import HistoryCloneError
from history_clone.models.commit import CommitDetail
from history_clone.models.options import (
    DEFAULT_MARKER_FILE,
    DEFAULT_SIMILARITY,
    CloneOptions,
)

console = Console()
err_console = Console(stderr=True)


def configure_logging(verbose: bool) -> None:
    """Send log records through rich, WARNING by default, DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    # GitPython logs every command it runs at DEBUG
    logging.getLogger("git").setLevel(logging.INFO)


def print_progress(detail: CommitDetail) -> None:
    console.print(f"[cyan]{detail.seq}[/cyan] {escape(detail.summary)}")


@click.command()
@click.version_option(package_name="history-clone")
@click.argument("source_dir", type=click.Path(exists=True, file_okay=False))
@click.argument("dest_dir", type=click.Path(file_okay=False))
@click.option(
    "--target",
    envvar="HISTORY_CLONE_TARGET",
    help="Revision to bring DEST_DIR up to (default: newest revision)",
)
@click.option(
    "--cutoff",
    envvar="HISTORY_CLONE_CUTOFF",
    help="Earliest revision to copy; later revisions are re-parented onto it",
)
@click.option(
    "--filter",
    "filter_command",
    envvar="HISTORY_CLONE_FILTER",
    help="Shell command run in DEST_DIR before each commit",
)
@click.option(
    "--similarity",
    type=int,
    default=DEFAULT_SIMILARITY,
    show_default=True,
    envvar="HISTORY_CLONE_SIMILARITY",
    help="Rename detection threshold (0-100) when staging",
)
@click.option(
    "--default-branch",
    envvar="HISTORY_CLONE_DEFAULT_BRANCH",
    help="Destination branch for commits without a branch label",
)
@click.option(
    "--marker-file",
    default=DEFAULT_MARKER_FILE,
    show_default=True,
    envvar="HISTORY_CLONE_MARKER_FILE",
    help="File recording the source revision in each destination commit",
)
@click.option("--dry-run", is_flag=True, help="List revisions that would be copied")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def main(
    source_dir: str,
    dest_dir: str,
    target: Optional[str],
    cutoff: Optional[str],
    filter_command: Optional[str],
    similarity: int,
    default_branch: Optional[str],
    marker_file: str,
    dry_run: bool,
    verbose: bool,
):
    """Copy the history of SOURCE_DIR into DEST_DIR, revision by revision.

    Each copied revision records its source in the commit message, so
    running the command again continues where the last run stopped.
    """
    configure_logging(verbose)

    try:
        options = CloneOptions(
            target=target,
            cutoff=cutoff,
            filter_command=filter_command,
            similarity=similarity,
            marker_file=marker_file,
            default_branch=default_branch,
            dry_run=dry_run,
        )
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e

    try:
        result = clone_history(
            Path(source_dir),
            Path(dest_dir),
            options,
            progress=None if dry_run else print_progress,
        )
    except HistoryCloneError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]", highlight=False)
        raise click.Abort() from e

    if dry_run:
        if result.up_to_date:
            console.print("[green]Nothing to copy[/green]")
            return
        table = Table(title=f"Revisions to copy ({len(result.replayed)})")
        table.add_column("#", style="cyan")
        table.add_column("Revision", style="green")
        for index, identity in enumerate(result.replayed, 1):
            table.add_row(str(index), identity)
        console.print(table)
        return

    if result.up_to_date:
        console.print(f"[green]✅ Already up to date with {result.target}[/green]")
    else:
        console.print(
            f"[green]✅ Copied {len(result.replayed)} revision(s) up to {result.target}[/green]"
        )


if __name__ == "__main__":
    main()
