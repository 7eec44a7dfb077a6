"""Command-line interface for treescan."""

import asyncio
import logging
import time
from pathlib import Path
from typing import List, Optional

import typer
from rich import print
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .config import ConfigManager
from .errors import TreeScanError
from .file_list import FileListProcessor
from .ignore import IgnoreRuleStore
from .models import ScanOptions
from .monitor import IgnoreFileWatcher
from .scanner import Scanner

app = typer.Typer(
    name="treescan",
    help="Scan a project tree into filtered file and directory records.",
    rich_markup_mode="rich",
)
console = Console()


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        print(f"[cyan]treescan[/cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every decision."),
):
    """
    Treescan - filtered project tree scanner.

    Register workspace roots with 'treescan add', then scan paths inside them.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _options(
    config_manager: ConfigManager,
    max_size: Optional[int],
    exclude: Optional[List[str]],
    gitignore: Optional[bool],
    vscodeignore: Optional[bool],
    deps: Optional[bool],
) -> ScanOptions:
    settings = config_manager.settings
    if max_size is not None:
        settings.max_file_size = max_size
    if exclude:
        settings.exclude_patterns = list(settings.exclude_patterns) + list(exclude)
    if gitignore is not None:
        settings.use_gitignore = gitignore
    if vscodeignore is not None:
        settings.use_vscodeignore = vscodeignore
    if deps is not None:
        settings.include_dependencies = deps
    return settings.to_scan_options()


def _scanner(config_manager: ConfigManager) -> Scanner:
    return Scanner(resolver=config_manager.resolver(default_root=Path.cwd()))


MAX_SIZE_OPTION = typer.Option(None, "--max-size", min=1, help="Largest file to read, in bytes.")
EXCLUDE_OPTION = typer.Option(None, "--exclude", "-e", help="Extra glob pattern to exclude (repeatable).")
GITIGNORE_OPTION = typer.Option(None, "--gitignore/--no-gitignore", help="Apply .gitignore rules.")
VSCODEIGNORE_OPTION = typer.Option(None, "--vscodeignore/--no-vscodeignore", help="Apply .vscodeignore rules.")
DEPS_OPTION = typer.Option(None, "--deps/--no-deps", help="Collect imports for each file.")
ROOT_OPTION = typer.Option(None, "--root", help="Workspace root to scan against (defaults to the registered root owning the path).")


@app.command(name="add", help="Register a workspace root")
def add_root(
    path: Optional[Path] = typer.Argument(
        None,
        help="Path to the workspace root (defaults to current directory)",
    ),
):
    """Register a workspace root."""
    if path is None:
        path = Path.cwd()

    path = path.resolve()

    if not path.exists() or not path.is_dir():
        print(f"[red]Error:[/red] {path} is not a valid directory")
        raise typer.Exit(1)

    config_manager = ConfigManager()

    if path in config_manager.list_roots():
        print(f"[yellow]Already registered:[/yellow] {path}")
        return

    config_manager.add_root(path)
    print(f"[green]Added workspace root:[/green] {path}")


@app.command(name="remove", help="Unregister a workspace root")
def remove_root(
    path: Optional[Path] = typer.Argument(
        None,
        help="Path to the workspace root (defaults to current directory)",
    ),
):
    if path is None:
        path = Path.cwd()

    config_manager = ConfigManager()

    if config_manager.remove_root(path):
        print(f"[green]Removed workspace root:[/green] {path.resolve()}")
    else:
        print(f"[red]Error:[/red] Workspace root not found: {path.resolve()}")
        raise typer.Exit(1)


@app.command(name="roots", help="List registered workspace roots")
def list_roots():
    config_manager = ConfigManager()
    roots = config_manager.list_roots()

    if not roots:
        print("[yellow]No workspace roots registered[/yellow]")
        return

    table = Table(title="Workspace Roots")
    table.add_column("Path", style="cyan")
    table.add_column("Status", style="green")

    for root in roots:
        status = "✓ Present" if root.is_dir() else "✗ Missing"
        table.add_row(str(root), status)

    console.print(table)


@app.command(name="scan", help="Scan a file or directory")
def scan(
    path: Path = typer.Argument(..., help="File or directory to scan"),
    root: Optional[Path] = ROOT_OPTION,
    max_size: Optional[int] = MAX_SIZE_OPTION,
    exclude: Optional[List[str]] = EXCLUDE_OPTION,
    gitignore: Optional[bool] = GITIGNORE_OPTION,
    vscodeignore: Optional[bool] = VSCODEIGNORE_OPTION,
    deps: Optional[bool] = DEPS_OPTION,
):
    """List the files a scan keeps and the entries it skips."""
    config_manager = ConfigManager()
    options = _options(config_manager, max_size, exclude, gitignore, vscodeignore, deps)
    scanner = _scanner(config_manager)

    try:
        report = asyncio.run(scanner.scan_with_report(path, options, root))
    except TreeScanError as e:
        print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"Files in {report.tree.relative_path}")
    table.add_column("Path", style="cyan")
    table.add_column("Language", style="magenta")
    table.add_column("Size", justify="right")
    if options.include_dependencies:
        table.add_column("Imports")

    for info in report.tree.iter_files():
        row = [info.relative_path, info.language, str(info.size)]
        if options.include_dependencies:
            row.append(", ".join(info.imports or []))
        table.add_row(*row)

    console.print(table)

    if report.skipped:
        skipped = Table(title="Skipped")
        skipped.add_column("Path", style="yellow")
        skipped.add_column("Reason")
        skipped.add_column("Detail", style="dim")
        for entry in report.skipped:
            skipped.add_row(entry.relative_path, entry.reason.value, entry.detail)
        console.print(skipped)


@app.command(name="estimate", help="Count files and bytes a scan would include")
def estimate(
    path: Path = typer.Argument(..., help="File or directory to estimate"),
    root: Optional[Path] = ROOT_OPTION,
    max_size: Optional[int] = MAX_SIZE_OPTION,
    exclude: Optional[List[str]] = EXCLUDE_OPTION,
    gitignore: Optional[bool] = GITIGNORE_OPTION,
    vscodeignore: Optional[bool] = VSCODEIGNORE_OPTION,
):
    config_manager = ConfigManager()
    options = _options(config_manager, max_size, exclude, gitignore, vscodeignore, None)
    scanner = _scanner(config_manager)

    try:
        result = asyncio.run(scanner.estimate_size(path, options, root))
    except TreeScanError as e:
        print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    print(f"[cyan]{result.total_files}[/cyan] file(s), [cyan]{result.total_size}[/cyan] bytes")
    if result.skipped:
        print(f"[yellow]{len(result.skipped)} entries skipped[/yellow]")


@app.command(name="files", help="Process an explicit list of files")
def files(
    paths: List[Path] = typer.Argument(..., help="Files to include"),
    max_size: Optional[int] = MAX_SIZE_OPTION,
    exclude: Optional[List[str]] = EXCLUDE_OPTION,
    gitignore: Optional[bool] = GITIGNORE_OPTION,
    vscodeignore: Optional[bool] = VSCODEIGNORE_OPTION,
    deps: Optional[bool] = DEPS_OPTION,
):
    config_manager = ConfigManager()
    options = _options(config_manager, max_size, exclude, gitignore, vscodeignore, deps)
    processor = FileListProcessor(_scanner(config_manager))

    directories, skipped = asyncio.run(processor.process_with_report(paths, options))

    table = Table(title="Selected Files")
    table.add_column("Directory", style="green")
    table.add_column("File", style="cyan")
    table.add_column("Language", style="magenta")
    table.add_column("Size", justify="right")

    for directory in directories:
        for info in directory.files:
            table.add_row(directory.relative_path, info.relative_path, info.language, str(info.size))

    console.print(table)
    for entry in skipped:
        print(f"[yellow]Skipped[/yellow] {entry.relative_path} ({entry.reason.value})")


@app.command(name="watch", help="Report ignore-file changes in registered roots")
def watch():
    """Report ignore-file changes until interrupted."""
    config_manager = ConfigManager()

    removed_count = config_manager.cleanup_stale_roots()
    if removed_count > 0:
        print(f"[yellow]Cleaned up {removed_count} stale root(s)[/yellow]")

    roots = config_manager.list_roots()
    if not roots:
        print("[yellow]No workspace roots registered - add one with 'treescan add'[/yellow]")
        raise typer.Exit(1)

    def report(root, kind):
        print(f"[{time.strftime('%H:%M:%S')}] {kind.file_name} changed in {root}")

    watcher = IgnoreFileWatcher(IgnoreRuleStore(), on_invalidate=report)
    for root in roots:
        watcher.watch(root)

    print(f"[green]Watching {len(roots)} root(s)[/green]")
    print("[yellow]Press Ctrl+C to stop[/yellow]")

    with watcher:
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            print("\n[yellow]Stopped[/yellow]")


if __name__ == "__main__":
    app()
