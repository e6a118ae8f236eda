"""Command line interface for cup."""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .core.config import Config
from .core.errors import CupError, SyncError
from .core.export import ExportManager
from .core.logging import setup_logging
from .core.reconcile import SyncReport

console = Console()


def _print_report(report: SyncReport) -> None:
    for address in report.copied:
        console.print(f"[green]Copied: {escape(str(address))}")
    for address in report.refreshed:
        console.print(f"[blue]Updated: {escape(str(address))}")
    for address in report.removed:
        console.print(f"[yellow]Removed: {escape(str(address))}")
    for failure in report.failures:
        console.print(f"[red]Failed: {escape(str(failure))}")


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Report cup errors and abort the command."""
    try:
        yield
    except SyncError as e:
        _print_report(e.report)
        console.print(f"[red]Error: {len(e.failures)} file(s) could not be synchronized")
        raise click.Abort()
    except (CupError, RuntimeError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}")
        raise click.Abort()


@click.group()
@click.option("--debug", is_flag=True, help="Show debug output")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write a debug log to this file",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Configuration file (defaults to ~/.config/cup/config.yml)",
)
@click.pass_context
def cli(
    ctx: click.Context, debug: bool, log_file: Optional[Path], config_file: Optional[Path]
) -> None:
    """Dotfiles management tool.

    cup keeps a set of configuration files in a versioned export: a Git
    repository holding a manifest of the tracked files and a copy of each
    one.

    Main commands:

      create    Create an empty export
      add       Track files in an export
      remove    Stop tracking files in an export
      sync      Repair the archive of an export
      show      Show the files an export tracks
      list      List exports
      delete    Delete an export

    Run 'cup COMMAND --help' for more information on a specific command.
    """
    with _handle_errors():
        config = Config(config_file)
    setup_logging(
        debug=debug or config.debug,
        log_file=str(log_file) if log_file else config.log_file,
    )
    ctx.obj = ExportManager(config, console=console)


@cli.command()
@click.argument("name")
@click.pass_obj
def create(manager: ExportManager, name: str) -> None:
    """Create an empty export called NAME.

    Examples:

      # Create an export for this machine
      cup create laptop
    """
    with _handle_errors():
        manifest = manager.create(name)
    console.print(f"[green]Created export '{escape(name)}'")
    console.print(f"Location: {escape(str(manifest.path.parent))}")


@cli.command()
@click.argument("name")
@click.argument("files", nargs=-1, required=True)
@click.pass_obj
def add(manager: ExportManager, name: str, files: List[str]) -> None:
    """Track FILES in export NAME.

    FILES may be written as ~/..., ./..., absolute or relative paths.
    Directories are added with every file inside them.

    Examples:

      # Track shell and editor configuration
      cup add laptop ~/.bashrc ~/.config/nvim

      # Track a system file
      cup add laptop /etc/hosts
    """
    with _handle_errors():
        report = manager.add(name, files)
    _print_report(report)
    console.print(f"[bold]{escape(name)}: {report.summary()}")


@cli.command()
@click.argument("name")
@click.argument("files", nargs=-1)
@click.option(
    "--interactive", "-i", is_flag=True, help="Choose the files to remove from a list"
)
@click.pass_obj
def remove(manager: ExportManager, name: str, files: List[str], interactive: bool) -> None:
    """Stop tracking FILES in export NAME.

    Files that are not tracked are ignored. A directory untracks every
    tracked file below it.

    Examples:

      # Stop tracking a file
      cup remove laptop ~/.bashrc

      # Pick the files to remove from a list
      cup remove laptop -i
    """
    if not files and not interactive:
        raise click.UsageError("Pass FILES or use --interactive")
    with _handle_errors():
        report = manager.remove(name, files, interactive=interactive)
    _print_report(report)
    console.print(f"[bold]{escape(name)}: {report.summary()}")


@cli.command()
@click.argument("name")
@click.option(
    "--refresh", "-r", is_flag=True, help="Also copy tracked files whose content changed"
)
@click.pass_obj
def sync(manager: ExportManager, name: str, refresh: bool) -> None:
    """Bring the archive of export NAME in line with its manifest.

    Copies tracked files missing from the archive and deletes archive files
    the manifest no longer lists.
    """
    with _handle_errors():
        report = manager.sync(name, refresh=refresh)
    _print_report(report)
    console.print(f"[bold]{escape(name)}: {report.summary()}")


@cli.command()
@click.argument("name")
@click.pass_obj
def show(manager: ExportManager, name: str) -> None:
    """Show the files tracked by export NAME."""
    with _handle_errors():
        manifest, missing, orphans, modified = manager.status(name)

    table = Table(title=f"{name} ({manifest.id})")
    table.add_column("File", style="cyan")
    table.add_column("Archive", style="magenta")
    for address in manifest.files:
        if address in missing:
            state = "[red]missing"
        elif address in modified:
            state = "[yellow]modified"
        else:
            state = "[green]archived"
        table.add_row(escape(str(address)), state)
    console.print(table)

    for address in orphans:
        console.print(f"[yellow]Untracked archive file: {escape(address.to_archive_relative())}")
    if not manifest.files:
        console.print("[yellow]No files tracked.")


@cli.command(name="list")
@click.pass_obj
def list_exports(manager: ExportManager) -> None:
    """List exports."""
    manifests = manager.list_exports()
    if not manifests:
        console.print("[yellow]No exports found.")
        return

    table = Table(title="Exports")
    table.add_column("Name", style="cyan")
    table.add_column("Files", style="green", justify="right")
    table.add_column("Id", style="magenta")
    for manifest in manifests:
        table.add_row(escape(manifest.name), str(len(manifest)), manifest.id)
    console.print(table)


@cli.command()
@click.argument("name")
@click.option("--force", "-f", is_flag=True, help="Delete without confirmation prompt")
@click.pass_obj
def delete(manager: ExportManager, name: str, force: bool) -> None:
    """Delete export NAME with its archive and history."""
    if not force:
        click.confirm(f"Delete export '{name}' and all of its history?", abort=True)
    with _handle_errors():
        manager.delete(name)
    console.print(f"[green]Deleted export '{escape(name)}'")


def main() -> None:
    """Entry point for the cup CLI."""
    cli()


if __name__ == "__main__":
    main()
