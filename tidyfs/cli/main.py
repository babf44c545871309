"""Main CLI interface for TidyFS."""

import json
import logging
from dataclasses import replace
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .. import __version__
from ..core.classifier import ExtensionClassifier
from ..core.config import ORGANIZATION_METHODS, parse_category_definition
from ..core.exceptions import (
    TidyFSError, FileSystemError, PathNotFoundError, IoError,
    ConfigurationError, ValidationError, ScanError
)
from ..core.models import MoveOutcome, MoveSummary, Report, ScanOptions
from ..core.organizer import FileOrganizer, UNSORTED_DIR, is_known_method
from ..core.scanner import FileScanner

# Initialize Rich console
console = Console()

KB = 1024
MB = KB * 1024
GB = MB * 1024


@click.group()
@click.version_option(version=__version__)
@click.option('--config', '-c', 'config_file', type=click.Path(path_type=Path),
              help='Configuration file path')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Set logging level (overrides config)')
@click.option('--log-file', type=click.Path(path_type=Path),
              help='Log file path (overrides config)')
@click.pass_context
def cli(ctx, config_file, log_level, log_file):
    """TidyFS - Smart file system organizer and analyzer."""
    from ..core.config import setup_config
    from ..core.logging_config import setup_logging

    config_manager = setup_config(config_file)
    app_config = config_manager.get_config()

    logging_config = app_config.logging
    if log_level or log_file:
        logging_config = replace(
            logging_config,
            level=log_level or logging_config.level,
            file_path=log_file or logging_config.file_path,
            file_enabled=logging_config.file_enabled or log_file is not None,
        )
    setup_logging(logging_config)

    if config_manager.load_error is not None:
        console.print(f"[yellow]Warning: {escape(str(config_manager.load_error))}; "
                      f"using built-in defaults[/yellow]", soft_wrap=True)

    # Store config in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj['config'] = app_config
    ctx.obj['config_manager'] = config_manager


@cli.command()
@click.argument("directory", default=".", type=click.Path(path_type=Path))
@click.option("--recursive", "-r", is_flag=True, help="Scan subdirectories recursively")
@click.option("--duplicates", "-d", is_flag=True, help="Find duplicate files")
@click.option("--workers", type=click.IntRange(min=1), help="Number of hashing threads")
@click.option("--format", "-f", "output_format", type=click.Choice(["table", "json"]), default="table",
              help="Output format")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def scan(ctx, directory: Path, recursive: bool, duplicates: bool, workers: int, output_format: str, verbose: bool):
    """Scan a directory and show storage statistics."""
    app_config = ctx.obj['config']
    options = ScanOptions(
        recursive=recursive,
        find_duplicates=duplicates,
        verbose=verbose,
        workers=workers
    )
    scanner = FileScanner(config=app_config)

    if output_format == "table":
        console.print(f"[bold green]Scanning directory: {escape(str(directory))}[/bold green]")

    try:
        if verbose and output_format == "table":
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console
            ) as progress:
                scan_task = progress.add_task("Scanning directory...", total=None)

                def on_progress(stage, count):
                    label = "Walked" if stage == "walk" else "Hashed"
                    progress.update(scan_task, description=f"{label} {count} files...")

                scanner.progress_callback = on_progress
                result = scanner.scan_directory(directory, options)
                progress.update(scan_task, description="Scan complete")
        else:
            result = scanner.scan_directory(directory, options)
    except (PathNotFoundError, ScanError) as e:
        handle_cli_error(e, "scan")
        raise click.Abort()

    if result.cancelled:
        console.print(f"\n[yellow]{result.status}[/yellow]")
        raise click.Abort()

    _remember_directory(ctx, directory)

    if output_format == "json":
        click.echo(json.dumps({
            "report": result.report.to_dict(),
            "errors": result.errors,
            "status": result.status,
        }, indent=2))
        return

    report = result.report
    if report.total_files == 0:
        console.print("No files found in the specified directory.")
    else:
        _display_report(report)
        if duplicates:
            _display_duplicates(report)

    _display_errors(result.errors, verbose)
    color = "green" if not result.errors else "yellow"
    console.print(f"\n[bold {color}]Scan {result.status}[/bold {color}] in {result.duration:.2f} seconds")


@cli.command()
@click.argument("directory", default=".", type=click.Path(path_type=Path))
@click.option("--target", "-t", type=click.Path(path_type=Path),
              help="Target directory for organized files (default: DIRECTORY)")
@click.option("--by", "-b", "method", help="Organization method (type, date, ext); default from config")
@click.option("--dry-run", "-n", is_flag=True, help="Show what would be done without making changes")
@click.option("--recursive", "-r", is_flag=True, help="Process subdirectories recursively")
@click.option("--verbose", "-v", is_flag=True, help="Show every move")
@click.pass_context
def organize(ctx, directory: Path, target: Path, method: str, dry_run: bool, recursive: bool, verbose: bool):
    """Organize files into folders."""
    app_config = ctx.obj['config']
    method = method or app_config.default_organization
    target = target or directory

    console.print(f"[bold green]Organizing files in {escape(str(directory))} by {escape(method)}"
                  f"{' (DRY RUN)' if dry_run else ''}[/bold green]")

    if not is_known_method(method):
        console.print(f"[yellow]Warning: unknown organization method '{escape(method)}' "
                      f"(expected {', '.join(ORGANIZATION_METHODS)}); files will go to "
                      f"{UNSORTED_DIR}/[/yellow]")

    scanner = FileScanner(config=app_config)
    try:
        files = list(scanner.walk(directory, recursive))
    except PathNotFoundError as e:
        handle_cli_error(e, "organize")
        raise click.Abort()

    _remember_directory(ctx, directory)

    if not files:
        console.print("No files found in the specified directory.")
        summary = MoveSummary(dry_run=dry_run, walk_errors=list(scanner.walk_errors))
    else:
        organizer = FileOrganizer(ExtensionClassifier.from_config(app_config))
        summary = organizer.plan_and_execute(files, method, target, dry_run=dry_run)
        summary.walk_errors.extend(scanner.walk_errors)
        _display_move_summary(summary, verbose)

    _display_errors(summary.walk_errors, verbose)
    _display_move_status(summary)

    if summary.cancelled:
        raise click.Abort()


@cli.command("config")
@click.option("--list", "show_list", is_flag=True, help="List current configuration")
@click.option("--add-ignore", metavar="PATTERN", help="Add pattern to ignore list")
@click.option("--remove-ignore", metavar="PATTERN", help="Remove pattern from ignore list")
@click.option("--add-category", metavar="NAME:EXT1,EXT2", help="Add custom category")
@click.option("--set-default-org", metavar="METHOD", help="Set default organization method (type, date, ext)")
@click.pass_context
def config_command(ctx, show_list, add_ignore, remove_ignore, add_category, set_default_org):
    """Configure TidyFS settings."""
    config_manager = ctx.obj['config_manager']
    changed = any(v is not None for v in (add_ignore, remove_ignore, add_category, set_default_org))

    try:
        if add_ignore is not None:
            if config_manager.add_ignore_pattern(add_ignore):
                console.print(f"[green]✓[/green] Added '{escape(add_ignore)}' to ignore patterns")
            else:
                console.print(f"Pattern '{escape(add_ignore)}' is already ignored")

        if remove_ignore is not None:
            if config_manager.remove_ignore_pattern(remove_ignore):
                console.print(f"[green]✓[/green] Removed '{escape(remove_ignore)}' from ignore patterns")
            else:
                console.print(f"Pattern '{escape(remove_ignore)}' not found in ignore list")

        if add_category is not None:
            name, extensions = parse_category_definition(add_category)
            config_manager.add_category(name, extensions)
            console.print(f"[green]✓[/green] Added custom category '{escape(name)}' "
                          f"with extensions: {', '.join(extensions)}")

        if set_default_org is not None:
            config_manager.set_default_organization(set_default_org)
            console.print(f"[green]✓[/green] Default organization method set to '{set_default_org}'")

    except ValidationError as e:
        raise click.UsageError(str(e), ctx=ctx)
    except ConfigurationError as e:
        handle_cli_error(e, "config")
        raise click.Abort()

    if show_list or not changed:
        _display_config(config_manager.get_config(), config_manager.config_file)


def _remember_directory(ctx, directory: Path):
    """Record a directory in the recent list; failure to save is not fatal."""
    try:
        ctx.obj['config_manager'].record_recent_directory(directory)
    except ConfigurationError as e:
        logging.getLogger(__name__).warning(f"Could not record recent directory: {e}")


def _display_report(report: Report):
    """Print the storage usage report."""
    console.print("\n[bold underline]Storage Usage Report[/bold underline]")
    console.print(f"Total: {report.total_files} files, [bold]{format_file_size(report.total_size)}[/bold]")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Category", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Files", justify="right")
    table.add_column("% of Total", justify="right")

    for stat in report.categories:
        table.add_row(
            escape(stat.name),
            format_file_size(stat.size),
            str(stat.count),
            f"{stat.percentage(report.total_size):.1f}%"
        )
    console.print(table)

    console.print("\n[bold underline]Largest Files:[/bold underline]")
    for descriptor in report.largest_files:
        console.print(f"[cyan]{escape(str(descriptor.path))}[/cyan] "
                      f"([yellow]{format_file_size(descriptor.size)}[/yellow])")


def _display_duplicates(report: Report):
    """Print the duplicate groups section of a report."""
    if not report.duplicate_groups:
        console.print("\n[bold]No duplicate files found.[/bold]")
        return

    console.print(
        f"\n[bold yellow]Duplicate Files Found[/bold yellow] "
        f"({report.duplicate_file_count} duplicate files in {report.duplicate_group_count} groups, "
        f"wasting [bold]{format_file_size(report.wasted_bytes)}[/bold])"
    )

    for i, group in enumerate(report.duplicate_groups, start=1):
        console.print(f"\nGroup {i} - {group.count - 1} duplicates, "
                      f"wasting [yellow]{format_file_size(group.wasted_bytes)}[/yellow]:")
        for descriptor in group.files:
            console.print(f"  {escape(str(descriptor.path))}")

    if report.remaining_duplicate_groups:
        console.print(f"\n... and {report.remaining_duplicate_groups} more duplicate groups")


def _display_move_summary(summary: MoveSummary, verbose: bool):
    """Print the per-file decisions and the final counts of an organize run."""
    for entry in summary.entries:
        source = escape(str(entry.source))
        destination = escape(str(entry.destination))
        if entry.outcome == MoveOutcome.PLANNED:
            console.print(f"  [WOULD MOVE] {entry.source} -> {entry.destination}", markup=False)
        elif entry.outcome == MoveOutcome.ERROR:
            console.print(f"  [red]\\[ERROR][/red] {source}: {escape(entry.error or '')}")
        elif verbose and entry.outcome == MoveOutcome.MOVED:
            console.print(f"  [green]\\[MOVED][/green] {source} -> {destination}")
        elif verbose and entry.outcome == MoveOutcome.SKIPPED:
            console.print(f"  [dim]\\[SKIPPED][/dim] {source} (already in place)")

    if summary.dry_run:
        console.print(f"\n[bold yellow]Dry run complete. {summary.planned_count} files would be moved; "
                      f"no files were moved.[/bold yellow]")
    else:
        console.print(
            f"\nOrganization complete. Moved [bold]{summary.moved_count}[/bold] files, "
            f"skipped {summary.skipped_count}, errors [bold red]{summary.error_count}[/bold red]"
        )


def _display_move_status(summary: MoveSummary):
    color = "green" if not summary.error_count and not summary.cancelled else "yellow"
    console.print(f"[bold {color}]Organize {summary.status}[/bold {color}]")


def _display_errors(errors, verbose: bool):
    if not errors:
        return
    console.print(f"[bold yellow]Warnings: {len(errors)} entries could not be processed[/bold yellow]")
    if verbose:
        for error in errors[:10]:
            console.print(f"  [yellow]- {escape(str(error))}[/yellow]")
        if len(errors) > 10:
            console.print(f"  [dim]... and {len(errors) - 10} more warnings[/dim]")


def _display_config(app_config, config_file: Path):
    console.print("[bold underline]Current Configuration:[/bold underline]")
    console.print(f"File: {escape(str(config_file))}")

    console.print("\nIgnored patterns:")
    for pattern in app_config.ignore_patterns:
        console.print(f"  - {escape(pattern)}")

    console.print("\nCustom categories:")
    for name, extensions in app_config.custom_categories.items():
        console.print(f"  - {escape(name)}: {', '.join(extensions)}")

    console.print(f"\nDefault organization method: {app_config.default_organization}")

    console.print("\nRecent directories:")
    for directory in app_config.recent_directories:
        console.print(f"  - {escape(directory)}")


def format_file_size(size: int) -> str:
    """Format file size in human-readable format."""
    if size >= GB:
        return f"{size / GB:.2f} GB"
    elif size >= MB:
        return f"{size / MB:.2f} MB"
    elif size >= KB:
        return f"{size / KB:.2f} KB"
    else:
        return f"{size} bytes"


def handle_cli_error(error: Exception, operation: str = "operation") -> None:
    """
    Handle CLI errors with appropriate user feedback.

    Args:
        error: The exception that occurred
        operation: Description of the operation that failed
    """
    if isinstance(error, PathNotFoundError):
        console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
        console.print("[yellow]Please check that the path exists and is a directory.[/yellow]")
    elif isinstance(error, IoError):
        console.print(f"[bold red]I/O Error:[/bold red] {escape(str(error))}")
    elif isinstance(error, ScanError):
        console.print(f"[bold red]Scan Error:[/bold red] {escape(str(error))}")
    elif isinstance(error, FileSystemError):
        console.print(f"[bold red]File System Error:[/bold red] {escape(str(error))}")
    elif isinstance(error, ConfigurationError):
        console.print(f"[bold red]Configuration Error:[/bold red] {escape(str(error))}")
    elif isinstance(error, TidyFSError):
        console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    else:
        console.print(f"[bold red]Unexpected Error:[/bold red] {escape(str(error))}")

    console.print(f"[red]aborted: {escape(str(error))}[/red]")
    logging.getLogger(__name__).error(f"CLI error in {operation}: {error}")


if __name__ == "__main__":
    cli()
