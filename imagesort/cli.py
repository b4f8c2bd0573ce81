"""
Command-line interface for imagesort.
"""

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress
from rich.table import Table

from .config import Config
from .constants import PROGRAM, get_console, get_logger
from .core import ImageSorter
from .errors import ConfigurationError
from .history import HistoryManager
from .models import SortCriterion, SortEventKind, SortJobConfig
from .progress import ProgressContext
from .stats import StatsManager

_LEGACY_ARG = re.compile(r'^(?P<key>[A-Za-z]+)=(?P<value>.*)$', re.DOTALL)
_LEGACY_VALUE_OPTIONS = {
    "source": "--source",
    "target": "--target",
    "sortby": "--sort-by",
    "structure": "--structure",
}
_LEGACY_FLAG_OPTIONS = {
    "rename": "--rename",
    "overwrite": "--overwrite",
    "dryrun": "--dry-run",
}


def is_true(value: str) -> bool:
    return value.strip().strip('"\'').lower() == "true"


def translate_legacy_args(argv: Sequence[str]) -> List[str]:
    """Rewrite key=value arguments (source="..." sortby=date) into option flags.

    Boolean keys are only true for the literal value "true"; keeporiginal=false
    selects move mode. Unknown keys are passed through untouched.
    """
    translated = []
    for arg in argv:
        match = _LEGACY_ARG.match(arg)
        if not match:
            translated.append(arg)
            continue

        key = match.group("key").lower()
        value = match.group("value").strip('"\'')
        if key in _LEGACY_VALUE_OPTIONS:
            translated.extend([_LEGACY_VALUE_OPTIONS[key], value])
        elif key in _LEGACY_FLAG_OPTIONS:
            if is_true(value):
                translated.append(_LEGACY_FLAG_OPTIONS[key])
        elif key == "keeporiginal":
            if not is_true(value):
                translated.append("--move")
        else:
            translated.append(arg)
    return translated


def create_parser(config: Config) -> argparse.ArgumentParser:
    """Create argument parser with dynamic defaults from config."""
    last_source = config.get_last_source()
    last_target = config.get_last_target()
    sort_by = config.get_sort_by()
    structure = config.get_structure()

    source_help = "Source directory containing images to sort"
    target_help = "Target directory where sorted images will be placed"
    sort_help = "Sort criteria: date, name, or size"
    structure_help = "Directory structure for date sorting, e.g. \"YYYY/MM/DD\""

    if last_source:
        source_help += f" (default: {last_source})"
    if last_target:
        target_help += f" (default: {last_target})"
    if sort_by:
        sort_help += f" (default: {sort_by})"
    if structure:
        structure_help += f" (default: {structure})"
    else:
        structure_help += " (default: year/month)"

    parser = argparse.ArgumentParser(
        prog=PROGRAM,
        description="Organize images into folders by date taken, name, or size",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Structure tokens:
  YEAR YYYY YY           year
  MONTH MMMM MMM MM M    month name, abbreviation, number
  DAY DDDD DDD DD D      weekday name, abbreviation, day of month
  HOUR HH H, MINUTE mm m, SECOND SS S

Examples:
  {PROGRAM} ~/Photos ~/Sorted --sort-by date --structure "YYYY/MM"
  {PROGRAM} ~/Photos ~/Sorted --sort-by date --rename --dry-run
  {PROGRAM} source="C:\\Photos" target="C:\\Sorted" sortby="name" overwrite="true"
        """
    )

    parser.add_argument(
        "source", nargs="?",
        help=source_help
    )
    parser.add_argument(
        "target", nargs="?",
        help=target_help
    )
    parser.add_argument(
        "--source", "-s", dest="source_override",
        help="Override source directory"
    )
    parser.add_argument(
        "--target", "-t", dest="target_override",
        help="Override target directory"
    )
    parser.add_argument(
        "--sort-by", "-b", type=str.lower, choices=[c.value for c in SortCriterion],
        help=sort_help
    )
    parser.add_argument(
        "--structure", "-f", type=str, metavar="TEMPLATE",
        help=structure_help
    )
    parser.add_argument(
        "--rename", "-r", action="store_true",
        help="Rename files to their date taken (YYYYMMDD_HHMMSS.ext)"
    )
    parser.add_argument(
        "--overwrite", "-o", action="store_true",
        help="Overwrite existing files instead of adding a _N suffix"
    )
    parser.add_argument(
        "--dry-run", "-n", action="store_true",
        help="Preview operations without making changes"
    )
    parser.add_argument(
        "--move", "-m", action="store_true",
        help="Move files instead of copying them (originals are removed)"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--version", "-V", action="store_true",
        help=f"Display the version number of {PROGRAM} and exit"
    )

    return parser


def configure_logging(console: Console, verbose: bool) -> None:
    """Attach a rich console handler to the package logger once."""
    logger = get_logger()
    handler = next((h for h in logger.handlers if isinstance(h, RichHandler)), None)
    if handler is None:
        handler = RichHandler(console=console, rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.setLevel(logging.DEBUG)


def show_processing_plan(job: SortJobConfig, dry_run: bool, console: Console) -> None:
    """Display the processing plan before execution."""
    mode = "DRY RUN" if dry_run else ("COPY" if job.keep_original else "MOVE")

    console.print("\n[bold]Processing Plan:[/bold]")
    console.print(f"  Source:          [blue]{escape(str(job.source))}[/blue]")
    console.print(f"  Target:          [blue]{escape(str(job.target))}[/blue]")
    console.print(f"  Sort By:         [cyan]{job.sort_by.value}[/cyan]")
    if job.sort_by is SortCriterion.DATE:
        console.print(f"  Structure:       [cyan]{escape(job.structure) or '(default)'}[/cyan]")
    console.print(f"  Rename:          [cyan]{'Yes' if job.rename else 'No'}[/cyan]")
    console.print(f"  Overwrite:       [cyan]{'Yes' if job.overwrite else 'No'}[/cyan]")
    console.print(f"  Processing Mode: [cyan]{mode}[/cyan]")
    console.print()  # Empty line for readability

    if dry_run:
        console.print("[yellow]⚠ DRY RUN MODE - No files will be copied or moved[/yellow]")


def print_summary(stats_manager: StatsManager, console: Console) -> None:
    """Print processing summary."""
    table = Table(title="Sorting Summary")
    table.add_column("Category", style="cyan")
    table.add_column("Count", style="green")

    table.add_row("Sorted", str(stats_manager.get_sorted()))
    table.add_row("Errors", str(stats_manager.get_errors()))

    size_mb = stats_manager.get_total_size_mb()
    if size_mb > 1024:
        size_str = f"{size_mb/1024:.1f} GB"
    else:
        size_str = f"{size_mb:.1f} MB"
    table.add_row("Total Size", size_str)
    console.print(table)

    folder_counts = stats_manager.get_folder_counts()
    if folder_counts:
        folders = Table(title="Folders")
        folders.add_column("Folder", style="cyan")
        folders.add_column("Images", style="green")
        for folder, count in folder_counts:
            folders.add_row(escape(folder), str(count))
        console.print(folders)


def run_sorter(sorter: ImageSorter, dry_run: bool, stats_manager: StatsManager,
               console: Console) -> SortEventKind:
    """Drive a sort run with a progress bar; returns the terminal event kind."""
    terminal = SortEventKind.FAILED

    with Progress(console=console) as progress:
        task = progress.add_task("Sorting images...", total=100)
        progress_ctx = ProgressContext(progress, task)

        with sorter.start(dry_run=dry_run) as run:
            try:
                for event in run:
                    stats_manager.record_event(event)

                    if event.kind is SortEventKind.SORTED:
                        progress_ctx.log(f"[green]✓[/green] {escape(str(event.source))} -> "
                                         f"{escape(str(event.destination))}")
                        progress_ctx.update(f"Sorted: {event.source.name}", event.progress)
                    elif event.kind is SortEventKind.ERROR:
                        progress_ctx.log(f"[red]✗ {escape(event.message)}[/red]")
                        progress_ctx.update(f"Failed: {event.source.name}", event.progress)
                    elif event.kind.is_terminal:
                        terminal = event.kind
                        progress_ctx.update(event.message, event.progress)
                        if event.kind is not SortEventKind.COMPLETED:
                            progress_ctx.log(f"[red]{escape(event.message)}[/red]")
                        elif event.message.startswith("No images"):
                            progress_ctx.log(f"[yellow]{escape(event.message)}[/yellow]")
            except KeyboardInterrupt:
                terminal = SortEventKind.CANCELLED
                console.print("\n[red]Operation cancelled by user[/red]")

    return terminal


def main(argv: Optional[Sequence[str]] = None, config_path: Optional[Path] = None) -> int:
    """Main entry point.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])
        config_path: Optional path to config file (for testing)
    """
    config = Config(config_path=config_path)
    parser = create_parser(config)
    args = parser.parse_args(translate_legacy_args(sys.argv[1:] if argv is None else argv))

    # Handle version option
    if args.version:
        from . import __version__, __copyright__
        if args.verbose:
            print(f"{PROGRAM} version {__version__} {__copyright__}")
            print(f"Config:  {config.config_path}")
            return 0
        print(__version__)
        return 0

    # Determine source, target and sort key
    source_path = args.source_override or args.source or config.get_last_source()
    target_path = args.target_override or args.target or config.get_last_target()
    sort_by = args.sort_by or config.get_sort_by()
    structure = args.structure if args.structure is not None else (config.get_structure() or "")

    if not source_path or not target_path:
        parser.error("Source and target directories are required")
    if not sort_by:
        parser.error("A sort criteria is required (--sort-by date, name, or size)")

    console = get_console()
    configure_logging(console, args.verbose)

    try:
        job = SortJobConfig.from_options(
            source=source_path,
            target=target_path,
            sort_by=sort_by,
            structure=structure,
            rename=args.rename,
            overwrite=args.overwrite,
            keep_original=not args.move,
        )
        job.validate()
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 1

    if job.sort_by is SortCriterion.DATE and not job.structure:
        console.print("[yellow]Warning: 'structure' parameter is recommended when sorting by date.[/yellow]")

    # Update config with current settings
    config.update_paths(str(job.source), str(job.target))
    config.update_sorting(job.sort_by.value, args.structure)

    show_processing_plan(job, args.dry_run, console)

    logger = get_logger()
    history_manager = HistoryManager(target_path=job.target, root_dir=config.program_root,
                                     dry_run=args.dry_run)
    history_manager.setup_run_logger(logger)
    stats_manager = StatsManager(job.target, dry_run=args.dry_run)
    sorter = ImageSorter(job)

    try:
        terminal = run_sorter(sorter, args.dry_run, stats_manager, console)
        print_summary(stats_manager, console)

        if terminal is SortEventKind.COMPLETED:
            status = "PARTIAL" if stats_manager.has_errors() else "SUCCESS"
        else:
            status = terminal.name
        history_manager.log_run_summary(job, stats_manager, status)

        if terminal is not SortEventKind.COMPLETED:
            return 1

        if stats_manager.has_errors():
            console.print(f"\n[green]✓ Sorting completed![/green] "
                          f"[yellow]({stats_manager.get_errors()} files could not be sorted)[/yellow]")
        else:
            console.print("\n[green]✓ Sorting completed successfully![/green]")
        return 0

    except Exception as e:
        console.print(f"\n[red]Fatal error: {escape(str(e))}[/red]")
        return 1
    finally:
        history_manager.close_run_logger(logger)


if __name__ == "__main__":
    sys.exit(main())
