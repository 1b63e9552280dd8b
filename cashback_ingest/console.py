#!/usr/bin/env python3
"""
Console interface for ingesting a local cashback export.
Runs the same pipeline as the upload endpoint against the configured database.
"""

import argparse
import sys
from pathlib import Path
from typing import Callable, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .core.config import settings
from .core.errors import DatabasePoolError, InvalidDateParams
from .core.logging_config import configure_logging
from .db.session import close_ingest_pool, open_ingest_pool
from .domain.cashback.schema import build_schema_name
from .domain.cashback.service import IngestResult, ingest_cashback_file

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


class IngestConsole:
    """Ingests one file and renders the outcome."""

    def __init__(self, console: Optional[Console] = None, open_pool: Optional[Callable] = None):
        self.console = console or Console()
        self.open_pool = open_pool or open_ingest_pool

    def format_result(self, result: IngestResult) -> None:
        table = Table(title=f"Ingestion into {result.schema_name}")
        table.add_column("Metric", style="cyan", no_wrap=True)
        table.add_column("Value", style="white", justify="right")

        table.add_row("Rows read", str(result.rows_read))
        table.add_row("Rows skipped (short)", str(result.rows_skipped))
        table.add_row("Jobs queued", str(result.jobs_queued))
        table.add_row("Inserted", f"[green]{result.inserted}[/green]")
        table.add_row("Failed", f"[red]{result.failed}[/red]" if result.failed else "0")
        table.add_row("Cancelled", str(result.cancelled))
        table.add_row("Stopped at blank row", "yes" if result.stopped_at_sentinel else "no")
        table.add_row("Stopped at read error", "[red]yes[/red]" if result.stopped_at_error else "no")
        table.add_row("Elapsed", f"{result.elapsed_seconds:.2f}s")
        self.console.print(table)

        if result.timed_out:
            self.console.print(Panel(
                "[yellow]The request deadline passed; remaining rows were not attempted.[/yellow]",
                title="Timed out",
                border_style="yellow",
            ))
        elif result.failed:
            self.console.print(
                f"[dim]{result.failed} rows failed to insert; see {settings.log_file} for the values.[/dim]"
            )

    def ingest(self, path: Path, month: str, year: str, workers: Optional[int] = None) -> int:
        if not path.is_file():
            self.console.print(f"[red]❌ file csv not found: {path}. please import first[/red]")
            return EXIT_FAILURE

        try:
            schema_name = build_schema_name(month, year)
        except InvalidDateParams as e:
            self.console.print(f"[red]❌ {e.message}[/red]")
            return EXIT_USAGE

        try:
            engine = self.open_pool(settings)
        except DatabasePoolError as e:
            self.console.print(Panel(f"[red]{e.message}[/red]", title="Database", border_style="red"))
            return EXIT_FAILURE

        try:
            with path.open("rb") as stream:
                with self.console.status(f"[bold green]Ingesting {path.name}...", spinner="dots"):
                    result = ingest_cashback_file(
                        stream, engine, schema_name, config=settings, worker_count=workers
                    )
        finally:
            close_ingest_pool(engine)

        self.format_result(result)
        return EXIT_FAILURE if result.timed_out else EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Cashback Ingest Console - load a local export into cashback_<month>_<year>.domain",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s sample.csv --month may --year 2023
  %(prog)s sample.csv --month may --year 2023 --workers 8
        """
    )
    parser.add_argument('file', type=Path, help='Semicolon-delimited export to ingest')
    parser.add_argument('--month', required=True, help='Destination month (e.g. may)')
    parser.add_argument('--year', required=True, help='Destination year (e.g. 2023)')
    parser.add_argument(
        '--workers',
        type=int,
        default=None,
        help=f'Writer threads (default: {settings.ingest_worker_count})'
    )

    args = parser.parse_args(argv)
    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be at least 1")

    configure_logging(settings.log_level, settings.log_file)
    return IngestConsole().ingest(args.file, args.month, args.year, workers=args.workers)


if __name__ == "__main__":
    sys.exit(main())
