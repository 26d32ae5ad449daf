#!/usr/bin/env python3
"""CLI for building the schools database and searching it.

Usage:
    # Build data/schools.sqlite from the raw MIUR files
    vaffaschool ingest

    # Build from another directory, resolving cities with a municipality catalog
    VS_GEO_CATALOG_PATH=data/comuni.json vaffaschool ingest data/raw/MIUR/2019

    # Search
    vaffaschool search "primaria pontassieve"
    vaffaschool search "pnote a sieve" --limit 5 --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from ..config import get_settings
from ..exceptions import VaffaschoolError
from ..search.ranker import SchoolSearch
from ..search.scoring import SearchConfig
from ..services.geo import geo_lookup_from_settings
from ..services.ingest import get_schools, ingest_directory
from ..services.models import ScoredMatch
from ..services.normalizer import NormalizerConfig, RecordNormalizer
from ..services.storage import InMemorySchoolSource, SchoolStore

console = Console()


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None):
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stderr)]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def print_matches(matches: list[ScoredMatch]):
    """Print search results as a table."""
    if not matches:
        console.print("[yellow]No schools found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Code")
    table.add_column("Name")
    table.add_column("City")
    table.add_column("Prov.")
    table.add_column("Email")

    for match in matches:
        school = match.school
        table.add_row(
            f"{match.score:.1f}",
            school.id,
            school.name,
            school.city_name,
            school.province_abbr or "",
            school.email,
        )
    console.print(table)


def run_ingest(args) -> int:
    settings = get_settings()
    directory = args.directory or settings.raw_data_dir

    geo_lookup = geo_lookup_from_settings(settings)
    normalizer = RecordNormalizer(geo_lookup, NormalizerConfig.from_settings(settings))

    try:
        with SchoolStore(settings.sqlite_path, create=True) as store:
            report = ingest_directory(
                directory,
                store,
                normalizer,
                file_types=settings.raw_file_extensions,
                records_key=settings.raw_records_key,
            )
    finally:
        close = getattr(geo_lookup, "close", None)
        if close:
            close()

    if args.json:
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
    else:
        status = "✓" if report.success else "✗"
        console.print(
            f"{status} {report.schools_saved} schools saved to {settings.sqlite_path} "
            f"({report.files_read} files, {report.records_read} records)"
        )
        for path, error in report.skipped_files.items():
            console.print(f"  [red]Skipped[/red] {path}: {error}")
    return 0 if report.success else 1


def run_search(args) -> int:
    settings = get_settings()
    config = SearchConfig.from_settings(settings)

    if settings.search_use_db:
        with SchoolStore(settings.sqlite_path) as store:
            matches = SchoolSearch(store, config).search(args.query, args.limit)
    else:
        normalizer = RecordNormalizer(
            geo_lookup_from_settings(settings), NormalizerConfig.from_settings(settings)
        )
        source = InMemorySchoolSource(get_schools(normalizer, settings, use_db=False))
        matches = SchoolSearch(source, config).search(args.query, args.limit)

    if args.json:
        print(json.dumps(
            [match.model_dump(mode="json", exclude={"school": {"debug_info"}}) for match in matches],
            ensure_ascii=False,
            indent=2,
        ))
    else:
        print_matches(matches)
    return 0


def cli_main():
    """Entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Find Italian schools by approximate name and city",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also log to this file",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output result as JSON (for scripting)",
    )

    # Lets --json also follow the subcommand without resetting a leading --json
    output = argparse.ArgumentParser(add_help=False)
    output.add_argument(
        "--json",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Output result as JSON (for scripting)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser(
        "ingest", parents=[output], help="Build the schools database"
    )
    ingest.add_argument(
        "directory",
        nargs="?",
        type=Path,
        help="Directory with raw MIUR files (default: VS_RAW_DATA_DIR)",
    )
    ingest.set_defaults(func=run_ingest)

    search = subparsers.add_parser("search", parents=[output], help="Search schools")
    search.add_argument("query", help="School name and/or city")
    search.add_argument("--limit", type=int, help="Maximum results to show")
    search.set_defaults(func=run_search)

    args = parser.parse_args()
    setup_logging(verbose=args.verbose, log_file=args.log_file)
    logger = logging.getLogger(__name__)

    try:
        exit_code = args.func(args)
    except VaffaschoolError as e:
        logger.debug("Command failed", exc_info=True)
        if args.json:
            print(json.dumps({"success": False, "error": str(e)}))
        else:
            console.print(f"\n[red]✗ ERROR:[/red] {e}\n")
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    cli_main()
