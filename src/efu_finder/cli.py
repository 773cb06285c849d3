"""
Command line interface for EFU Finder.

Loads an export, applies a query, and prints one page of the result either as
a plain text table or as JSON.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional, TextIO

from . import __version__
from .config.parser import ConfigParser, ConfigurationError
from .engine import ListingEngine
from .models.search_results import DateField, PageResult, SortKey
from .tools.normalizer import IngestError


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_QUERY_ERROR = 1
EXIT_INPUT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="efu-finder",
        description="Search, sort and page through an EFU file list export",
    )
    parser.add_argument("export", help="Path to the .efu export file")
    parser.add_argument(
        "query",
        nargs="*",
        help="Query tokens; ! negates, file: and path: scope a token, * and ? are wildcards",
    )
    parser.add_argument("--regex", action="store_true", help="Treat query tokens as regular expressions")
    parser.add_argument("--case-sensitive", action="store_true", help="Match respecting case")
    parser.add_argument("--no-dirs", action="store_true", help="Leave directories out of the results")
    parser.add_argument(
        "--sort",
        default=None,
        help="Sort column: " + ", ".join(key.value for key in SortKey),
    )
    parser.add_argument("--desc", action="store_true", help="Sort in descending order")
    parser.add_argument("--page", type=int, default=1, help="1-based page to show (default: 1)")
    parser.add_argument("--page-size", type=int, default=None, help="Records per page")
    parser.add_argument("--config", default=None,
                        help="Path to a YAML configuration file (default: search the usual locations)")
    parser.add_argument("--restore", action="store_true",
                        help="Start from the query, flags and sort saved by --remember")
    parser.add_argument("--remember", action="store_true",
                        help="Save the resulting query, flags and sort for a later --restore")
    parser.add_argument("--preferences", default=None,
                        help="Preferences file used by --restore and --remember")
    parser.add_argument("--json", action="store_true", help="Print the page as JSON")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase log output (-v info, -vv debug)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def render_page(engine: ListingEngine, page: PageResult, out: TextIO) -> None:
    """Write a page as an aligned text table followed by a summary line."""
    rows = [("Name", "Size", "Modified", "Created", "Attributes", "Path")]
    for chunk in engine.iter_page_chunks(page):
        for record in chunk:
            rows.append((
                record.file_name,
                engine.format_size(record),
                engine.format_date(record, DateField.MODIFIED).title or engine.config.display.placeholder,
                engine.format_date(record, DateField.CREATED).title or engine.config.display.placeholder,
                engine.describe_attributes(record),
                record.path,
            ))

    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]) - 1)]
    for row in rows:
        cells = [cell.ljust(width) for cell, width in zip(row, widths)]
        cells.append(row[-1])
        out.write("  ".join(cells).rstrip() + "\n")

    out.write(
        f"\n{page} | Sorted by {engine.sort_state} | Total size: {engine.aggregate_size()}\n"
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_intermixed_args(argv)

    log_level = logging.WARNING
    if args.verbose == 1:
        log_level = logging.INFO
    elif args.verbose > 1:
        log_level = logging.DEBUG
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config_parser = ConfigParser()
    try:
        result = config_parser.load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    for warning in result.warnings:
        if result.is_default:
            logger.info(warning)
        else:
            logger.warning(warning)

    engine = ListingEngine(result.config)
    try:
        engine.ingest_file(args.export)
    except IngestError as e:
        print(f"Cannot load export: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    theme = None
    if args.restore:
        try:
            preferences = config_parser.load_preferences(args.preferences)
        except ConfigurationError as e:
            print(f"Cannot restore preferences: {e}", file=sys.stderr)
            return EXIT_INPUT_ERROR
        engine.apply_preferences(preferences)
        theme = preferences.theme

    if args.no_dirs:
        engine.set_directory_inclusion(False)

    try:
        if args.sort or args.desc:
            engine.set_sort(args.sort or engine.sort_state.key, ascending=not args.desc)
    except ValueError as e:
        print(f"Invalid argument: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    # Query words on the command line replace a restored query
    query = " ".join(args.query) or engine.view.query_text
    regex_mode = True if args.regex else None
    case_sensitive = True if args.case_sensitive else None
    _, error = engine.set_query(query, regex_mode=regex_mode, case_sensitive=case_sensitive)
    if error is not None:
        print(f"Query error: {error}", file=sys.stderr)
        return EXIT_QUERY_ERROR

    try:
        page = engine.get_page(args.page, args.page_size)
    except ValueError as e:
        print(f"Invalid argument: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    if args.remember:
        try:
            saved_to = config_parser.save_preferences(engine.export_preferences(theme), args.preferences)
        except ConfigurationError as e:
            print(f"Cannot save preferences: {e}", file=sys.stderr)
            return EXIT_INPUT_ERROR
        logger.info(f"Preferences saved to {saved_to}")

    if args.json:
        data = page.to_dict()
        data['sort'] = engine.sort_state.to_dict()
        data['stats'] = engine.get_stats()
        json.dump(data, sys.stdout, indent=2, ensure_ascii=False, default=str)
        sys.stdout.write("\n")
    else:
        render_page(engine, page, sys.stdout)

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
