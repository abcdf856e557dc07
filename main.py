# main.py

"""Entry point for the pricesync command-line tool."""

import argparse
import logging
import sys
from pathlib import Path

from pricesync.config.logging_config import setup_logging
from pricesync.config.settings import Settings

logger = logging.getLogger("pricesync.main")


def _add_format_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="table",
        dest="output_format",
        help="Output format (default: table).",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_ids = ", ".join(Settings.default_platform_ids())

    parser = argparse.ArgumentParser(
        prog="pricesync",
        description="Grocery price sync across quick-commerce platforms.",
        epilog=f"Available platforms: {valid_ids}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Show progress messages on the console.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sync = sub.add_parser("sync", help="Sync prices for one product.")
    sync.add_argument(
        "product_id",
        nargs="?",
        default=None,
        help="Catalog product id (omit with --name for a lookup only).",
    )
    sync.add_argument(
        "-n",
        "--name",
        default=None,
        help="Search name to use instead of the catalog name.",
    )
    sync.add_argument(
        "-p",
        "--platforms",
        default=None,
        help="Comma-separated platform IDs (default: all).",
    )
    _add_format_flag(sync)

    sync_all = sub.add_parser(
        "sync-all", help="Sync prices for every catalog product.",
    )
    sync_all.add_argument(
        "--max-minutes",
        type=float,
        default=None,
        dest="max_minutes",
        help="Stop starting new products after this many minutes.",
    )
    _add_format_flag(sync_all)

    search = sub.add_parser("search", help="Search the catalog.")
    search.add_argument("query", nargs="?", default=None)
    search.add_argument("-b", "--barcode", default=None)
    search.add_argument("-c", "--category", default=None)
    _add_format_flag(search)

    history = sub.add_parser("history", help="Show price history.")
    history.add_argument("product_id")
    history.add_argument("-p", "--platform", default=None)
    _add_format_flag(history)

    importer = sub.add_parser(
        "import-products", help="Load products from a CSV/JSON file.",
    )
    importer.add_argument("path", type=Path)

    return parser


def _dispatch(args: argparse.Namespace) -> int:
    from pricesync.cli import runner

    if args.command == "sync":
        if args.product_id is None and args.name is None:
            logger.error("sync needs a product id or --name")
            print("sync needs a product id or --name", file=sys.stderr)
            return runner.EXIT_FAILED
        return runner.run_sync_one(
            args.product_id,
            args.name,
            args.platforms,
            args.output_format,
        )
    if args.command == "sync-all":
        return runner.run_sync_all(args.max_minutes, args.output_format)
    if args.command == "search":
        return runner.run_search(
            args.query, args.barcode, args.category, args.output_format,
        )
    if args.command == "history":
        return runner.run_history(
            args.product_id, args.platform, args.output_format,
        )
    return runner.run_import_products(args.path)


def main() -> None:
    """Parse arguments, set up logging and run the chosen command."""
    parser = _build_parser()
    args = parser.parse_args()

    log_file = setup_logging(verbose=args.verbose)
    logger.info("pricesync starting, log file: %s", log_file)

    try:
        exit_code = _dispatch(args)
    except Exception:
        logger.critical("Fatal error during %s", args.command, exc_info=True)
        raise
    finally:
        logger.info("pricesync %s finished", args.command)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
