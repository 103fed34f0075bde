# main.py

"""Entry point for the price_tracker command line."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from price_tracker.config.logging_config import setup_logging
from price_tracker.config.settings import Settings

logger = logging.getLogger("price_tracker.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="price_tracker",
        description="Track product listing prices over time.",
        epilog=f"Database: {Settings.PRICE_DB_PATH}",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        dest="db_path",
        help="SQLite database file (default: data/price_history.db).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    track = sub.add_parser("track", help="Start tracking a product URL.")
    track.add_argument("url", help="Absolute product page URL.")
    track.add_argument(
        "-n",
        "--name",
        default=None,
        help="Catalog name (default: page title up to the first comma).",
    )

    imp = sub.add_parser(
        "import", help="Track every URL in a text file (one per line).",
    )
    imp.add_argument("file", type=Path)

    untrack = sub.add_parser("untrack", help="Stop tracking a product.")
    untrack.add_argument("name")
    untrack.add_argument(
        "--purge",
        action="store_true",
        default=False,
        help="Also delete the product's price history.",
    )

    sub.add_parser("list", help="List tracked products.")
    sub.add_parser("scrape", help="Scrape all tracked products once.")

    history = sub.add_parser("history", help="Show a product's history.")
    history.add_argument("name")

    chart = sub.add_parser("chart", help="Export a price-over-time chart.")
    chart.add_argument("name")
    chart.add_argument(
        "--no-open",
        action="store_false",
        default=True,
        dest="open_browser",
        help="Do not open the chart in a browser.",
    )
    return parser


def _dispatch(args: argparse.Namespace) -> int:
    """Run the selected sub-command and return its exit code."""
    from price_tracker.cli import runner

    if args.command == "track":
        return asyncio.run(
            runner.run_track(args.url, args.name, db_path=args.db_path)
        )
    if args.command == "import":
        return asyncio.run(runner.run_import(args.file, db_path=args.db_path))
    if args.command == "untrack":
        return runner.run_untrack(args.name, args.purge, db_path=args.db_path)
    if args.command == "list":
        return runner.run_list(db_path=args.db_path)
    if args.command == "scrape":
        return asyncio.run(runner.run_scrape(db_path=args.db_path))
    if args.command == "history":
        return runner.run_history(args.name, db_path=args.db_path)
    return runner.run_chart(
        args.name, args.open_browser, db_path=args.db_path,
    )


def main() -> None:
    """Parse arguments, set up logging and run one command."""
    log_file = setup_logging()
    logger.info("price_tracker starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    try:
        exit_code = _dispatch(args)
    except Exception:
        logger.critical("Fatal error running '%s'", args.command, exc_info=True)
        raise
    finally:
        logger.info("price_tracker finished '%s'", args.command)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
