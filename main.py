# main.py

"""Entry point for the gidersen storefront (TUI or headless CLI)."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("gidersen.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="gidersen",
        description="gidersen.com storefront: commission-free local deals.",
        epilog=f"Categories: {', '.join(Settings.PRODUCT_CATEGORIES)}",
    )
    parser.add_argument(
        "--path",
        default="/",
        help="Page to open in the TUI, e.g. /products or /product/<id>.",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        default=False,
        dest="list_catalog",
        help="Print the active catalog and exit.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format for --list (default: json).",
    )
    parser.add_argument(
        "-c",
        "--category",
        default=None,
        choices=Settings.PRODUCT_CATEGORIES,
        help="Only list products in this category.",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Run a connectivity health check on the backend.",
    )
    return parser


def _run_tui(path: str) -> None:
    """Launch the interactive Textual TUI."""
    from src.ui.app import GidersenApp

    try:
        app = GidersenApp(initial_path=path)
        app.run()
    except Exception:
        logger.critical("Fatal error during TUI run", exc_info=True)
        raise
    finally:
        logger.info("gidersen TUI shutting down")


def _run_list(args: argparse.Namespace) -> None:
    """Print the catalog and exit."""
    from src.cli.runner import list_catalog

    sys.exit(list_catalog(args.output_format, args.category))


def _run_health_check() -> None:
    """Run backend connectivity health check."""
    from src.cli.runner import run_health_check

    exit_code = asyncio.run(run_health_check())
    sys.exit(exit_code)


def main() -> None:
    """Route to the TUI (default) or a headless command."""
    parser = _build_parser()
    args = parser.parse_args()

    headless = args.list_catalog or args.health
    log_file = setup_logging(tui=not headless)
    logger.info("gidersen starting, log file: %s", log_file)

    if args.health:
        _run_health_check()
    elif args.list_catalog:
        _run_list(args)
    else:
        _run_tui(args.path)


if __name__ == "__main__":
    main()
