"""
Arch indexer CLI entry point.

Ingest every block and transaction of an Arch chain into a database and serve
them over HTTP.

Usage::

    python -m arch_indexer
    python -m arch_indexer --config indexer.yaml
    python -m arch_indexer --node-url http://localhost:9002 --sqlite ./index.db

Options:
    --config     Path to a YAML configuration file
    --node-url   Node RPC endpoint (overrides ARCH_NODE_URL)
    --sqlite     Store the index in this SQLite file instead of PostgreSQL
    --port       API port (overrides PORT / INDEXER_PORT)

Environment variables are read after the YAML file, and a .env file in the
working directory is loaded first.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Mapping, Sequence
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from arch_indexer.config import IndexerConfig
from arch_indexer.exceptions import StartupError
from arch_indexer.indexer import Indexer

logger = logging.getLogger(__name__)


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors for better readability."""

    # ANSI color codes
    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)

        timestamp = self.formatTime(record, self.datefmt)
        colored_time = f"{self.CYAN}{timestamp}{self.RESET}"
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"

        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        return f"{colored_time} {levelname} {name}: {message}"


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Configure logging for the indexer with optional colors."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    # Use colored formatter unless disabled
    if no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # Request logs from the HTTP client are only useful when debugging.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def create_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="arch-indexer",
        description="Arch blockchain indexer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--node-url",
        type=str,
        default=None,
        help="Node RPC endpoint (e.g., http://localhost:9002)",
    )
    parser.add_argument(
        "--sqlite",
        type=Path,
        default=None,
        help="Store the index in a SQLite file instead of PostgreSQL",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the read API (default: 3003)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )
    return parser


def build_config(
    args: argparse.Namespace,
    environ: Mapping[str, str] | None = None,
) -> IndexerConfig:
    """
    Resolve the effective configuration.

    Command line flags win over environment variables, which win over the
    YAML file.
    """
    config = IndexerConfig.load(args.config, os.environ if environ is None else environ)

    updates: dict[str, object] = {}
    if args.node_url is not None:
        updates["node_url"] = args.node_url
    if args.sqlite is not None:
        updates["database"] = config.database.model_copy(update={"sqlite_path": str(args.sqlite)})
    if args.port is not None:
        updates["api"] = replace(config.api, port=args.port)

    return config.model_copy(update=updates) if updates else config


async def run_indexer(config: IndexerConfig) -> None:
    """Start the indexer and run it until shutdown."""
    database = config.database
    if database.uses_sqlite:
        backend = f"sqlite:{database.sqlite_path}"
    else:
        backend = f"postgres:{database.host}:{database.port}/{database.name}"
    logger.info("Indexing %s into %s", config.node_url, backend)

    indexer = await Indexer.create(config)
    await indexer.run()


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    load_dotenv()

    args = create_parser().parse_args(argv)
    setup_logging(args.verbose, args.no_color)

    config = build_config(args)

    try:
        asyncio.run(run_indexer(config))
    except StartupError as exc:
        logger.critical("Startup failed: %s", exc.message)
        sys.exit(1)
    except KeyboardInterrupt:
        # asyncio.run() handles task cancellation, but we log for clarity.
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
