"""
OrangeLogic Search Utility
==========================

Runs a media search against the configured asset manager and prints the
matching items as JSON on stdout.

Connection details come from `~/.orangelogic_config.json` and/or the
`ORANGELOGIC_DOMAIN`, `ORANGELOGIC_LOGIN` and `ORANGELOGIC_PASSWORD`
environment variables. The token is kept in a session file so consecutive
runs reuse it until it expires.

Usage:
    orangelogic-search [--text TEXT] [--keyword KEYWORD] [--media-type TYPE]
                       [--sort ORDER] [--page N] [--count N] [--all-pages]

Example:
    orangelogic-search --text "city" --media-type Image --count 5
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .core.config import MEDIA_TYPES, SORT_ORDERS, DEFAULT_SORT
from .core.orangelogic_api import ConfigurationError
from .core.orangelogic_client import OrangeLogicClient
from .core.session import JsonFileSessionStore
from .utils.config_manager import CONFIG_PATH, load_config
from .utils.logger import setup_logging

SESSION_PATH = Path.home() / ".orangelogic_session.json"

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Search media in an OrangeLogic Asset Manager"
    )
    parser.add_argument("--text", "-t", default="", help="Free-text filter")
    parser.add_argument("--keyword", "-k", default="", help="Exact keyword filter")
    parser.add_argument(
        "--media-type", "-m",
        default="",
        help=f"One of {', '.join(MEDIA_TYPES)} (default: all types)"
    )
    parser.add_argument(
        "--sort", "-s",
        default=DEFAULT_SORT,
        choices=SORT_ORDERS,
        help=f"Result order (default: {DEFAULT_SORT})"
    )
    parser.add_argument("--page", "-p", type=int, default=1, help="Page number, 1-based")
    parser.add_argument("--count", "-c", type=int, default=None, help="Items per page")
    parser.add_argument(
        "--all-pages",
        action="store_true",
        help="Follow NextPage until the last page"
    )
    parser.add_argument("--max-pages", type=int, default=None, help="Page limit for --all-pages")
    parser.add_argument("--config", type=Path, default=CONFIG_PATH, help="Configuration file")
    parser.add_argument("--session-file", type=Path, default=SESSION_PATH, help="Token cache file")
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip TLS certificate verification (test servers only)"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(console_level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        config = load_config(args.config)
    except ValueError as e:
        logger.error(str(e))
        return 1

    if not all([config.domain, config.login, config.password]):
        logger.error(
            f"Connection details missing. Set domain, login and password in {args.config} "
            "or the ORANGELOGIC_* environment variables."
        )
        return 1

    if args.insecure:
        config.verify_ssl = False
    if args.count is not None:
        config.count_per_page = args.count

    store = JsonFileSessionStore(args.session_file)

    try:
        client = OrangeLogicClient.from_config(config, store=store)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    with client:
        if client.get_current_token() is None:
            logger.error(f"Login failed: {client.get_last_error()}")
            return 2

        if args.all_pages:
            pages = client.iter_pages(
                text=args.text,
                keyword=args.keyword,
                media_type=args.media_type,
                start_page=args.page,
                sort_by=args.sort,
                max_pages=args.max_pages
            )
            items = []
            for result in pages:
                items.extend(result.items)
            output = {"TotalCount": client.get_total_count(), "Items": items}
            if client.get_last_error():
                logger.error(f"Search failed: {client.get_last_error()}")
                return 2
        else:
            if not client.search(
                text=args.text,
                keyword=args.keyword,
                media_type=args.media_type,
                page=args.page,
                sort_by=args.sort
            ):
                logger.error(f"Search failed: {client.get_last_error()}")
                return 2
            output = client.get_search_result().to_dict()

    json.dump(output, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
