"""
Command-line driver for the initialsDB board.

Examples:
    initialsdb search "hello" --pages 2
    initialsdb post "Messages stay forever."
    initialsdb count
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys

from initialsdb_client.core.settings import settings
from initialsdb_client.services.board import BoardClient, load_board_config
from initialsdb_client.services.orchestrator import Orchestrator
from initialsdb_client.services.state import SearchResults
from initialsdb_client.services.status import Severity

logger = logging.getLogger(__name__)

PROGRESS_POLL_SECONDS = 0.5


def _print_status(orchestrator: Orchestrator) -> int:
    message = orchestrator.current_status
    if message is None:
        return 0
    stream = sys.stderr if message.severity is Severity.ERROR else sys.stdout
    print(message.text, file=stream)
    return 1 if message.severity is Severity.ERROR else 0


async def run_search(orchestrator: Orchestrator, query: str, pages: int) -> int:
    """Search and follow the result cursor for up to ``pages`` pages."""
    task = orchestrator.submit_query(query)
    if task is not None:
        await task

    loaded = 1
    while loaded < pages and orchestrator.has_more:
        task = orchestrator.load_more()
        if task is None:
            break
        await task
        loaded += 1

    if isinstance(orchestrator.state, SearchResults):
        for listing in orchestrator.items:
            print(f"[{listing.created_at:%Y-%m-%d %H:%M}] #{listing.id} {listing.body}")
    return _print_status(orchestrator)


async def run_post(orchestrator: Orchestrator, text: str) -> int:
    """Open the post panel, submit ``text`` and report solver progress."""
    orchestrator.refresh_count()
    orchestrator.toggle_post_panel()
    task = orchestrator.submit_post(text)
    if task is None:
        return _print_status(orchestrator)

    last_info: str | None = None
    while not task.done():
        await asyncio.wait({task}, timeout=PROGRESS_POLL_SECONDS)
        if orchestrator.pow_info and orchestrator.pow_info != last_info:
            last_info = orchestrator.pow_info
            print(last_info, file=sys.stderr)

    listing = task.result()
    if listing is not None:
        print(f"#{listing.id} saved, {orchestrator.count_label} messages on the board")
    return _print_status(orchestrator)


async def run_count(orchestrator: Orchestrator) -> int:
    await orchestrator.refresh_count()
    print(orchestrator.count_label)
    return 0


async def _run(args: argparse.Namespace) -> int:
    config = load_board_config()
    if args.base_url:
        config = dataclasses.replace(config, base_url=args.base_url)

    async with BoardClient(config) as client:
        orchestrator = Orchestrator(client)
        try:
            if args.command == "search":
                return await run_search(orchestrator, args.query, args.pages)
            if args.command == "post":
                return await run_post(orchestrator, args.text)
            return await run_count(orchestrator)
        finally:
            await orchestrator.aclose()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Search and post on an initialsDB board")
    parser.add_argument("--base-url", default=None, help="Board URL (default: BOARD_BASE_URL)")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Search listings")
    search.add_argument("query")
    search.add_argument("--pages", type=int, default=1, help="Pages to load (default: 1)")

    post = sub.add_parser("post", help="Solve a proof-of-work and post a message")
    post.add_argument("text")

    sub.add_parser("count", help="Print the total number of listings")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
