"""Sync runner entry point.

Pushes changed publications into the search index, or rebuilds it.

Usage:
    python -m services.search_sync.search_sync push [--batch-size N] [--context ID]
    python -m services.search_sync.search_sync rebuild [-n] [--context ID]
"""

import argparse
import asyncio
import sys

from services.search_sync.SyncService import SyncService
from shared.clients.host.HostClientManager import HostClientManager
from shared.clients.search.SearchClientManager import SearchClientManager
from shared.exceptions import ConfigurationError
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging

EXIT_OK = 0
EXIT_ERRORS = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="search_sync", description="Sync host publications into the search index.")
    commands = parser.add_subparsers(dest="command", required=True)

    push = commands.add_parser("push", help="Push dirty publications to the index.")
    push.add_argument("--batch-size", type=int, default=None, help="Maximum publications to push (default: online batch size).")
    push.add_argument("--context", type=int, default=None, dest="context_id", help="Restrict to one context id. Clears that context's entries first and re-adds only the dirty ones; use rebuild --context to refresh a whole journal.")

    rebuild = commands.add_parser("rebuild", help="Clear the index and push every published publication.")
    rebuild.add_argument("-n", "--dry-run", action="store_true", help="Only count what would be indexed.")
    rebuild.add_argument("--context", type=int, default=None, dest="context_id", help="Restrict to one context id.")
    return parser


async def main(argv: list[str] | None = None) -> int:
    """Run one sync command and return the process exit code."""
    args = build_parser().parse_args(argv)
    logger = setup_logging()
    config = HelperConfig(logger=logger)

    try:
        host_client = HostClientManager(helper_config=config).get_client()
        search_client = SearchClientManager(helper_config=config).get_client()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}. Indexing is not available.")
        return EXIT_CONFIG

    try:
        await host_client.boot()
        await search_client.boot()

        sync_service = SyncService(
            helper_config=config,
            host_client=host_client,
            search_client=search_client,
        )
        if args.command == "push":
            result = await sync_service.do_push_changed(batch_size=args.batch_size, context_id=args.context_id)
            print(f"Processed {result.processed}, deleted {result.deleted}, added {result.added}.")
            for error in result.errors:
                print(f"ERROR: {error}", file=sys.stderr)
        else:
            result = await sync_service.do_rebuild(context_id=args.context_id, dry_run=args.dry_run)
            for message in result.messages:
                print(message, file=sys.stderr if message in result.errors else sys.stdout)
        return EXIT_OK if result.success else EXIT_ERRORS
    finally:
        await host_client.close()
        await search_client.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
