"""
CLI runner for shelf-locator.

Usage:
    python -m shelf_locator.run [OPTIONS] COMMAND

    # Find the shelves for an item
    python -m shelf_locator.run resolve "Sourasky Central Library" "General" "150.5 XYZ"

    # Validate the published feed
    python -m shelf_locator.run check

    # Validate a local CSV export before publishing it
    python -m shelf_locator.run check --csv mappings.csv
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .config import ResolverConfig
from .feed import FeedError, FeedFormatError, FeedParseResult, FeedSource, parse_feed
from .index import MappingIndex
from .resolver import ShelfResolver

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("shelf-locator")


async def resolve_item(config: ResolverConfig, library: str, collection: str, call_number: str) -> int:
    """Print matching records as JSON. Returns exit code."""
    resolver = ShelfResolver.from_config(config)
    records = await resolver.resolve(library, collection, call_number)
    print(json.dumps([r.to_dict() for r in records], ensure_ascii=False, indent=2))
    if not records:
        logger.info("No shelf mapping found")
        return 1
    return 0


async def locate_item(config: ResolverConfig, library: str, collection: str, call_number: str) -> int:
    """Print the aggregated shelf location as JSON. Returns exit code."""
    resolver = ShelfResolver.from_config(config)
    location = await resolver.locate(library, collection, call_number)
    if location is None:
        logger.info("No shelf mapping found")
        print("null")
        return 1
    print(json.dumps(location.to_dict(), ensure_ascii=False, indent=2))
    return 0


async def load_feed(config: ResolverConfig, csv_path: Path | None) -> FeedParseResult:
    """Parse a local CSV file, or fetch and parse the configured feed."""
    if csv_path is not None:
        try:
            text = csv_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FeedFormatError(f"Cannot read {csv_path}: {e}") from e
        return parse_feed(text)
    source = FeedSource(config.feed.get_url(), timeout_seconds=config.feed.timeout_seconds)
    return await source.load_result()


async def check_feed(config: ResolverConfig, csv_path: Path | None) -> int:
    """Report how a feed parses. Returns exit code."""
    try:
        result = await load_feed(config, csv_path)
    except FeedError as e:
        logger.error(f"Feed unusable: {e}")
        return 1

    index = MappingIndex.build(result.records)
    logger.info(f"{len(result.records)} mappings, {len(index.library_keys())} library keys")
    for error in result.dropped:
        logger.warning(f"  dropped {error}")

    return 1 if result.dropped else 0


async def list_libraries(config: ResolverConfig, csv_path: Path | None) -> int:
    """Print library and collection keys present in the feed."""
    try:
        result = await load_feed(config, csv_path)
    except FeedError as e:
        logger.error(f"Feed unusable: {e}")
        return 1

    index = MappingIndex.build(result.records)
    listing = {key: index.collection_keys(key) for key in index.library_keys()}
    print(json.dumps(listing, ensure_ascii=False, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="shelf-locator: Resolve call numbers to shelf locations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Resolve an item (either display language works)
    python -m shelf_locator.run resolve "Sourasky Central Library" "General" "150.5 XYZ"

    # Aggregated location with floor plan
    python -m shelf_locator.run locate "Sourasky Central Library" "General" "150.5"

    # Use a specific config file
    python -m shelf_locator.run --config shelf-locator.yaml check
        """,
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=Path("shelf-locator.yaml"),
        help="Path to config file (default: shelf-locator.yaml)",
    )
    parser.add_argument(
        "--feed-url",
        type=str,
        help="Override feed URL from config",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    for name, help_text in (
        ("resolve", "Print every matching mapping record"),
        ("locate", "Print the aggregated shelf location"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("library", help="Library display name")
        sub.add_argument("collection", help="Collection display name")
        sub.add_argument("call_number", help="Call number as displayed, cutter included")

    for name, help_text in (
        ("check", "Validate the feed and report dropped rows"),
        ("libraries", "List library and collection keys in the feed"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--csv", type=Path, help="Read a local CSV file instead of the feed URL")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Load config
    config = ResolverConfig.from_yaml(args.config)
    if args.feed_url:
        config.feed.url = args.feed_url
        config.feed.url_env = None

    logger.debug(f"Config loaded from {args.config}")

    if args.command == "resolve":
        return asyncio.run(resolve_item(config, args.library, args.collection, args.call_number))

    if args.command == "locate":
        return asyncio.run(locate_item(config, args.library, args.collection, args.call_number))

    if args.command == "check":
        return asyncio.run(check_feed(config, args.csv))

    if args.command == "libraries":
        return asyncio.run(list_libraries(config, args.csv))

    # Default: show help
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
