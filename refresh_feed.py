"""Command-line entry point: refresh the video cache and print the projected feed."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from config.settings import AUTHORIZED_EMAILS, SEARCH_PAGE_SIZE, build_aggregator_config
from geocoding import build_reverse_geocoder
from services import AccessList, VideoAggregationPipeline, VideoFeedService
from video_cache import build_cache_store
from video_cache.models import SortDirection, SortKey
from video_source import YouTubeSourceClient

logger = logging.getLogger(__name__)


def build_feed_service() -> VideoFeedService:
    """Wire the configured source, geocoder and cache into a feed service."""
    config = build_aggregator_config()
    cache_store = build_cache_store()
    pipeline = VideoAggregationPipeline(
        config,
        YouTubeSourceClient(api_key=config.api_key, page_size=SEARCH_PAGE_SIZE),
        build_reverse_geocoder(),
        cache_store=cache_store,
    )
    return VideoFeedService(pipeline, cache_store)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--force", action="store_true", help="Ignore a fresh cache and aggregate again.")
    parser.add_argument("--channel", help="Only show videos from this channel name.")
    parser.add_argument("--country", help="Only show videos recorded in this country.")
    parser.add_argument(
        "--sort",
        choices=[key.value for key in SortKey],
        default=SortKey.PUBLISHED_AT.value,
    )
    parser.add_argument(
        "--direction",
        choices=[direction.value for direction in SortDirection],
        default=SortDirection.DESCENDING.value,
    )
    parser.add_argument("--map", action="store_true", help="Print the located videos for the map instead.")
    parser.add_argument("--email", help="Require this address to be on AUTHORIZED_EMAILS.")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    if args.email is not None and not AccessList.from_csv(AUTHORIZED_EMAILS).is_authorized(args.email):
        logger.error("Access denied. %s is not authorized.", args.email)
        return 2

    feed = build_feed_service()
    await feed.refresh(force=args.force)
    feed.set_sort(args.sort, args.direction)
    if args.channel or args.country:
        feed.set_filter(channel=args.channel, country=args.country)

    if args.map:
        payload = feed.map_payload()
    else:
        payload = {
            "videos": [record.model_dump(mode="json", by_alias=True) for record in feed.view()],
            "channels": feed.channel_options(),
            "countries": feed.country_options(),
        }
    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")

    if feed.last_error is not None:
        logger.error("Refresh reported an error: %s", feed.last_error)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point used by `python3 refresh_feed.py`."""
    return asyncio.run(run(parse_args(argv)))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
