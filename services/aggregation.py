"""Multi-channel aggregation of YouTube videos into one cached snapshot."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from config.settings import AggregatorConfig
from geocoding.resolver import GeocodeUnavailable, ReverseGeocoder
from video_cache.models import CacheEntry, ChannelDirectory, Location, VideoDetail, VideoRecord
from video_cache.store import CacheStore, CacheUnavailable, now_ms
from video_source.client import (
    ChunkFailure,
    SourceUnavailable,
    YouTubeSourceClient,
    chunked,
    fetch_chunk_keeping_failures,
)

from .projection import country_labels

logger = logging.getLogger(__name__)


class AggregationFailed(RuntimeError):
    """Raised when a cycle cannot produce a snapshot; the prior cache stays valid."""


@dataclass
class AggregationResult:
    entry: CacheEntry
    countries: List[str]
    chunk_failures: List[ChunkFailure] = field(default_factory=list)
    persist_error: Optional[CacheUnavailable] = None

    @property
    def records(self) -> List[VideoRecord]:
        return self.entry.records


class VideoAggregationPipeline:
    """Fetches, enriches and persists the video collection for configured channels.

    Channels and detail chunks are processed one after another; geocoding fans
    out concurrently inside a chunk. Blocking client calls run in worker
    threads so the event loop is never held by network I/O.
    """

    def __init__(
        self,
        config: AggregatorConfig,
        source: YouTubeSourceClient,
        geocoder: ReverseGeocoder,
        cache_store: Optional[CacheStore] = None,
    ):
        self._config = config
        self._source = source
        self._geocoder = geocoder
        self._cache_store = cache_store

    @property
    def config(self) -> AggregatorConfig:
        return self._config

    async def run(self) -> AggregationResult:
        channel_ids = list(self._config.channel_ids)
        logger.info("Starting aggregation for %s channels", len(channel_ids))

        try:
            directory: ChannelDirectory = await asyncio.to_thread(self._source.list_channel_names, channel_ids)
        except SourceUnavailable as exc:
            raise AggregationFailed(f"Channel directory fetch failed: {exc}") from exc

        batches: List[List[VideoRecord]] = []
        failures: List[ChunkFailure] = []
        chunk_count = 0
        for channel_id in channel_ids:
            try:
                video_ids = await asyncio.to_thread(self._list_video_ids, channel_id)
            except SourceUnavailable as exc:
                raise AggregationFailed(f"Listing videos for channel {channel_id} failed: {exc}") from exc
            logger.info("Channel %s has %s videos", channel_id, len(video_ids))

            # Chunks are enriched one at a time, so the client's batch call is not used here.
            for index, chunk in enumerate(chunked(video_ids, self._config.batch_size)):
                chunk_count += 1
                details, failure = await asyncio.to_thread(
                    fetch_chunk_keeping_failures,
                    self._source.fetch_video_details_chunk,
                    index,
                    chunk,
                    label=f" of channel {channel_id}",
                )
                if failure is not None:
                    failures.append(failure)
                    continue
                batches.append(await self._enrich_chunk(details, directory))

        if chunk_count and len(failures) == chunk_count:
            raise AggregationFailed(f"All {chunk_count} video detail chunks failed")

        records = [record for batch in batches for record in batch]
        entry = CacheEntry(timestamp=now_ms(), records=records, channel_directory=directory)
        result = AggregationResult(entry=entry, countries=country_labels(records), chunk_failures=failures)
        logger.info(
            "Aggregated %s videos (%s located, %s failed chunks)",
            len(records),
            sum(1 for record in records if record.location is not None),
            len(failures),
        )

        if self._cache_store is not None:
            try:
                await asyncio.to_thread(self._cache_store.write, entry)
            except CacheUnavailable as exc:
                logger.error("Failed to persist video cache: %s", exc)
                result.persist_error = exc
        return result

    def _list_video_ids(self, channel_id: str) -> List[str]:
        return list(self._source.iter_channel_video_ids(channel_id))

    async def _enrich_chunk(self, details: Sequence[VideoDetail], directory: ChannelDirectory) -> List[VideoRecord]:
        semaphore = asyncio.Semaphore(self._config.geocode_concurrency)

        async def enrich(detail: VideoDetail) -> VideoRecord:
            location: Optional[Location] = None
            if detail.has_coordinates:
                async with semaphore:
                    location = await self._locate(detail)
            return detail.to_record(directory, location)

        return list(await asyncio.gather(*(enrich(detail) for detail in details)))

    async def _locate(self, detail: VideoDetail) -> Optional[Location]:
        try:
            return await asyncio.to_thread(self._geocoder.resolve, detail.latitude, detail.longitude)
        except GeocodeUnavailable as exc:
            logger.warning("Geocoding failed for video %s: %s", detail.id, exc)
            return None


__all__ = ["AggregationFailed", "AggregationResult", "VideoAggregationPipeline"]
