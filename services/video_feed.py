"""Session-level facade over the cache, the aggregation pipeline and projections."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Union

from video_cache.models import (
    CacheEntry,
    FilterState,
    SortDirection,
    SortKey,
    SortState,
    VideoRecord,
)
from video_cache.store import CacheStore, CacheUnavailable, is_fresh

from .aggregation import AggregationFailed, VideoAggregationPipeline
from .projection import channel_labels, country_labels, located_records, project

logger = logging.getLogger(__name__)


class VideoFeedService:
    """Serves cached or freshly aggregated videos through the current filter and sort."""

    def __init__(
        self,
        pipeline: VideoAggregationPipeline,
        cache_store: CacheStore,
        *,
        ttl_ms: Optional[int] = None,
    ):
        self._pipeline = pipeline
        self._cache_store = cache_store
        self._ttl_ms = ttl_ms if ttl_ms is not None else pipeline.config.cache_ttl_ms
        self._entry: Optional[CacheEntry] = None
        self._filter = FilterState()
        self._sort = SortState()
        self._refresh_lock = asyncio.Lock()
        self.last_error: Optional[Exception] = None

    @property
    def entry(self) -> Optional[CacheEntry]:
        return self._entry

    @property
    def filter_state(self) -> FilterState:
        return self._filter

    @property
    def sort_state(self) -> SortState:
        return self._sort

    async def refresh(self, force: bool = False) -> List[VideoRecord]:
        """Serve the fresh cached snapshot or aggregate a new one.

        Cycles are serialised: a caller arriving mid-cycle waits, then either
        reuses the snapshot that cycle produced or, when forced, runs its own.
        """
        async with self._refresh_lock:
            self.last_error = None
            cached = await asyncio.to_thread(self._read_cache)
            if cached is not None:
                self._entry = cached
                if not force and is_fresh(cached, ttl_ms=self._ttl_ms):
                    logger.info("Serving %s cached videos", len(cached.records))
                    return self.view()

            try:
                result = await self._pipeline.run()
            except AggregationFailed as exc:
                logger.error("Aggregation failed, keeping previous snapshot: %s", exc)
                self.last_error = exc
                return self.view()

            self._entry = result.entry
            if result.persist_error is not None:
                self.last_error = result.persist_error
            return self.view()

    def invalidate(self) -> None:
        """Drop the persisted snapshot so the next refresh aggregates again."""
        try:
            self._cache_store.invalidate()
        except CacheUnavailable as exc:
            logger.warning("Failed to invalidate video cache: %s", exc)
            self.last_error = exc

    def set_filter(self, channel: Optional[str] = None, country: Optional[str] = None) -> List[VideoRecord]:
        self._filter = FilterState(channel=channel, country=country)
        return self.view()

    def clear_filter(self) -> List[VideoRecord]:
        self._filter = FilterState()
        return self.view()

    def set_sort(
        self,
        key: Union[SortKey, str] = SortKey.PUBLISHED_AT,
        direction: Union[SortDirection, str] = SortDirection.DESCENDING,
    ) -> List[VideoRecord]:
        self._sort = SortState(key=SortKey(key), direction=SortDirection(direction))
        return self.view()

    def view(self) -> List[VideoRecord]:
        records = self._entry.records if self._entry is not None else []
        return project(records, self._filter, self._sort)

    def channel_options(self) -> List[str]:
        if self._entry is None:
            return []
        return channel_labels(self._entry.channel_directory)

    def country_options(self) -> List[str]:
        if self._entry is None:
            return []
        return country_labels(self._entry.records)

    def map_payload(self) -> List[Dict[str, Any]]:
        """JSON-ready located videos for the embedded map page."""
        if self._entry is None:
            return []
        return [
            record.model_dump(mode="json", by_alias=True)
            for record in located_records(self._entry.records)
        ]

    def _read_cache(self) -> Optional[CacheEntry]:
        try:
            return self._cache_store.read()
        except CacheUnavailable as exc:
            # Fall back to the snapshot held in memory, if any.
            logger.warning("Video cache unreadable, treating as a miss: %s", exc)
            return self._entry


__all__ = ["VideoFeedService"]
