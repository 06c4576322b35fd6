"""Factory helpers for the local video cache."""

from __future__ import annotations

from typing import Optional

from config.settings import VIDEO_CACHE_KEY, VIDEO_CACHE_PATH

from .models import CacheEntry, VideoRecord
from .store import CacheStore, CacheUnavailable, JsonFileCacheStore, is_fresh


def build_cache_store(path: Optional[str] = None, key: Optional[str] = None) -> JsonFileCacheStore:
    """Create a store for the configured cache file; callers inject it explicitly."""
    return JsonFileCacheStore(path or VIDEO_CACHE_PATH, key=key or VIDEO_CACHE_KEY)


__all__ = [
    "CacheEntry",
    "CacheStore",
    "CacheUnavailable",
    "JsonFileCacheStore",
    "VideoRecord",
    "build_cache_store",
    "is_fresh",
]
