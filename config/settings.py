"""Centralized configuration and environment loading for the video feed."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"

# Load environment variables from .env if present. Deployments that manage
# env vars externally keep working without the file.
try:
    if ENV_PATH.exists():
        load_dotenv(dotenv_path=ENV_PATH)
    else:
        load_dotenv()
except PermissionError:
    logger.warning(
        "Unable to read %s due to permissions. Using existing environment variables.",
        ENV_PATH,
    )


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


DEFAULT_CHANNEL_IDS = [
    "UCynoa1DjwnvHAowA_jiMEAQ",
    "UCK0KOjX3beyB9nzonls0cuw",
    "UCACkIrvrGAQ7kuc0hMVwvmA",
    "UCtWRAKKvOEA0CXOue9BG8ZA",
]

# --- API Keys ---
YOUTUBE_API_KEY = os.getenv("YOUTUBE_API_KEY")

# --- Channels ---
FEED_CHANNEL_IDS = _split_csv(os.getenv("FEED_CHANNEL_IDS")) or list(DEFAULT_CHANNEL_IDS)

# --- YouTube request sizing (platform maximum is 50) ---
DETAIL_BATCH_SIZE = int(os.getenv("DETAIL_BATCH_SIZE", "50"))
SEARCH_PAGE_SIZE = int(os.getenv("SEARCH_PAGE_SIZE", "50"))

# --- Local cache ---
CACHE_TTL_MS = int(os.getenv("CACHE_TTL_MS", str(24 * 60 * 60 * 1000)))
VIDEO_CACHE_PATH = os.getenv(
    "VIDEO_CACHE_PATH",
    str((BASE_DIR / "data" / "video_cache.json").resolve()),
)
VIDEO_CACHE_KEY = os.getenv("VIDEO_CACHE_KEY", "videoCache")

# --- Reverse geocoding ---
GEOCODE_API_URL = os.getenv(
    "GEOCODE_API_URL",
    "https://api.bigdatacloud.net/data/reverse-geocode-client",
)
GEOCODE_LOCALITY_LANGUAGE = os.getenv("GEOCODE_LOCALITY_LANGUAGE", "en")
GEOCODE_TIMEOUT_SECONDS = float(os.getenv("GEOCODE_TIMEOUT_SECONDS", "10"))
GEOCODE_CONCURRENCY = int(os.getenv("GEOCODE_CONCURRENCY", "8"))

# --- Access ---
AUTHORIZED_EMAILS = os.getenv("AUTHORIZED_EMAILS", "")


class AggregatorConfig(BaseModel):
    """Explicit configuration injected into the aggregation pipeline."""

    model_config = ConfigDict(frozen=True)

    channel_ids: List[str] = Field(..., min_length=1, description="Channel IDs in fetch order.")
    api_key: str = Field(..., min_length=1, description="YouTube Data API key.")
    batch_size: int = Field(50, ge=1, le=50, description="Video ids per videos.list call.")
    cache_ttl_ms: int = Field(CACHE_TTL_MS, gt=0, description="Cache freshness window.")
    geocode_concurrency: int = Field(
        GEOCODE_CONCURRENCY,
        ge=1,
        description="Concurrent reverse-geocoding lookups per detail chunk.",
    )


def build_aggregator_config(
    channel_ids: Optional[Sequence[str]] = None,
    api_key: Optional[str] = None,
) -> AggregatorConfig:
    """Build the pipeline configuration from the environment-backed settings."""
    resolved_key = api_key or YOUTUBE_API_KEY
    if not resolved_key:
        raise ValueError("YOUTUBE_API_KEY environment variable is required.")
    resolved_channels = list(channel_ids) if channel_ids is not None else list(FEED_CHANNEL_IDS)
    if not resolved_channels:
        raise ValueError("At least one channel id must be configured (FEED_CHANNEL_IDS).")
    return AggregatorConfig(
        channel_ids=resolved_channels,
        api_key=resolved_key,
        batch_size=DETAIL_BATCH_SIZE,
        cache_ttl_ms=CACHE_TTL_MS,
        geocode_concurrency=GEOCODE_CONCURRENCY,
    )
