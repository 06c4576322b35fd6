"""YouTube Data API access for the video feed."""

from .client import (
    ChunkFailure,
    DetailFetchResult,
    SourceUnavailable,
    YouTubeSourceClient,
    build_youtube_service,
    chunked,
    execute_request,
    fetch_chunk_keeping_failures,
    redact_request_uri,
)
from .time_utils import parse_rfc3339

__all__ = [
    "ChunkFailure",
    "DetailFetchResult",
    "SourceUnavailable",
    "YouTubeSourceClient",
    "build_youtube_service",
    "chunked",
    "execute_request",
    "fetch_chunk_keeping_failures",
    "redact_request_uri",
    "parse_rfc3339",
]
