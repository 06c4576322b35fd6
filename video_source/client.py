"""YouTube Data API client used by the aggregation pipeline."""

from __future__ import annotations

import errno
import logging
import time
from typing import Any, Callable, Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple, TypeVar
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from httplib2 import HttpLib2Error

from video_cache.models import ChannelDirectory, VideoDetail

from .time_utils import parse_rfc3339

logger = logging.getLogger(__name__)

MAX_RESULTS_LIMIT = 50
VIDEO_KIND = "youtube#video"

T = TypeVar("T")


class SourceUnavailable(RuntimeError):
    """Raised when the video platform cannot be reached or rejects a request."""


class ChunkFailure(NamedTuple):
    index: int
    video_ids: List[str]
    error: SourceUnavailable


class DetailFetchResult(NamedTuple):
    details: List[VideoDetail]
    failures: List[ChunkFailure]


def build_youtube_service(api_key: str):
    """Create a YouTube Data API service client for the given key."""
    return build(
        "youtube",
        "v3",
        developerKey=api_key,
        cache_discovery=False,
    )


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of at most ``size`` items, preserving order."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def fetch_chunk_keeping_failures(
    fetch: Callable[[Sequence[str]], List[VideoDetail]],
    index: int,
    video_ids: List[str],
    *,
    label: str = "",
) -> Tuple[List[VideoDetail], Optional[ChunkFailure]]:
    """Run one details fetch, turning SourceUnavailable into a ChunkFailure."""
    try:
        return fetch(video_ids), None
    except SourceUnavailable as exc:
        logger.warning("Video details chunk %s%s (%s ids) failed: %s", index, label, len(video_ids), exc)
        return [], ChunkFailure(index=index, video_ids=video_ids, error=exc)


def execute_request(request, *, retries: int = 1, label: str = "request") -> Dict[str, Any]:
    """
    Execute a Google API request, retrying transient socket errors.

    `OSError: [Errno 49] Can't assign requested address` shows up when the local
    socket pool is momentarily exhausted; it and timeouts get a short backoff.
    Anything that still fails is raised as SourceUnavailable.
    """
    attempts = max(0, retries) + 1
    for attempt in range(1, attempts + 1):
        try:
            return request.execute(num_retries=0)
        except (HttpError, HttpLib2Error) as exc:
            raise SourceUnavailable(f"YouTube API {label} failed: {exc}") from exc
        except (TimeoutError, OSError) as exc:
            transient = isinstance(exc, TimeoutError) or getattr(exc, "errno", None) == errno.EADDRNOTAVAIL
            if transient and attempt < attempts:
                backoff = 0.5 * attempt
                logger.warning(
                    "YouTube API %s transient error (%s) attempt %s/%s, retrying in %.1fs",
                    label,
                    exc,
                    attempt,
                    attempts,
                    backoff,
                )
                time.sleep(backoff)
                continue
            raise SourceUnavailable(f"YouTube API {label} failed: {exc}") from exc
    raise SourceUnavailable(f"YouTube API {label} failed for unknown reasons.")


def redact_request_uri(request) -> Optional[str]:
    """Return a sanitized request URI without the API key."""
    uri = getattr(request, "uri", None)
    if not uri:
        return None
    parts = urlsplit(uri)
    filtered_query = [
        (k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "key"
    ]
    return urlunsplit(
        (
            parts.scheme,
            parts.netloc,
            parts.path,
            urlencode(filtered_query),
            parts.fragment,
        )
    )


def _log_request(request, label: str) -> None:
    sanitized_uri = redact_request_uri(request)
    if sanitized_uri:
        logger.info("YouTube API request (%s): %s", label, sanitized_uri)


def _pick_thumbnail(thumbnails: Dict[str, Any]) -> Optional[str]:
    for size in ("default", "medium", "high"):
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return None


def _safe_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_video_detail(item: Dict[str, Any]) -> Optional[VideoDetail]:
    """Convert a videos.list item (snippet + recordingDetails) into a VideoDetail."""
    video_id = item.get("id")
    if not video_id:
        return None
    snippet = item.get("snippet") or {}
    recording = item.get("recordingDetails") or {}
    location = recording.get("location") or {}
    latitude = _safe_float(location.get("latitude"))
    longitude = _safe_float(location.get("longitude"))
    if latitude is None or longitude is None:
        latitude = longitude = None
    return VideoDetail(
        id=video_id,
        title=snippet.get("title") or "",
        thumbnail=_pick_thumbnail(snippet.get("thumbnails") or {}),
        channel_id=snippet.get("channelId"),
        channel_title=snippet.get("channelTitle") or "",
        published_at=parse_rfc3339(snippet.get("publishedAt")),
        recording_date=parse_rfc3339(recording.get("recordingDate")),
        tags=tuple(snippet.get("tags") or ()),
        latitude=latitude,
        longitude=longitude,
    )


class YouTubeSourceClient:
    """Wraps the channels, search and videos endpoints the feed depends on."""

    def __init__(
        self,
        service=None,
        *,
        api_key: Optional[str] = None,
        page_size: int = MAX_RESULTS_LIMIT,
        retries: int = 2,
    ):
        if service is None:
            if not api_key:
                raise ValueError("Either a service or an api_key is required.")
            service = build_youtube_service(api_key)
        self._service = service
        self._page_size = max(1, min(MAX_RESULTS_LIMIT, page_size))
        self._retries = retries

    def list_channel_names(self, channel_ids: Iterable[str]) -> ChannelDirectory:
        """Map channel ids to display titles with one batched channels.list call."""
        ids = [channel_id for channel_id in dict.fromkeys(channel_ids) if channel_id]
        if not ids:
            return {}
        request = self._service.channels().list(
            part="snippet",
            id=",".join(ids),
            maxResults=MAX_RESULTS_LIMIT,
        )
        _log_request(request, "channel names")
        response = execute_request(request, retries=self._retries, label="channel names")
        directory: ChannelDirectory = {}
        for item in response.get("items", []):
            channel_id = item.get("id")
            title = (item.get("snippet") or {}).get("title")
            if channel_id and title:
                directory[channel_id] = title
        missing = [channel_id for channel_id in ids if channel_id not in directory]
        if missing:
            logger.warning("No channel title returned for %s", ", ".join(missing))
        return directory

    def iter_channel_video_ids(self, channel_id: str) -> Iterator[str]:
        """Yield every video id of a channel, following nextPageToken until exhausted."""
        page_token: Optional[str] = None
        page = 0
        while True:
            page += 1
            params: Dict[str, Any] = {
                "part": "id",
                "channelId": channel_id,
                "maxResults": self._page_size,
                "order": "date",
                "type": "video",
            }
            if page_token:
                params["pageToken"] = page_token
            request = self._service.search().list(**params)
            _log_request(request, "channel videos")
            response = execute_request(
                request,
                retries=self._retries,
                label=f"channel videos {channel_id} page {page}",
            )
            for item in response.get("items", []):
                resource_id = item.get("id") or {}
                if resource_id.get("kind") == VIDEO_KIND and resource_id.get("videoId"):
                    yield resource_id["videoId"]
            page_token = response.get("nextPageToken")
            if not page_token:
                break

    def fetch_video_details_chunk(self, video_ids: Sequence[str]) -> List[VideoDetail]:
        """Fetch snippet and recording details for at most 50 ids in one call."""
        if not video_ids:
            return []
        if len(video_ids) > MAX_RESULTS_LIMIT:
            raise ValueError(f"At most {MAX_RESULTS_LIMIT} ids per videos.list call, got {len(video_ids)}")
        request = self._service.videos().list(
            part="snippet,recordingDetails",
            id=",".join(video_ids),
        )
        _log_request(request, "video details batch")
        response = execute_request(request, retries=self._retries, label="video details batch")
        details: List[VideoDetail] = []
        for item in response.get("items", []):
            detail = parse_video_detail(item)
            if detail is not None:
                details.append(detail)
        return details

    def fetch_video_details(self, video_ids: Sequence[str], batch_size: int = MAX_RESULTS_LIMIT) -> DetailFetchResult:
        """Fetch details chunk by chunk, keeping the chunks that succeed.

        Results are concatenated in chunk order; order inside a chunk is the
        order the API returns, which need not match the requested ids.
        """
        details: List[VideoDetail] = []
        failures: List[ChunkFailure] = []
        for index, chunk in enumerate(chunked(video_ids, min(batch_size, MAX_RESULTS_LIMIT))):
            chunk_details, failure = fetch_chunk_keeping_failures(self.fetch_video_details_chunk, index, chunk)
            details.extend(chunk_details)
            if failure is not None:
                failures.append(failure)
        return DetailFetchResult(details=details, failures=failures)


__all__ = [
    "ChunkFailure",
    "DetailFetchResult",
    "MAX_RESULTS_LIMIT",
    "SourceUnavailable",
    "YouTubeSourceClient",
    "build_youtube_service",
    "chunked",
    "execute_request",
    "fetch_chunk_keeping_failures",
    "parse_video_detail",
    "redact_request_uri",
]
