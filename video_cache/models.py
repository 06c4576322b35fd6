"""Data models for aggregated video records and the cached snapshot."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"

ChannelDirectory = Dict[str, str]


class Location(BaseModel):
    """Reverse-geocoded recording location."""

    model_config = ConfigDict(frozen=True)

    city: str = Field(default="", description="City or locality label, may be empty.")
    country: str = Field(default="", description="Country name, may be empty.")
    latitude: float
    longitude: float


class VideoRecord(BaseModel):
    """Enriched video entry as stored in the cache and shown by the feed."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., min_length=1, description="YouTube video ID (natural key).")
    title: str = ""
    thumbnail: Optional[str] = Field(default=None, description="Thumbnail URL.")
    channel: str = Field(default="", description="Channel display name.")
    published_at: Optional[datetime] = None
    recording_date: Optional[datetime] = None
    tags: Tuple[str, ...] = Field(default_factory=tuple)
    location: Optional[Location] = None

    @property
    def watch_url(self) -> str:
        return WATCH_URL_TEMPLATE.format(video_id=self.id)


class VideoDetail(BaseModel):
    """Parsed videos.list item before geocoding and channel labelling."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    thumbnail: Optional[str] = None
    channel_id: Optional[str] = None
    channel_title: str = ""
    published_at: Optional[datetime] = None
    recording_date: Optional[datetime] = None
    tags: Tuple[str, ...] = Field(default_factory=tuple)
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def to_record(
        self,
        directory: ChannelDirectory,
        location: Optional[Location] = None,
    ) -> VideoRecord:
        """Label the detail with its channel name and attach a resolved location."""
        channel_name = (directory.get(self.channel_id) if self.channel_id else None) or self.channel_title
        return VideoRecord(
            id=self.id,
            title=self.title,
            thumbnail=self.thumbnail,
            channel=channel_name,
            published_at=self.published_at,
            recording_date=self.recording_date,
            tags=self.tags,
            location=location,
        )


class CacheEntry(BaseModel):
    """One complete aggregation snapshot.

    Serialized as ``{"timestamp": <epoch ms>, "data": [...], "channels": {...}}``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: int = Field(..., ge=0, description="Creation instant in epoch milliseconds.")
    records: List[VideoRecord] = Field(default_factory=list, alias="data")
    channel_directory: ChannelDirectory = Field(default_factory=dict, alias="channels")

    def to_payload(self) -> Dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)


class SortKey(str, Enum):
    PUBLISHED_AT = "publishedAt"
    RECORDING_DATE = "recordingDate"


class SortDirection(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


class FilterState(BaseModel):
    """Conjunctive channel/country equality predicates. ``None`` disables one."""

    model_config = ConfigDict(frozen=True)

    channel: Optional[str] = None
    country: Optional[str] = None


class SortState(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: SortKey = SortKey.PUBLISHED_AT
    direction: SortDirection = SortDirection.DESCENDING


__all__ = [
    "CacheEntry",
    "ChannelDirectory",
    "FilterState",
    "Location",
    "SortDirection",
    "SortKey",
    "SortState",
    "VideoDetail",
    "VideoRecord",
    "WATCH_URL_TEMPLATE",
]
