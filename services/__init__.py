"""Aggregation, projection and feed services for the video atlas."""

from .access import AccessList
from .aggregation import AggregationFailed, AggregationResult, VideoAggregationPipeline
from .projection import filter_records, project, sort_records
from .video_feed import VideoFeedService

__all__ = [
    "AccessList",
    "AggregationFailed",
    "AggregationResult",
    "VideoAggregationPipeline",
    "VideoFeedService",
    "filter_records",
    "project",
    "sort_records",
]
