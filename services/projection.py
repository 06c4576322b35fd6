"""Filter and sort projections over the cached video collection.

Every function here is pure: inputs are never mutated and a new list is
returned, so views can be recomputed on each filter or sort change.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from video_cache.models import (
    ChannelDirectory,
    FilterState,
    SortDirection,
    SortKey,
    SortState,
    VideoRecord,
)


def matches_filter(record: VideoRecord, filter_state: FilterState) -> bool:
    if filter_state.channel is not None and record.channel != filter_state.channel:
        return False
    if filter_state.country is not None:
        # Records without a location never match a country filter.
        if record.location is None or record.location.country != filter_state.country:
            return False
    return True


def filter_records(records: Iterable[VideoRecord], filter_state: FilterState) -> List[VideoRecord]:
    return [record for record in records if matches_filter(record, filter_state)]


def sort_value(record: VideoRecord, key: SortKey) -> Optional[datetime]:
    if key is SortKey.RECORDING_DATE:
        return record.recording_date
    return record.published_at


def sort_records(records: Sequence[VideoRecord], sort_state: SortState) -> List[VideoRecord]:
    """Stable sort on the chosen timestamp.

    Records missing the timestamp stay in their original positions; the
    records that have one are sorted into the remaining positions. Equal
    timestamps keep their input order in both directions.
    """
    result = list(records)
    keyed_positions = [
        index for index, record in enumerate(result) if sort_value(record, sort_state.key) is not None
    ]
    keyed = sorted(
        (result[index] for index in keyed_positions),
        key=lambda record: sort_value(record, sort_state.key),
        reverse=sort_state.direction is SortDirection.DESCENDING,
    )
    for index, record in zip(keyed_positions, keyed):
        result[index] = record
    return result


def project(
    records: Sequence[VideoRecord],
    filter_state: Optional[FilterState] = None,
    sort_state: Optional[SortState] = None,
) -> List[VideoRecord]:
    """Apply the filter, then the sort, producing the view-ready sequence."""
    filtered = filter_records(records, filter_state or FilterState())
    return sort_records(filtered, sort_state or SortState())


def country_labels(records: Iterable[VideoRecord]) -> List[str]:
    """Unique non-empty country names, sorted, for the country filter."""
    return sorted({record.location.country for record in records if record.location and record.location.country})


def channel_labels(directory: ChannelDirectory) -> List[str]:
    return sorted({name for name in directory.values() if name})


def located_records(records: Iterable[VideoRecord]) -> List[VideoRecord]:
    return [record for record in records if record.location is not None]


__all__ = [
    "channel_labels",
    "country_labels",
    "filter_records",
    "located_records",
    "matches_filter",
    "project",
    "sort_records",
    "sort_value",
]
