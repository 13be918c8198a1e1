"""Segment extraction - split the content-entry stream at boundaries."""

from __future__ import annotations

import logging
from typing import Any

from ..config import DEFAULT_RESUME_GAP_MINUTES
from ..session_schema import Boundary, Segment, content_entries
from .boundary import detect_boundaries

logger = logging.getLogger(__name__)


def _create_segment(segment_entries: list[Any], ending_boundaries: list[Boundary]) -> Segment:
    first, last = segment_entries[0], segment_entries[-1]
    return Segment(
        start_entry_id=first.id,
        end_entry_id=last.id,
        entry_count=len(segment_entries),
        start_timestamp=first.timestamp,
        end_timestamp=last.timestamp,
        boundaries=ending_boundaries,
    )


def group_boundaries(boundaries: list[Boundary]) -> dict[str, list[Boundary]]:
    """entry id -> every boundary at that entry, in detection order."""
    by_entry: dict[str, list[Boundary]] = {}
    for boundary in boundaries:
        by_entry.setdefault(boundary.entry_id, []).append(boundary)
    return by_entry


def extract_segments(
    entries: list[Any],
    boundaries: list[Boundary] | None = None,
    resume_gap_minutes: float = DEFAULT_RESUME_GAP_MINUTES,
) -> list[Segment]:
    """
    Partition entries into contiguous segments.

    A boundary at entry ``i`` closes the segment ending at ``i - 1`` and
    starts a new one at ``i``; the closing segment owns all boundaries at
    ``i``. The trailing segment has no boundaries.

    Args:
        entries: Session entries in log order (labels and session_info are ignored)
        boundaries: Precomputed boundaries; detected from entries when None
        resume_gap_minutes: Resume threshold used when detecting boundaries

    Returns:
        Segments in entry order
    """
    stream = content_entries(entries)
    if not stream:
        return []

    if boundaries is None:
        boundaries = detect_boundaries(entries, resume_gap_minutes)

    by_entry = group_boundaries(boundaries)
    segments: list[Segment] = []
    start = 0

    for i, entry in enumerate(stream):
        entry_boundaries = by_entry.get(entry.id)
        if not entry_boundaries:
            continue
        if i > start:
            segments.append(_create_segment(stream[start:i], entry_boundaries))
        else:
            logger.debug(
                f"Boundaries at first entry {entry.id} have no preceding segment: "
                f"{[b.type for b in entry_boundaries]}"
            )
        start = i

    segments.append(_create_segment(stream[start:], []))
    return segments


def segment_entries(entries: list[Any], segment: Segment) -> list[Any]:
    """Content entries belonging to one segment."""
    stream = content_entries(entries)
    ids = [e.id for e in stream]
    try:
        start = ids.index(segment.start_entry_id)
    except ValueError:
        return []
    return stream[start:start + segment.entry_count]


__all__ = [
    "group_boundaries",
    "extract_segments",
    "segment_entries",
]
