"""Segment Layer - Boundary detection and segmentation of one session log."""

from .boundary import (
    HANDOFF_PATTERNS,
    detect_boundaries,
    detect_handoff_target,
    get_boundary_stats,
)
from .leaf_tracker import LeafTracker
from .segments import extract_segments, group_boundaries, segment_entries

__all__ = [
    "HANDOFF_PATTERNS",
    "detect_boundaries",
    "detect_handoff_target",
    "get_boundary_stats",
    "LeafTracker",
    "extract_segments",
    "group_boundaries",
    "segment_entries",
]
