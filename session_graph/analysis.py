"""
Session analysis - segments plus per-segment signals for one log.

Ties the engine together for callers that store units of work: each
segment gets its entry slice, friction and delight signals, manual flags,
touched files and primary model. The summarizer is an opaque callable;
its output is returned as-is.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .config import SegmenterConfig, default_config
from .segment.boundary import detect_boundaries
from .segment.segments import extract_segments
from .session.session_parser import SessionInfo
from .session_schema import (
    Boundary,
    BoundaryType,
    DelightSignals,
    FrictionSignals,
    ManualFlag,
    Segment,
    content_entries,
)
from .signals.delight import detect_delight_signals
from .signals.flags import extract_manual_flags
from .signals.friction import (
    detect_friction_signals,
    get_files_touched,
    is_abandoned_restart_from_node,
)
from .signals.segment_info import get_primary_model, get_segment_timestamp

logger = logging.getLogger(__name__)

# segment payload -> structured document (content, lessons, ...)
Summarizer = Callable[[dict[str, Any]], Any]


@dataclass
class PreviousNode:
    """An earlier stored unit of work, for abandoned-restart detection."""

    outcome: str
    timestamp: str
    files_touched: list[str] = field(default_factory=list)


@dataclass
class SegmentAnalysis:
    """One segment and everything detected inside it."""

    index: int
    segment: Segment
    entries: list[Any]
    friction: FrictionSignals
    delight: DelightSignals
    manual_flags: list[ManualFlag] = field(default_factory=list)
    files_touched: list[str] = field(default_factory=list)
    primary_model: str | None = None


@dataclass
class SessionAnalysis:
    """Segmentation of one session log."""

    session_path: str
    session_id: str
    boundaries: list[Boundary] = field(default_factory=list)
    segments: list[SegmentAnalysis] = field(default_factory=list)


def _was_resumed(segment: Segment) -> bool:
    return any(b.type == BoundaryType.RESUME for b in segment.boundaries)


def analyze_entries(
    entries: list[Any],
    config: SegmenterConfig | None = None,
    previous_node: PreviousNode | None = None,
) -> tuple[list[Boundary], list[SegmentAnalysis]]:
    """
    Segment entries and compute signals for every segment.

    Args:
        entries: Session entries in log order
        config: Engine settings (default_config when None)
        previous_node: Earlier unit of work compared with the first segment

    Returns:
        (boundaries, per-segment analyses), both in entry order
    """
    config = config or default_config
    boundaries = detect_boundaries(
        entries,
        config.resume_gap_minutes,
        handoff_custom_type=config.handoff_custom_type,
    )
    segments = extract_segments(entries, boundaries)

    stream = content_entries(entries)
    results: list[SegmentAnalysis] = []
    previous_model: str | None = None
    offset = 0

    for index, segment in enumerate(segments):
        # segments tile the content stream in order
        slice_ = stream[offset:offset + segment.entry_count]
        offset += segment.entry_count
        files = sorted(get_files_touched(slice_))

        abandoned_restart = False
        if index == 0 and previous_node is not None:
            start_time = get_segment_timestamp(slice_) or segment.start_timestamp
            abandoned_restart = is_abandoned_restart_from_node(
                previous_node.outcome,
                previous_node.timestamp,
                previous_node.files_touched,
                start_time,
                files,
                window_minutes=config.abandoned_restart_window_minutes,
                overlap_threshold=config.file_overlap_threshold,
            )

        friction = detect_friction_signals(
            slice_,
            previous_segment_model=previous_model,
            is_last_segment=index == len(segments) - 1,
            was_resumed=_was_resumed(segment),
            abandoned_restart=abandoned_restart,
            silent_termination_window=config.silent_termination_window,
        )
        primary_model = get_primary_model(slice_)

        results.append(SegmentAnalysis(
            index=index,
            segment=segment,
            entries=slice_,
            friction=friction,
            delight=detect_delight_signals(slice_),
            manual_flags=extract_manual_flags(slice_, config.manual_flag_type),
            files_touched=files,
            primary_model=primary_model,
        ))
        if primary_model:
            previous_model = primary_model

    logger.debug(f"Analyzed {len(entries)} entries: {len(boundaries)} boundaries, {len(results)} segments")
    return boundaries, results


def analyze_session(
    session: SessionInfo,
    config: SegmenterConfig | None = None,
    previous_node: PreviousNode | None = None,
) -> SessionAnalysis:
    """Analyze a parsed session file."""
    boundaries, segments = analyze_entries(session.entries, config, previous_node)
    return SessionAnalysis(
        session_path=session.path,
        session_id=session.header.id,
        boundaries=boundaries,
        segments=segments,
    )


def build_segment_payload(analysis: SessionAnalysis, segment: SegmentAnalysis) -> dict[str, Any]:
    """JSON-ready summarizer input for one segment."""
    return {
        "sessionFile": analysis.session_path,
        "sessionId": analysis.session_id,
        "segmentIndex": segment.index,
        "segment": segment.segment.model_dump(by_alias=True, exclude_none=True),
        "entries": [e.model_dump(by_alias=True, exclude_none=True) for e in segment.entries],
        "signals": {
            "friction": segment.friction.model_dump(by_alias=True),
            "delight": segment.delight.model_dump(by_alias=True),
            "manualFlags": [f.model_dump(by_alias=True) for f in segment.manual_flags],
        },
        "filesTouched": segment.files_touched,
        "primaryModel": segment.primary_model,
    }


def summarize_segments(analysis: SessionAnalysis, summarizer: Summarizer) -> list[Any]:
    """Call the summarizer once per segment; results are not validated."""
    return [summarizer(build_segment_payload(analysis, seg)) for seg in analysis.segments]


__all__ = [
    "Summarizer",
    "PreviousNode",
    "SegmentAnalysis",
    "SessionAnalysis",
    "analyze_entries",
    "analyze_session",
    "build_segment_payload",
    "summarize_segments",
]
