"""
Boundary detection for session logs.

One forward pass over the entries emits the events that split a session
into segments:

- branch: tree navigation with a summary (branch_summary entry)
- tree_jump: tree navigation without a summary (parent is not the leaf)
- compaction: context compaction
- resume: idle gap of at least ``resume_gap_minutes``
- handoff: work passed to another agent or model

The resume check is independent of the others, so one entry can carry
several boundaries. They are emitted in check order: branch, compaction or
handoff, then tree_jump, then resume.
"""

from __future__ import annotations

import re
from typing import Any

from ..config import DEFAULT_RESUME_GAP_MINUTES
from ..session.content import first_text, minutes_between, user_message
from ..session_schema import (
    Boundary,
    BoundaryMetadata,
    BoundaryStats,
    BoundaryType,
    BranchSummaryEntry,
    CompactionEntry,
    CustomEntry,
    MessageEntry,
    is_metadata_entry,
)
from .leaf_tracker import LeafTracker

# Case-insensitive; group 1 is the handoff target
HANDOFF_PATTERNS = [
    re.compile(r"\bhandoff\s+to\s+(\S+)", re.IGNORECASE),
    re.compile(r"\bhand\s+(?:this\s+)?off\s+to\s+(\S+)", re.IGNORECASE),
    re.compile(r"\bpassing\s+to\s+(\S+)", re.IGNORECASE),
    re.compile(r"\bcontinue\s+with\s+(\S+)\s+agent", re.IGNORECASE),
]

HANDOFF_CUSTOM_TYPE = "handoff"


def detect_handoff_target(text: str) -> str | None:
    """Target named by a handoff phrase in text, or None."""
    for pattern in HANDOFF_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1)
    return None


def _explicit_handoff_target(entry: Any, custom_type: str) -> tuple[bool, str | None]:
    if not isinstance(entry, CustomEntry) or entry.custom_type != custom_type:
        return False, None
    target = None
    if isinstance(entry.data, dict) and "target" in entry.data:
        target = str(entry.data["target"])
    return True, target


def _check_branch(entry: Any) -> Boundary | None:
    if not isinstance(entry, BranchSummaryEntry):
        return None
    return Boundary(
        type=BoundaryType.BRANCH,
        entry_id=entry.id,
        timestamp=entry.timestamp,
        previous_entry_id=entry.from_id,
        metadata=BoundaryMetadata(summary=entry.summary),
    )


def _check_compaction(entry: Any) -> Boundary | None:
    if not isinstance(entry, CompactionEntry):
        return None
    return Boundary(
        type=BoundaryType.COMPACTION,
        entry_id=entry.id,
        timestamp=entry.timestamp,
        metadata=BoundaryMetadata(tokens_before=entry.tokens_before, summary=entry.summary),
    )


def _check_explicit_handoff(entry: Any, tracker: LeafTracker, custom_type: str) -> Boundary | None:
    """Handoff from a custom marker entry; ``previous_entry_id`` is the current leaf."""
    is_handoff, target = _explicit_handoff_target(entry, custom_type)
    if not is_handoff:
        return None
    return Boundary(
        type=BoundaryType.HANDOFF,
        entry_id=entry.id,
        timestamp=entry.timestamp,
        previous_entry_id=tracker.current_leaf,
        metadata=BoundaryMetadata(handoff_target=target),
    )


def _check_message_handoff(entry: Any, tracker: LeafTracker) -> Boundary | None:
    """
    Handoff named by a phrase in a user message.

    ``previous_entry_id`` is the current leaf, the entry the conversation was
    at when the handoff happened. It is not necessarily the entry's parent
    or the entry just before it in the log.
    """
    msg = user_message(entry)
    if msg is None:
        return None
    text = first_text(msg.content)
    if not text:
        return None
    target = detect_handoff_target(text)
    if target is None:
        return None
    return Boundary(
        type=BoundaryType.HANDOFF,
        entry_id=entry.id,
        timestamp=entry.timestamp,
        previous_entry_id=tracker.current_leaf,
        metadata=BoundaryMetadata(handoff_target=target),
    )


def _check_tree_jump(entry: Any, tracker: LeafTracker, previous_entry: Any) -> Boundary | None:
    if not isinstance(entry, MessageEntry):
        return None
    current_leaf = tracker.current_leaf
    # a parent that is a label or session_info stands for the entry it hangs off
    parent_id = tracker.resolve_parent(entry.parent_id)
    if (
        current_leaf is None
        or parent_id is None
        or parent_id == current_leaf
        # the branch boundary already covers the navigation
        or isinstance(previous_entry, BranchSummaryEntry)
    ):
        return None
    return Boundary(
        type=BoundaryType.TREE_JUMP,
        entry_id=entry.id,
        timestamp=entry.timestamp,
        previous_entry_id=current_leaf,
        metadata=BoundaryMetadata(
            expected_parent_id=current_leaf,
            actual_parent_id=parent_id,
        ),
    )


def _check_resume(entry: Any, previous_entry: Any, resume_gap_minutes: float) -> Boundary | None:
    if previous_entry is None:
        return None
    gap_minutes = minutes_between(previous_entry.timestamp, entry.timestamp)
    if gap_minutes is None or gap_minutes < resume_gap_minutes:
        return None
    return Boundary(
        type=BoundaryType.RESUME,
        entry_id=entry.id,
        timestamp=entry.timestamp,
        previous_entry_id=previous_entry.id,
        metadata=BoundaryMetadata(gap_minutes=round(gap_minutes, 2)),
    )


def detect_boundaries(
    entries: list[Any],
    resume_gap_minutes: float = DEFAULT_RESUME_GAP_MINUTES,
    *,
    handoff_custom_type: str = HANDOFF_CUSTOM_TYPE,
) -> list[Boundary]:
    """
    Detect all boundaries in a list of session entries.

    Args:
        entries: Session entries in log order
        resume_gap_minutes: Minimum idle gap (inclusive) for a resume boundary
        handoff_custom_type: customType of explicit handoff annotation entries

    Returns:
        Boundaries in entry order

    Handoff boundaries record the current leaf as ``previous_entry_id``;
    branch boundaries record the summary's ``from_id`` and resume boundaries
    the entry immediately before in the log.
    """
    boundaries: list[Boundary] = []
    tracker = LeafTracker()
    previous_entry = None

    for entry in entries:
        if is_metadata_entry(entry):
            tracker.update(entry)
            continue

        found = _check_branch(entry) or _check_compaction(entry)
        if found is not None:
            boundaries.append(found)
        else:
            explicit = _check_explicit_handoff(entry, tracker, handoff_custom_type)
            if explicit is not None:
                boundaries.append(explicit)
            else:
                handoff = _check_message_handoff(entry, tracker)
                if handoff is not None:
                    boundaries.append(handoff)
                tree_jump = _check_tree_jump(entry, tracker, previous_entry)
                if tree_jump is not None:
                    boundaries.append(tree_jump)

        resume = _check_resume(entry, previous_entry, resume_gap_minutes)
        if resume is not None:
            boundaries.append(resume)

        tracker.update(entry)
        previous_entry = entry

    return boundaries


def get_boundary_stats(
    entries: list[Any],
    resume_gap_minutes: float = DEFAULT_RESUME_GAP_MINUTES,
) -> BoundaryStats:
    """Boundary totals by type plus the resulting segment count."""
    from .segments import extract_segments

    boundaries = detect_boundaries(entries, resume_gap_minutes)
    segments = extract_segments(entries, boundaries)

    stats = BoundaryStats(total=len(boundaries), segment_count=len(segments))
    for boundary in boundaries:
        stats.by_type[boundary.type] += 1
    return stats


__all__ = [
    "HANDOFF_PATTERNS",
    "HANDOFF_CUSTOM_TYPE",
    "detect_handoff_target",
    "detect_boundaries",
    "get_boundary_stats",
]
