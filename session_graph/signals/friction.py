"""
Friction signal detection.

Heuristics over one segment's entries that suggest the user was fighting
the session: repeated rephrasing, tool error loops, context churn, model
switches, silent termination and abandoned restarts.
"""

from __future__ import annotations

import re
import shlex
from dataclasses import dataclass, field
from typing import Any

from ..session.content import (
    assistant_message,
    first_text,
    join_text,
    minutes_between,
    tool_calls,
    tool_result,
    user_message,
)
from ..session_schema import FrictionSignals, TextContent, ToolCallContent, ToolResultMessage
from .patterns import has_genuine_praise

# Consecutive user messages that make a rephrasing cascade
REPHRASING_CASCADE_THRESHOLD = 3

# Identical normalized errors from one tool that make a loop
TOOL_LOOP_THRESHOLD = 3

# Distinct reads/listings per churn event
CONTEXT_CHURN_THRESHOLD = 10

ABANDONED_RESTART_WINDOW_MINUTES = 30.0

FILE_OVERLAP_THRESHOLD = 0.3

SILENT_TERMINATION_WINDOW = 10

# Assistant text longer than this counts as a real reply
MEANINGFUL_TEXT_LENGTH = 50

READ_TOOL_NAMES = frozenset({"read"})
SHELL_TOOL_NAMES = frozenset({"bash"})

_DIGITS_RE = re.compile(r"\d+")
_PATH_RE = re.compile(r"/[\w./\-]+")
_QUOTED_RE = re.compile(r'"[^"]+"')


# -----------------------------------------------------------------------------
# Rephrasing cascades
# -----------------------------------------------------------------------------


def _is_meaningful_reply(entry: Any) -> bool:
    msg = assistant_message(entry)
    if msg is None:
        return False
    if tool_calls(msg):
        return True
    return any(
        isinstance(block, TextContent) and len(block.text) > MEANINGFUL_TEXT_LENGTH
        for block in msg.content
    )


def count_rephrasing_cascades(entries: list[Any]) -> int:
    """
    Count runs of 3+ user messages with no meaningful assistant reply between.

    Only a meaningful reply (a tool call or text over 50 characters) ends a
    run; a run still open at the end of the segment counts too.
    """
    cascades = 0
    consecutive = 0

    for entry in entries:
        if user_message(entry) is not None:
            consecutive += 1
        elif _is_meaningful_reply(entry):
            if consecutive >= REPHRASING_CASCADE_THRESHOLD:
                cascades += 1
            consecutive = 0

    if consecutive >= REPHRASING_CASCADE_THRESHOLD:
        cascades += 1

    return cascades


# -----------------------------------------------------------------------------
# Tool loops
# -----------------------------------------------------------------------------


def normalize_error_message(message: str) -> str:
    """Strip the variable parts of an error line so repeats compare equal."""
    normalized = _DIGITS_RE.sub("N", message)
    normalized = _PATH_RE.sub("PATH", normalized)
    normalized = _QUOTED_RE.sub("STR", normalized)
    return normalized.strip().lower()


def error_signature(result: ToolResultMessage) -> str:
    """Normalized first line (max 100 chars) of the first text block."""
    text = first_text(result.content)
    if text is None:
        return "unknown"
    first_line = text.split("\n", 1)[0]
    return normalize_error_message(first_line[:100])


def count_tool_loops(entries: list[Any]) -> int:
    """
    Count tools that failed with the same normalized error 3+ times.

    Each signature counts once, when it reaches the threshold.
    """
    error_counts: dict[str, int] = {}
    loops = 0

    for entry in entries:
        result = tool_result(entry)
        if result is None or not result.is_error:
            continue
        key = f"{result.tool_name}:{error_signature(result)}"
        error_counts[key] = error_counts.get(key, 0) + 1
        if error_counts[key] == TOOL_LOOP_THRESHOLD:
            loops += 1

    return loops


# -----------------------------------------------------------------------------
# Context churn
# -----------------------------------------------------------------------------


def extract_ls_directory(command: str) -> str:
    """Directory listed by an ``ls`` command; "." when none is given."""
    try:
        parts = shlex.split(command)
    except ValueError:
        # unbalanced quotes
        parts = command.split()
    for part in parts[1:]:
        if part and not part.startswith("-"):
            return part
    return "."


def _is_ls_command(command: str) -> bool:
    return command == "ls" or command.startswith("ls ")


def _read_path(call: ToolCallContent) -> str | None:
    for key in ("path", "file_path"):
        value = call.arguments.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def count_context_churn(entries: list[Any]) -> int:
    """
    Churn events: distinct files read plus distinct directories listed, per 10.
    """
    files: set[str] = set()
    dirs: set[str] = set()

    for entry in entries:
        msg = assistant_message(entry)
        if msg is None:
            continue
        for call in tool_calls(msg):
            name = call.name.lower()
            if name in READ_TOOL_NAMES:
                path = _read_path(call)
                if path:
                    files.add(path)
            elif name in SHELL_TOOL_NAMES:
                command = call.arguments.get("command")
                if isinstance(command, str) and _is_ls_command(command.strip()):
                    dirs.add(extract_ls_directory(command.strip()))

    return (len(files) + len(dirs)) // CONTEXT_CHURN_THRESHOLD


# -----------------------------------------------------------------------------
# Model switch
# -----------------------------------------------------------------------------


def first_model(entries: list[Any]) -> str | None:
    for entry in entries:
        msg = assistant_message(entry)
        if msg is not None:
            return msg.model_id
    return None


def detect_model_switch(entries: list[Any], previous_segment_model: str | None = None) -> str | None:
    """The previous segment's model, if this segment starts on a different one."""
    current = first_model(entries)
    if previous_segment_model and current and current != previous_segment_model:
        return previous_segment_model
    return None


# -----------------------------------------------------------------------------
# Silent termination
# -----------------------------------------------------------------------------


def _has_unresolved_error(window: list[Any]) -> bool:
    """A tool error with no later success of the same tool in the window."""
    pending: set[str] = set()
    for entry in window:
        result = tool_result(entry)
        if result is None:
            continue
        if result.is_error:
            pending.add(result.tool_name)
        else:
            pending.discard(result.tool_name)
    return bool(pending)


def _has_success_indicator(window: list[Any]) -> bool:
    for entry in window:
        msg = user_message(entry)
        if msg is not None and has_genuine_praise(join_text(msg.content)):
            return True
    return False


def detect_silent_termination(
    entries: list[Any],
    is_last_segment: bool,
    was_resumed: bool,
    window: int = SILENT_TERMINATION_WINDOW,
) -> bool:
    """
    Session ended mid-task: an unresolved tool error near the end and no
    user acknowledgment of success, in a final segment that was not resumed.
    """
    if not is_last_segment or was_resumed:
        return False
    tail = entries[-window:]
    return _has_unresolved_error(tail) and not _has_success_indicator(tail)


# -----------------------------------------------------------------------------
# Abandoned restart
# -----------------------------------------------------------------------------


def get_files_touched(entries: list[Any]) -> set[str]:
    """Paths named in tool call arguments (path, file, file_path)."""
    files: set[str] = set()
    for entry in entries:
        msg = assistant_message(entry)
        if msg is None:
            continue
        for call in tool_calls(msg):
            for key in ("path", "file", "file_path"):
                value = call.arguments.get(key)
                if isinstance(value, str) and value:
                    files.add(value)
    return files


def has_file_overlap(
    files_a: set[str],
    files_b: set[str],
    threshold: float = FILE_OVERLAP_THRESHOLD,
) -> bool:
    """Shared files make up at least ``threshold`` of the smaller set."""
    if not files_a or not files_b:
        return False
    overlap = len(files_a & files_b)
    return overlap / min(len(files_a), len(files_b)) >= threshold


def _within_restart_window(end_time: str | None, start_time: str | None, window_minutes: float) -> bool:
    gap = minutes_between(end_time, start_time)
    if gap is None:
        return False
    return 0 <= gap < window_minutes


@dataclass
class SegmentWindow:
    """Entries and timing of a segment, for restart comparisons."""

    entries: list[Any] = field(default_factory=list)
    start_time: str | None = None
    end_time: str | None = None
    outcome: str | None = None


def is_abandoned_restart(
    earlier: SegmentWindow,
    later: SegmentWindow,
    window_minutes: float = ABANDONED_RESTART_WINDOW_MINUTES,
    overlap_threshold: float = FILE_OVERLAP_THRESHOLD,
) -> bool:
    """
    Whether ``later`` restarts the abandoned ``earlier`` segment.

    Criteria: earlier outcome is "abandoned", later starts within
    [0, window_minutes) of earlier ending, and they touch similar files.
    """
    if earlier.outcome != "abandoned":
        return False
    if not _within_restart_window(earlier.end_time, later.start_time, window_minutes):
        return False
    return has_file_overlap(
        get_files_touched(earlier.entries),
        get_files_touched(later.entries),
        overlap_threshold,
    )


def is_abandoned_restart_from_node(
    previous_outcome: str,
    previous_timestamp: str,
    previous_files: list[str],
    current_start_time: str,
    current_files: list[str],
    window_minutes: float = ABANDONED_RESTART_WINDOW_MINUTES,
    overlap_threshold: float = FILE_OVERLAP_THRESHOLD,
) -> bool:
    """Same as is_abandoned_restart, against an already-analyzed unit of work."""
    if previous_outcome != "abandoned":
        return False
    if not _within_restart_window(previous_timestamp, current_start_time, window_minutes):
        return False
    return has_file_overlap(set(previous_files), set(current_files), overlap_threshold)


# -----------------------------------------------------------------------------
# Score
# -----------------------------------------------------------------------------


def calculate_friction_score(friction: FrictionSignals) -> float:
    """Weighted friction score, each term capped, total clamped to [0, 1]."""
    score = 0.0
    score += 0.15 * min(friction.rephrasing_count, 2)
    score += 0.1 * min(friction.context_churn_count, 2)
    score += 0.2 * min(friction.tool_loop_count, 2)
    if friction.abandoned_restart:
        score += 0.3
    if friction.model_switch_from:
        score += 0.15
    if friction.silent_termination:
        score += 0.25
    return max(0.0, min(score, 1.0))


def detect_friction_signals(
    entries: list[Any],
    previous_segment_model: str | None = None,
    is_last_segment: bool = False,
    was_resumed: bool = False,
    abandoned_restart: bool = False,
    silent_termination_window: int = SILENT_TERMINATION_WINDOW,
) -> FrictionSignals:
    """Detect all friction signals in one segment."""
    friction = FrictionSignals(
        rephrasing_count=count_rephrasing_cascades(entries),
        context_churn_count=count_context_churn(entries),
        tool_loop_count=count_tool_loops(entries),
        model_switch_from=detect_model_switch(entries, previous_segment_model),
        silent_termination=detect_silent_termination(
            entries, is_last_segment, was_resumed, silent_termination_window
        ),
        abandoned_restart=abandoned_restart,
    )
    friction.score = calculate_friction_score(friction)
    return friction


__all__ = [
    "count_rephrasing_cascades",
    "normalize_error_message",
    "error_signature",
    "count_tool_loops",
    "extract_ls_directory",
    "count_context_churn",
    "first_model",
    "detect_model_switch",
    "detect_silent_termination",
    "get_files_touched",
    "has_file_overlap",
    "SegmentWindow",
    "is_abandoned_restart",
    "is_abandoned_restart_from_node",
    "calculate_friction_score",
    "detect_friction_signals",
]
