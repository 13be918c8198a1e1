"""
Session file parser.

Session logs are JSONL files: the first line is a ``session`` header, every
following line is one tree entry. Structural problems with the header raise
SessionParseError; bad entry lines are logged and skipped so one corrupt
line never costs the whole log.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from ..session_schema import (
    MessageEntry,
    SessionEntry,
    SessionHeader,
    SessionInfoEntry,
    SessionStats,
    UserMessage,
)
from .content import extract_text_preview, timestamp_sort_key
from .session_tree import (
    TreeDiagnostic,
    TreeNode,
    build_tree_with_diagnostics,
    calculate_stats,
    find_leaf,
)

logger = logging.getLogger(__name__)

_entry_adapter: TypeAdapter[Any] = TypeAdapter(SessionEntry)


class SessionParseError(ValueError):
    """The session envelope is structurally invalid."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(f"{message}: {path}" if path else message)


@dataclass
class SessionInfo:
    """Everything derived from one session file."""

    path: str
    header: SessionHeader
    entries: list[Any] = field(default_factory=list)
    tree: TreeNode | None = None
    leaf_id: str | None = None
    stats: SessionStats = field(default_factory=SessionStats)
    name: str | None = None           # latest session_info entry
    first_message: str | None = None  # preview of first user message
    diagnostics: list[TreeDiagnostic] = field(default_factory=list)


def parse_header(line: str, file_path: str | None = None) -> SessionHeader:
    """Parse and validate the header line."""
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise SessionParseError(f"Malformed session header ({e.msg})", file_path) from e

    if not isinstance(data, dict) or data.get("type") != "session":
        raise SessionParseError('Invalid session header, expected type "session"', file_path)

    try:
        return SessionHeader.model_validate(data)
    except ValidationError as e:
        missing = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise SessionParseError(f"Session header missing or invalid fields ({missing})", file_path) from e


def parse_entry(data: Any) -> Any:
    """Validate one decoded record into its entry model (raises ValidationError)."""
    return _entry_adapter.validate_python(data)


def parse_entries(records: list[Any], file_path: str | None = None) -> list[Any]:
    """Validate decoded records, skipping and logging invalid ones."""
    entries = []
    for index, record in enumerate(records):
        try:
            entries.append(parse_entry(record))
        except ValidationError as e:
            logger.warning(
                f"Skipping invalid entry {index} in {file_path or '<memory>'}: "
                f"{e.error_count()} validation error(s)"
            )
    return entries


def find_session_name(entries: list[Any]) -> str | None:
    """Name from the latest session_info entry."""
    latest = None
    for entry in entries:
        if isinstance(entry, SessionInfoEntry):
            if latest is None or timestamp_sort_key(entry.timestamp) > timestamp_sort_key(latest.timestamp):
                latest = entry
    return latest.name if latest else None


def find_first_message(entries: list[Any]) -> str | None:
    """Preview of the first user message."""
    for entry in entries:
        if isinstance(entry, MessageEntry) and isinstance(entry.message, UserMessage):
            return extract_text_preview(entry.message)
    return None


def parse_session_content(content: str, file_path: str) -> SessionInfo:
    """
    Parse session content from a string.

    Args:
        content: Full JSONL text of the session file
        file_path: Path recorded on the result and used in messages

    Returns:
        SessionInfo with entries, tree, leaf, stats and diagnostics

    Raises:
        SessionParseError: empty content or an invalid header
    """
    lines = content.strip().split("\n")
    if not lines or not lines[0].strip():
        raise SessionParseError("Empty session file", file_path)

    header = parse_header(lines[0], file_path)

    entries = []
    for line_no, line in enumerate(lines[1:], start=2):
        line = line.strip()
        if not line:
            continue
        try:
            entries.append(parse_entry(json.loads(line)))
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse line {line_no} in {file_path}: {e.msg}")
        except ValidationError as e:
            logger.warning(
                f"Skipping invalid entry on line {line_no} in {file_path}: "
                f"{e.error_count()} validation error(s)"
            )

    tree, diagnostics = build_tree_with_diagnostics(entries)
    for diagnostic in diagnostics:
        logger.warning(f"[session-parser] {file_path}: {diagnostic.message}")

    return SessionInfo(
        path=file_path,
        header=header,
        entries=entries,
        tree=tree,
        leaf_id=find_leaf(entries),
        stats=calculate_stats(entries, tree),
        name=find_session_name(entries),
        first_message=find_first_message(entries),
        diagnostics=diagnostics,
    )


def parse_session(path: str | Path) -> SessionInfo:
    """Read and parse a session JSONL file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Session file not found: {path}")
    return parse_session_content(path.read_text(encoding="utf-8"), str(path))


def read_session_header(path: str | Path) -> SessionHeader:
    """Read only the header line of a session file."""
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        for line in f:
            if line.strip():
                return parse_header(line, str(path))
    raise SessionParseError("Empty session file", str(path))


__all__ = [
    "SessionParseError",
    "SessionInfo",
    "parse_header",
    "parse_entry",
    "parse_entries",
    "find_session_name",
    "find_first_message",
    "parse_session_content",
    "parse_session",
    "read_session_header",
]
