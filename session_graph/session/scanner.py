"""
Session directory scanning and cross-session queries.

Session files live one directory per project under the session root:

    ~/.pi/agent/sessions/--home-will-projects-myapp--/2026-01-15_abc.jsonl

The project directory name is the working directory with separators turned
into hyphens. That encoding is lossy, so ``header.cwd`` is the reliable
project path whenever a parsed session is at hand.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

from ..session_schema import ForkRelationship, OverallStats
from .content import parse_timestamp, timestamp_sort_key
from .fork import find_forks
from .session_parser import SessionInfo, SessionParseError, parse_session

logger = logging.getLogger(__name__)

SESSION_FILE_SUFFIX = ".jsonl"


class SessionScanError(Exception):
    """The session root directory could not be read."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(f"{message}: {path}" if path else message)


@dataclass
class ProjectGroup:
    """Sessions sharing one working directory, newest first."""

    cwd: str
    sessions: list[SessionInfo] = field(default_factory=list)
    total_entries: int = 0


@dataclass
class SearchResult:
    session: SessionInfo
    matches: list[str] = field(default_factory=list)


def get_default_session_dir() -> Path:
    return Path.home() / ".pi" / "agent" / "sessions"


def _newest_first(timestamp: str) -> tuple[int, float, str]:
    # unparseable timestamps still sort after every valid one
    rank, instant, raw = timestamp_sort_key(timestamp)
    return (rank, -instant, raw)


# -----------------------------------------------------------------------------
# Scanning
# -----------------------------------------------------------------------------


def iter_sessions(session_dir: str | Path | None = None) -> Iterator[SessionInfo]:
    """
    Parse session files one at a time, project directory by project directory.

    Files that fail to parse and project directories that cannot be listed
    are skipped with a warning. Sessions come out in directory order, not by
    timestamp; use ``scan_sessions`` for a sorted list.

    Raises:
        SessionScanError: If the session root itself cannot be read
    """
    root = Path(session_dir) if session_dir is not None else get_default_session_dir()
    try:
        project_dirs = sorted(root.iterdir())
    except OSError as e:
        raise SessionScanError(f"Failed to read session directory ({e.strerror})", str(root)) from e

    for project_dir in project_dirs:
        if not project_dir.is_dir():
            continue

        try:
            session_files = sorted(
                p for p in project_dir.iterdir()
                if p.name.endswith(SESSION_FILE_SUFFIX) and p.is_file()
            )
        except OSError as e:
            logger.warning(f"Failed to read project directory {project_dir}: {e}")
            continue

        for session_file in session_files:
            try:
                yield parse_session(session_file)
            except (SessionParseError, OSError, UnicodeDecodeError) as e:
                logger.warning(f"Failed to parse session {session_file}: {e}")


def scan_sessions(session_dir: str | Path | None = None) -> list[SessionInfo]:
    """All sessions under the session root, newest first by header timestamp."""
    sessions = list(iter_sessions(session_dir))
    sessions.sort(key=lambda s: _newest_first(s.header.timestamp))
    logger.debug(f"Scanned {len(sessions)} sessions")
    return sessions


def find_fork_relationships(sessions: Iterable[SessionInfo]) -> list[ForkRelationship]:
    """Fork relationships among the sessions, oldest fork first."""
    forks = find_forks(sessions)
    forks.sort(key=lambda f: timestamp_sort_key(f.timestamp))
    return forks


# -----------------------------------------------------------------------------
# Projects
# -----------------------------------------------------------------------------


def group_by_project(sessions: Iterable[SessionInfo]) -> list[ProjectGroup]:
    """Group by ``header.cwd``; the most active project (most entries) comes first."""
    groups: dict[str, ProjectGroup] = {}
    for session in sessions:
        group = groups.setdefault(session.header.cwd, ProjectGroup(cwd=session.header.cwd))
        group.sessions.append(session)
        group.total_entries += session.stats.entry_count

    for group in groups.values():
        group.sessions.sort(key=lambda s: _newest_first(s.header.timestamp))

    return sorted(groups.values(), key=lambda g: g.total_entries, reverse=True)


def decode_project_dir(encoded_name: str) -> str:
    """
    Decode a project directory name, "--home-will-x--" -> "/home/will/x".

    Hyphens in the original path are not escaped, so the result is a guess
    for display only. Names without the surrounding "--" come back unchanged.
    """
    if len(encoded_name) < 4 or not (encoded_name.startswith("--") and encoded_name.endswith("--")):
        return encoded_name
    return "/" + encoded_name[2:-2].replace("-", "/")


def get_project_name(session_path: str | Path) -> str:
    """
    Project path guessed from a session file path.

    Uses the directory after "sessions" when a file name follows it,
    otherwise the file's base name.
    """
    parts = PurePosixPath(str(session_path)).parts
    if "sessions" in parts:
        index = parts.index("sessions")
        if index < len(parts) - 2:
            return decode_project_dir(parts[index + 1])
    return PurePosixPath(str(session_path)).name


def get_project_name_from_session(session: SessionInfo) -> str:
    """The accurate project path, from the session header."""
    return session.header.cwd


# -----------------------------------------------------------------------------
# Filtering and search
# -----------------------------------------------------------------------------


def filter_by_project(sessions: Iterable[SessionInfo], project_path: str) -> list[SessionInfo]:
    return [s for s in sessions if s.header.cwd == project_path]


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def filter_by_date_range(
    sessions: Iterable[SessionInfo],
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[SessionInfo]:
    """
    Sessions whose header timestamp lies within [start, end].

    Either bound may be None. Naive datetimes are taken as UTC. A session with
    an unparseable timestamp cannot be placed, so no bound excludes it.
    """
    start_utc = _as_utc(start) if start is not None else None
    end_utc = _as_utc(end) if end is not None else None

    result = []
    for session in sessions:
        moment = parse_timestamp(session.header.timestamp)
        if moment is not None:
            moment = _as_utc(moment)
            if start_utc is not None and moment < start_utc:
                continue
            if end_utc is not None and moment > end_utc:
                continue
        result.append(session)
    return result


def search_sessions(sessions: Iterable[SessionInfo], query: str) -> list[SearchResult]:
    """Case-insensitive search over session names and first-message previews."""
    query_lower = query.lower()
    results = []
    for session in sessions:
        matches = []
        if session.name and query_lower in session.name.lower():
            matches.append(f"Session name: {session.name}")
        if session.first_message and query_lower in session.first_message.lower():
            matches.append(f"First message: {session.first_message}")
        if matches:
            results.append(SearchResult(session=session, matches=matches))
    return results


def get_overall_stats(sessions: Iterable[SessionInfo]) -> OverallStats:
    stats = OverallStats()
    projects: set[str] = set()
    for session in sessions:
        stats.total_sessions += 1
        projects.add(session.header.cwd)
        stats.total_entries += session.stats.entry_count
        stats.total_messages += session.stats.message_count
        stats.total_tokens += session.stats.total_tokens
        stats.total_cost += session.stats.total_cost
        if session.header.parent_session:
            stats.fork_count += 1
    stats.project_count = len(projects)
    return stats


__all__ = [
    "SESSION_FILE_SUFFIX",
    "SessionScanError",
    "ProjectGroup",
    "SearchResult",
    "get_default_session_dir",
    "iter_sessions",
    "scan_sessions",
    "find_fork_relationships",
    "group_by_project",
    "decode_project_dir",
    "get_project_name",
    "get_project_name_from_session",
    "filter_by_project",
    "filter_by_date_range",
    "search_sessions",
    "get_overall_stats",
]
