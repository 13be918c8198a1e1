"""
Fork relationships between session files.

A fork is a new session file that continues from a point in another one; its
header names the parent file in ``parentSession``. Unlike boundaries, which
live inside one log, forks relate separate logs. Every function here works
on the relationship list the caller passes in.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..session_schema import ForkRelationship, SessionHeader

if TYPE_CHECKING:
    from .session_parser import SessionInfo


@dataclass
class ForkInfo:
    """Fork details read from one session header."""

    is_fork: bool
    session_path: str
    session_id: str
    timestamp: str
    parent_path: str | None = None


def is_fork_session(header: SessionHeader, session_path: str) -> ForkInfo:
    """Report whether a header declares a parent session."""
    return ForkInfo(
        is_fork=header.parent_session is not None,
        session_path=session_path,
        session_id=header.id,
        timestamp=header.timestamp,
        parent_path=header.parent_session,
    )


def find_forks_from_headers(
    headers: Iterable[tuple[str, SessionHeader]],
) -> list[ForkRelationship]:
    """Fork relationships from ``(path, header)`` pairs, in input order."""
    forks = []
    for path, header in headers:
        if header.parent_session:
            forks.append(ForkRelationship(
                parent_path=header.parent_session,
                child_path=path,
                child_session_id=header.id,
                timestamp=header.timestamp,
            ))
    return forks


def find_forks(sessions: Iterable["SessionInfo"]) -> list[ForkRelationship]:
    """Fork relationships from parsed sessions."""
    return find_forks_from_headers((s.path, s.header) for s in sessions)


def build_fork_tree(forks: Iterable[ForkRelationship]) -> dict[str, list[str]]:
    """parent path -> child paths, in relationship order."""
    tree: dict[str, list[str]] = {}
    for fork in forks:
        tree.setdefault(fork.parent_path, []).append(fork.child_path)
    return tree


def get_fork_chain(session_path: str, forks: Iterable[ForkRelationship]) -> list[str]:
    """
    Ancestors of a session via forks.

    Returns:
        Paths from the oldest ancestor down to session_path (inclusive)
    """
    child_to_parent = {fork.child_path: fork.parent_path for fork in forks}

    chain: list[str] = []
    seen: set[str] = set()
    current: str | None = session_path
    while current is not None and current not in seen:
        seen.add(current)
        chain.append(current)
        current = child_to_parent.get(current)

    chain.reverse()
    return chain


def get_fork_descendants(session_path: str, forks: Iterable[ForkRelationship]) -> list[str]:
    """All sessions forked from session_path, directly or transitively, breadth-first."""
    tree = build_fork_tree(forks)
    descendants: list[str] = []
    seen = {session_path}
    queue = deque([session_path])

    while queue:
        current = queue.popleft()
        for child in tree.get(current, []):
            if child in seen:
                continue
            seen.add(child)
            descendants.append(child)
            queue.append(child)

    return descendants


__all__ = [
    "ForkInfo",
    "is_fork_session",
    "find_forks",
    "find_forks_from_headers",
    "build_fork_tree",
    "get_fork_chain",
    "get_fork_descendants",
]
