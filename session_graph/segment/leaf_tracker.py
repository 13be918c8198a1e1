"""LeafTracker - current tree frontier during one forward pass."""

from __future__ import annotations

from typing import Any

from ..session_schema import is_metadata_entry, resolve_content_parent


class LeafTracker:
    """
    Tracks the current leaf as entries are processed in log order.

    The leaf is the most recently added content entry. A new entry whose
    parent is not the leaf means the user navigated elsewhere in the tree.
    Labels and session_info hang off the leaf without moving it; a later
    entry that names one of them as its parent is attached to the content
    entry above it (see ``resolve_parent``).
    Create one per pass; ``reset()`` clears it for reuse.
    """

    def __init__(self) -> None:
        self._children_of: dict[str, list[str]] = {}
        self._metadata_parents: dict[str, str | None] = {}
        self._latest_entry_id: str | None = None
        self._previous_entry_id: str | None = None
        self._previous_timestamp: str | None = None

    def resolve_parent(self, parent_id: str | None) -> str | None:
        """parent_id, or the nearest content ancestor if it names a metadata entry seen so far."""
        return resolve_content_parent(parent_id, self._metadata_parents)

    def update(self, entry: Any) -> None:
        """Record an entry."""
        if is_metadata_entry(entry):
            # never moves the frontier
            self._metadata_parents[entry.id] = entry.parent_id
            return

        parent_id = self.resolve_parent(entry.parent_id)
        if parent_id:
            self._children_of.setdefault(parent_id, []).append(entry.id)

        self._previous_entry_id = self._latest_entry_id
        self._previous_timestamp = entry.timestamp
        self._latest_entry_id = entry.id

    @property
    def current_leaf(self) -> str | None:
        return self._latest_entry_id

    @property
    def previous_entry_id(self) -> str | None:
        """The leaf before the current one."""
        return self._previous_entry_id

    @property
    def previous_timestamp(self) -> str | None:
        """Timestamp of the current leaf."""
        return self._previous_timestamp

    def is_leaf(self, entry_id: str) -> bool:
        return entry_id not in self._children_of

    def is_branch_point(self, entry_id: str) -> bool:
        return len(self._children_of.get(entry_id, [])) > 1

    def child_count(self, entry_id: str) -> int:
        return len(self._children_of.get(entry_id, []))

    def reset(self) -> None:
        self._children_of.clear()
        self._metadata_parents.clear()
        self._latest_entry_id = None
        self._previous_entry_id = None
        self._previous_timestamp = None
