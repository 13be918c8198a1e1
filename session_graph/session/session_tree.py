"""Session tree - parent/child structure and aggregate stats for one log."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from ..session_schema import (
    AssistantMessage,
    BranchSummaryEntry,
    CompactionEntry,
    LabelEntry,
    MessageEntry,
    SessionStats,
    ToolResultMessage,
    UserMessage,
    content_entries,
    content_parent_map,
    is_metadata_entry,
)
from .content import timestamp_sort_key

logger = logging.getLogger(__name__)


@dataclass
class TreeNode:
    """A content entry and its children, ordered by timestamp."""

    entry: Any
    children: list["TreeNode"] = field(default_factory=list)
    depth: int = 0                 # 0 = root
    is_leaf: bool = False          # True only for the session's current leaf
    is_branch_point: bool = False  # More than one child
    labels: list[str] = field(default_factory=list)

    @property
    def entry_id(self) -> str:
        return self.entry.id


@dataclass
class TreeDiagnostic:
    """Irregularity found while building a tree."""

    kind: str  # "multiple_roots" | "orphaned_entries"
    message: str
    entry_ids: list[str] = field(default_factory=list)


def _children_map(
    entries: list[Any], parents: dict[str, str | None]
) -> dict[str | None, list[Any]]:
    """resolved parent id -> children, each list sorted by timestamp (stable)."""
    children_of: dict[str | None, list[Any]] = {}
    for entry in entries:
        children_of.setdefault(parents[entry.id], []).append(entry)
    for children in children_of.values():
        children.sort(key=lambda e: timestamp_sort_key(e.timestamp))
    return children_of


def _labels_map(entries: list[Any]) -> dict[str, list[str]]:
    labels: dict[str, list[str]] = {}
    for entry in entries:
        if isinstance(entry, LabelEntry) and entry.label:
            labels.setdefault(entry.target_id, []).append(entry.label)
    return labels


def find_leaf(entries: list[Any]) -> str | None:
    """
    Find the current leaf entry ID.

    The leaf is the latest content entry that no content entry names as its
    parent, once parents pointing at labels or session_info are resolved to
    their content ancestor. Ties keep the entry seen first.
    """
    tree_entries = content_entries(entries)
    parents = content_parent_map(entries)
    has_children = {p for p in parents.values() if p}

    leaf = None
    for entry in tree_entries:
        if entry.id in has_children:
            continue
        if leaf is None or timestamp_sort_key(entry.timestamp) > timestamp_sort_key(leaf.timestamp):
            leaf = entry

    return leaf.id if leaf else None


def find_branch_points(entries: list[Any]) -> list[str]:
    """IDs of content entries with more than one child, in first-seen order."""
    child_count: dict[str, int] = {}
    for parent_id in content_parent_map(entries).values():
        if parent_id:
            child_count[parent_id] = child_count.get(parent_id, 0) + 1
    return [entry_id for entry_id, count in child_count.items() if count > 1]


def build_tree_with_diagnostics(
    entries: list[Any],
) -> tuple[TreeNode | None, list[TreeDiagnostic]]:
    """
    Build the tree of content entries and report irregularities.

    With several roots (corrupt or merged logs) the earliest-timestamp root
    becomes the tree and a ``multiple_roots`` diagnostic lists every root.
    Entries whose parent never appears are reported as ``orphaned_entries``.
    """
    tree_entries = content_entries(entries)
    diagnostics: list[TreeDiagnostic] = []
    if not tree_entries:
        return None, diagnostics

    parents = content_parent_map(entries)
    children_of = _children_map(tree_entries, parents)
    labels = _labels_map(entries)
    leaf_id = find_leaf(entries)

    known_ids = {e.id for e in tree_entries}
    orphans = [
        e.id for e in tree_entries
        if parents[e.id] is not None and parents[e.id] not in known_ids
    ]
    if orphans:
        diagnostics.append(TreeDiagnostic(
            kind="orphaned_entries",
            message=f"{len(orphans)} entries reference a parent that is not in the log",
            entry_ids=orphans,
        ))

    roots = children_of.get(None, [])
    if not roots:
        return None, diagnostics

    if len(roots) > 1:
        diagnostics.append(TreeDiagnostic(
            kind="multiple_roots",
            message=(
                f"Found {len(roots)} root entries (expected 1); "
                f"using earliest root {roots[0].id}"
            ),
            entry_ids=[r.id for r in roots],
        ))

    # roots are already timestamp-sorted by _children_map
    root = TreeNode(entry=roots[0], depth=0)
    stack = [root]
    visited = {root.entry.id}
    while stack:
        node = stack.pop()
        node.labels = labels.get(node.entry.id, [])
        node.is_leaf = node.entry.id == leaf_id
        for child in children_of.get(node.entry.id, []):
            # duplicate ids would otherwise loop forever
            if child.id in visited:
                continue
            visited.add(child.id)
            child_node = TreeNode(entry=child, depth=node.depth + 1)
            node.children.append(child_node)
            stack.append(child_node)
        node.is_branch_point = len(node.children) > 1

    return root, diagnostics


def build_tree(entries: list[Any]) -> TreeNode | None:
    """Build the session tree, logging any diagnostics."""
    tree, diagnostics = build_tree_with_diagnostics(entries)
    for diagnostic in diagnostics:
        logger.warning(f"[session-tree] {diagnostic.message}: {', '.join(diagnostic.entry_ids)}")
    return tree


def iter_tree(root: TreeNode | None) -> Iterator[TreeNode]:
    """Pre-order walk without recursion."""
    if root is None:
        return
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def calculate_max_depth(root: TreeNode | None) -> int:
    return max((node.depth for node in iter_tree(root)), default=0)


def calculate_stats(entries: list[Any], tree: TreeNode | None) -> SessionStats:
    """Aggregate message, usage and shape counts for a session."""
    stats = SessionStats(entry_count=len(entries))
    models_used: dict[str, None] = {}

    for entry in entries:
        if isinstance(entry, MessageEntry):
            stats.message_count += 1
            msg = entry.message
            if isinstance(msg, UserMessage):
                stats.user_message_count += 1
            elif isinstance(msg, AssistantMessage):
                stats.assistant_message_count += 1
                models_used.setdefault(msg.model_id, None)
                if msg.usage:
                    stats.total_tokens += (msg.usage.input or 0) + (msg.usage.output or 0)
                    if msg.usage.cost:
                        stats.total_cost += msg.usage.cost.total or 0.0
            elif isinstance(msg, ToolResultMessage):
                stats.tool_result_count += 1
        elif isinstance(entry, CompactionEntry):
            stats.compaction_count += 1
        elif isinstance(entry, BranchSummaryEntry):
            stats.branch_summary_count += 1

    stats.branch_point_count = len(find_branch_points(entries))
    stats.max_depth = calculate_max_depth(tree)
    stats.models_used = list(models_used)
    return stats


def get_path_to_entry(entries: list[Any], target_id: str) -> list[Any]:
    """Content entries from the root down to target_id (empty if unknown)."""
    by_id = {e.id: e for e in entries}
    path: list[Any] = []
    seen: set[str] = set()
    current_id: str | None = target_id

    while current_id and current_id not in seen:
        entry = by_id.get(current_id)
        if entry is None:
            break
        seen.add(current_id)
        if not is_metadata_entry(entry):
            path.append(entry)
        current_id = entry.parent_id

    path.reverse()
    return path


def get_entry(entries: list[Any], entry_id: str) -> Any | None:
    return next((e for e in entries if e.id == entry_id), None)


__all__ = [
    "TreeNode",
    "TreeDiagnostic",
    "find_leaf",
    "find_branch_points",
    "build_tree_with_diagnostics",
    "build_tree",
    "iter_tree",
    "calculate_max_depth",
    "calculate_stats",
    "get_path_to_entry",
    "get_entry",
]
