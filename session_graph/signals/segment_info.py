"""Per-segment facts used when comparing neighbouring segments."""

from __future__ import annotations

from typing import Any

from ..session.content import assistant_message
from ..session_schema import MessageEntry


def get_primary_model(entries: list[Any]) -> str | None:
    """Most frequently used ``provider/model``; the first seen wins ties."""
    counts: dict[str, int] = {}
    for entry in entries:
        msg = assistant_message(entry)
        if msg is not None:
            counts[msg.model_id] = counts.get(msg.model_id, 0) + 1

    best, best_count = None, 0
    for model, count in counts.items():
        if count > best_count:
            best, best_count = model, count
    return best


def get_segment_timestamp(entries: list[Any]) -> str | None:
    """Timestamp of the first message, else of the first entry."""
    for entry in entries:
        if isinstance(entry, MessageEntry):
            return entry.timestamp
    return entries[0].timestamp if entries else None
