"""Text and tool-call extraction from message content."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from ..session_schema import (
    AssistantMessage,
    MessageEntry,
    TextContent,
    ToolCallContent,
    ToolResultMessage,
    UserMessage,
)

_WHITESPACE_RE = re.compile(r"\s+")


def join_text(content: Any, sep: str = " ") -> str:
    """Join all text blocks of a message body (plain strings pass through)."""
    if isinstance(content, str):
        return content
    return sep.join(block.text for block in content or [] if isinstance(block, TextContent))


def first_text(content: Any) -> str | None:
    """Return the first text block of a message body, or None."""
    if isinstance(content, str):
        return content
    for block in content or []:
        if isinstance(block, TextContent):
            return block.text
    return None


def tool_calls(message: AssistantMessage) -> list[ToolCallContent]:
    """Tool invocations in an assistant message, in order."""
    return [block for block in message.content if isinstance(block, ToolCallContent)]


def user_message(entry: Any) -> UserMessage | None:
    if isinstance(entry, MessageEntry) and isinstance(entry.message, UserMessage):
        return entry.message
    return None


def assistant_message(entry: Any) -> AssistantMessage | None:
    if isinstance(entry, MessageEntry) and isinstance(entry.message, AssistantMessage):
        return entry.message
    return None


def tool_result(entry: Any) -> ToolResultMessage | None:
    if isinstance(entry, MessageEntry) and isinstance(entry.message, ToolResultMessage):
        return entry.message
    return None


def truncate(text: str, max_length: int) -> str:
    """Collapse whitespace and cut to max_length with an ellipsis."""
    cleaned = _WHITESPACE_RE.sub(" ", text).strip()
    if len(cleaned) <= max_length:
        return cleaned
    return cleaned[: max_length - 3] + "..."


def extract_text_preview(message: UserMessage | AssistantMessage, max_length: int = 100) -> str:
    """Preview of the first text in a message."""
    text = first_text(message.content)
    if text is None:
        return ""
    return truncate(text, max_length)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; None when missing or malformed."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def minutes_between(start: str | None, end: str | None) -> float | None:
    """Elapsed minutes from start to end, or None if either is unusable."""
    start_dt = parse_timestamp(start)
    end_dt = parse_timestamp(end)
    if start_dt is None or end_dt is None:
        return None
    try:
        return (end_dt - start_dt).total_seconds() / 60
    except TypeError:
        # naive vs aware
        return None


def timestamp_sort_key(value: str | None) -> tuple[int, float, str]:
    """
    Sort key ordering timestamps by instant rather than by text.

    ``Z`` and ``+00:00`` offsets or differing fractional precision compare
    correctly; naive timestamps are taken as UTC. Unparseable values sort
    after every valid one, by their raw text. Equal instants compare equal.
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        return (1, 0.0, value or "")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (0, parsed.timestamp(), "")
