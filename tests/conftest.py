"""
Shared test configuration.

Provides entry builders that go through the real wire parser, so tests
exercise the same models a session file would produce.
"""

import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from session_graph.session.session_parser import parse_entry

BASE_TIME = datetime(2026, 1, 15, 9, 0, 0, tzinfo=timezone.utc)


class EntryBuilder:
    """Builds session entries from their wire (camelCase) form."""

    provider = "anthropic"
    model = "claude-sonnet"

    @staticmethod
    def ts(minutes: int = 0, seconds: int = 0) -> str:
        """ISO timestamp ``minutes:seconds`` after the base time."""
        moment = BASE_TIME + timedelta(minutes=minutes, seconds=seconds)
        return moment.strftime("%Y-%m-%dT%H:%M:%S.000Z")

    def _entry(self, data: dict[str, Any]) -> Any:
        return parse_entry(data)

    def user(self, entry_id: str, parent_id: str | None, minutes: int = 0, text: str = "hello", seconds: int = 0):
        return self._entry({
            "type": "message",
            "id": entry_id,
            "parentId": parent_id,
            "timestamp": self.ts(minutes, seconds),
            "message": {"role": "user", "content": [{"type": "text", "text": text}]},
        })

    def assistant(
        self,
        entry_id: str,
        parent_id: str | None,
        minutes: int = 0,
        text: str = "",
        tools: list[tuple[str, dict[str, Any]]] | None = None,
        provider: str | None = None,
        model: str | None = None,
        usage: dict[str, Any] | None = None,
    ):
        content: list[dict[str, Any]] = []
        if text:
            content.append({"type": "text", "text": text})
        for i, (name, arguments) in enumerate(tools or []):
            content.append({
                "type": "toolCall",
                "id": f"{entry_id}-call-{i}",
                "name": name,
                "arguments": arguments,
            })
        message: dict[str, Any] = {
            "role": "assistant",
            "content": content,
            "provider": provider or self.provider,
            "model": model or self.model,
        }
        if usage is not None:
            message["usage"] = usage
        return self._entry({
            "type": "message",
            "id": entry_id,
            "parentId": parent_id,
            "timestamp": self.ts(minutes),
            "message": message,
        })

    def tool_result(
        self,
        entry_id: str,
        parent_id: str | None,
        minutes: int = 0,
        tool_name: str = "bash",
        text: str = "ok",
        is_error: bool = False,
    ):
        return self._entry({
            "type": "message",
            "id": entry_id,
            "parentId": parent_id,
            "timestamp": self.ts(minutes),
            "message": {
                "role": "toolResult",
                "toolCallId": f"{entry_id}-call",
                "toolName": tool_name,
                "content": [{"type": "text", "text": text}],
                "isError": is_error,
            },
        })

    def compaction(
        self,
        entry_id: str,
        parent_id: str | None,
        minutes: int = 0,
        summary: str = "Compacted earlier work",
        tokens_before: int | None = 50000,
    ):
        return self._entry({
            "type": "compaction",
            "id": entry_id,
            "parentId": parent_id,
            "timestamp": self.ts(minutes),
            "summary": summary,
            "firstKeptEntryId": parent_id,
            "tokensBefore": tokens_before,
        })

    def branch_summary(
        self,
        entry_id: str,
        parent_id: str | None,
        minutes: int = 0,
        from_id: str | None = None,
        summary: str = "Abandoned approach",
    ):
        return self._entry({
            "type": "branch_summary",
            "id": entry_id,
            "parentId": parent_id,
            "timestamp": self.ts(minutes),
            "fromId": from_id,
            "summary": summary,
        })

    def custom(self, entry_id: str, parent_id: str | None, minutes: int = 0, custom_type: str = "note", data: Any = None):
        return self._entry({
            "type": "custom",
            "id": entry_id,
            "parentId": parent_id,
            "timestamp": self.ts(minutes),
            "customType": custom_type,
            "data": data,
        })

    def label(self, entry_id: str, parent_id: str | None, minutes: int = 0, target_id: str = "", label: str | None = "checkpoint"):
        return self._entry({
            "type": "label",
            "id": entry_id,
            "parentId": parent_id,
            "timestamp": self.ts(minutes),
            "targetId": target_id,
            "label": label,
        })

    def session_info(self, entry_id: str, parent_id: str | None, minutes: int = 0, name: str = "session"):
        return self._entry({
            "type": "session_info",
            "id": entry_id,
            "parentId": parent_id,
            "timestamp": self.ts(minutes),
            "name": name,
        })

    def header(self, session_id: str = "sess-1", parent_session: str | None = None) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": "session",
            "version": 3,
            "id": session_id,
            "timestamp": self.ts(0),
            "cwd": "/work/project",
        }
        if parent_session is not None:
            data["parentSession"] = parent_session
        return data


def to_jsonl(header: dict[str, Any], entries: list[Any]) -> str:
    """Serialize a header and entries the way session files store them."""
    lines = [json.dumps(header)]
    lines.extend(
        json.dumps(entry.model_dump(by_alias=True, exclude_none=True))
        for entry in entries
    )
    return "\n".join(lines) + "\n"


@pytest.fixture
def build() -> EntryBuilder:
    """Entry builder."""
    return EntryBuilder()


@pytest.fixture
def write_session(tmp_path: Path):
    """Write a session JSONL file under tmp_path and return its path."""

    def _write(name: str, header: dict[str, Any], entries: list[Any]) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(to_jsonl(header, entries), encoding="utf-8")
        return path

    return _write


@pytest.fixture(name="to_jsonl")
def to_jsonl_fixture():
    """Serializer for in-memory session content."""
    return to_jsonl
