"""Manual flags - user annotations carried through verbatim."""

from __future__ import annotations

from typing import Any

from ..session_schema import CustomEntry, ManualFlag

MANUAL_FLAG_CUSTOM_TYPE = "brain_flag"


def extract_manual_flags(entries: list[Any], custom_type: str = MANUAL_FLAG_CUSTOM_TYPE) -> list[ManualFlag]:
    """
    Collect flags from custom annotation entries.

    Only entries of ``custom_type`` with a ``data.message`` are used; the
    flag type defaults to "note". Nothing here is inferred from messages.
    """
    flags = []
    for entry in entries:
        if not isinstance(entry, CustomEntry) or entry.custom_type != custom_type:
            continue
        data = entry.data if isinstance(entry.data, dict) else {}
        message = data.get("message")
        if not message:
            continue
        flags.append(ManualFlag(
            type=data.get("type") or "note",
            message=str(message),
            timestamp=entry.timestamp,
        ))
    return flags
