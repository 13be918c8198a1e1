"""
Session schema models for session-graph.

Pydantic models for the JSONL session format: one header line followed by
tree-structured entries. Field names are snake_case in Python and camelCase
on the wire.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for records read from or written to the session wire format."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )


class EntryModel(WireModel):
    """Base for immutable log records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
        frozen=True,
    )


# -----------------------------------------------------------------------------
# Header
# -----------------------------------------------------------------------------


class SessionHeader(EntryModel):
    """First line of a session file."""

    type: Literal["session"] = "session"
    id: str
    timestamp: str
    version: int = 3
    cwd: str = ""
    parent_session: str | None = None


# -----------------------------------------------------------------------------
# Content blocks
# -----------------------------------------------------------------------------


class TextContent(EntryModel):
    type: Literal["text"] = "text"
    text: str = ""


class ThinkingContent(EntryModel):
    type: Literal["thinking"] = "thinking"
    thinking: str = ""


class ToolCallContent(EntryModel):
    type: Literal["toolCall"] = "toolCall"
    id: str = ""
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ImageContent(EntryModel):
    type: Literal["image"] = "image"
    source: dict[str, Any] = Field(default_factory=dict)


ContentBlock = Annotated[
    Union[TextContent, ThinkingContent, ToolCallContent, ImageContent],
    Field(discriminator="type"),
]


# -----------------------------------------------------------------------------
# Messages
# -----------------------------------------------------------------------------


class UsageCost(EntryModel):
    input: float = 0.0
    output: float = 0.0
    cache_read: float = 0.0
    cache_write: float = 0.0
    total: float = 0.0


class Usage(EntryModel):
    """Token usage reported with a model response."""

    input: int = 0
    output: int = 0
    cache_read: int | None = None
    cache_write: int | None = None
    cost: UsageCost | None = None


class UserMessage(EntryModel):
    role: Literal["user"] = "user"
    content: str | list[ContentBlock] = ""
    timestamp: int | None = None


class AssistantMessage(EntryModel):
    role: Literal["assistant"] = "assistant"
    content: list[ContentBlock] = Field(default_factory=list)
    provider: str = ""
    model: str = ""
    usage: Usage | None = None
    stop_reason: str | None = None
    timestamp: int | None = None

    @property
    def model_id(self) -> str:
        """Model identifier in ``provider/model`` form."""
        return f"{self.provider}/{self.model}"


class ToolResultMessage(EntryModel):
    role: Literal["toolResult"] = "toolResult"
    tool_call_id: str = ""
    tool_name: str = ""
    content: list[ContentBlock] = Field(default_factory=list)
    is_error: bool = False
    timestamp: int | None = None


AgentMessage = Annotated[
    Union[UserMessage, AssistantMessage, ToolResultMessage],
    Field(discriminator="role"),
]


# -----------------------------------------------------------------------------
# Entries
# -----------------------------------------------------------------------------


class FileDetails(EntryModel):
    read_files: list[str] = Field(default_factory=list)
    modified_files: list[str] = Field(default_factory=list)


class MessageEntry(EntryModel):
    type: Literal["message"] = "message"
    id: str
    parent_id: str | None = None
    timestamp: str
    message: AgentMessage


class CompactionEntry(EntryModel):
    type: Literal["compaction"] = "compaction"
    id: str
    parent_id: str | None = None
    timestamp: str
    summary: str = ""
    first_kept_entry_id: str | None = None
    tokens_before: int | None = None
    from_hook: bool | None = None
    details: FileDetails | None = None


class BranchSummaryEntry(EntryModel):
    type: Literal["branch_summary"] = "branch_summary"
    id: str
    parent_id: str | None = None
    timestamp: str
    from_id: str | None = None
    summary: str = ""
    from_hook: bool | None = None
    details: FileDetails | None = None


class ModelChangeEntry(EntryModel):
    type: Literal["model_change"] = "model_change"
    id: str
    parent_id: str | None = None
    timestamp: str
    provider: str = ""
    model_id: str = ""


class ThinkingLevelChangeEntry(EntryModel):
    type: Literal["thinking_level_change"] = "thinking_level_change"
    id: str
    parent_id: str | None = None
    timestamp: str
    thinking_level: str = ""


class CustomEntry(EntryModel):
    """Extension annotation (handoff markers, manual flags, ...)."""

    type: Literal["custom"] = "custom"
    id: str
    parent_id: str | None = None
    timestamp: str
    custom_type: str = ""
    data: Any = None


class CustomMessageEntry(EntryModel):
    type: Literal["custom_message"] = "custom_message"
    id: str
    parent_id: str | None = None
    timestamp: str
    custom_type: str = ""
    content: str | list[ContentBlock] = ""
    display: bool = True
    details: Any = None


class LabelEntry(EntryModel):
    type: Literal["label"] = "label"
    id: str
    parent_id: str | None = None
    timestamp: str
    target_id: str
    label: str | None = None


class SessionInfoEntry(EntryModel):
    type: Literal["session_info"] = "session_info"
    id: str
    parent_id: str | None = None
    timestamp: str
    name: str = ""


SessionEntry = Annotated[
    Union[
        MessageEntry,
        CompactionEntry,
        BranchSummaryEntry,
        ModelChangeEntry,
        ThinkingLevelChangeEntry,
        CustomEntry,
        CustomMessageEntry,
        LabelEntry,
        SessionInfoEntry,
    ],
    Field(discriminator="type"),
]

# Entries that annotate the tree rather than belong to it
METADATA_ENTRY_TYPES = frozenset({"label", "session_info"})


def is_metadata_entry(entry: Any) -> bool:
    """True for label and session_info entries."""
    return entry.type in METADATA_ENTRY_TYPES


def content_entries(entries: list[Any]) -> list[Any]:
    """Entries that are members of the conversation tree, in log order."""
    return [e for e in entries if not is_metadata_entry(e)]


def resolve_content_parent(parent_id: str | None, metadata_parents: dict[str, str | None]) -> str | None:
    """
    Follow a parent id up through metadata entries to the nearest content entry.

    Labels and session_info are appended under the current leaf, so the next
    entry may name one of them as its parent. ``metadata_parents`` maps each
    metadata entry id to its own parent id. A metadata cycle returns the id
    where the cycle was detected.
    """
    seen: set[str] = set()
    while parent_id is not None and parent_id in metadata_parents and parent_id not in seen:
        seen.add(parent_id)
        parent_id = metadata_parents[parent_id]
    return parent_id


def content_parent_map(entries: list[Any]) -> dict[str, str | None]:
    """content entry id -> parent id with metadata entries skipped."""
    metadata_parents = {e.id: e.parent_id for e in entries if is_metadata_entry(e)}
    return {
        e.id: resolve_content_parent(e.parent_id, metadata_parents)
        for e in entries
        if not is_metadata_entry(e)
    }


# -----------------------------------------------------------------------------
# Derived records
# -----------------------------------------------------------------------------


class BoundaryType(str, Enum):
    """Why a segment ended."""

    BRANCH = "branch"
    TREE_JUMP = "tree_jump"
    COMPACTION = "compaction"
    RESUME = "resume"
    HANDOFF = "handoff"


class BoundaryMetadata(WireModel):
    """Type-specific boundary details. Only the fields of one type are set."""

    summary: str | None = None  # branch, compaction
    tokens_before: int | None = None  # compaction
    tokens_after: int | None = None  # compaction
    gap_minutes: float | None = None  # resume
    expected_parent_id: str | None = None  # tree_jump
    actual_parent_id: str | None = None  # tree_jump
    handoff_target: str | None = None  # handoff


class Boundary(WireModel):
    """A structural event at one entry that closes the preceding segment."""

    type: BoundaryType
    entry_id: str
    timestamp: str
    previous_entry_id: str | None = None
    metadata: BoundaryMetadata = Field(default_factory=BoundaryMetadata)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class Segment(WireModel):
    """A contiguous span of content entries between boundaries."""

    start_entry_id: str
    end_entry_id: str
    entry_count: int
    start_timestamp: str
    end_timestamp: str
    # Boundaries at the entry following this segment, in detection order
    boundaries: list[Boundary] = Field(default_factory=list)


class BoundaryStats(WireModel):
    total: int = 0
    by_type: dict[str, int] = Field(
        default_factory=lambda: {t.value: 0 for t in BoundaryType}
    )
    segment_count: int = 0


class SessionStats(WireModel):
    """Aggregate counts for one session log."""

    entry_count: int = 0
    message_count: int = 0
    user_message_count: int = 0
    assistant_message_count: int = 0
    tool_result_count: int = 0
    compaction_count: int = 0
    branch_summary_count: int = 0
    branch_point_count: int = 0
    total_tokens: int = 0
    total_cost: float = 0.0
    max_depth: int = 0
    models_used: list[str] = Field(default_factory=list)


class ForkRelationship(WireModel):
    """A session file created by forking another."""

    parent_path: str
    child_path: str
    child_session_id: str
    timestamp: str


class OverallStats(WireModel):
    """Totals across a set of sessions."""

    total_sessions: int = 0
    total_entries: int = 0
    total_messages: int = 0
    total_tokens: int = 0
    total_cost: float = 0.0
    project_count: int = 0  # distinct header cwd values
    fork_count: int = 0


class FrictionSignals(WireModel):
    score: float = 0.0
    rephrasing_count: int = 0
    context_churn_count: int = 0
    abandoned_restart: bool = False
    tool_loop_count: int = 0
    model_switch_from: str | None = None
    silent_termination: bool = False


class DelightSignals(WireModel):
    score: float = 0.0
    resilient_recovery: bool = False
    one_shot_success: bool = False
    explicit_praise: bool = False


class ManualFlag(WireModel):
    """User-entered flag, passed through from an annotation entry."""

    type: str = "note"
    message: str
    timestamp: str


__all__ = [
    "WireModel",
    "EntryModel",
    "SessionHeader",
    "TextContent",
    "ThinkingContent",
    "ToolCallContent",
    "ImageContent",
    "ContentBlock",
    "UsageCost",
    "Usage",
    "UserMessage",
    "AssistantMessage",
    "ToolResultMessage",
    "AgentMessage",
    "FileDetails",
    "MessageEntry",
    "CompactionEntry",
    "BranchSummaryEntry",
    "ModelChangeEntry",
    "ThinkingLevelChangeEntry",
    "CustomEntry",
    "CustomMessageEntry",
    "LabelEntry",
    "SessionInfoEntry",
    "SessionEntry",
    "METADATA_ENTRY_TYPES",
    "is_metadata_entry",
    "content_entries",
    "resolve_content_parent",
    "content_parent_map",
    "BoundaryType",
    "BoundaryMetadata",
    "Boundary",
    "Segment",
    "BoundaryStats",
    "SessionStats",
    "ForkRelationship",
    "OverallStats",
    "FrictionSignals",
    "DelightSignals",
    "ManualFlag",
]
