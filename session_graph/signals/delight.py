"""Delight signal detection: resilient recovery, one-shot success, praise."""

from __future__ import annotations

from typing import Any

from ..session.content import assistant_message, join_text, tool_calls, tool_result, user_message
from ..session_schema import DelightSignals
from .patterns import has_genuine_praise, is_minimal_acknowledgment, is_user_correction

# Tool calls needed before a segment counts as a complex task
COMPLEX_TASK_TOOL_CALL_THRESHOLD = 3


def detect_resilient_recovery(entries: list[Any]) -> bool:
    """
    A tool failed and the same tool later succeeded with no user help.

    Short or acknowledgment-only user messages in between do not count as
    help; anything longer does, for every error still pending at that point.
    """
    # tool name -> user intervened since its last error
    pending: dict[str, bool] = {}

    for entry in entries:
        result = tool_result(entry)
        if result is not None:
            if result.is_error:
                pending[result.tool_name] = False
            elif result.tool_name in pending:
                if not pending.pop(result.tool_name):
                    return True
            continue

        msg = user_message(entry)
        if msg is not None and pending and not is_minimal_acknowledgment(join_text(msg.content)):
            pending = {tool: True for tool in pending}

    return False


def detect_one_shot_success(entries: list[Any]) -> bool:
    """Three or more tool calls and no user correction after the first message."""
    tool_call_count = 0
    corrections = 0
    seen_first_user_message = False

    for entry in entries:
        msg = assistant_message(entry)
        if msg is not None:
            tool_call_count += len(tool_calls(msg))
            continue

        user = user_message(entry)
        if user is None:
            continue
        if not seen_first_user_message:
            seen_first_user_message = True
            continue
        if is_user_correction(join_text(user.content)):
            corrections += 1

    return tool_call_count >= COMPLEX_TASK_TOOL_CALL_THRESHOLD and corrections == 0


def detect_explicit_praise(entries: list[Any]) -> bool:
    """Any user message with genuine (non-sarcastic) praise."""
    for entry in entries:
        msg = user_message(entry)
        if msg is not None and has_genuine_praise(join_text(msg.content)):
            return True
    return False


def calculate_delight_score(delight: DelightSignals) -> float:
    score = 0.0
    if delight.resilient_recovery:
        score += 0.4
    if delight.one_shot_success:
        score += 0.4
    if delight.explicit_praise:
        score += 0.3
    return max(0.0, min(score, 1.0))


def detect_delight_signals(entries: list[Any]) -> DelightSignals:
    """Detect all delight signals in one segment."""
    delight = DelightSignals(
        resilient_recovery=detect_resilient_recovery(entries),
        one_shot_success=detect_one_shot_success(entries),
        explicit_praise=detect_explicit_praise(entries),
    )
    delight.score = calculate_delight_score(delight)
    return delight


__all__ = [
    "detect_resilient_recovery",
    "detect_one_shot_success",
    "detect_explicit_praise",
    "calculate_delight_score",
    "detect_delight_signals",
]
