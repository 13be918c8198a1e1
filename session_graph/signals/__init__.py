"""Signal Layer - Friction, delight and manual flags per segment."""

from .delight import (
    calculate_delight_score,
    detect_delight_signals,
    detect_explicit_praise,
    detect_one_shot_success,
    detect_resilient_recovery,
)
from .flags import MANUAL_FLAG_CUSTOM_TYPE, extract_manual_flags
from .friction import (
    SegmentWindow,
    calculate_friction_score,
    count_context_churn,
    count_rephrasing_cascades,
    count_tool_loops,
    detect_friction_signals,
    detect_model_switch,
    detect_silent_termination,
    get_files_touched,
    has_file_overlap,
    is_abandoned_restart,
    is_abandoned_restart_from_node,
    normalize_error_message,
)
from .patterns import has_genuine_praise, is_user_correction
from .segment_info import get_primary_model, get_segment_timestamp

__all__ = [
    "calculate_delight_score",
    "detect_delight_signals",
    "detect_explicit_praise",
    "detect_one_shot_success",
    "detect_resilient_recovery",
    "MANUAL_FLAG_CUSTOM_TYPE",
    "extract_manual_flags",
    "SegmentWindow",
    "calculate_friction_score",
    "count_context_churn",
    "count_rephrasing_cascades",
    "count_tool_loops",
    "detect_friction_signals",
    "detect_model_switch",
    "detect_silent_termination",
    "get_files_touched",
    "has_file_overlap",
    "is_abandoned_restart",
    "is_abandoned_restart_from_node",
    "normalize_error_message",
    "has_genuine_praise",
    "is_user_correction",
    "get_primary_model",
    "get_segment_timestamp",
]
