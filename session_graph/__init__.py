"""session-graph: structure recovery for agent session logs.

Reads append-only, tree-structured session logs and recovers where the work
divided into segments, why each segment ended, how session files fork from
one another, and which friction or delight signals occurred in each segment.

Layers:
- Session: parsing, tree building, stats, forks, directory scanning
- Segment: boundary detection and segmentation
- Signals: friction, delight and manual flags
"""

__version__ = "0.1.0"

# Schema
from .session_schema import (
    Boundary,
    BoundaryType,
    DelightSignals,
    ForkRelationship,
    FrictionSignals,
    ManualFlag,
    OverallStats,
    Segment,
    SessionHeader,
    SessionStats,
)

# Session Layer
from .session import (
    SessionInfo,
    SessionParseError,
    TreeNode,
    build_tree,
    calculate_stats,
    find_forks,
    find_forks_from_headers,
    build_fork_tree,
    get_fork_chain,
    get_fork_descendants,
    is_fork_session,
    parse_session,
    parse_session_content,
    ProjectGroup,
    find_fork_relationships,
    get_overall_stats,
    group_by_project,
    iter_sessions,
    scan_sessions,
    search_sessions,
)

# Segment Layer
from .segment import LeafTracker, detect_boundaries, extract_segments, get_boundary_stats

# Signal Layer
from .signals import detect_delight_signals, detect_friction_signals, extract_manual_flags

# Analysis & Config
from .analysis import SessionAnalysis, analyze_session, summarize_segments
from .config import SegmenterConfig, default_config

__all__ = [
    # Schema
    "Boundary",
    "BoundaryType",
    "DelightSignals",
    "ForkRelationship",
    "FrictionSignals",
    "ManualFlag",
    "OverallStats",
    "Segment",
    "SessionHeader",
    "SessionStats",
    # Session
    "SessionInfo",
    "SessionParseError",
    "TreeNode",
    "build_tree",
    "calculate_stats",
    "find_forks",
    "find_forks_from_headers",
    "build_fork_tree",
    "get_fork_chain",
    "get_fork_descendants",
    "is_fork_session",
    "parse_session",
    "parse_session_content",
    "ProjectGroup",
    "find_fork_relationships",
    "get_overall_stats",
    "group_by_project",
    "iter_sessions",
    "scan_sessions",
    "search_sessions",
    # Segment
    "LeafTracker",
    "detect_boundaries",
    "extract_segments",
    "get_boundary_stats",
    # Signals
    "detect_delight_signals",
    "detect_friction_signals",
    "extract_manual_flags",
    # Analysis & Config
    "SessionAnalysis",
    "analyze_session",
    "summarize_segments",
    "SegmenterConfig",
    "default_config",
]
