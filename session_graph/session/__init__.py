"""Session Layer - Parsing, tree structure and cross-file forks."""

from .fork import (
    ForkInfo,
    build_fork_tree,
    find_forks,
    find_forks_from_headers,
    get_fork_chain,
    get_fork_descendants,
    is_fork_session,
)
from .scanner import (
    ProjectGroup,
    SearchResult,
    SessionScanError,
    decode_project_dir,
    filter_by_date_range,
    filter_by_project,
    find_fork_relationships,
    get_default_session_dir,
    get_overall_stats,
    get_project_name,
    get_project_name_from_session,
    group_by_project,
    iter_sessions,
    scan_sessions,
    search_sessions,
)
from .session_parser import (
    SessionInfo,
    SessionParseError,
    parse_entries,
    parse_entry,
    parse_session,
    parse_session_content,
    read_session_header,
)
from .session_tree import (
    TreeDiagnostic,
    TreeNode,
    build_tree,
    build_tree_with_diagnostics,
    calculate_stats,
    find_branch_points,
    find_leaf,
    get_entry,
    get_path_to_entry,
    iter_tree,
)

__all__ = [
    "ForkInfo",
    "build_fork_tree",
    "find_forks",
    "find_forks_from_headers",
    "get_fork_chain",
    "get_fork_descendants",
    "is_fork_session",
    "ProjectGroup",
    "SearchResult",
    "SessionScanError",
    "decode_project_dir",
    "filter_by_date_range",
    "filter_by_project",
    "find_fork_relationships",
    "get_default_session_dir",
    "get_overall_stats",
    "get_project_name",
    "get_project_name_from_session",
    "group_by_project",
    "iter_sessions",
    "scan_sessions",
    "search_sessions",
    "SessionInfo",
    "SessionParseError",
    "parse_entries",
    "parse_entry",
    "parse_session",
    "parse_session_content",
    "read_session_header",
    "TreeDiagnostic",
    "TreeNode",
    "build_tree",
    "build_tree_with_diagnostics",
    "calculate_stats",
    "find_branch_points",
    "find_leaf",
    "get_entry",
    "get_path_to_entry",
    "iter_tree",
]
