#!/usr/bin/env python3
"""
Print the segmentation of session logs as JSON.

Usage:
    # Boundaries and segments of one session
    python scripts/segment_session.py path/to/session.jsonl

    # Include friction/delight signals and manual flags per segment
    python scripts/segment_session.py path/to/session.jsonl --signals

    # Override the idle gap that starts a new segment
    python scripts/segment_session.py path/to/session.jsonl --resume-gap 20

    # Fork relationships between all session files under a directory
    python scripts/segment_session.py --forks ~/.pi/agent/sessions

    # Totals and per-project activity for a session directory
    python scripts/segment_session.py --stats ~/.pi/agent/sessions
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

# Add project root to path for session_graph imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from session_graph.analysis import analyze_session
from session_graph.config import SegmenterConfig
from session_graph.session.fork import find_forks_from_headers
from session_graph.session.scanner import (
    SessionScanError,
    find_fork_relationships,
    get_overall_stats,
    group_by_project,
    scan_sessions,
)
from session_graph.session.session_parser import (
    SessionParseError,
    parse_session,
    read_session_header,
)

logger = logging.getLogger("segment_session")


def segment_report(path: Path, config: SegmenterConfig, include_signals: bool) -> dict[str, Any]:
    """Boundaries and segments (optionally with signals) for one file."""
    session = parse_session(path)
    analysis = analyze_session(session, config)

    segments = []
    for seg in analysis.segments:
        item = seg.segment.model_dump(by_alias=True, exclude_none=True)
        if include_signals:
            item["friction"] = seg.friction.model_dump(by_alias=True)
            item["delight"] = seg.delight.model_dump(by_alias=True)
            item["manualFlags"] = [f.model_dump(by_alias=True) for f in seg.manual_flags]
            item["primaryModel"] = seg.primary_model
        segments.append(item)

    return {
        "path": session.path,
        "sessionId": session.header.id,
        "name": session.name,
        "stats": session.stats.model_dump(by_alias=True),
        "diagnostics": [
            {"kind": d.kind, "message": d.message, "entryIds": d.entry_ids}
            for d in session.diagnostics
        ],
        "boundaries": [b.model_dump(by_alias=True, exclude_none=True) for b in analysis.boundaries],
        "segments": segments,
    }


def fork_report(sessions_dir: Path) -> list[dict[str, Any]]:
    """Fork relationships among *.jsonl files below sessions_dir."""
    headers = []
    for path in sorted(sessions_dir.rglob("*.jsonl")):
        try:
            headers.append((str(path), read_session_header(path)))
        except (SessionParseError, OSError) as e:
            logger.warning(f"Skipping {path}: {e}")
    return [fork.model_dump(by_alias=True) for fork in find_forks_from_headers(headers)]


def stats_report(sessions_dir: Path) -> dict[str, Any]:
    """Overall totals and per-project activity for a session directory."""
    sessions = scan_sessions(sessions_dir)
    return {
        "overall": get_overall_stats(sessions).model_dump(by_alias=True),
        "projects": [
            {
                "cwd": group.cwd,
                "sessionCount": len(group.sessions),
                "totalEntries": group.total_entries,
                "latestSession": group.sessions[0].path,
            }
            for group in group_by_project(sessions)
        ],
        "forks": [f.model_dump(by_alias=True) for f in find_fork_relationships(sessions)],
    }


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Segment session logs and report boundaries, signals and forks"
    )
    parser.add_argument(
        "session",
        nargs="?",
        type=Path,
        help="Session JSONL file to segment",
    )
    parser.add_argument(
        "--forks",
        type=Path,
        metavar="DIR",
        help="List fork relationships between session files under DIR",
    )
    parser.add_argument(
        "--stats",
        type=Path,
        metavar="DIR",
        help="Summarize all sessions under DIR (one subdirectory per project)",
    )
    parser.add_argument(
        "--signals",
        action="store_true",
        help="Include friction/delight signals and manual flags per segment",
    )
    parser.add_argument(
        "--resume-gap",
        type=float,
        help="Idle minutes that start a new segment (default: from config, 10)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Config file (default: ~/.session-graph/config.json)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output to stderr",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.forks is None and args.stats is None and args.session is None:
        parser.error("a session file, --forks DIR or --stats DIR is required")

    if args.forks is not None:
        print(json.dumps(fork_report(args.forks), indent=2))
        return 0

    if args.stats is not None:
        try:
            report = stats_report(args.stats)
        except SessionScanError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(json.dumps(report, indent=2))
        return 0

    config = SegmenterConfig.load(args.config)
    if args.resume_gap is not None:
        config = replace(config, resume_gap_minutes=args.resume_gap)

    try:
        report = segment_report(args.session, config, args.signals)
    except (SessionParseError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(report, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
