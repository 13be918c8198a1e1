"""
Configuration management for session-graph.

Engine settings are plain dataclass fields with defaults; a JSON file and an
environment variable can override them.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".session-graph" / "config.json"

# Environment override for the idle gap that starts a new segment
RESUME_GAP_ENV_VAR = "SESSION_GRAPH_RESUME_GAP_MINUTES"

DEFAULT_RESUME_GAP_MINUTES = 10.0

DEFAULT_CONFIG = {
    "resume_gap_minutes": DEFAULT_RESUME_GAP_MINUTES,
    "silent_termination_window": 10,
    "abandoned_restart_window_minutes": 30.0,
    "file_overlap_threshold": 0.3,
    "manual_flag_type": "brain_flag",
    "handoff_custom_type": "handoff",
}


def _filter_dataclass_fields(data: dict[str, Any], cls: type) -> dict[str, Any]:
    """Filter dict to only include fields that exist in the dataclass."""
    valid_fields = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in valid_fields}


def _get_resume_gap_override() -> float | None:
    """Read the resume gap from the environment, if set and numeric."""
    env_value = os.getenv(RESUME_GAP_ENV_VAR)
    if env_value is None:
        return None
    try:
        return float(env_value)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {RESUME_GAP_ENV_VAR}={env_value!r}")
        return None


@dataclass
class SegmenterConfig:
    """
    Settings for boundary detection and signal extraction.

    Priority order:
    1. SESSION_GRAPH_RESUME_GAP_MINUTES environment variable (resume gap only)
    2. ~/.session-graph/config.json
    3. Defaults
    """

    resume_gap_minutes: float = DEFAULT_RESUME_GAP_MINUTES
    silent_termination_window: int = 10
    abandoned_restart_window_minutes: float = 30.0
    file_overlap_threshold: float = 0.3
    # customType of annotation entries carrying manual flags
    manual_flag_type: str = "brain_flag"
    # customType of explicit handoff markers
    handoff_custom_type: str = "handoff"

    @classmethod
    def load(cls, path: Path | None = None) -> "SegmenterConfig":
        """
        Load config from file with defaults.

        Args:
            path: Optional config file path. Defaults to ~/.session-graph/config.json

        Returns:
            SegmenterConfig with user settings merged over defaults
        """
        if path is None:
            path = CONFIG_PATH

        config = DEFAULT_CONFIG.copy()

        if path.exists():
            try:
                user_config = json.loads(path.read_text())
                if isinstance(user_config, dict):
                    config.update(user_config)
                else:
                    logger.warning(f"Config at {path} is not a JSON object, using defaults")
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Could not read config at {path}: {e}")

        override = _get_resume_gap_override()
        if override is not None:
            config["resume_gap_minutes"] = override

        return cls(**_filter_dataclass_fields(config, cls))

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = CONFIG_PATH

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(asdict(self), f, indent=2)


# Default configuration instance
default_config = SegmenterConfig()
