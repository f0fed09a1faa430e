"""Recorder configuration model for Rewind.

Captures rewind.yaml fields with sensible defaults for the retention
window, breadcrumb cap, unanchored-window policy and export settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class RecorderConfig(BaseModel):
    """Recorder-level configuration, usually read from a rewind.yaml file."""

    model_config = {"extra": "forbid"}

    buffer_size_ms: int = Field(default=30000, gt=0)
    breadcrumb_limit: int = Field(default=100, ge=1)
    unanchored_policy: Literal["keep", "clear"] = "keep"
    compression_level: int = Field(default=6, ge=0, le=9)
    url: str | None = None
    user_agent: str | None = None


def load_recorder_config(config_path: Path | None = None) -> RecorderConfig:
    """Read RecorderConfig from a YAML file, or return defaults when no path is given.

    An empty file also yields defaults.

    Raises:
        OSError: If config_path cannot be read (FileNotFoundError included).
        yaml.YAMLError: If the file is not valid YAML.
        pydantic.ValidationError: If the document is not a mapping of known keys.
    """
    if config_path is None:
        return RecorderConfig()
    import yaml

    raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if raw is None:
        return RecorderConfig()
    return RecorderConfig.model_validate(raw)
