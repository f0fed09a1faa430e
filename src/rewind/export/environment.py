"""Environment descriptors recorded in meta.json."""

from __future__ import annotations

import platform

import rewind


def default_user_agent() -> str:
    """Describe the recording host, e.g. 'rewind/0.1.0 Python/3.12.1 (Linux)'."""
    return (
        f"rewind/{rewind.__version__} "
        f"Python/{platform.python_version()} ({platform.system() or 'unknown'})"
    )
