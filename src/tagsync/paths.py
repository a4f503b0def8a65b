"""Document tree path resolution.

Uses environment variables when available, falls back to conventional
defaults.

Environment variables:
    TAGSYNC_ROOT — document tree root (default: current directory)
    TAGSYNC_CONFIG — config file (default: <root>/.tagsync.yaml)
    TAGSYNC_LOG_LEVEL — logging level name (default: WARNING)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

CONFIG_FILENAME = ".tagsync.yaml"


def document_root() -> Path:
    """Return the document tree root."""
    return Path(os.environ.get("TAGSYNC_ROOT", ".")).expanduser().resolve()


def config_path(root: Path | None = None) -> Path:
    """Return the path to the config file."""
    env = os.environ.get("TAGSYNC_CONFIG")
    if env:
        return Path(env).expanduser()
    return (root or document_root()) / CONFIG_FILENAME


def log_level() -> str:
    """Return the configured logging level name.

    Raises:
        ValueError: If TAGSYNC_LOG_LEVEL names no logging level.
    """
    name = os.environ.get("TAGSYNC_LOG_LEVEL", "WARNING").upper()
    if not isinstance(logging.getLevelName(name), int):
        raise ValueError(f"unknown log level '{name}' in TAGSYNC_LOG_LEVEL")
    return name
