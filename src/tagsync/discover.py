"""Discover documents to scan under a tree root."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Iterable

from tagsync.config import Config
from tagsync.paths import CONFIG_FILENAME

logger = logging.getLogger(__name__)

_SNIFF_BYTES = 8192


def _excluded(rel: str, patterns: list[str]) -> bool:
    for pattern in patterns:
        if fnmatch.fnmatch(rel, pattern):
            return True
        if pattern.startswith("**/") and fnmatch.fnmatch(rel, pattern[3:]):
            return True
    return False


def _hidden(rel: Path) -> bool:
    return any(part.startswith(".") for part in rel.parts[:-1])


def is_text_file(path: Path) -> bool:
    """Heuristic: no NUL byte in the first block."""
    try:
        with open(path, "rb") as f:
            return b"\0" not in f.read(_SNIFF_BYTES)
    except OSError:
        return False


def discover_files(root: Path | str, config: Config | None = None) -> list[Path]:
    """Walk the tree and return candidate documents.

    Args:
        root: Tree root.
        config: Include/exclude settings. Defaults apply when None.

    Returns:
        Sorted, de-duplicated list of file paths.
    """
    root = Path(root)
    config = config or Config()

    seen: set[Path] = set()
    files: list[Path] = []
    for pattern in config.include:
        for path in sorted(root.glob(pattern)):
            if path in seen or not path.is_file():
                continue
            seen.add(path)
            rel = path.relative_to(root)
            if _hidden(rel) or rel.name == CONFIG_FILENAME:
                continue
            if _excluded(rel.as_posix(), config.exclude):
                continue
            if path.stat().st_size > config.max_file_size:
                logger.debug("skipping oversized %s", path)
                continue
            if not is_text_file(path):
                logger.debug("skipping binary %s", path)
                continue
            files.append(path)

    return sorted(files)


def expand_paths(paths: Iterable[Path | str], config: Config | None = None) -> list[Path]:
    """Files as given, directories walked with ``discover_files``."""
    result: set[Path] = set()
    for raw in paths:
        p = Path(raw)
        if p.is_dir():
            result.update(discover_files(p, config))
        else:
            result.add(p)
    return sorted(result)
