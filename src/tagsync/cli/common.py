"""Argument helpers shared by the CLI command modules."""

import argparse
from pathlib import Path

from tagsync.config import load_config
from tagsync.discover import discover_files, expand_paths
from tagsync.paths import config_path, document_root
from tagsync.tags.selector import Selector, Topic


def resolve_root(args: argparse.Namespace) -> Path:
    """Resolve the document root from args or environment."""
    raw = getattr(args, "root", None)
    if raw:
        return Path(raw).expanduser().resolve()
    return document_root()


def collect_files(args: argparse.Namespace) -> list[Path]:
    """Explicit paths when given, otherwise the whole configured tree."""
    root = resolve_root(args)
    cfg_raw = getattr(args, "config", None)
    config = load_config(Path(cfg_raw) if cfg_raw else config_path(root))
    paths = getattr(args, "paths", None)
    if paths:
        return expand_paths([root / p for p in paths], config)
    return discover_files(root, config)


def parse_topic(raw: str | None) -> Topic | None:
    return Topic.parse(raw) if raw else None


def build_selector(args: argparse.Namespace, **flags) -> Selector:
    """Selector from --pattern/--topic/--to.

    ``re.error`` and ``ValueError`` propagate to the caller.
    """
    return Selector.from_pattern(
        getattr(args, "pattern", None),
        topic=parse_topic(getattr(args, "topic", None)),
        topic2=parse_topic(getattr(args, "to", None)),
        quiet=getattr(args, "quiet", False),
        **flags,
    )


def print_errors(errors) -> None:
    print(f"ERRORS ({len(errors)}):")
    for e in errors:
        print(f"  {e}")


def display(path: str, root: Path) -> str:
    """Path relative to the root when it lies inside it."""
    try:
        return str(Path(path).relative_to(root))
    except ValueError:
        return path
