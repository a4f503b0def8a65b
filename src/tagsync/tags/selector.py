"""Selectors: immutable query bundles over tags and their occurrences.

A selector filters by tag name (regex pattern and/or an explicit name set)
and by start line, and carries the topic(s) and output-mode flags that the
command layer interprets. Selectors are never mutated; ``derive`` builds a
scoped copy for sub-queries.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from pathlib import Path

_TOPIC_RE = re.compile(r"^(?P<path>.+?):(?P<line>\d+)$")


@dataclass(frozen=True)
class Topic:
    """A file, optionally pinned to one line."""

    path: str
    line: int | None = None

    @classmethod
    def parse(cls, raw: str) -> "Topic":
        """Parse ``file`` or ``file:line``.

        Raises:
            ValueError: If the line number is not positive.
        """
        m = _TOPIC_RE.match(raw)
        if not m:
            return cls(raw)
        line = int(m.group("line"))
        if line < 1:
            raise ValueError(f"invalid line number in topic '{raw}'")
        return cls(m.group("path"), line)

    def resolve(self, root: Path | None = None) -> Path:
        p = Path(self.path)
        if root is not None and not p.is_absolute():
            p = root / p
        return p

    def __str__(self) -> str:
        return f"{self.path}:{self.line}" if self.line else self.path


@dataclass(frozen=True)
class Selector:
    """Query/configuration bundle for one command invocation."""

    pattern: re.Pattern | None = None
    tags: frozenset[str] | None = None
    line: int | None = None
    topic: Topic | None = None
    topic2: Topic | None = None
    list_only: bool = False
    collect_bodies: bool = False
    inconsistent_only: bool = False
    quiet: bool = False

    @classmethod
    def from_pattern(cls, pattern: str | None, **kwargs) -> "Selector":
        """Build a selector from a raw regex string.

        ``re.error`` propagates for malformed patterns.
        """
        compiled = re.compile(pattern) if pattern else None
        return cls(pattern=compiled, **kwargs)

    def derive(self, **changes) -> "Selector":
        """Return a copy with some fields replaced."""
        if "tags" in changes and changes["tags"] is not None:
            changes["tags"] = frozenset(changes["tags"])
        return replace(self, **changes)

    def admits(self, tag: str) -> bool:
        """Name-level filters only (pattern and explicit name set)."""
        if self.pattern is not None and not self.pattern.search(tag):
            return False
        if self.tags is not None and tag not in self.tags:
            return False
        return True

    def matches(self, region) -> bool:
        if not self.admits(region.tag):
            return False
        if self.line is not None and region.start_line != self.line:
            return False
        return True
