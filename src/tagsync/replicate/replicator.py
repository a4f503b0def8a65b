"""Replicate canonical tag bodies into every diverging occurrence.

The replication process:
1. Select targets: every reference whose identity differs from its tag's
   canonical identity, grouped by file in line order
2. Rewrite each file: keep each target's own delimiter lines, replace the
   lines between them with the canonical body reindented to the target,
   expanding nested canonical tags recursively
3. Commit each rewritten file atomically

A failure in one file leaves that file untouched and does not stop the
others. Files already committed are not rolled back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from tagsync.errors import StaleIndexError, TagsyncError
from tagsync.replicate import atomic_write_text, read_raw_text
from tagsync.tags import CLOSE_RE, OPEN_RE, leading_width
from tagsync.tags.selector import Topic
from tagsync.tags.table import TagReference, TagTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CanonicalBody:
    """The chosen source of truth for one tag."""

    identity: str
    body: str

    @property
    def inner_lines(self) -> list[str]:
        """Body lines without the region's own opening and closing delimiters."""
        return self.body.splitlines()[1:-1]


@dataclass
class ReplicationResult:
    """Result of a replication run."""

    rewritten: list[str] = field(default_factory=list)
    replaced: int = 0
    errors: list[TagsyncError] = field(default_factory=list)
    dry_run: bool = False

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0


def _matching_close(lines: list[str], start: int) -> int | None:
    """Index of the line closing the region opened at ``lines[start]``."""
    depth = 0
    for i in range(start, len(lines)):
        if OPEN_RE.search(lines[i]):
            depth += 1
        elif CLOSE_RE.search(lines[i]):
            depth -= 1
            if depth == 0:
                return i
    return None


def _reindent(line: str, prefix: str) -> str:
    return prefix + line if line else ""


def expand_body(
    lines: list[str],
    canonical: dict[str, CanonicalBody],
    active: frozenset[str] = frozenset(),
) -> list[str]:
    """Substitute canonical bodies for nested tags found in ``lines``.

    Pure function over text. Lines are relative to column zero. A nested tag
    without a canonical body, or one already being expanded further up, is
    copied verbatim.
    """
    out: list[str] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        m = OPEN_RE.search(line)
        name = m.group("name") if m else None
        end = _matching_close(lines, i) if name in canonical and name not in active else None
        if end is None:
            out.append(line)
            i += 1
            continue
        prefix = line[:leading_width(line)]
        out.append(line)
        inner = expand_body(canonical[name].inner_lines, canonical, active | {name})
        out.extend(_reindent(l, prefix) for l in inner)
        out.append(lines[end])
        i = end + 1
    return out


def _newline_of(line: str) -> str:
    if line.endswith("\r\n"):
        return "\r\n"
    return "\n"


def rewrite_text(
    text: str,
    path: str,
    targets: list[TagReference],
    canonical: dict[str, CanonicalBody],
) -> tuple[str, int]:
    """Rewrite the target regions of one document.

    Returns:
        (new_text, number of regions replaced). Targets nested inside an
        already replaced region are consumed by it and not counted.

    Raises:
        StaleIndexError: If a target line no longer opens its tag, or its
            region is no longer closed.
    """
    lines = text.splitlines(keepends=True)
    out: list[str] = []
    pos = 0
    replaced = 0

    for ref in sorted(targets, key=lambda r: r.line):
        start = ref.line - 1
        if start < pos:
            continue
        if start >= len(lines):
            raise StaleIndexError(f"tag '{ref.tag}' expected past end of file", path, ref.line)
        opening = lines[start]
        m = OPEN_RE.search(opening)
        if not m or m.group("name") != ref.tag:
            raise StaleIndexError(f"line no longer opens tag '{ref.tag}'", path, ref.line)
        end = _matching_close(lines, start)
        if end is None:
            raise StaleIndexError(f"tag '{ref.tag}' is no longer closed", path, ref.line)

        out.extend(lines[pos:start])
        out.append(opening)
        nl = _newline_of(opening)
        prefix = opening[:leading_width(opening.rstrip("\r\n"))]
        body = expand_body(canonical[ref.tag].inner_lines, canonical, frozenset({ref.tag}))
        out.extend(_reindent(l, prefix) + nl for l in body)
        out.append(lines[end])
        pos = end + 1
        replaced += 1

    out.extend(lines[pos:])
    return "".join(out), replaced


def select_targets(
    table: TagTable,
    canonical: dict[str, CanonicalBody],
    restrict: Topic | None = None,
) -> dict[str, list[TagReference]]:
    """Group diverging references by file, in line order."""
    by_file: dict[str, list[TagReference]] = {}
    for tag in sorted(canonical):
        for definition in table.definitions_for(tag):
            if definition.identity == canonical[tag].identity:
                continue
            for ref in definition.references:
                if restrict is not None:
                    if Path(ref.file).resolve() != Path(restrict.path).resolve():
                        continue
                    if restrict.line is not None and ref.line != restrict.line:
                        continue
                by_file.setdefault(ref.file, []).append(ref)
    return {f: sorted(refs, key=lambda r: r.line) for f, refs in sorted(by_file.items())}


def replicate(
    table: TagTable,
    canonical: dict[str, CanonicalBody],
    restrict: Topic | None = None,
    dry_run: bool = False,
) -> ReplicationResult:
    """Apply canonical bodies to every diverging occurrence in ``table``.

    Args:
        table: Index of the document set.
        canonical: Tag name -> canonical body.
        restrict: Only rewrite occurrences in this file (and line).
        dry_run: Compute rewrites without touching the filesystem.

    Returns:
        ReplicationResult with rewritten files and per-file errors.
    """
    result = ReplicationResult(dry_run=dry_run)

    for path, targets in select_targets(table, canonical, restrict).items():
        file_path = Path(path)
        try:
            text = read_raw_text(file_path)
            new_text, count = rewrite_text(text, path, targets, canonical)
        except TagsyncError as e:
            result.errors.append(e)
            continue
        except (OSError, UnicodeDecodeError) as e:
            result.errors.append(StaleIndexError(f"cannot read: {e}", path))
            continue

        if new_text == text:
            continue
        if not dry_run:
            try:
                atomic_write_text(file_path, new_text)
            except OSError as e:
                result.errors.append(TagsyncError(f"cannot write: {e}", path))
                continue
            logger.info("%s: replaced %d region(s)", path, count)
        result.rewritten.append(path)
        result.replaced += count

    return result
