"""Line-oriented scanner for tagged regions.

Single pass over the lines of one document, keeping an explicit stack of
open regions (innermost last). Nested regions are reported alongside their
parents; every region's content is normalized to its own indentation.

A region's content holds its own lines plus the delimiter lines of its
direct children, not the children's bodies: an outer region's identity
does not change when only a nested region diverges. The complete text,
nested bodies included, is kept separately for printing and replication.

Structural errors (close without open, open without close) abort the file:
no regions are reported for it. Format errors (under-indented lines,
misaligned closing markers) are recorded and scanning continues.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from tagsync.errors import FormatError, StructuralError, TagsyncError
from tagsync.tags import CLOSE_RE, OPEN_RE, leading_width
from tagsync.tags.identity import identity
from tagsync.tags.selector import Selector

logger = logging.getLogger(__name__)


@dataclass
class TaggedRegion:
    """One delimited block found in one file."""

    tag: str
    file: str
    start_line: int
    indent: int
    lines: list[str] = field(default_factory=list)
    full_lines: list[str] = field(default_factory=list)
    end_line: int | None = None

    @property
    def content(self) -> str:
        """Normalized own text: delimiter lines, own lines and child delimiters."""
        return "".join(line + "\n" for line in self.lines)

    @property
    def body(self) -> str:
        """Normalized inner text, without this region's own delimiters."""
        return "".join(line + "\n" for line in self.lines[1:-1])

    @property
    def identity(self) -> str:
        return identity(self.body)

    @property
    def text(self) -> str:
        """Complete normalized text, nested bodies included."""
        return "".join(line + "\n" for line in self.full_lines)


@dataclass
class ScanResult:
    """Regions and errors from scanning one document."""

    path: str
    regions: list[TaggedRegion] = field(default_factory=list)
    errors: list[TagsyncError] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0


def _normalize(line: str, indent: int, path: str, lineno: int, errors: list) -> str:
    """Strip ``indent`` columns of leading whitespace, recording under-indentation."""
    if not line.strip():
        return ""
    width = leading_width(line)
    if width < indent:
        errors.append(FormatError(
            f"line indented {width} columns, region requires at least {indent}",
            path, lineno,
        ))
        return line.lstrip(" \t")
    return line[indent:]


def _extend_full(stack: list[TaggedRegion], line: str) -> None:
    """Append a line to the complete text of every open region."""
    for region in stack:
        region.full_lines.append(_normalize(line, region.indent, "", 0, []))


def scan(text: str, path: str, selector: Selector | None = None) -> ScanResult:
    """Extract the regions of one document that match ``selector``.

    Args:
        text: Full document text.
        path: File name used in region locations and error messages.
        selector: Filter for reported regions. All regions when None.

    Returns:
        ScanResult with matching regions in opening order, and errors.
    """
    selector = selector or Selector()
    result = ScanResult(path=path)
    stack: list[TaggedRegion] = []
    found: list[TaggedRegion] = []

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.rstrip()
        m = OPEN_RE.search(line)
        if m:
            if stack:
                parent = stack[-1]
                parent.lines.append(_normalize(line, parent.indent, path, lineno, result.errors))
                _extend_full(stack, line)
            region = TaggedRegion(
                tag=m.group("name"),
                file=path,
                start_line=lineno,
                indent=leading_width(line),
            )
            region.lines.append(line[region.indent:])
            region.full_lines.append(line[region.indent:])
            stack.append(region)
            if selector.matches(region):
                found.append(region)
            continue

        if CLOSE_RE.search(line):
            if not stack:
                result.errors.append(StructuralError("close without open", path, lineno))
                logger.debug("%s:%d: aborting scan, close without open", path, lineno)
                return result
            region = stack[-1]
            if leading_width(line) != region.indent:
                result.errors.append(FormatError(
                    f"closing marker for tag '{region.tag}' indented {leading_width(line)} "
                    f"columns, opened at {region.indent}",
                    path, lineno,
                ))
            region.lines.append(_normalize(line, region.indent, path, lineno, []))
            _extend_full(stack, line)
            region.end_line = lineno
            stack.pop()
            if stack:
                parent = stack[-1]
                parent.lines.append(_normalize(line, parent.indent, path, lineno, result.errors))
            continue

        if stack:
            region = stack[-1]
            region.lines.append(_normalize(line, region.indent, path, lineno, result.errors))
            _extend_full(stack, line)

    if stack:
        for region in stack:
            result.errors.append(StructuralError(
                f"missing close for tag '{region.tag}' opened at {path}:{region.start_line}",
                path, region.start_line,
            ))
        return result

    result.regions = found
    logger.debug("%s: %d region(s), %d error(s)", path, len(found), len(result.errors))
    return result
