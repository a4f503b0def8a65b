"""Rename a tag at its opening delimiters.

Only opening lines carry a name, so renaming rewrites those lines and
nothing else. Bodies, and therefore identities, are unaffected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from tagsync.errors import StaleIndexError, TagsyncError
from tagsync.replicate import atomic_write_text, read_raw_text
from tagsync.tags import OPEN_RE
from tagsync.tags.table import TagReference

logger = logging.getLogger(__name__)


@dataclass
class RenameResult:
    """Result of a rename run."""

    old: str
    new: str
    rewritten: list[str] = field(default_factory=list)
    renamed: int = 0
    errors: list[TagsyncError] = field(default_factory=list)
    dry_run: bool = False

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0


def rename_text(text: str, path: str, refs: list[TagReference], new: str) -> str:
    """Replace the tag name on each referenced opening line.

    Raises:
        StaleIndexError: If a referenced line no longer opens its tag.
    """
    lines = text.splitlines(keepends=True)
    for ref in refs:
        idx = ref.line - 1
        m = OPEN_RE.search(lines[idx]) if idx < len(lines) else None
        if not m or m.group("name") != ref.tag:
            raise StaleIndexError(f"line no longer opens tag '{ref.tag}'", path, ref.line)
        line = lines[idx]
        lines[idx] = line[:m.start("name")] + new + line[m.end("name"):]
    return "".join(lines)


def rename_references(
    refs: list[TagReference],
    old: str,
    new: str,
    dry_run: bool = False,
) -> RenameResult:
    """Rewrite the opening delimiter of every reference, file by file."""
    result = RenameResult(old=old, new=new, dry_run=dry_run)

    by_file: dict[str, list[TagReference]] = {}
    for ref in refs:
        by_file.setdefault(ref.file, []).append(ref)

    for path in sorted(by_file):
        file_path = Path(path)
        try:
            text = read_raw_text(file_path)
            new_text = rename_text(text, path, by_file[path], new)
        except TagsyncError as e:
            result.errors.append(e)
            continue
        except (OSError, UnicodeDecodeError) as e:
            result.errors.append(StaleIndexError(f"cannot read: {e}", path))
            continue
        if not dry_run:
            try:
                atomic_write_text(file_path, new_text)
            except OSError as e:
                result.errors.append(TagsyncError(f"cannot write: {e}", path))
                continue
            logger.info("%s: renamed %d occurrence(s) of '%s'", path, len(by_file[path]), old)
        result.rewritten.append(path)
        result.renamed += len(by_file[path])

    return result
