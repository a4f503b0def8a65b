"""Tag table: every occurrence of every tag, grouped by content identity.

Structure: tag name -> identity -> TagDefinition. The table owns its
definitions; definitions own their reference lists; references are plain
values. A table is built fresh for each command and never persisted.

Ordering (stable across runs):
- tag names ascending
- within a tag, identities by ascending reference count (outliers first)
- within an identity, references by file then line
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

from tagsync.errors import TagsyncError, TopicLookupError
from tagsync.tags.scanner import TaggedRegion, scan
from tagsync.tags.selector import Selector

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class TagReference:
    """Pointer to one occurrence of a tag."""

    file: str
    line: int
    tag: str
    identity: str

    @property
    def location(self) -> str:
        return f"{self.file}:{self.line}"


@dataclass
class TagDefinition:
    """One content variant of a tag and every place it occurs."""

    identity: str
    body: str
    references: list[TagReference] = field(default_factory=list)
    text: str = ""

    def sorted_references(self) -> list[TagReference]:
        return sorted(self.references, key=lambda r: (r.file, r.line))


class TagTable:
    """Index of tag occurrences keyed by name and content identity."""

    def __init__(self) -> None:
        self._tags: dict[str, dict[str, TagDefinition]] = {}
        self._located: dict[tuple[str, int], tuple[str, str]] = {}

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, tag: object) -> bool:
        return tag in self._tags

    def insert(self, reference: TagReference, body: str, text: str | None = None) -> None:
        """Record one occurrence. Re-inserting the same occurrence is a no-op.

        ``body`` is the normalized content the identity is computed over;
        ``text`` the complete region text with nested bodies, when known.

        Raises:
            ValueError: If the location is already recorded under another
                tag or identity.
        """
        key = (reference.file, reference.line)
        seen = self._located.get(key)
        if seen is not None:
            if seen == (reference.tag, reference.identity):
                return
            raise ValueError(
                f"{reference.location} already indexed as {seen[0]} [{seen[1]}]"
            )
        self._located[key] = (reference.tag, reference.identity)

        variants = self._tags.setdefault(reference.tag, {})
        definition = variants.get(reference.identity)
        if definition is None:
            definition = TagDefinition(
                identity=reference.identity,
                body=body,
                text=text if text is not None else body,
            )
            variants[reference.identity] = definition
        definition.references.append(reference)

    def add_region(self, region: TaggedRegion) -> TagReference:
        ref = TagReference(
            file=region.file,
            line=region.start_line,
            tag=region.tag,
            identity=region.identity,
        )
        self.insert(ref, region.content, region.text)
        return ref

    def tags(self) -> list[str]:
        return sorted(self._tags)

    def definitions_for(self, tag: str) -> list[TagDefinition]:
        """Definitions of one tag, minority variants first."""
        variants = self._tags.get(tag, {})
        ordered = []
        for definition in variants.values():
            refs = definition.sorted_references()
            ordered.append(TagDefinition(definition.identity, definition.body, refs, definition.text))
        ordered.sort(key=lambda d: (len(d.references), d.references[0].file, d.references[0].line))
        return ordered

    def is_consistent(self, tag: str) -> bool:
        return len(self._tags.get(tag, {})) == 1

    def inconsistent_tags(self) -> list[str]:
        return [t for t in self.tags() if len(self._tags[t]) > 1]

    def _selected_tags(self, selector: Selector) -> Iterator[str]:
        for tag in self.tags():
            if not selector.admits(tag):
                continue
            if selector.inconsistent_only and self.is_consistent(tag):
                continue
            yield tag

    def references_matching(self, selector: Selector) -> list[TagReference]:
        refs = []
        for tag in self._selected_tags(selector):
            for definition in self.definitions_for(tag):
                refs.extend(definition.references)
        return refs

    def definitions_matching(self, selector: Selector) -> list[tuple[str, str, str]]:
        """(tag, identity, complete text) for every selected definition."""
        return [
            (tag, d.identity, d.text)
            for tag in self._selected_tags(selector)
            for d in self.definitions_for(tag)
        ]


def read_document(path: Path) -> str:
    """Read a document as UTF-8 text.

    Raises:
        TopicLookupError: If the file does not exist.
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise TopicLookupError("no such file", str(path)) from None


def build_table(
    files: Iterable[Path | str],
    selector: Selector | None = None,
) -> tuple[TagTable, list[TagsyncError]]:
    """Scan files in name order and index every matching region.

    Args:
        files: Documents to scan.
        selector: Region filter. Everything when None.

    Returns:
        (table, errors). Errors from all files are collected; a file with
        a structural error contributes no regions.
    """
    selector = selector or Selector()
    table = TagTable()
    errors: list[TagsyncError] = []

    for path in sorted(Path(f) for f in files):
        try:
            text = read_document(path)
        except TagsyncError as e:
            errors.append(e)
            continue
        except (OSError, UnicodeDecodeError) as e:
            errors.append(TagsyncError(f"cannot read: {e}", str(path)))
            continue
        result = scan(text, str(path), selector)
        errors.extend(result.errors)
        for region in result.regions:
            table.add_region(region)

    logger.debug("indexed %d tag(s), %d error(s)", len(table), len(errors))
    return table, errors
