"""Command layer: queries, replication and rename over a document set.

Every function here returns a result object; nothing prints. Aborting
conditions (missing topic, inconsistent source) are caught at this
boundary and reported in the result's ``errors`` list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from tagsync.errors import ConsistencyError, StructuralError, TagsyncError, TopicLookupError
from tagsync.replicate.rename import RenameResult, rename_references
from tagsync.replicate.replicator import CanonicalBody, ReplicationResult, replicate
from tagsync.tags import NAME_RE
from tagsync.tags.scanner import scan
from tagsync.tags.selector import Selector, Topic
from tagsync.tags.table import TagDefinition, TagReference, build_table, read_document

logger = logging.getLogger(__name__)


@dataclass
class QueryResult:
    """References, definitions and errors for one query."""

    selector: Selector
    references: list[TagReference] = field(default_factory=list)
    definitions: list[tuple[str, str, str]] = field(default_factory=list)
    groups: list[tuple[str, list[TagDefinition]]] = field(default_factory=list)
    errors: list[TagsyncError] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    @property
    def names(self) -> list[str]:
        return sorted({r.tag for r in self.references})

    @property
    def inconsistent(self) -> list[str]:
        return [tag for tag, defs in self.groups if len(defs) > 1]


def _topic_path(topic: Topic, root: Path | None) -> Path:
    path = topic.resolve(root)
    if not path.is_file():
        raise TopicLookupError("topic file does not exist", str(path))
    return path


def resolve_topic(selector: Selector, root: Path | None = None) -> Selector:
    """Turn a topic into an explicit tag-name set for a document-wide query.

    Scans the topic file alone, restricted to the topic line if one is
    given, and returns a selector scoped to the tag names found there.

    Raises:
        TopicLookupError: Missing topic file, or no tag found there.
        StructuralError: The topic file itself is malformed.
    """
    if selector.topic is None:
        return selector

    path = _topic_path(selector.topic, root)
    result = scan(read_document(path), str(path), selector.derive(line=selector.topic.line))
    for error in result.errors:
        if isinstance(error, StructuralError):
            raise error

    names = {r.tag for r in result.regions}
    if not names:
        if selector.topic.line is not None:
            raise TopicLookupError("no tag starts at this line", str(path), selector.topic.line)
        raise TopicLookupError("no matching tags in topic", str(path))

    logger.debug("topic %s resolves to %s", selector.topic, sorted(names))
    return selector.derive(tags=names, line=None)


def run_query(
    files: Iterable[Path | str],
    selector: Selector,
    root: Path | None = None,
) -> QueryResult:
    """Index ``files`` and answer the query described by ``selector``."""
    result = QueryResult(selector=selector)
    try:
        scoped = resolve_topic(selector, root)
    except TagsyncError as e:
        result.errors.append(e)
        return result

    table, errors = build_table(files, scoped)
    result.errors.extend(errors)
    result.references = table.references_matching(scoped)
    if scoped.list_only:
        return result
    result.groups = [
        (tag, table.definitions_for(tag))
        for tag in table.tags()
        if tag in {r.tag for r in result.references}
    ]
    if scoped.collect_bodies:
        result.definitions = table.definitions_matching(scoped)
    return result


def check(files, selector: Selector | None = None, root: Path | None = None) -> QueryResult:
    """Report tags whose occurrences have diverged."""
    return run_query(files, (selector or Selector()).derive(inconsistent_only=True), root)


def list_tags(files, selector: Selector | None = None, root: Path | None = None) -> QueryResult:
    return run_query(files, (selector or Selector()).derive(list_only=True), root)


def print_tags(files, selector: Selector | None = None, root: Path | None = None) -> QueryResult:
    return run_query(files, (selector or Selector()).derive(collect_bodies=True), root)


def whereis(files, name: str, root: Path | None = None) -> QueryResult:
    """Every occurrence of exactly one tag name."""
    return run_query(files, Selector(tags=frozenset({name})), root)


def canonical_from_topic(
    selector: Selector,
    root: Path | None = None,
) -> tuple[dict[str, CanonicalBody], list[TagsyncError]]:
    """Derive canonical bodies from the selector's source topic.

    Returns:
        (canonical mapping, errors). A tag with two variants inside the
        topic yields a ConsistencyError; the mapping is empty on any error.
    """
    if selector.topic is None:
        return {}, [TopicLookupError("replication requires a source topic")]
    try:
        path = _topic_path(selector.topic, root)
    except TagsyncError as e:
        return {}, [e]

    table, errors = build_table([path], selector.derive(line=selector.topic.line))
    if errors:
        return {}, errors

    canonical: dict[str, CanonicalBody] = {}
    for tag in table.tags():
        definitions = table.definitions_for(tag)
        if len(definitions) > 1:
            locations = ", ".join(d.references[0].location for d in definitions)
            errors.append(ConsistencyError(
                f"source holds {len(definitions)} variants of tag '{tag}' ({locations})",
                str(path),
            ))
            continue
        canonical[tag] = CanonicalBody(definitions[0].identity, definitions[0].text)

    if errors:
        return {}, errors
    if not canonical:
        if selector.topic.line is not None:
            return {}, [TopicLookupError("no tag starts at this line", str(path), selector.topic.line)]
        return {}, [TopicLookupError("no matching tags in topic", str(path))]
    return canonical, []


def replicate_from_topic(
    files: Iterable[Path | str],
    selector: Selector,
    root: Path | None = None,
    dry_run: bool = False,
) -> ReplicationResult:
    """Propagate the topic's tag bodies to every diverging occurrence.

    Nothing is written when the source is inconsistent or when scanning
    the document set reports any error.
    """
    result = ReplicationResult(dry_run=dry_run)
    canonical, errors = canonical_from_topic(selector, root)
    if errors:
        result.errors.extend(errors)
        return result

    table, errors = build_table(files, selector.derive(tags=set(canonical), line=None))
    if errors:
        result.errors.extend(errors)
        return result

    restrict = None
    if selector.topic2 is not None:
        restrict = Topic(str(selector.topic2.resolve(root)), selector.topic2.line)
    return replicate(table, canonical, restrict=restrict, dry_run=dry_run)


def rename_tag(
    files: Iterable[Path | str],
    old: str,
    new: str,
    selector: Selector | None = None,
    root: Path | None = None,
    dry_run: bool = False,
) -> RenameResult:
    """Rename ``old`` to ``new`` across the document set, or within the topic."""
    selector = selector or Selector()
    result = RenameResult(old=old, new=new, dry_run=dry_run)

    for name in (old, new):
        if not NAME_RE.fullmatch(name):
            result.errors.append(TagsyncError(f"invalid tag name '{name}'"))
            return result

    table, errors = build_table(files, Selector())
    if errors:
        result.errors.extend(errors)
        return result
    if new in table:
        result.errors.append(TagsyncError(f"tag '{new}' already exists"))
        return result

    refs = table.references_matching(Selector(tags=frozenset({old})))
    if selector.topic is not None:
        topic_path = selector.topic.resolve(root).resolve()
        refs = [
            r for r in refs
            if Path(r.file).resolve() == topic_path
            and (selector.topic.line is None or r.line == selector.topic.line)
        ]
    if not refs:
        where = f" in {selector.topic}" if selector.topic else ""
        result.errors.append(TopicLookupError(f"no occurrence of tag '{old}'{where}"))
        return result

    return rename_references(refs, old, new, dry_run=dry_run)
