"""Error taxonomy for scanning, querying and rewriting.

Batch operations collect these as values in ``errors`` lists; single
aborting conditions are raised and converted at the command boundary.
"""

from __future__ import annotations


class TagsyncError(Exception):
    """Base error carrying an optional document location."""

    kind = "error"

    def __init__(self, message: str, path: str | None = None, line: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.line = line

    @property
    def fatal(self) -> bool:
        return True

    def __str__(self) -> str:
        if self.path and self.line:
            return f"{self.path}:{self.line}: {self.message}"
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class StructuralError(TagsyncError):
    """Unbalanced nesting: close without open, or open without close."""

    kind = "structure"


class FormatError(TagsyncError):
    """Indentation below the region minimum, or a misaligned closing marker."""

    kind = "format"

    @property
    def fatal(self) -> bool:
        return False


class ConsistencyError(TagsyncError):
    """A replication source holds more than one variant of a tag."""

    kind = "consistency"


class TopicLookupError(TagsyncError, LookupError):
    """Topic file missing, or its line filter matches no tag."""

    kind = "lookup"


class StaleIndexError(TagsyncError):
    """File content no longer matches the index built for it."""

    kind = "stale"
