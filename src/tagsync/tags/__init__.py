"""Tag delimiter conventions shared by the scanner and the rewriters.

Regions are demarcated:
    @tag <name>
    ...
    @endtag

Text around the markers (comment leaders, closing comment tokens) is
preserved untouched. Tag names are word characters only.
"""

import re

# Marker constants used by scanner, replicator and rename
OPEN_MARKER = "@tag"
CLOSE_MARKER = "@endtag"

OPEN_RE = re.compile(re.escape(OPEN_MARKER) + r"\s+(?P<name>\w+)")
CLOSE_RE = re.compile(re.escape(CLOSE_MARKER) + r"\b")
NAME_RE = re.compile(r"\w+")


def leading_width(line: str) -> int:
    """Width of the leading spaces and tabs of a line."""
    return len(line) - len(line.lstrip(" \t"))
