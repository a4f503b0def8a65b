"""Shared test fixtures for tagsync."""

from pathlib import Path

import pytest


@pytest.fixture
def write(tmp_path):
    """Write a document under tmp_path and return its path."""

    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
        return path

    return _write


@pytest.fixture
def pair(write):
    """Two documents sharing tag 'foo' with different bodies."""
    a = write("a.md", "# A\n@tag foo\nA\n@endtag\n")
    b = write("b.md", "# B\n@tag foo\nB\n@endtag\n")
    return a, b
