"""In-place rewriting of tagged regions.

Rewritten files are committed by writing a sibling temporary file and
renaming it over the original, so a failed rewrite never leaves a
partially written document under the original name.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path


def atomic_write_text(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` via a sibling temporary file."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tagsync", dir=path.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            shutil.copymode(path, tmp)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def read_raw_text(path: Path) -> str:
    """Read a document keeping its line endings as they are on disk."""
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()
