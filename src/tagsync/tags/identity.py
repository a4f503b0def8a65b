"""Content identity for tagged regions."""

import hashlib

IDENTITY_LENGTH = 8


def identity(content: str) -> str:
    """Return a short fingerprint of normalized region content.

    Depends only on the text itself, never on file name or position.
    """
    return hashlib.sha1(content.encode("utf-8")).hexdigest()[:IDENTITY_LENGTH]
