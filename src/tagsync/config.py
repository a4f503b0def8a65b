"""Load .tagsync.yaml.

Example:
    include:
      - "docs/**/*.md"
      - "src/**/*.py"
    exclude:
      - "docs/archive/**"
    max_file_size: 262144
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_INCLUDE = ["**/*"]
BUILTIN_EXCLUDE = [".git/**", "**/__pycache__/**", "**/node_modules/**", "**/*.tagsync"]
DEFAULT_MAX_FILE_SIZE = 1024 * 1024


@dataclass
class Config:
    """Document discovery settings."""

    include: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE))
    exclude: list[str] = field(default_factory=lambda: list(BUILTIN_EXCLUDE))
    max_file_size: int = DEFAULT_MAX_FILE_SIZE


def load_config(path: Path | str | None) -> Config:
    """Read a config file. Missing file means defaults.

    Raises:
        yaml.YAMLError: If the YAML is malformed.
        ValueError: If the file is not a mapping or a field has the wrong type.
    """
    if path is None:
        return Config()
    config_file = Path(path)
    if not config_file.is_file():
        return Config()

    with open(config_file) as f:
        data = yaml.safe_load(f)

    if data is None:
        return Config()
    if not isinstance(data, dict):
        raise ValueError(f"{config_file} is not a YAML mapping")

    include = data.get("include", DEFAULT_INCLUDE) or DEFAULT_INCLUDE
    exclude = data.get("exclude", []) or []
    for key, value in (("include", include), ("exclude", exclude)):
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"{config_file}: '{key}' must be a list of glob strings")

    max_size = data.get("max_file_size", DEFAULT_MAX_FILE_SIZE)
    if not isinstance(max_size, int) or max_size <= 0:
        raise ValueError(f"{config_file}: 'max_file_size' must be a positive integer")

    return Config(
        include=list(include),
        exclude=BUILTIN_EXCLUDE + [e for e in exclude if e not in BUILTIN_EXCLUDE],
        max_file_size=max_size,
    )
