"""Logging setup for the tagsync CLI.

Library modules only call ``logging.getLogger(__name__)``; configuration
happens once, at the command boundary.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TextIO

BASE_LOGGER = "tagsync"


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line: ts, level, module, msg."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "ts": ts.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(
    level: int | str = logging.WARNING,
    json_logs: bool = False,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Configure the base 'tagsync' logger and return it.

    Repeated calls replace the handler instead of stacking another one.
    """
    logger = logging.getLogger(BASE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    if json_logs:
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
