"""Synthetic log line generation.

Turns a source corpus of line templates into fresh, unique log lines.
"""

import logging
import math
import uuid
from datetime import datetime, timezone
from itertools import islice
from pathlib import Path
from typing import Iterator

from logstorm.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

REPLACE_TOKEN = ":::replace:::"
TIME_TOKEN = ":::time:::"
ID_DELIMITER = ":::"
IDS_PER_LINE = 4


def utc_timestamp() -> str:
    """Current instant as ISO-8601 with milliseconds, e.g. 2024-05-01T12:00:00.123Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def synthesize_line(template: str) -> str:
    """
    Expand one line template into a fresh log line.

    The first ``:::replace:::`` becomes four new UUIDs wrapped in ``:::``
    delimiters and the first ``:::time:::`` becomes the current timestamp.

    Args:
        template: Source line, with or without placeholders

    Returns:
        The synthesized line
    """
    ids = ID_DELIMITER.join(str(uuid.uuid4()) for _ in range(IDS_PER_LINE))
    return template.replace(REPLACE_TOKEN, f"{ID_DELIMITER}{ids}{ID_DELIMITER}", 1).replace(
        TIME_TOKEN, utc_timestamp(), 1
    )


class SourceTemplate:
    """Immutable, ordered sequence of line templates."""

    def __init__(self, lines):
        self.lines = tuple(lines)
        if not self.lines:
            raise ConfigurationError("Source corpus has no lines")

    @classmethod
    def load(cls, path: str | Path) -> "SourceTemplate":
        """
        Read a source corpus, one template per line.

        Raises:
            ConfigurationError: If the file does not exist or holds no lines
        """
        path = Path(path)
        if not path.is_file():
            raise ConfigurationError(f"Source corpus not found: {path}")

        lines = path.read_text(encoding="utf-8").splitlines()
        if not lines:
            raise ConfigurationError(f"Source corpus is empty: {path}")

        logger.info(f"Loaded {len(lines)} template lines from {path}")
        return cls(lines)

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)


def repeat_factor(source_lines: int, target_lines: int) -> int:
    """Copies of each template line needed to reach ``target_lines``."""
    if source_lines <= 0:
        raise ConfigurationError("Source corpus has no lines")
    return math.ceil(target_lines / source_lines)


def iter_expanded(template: SourceTemplate, lines: int) -> Iterator[str]:
    """
    Lazily yield exactly ``lines`` synthesized lines.

    Each template line is replicated ``repeat_factor`` times in a row so the
    output keeps the source corpus' line-frequency distribution. Replicas past
    the truncation point are never synthesized.
    """
    if lines <= 0:
        raise ValueError(f"lines must be positive, got {lines}")

    repeat = repeat_factor(len(template), lines)
    replicas = (line for line in template for _ in range(repeat))
    return (synthesize_line(line) for line in islice(replicas, lines))


def expand(template: SourceTemplate, lines: int) -> list[str]:
    """Materialized version of :func:`iter_expanded`."""
    return list(iter_expanded(template, lines))
