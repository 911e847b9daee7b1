"""Archive building.

NO try-catch blocks - let compression errors bubble up to the pipeline.
"""

import gzip
import io
import logging
import uuid
import zipfile

from logstorm.core.models import Archive, ArchiveFormat, GenerationSpec
from logstorm.core.synthesizer import SourceTemplate, iter_expanded

logger = logging.getLogger(__name__)

MEMBER_PREFIX = "logs/"
MEMBER_SUFFIX = ".log"


class ArchiveBuilder:
    """Packages synthesized log files into zip or gzip archives."""

    def __init__(self, template: SourceTemplate):
        self.template = template

    def build_log_file(self, lines: int) -> bytes:
        """Synthesize one logical file of exactly ``lines`` newline-joined lines."""
        return "\n".join(iter_expanded(self.template, lines)).encode("utf-8")

    def build(self, spec: GenerationSpec) -> Archive:
        """
        Build one archive in memory.

        Args:
            spec: Line count, file count and format

        Returns:
            Archive with a fresh id and its serialized bytes
        """
        archive_id = str(uuid.uuid4())

        if spec.format is ArchiveFormat.ZIP:
            payload = self._build_zip(spec.file_count, spec.lines)
        else:
            payload = self._build_gzip(spec.lines)

        logger.info(f"Built {spec.format.value} archive {archive_id} ({len(payload):,} bytes)")
        return Archive(archive_id=archive_id, format=spec.format, payload=payload)

    def _build_zip(self, file_count: int, lines: int) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for _ in range(file_count):
                member = f"{MEMBER_PREFIX}{uuid.uuid4()}{MEMBER_SUFFIX}"
                zf.writestr(member, self.build_log_file(lines))
                logger.debug(f"Added member {member}")
        return buffer.getvalue()

    def _build_gzip(self, lines: int) -> bytes:
        return gzip.compress(self.build_log_file(lines))
