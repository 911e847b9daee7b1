"""Core archive and upload logic for logstorm."""

from logstorm.core.config import config
from logstorm.core.models import Archive, ArchiveFormat, GenerationSpec, RunConfig, UploadMode

__all__ = ["config", "Archive", "ArchiveFormat", "GenerationSpec", "RunConfig", "UploadMode"]
