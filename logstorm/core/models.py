"""Pydantic models - Single source of truth for data structures.

NO try-catch blocks - Pydantic validates automatically and raises ValidationError.
"""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field


class ArchiveFormat(str, Enum):
    ZIP = "zip"
    GZIP = "gzip"

    @property
    def extension(self) -> str:
        return ".zip" if self is ArchiveFormat.ZIP else ".gz"

    @property
    def content_type(self) -> str:
        return "application/zip" if self is ArchiveFormat.ZIP else "application/gzip"


class UploadMode(str, Enum):
    MULTIPART = "multipart"
    SINGLE = "single"


class GenerationSpec(BaseModel):
    """What a single archive should contain."""

    lines: int = Field(..., gt=0, description="Lines per logical file")
    file_count: int = Field(default=1, gt=0, description="Logical files per archive (zip only)")
    format: ArchiveFormat = Field(default=ArchiveFormat.ZIP, description="Archive format")


class RunConfig(BaseModel):
    """Options for one run of the worker pool."""

    format: ArchiveFormat = Field(default=ArchiveFormat.ZIP, description="Compression format")
    lines: int = Field(default=10000, gt=0, description="Number of lines per file")
    file_count: int = Field(default=25, gt=0, description="Number of files per archive (zip only)")
    upload_type: UploadMode = Field(default=UploadMode.MULTIPART, description="Method of uploading to S3")
    output: str | None = Field(default=None, description="Write archives to this directory instead of uploading")
    repeat: int = Field(default=1, ge=-1, description="Archives per worker, -1 for unbounded")
    workers: int = Field(default=1, gt=0, description="Concurrent pipelines")

    @property
    def generation_spec(self) -> GenerationSpec:
        return GenerationSpec(lines=self.lines, file_count=self.file_count, format=self.format)


class UploadTarget(BaseModel):
    """Where an archive goes in the object store."""

    bucket: str = Field(..., min_length=1)
    key: str = Field(..., min_length=1)
    content_type: str


class PipelineResult(BaseModel):
    """Outcome of one worker's loop."""

    worker_id: int
    iterations: int
    succeeded: bool
    error: str | None = None


class RunResult(BaseModel):
    """Outcome of a whole run."""

    pipelines: list[PipelineResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(p.succeeded for p in self.pipelines)

    @property
    def iterations(self) -> int:
        return sum(p.iterations for p in self.pipelines)


@dataclass
class Archive:
    """A built archive held in memory until it is delivered."""

    archive_id: str
    format: ArchiveFormat
    payload: bytes

    @property
    def object_name(self) -> str:
        return f"{self.archive_id}{self.format.extension}"

    @property
    def content_type(self) -> str:
        return self.format.content_type

    @property
    def size(self) -> int:
        return len(self.payload)


@dataclass
class MultipartSession:
    """Server-side multipart upload in progress."""

    upload_id: str
    parts: list[dict] = field(default_factory=list)

    def record(self, part_number: int, etag: str) -> None:
        """Record a completed part. Part numbers must arrive in increasing order."""
        if self.parts and part_number <= self.parts[-1]["PartNumber"]:
            raise ValueError(f"Part {part_number} recorded after part {self.parts[-1]['PartNumber']}")
        self.parts.append({"PartNumber": part_number, "ETag": etag})
