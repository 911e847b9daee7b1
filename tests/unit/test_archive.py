"""Tests for logstorm/core/archive.py."""

import gzip
import io
import re
import zipfile

from logstorm.core.archive import ArchiveBuilder
from logstorm.core.models import ArchiveFormat, GenerationSpec

MEMBER = r"logs/[0-9a-f\-]{36}\.log"


class TestBuildZip:
    """Tests for zip archives."""

    def test_zip_members(self, template):
        """Test zip with 3 files of 10 lines."""
        archive = ArchiveBuilder(template).build(GenerationSpec(lines=10, file_count=3, format=ArchiveFormat.ZIP))

        with zipfile.ZipFile(io.BytesIO(archive.payload)) as zf:
            names = zf.namelist()
            assert len(names) == 3
            for name in names:
                assert re.fullmatch(MEMBER, name)
                assert len(zf.read(name).decode("utf-8").splitlines()) == 10

    def test_zip_members_are_independent(self, template):
        """Test that each member is synthesized separately."""
        archive = ArchiveBuilder(template).build(GenerationSpec(lines=5, file_count=2, format=ArchiveFormat.ZIP))

        with zipfile.ZipFile(io.BytesIO(archive.payload)) as zf:
            first, second = (zf.read(name) for name in zf.namelist())
        assert first != second

    def test_zip_is_deflated(self, template):
        """Test that members are compressed."""
        archive = ArchiveBuilder(template).build(GenerationSpec(lines=50, file_count=1, format=ArchiveFormat.ZIP))

        with zipfile.ZipFile(io.BytesIO(archive.payload)) as zf:
            assert zf.infolist()[0].compress_type == zipfile.ZIP_DEFLATED

    def test_zip_identity(self, template):
        """Test object name and content type for zip."""
        archive = ArchiveBuilder(template).build(GenerationSpec(lines=1, file_count=1, format=ArchiveFormat.ZIP))

        assert archive.object_name == f"{archive.archive_id}.zip"
        assert archive.content_type == "application/zip"


class TestBuildGzip:
    """Tests for gzip archives."""

    def test_gzip_round_trip(self, template):
        """Test decompressing yields exactly n lines."""
        archive = ArchiveBuilder(template).build(GenerationSpec(lines=25, format=ArchiveFormat.GZIP))

        lines = gzip.decompress(archive.payload).decode("utf-8").split("\n")
        assert len(lines) == 25

    def test_gzip_ignores_file_count(self, template):
        """Test that gzip always holds one logical file."""
        archive = ArchiveBuilder(template).build(GenerationSpec(lines=4, file_count=9, format=ArchiveFormat.GZIP))

        assert len(gzip.decompress(archive.payload).decode("utf-8").split("\n")) == 4

    def test_gzip_identity(self, template):
        """Test object name and content type for gzip."""
        archive = ArchiveBuilder(template).build(GenerationSpec(lines=1, format=ArchiveFormat.GZIP))

        assert archive.object_name.endswith(".gz")
        assert archive.content_type == "application/gzip"
        assert archive.size == len(archive.payload)


class TestBuildLogFile:
    """Tests for single logical files."""

    def test_lines_joined_by_newline(self, template):
        """Test that lines are newline-joined without a trailing newline."""
        data = ArchiveBuilder(template).build_log_file(3).decode("utf-8")

        assert data.count("\n") == 2
        assert not data.endswith("\n")

    def test_fresh_archive_ids(self, template):
        """Test that every build gets a new identity."""
        builder = ArchiveBuilder(template)
        spec = GenerationSpec(lines=1, format=ArchiveFormat.GZIP)

        assert builder.build(spec).archive_id != builder.build(spec).archive_id
