"""Unit tests for artifact validation.

Tests cover:
- Minimum size and missing files
- Content signature detection independent of file name
- Integrity failures (truncated stream, non-tar payload)
"""

import gzip
import os

import pytest

from release_deployer.api.exceptions import (
    CorruptArchiveError,
    TooSmallError,
    ValidationError,
    WrongTypeError,
)
from release_deployer.core.archive_validator import ArchiveValidator, detect_content_type


class TestDetectContentType:
    """Tests for leading-byte sniffing."""

    @pytest.mark.parametrize("header,expected", [
        (b"\x1f\x8b\x08\x00rest", "gzip"),
        (b"BZh91AY", "bzip2"),
        (b"PK\x03\x04", "zip"),
        (b"<!DOCTYPE html><html>", "html"),
        (b"  <html><body>Not Found", "html"),
        (b'{"message": "Not Found"}', "text"),
        (b"\x00\xff\xfe\x80", "data"),
    ])
    def test_detects_type(self, header, expected):
        assert detect_content_type(header) == expected


class TestArchiveValidator:
    """Tests for ArchiveValidator.validate."""

    def test_valid_archive_returns_metadata(self, make_tarball):
        archive = make_tarball({"index.js": "console.log('hi')"})

        metadata = ArchiveValidator().validate(archive)

        assert metadata.detected_type == "gzip"
        assert metadata.integrity_ok is True
        assert metadata.size_bytes == archive.stat().st_size

    def test_small_file_raises_too_small(self, tmp_path):
        small = tmp_path / "release.tar.gz"
        small.write_bytes(b"\x1f\x8b" + b"\x00" * 100)

        with pytest.raises(TooSmallError) as exc_info:
            ArchiveValidator().validate(small)

        assert exc_info.value.size == 102
        assert exc_info.value.minimum == 1024

    def test_missing_file_raises_too_small(self, tmp_path):
        with pytest.raises(TooSmallError):
            ArchiveValidator().validate(tmp_path / "absent.tar.gz")

    def test_html_named_tarball_raises_wrong_type(self, tmp_path):
        """A .tar.gz name does not matter when the content is an HTML page."""
        page = tmp_path / "release.tar.gz"
        page.write_text("<!DOCTYPE html><html><body>" + "x" * 2000 + "</body></html>")

        with pytest.raises(WrongTypeError) as exc_info:
            ArchiveValidator().validate(page)

        error = exc_info.value
        assert error.detected_type == "html"
        assert error.diagnostic.startswith("<!DOCTYPE html>")
        assert len(error.diagnostic) == 500

    def test_wrong_type_checked_before_integrity(self, tmp_path):
        data = tmp_path / "blob.tgz"
        data.write_bytes(b"PK\x03\x04" + os.urandom(2048))

        with pytest.raises(WrongTypeError):
            ArchiveValidator().validate(data)

    def test_truncated_gzip_raises_corrupt(self, make_tarball, tmp_path):
        archive = make_tarball({"index.js": "x"}, padding=8192)
        truncated = tmp_path / "truncated.tar.gz"
        content = archive.read_bytes()
        truncated.write_bytes(content[:len(content) // 2])

        with pytest.raises(CorruptArchiveError):
            ArchiveValidator().validate(truncated)

    def test_gzip_of_non_tar_raises_corrupt(self, tmp_path):
        not_tar = tmp_path / "plain.gz"
        with gzip.open(not_tar, "wb") as f:
            f.write(os.urandom(4096))

        with pytest.raises(CorruptArchiveError):
            ArchiveValidator().validate(not_tar)

    def test_all_failures_are_validation_errors(self, tmp_path):
        small = tmp_path / "tiny"
        small.write_bytes(b"x")

        with pytest.raises(ValidationError):
            ArchiveValidator().validate(small)
