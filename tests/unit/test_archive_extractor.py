"""Unit tests for archive extraction and content root resolution."""

import io
import tarfile

import pytest

from release_deployer.api.exceptions import AmbiguousRootError, ExtractionError
from release_deployer.core.archive_extractor import ArchiveExtractor


def _add_symlink(archive_path, name, target):
    with tarfile.open(archive_path, "w:gz") as archive:
        info = tarfile.TarInfo(name)
        info.type = tarfile.SYMTYPE
        info.linkname = target
        archive.addfile(info)


class TestContentRoot:
    """Tests for content root resolution."""

    def test_single_wrapping_directory_is_root(self, make_tarball, tmp_path):
        archive = make_tarball({"index.js": "a", "package.json": "{}"}, wrap_dir="owner-repo-abc123")
        destination = tmp_path / "extracted"

        root = ArchiveExtractor().extract(archive, destination)

        assert root == destination / "owner-repo-abc123"
        assert (root / "index.js").read_text() == "a"

    def test_multiple_entries_use_destination(self, make_tarball, tmp_path):
        archive = make_tarball({"index.js": "a", "lib/util.js": "b"})
        destination = tmp_path / "extracted"

        root = ArchiveExtractor().extract(archive, destination)

        assert root == destination
        assert (root / "lib" / "util.js").read_text() == "b"

    def test_single_file_uses_destination(self, tmp_path):
        (tmp_path / "only.txt").write_text("x")

        assert ArchiveExtractor.resolve_content_root(tmp_path) == tmp_path

    def test_empty_extraction_is_ambiguous(self, tmp_path):
        destination = tmp_path / "empty"
        destination.mkdir()

        with pytest.raises(AmbiguousRootError):
            ArchiveExtractor.resolve_content_root(destination)

    def test_sole_symlink_is_ambiguous(self, tmp_path):
        destination = tmp_path / "extracted"
        destination.mkdir()
        (tmp_path / "elsewhere").mkdir()
        (destination / "link").symlink_to(tmp_path / "elsewhere")

        with pytest.raises(AmbiguousRootError):
            ArchiveExtractor.resolve_content_root(destination)


class TestExtraction:
    """Tests for extraction safety and failures."""

    def test_rejects_path_traversal(self, tmp_path):
        archive_path = tmp_path / "evil.tar.gz"
        with tarfile.open(archive_path, "w:gz") as archive:
            data = b"owned"
            info = tarfile.TarInfo("../escape.txt")
            info.size = len(data)
            archive.addfile(info, io.BytesIO(data))

        with pytest.raises(ExtractionError):
            ArchiveExtractor().extract(archive_path, tmp_path / "extracted")

        assert not (tmp_path / "escape.txt").exists()

    def test_rejects_escaping_symlink(self, tmp_path):
        archive_path = tmp_path / "link.tar.gz"
        _add_symlink(archive_path, "passwd", "../../../etc/passwd")

        with pytest.raises(ExtractionError):
            ArchiveExtractor().extract(archive_path, tmp_path / "extracted")

    def test_refuses_non_empty_destination(self, make_tarball, tmp_path):
        archive = make_tarball({"index.js": "a"})
        destination = tmp_path / "extracted"
        destination.mkdir()
        (destination / "stale").write_text("old")

        with pytest.raises(ExtractionError):
            ArchiveExtractor().extract(archive, destination)

    def test_corrupt_archive_raises_extraction_error(self, tmp_path):
        broken = tmp_path / "broken.tar.gz"
        broken.write_bytes(b"\x1f\x8b\x08\x00" + b"\x00" * 64)

        with pytest.raises(ExtractionError):
            ArchiveExtractor().extract(broken, tmp_path / "extracted")
