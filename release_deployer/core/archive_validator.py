"""Pre-extraction validation of downloaded artifacts"""

import gzip
import logging
import tarfile
import zlib
from pathlib import Path

from ..api.exceptions import TooSmallError, WrongTypeError, CorruptArchiveError
from ..constants import (
    MIN_ARCHIVE_SIZE,
    GZIP_MAGIC,
    DIAGNOSTIC_PREVIEW_BYTES,
    ARCHIVE_TYPE_GZIP,
    DEFAULT_CHUNK_SIZE,
)
from ..models.deployment import ArtifactMetadata
from ..utils.file_utils import format_size

logger = logging.getLogger(__name__)

# Content signatures, checked in order
MAGIC_NUMBERS = [
    (GZIP_MAGIC, ARCHIVE_TYPE_GZIP),
    (b'BZh', "bzip2"),
    (b'\xfd7zXZ\x00', "xz"),
    (b'\x04"M\x18', "lz4"),
    (b'PK\x03\x04', "zip"),
]


def detect_content_type(header: bytes) -> str:
    """
    Identify a file from its leading bytes

    Args:
        header: First bytes of the file

    Returns:
        Type name (gzip, bzip2, xz, lz4, zip, html, text or data)
    """
    for magic, name in MAGIC_NUMBERS:
        if header.startswith(magic):
            return name

    stripped = header.lstrip().lower()
    if stripped.startswith((b'<!doctype html', b'<html')):
        return "html"

    try:
        header.decode('utf-8')
        return "text"
    except UnicodeDecodeError:
        return "data"


class ArchiveValidator:
    """Confirms an artifact is a non-empty, intact gzip tarball"""

    def __init__(self,
                 min_size: int = MIN_ARCHIVE_SIZE,
                 preview_bytes: int = DIAGNOSTIC_PREVIEW_BYTES):
        self.min_size = min_size
        self.preview_bytes = preview_bytes

    def validate(self, file_path: Path) -> ArtifactMetadata:
        """
        Run size, signature and integrity checks, in that order

        Args:
            file_path: Downloaded artifact

        Returns:
            ArtifactMetadata for the artifact

        Raises:
            TooSmallError: File missing or smaller than the minimum size
            WrongTypeError: Content signature is not gzip
            CorruptArchiveError: Decompression or tar structure check failed
        """
        file_path = Path(file_path)

        size = self.check_size(file_path)
        detected_type = self.check_type(file_path)
        metadata = ArtifactMetadata(size_bytes=size, detected_type=detected_type)

        self.check_integrity(file_path)
        metadata.integrity_ok = True

        logger.info("✅ Artifact validated: %s, %s", detected_type, format_size(size))
        return metadata

    def check_size(self, file_path: Path) -> int:
        """Existence and minimum size check"""
        if not file_path.is_file():
            raise TooSmallError(str(file_path), 0, self.min_size)

        size = file_path.stat().st_size
        logger.info("Artifact size: %s", format_size(size))

        if size < self.min_size:
            raise TooSmallError(str(file_path), size, self.min_size)

        return size

    def check_type(self, file_path: Path) -> str:
        """Content signature sniff"""
        with open(file_path, 'rb') as f:
            preview = f.read(self.preview_bytes)

        detected_type = detect_content_type(preview)
        logger.info("Detected artifact type: %s", detected_type)

        if detected_type != ARCHIVE_TYPE_GZIP:
            diagnostic = preview.decode('utf-8', errors='replace')
            logger.error("First %d bytes of artifact:\n%s", len(preview), diagnostic)
            raise WrongTypeError(str(file_path), detected_type, diagnostic)

        return detected_type

    def check_integrity(self, file_path: Path) -> None:
        """Decompress the whole stream and walk the tar headers without extracting"""
        try:
            with gzip.open(file_path, 'rb') as stream:
                while stream.read(DEFAULT_CHUNK_SIZE):
                    pass
        except (OSError, EOFError, zlib.error) as e:
            raise CorruptArchiveError(f"Compressed stream is corrupt: {e}")

        try:
            with tarfile.open(file_path, 'r:gz') as archive:
                member_count = sum(1 for _ in archive)
        except (tarfile.TarError, OSError, EOFError) as e:
            raise CorruptArchiveError(f"Archive structure is invalid: {e}")

        logger.debug("Archive contains %d members", member_count)
