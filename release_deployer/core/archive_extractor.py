"""Archive extraction and content root resolution"""

import logging
import tarfile
import zlib
from pathlib import Path, PurePosixPath
from typing import List

from ..api.exceptions import ExtractionError, AmbiguousRootError

logger = logging.getLogger(__name__)


def _is_within(directory: Path, target: Path) -> bool:
    return target == directory or directory in target.parents


class ArchiveExtractor:
    """Unpacks a validated gzip tarball and finds its content root"""

    def extract(self, file_path: Path, destination_dir: Path) -> Path:
        """
        Extract the archive and resolve its content root

        Args:
            file_path: Validated archive
            destination_dir: Fresh directory to extract into (must not exist
                or be empty)

        Returns:
            The content root directory

        Raises:
            ExtractionError: If extraction fails or a member escapes the
                destination
            AmbiguousRootError: If no content root can be resolved
        """
        destination_dir = Path(destination_dir)
        if destination_dir.exists() and any(destination_dir.iterdir()):
            raise ExtractionError(f"Extraction directory is not empty: {destination_dir}")
        destination_dir.mkdir(parents=True, exist_ok=True)

        logger.info("📦 Extracting archive...")
        try:
            with tarfile.open(file_path, 'r:gz') as archive:
                members = self.safe_members(archive, destination_dir.resolve())
                extract_kwargs = {'filter': 'data'} if hasattr(tarfile, 'data_filter') else {}
                archive.extractall(destination_dir, members=members, **extract_kwargs)
        except (tarfile.TarError, OSError, EOFError, zlib.error) as e:
            raise ExtractionError(f"Failed to extract {Path(file_path).name}: {e}")

        content_root = self.resolve_content_root(destination_dir)
        logger.info("✅ Archive extracted, content root: %s", content_root)
        return content_root

    @staticmethod
    def resolve_content_root(destination_dir: Path) -> Path:
        """
        Locate the directory that holds the application's file tree

        Source-forge tarballs wrap everything in one commit-named folder; in
        that case the folder is the root. Otherwise the extraction directory
        itself is.

        Args:
            destination_dir: Directory the archive was extracted into

        Returns:
            Content root path

        Raises:
            AmbiguousRootError: If the extraction produced no entries
        """
        entries = list(destination_dir.iterdir())

        if not entries:
            raise AmbiguousRootError(f"Archive extracted no files into {destination_dir}")

        if len(entries) == 1:
            only = entries[0]
            if only.is_dir() and not only.is_symlink():
                return only
            if only.is_symlink():
                raise AmbiguousRootError(
                    f"Sole archive entry is a symlink, cannot resolve content root: {only.name}"
                )

        return destination_dir

    @staticmethod
    def safe_members(archive: tarfile.TarFile, destination: Path) -> List[tarfile.TarInfo]:
        """Reject members that would be written outside the destination"""
        members = []

        for member in archive.getmembers():
            name = PurePosixPath(member.name)
            target = (destination / name).resolve()

            if name.is_absolute() or not _is_within(destination, target):
                raise ExtractionError(f"Archive member escapes extraction directory: {member.name}")

            if member.issym():
                link_target = (target.parent / member.linkname).resolve()
                if not _is_within(destination, link_target):
                    raise ExtractionError(
                        f"Archive symlink points outside extraction directory: {member.name}"
                    )
            elif member.islnk():
                link_target = (destination / member.linkname).resolve()
                if not _is_within(destination, link_target):
                    raise ExtractionError(
                        f"Archive hardlink points outside extraction directory: {member.name}"
                    )
            elif member.isdev():
                logger.warning("Skipping device entry in archive: %s", member.name)
                continue

            members.append(member)

        return members
