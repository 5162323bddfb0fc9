"""Rotated backups of the live deployment directory"""

import logging
import re
import tarfile
import zlib
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from ..api.exceptions import BackupError, BackupNotFoundError, ExtractionError
from ..constants import (
    BACKUP_FILE_PATTERN,
    BACKUP_TIMESTAMP_FORMAT,
    DEFAULT_BACKUP_EXCLUDES,
    DEFAULT_RETAINED_BACKUPS,
)
from ..models.deployment import BackupArchive
from ..utils.file_utils import format_size, is_directory_empty, is_excluded, clear_directory
from .archive_extractor import ArchiveExtractor

logger = logging.getLogger(__name__)


class BackupManager:
    """Creates, lists, prunes and restores backup archives"""

    def __init__(self,
                 backup_dir: Path,
                 retain: int = DEFAULT_RETAINED_BACKUPS,
                 excludes: Optional[Sequence[str]] = None):
        """
        Args:
            backup_dir: Directory holding backup archives
            retain: Number of archives kept per application
            excludes: Patterns left out of backups
        """
        if retain < 1:
            raise ValueError("retain must be at least 1")

        self.backup_dir = Path(backup_dir)
        self.retain = retain
        self.excludes = list(excludes) if excludes is not None else list(DEFAULT_BACKUP_EXCLUDES)

    def backup(self, live_dir: Path, app_name: str) -> Optional[BackupArchive]:
        """
        Snapshot the live directory, then prune old archives

        Args:
            live_dir: Live deployment directory
            app_name: Application name

        Returns:
            The new BackupArchive, or None when there was nothing to back up

        Raises:
            BackupError: If the archive could not be written
        """
        live_dir = Path(live_dir)
        if is_directory_empty(live_dir):
            logger.info("No existing deployment to back up")
            return None

        logger.info("💾 Creating backup of current deployment...")
        timestamp = datetime.now()
        archive_path = self.backup_dir / BACKUP_FILE_PATTERN.format(
            app_name=app_name,
            timestamp=timestamp.strftime(BACKUP_TIMESTAMP_FORMAT)
        )

        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            with tarfile.open(archive_path, 'w:gz') as archive:
                for entry in sorted(live_dir.iterdir()):
                    archive.add(
                        str(entry),
                        arcname=entry.name,
                        filter=self._exclude_filter
                    )
        except (OSError, tarfile.TarError) as e:
            if archive_path.exists():
                archive_path.unlink()
            raise BackupError(f"Failed to create backup {archive_path.name}: {e}")

        backup = BackupArchive(app_name=app_name, timestamp=timestamp, path=archive_path)
        logger.info("✅ Backup created: %s (%s)", archive_path.name, format_size(backup.size))

        try:
            self.prune(app_name)
        except BackupError as e:
            logger.warning("%s", e)
        return backup

    def _exclude_filter(self, info: tarfile.TarInfo) -> Optional[tarfile.TarInfo]:
        """tarfile.add filter dropping excluded paths"""
        if is_excluded(info.name, self.excludes):
            return None
        return info

    def list_backups(self, app_name: str) -> List[BackupArchive]:
        """
        List backups for an application, oldest first

        Args:
            app_name: Application name

        Returns:
            Backups ordered by creation time
        """
        if not self.backup_dir.is_dir():
            return []

        prefix = BACKUP_FILE_PATTERN.split("{timestamp}")[0].format(app_name=app_name)
        pattern = re.compile(re.escape(prefix) + r"(?P<ts>\d{8}_\d{6}_\d{6})\.tar\.gz$")

        backups = []
        for path in self.backup_dir.iterdir():
            match = pattern.match(path.name)
            if not match or not path.is_file():
                continue
            backups.append((path.stat().st_mtime_ns, path.name, BackupArchive(
                app_name=app_name,
                timestamp=self._parse_timestamp(match.group('ts'), path),
                path=path
            )))

        backups.sort(key=lambda item: (item[0], item[1]))
        return [backup for _, _, backup in backups]

    def prune(self, app_name: str) -> List[Path]:
        """
        Delete all but the newest ``retain`` backups of an application

        Args:
            app_name: Application name

        Returns:
            Paths that were deleted

        Raises:
            BackupError: If an old archive could not be removed
        """
        backups = self.list_backups(app_name)
        stale = backups[:-self.retain] if len(backups) > self.retain else []

        removed = []
        for backup in stale:
            try:
                backup.path.unlink()
            except OSError as e:
                raise BackupError(f"Failed to prune old backup {backup.name}: {e}")
            logger.debug("Pruned old backup %s", backup.name)
            removed.append(backup.path)

        return removed

    def find(self, app_name: str, name: Optional[str] = None) -> BackupArchive:
        """
        Find a backup by file name, or the newest one

        Args:
            app_name: Application name
            name: Backup file name (newest when None)

        Returns:
            Matching BackupArchive

        Raises:
            BackupNotFoundError: If no backup matches
        """
        backups = self.list_backups(app_name)
        if not backups:
            raise BackupNotFoundError(f"No backups found for {app_name} in {self.backup_dir}")

        if name is None:
            return backups[-1]

        for backup in backups:
            if backup.name == name:
                return backup

        raise BackupNotFoundError(f"Backup not found: {name}")

    def restore(self, backup: BackupArchive, live_dir: Path,
                preserve: Optional[Sequence[str]] = None) -> None:
        """
        Replace the live directory's contents with a backup

        Args:
            backup: Backup to restore
            live_dir: Live deployment directory
            preserve: Top-level patterns kept in place (per-environment state)

        Raises:
            ExtractionError: If the backup cannot be unpacked
        """
        live_dir = Path(live_dir)
        live_dir.mkdir(parents=True, exist_ok=True)

        logger.info("⏪ Restoring %s into %s", backup.name, live_dir)
        try:
            clear_directory(live_dir, preserve=preserve)
            with tarfile.open(backup.path, 'r:gz') as archive:
                members = [
                    m for m in ArchiveExtractor.safe_members(archive, live_dir.resolve())
                    if not is_excluded(m.name, preserve)
                ]
                extract_kwargs = {'filter': 'data'} if hasattr(tarfile, 'data_filter') else {}
                archive.extractall(live_dir, members=members, **extract_kwargs)
        except (tarfile.TarError, OSError, EOFError, zlib.error) as e:
            raise ExtractionError(f"Failed to restore backup {backup.name}: {e}")

    @staticmethod
    def _parse_timestamp(value: str, path: Path) -> datetime:
        try:
            return datetime.strptime(value, BACKUP_TIMESTAMP_FORMAT)
        except ValueError:
            return datetime.fromtimestamp(path.stat().st_mtime)
