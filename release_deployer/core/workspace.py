"""Scratch workspace and deployment lock"""

import fcntl
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from ..api.exceptions import DeploymentLockedError
from ..constants import SCRATCH_PREFIX, DOWNLOAD_FILE_NAME, EXTRACT_DIR_NAME

logger = logging.getLogger(__name__)


class ScratchWorkspace:
    """Disposable directory tree owned by exactly one deployment run

    Use as an async context manager. The tree is removed on every exit path:
    normal completion, exceptions, and task cancellation.
    """

    def __init__(self, parent_dir: Path, app_name: str):
        """
        Args:
            parent_dir: Directory under which the workspace is created
            app_name: Application name, used in the directory prefix
        """
        self.parent_dir = Path(parent_dir)
        self.app_name = app_name
        self.root: Optional[Path] = None
        self.extracted_root: Optional[Path] = None

    @property
    def downloaded_archive_path(self) -> Path:
        """Where the fetcher writes the artifact"""
        self._require_root()
        return self.root / DOWNLOAD_FILE_NAME

    @property
    def extract_dir(self) -> Path:
        """Fresh directory the extractor unpacks into"""
        self._require_root()
        return self.root / EXTRACT_DIR_NAME

    def create(self) -> Path:
        """Create the uniquely named workspace directory"""
        self.parent_dir.mkdir(parents=True, exist_ok=True)
        self.root = Path(tempfile.mkdtemp(
            prefix=f"{SCRATCH_PREFIX}{self.app_name}-",
            dir=str(self.parent_dir)
        ))
        logger.debug("Created scratch workspace %s", self.root)
        return self.root

    def destroy(self) -> None:
        """Remove the workspace tree"""
        if self.root is not None and self.root.exists():
            shutil.rmtree(self.root, ignore_errors=True)
            logger.info("🧹 Cleaned up temporary files")

    def _require_root(self) -> None:
        if self.root is None:
            raise RuntimeError("Scratch workspace has not been created")

    async def __aenter__(self) -> 'ScratchWorkspace':
        self.create()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.destroy()

    def __enter__(self) -> 'ScratchWorkspace':
        self.create()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.destroy()


class DeploymentLock:
    """Exclusive, non-blocking lock file serializing runs for one application"""

    def __init__(self, lock_path: Path):
        self.lock_path = Path(lock_path)
        self._fd: Optional[int] = None

    def acquire(self) -> None:
        """Take the lock or raise DeploymentLockedError"""
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(str(self.lock_path), os.O_RDWR | os.O_CREAT, 0o644)

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            raise DeploymentLockedError(str(self.lock_path))

        os.ftruncate(fd, 0)
        os.write(fd, str(os.getpid()).encode())
        self._fd = fd
        logger.debug("Acquired deployment lock %s", self.lock_path)

    def release(self) -> None:
        """Release the lock if held"""
        if self._fd is None:
            return

        try:
            fcntl.flock(self._fd, fcntl.LOCK_UN)
        finally:
            os.close(self._fd)
            self._fd = None
        logger.debug("Released deployment lock %s", self.lock_path)

    @property
    def is_held(self) -> bool:
        """Whether this instance holds the lock"""
        return self._fd is not None

    def __enter__(self) -> 'DeploymentLock':
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
