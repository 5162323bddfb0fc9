"""Release installation into the live directory"""

import json
import logging
import os
import shutil
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional, Sequence

from ..api.exceptions import (
    BuildError,
    DependencyInstallError,
    InstallCopyError,
    InstallError,
    MigrationError,
)
from ..constants import (
    BUILD_SCRIPT,
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_INSTALL_EXCLUDES,
    MIGRATE_SCRIPT,
    PACKAGE_MANIFEST_FILE,
)
from ..utils.file_utils import is_excluded, remove_path
from ..utils.process_utils import CommandRunner, run_command

logger = logging.getLogger(__name__)

# Dependency install attempts, in order
DEPENDENCY_INSTALL_COMMANDS = [
    ["npm", "ci", "--production"],
    ["npm", "install", "--production"],
]


class ReleaseInstaller:
    """Mirrors extracted content onto the live directory and runs manifest steps"""

    def __init__(self,
                 excludes: Optional[Sequence[str]] = None,
                 runner: CommandRunner = run_command,
                 command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
                 run_dependency_install: bool = True):
        """
        Args:
            excludes: Patterns preserved in the live directory and never copied
            runner: Command runner for npm steps
            command_timeout: Timeout for each npm command
            run_dependency_install: Whether to install dependencies
        """
        self.excludes = list(excludes) if excludes is not None else list(DEFAULT_INSTALL_EXCLUDES)
        self.runner = runner
        self.command_timeout = command_timeout
        self.run_dependency_install = run_dependency_install

    async def install(self, content_root: Path, live_dir: Path) -> List[InstallError]:
        """
        Install a release

        Args:
            content_root: Extracted content root
            live_dir: Live deployment directory (created if absent)

        Returns:
            Non-fatal errors (failed migrations)

        Raises:
            InstallCopyError: If copying files fails
            DependencyInstallError: If dependencies cannot be installed
            BuildError: If the declared build script fails
        """
        self.install_files(content_root, live_dir)
        return await self.run_manifest_steps(live_dir)

    def install_files(self, content_root: Path, live_dir: Path) -> None:
        """
        Mirror the content root onto the live directory

        Entries absent from the content root are deleted, except those
        matching the exclude patterns, which are neither copied nor removed.

        Raises:
            InstallCopyError: On any filesystem failure
        """
        content_root = Path(content_root)
        live_dir = Path(live_dir)

        logger.info("📋 Copying new files to %s...", live_dir)
        try:
            live_dir.mkdir(parents=True, exist_ok=True)
            self._mirror(content_root, live_dir, PurePosixPath())
        except (OSError, shutil.Error) as e:
            raise InstallCopyError(f"Failed to copy files: {e}")

        logger.info("✅ Files copied successfully")

    def _mirror(self, source: Path, target: Path, relative: PurePosixPath) -> None:
        source_names = {entry.name for entry in source.iterdir()}

        for entry in sorted(target.iterdir()):
            if is_excluded(relative / entry.name, self.excludes):
                continue
            if entry.name not in source_names:
                remove_path(entry)

        for entry in sorted(source.iterdir()):
            entry_relative = relative / entry.name
            if is_excluded(entry_relative, self.excludes):
                continue

            destination = target / entry.name

            if entry.is_symlink():
                if destination.is_symlink() or destination.exists():
                    remove_path(destination)
                os.symlink(os.readlink(entry), destination)
            elif entry.is_dir():
                if destination.is_symlink() or (destination.exists() and not destination.is_dir()):
                    remove_path(destination)
                destination.mkdir(exist_ok=True)
                self._mirror(entry, destination, entry_relative)
                shutil.copystat(entry, destination)
            else:
                if destination.is_symlink() or destination.is_dir():
                    remove_path(destination)
                shutil.copy2(entry, destination)

    @staticmethod
    def read_manifest(live_dir: Path) -> Optional[Dict[str, Any]]:
        """
        Load the dependency manifest

        Returns:
            Parsed manifest, or None when there is none

        Raises:
            DependencyInstallError: If the manifest is not valid JSON
        """
        manifest_path = Path(live_dir) / PACKAGE_MANIFEST_FILE
        if not manifest_path.is_file():
            return None

        try:
            with open(manifest_path, 'r', encoding='utf-8') as f:
                manifest = json.load(f)
        except (OSError, ValueError) as e:
            raise DependencyInstallError(f"Cannot read {PACKAGE_MANIFEST_FILE}: {e}")

        if not isinstance(manifest, dict):
            raise DependencyInstallError(f"{PACKAGE_MANIFEST_FILE} must contain a JSON object")
        return manifest

    async def run_manifest_steps(self, live_dir: Path) -> List[InstallError]:
        """
        Install dependencies, build, then migrate

        Returns:
            Non-fatal errors (failed migrations)

        Raises:
            DependencyInstallError: If every install attempt fails
            BuildError: If the build script fails
        """
        manifest = self.read_manifest(live_dir)
        if manifest is None:
            logger.warning("No %s found, skipping dependency install", PACKAGE_MANIFEST_FILE)
            return []

        scripts = manifest.get("scripts") or {}
        warnings: List[InstallError] = []

        if self.run_dependency_install:
            await self._install_dependencies(live_dir)

        if BUILD_SCRIPT in scripts:
            logger.info("🔨 Building application...")
            result = await self._npm(["npm", "run", BUILD_SCRIPT], live_dir)
            if not result.ok:
                raise BuildError(f"Build failed: {result.describe_failure()}")
            logger.info("✅ Build completed")

        if MIGRATE_SCRIPT in scripts:
            logger.info("🗄️  Running database migrations...")
            result = await self._npm(["npm", "run", MIGRATE_SCRIPT], live_dir)
            if result.ok:
                logger.info("✅ Migrations completed")
            else:
                warnings.append(MigrationError(f"Migration failed: {result.describe_failure()}"))

        return warnings

    async def _install_dependencies(self, live_dir: Path) -> None:
        logger.info("📦 Installing dependencies...")

        failures = []
        for command in DEPENDENCY_INSTALL_COMMANDS:
            result = await self._npm(command, live_dir)
            if result.ok:
                logger.info("✅ Dependencies installed")
                return
            failures.append(result.describe_failure())
            logger.warning("%s", result.describe_failure())

        raise DependencyInstallError("Failed to install dependencies: " + "; ".join(failures))

    async def _npm(self, command: List[str], cwd: Path):
        return await self.runner(command, cwd=cwd, timeout=self.command_timeout)
