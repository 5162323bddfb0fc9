# release_deployer/services/rollback_service.py
"""Rollback service"""

import logging
from typing import List, Optional

from ..api.exceptions import DeployerError, SupervisorStartError, SupervisorStopError
from ..constants import ErrorCode, MSG_HEALTH_UNCONFIRMED, MSG_MANUAL_START
from ..core.backup_manager import BackupManager
from ..core.health import HealthVerifier
from ..core.supervisor import SupervisorBridge
from ..core.workspace import DeploymentLock
from ..models.config import DeployerConfig
from ..models.deployment import BackupArchive
from ..models.result import OperationStatus, RollbackResult
from ..utils.process_utils import CommandRunner, run_command
from .components import ComponentFactory

logger = logging.getLogger(__name__)


class RollbackService:
    """Restores a retained backup into the live directory"""

    def __init__(self,
                 config: DeployerConfig,
                 backup_manager: Optional[BackupManager] = None,
                 supervisor_bridge: Optional[SupervisorBridge] = None,
                 health_verifier: Optional[HealthVerifier] = None,
                 runner: CommandRunner = run_command):
        factory = ComponentFactory(config, runner)
        self.config = config
        self.backup_manager = backup_manager or factory.backup_manager()
        self.supervisor_bridge = supervisor_bridge or factory.supervisor_bridge()
        self.health_verifier = health_verifier or factory.health_verifier()

    def list_backups(self) -> List[BackupArchive]:
        """Backups for the configured application, newest first"""
        return list(reversed(self.backup_manager.list_backups(self.config.app_name)))

    async def rollback(self, backup_name: Optional[str] = None) -> RollbackResult:
        """
        Restore the newest or a named backup, holding the deployment lock

        Args:
            backup_name: Backup file name (newest when None)

        Returns:
            RollbackResult
        """
        result = RollbackResult(status=OperationStatus.IN_PROGRESS, app_name=self.config.app_name)

        try:
            with DeploymentLock(self.config.lock_path):
                backup = self.backup_manager.find(self.config.app_name, backup_name)
                return await self.restore(backup, result)
        except DeployerError as e:
            logger.error("[rollback] %s: %s", type(e).__name__, e)
            result.add_error(e.error_code or ErrorCode.UNEXPECTED, str(e))
            result.complete(OperationStatus.FAILED)
            return result

    async def restore(self, backup: BackupArchive,
                      result: Optional[RollbackResult] = None) -> RollbackResult:
        """
        Stop, restore files, start and health-check

        The caller must hold the deployment lock.

        Args:
            backup: Backup to restore
            result: Result to fill in

        Returns:
            RollbackResult

        Raises:
            ExtractionError: If the backup cannot be unpacked
        """
        if result is None:
            result = RollbackResult(status=OperationStatus.IN_PROGRESS, app_name=self.config.app_name)
        result.backup = backup
        app_name = self.config.app_name

        logger.info("⏪ Rolling back %s to %s", app_name, backup.name)

        try:
            await self.supervisor_bridge.stop(app_name)
        except SupervisorStopError as e:
            self._warn(result, e)

        self.backup_manager.restore(backup, self.config.live_path, preserve=self.config.install.excludes)

        try:
            result.supervisor = await self.supervisor_bridge.start_or_restart(
                app_name, self.config.install.entrypoint
            )
            if result.supervisor is None:
                self._warn_message(result, MSG_MANUAL_START.format(app_name=app_name))
        except SupervisorStartError as e:
            self._warn(result, e)

        if self.config.health.enabled:
            result.health_confirmed = await self.health_verifier.verify(self.config.health.ports)
            if not result.health_confirmed:
                self._warn_message(result, MSG_HEALTH_UNCONFIRMED)

        result.message = f"Restored {backup.name}"
        result.complete(OperationStatus.SUCCESS)
        logger.info("✅ Rollback to %s complete", backup.name)
        return result

    @staticmethod
    def _warn(result: RollbackResult, error: DeployerError) -> None:
        logger.warning("[rollback] %s: %s", type(error).__name__, error)
        result.add_warning(str(error))

    @staticmethod
    def _warn_message(result: RollbackResult, message: str) -> None:
        logger.warning("[rollback] %s", message)
        result.add_warning(message)
