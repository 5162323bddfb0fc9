"""Deployment orchestration service"""

import asyncio
import logging
from typing import Optional

from ..api.exceptions import (
    BackupError,
    DeployerError,
    DeploymentCancelledError,
    InstallError,
    SupervisorStartError,
    SupervisorStopError,
)
from ..constants import (
    ErrorCode,
    MSG_DEPLOY_FAILED,
    MSG_DEPLOY_START,
    MSG_DEPLOY_SUCCESS,
    MSG_HEALTH_UNCONFIRMED,
    MSG_MANUAL_START,
    SEPARATOR,
)
from ..core.archive_extractor import ArchiveExtractor
from ..core.archive_validator import ArchiveValidator
from ..core.backup_manager import BackupManager
from ..core.health import HealthVerifier
from ..core.installer import ReleaseInstaller
from ..core.supervisor import SupervisorBridge
from ..core.transport import TransportFetcher
from ..core.workspace import DeploymentLock, ScratchWorkspace
from ..models.config import DeployerConfig
from ..models.deployment import DeploymentRequest, DeploymentStage
from ..models.result import DeployResult, OperationStatus
from ..utils.process_utils import CommandRunner, run_command
from .components import ComponentFactory
from .history_service import HistoryService
from .rollback_service import RollbackService

logger = logging.getLogger(__name__)


class DeploymentOrchestrator:
    """Runs the deployment state machine for one application

    Init -> Fetching -> Validating -> Extracting -> BackingUp -> Stopping ->
    Installing -> Starting -> HealthChecking -> Done. Fatal errors jump to
    Done(Failed); backup, stop, migration, start and health problems are
    recorded as warnings and the pipeline continues.
    """

    def __init__(self,
                 config: DeployerConfig,
                 fetcher: Optional[TransportFetcher] = None,
                 validator: Optional[ArchiveValidator] = None,
                 extractor: Optional[ArchiveExtractor] = None,
                 backup_manager: Optional[BackupManager] = None,
                 supervisor_bridge: Optional[SupervisorBridge] = None,
                 installer: Optional[ReleaseInstaller] = None,
                 health_verifier: Optional[HealthVerifier] = None,
                 history: Optional[HistoryService] = None,
                 runner: CommandRunner = run_command):
        """
        Args:
            config: Deployer configuration
            fetcher..history: Pipeline components (built from config when omitted)
            runner: Command runner for components built from config
        """
        factory = ComponentFactory(config, runner)
        self.config = config
        self.fetcher = fetcher or factory.fetcher()
        self.validator = validator or factory.validator()
        self.extractor = extractor or factory.extractor()
        self.backup_manager = backup_manager or factory.backup_manager()
        self.supervisor_bridge = supervisor_bridge or factory.supervisor_bridge()
        self.installer = installer or factory.installer()
        self.health_verifier = health_verifier or factory.health_verifier()
        self.history = history or factory.history()

    async def deploy(self, request: DeploymentRequest) -> DeployResult:
        """
        Deploy a release

        Args:
            request: Artifact URL and release tag

        Returns:
            DeployResult describing the outcome

        Raises:
            asyncio.CancelledError: If the run was cancelled; the workspace
                is removed and history is written before it propagates
        """
        config = self.config
        result = DeployResult(
            status=OperationStatus.IN_PROGRESS,
            request=request,
            app_name=config.app_name
        )

        logger.info(SEPARATOR)
        logger.info(MSG_DEPLOY_START.format(app_name=config.app_name, release_tag=request.release_tag))
        logger.info("📂 Live directory: %s", config.live_path)
        logger.info(SEPARATOR)

        lock = DeploymentLock(config.lock_path)
        cancelled = False

        try:
            lock.acquire()
            async with ScratchWorkspace(config.scratch_path, config.app_name) as workspace:
                await self._run_pipeline(request, workspace, result)
        except DeployerError as e:
            self._fail(result, e)
            if isinstance(e, InstallError) and result.failed_stage == DeploymentStage.INSTALLING:
                await self._auto_rollback(result)
        except asyncio.CancelledError:
            cancelled = True
            self._fail(result, DeploymentCancelledError())
        except Exception as e:
            logger.exception("Unexpected error during %s", result.stage.value)
            result.failed_stage = result.stage
            result.stage = DeploymentStage.DONE
            result.add_error(ErrorCode.UNEXPECTED, f"Unexpected error: {e}", stage=result.failed_stage.value)
            result.complete(OperationStatus.FAILED)
        finally:
            lock.release()

        self._log_outcome(result)
        await self._record(result)

        if cancelled:
            raise asyncio.CancelledError()
        return result

    async def _run_pipeline(self, request: DeploymentRequest,
                            workspace: ScratchWorkspace, result: DeployResult) -> None:
        config = self.config
        app_name = config.app_name
        live_dir = config.live_path

        self._enter(result, DeploymentStage.FETCHING)
        archive_path = await self.fetcher.fetch(request.artifact_url, workspace.downloaded_archive_path)

        self._enter(result, DeploymentStage.VALIDATING)
        result.artifact = self.validator.validate(archive_path)

        self._enter(result, DeploymentStage.EXTRACTING)
        content_root = self.extractor.extract(archive_path, workspace.extract_dir)
        workspace.extracted_root = content_root

        self._enter(result, DeploymentStage.BACKING_UP)
        try:
            result.backup = self.backup_manager.backup(live_dir, app_name)
        except BackupError as e:
            self._warn(result, e)

        self._enter(result, DeploymentStage.STOPPING)
        try:
            await self.supervisor_bridge.stop(app_name)
        except SupervisorStopError as e:
            self._warn(result, e)

        self._enter(result, DeploymentStage.INSTALLING)
        for warning in await self.installer.install(content_root, live_dir):
            self._warn(result, warning)

        self._enter(result, DeploymentStage.STARTING)
        try:
            result.supervisor = await self.supervisor_bridge.start_or_restart(
                app_name, config.install.entrypoint
            )
            if result.supervisor is None:
                self._warn_message(result, MSG_MANUAL_START.format(app_name=app_name))
        except SupervisorStartError as e:
            self._warn(result, e)

        self._enter(result, DeploymentStage.HEALTH_CHECKING)
        if config.health.enabled:
            result.health_confirmed = await self.health_verifier.verify(config.health.ports)
            if not result.health_confirmed:
                self._warn_message(result, MSG_HEALTH_UNCONFIRMED)
        else:
            logger.info("Health check disabled")

        self._enter(result, DeploymentStage.DONE)
        result.message = MSG_DEPLOY_SUCCESS.format(app_name=app_name, release_tag=request.release_tag)
        result.complete(OperationStatus.SUCCESS)

    @staticmethod
    def _enter(result: DeployResult, stage: DeploymentStage) -> None:
        result.stage = stage
        logger.debug("Entering stage %s", stage.value)

    @staticmethod
    def _warn(result: DeployResult, error: DeployerError) -> None:
        logger.warning("[%s] %s: %s", result.stage.value, type(error).__name__, error)
        result.add_warning(f"[{result.stage.value}] {error}")

    @staticmethod
    def _warn_message(result: DeployResult, message: str) -> None:
        logger.warning("[%s] %s", result.stage.value, message)
        result.add_warning(f"[{result.stage.value}] {message}")

    def _fail(self, result: DeployResult, error: DeployerError) -> None:
        stage = result.stage
        logger.error("[%s] %s: %s", stage.value, type(error).__name__, error)

        diagnostic = getattr(error, 'diagnostic', None)
        context = {"stage": stage.value}
        if diagnostic:
            context["diagnostic"] = diagnostic

        result.failed_stage = stage
        result.stage = DeploymentStage.DONE
        result.add_error(error.error_code or ErrorCode.UNEXPECTED, str(error), **context)
        result.message = MSG_DEPLOY_FAILED.format(
            app_name=result.app_name,
            release_tag=result.request.release_tag,
            stage=stage.value
        )
        result.complete(OperationStatus.FAILED)

    async def _auto_rollback(self, result: DeployResult) -> None:
        """Restore the run's own backup after a failed install"""
        if not self.config.auto_rollback:
            return
        if result.backup is None:
            logger.warning("Auto rollback skipped: no backup was taken in this run")
            return

        rollback = RollbackService(
            self.config,
            backup_manager=self.backup_manager,
            supervisor_bridge=self.supervisor_bridge,
            health_verifier=self.health_verifier
        )
        try:
            rollback_result = await rollback.restore(result.backup)
        except DeployerError as e:
            logger.error("[rollback] %s: %s", type(e).__name__, e)
            result.add_error(e.error_code or ErrorCode.UNEXPECTED, f"Auto rollback failed: {e}")
            return

        result.rolled_back = True
        for warning in rollback_result.warnings:
            result.add_warning(f"[rollback] {warning}")

    def _log_outcome(self, result: DeployResult) -> None:
        logger.info(SEPARATOR)
        if result.is_success:
            logger.info("🎉 %s", result.message)
        else:
            logger.error("❌ %s", result.message)
            if result.rolled_back:
                logger.info("⏪ Previous release restored from %s", result.backup.name)
            elif result.backup:
                logger.info("💾 Backup retained at %s", result.backup.path)
        if result.duration is not None:
            logger.info("⏱️  Finished in %.1fs", result.duration)
        logger.info(SEPARATOR)

    async def _record(self, result: DeployResult) -> None:
        try:
            await self.history.append(result.to_record())
        except OSError as e:
            logger.warning("Could not write deployment history to %s: %s", self.history.history_path, e)
            result.add_warning(f"History not recorded: {e}")
