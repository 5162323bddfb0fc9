"""Pipeline component factory"""

from ..core.archive_extractor import ArchiveExtractor
from ..core.archive_validator import ArchiveValidator
from ..core.backup_manager import BackupManager
from ..core.health import HealthVerifier
from ..core.installer import ReleaseInstaller
from ..core.supervisor import SupervisorBridge, create_supervisors
from ..core.transport import TransportFetcher, default_transports
from ..models.config import DeployerConfig
from ..utils.process_utils import CommandRunner, run_command
from .history_service import HistoryService


class ComponentFactory:
    """Builds pipeline components from configuration"""

    def __init__(self, config: DeployerConfig, runner: CommandRunner = run_command):
        """
        Args:
            config: Deployer configuration
            runner: Command runner shared by every component that spawns processes
        """
        self.config = config
        self.runner = runner

    def fetcher(self) -> TransportFetcher:
        return TransportFetcher(
            transports=default_transports(self.runner),
            timeout=self.config.timeouts.fetch_seconds
        )

    def validator(self) -> ArchiveValidator:
        return ArchiveValidator()

    def extractor(self) -> ArchiveExtractor:
        return ArchiveExtractor()

    def backup_manager(self) -> BackupManager:
        return BackupManager(
            backup_dir=self.config.backup_path,
            retain=self.config.backup.retain,
            excludes=self.config.backup.excludes
        )

    def supervisor_bridge(self) -> SupervisorBridge:
        return SupervisorBridge(create_supervisors(
            live_dir=self.config.live_path,
            order=self.config.supervisor.order,
            runner=self.runner,
            command_timeout=self.config.timeouts.command_seconds,
            use_sudo=self.config.supervisor.use_sudo
        ))

    def installer(self) -> ReleaseInstaller:
        return ReleaseInstaller(
            excludes=self.config.install.excludes,
            runner=self.runner,
            command_timeout=self.config.timeouts.command_seconds,
            run_dependency_install=self.config.install.run_dependency_install
        )

    def health_verifier(self) -> HealthVerifier:
        health = self.config.health
        return HealthVerifier(
            host=health.host,
            paths=health.paths,
            delay_seconds=health.delay_seconds,
            timeout_seconds=health.timeout_seconds
        )

    def history(self) -> HistoryService:
        return HistoryService(self.config.history_path)
