"""Configuration data models"""

import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Any

from ..constants import (
    CONFIG_VERSION,
    DEFAULT_APP_NAME,
    DEFAULT_RETAINED_BACKUPS,
    DEFAULT_BACKUP_EXCLUDES,
    DEFAULT_INSTALL_EXCLUDES,
    DEFAULT_HEALTH_CHECK_PORTS,
    DEFAULT_HEALTH_CHECK_PATHS,
    DEFAULT_HEALTH_CHECK_HOST,
    DEFAULT_HEALTH_CHECK_DELAY,
    DEFAULT_HEALTH_CHECK_TIMEOUT,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_ENTRYPOINT,
    HISTORY_FILE_PATTERN,
    LOCK_FILE_PATTERN,
)


@dataclass
class BackupConfig:
    """Backup store configuration"""

    directory: str = ""
    retain: int = DEFAULT_RETAINED_BACKUPS
    excludes: List[str] = field(default_factory=lambda: list(DEFAULT_BACKUP_EXCLUDES))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "directory": self.directory,
            "retain": self.retain,
            "excludes": self.excludes
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BackupConfig':
        """Create from dictionary"""
        return cls(**data)


@dataclass
class HealthCheckConfig:
    """Post-restart health probing"""

    ports: List[int] = field(default_factory=lambda: list(DEFAULT_HEALTH_CHECK_PORTS))
    paths: List[str] = field(default_factory=lambda: list(DEFAULT_HEALTH_CHECK_PATHS))
    host: str = DEFAULT_HEALTH_CHECK_HOST
    delay_seconds: float = DEFAULT_HEALTH_CHECK_DELAY
    timeout_seconds: float = DEFAULT_HEALTH_CHECK_TIMEOUT
    enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "enabled": self.enabled,
            "ports": self.ports,
            "paths": self.paths,
            "host": self.host,
            "delay_seconds": self.delay_seconds,
            "timeout_seconds": self.timeout_seconds
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HealthCheckConfig':
        """Create from dictionary"""
        return cls(**data)


@dataclass
class InstallConfig:
    """Release installation configuration"""

    excludes: List[str] = field(default_factory=lambda: list(DEFAULT_INSTALL_EXCLUDES))
    entrypoint: str = DEFAULT_ENTRYPOINT
    run_dependency_install: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "excludes": self.excludes,
            "entrypoint": self.entrypoint,
            "run_dependency_install": self.run_dependency_install
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InstallConfig':
        """Create from dictionary"""
        return cls(**data)


@dataclass
class SupervisorConfig:
    """Process supervisor configuration"""

    use_sudo: bool = True
    order: List[str] = field(default_factory=lambda: ["pm2", "systemd", "compose"])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "use_sudo": self.use_sudo,
            "order": self.order
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SupervisorConfig':
        """Create from dictionary"""
        return cls(**data)


@dataclass
class TimeoutConfig:
    """Timeouts for external operations"""

    fetch_seconds: float = DEFAULT_FETCH_TIMEOUT
    command_seconds: float = DEFAULT_COMMAND_TIMEOUT

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "fetch_seconds": self.fetch_seconds,
            "command_seconds": self.command_seconds
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TimeoutConfig':
        """Create from dictionary"""
        return cls(**data)


@dataclass
class DeployerConfig:
    """Complete configuration for one deployable application"""

    version: str = CONFIG_VERSION
    app_name: str = DEFAULT_APP_NAME
    live_dir: str = ""
    scratch_dir: str = field(default_factory=tempfile.gettempdir)
    log_file: Optional[str] = None
    history_file: Optional[str] = None
    lock_file: Optional[str] = None
    auto_rollback: bool = False
    webhook_secret: Optional[str] = None

    backup: BackupConfig = field(default_factory=BackupConfig)
    health: HealthCheckConfig = field(default_factory=HealthCheckConfig)
    install: InstallConfig = field(default_factory=InstallConfig)
    supervisor: SupervisorConfig = field(default_factory=SupervisorConfig)
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)

    @property
    def live_path(self) -> Path:
        """Live deployment directory"""
        return Path(self.live_dir).expanduser()

    @property
    def scratch_path(self) -> Path:
        """Parent directory for scratch workspaces"""
        return Path(self.scratch_dir).expanduser()

    @property
    def backup_path(self) -> Path:
        """Backup store, defaulting to a sibling of the live directory"""
        if self.backup.directory:
            return Path(self.backup.directory).expanduser()
        return self.live_path.parent / "backups"

    @property
    def history_path(self) -> Path:
        """Deployment history file"""
        if self.history_file:
            return Path(self.history_file).expanduser()
        return self.backup_path / HISTORY_FILE_PATTERN.format(app_name=self.app_name)

    @property
    def lock_path(self) -> Path:
        """Lock file serializing runs for this application"""
        if self.lock_file:
            return Path(self.lock_file).expanduser()
        return self.scratch_path / LOCK_FILE_PATTERN.format(app_name=self.app_name)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DeployerConfig':
        """Create from dictionary"""
        config = cls(
            version=str(data.get("version", CONFIG_VERSION)),
            app_name=data.get("app_name", DEFAULT_APP_NAME),
            live_dir=data.get("live_dir", ""),
            log_file=data.get("log_file"),
            history_file=data.get("history_file"),
            lock_file=data.get("lock_file"),
            auto_rollback=data.get("auto_rollback", False),
            webhook_secret=data.get("webhook_secret")
        )

        if data.get("scratch_dir"):
            config.scratch_dir = data["scratch_dir"]

        # Nested sections
        config.backup = BackupConfig.from_dict(data.get("backup", {}))
        config.health = HealthCheckConfig.from_dict(data.get("health", {}))
        config.install = InstallConfig.from_dict(data.get("install", {}))
        config.supervisor = SupervisorConfig.from_dict(data.get("supervisor", {}))
        config.timeouts = TimeoutConfig.from_dict(data.get("timeouts", {}))

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            "version": self.version,
            "app_name": self.app_name,
            "live_dir": self.live_dir,
            "scratch_dir": self.scratch_dir,
            "auto_rollback": self.auto_rollback,
            "backup": self.backup.to_dict(),
            "health": self.health.to_dict(),
            "install": self.install.to_dict(),
            "supervisor": self.supervisor.to_dict(),
            "timeouts": self.timeouts.to_dict()
        }

        if self.log_file:
            data["log_file"] = self.log_file
        if self.history_file:
            data["history_file"] = self.history_file
        if self.lock_file:
            data["lock_file"] = self.lock_file
        if self.webhook_secret:
            data["webhook_secret"] = self.webhook_secret

        return data
