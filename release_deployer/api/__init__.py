# release_deployer/api/__init__.py
"""API layer for release-deployer"""

from .deployer import Deployer, deploy
from .exceptions import (
    DeployerError,
    ConfigError,
    DeploymentLockedError,
    DeploymentCancelledError,
    TransportError,
    DownloadError,
    ValidationError,
    TooSmallError,
    WrongTypeError,
    CorruptArchiveError,
    ExtractionError,
    AmbiguousRootError,
    BackupError,
    BackupNotFoundError,
    SupervisorError,
    SupervisorStopError,
    SupervisorStartError,
    InstallError,
    InstallCopyError,
    DependencyInstallError,
    BuildError,
    MigrationError,
    InvalidSignatureError,
)

__all__ = [
    # Main classes
    "Deployer",

    # Convenience functions
    "deploy",

    # Exceptions
    "DeployerError",
    "ConfigError",
    "DeploymentLockedError",
    "DeploymentCancelledError",
    "TransportError",
    "DownloadError",
    "ValidationError",
    "TooSmallError",
    "WrongTypeError",
    "CorruptArchiveError",
    "ExtractionError",
    "AmbiguousRootError",
    "BackupError",
    "BackupNotFoundError",
    "SupervisorError",
    "SupervisorStopError",
    "SupervisorStartError",
    "InstallError",
    "InstallCopyError",
    "DependencyInstallError",
    "BuildError",
    "MigrationError",
    "InvalidSignatureError",
]
