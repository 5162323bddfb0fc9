"""Release Deployer - webhook-triggered deployment of release tarballs.

Downloads a release artifact, validates and unpacks it, backs up the running
application, installs the new files, restarts the application under its
process supervisor and verifies that it answers again.
"""

from .__version__ import __version__, __version_info__, __author__, __email__, __license__

# Core API
from .api.deployer import Deployer, deploy

# Data models
from .models.config import DeployerConfig
from .models.deployment import DeploymentRequest, DeploymentStage, BackupArchive, DeploymentRecord
from .models.result import DeployResult, RollbackResult

# Exceptions
from .api.exceptions import (
    DeployerError,
    ConfigError,
    DeploymentLockedError,
    TransportError,
    DownloadError,
    ValidationError,
    ExtractionError,
    BackupError,
    SupervisorError,
    InstallError,
)

__all__ = [
    # Version information
    "__version__",
    "__version_info__",
    "__author__",
    "__email__",
    "__license__",

    # Main classes
    "Deployer",

    # Core API functions
    "deploy",

    # Data models
    "DeployerConfig",
    "DeploymentRequest",
    "DeploymentStage",
    "BackupArchive",
    "DeploymentRecord",
    "DeployResult",
    "RollbackResult",

    # Exceptions
    "DeployerError",
    "ConfigError",
    "DeploymentLockedError",
    "TransportError",
    "DownloadError",
    "ValidationError",
    "ExtractionError",
    "BackupError",
    "SupervisorError",
    "InstallError",
]
