"""Data models for release-deployer"""

from .config import (
    DeployerConfig,
    BackupConfig,
    HealthCheckConfig,
    InstallConfig,
    SupervisorConfig,
    TimeoutConfig,
)
from .deployment import (
    DeploymentStage,
    DeploymentRequest,
    ArtifactMetadata,
    BackupArchive,
    DeploymentRecord,
)
from .result import OperationStatus, ErrorDetail, Result, DeployResult, RollbackResult

__all__ = [
    # Config models
    "DeployerConfig",
    "BackupConfig",
    "HealthCheckConfig",
    "InstallConfig",
    "SupervisorConfig",
    "TimeoutConfig",

    # Deployment models
    "DeploymentStage",
    "DeploymentRequest",
    "ArtifactMetadata",
    "BackupArchive",
    "DeploymentRecord",

    # Result models
    "OperationStatus",
    "ErrorDetail",
    "Result",
    "DeployResult",
    "RollbackResult",
]
