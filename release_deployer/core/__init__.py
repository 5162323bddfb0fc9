"""Core deployment components for release-deployer"""

from .transport import (
    Transport,
    CurlTransport,
    WgetTransport,
    RequestsTransport,
    TransportFetcher,
    default_transports,
)
from .archive_validator import ArchiveValidator, detect_content_type
from .archive_extractor import ArchiveExtractor
from .backup_manager import BackupManager
from .supervisor import (
    Supervisor,
    ProcessSupervisor,
    ServiceManager,
    ComposeRuntime,
    SupervisorBridge,
    create_supervisors,
)
from .installer import ReleaseInstaller
from .health import HealthVerifier
from .release_event import compute_signature, verify_signature, select_artifact
from .workspace import ScratchWorkspace, DeploymentLock

__all__ = [
    "Transport",
    "CurlTransport",
    "WgetTransport",
    "RequestsTransport",
    "TransportFetcher",
    "default_transports",
    "ArchiveValidator",
    "detect_content_type",
    "ArchiveExtractor",
    "BackupManager",
    "Supervisor",
    "ProcessSupervisor",
    "ServiceManager",
    "ComposeRuntime",
    "SupervisorBridge",
    "create_supervisors",
    "ReleaseInstaller",
    "HealthVerifier",
    "compute_signature",
    "verify_signature",
    "select_artifact",
    "ScratchWorkspace",
    "DeploymentLock",
]
