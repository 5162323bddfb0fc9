"""Deployment domain models"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Any


class DeploymentStage(Enum):
    """Orchestrator states, in execution order"""
    INIT = "init"
    FETCHING = "fetching"
    VALIDATING = "validating"
    EXTRACTING = "extracting"
    BACKING_UP = "backing_up"
    STOPPING = "stopping"
    INSTALLING = "installing"
    STARTING = "starting"
    HEALTH_CHECKING = "health_checking"
    DONE = "done"


@dataclass(frozen=True)
class DeploymentRequest:
    """Immutable input to one orchestration run"""

    artifact_url: str
    release_tag: str

    def __post_init__(self):
        if not self.artifact_url or not self.release_tag:
            raise ValueError("artifact_url and release_tag are required")


@dataclass
class ArtifactMetadata:
    """Facts derived from a downloaded artifact"""

    size_bytes: int
    detected_type: str
    integrity_ok: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "size_bytes": self.size_bytes,
            "detected_type": self.detected_type,
            "integrity_ok": self.integrity_ok
        }


@dataclass
class BackupArchive:
    """A retained snapshot of the live directory"""

    app_name: str
    timestamp: datetime
    path: Path

    @property
    def name(self) -> str:
        """Archive file name"""
        return self.path.name

    @property
    def size(self) -> int:
        """Archive size in bytes, 0 if missing"""
        if self.path.exists():
            return self.path.stat().st_size
        return 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "app_name": self.app_name,
            "timestamp": self.timestamp.isoformat(),
            "path": str(self.path)
        }


@dataclass
class DeploymentRecord:
    """Structured history entry written after each run"""

    app_name: str
    release_tag: str
    artifact_url: str
    status: str
    started_at: str
    finished_at: str
    duration: Optional[float] = None
    failed_stage: Optional[str] = None
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    backup_path: Optional[str] = None
    supervisor: Optional[str] = None
    health_confirmed: Optional[bool] = None
    rolled_back: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "app_name": self.app_name,
            "release_tag": self.release_tag,
            "artifact_url": self.artifact_url,
            "status": self.status,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "duration": self.duration,
            "failed_stage": self.failed_stage,
            "error": self.error,
            "warnings": self.warnings,
            "backup_path": self.backup_path,
            "supervisor": self.supervisor,
            "health_confirmed": self.health_confirmed,
            "rolled_back": self.rolled_back
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DeploymentRecord':
        """Create from dictionary"""
        return cls(
            app_name=data["app_name"],
            release_tag=data["release_tag"],
            artifact_url=data.get("artifact_url", ""),
            status=data["status"],
            started_at=data.get("started_at", ""),
            finished_at=data.get("finished_at", ""),
            duration=data.get("duration"),
            failed_stage=data.get("failed_stage"),
            error=data.get("error"),
            warnings=data.get("warnings", []),
            backup_path=data.get("backup_path"),
            supervisor=data.get("supervisor"),
            health_confirmed=data.get("health_confirmed"),
            rolled_back=data.get("rolled_back", False)
        )
