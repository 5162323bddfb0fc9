"""Operation result models"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Any

from .deployment import (
    ArtifactMetadata,
    BackupArchive,
    DeploymentRecord,
    DeploymentRequest,
    DeploymentStage,
)


class OperationStatus(Enum):
    """Operation status"""
    SUCCESS = "success"
    FAILED = "failed"
    IN_PROGRESS = "in_progress"


@dataclass
class ErrorDetail:
    """Detailed error information"""

    code: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat()
        }


@dataclass
class Result:
    """Base result class"""

    status: OperationStatus
    message: str = ""
    errors: List[ErrorDetail] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    @property
    def is_success(self) -> bool:
        """Check if operation was successful"""
        return self.status == OperationStatus.SUCCESS

    @property
    def is_failed(self) -> bool:
        """Check if operation failed"""
        return self.status == OperationStatus.FAILED

    @property
    def exit_code(self) -> int:
        """Process exit status for this result"""
        return 0 if self.is_success else 1

    @property
    def duration(self) -> Optional[float]:
        """Get operation duration in seconds"""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    @property
    def error(self) -> Optional[str]:
        """First error message, if any"""
        return self.errors[0].message if self.errors else None

    def add_error(self, code: str, message: str, **context) -> None:
        """Add an error"""
        self.errors.append(ErrorDetail(code=code, message=message, context=context))

    def add_warning(self, message: str) -> None:
        """Add a warning"""
        self.warnings.append(message)

    def complete(self, status: Optional[OperationStatus] = None) -> None:
        """Mark operation as complete"""
        self.end_time = datetime.now()
        if status:
            self.status = status


@dataclass
class DeployResult(Result):
    """Result of one orchestration run"""

    request: Optional[DeploymentRequest] = None
    app_name: str = ""
    stage: DeploymentStage = DeploymentStage.INIT
    failed_stage: Optional[DeploymentStage] = None
    artifact: Optional[ArtifactMetadata] = None
    backup: Optional[BackupArchive] = None
    supervisor: Optional[str] = None
    health_confirmed: Optional[bool] = None
    rolled_back: bool = False

    def to_record(self) -> DeploymentRecord:
        """Build the history record for this run"""
        return DeploymentRecord(
            app_name=self.app_name,
            release_tag=self.request.release_tag if self.request else "",
            artifact_url=self.request.artifact_url if self.request else "",
            status=self.status.value,
            started_at=self.start_time.isoformat(),
            finished_at=(self.end_time or datetime.now()).isoformat(),
            duration=self.duration,
            failed_stage=self.failed_stage.value if self.failed_stage else None,
            error=self.error,
            warnings=list(self.warnings),
            backup_path=str(self.backup.path) if self.backup else None,
            supervisor=self.supervisor,
            health_confirmed=self.health_confirmed,
            rolled_back=self.rolled_back
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "status": self.status.value,
            "message": self.message,
            "app_name": self.app_name,
            "release_tag": self.request.release_tag if self.request else None,
            "artifact_url": self.request.artifact_url if self.request else None,
            "stage": self.stage.value,
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "artifact": self.artifact.to_dict() if self.artifact else None,
            "backup": self.backup.to_dict() if self.backup else None,
            "supervisor": self.supervisor,
            "health_confirmed": self.health_confirmed,
            "rolled_back": self.rolled_back,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": self.warnings,
            "duration": self.duration
        }


@dataclass
class RollbackResult(Result):
    """Result of restoring a backup"""

    app_name: str = ""
    backup: Optional[BackupArchive] = None
    supervisor: Optional[str] = None
    health_confirmed: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "status": self.status.value,
            "message": self.message,
            "app_name": self.app_name,
            "backup": self.backup.to_dict() if self.backup else None,
            "supervisor": self.supervisor,
            "health_confirmed": self.health_confirmed,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": self.warnings,
            "duration": self.duration
        }
