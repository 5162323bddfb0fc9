"""Exception definitions for release-deployer"""

from typing import Optional

from ..constants import ErrorCode


class DeployerError(Exception):
    """Base exception for release-deployer"""

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.error_code = error_code


class ConfigError(DeployerError):
    """Configuration error"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIG_FORMAT_ERROR)


class DeploymentLockedError(DeployerError):
    """Another deployment holds the lock for this application"""

    def __init__(self, lock_path: str):
        message = f"Another deployment is in progress (lock held: {lock_path})"
        super().__init__(message, ErrorCode.DEPLOYMENT_LOCKED)
        self.lock_path = lock_path


class DeploymentCancelledError(DeployerError):
    """Deployment interrupted by a termination signal"""

    def __init__(self, message: str = "Deployment cancelled"):
        super().__init__(message, ErrorCode.CANCELLED)


# Transport


class TransportError(DeployerError):
    """Artifact retrieval error"""
    pass


class DownloadError(TransportError):
    """Download failed, timed out or no backend could run it"""

    def __init__(self, message: str, error_code: str = ErrorCode.DOWNLOAD_FAILED):
        super().__init__(message, error_code)


# Validation


class ValidationError(DeployerError):
    """Downloaded artifact failed validation"""

    def __init__(self, message: str, error_code: str, diagnostic: Optional[str] = None):
        super().__init__(message, error_code)
        self.diagnostic = diagnostic


class TooSmallError(ValidationError):
    """Artifact missing or below the minimum archive size"""

    def __init__(self, path: str, size: int, minimum: int):
        message = f"Artifact is {size} bytes, expected at least {minimum}: {path}"
        super().__init__(message, ErrorCode.ARCHIVE_TOO_SMALL)
        self.size = size
        self.minimum = minimum


class WrongTypeError(ValidationError):
    """Artifact content is not a gzip archive"""

    def __init__(self, path: str, detected_type: str, diagnostic: Optional[str] = None):
        message = f"Artifact is not a gzip archive (detected: {detected_type}): {path}"
        super().__init__(message, ErrorCode.ARCHIVE_WRONG_TYPE, diagnostic)
        self.detected_type = detected_type


class CorruptArchiveError(ValidationError):
    """Archive failed its integrity check"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.ARCHIVE_CORRUPT)


# Extraction


class ExtractionError(DeployerError):
    """Archive extraction failed"""

    def __init__(self, message: str, error_code: str = ErrorCode.EXTRACTION_FAILED):
        super().__init__(message, error_code)


class AmbiguousRootError(ExtractionError):
    """Content root of the extracted archive cannot be resolved"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.AMBIGUOUS_ROOT)


# Backup


class BackupError(DeployerError):
    """Backup creation or pruning failed"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.BACKUP_FAILED)


class BackupNotFoundError(DeployerError):
    """No backup available to restore"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.BACKUP_NOT_FOUND)


# Supervisor


class SupervisorError(DeployerError):
    """Process supervisor command failed"""
    pass


class SupervisorStopError(SupervisorError):
    """Stopping the application failed"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.SUPERVISOR_STOP_FAILED)


class SupervisorStartError(SupervisorError):
    """Starting or restarting the application failed"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.SUPERVISOR_START_FAILED)


# Installation


class InstallError(DeployerError):
    """Release installation error"""
    pass


class InstallCopyError(InstallError):
    """Copying release files into the live directory failed"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.INSTALL_COPY_FAILED)


class DependencyInstallError(InstallError):
    """Dependency installation failed"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.DEPENDENCY_INSTALL_FAILED)


class BuildError(InstallError):
    """Declared build step failed"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.BUILD_FAILED)


class MigrationError(InstallError):
    """Declared migration step failed"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.MIGRATION_FAILED)


# Release events


class InvalidSignatureError(DeployerError):
    """Release event signature did not verify"""

    def __init__(self, message: str = "Invalid release event signature"):
        super().__init__(message, ErrorCode.INVALID_SIGNATURE)
