"""Deployer API for deployment operations"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..core.release_event import select_artifact, verify_signature
from ..models.config import DeployerConfig
from ..models.deployment import BackupArchive, DeploymentRecord, DeploymentRequest
from ..models.result import DeployResult, RollbackResult
from ..services.config_service import ConfigService
from ..services.deploy_service import DeploymentOrchestrator
from ..services.history_service import HistoryService
from ..services.rollback_service import RollbackService
from ..utils.async_utils import run_async, run_cancellable
from .exceptions import ConfigError


class Deployer:
    """Deployer class for deployment operations"""

    def __init__(self, config: Optional[DeployerConfig] = None,
                 config_path: Optional[Union[str, Path]] = None):
        """
        Initialize deployer

        Args:
            config: Deployer configuration (loaded from file when omitted)
            config_path: Configuration file to load
        """
        if config is None:
            config = ConfigService(Path(config_path) if config_path else None).load_config()
        self.config = config

    def deploy(self, artifact_url: str, release_tag: str) -> DeployResult:
        """
        Deploy a release

        Termination signals cancel the run; the scratch workspace is removed
        before the cancellation propagates.

        Args:
            artifact_url: URL of the release tarball
            release_tag: Release tag, used in logs, backups and history

        Returns:
            DeployResult: Deployment result
        """
        request = DeploymentRequest(artifact_url=artifact_url, release_tag=release_tag)
        return run_cancellable(DeploymentOrchestrator(self.config).deploy(request))

    def deploy_event(self, body: bytes, event: str = "release",
                     signature: Optional[str] = None) -> Optional[DeployResult]:
        """
        Deploy from a release notification body

        Args:
            body: Raw notification body (JSON)
            event: Event name the notification was delivered as
            signature: Signature header, checked when a webhook secret is configured

        Returns:
            DeployResult, or None when the event does not trigger a deployment

        Raises:
            InvalidSignatureError: If the signature does not verify
            ConfigError: If the body is not a JSON object
        """
        if self.config.webhook_secret:
            verify_signature(body, signature, self.config.webhook_secret)

        try:
            payload: Dict[str, Any] = json.loads(body)
        except ValueError as e:
            raise ConfigError(f"Release event is not valid JSON: {e}")
        if not isinstance(payload, dict):
            raise ConfigError("Release event must be a JSON object")

        request = select_artifact(payload, event)
        if request is None:
            return None
        return self.deploy(request.artifact_url, request.release_tag)

    def rollback(self, backup_name: Optional[str] = None) -> RollbackResult:
        """
        Restore a backup into the live directory

        Args:
            backup_name: Backup file name (newest when None)

        Returns:
            RollbackResult: Rollback result
        """
        return run_cancellable(RollbackService(self.config).rollback(backup_name))

    def list_backups(self) -> List[BackupArchive]:
        """
        List retained backups, newest first

        Returns:
            List of backups
        """
        return RollbackService(self.config).list_backups()

    def history(self, limit: Optional[int] = None) -> List[DeploymentRecord]:
        """
        Read deployment history, newest first

        Args:
            limit: Maximum number of records

        Returns:
            List of records
        """
        return run_async(HistoryService(self.config.history_path).read(limit))


def deploy(artifact_url: str, release_tag: str,
           config_path: Optional[Union[str, Path]] = None) -> DeployResult:
    """
    Convenience function to deploy a release

    Args:
        artifact_url: URL of the release tarball
        release_tag: Release tag
        config_path: Configuration file

    Returns:
        DeployResult
    """
    return Deployer(config_path=config_path).deploy(artifact_url, release_tag)
