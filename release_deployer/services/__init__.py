# release_deployer/services/__init__.py
"""Business logic services for release-deployer"""

from .config_service import ConfigService, CONFIG_SCHEMA
from .components import ComponentFactory
from .deploy_service import DeploymentOrchestrator
from .history_service import HistoryService
from .rollback_service import RollbackService

__all__ = [
    "ConfigService",
    "CONFIG_SCHEMA",
    "ComponentFactory",
    "DeploymentOrchestrator",
    "HistoryService",
    "RollbackService",
]
