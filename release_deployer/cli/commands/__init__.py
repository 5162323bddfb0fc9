# release_deployer/cli/commands/__init__.py
"""CLI commands"""

from . import deploy
from . import rollback
from . import backups
from . import history
from . import doctor
from . import config

__all__ = [
    "deploy",
    "rollback",
    "backups",
    "history",
    "doctor",
    "config",
]
