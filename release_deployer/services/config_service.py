"""Configuration management service"""

import logging
import os
import shutil
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema
import yaml

from ..api.exceptions import ConfigError
from ..constants import (
    APP_NAME_PATTERN,
    ENV_APP_NAME,
    ENV_BACKUP_DIR,
    ENV_CONFIG_PATH,
    ENV_LIVE_DIR,
    ENV_LOG_FILE,
    ENV_SCRATCH_DIR,
    ENV_WEBHOOK_SECRET,
    PROJECT_CONFIG_FILE,
)
from ..models.config import DeployerConfig

logger = logging.getLogger(__name__)

_STRING_LIST = {"type": "array", "items": {"type": "string"}}
_SECONDS = {"type": "number", "minimum": 0}

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "version": {"type": ["string", "number"]},
        "app_name": {"type": "string", "minLength": 1},
        "live_dir": {"type": "string"},
        "scratch_dir": {"type": "string"},
        "log_file": {"type": ["string", "null"]},
        "history_file": {"type": ["string", "null"]},
        "lock_file": {"type": ["string", "null"]},
        "auto_rollback": {"type": "boolean"},
        "webhook_secret": {"type": ["string", "null"]},
        "backup": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "directory": {"type": "string"},
                "retain": {"type": "integer", "minimum": 1},
                "excludes": _STRING_LIST,
            },
        },
        "health": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "enabled": {"type": "boolean"},
                "ports": {
                    "type": "array",
                    "items": {"type": "integer", "minimum": 1, "maximum": 65535},
                },
                "paths": _STRING_LIST,
                "host": {"type": "string"},
                "delay_seconds": _SECONDS,
                "timeout_seconds": _SECONDS,
            },
        },
        "install": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "excludes": _STRING_LIST,
                "entrypoint": {"type": "string", "minLength": 1},
                "run_dependency_install": {"type": "boolean"},
            },
        },
        "supervisor": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "use_sudo": {"type": "boolean"},
                "order": {
                    "type": "array",
                    "items": {"enum": ["pm2", "systemd", "compose"]},
                    "uniqueItems": True,
                },
            },
        },
        "timeouts": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "fetch_seconds": _SECONDS,
                "command_seconds": _SECONDS,
            },
        },
    },
}

# Environment variable -> top-level key
ENV_OVERRIDES = {
    ENV_APP_NAME: "app_name",
    ENV_LIVE_DIR: "live_dir",
    ENV_SCRATCH_DIR: "scratch_dir",
    ENV_LOG_FILE: "log_file",
    ENV_WEBHOOK_SECRET: "webhook_secret",
}


class ConfigService:
    """Service for loading and saving deployer configuration"""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config service

        Args:
            config_path: Explicit configuration file. When omitted, the
                RELEASE_DEPLOYER_CONFIG variable is consulted, then
                .release-deployer.yaml in the working directory.
        """
        self.explicit = config_path is not None or bool(os.environ.get(ENV_CONFIG_PATH))
        if config_path is not None:
            self.config_path = Path(config_path)
        elif os.environ.get(ENV_CONFIG_PATH):
            self.config_path = Path(os.environ[ENV_CONFIG_PATH])
        else:
            self.config_path = Path.cwd() / PROJECT_CONFIG_FILE

    def read_raw(self) -> Dict[str, Any]:
        """Read the configuration file as a dictionary

        Returns:
            Parsed YAML mapping (empty when no file exists and none was requested)

        Raises:
            ConfigError: If the file is missing, unreadable or not a mapping
        """
        if not self.config_path.exists():
            if self.explicit:
                raise ConfigError(f"Configuration file not found: {self.config_path}")
            logger.debug("No configuration file at %s, using defaults", self.config_path)
            return {}

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except OSError as e:
            raise ConfigError(f"Cannot read configuration file {self.config_path}: {e}")

        # Expand environment variables in the file
        content = os.path.expandvars(content)

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self.config_path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration must be a mapping: {self.config_path}")

        return data

    @staticmethod
    def apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay RELEASE_DEPLOYER_* environment variables"""
        data = dict(data)

        for env_name, key in ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                data[key] = value

        backup_dir = os.environ.get(ENV_BACKUP_DIR)
        if backup_dir:
            data["backup"] = dict(data.get("backup") or {}, directory=backup_dir)

        return data

    @staticmethod
    def validate(data: Dict[str, Any]) -> None:
        """Validate a configuration mapping

        Raises:
            ConfigError: If the mapping does not match the schema
        """
        try:
            jsonschema.validate(data, CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            location = ".".join(str(p) for p in e.absolute_path) or "<root>"
            raise ConfigError(f"Schema validation failed at {location}: {e.message}")

        app_name = data.get("app_name")
        if app_name is not None and not APP_NAME_PATTERN.match(app_name):
            raise ConfigError(f"Invalid app_name: {app_name}")

    def load_config(self, require_live_dir: bool = True) -> DeployerConfig:
        """Load, override and validate configuration

        Args:
            require_live_dir: Fail when no live directory is configured

        Returns:
            Loaded configuration

        Raises:
            ConfigError: If the configuration is invalid
        """
        data = self.apply_env_overrides(self.read_raw())
        self.validate(data)

        config = DeployerConfig.from_dict(data)

        if require_live_dir and not config.live_dir:
            raise ConfigError(
                f"live_dir is not configured (set it in {PROJECT_CONFIG_FILE} or {ENV_LIVE_DIR})"
            )

        return config

    def save_config(self, config: DeployerConfig, overwrite: bool = False) -> Path:
        """Write configuration to file

        Args:
            config: Configuration to save
            overwrite: Replace an existing file (a .bak copy is kept)

        Returns:
            Path written

        Raises:
            ConfigError: If the file exists and overwrite is False
        """
        if self.config_path.exists():
            if not overwrite:
                raise ConfigError(f"Configuration file already exists: {self.config_path}")
            backup_path = self.config_path.with_suffix('.yaml.bak')
            shutil.copy2(self.config_path, backup_path)

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)

        logger.info("Configuration saved to %s", self.config_path)
        return self.config_path
