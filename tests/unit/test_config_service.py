"""Unit tests for ConfigService."""

import pytest
import yaml

from release_deployer.api.exceptions import ConfigError
from release_deployer.constants import (
    ENV_APP_NAME,
    ENV_BACKUP_DIR,
    ENV_CONFIG_PATH,
    ENV_LIVE_DIR,
    ENV_LOG_FILE,
    ENV_SCRATCH_DIR,
    ENV_WEBHOOK_SECRET,
)
from release_deployer.models.config import DeployerConfig
from release_deployer.services.config_service import ConfigService


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in (ENV_APP_NAME, ENV_BACKUP_DIR, ENV_CONFIG_PATH, ENV_LIVE_DIR,
                 ENV_LOG_FILE, ENV_SCRATCH_DIR, ENV_WEBHOOK_SECRET):
        monkeypatch.delenv(name, raising=False)


def _write(path, data):
    path.write_text(yaml.dump(data) if isinstance(data, dict) else data)
    return path


class TestLoadConfig:
    """Tests for loading configuration."""

    def test_expands_environment_variables(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DEPLOY_ROOT", str(tmp_path))
        config_file = _write(tmp_path / "config.yaml", "app_name: chat\nlive_dir: ${DEPLOY_ROOT}/live\n")

        config = ConfigService(config_file).load_config()

        assert config.app_name == "chat"
        assert config.live_path == tmp_path / "live"
        assert config.backup_path == tmp_path / "backups"

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        config_file = _write(tmp_path / "config.yaml", {
            "app_name": "chat",
            "live_dir": "/srv/chat",
            "backup": {"retain": 3},
        })
        monkeypatch.setenv("RELEASE_DEPLOYER_LIVE_DIR", str(tmp_path / "elsewhere"))
        monkeypatch.setenv("RELEASE_DEPLOYER_BACKUP_DIR", str(tmp_path / "snapshots"))

        config = ConfigService(config_file).load_config()

        assert config.live_dir == str(tmp_path / "elsewhere")
        assert config.backup.directory == str(tmp_path / "snapshots")
        assert config.backup.retain == 3

    def test_config_path_from_environment(self, tmp_path, monkeypatch):
        config_file = _write(tmp_path / "from-env.yaml", {"live_dir": "/srv/app"})
        monkeypatch.setenv("RELEASE_DEPLOYER_CONFIG", str(config_file))

        service = ConfigService()

        assert service.config_path == config_file
        assert service.load_config().live_dir == "/srv/app"

    def test_missing_default_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        config = ConfigService().load_config(require_live_dir=False)

        assert config.app_name == "app"
        assert config.auto_rollback is False
        assert config.supervisor.order == ["pm2", "systemd", "compose"]

    def test_missing_explicit_file_raises(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            ConfigService(tmp_path / "nope.yaml").load_config()

    def test_live_dir_required(self, tmp_path):
        config_file = _write(tmp_path / "config.yaml", {"app_name": "chat"})

        with pytest.raises(ConfigError, match="live_dir"):
            ConfigService(config_file).load_config()

    @pytest.mark.parametrize("data,location", [
        ({"live_dir": "/srv", "health": {"ports": [70000]}}, "health.ports.0"),
        ({"live_dir": "/srv", "backup": {"retain": 0}}, "backup.retain"),
        ({"live_dir": "/srv", "supervisor": {"order": ["upstart"]}}, "supervisor.order.0"),
        ({"live_dir": "/srv", "unknown": True}, "<root>"),
    ])
    def test_schema_errors_name_location(self, tmp_path, data, location):
        config_file = _write(tmp_path / "config.yaml", data)

        with pytest.raises(ConfigError) as exc_info:
            ConfigService(config_file).load_config()

        assert location in str(exc_info.value)

    def test_invalid_app_name(self, tmp_path):
        config_file = _write(tmp_path / "config.yaml", {"app_name": "../evil", "live_dir": "/srv"})

        with pytest.raises(ConfigError, match="app_name"):
            ConfigService(config_file).load_config()

    def test_invalid_yaml(self, tmp_path):
        config_file = _write(tmp_path / "config.yaml", "live_dir: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            ConfigService(config_file).load_config()

    def test_non_mapping(self, tmp_path):
        config_file = _write(tmp_path / "config.yaml", "- just\n- a list\n")

        with pytest.raises(ConfigError, match="mapping"):
            ConfigService(config_file).load_config()


class TestSaveConfig:
    """Tests for writing configuration."""

    def test_saved_config_loads_back(self, tmp_path):
        config = DeployerConfig(app_name="chat", live_dir=str(tmp_path / "live"))
        config.health.ports = [9000]
        config.install.excludes = ["node_modules", "uploads"]
        service = ConfigService(tmp_path / "config.yaml")

        service.save_config(config)
        loaded = service.load_config()

        assert loaded.to_dict() == config.to_dict()

    def test_refuses_to_overwrite(self, tmp_path):
        service = ConfigService(tmp_path / "config.yaml")
        service.save_config(DeployerConfig(live_dir="/srv/a"))

        with pytest.raises(ConfigError, match="already exists"):
            service.save_config(DeployerConfig(live_dir="/srv/b"))

    def test_overwrite_keeps_copy(self, tmp_path):
        service = ConfigService(tmp_path / "config.yaml")
        service.save_config(DeployerConfig(live_dir="/srv/a"))

        service.save_config(DeployerConfig(live_dir="/srv/b"), overwrite=True)

        assert service.load_config().live_dir == "/srv/b"
        assert "/srv/a" in (tmp_path / "config.yaml.bak").read_text()
