"""Unit tests for supervisor probing and commands."""

from unittest.mock import patch

import pytest

from release_deployer.api.exceptions import SupervisorStartError, SupervisorStopError
from release_deployer.core.supervisor import (
    ComposeRuntime,
    ProcessSupervisor,
    ServiceManager,
    SupervisorBridge,
    create_supervisors,
)

COMMAND_EXISTS = "release_deployer.core.supervisor.command_exists"


def _only(*names):
    return lambda name: name in names


class TestSupervisorBridge:
    """Tests for first-match dispatch."""

    @pytest.mark.asyncio
    async def test_stop_uses_first_match_only(self, fakes):
        skipped = fakes.Supervisor(manages=False)
        first = fakes.Supervisor(manages=True)
        second = fakes.Supervisor(manages=True)

        name = await SupervisorBridge([skipped, first, second]).stop("app")

        assert name == "fake"
        assert first.stopped == ["app"]
        assert second.stopped == []

    @pytest.mark.asyncio
    async def test_stop_without_match_returns_none(self, fakes):
        assert await SupervisorBridge([fakes.Supervisor()]).stop("app") is None

    @pytest.mark.asyncio
    async def test_stop_failure_does_not_fall_back(self, fakes):
        failing = fakes.Supervisor(manages=True, stop_error=SupervisorStopError("nope"))
        later = fakes.Supervisor(manages=True)

        with pytest.raises(SupervisorStopError):
            await SupervisorBridge([failing, later]).stop("app")

        assert later.stopped == []

    @pytest.mark.asyncio
    async def test_start_without_match_returns_none(self, fakes):
        assert await SupervisorBridge([fakes.Supervisor()]).start_or_restart("app", "index.js") is None

    @pytest.mark.asyncio
    async def test_start_passes_entrypoint(self, fakes):
        supervisor = fakes.Supervisor(can_start=True)

        await SupervisorBridge([supervisor]).start_or_restart("app", "server.js")

        assert supervisor.started == [("app", "server.js")]


class TestProcessSupervisor:
    """Tests for pm2 handling."""

    @pytest.mark.asyncio
    async def test_manages_when_listed(self, tmp_path, fakes):
        runner = fakes.Runner({("pm2", "list"): (0, "│ app │ online │")})
        with patch(COMMAND_EXISTS, _only("pm2")):
            assert await ProcessSupervisor(tmp_path, runner).manages("app") is True

    @pytest.mark.asyncio
    async def test_not_installed(self, tmp_path, fake_runner):
        with patch(COMMAND_EXISTS, _only()):
            supervisor = ProcessSupervisor(tmp_path, fake_runner)
            assert await supervisor.manages("app") is False
            assert await supervisor.can_start("app") is False
        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_restart_registered_app(self, tmp_path, fakes):
        runner = fakes.Runner({("pm2", "list"): (0, "app online")})

        await ProcessSupervisor(tmp_path, runner).start_or_restart("app", "index.js")

        assert runner.commands() == ["pm2 list", "pm2 restart app"]

    @pytest.mark.asyncio
    async def test_start_from_ecosystem_file(self, tmp_path, fakes):
        (tmp_path / "ecosystem.config.js").write_text("module.exports = {}")
        runner = fakes.Runner({("pm2", "list"): (0, "")})

        await ProcessSupervisor(tmp_path, runner).start_or_restart("app", "index.js")

        assert runner.commands() == ["pm2 list", "pm2 start ecosystem.config.js", "pm2 save"]

    @pytest.mark.asyncio
    async def test_start_from_entrypoint(self, tmp_path, fakes):
        runner = fakes.Runner({("pm2", "list"): (0, "")})

        await ProcessSupervisor(tmp_path, runner).start_or_restart("app", "server.js")

        assert runner.commands() == ["pm2 list", "pm2 start server.js --name app", "pm2 save"]

    @pytest.mark.asyncio
    async def test_start_failure_raises(self, tmp_path, fakes):
        runner = fakes.Runner({("pm2", "list"): (0, ""), ("pm2", "start"): (1, "script not found")})

        with pytest.raises(SupervisorStartError):
            await ProcessSupervisor(tmp_path, runner).start_or_restart("app", "index.js")


class TestServiceManager:
    """Tests for systemd handling."""

    @pytest.mark.asyncio
    async def test_stop_uses_sudo(self, tmp_path, fake_runner):
        await ServiceManager(tmp_path, fake_runner, use_sudo=True).stop("app")

        assert fake_runner.commands() == ["sudo systemctl stop app"]

    @pytest.mark.asyncio
    async def test_restart_without_sudo(self, tmp_path, fake_runner):
        await ServiceManager(tmp_path, fake_runner, use_sudo=False).start_or_restart("app", "index.js")

        assert fake_runner.commands() == ["systemctl restart app"]

    @pytest.mark.asyncio
    async def test_can_start_requires_unit(self, tmp_path, fakes):
        runner = fakes.Runner({("systemctl", "list-units"): (0, "  app.service  loaded active running")})
        with patch(COMMAND_EXISTS, _only("systemctl")):
            assert await ServiceManager(tmp_path, runner).can_start("app") is True
            assert await ServiceManager(tmp_path, runner).can_start("other") is False

    @pytest.mark.asyncio
    async def test_manages_only_when_active(self, tmp_path, fakes):
        runner = fakes.Runner({("systemctl", "is-active"): (3, "")})
        with patch(COMMAND_EXISTS, _only("systemctl")):
            assert await ServiceManager(tmp_path, runner).manages("app") is False

    @pytest.mark.asyncio
    async def test_stop_failure_raises(self, tmp_path, fakes):
        runner = fakes.Runner({("sudo",): (1, "access denied")})

        with pytest.raises(SupervisorStopError):
            await ServiceManager(tmp_path, runner).stop("app")


class TestComposeRuntime:
    """Tests for compose handling."""

    @pytest.mark.asyncio
    async def test_requires_compose_file(self, tmp_path, fake_runner):
        runtime = ComposeRuntime(tmp_path, fake_runner)

        assert await runtime.manages("app") is False
        assert await runtime.can_start("app") is False

    @pytest.mark.asyncio
    async def test_up_with_standalone_binary(self, tmp_path, fake_runner):
        (tmp_path / "docker-compose.yml").write_text("services: {}")

        with patch(COMMAND_EXISTS, _only("docker-compose")):
            await ComposeRuntime(tmp_path, fake_runner).start_or_restart("app", "index.js")

        assert fake_runner.commands() == ["docker-compose -f docker-compose.yml up -d --build"]
        assert fake_runner.cwds == [str(tmp_path)]

    @pytest.mark.asyncio
    async def test_down_with_docker_plugin(self, tmp_path, fake_runner):
        (tmp_path / "compose.yaml").write_text("services: {}")

        with patch(COMMAND_EXISTS, _only("docker")):
            await ComposeRuntime(tmp_path, fake_runner).stop("app")

        assert fake_runner.commands() == ["docker compose -f compose.yaml down"]

    @pytest.mark.asyncio
    async def test_no_tool_raises(self, tmp_path, fake_runner):
        (tmp_path / "docker-compose.yml").write_text("services: {}")

        with patch(COMMAND_EXISTS, _only()):
            with pytest.raises(SupervisorStartError):
                await ComposeRuntime(tmp_path, fake_runner).start_or_restart("app", "index.js")


class TestCreateSupervisors:
    """Tests for building the probe list."""

    def test_order_is_respected(self, tmp_path):
        supervisors = create_supervisors(tmp_path, ["compose", "pm2"])

        assert [s.name for s in supervisors] == ["compose", "pm2"]

    def test_use_sudo_reaches_service_manager(self, tmp_path):
        (supervisor,) = create_supervisors(tmp_path, ["systemd"], use_sudo=False)

        assert supervisor.use_sudo is False

    def test_unknown_name_raises(self, tmp_path):
        with pytest.raises(ValueError):
            create_supervisors(tmp_path, ["supervisord"])
