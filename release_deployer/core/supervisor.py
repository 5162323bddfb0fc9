"""Process supervisor handoff with capability-probed backends"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Type

from ..api.exceptions import SupervisorStartError, SupervisorStopError
from ..constants import COMPOSE_FILES, DEFAULT_COMMAND_TIMEOUT, PM2_ECOSYSTEM_FILE
from ..utils.process_utils import CommandResult, CommandRunner, command_exists, run_command

logger = logging.getLogger(__name__)


class Supervisor(ABC):
    """Abstract base class for process supervisors

    Each supervisor answers two capability questions, one per operation, and
    performs the operation when it is the first to answer yes.
    """

    name: str = "supervisor"

    def __init__(self,
                 live_dir: Path,
                 runner: CommandRunner = run_command,
                 command_timeout: float = DEFAULT_COMMAND_TIMEOUT):
        self.live_dir = Path(live_dir)
        self.runner = runner
        self.command_timeout = command_timeout

    async def _run(self, command: List[str], cwd: Optional[Path] = None,
                   log_output: bool = True) -> CommandResult:
        return await self.runner(
            command,
            cwd=cwd,
            timeout=self.command_timeout,
            log_output=log_output
        )

    @abstractmethod
    async def manages(self, app_name: str) -> bool:
        """
        Check whether the application is currently running under this supervisor

        Args:
            app_name: Application name

        Returns:
            True if stop should be handled here
        """
        pass

    @abstractmethod
    async def can_start(self, app_name: str) -> bool:
        """
        Check whether this supervisor can start the application

        Args:
            app_name: Application name

        Returns:
            True if start should be handled here
        """
        pass

    @abstractmethod
    async def stop(self, app_name: str) -> None:
        """
        Stop the application

        Raises:
            SupervisorStopError: If the stop command fails
        """
        pass

    @abstractmethod
    async def start_or_restart(self, app_name: str, entrypoint_hint: str) -> None:
        """
        Start the application, or restart it when already registered

        Raises:
            SupervisorStartError: If a start command fails
        """
        pass


class ProcessSupervisor(Supervisor):
    """pm2 process table"""

    name = "pm2"

    async def _is_registered(self, app_name: str) -> bool:
        result = await self._run(["pm2", "list"], log_output=False)
        return result.ok and app_name in result.output

    async def manages(self, app_name: str) -> bool:
        if not command_exists("pm2"):
            return False
        return await self._is_registered(app_name)

    async def can_start(self, app_name: str) -> bool:
        return command_exists("pm2")

    async def stop(self, app_name: str) -> None:
        result = await self._run(["pm2", "stop", app_name])
        if not result.ok:
            raise SupervisorStopError(f"Could not stop PM2 process: {result.describe_failure()}")

    async def start_or_restart(self, app_name: str, entrypoint_hint: str) -> None:
        if await self._is_registered(app_name):
            result = await self._run(["pm2", "restart", app_name], cwd=self.live_dir)
            if not result.ok:
                raise SupervisorStartError(f"PM2 restart failed: {result.describe_failure()}")
            logger.info("✅ Application restarted with PM2")
            return

        logger.info("PM2 process '%s' not found, starting new instance", app_name)
        if (self.live_dir / PM2_ECOSYSTEM_FILE).is_file():
            command = ["pm2", "start", PM2_ECOSYSTEM_FILE]
        else:
            command = ["pm2", "start", entrypoint_hint, "--name", app_name]

        result = await self._run(command, cwd=self.live_dir)
        if not result.ok:
            raise SupervisorStartError(f"PM2 start failed: {result.describe_failure()}")

        result = await self._run(["pm2", "save"], cwd=self.live_dir)
        if not result.ok:
            raise SupervisorStartError(f"PM2 save failed: {result.describe_failure()}")

        logger.info("✅ Application started with PM2")


class ServiceManager(Supervisor):
    """systemd service unit named after the application"""

    name = "systemd"

    def __init__(self, live_dir: Path, runner: CommandRunner = run_command,
                 command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
                 use_sudo: bool = True):
        super().__init__(live_dir, runner, command_timeout)
        self.use_sudo = use_sudo

    def _systemctl(self, *args: str) -> List[str]:
        command = ["systemctl", *args]
        return ["sudo", *command] if self.use_sudo else command

    async def manages(self, app_name: str) -> bool:
        if not command_exists("systemctl"):
            return False
        result = await self._run(["systemctl", "is-active", "--quiet", app_name], log_output=False)
        return result.ok

    async def can_start(self, app_name: str) -> bool:
        if not command_exists("systemctl"):
            return False
        result = await self._run(
            ["systemctl", "list-units", "--type=service", "--all"],
            log_output=False
        )
        return result.ok and f"{app_name}.service" in result.output

    async def stop(self, app_name: str) -> None:
        result = await self._run(self._systemctl("stop", app_name))
        if not result.ok:
            raise SupervisorStopError(f"Could not stop systemd service: {result.describe_failure()}")

    async def start_or_restart(self, app_name: str, entrypoint_hint: str) -> None:
        result = await self._run(self._systemctl("restart", app_name))
        if not result.ok:
            raise SupervisorStartError(f"systemd restart failed: {result.describe_failure()}")
        logger.info("✅ Application restarted with systemd")


class ComposeRuntime(Supervisor):
    """Container compose file in the live directory"""

    name = "compose"

    def _compose_file(self) -> Optional[Path]:
        for file_name in COMPOSE_FILES:
            candidate = self.live_dir / file_name
            if candidate.is_file():
                return candidate
        return None

    def _compose_command(self) -> Optional[List[str]]:
        if command_exists("docker-compose"):
            return ["docker-compose"]
        if command_exists("docker"):
            return ["docker", "compose"]
        return None

    async def manages(self, app_name: str) -> bool:
        return self._compose_file() is not None

    async def can_start(self, app_name: str) -> bool:
        return self._compose_file() is not None

    def _command(self, *args: str) -> List[str]:
        base = self._compose_command()
        compose_file = self._compose_file()
        if base is None or compose_file is None:
            return []
        return [*base, "-f", compose_file.name, *args]

    async def stop(self, app_name: str) -> None:
        command = self._command("down")
        if not command:
            raise SupervisorStopError("Compose file present but no compose tool installed")
        result = await self._run(command, cwd=self.live_dir)
        if not result.ok:
            raise SupervisorStopError(f"Could not stop docker-compose: {result.describe_failure()}")

    async def start_or_restart(self, app_name: str, entrypoint_hint: str) -> None:
        command = self._command("up", "-d", "--build")
        if not command:
            raise SupervisorStartError("Compose file present but no compose tool installed")
        result = await self._run(command, cwd=self.live_dir)
        if not result.ok:
            raise SupervisorStartError(f"docker-compose up failed: {result.describe_failure()}")
        logger.info("✅ Application restarted with docker-compose")


SUPERVISOR_TYPES: Dict[str, Type[Supervisor]] = {
    ProcessSupervisor.name: ProcessSupervisor,
    ServiceManager.name: ServiceManager,
    ComposeRuntime.name: ComposeRuntime,
}


def create_supervisors(live_dir: Path,
                       order: Sequence[str],
                       runner: CommandRunner = run_command,
                       command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
                       use_sudo: bool = True) -> List[Supervisor]:
    """
    Build supervisors in probe order

    Args:
        live_dir: Live deployment directory
        order: Supervisor names in priority order
        runner: Command runner shared by all supervisors
        command_timeout: Timeout for each supervisor command
        use_sudo: Run systemctl through sudo

    Returns:
        List of supervisors

    Raises:
        ValueError: If a name is unknown
    """
    supervisors = []
    for name in order:
        supervisor_type = SUPERVISOR_TYPES.get(name)
        if supervisor_type is None:
            raise ValueError(f"Unknown supervisor: {name}")
        if supervisor_type is ServiceManager:
            supervisors.append(ServiceManager(live_dir, runner, command_timeout, use_sudo=use_sudo))
        else:
            supervisors.append(supervisor_type(live_dir, runner, command_timeout))
    return supervisors


class SupervisorBridge:
    """Stops and starts the application through the first matching supervisor"""

    def __init__(self, supervisors: List[Supervisor]):
        self.supervisors = supervisors

    async def stop(self, app_name: str) -> Optional[str]:
        """
        Stop the application

        Args:
            app_name: Application name

        Returns:
            Name of the supervisor used, or None when none manages the app

        Raises:
            SupervisorStopError: If the matching supervisor fails to stop it
        """
        logger.info("⏹️  Stopping application...")

        for supervisor in self.supervisors:
            if await supervisor.manages(app_name):
                await supervisor.stop(app_name)
                logger.info("Application stopped via %s", supervisor.name)
                return supervisor.name

        logger.info("No running instance of %s found", app_name)
        return None

    async def start_or_restart(self, app_name: str, entrypoint_hint: str) -> Optional[str]:
        """
        Start or restart the application

        Args:
            app_name: Application name
            entrypoint_hint: Script used when starting a fresh process

        Returns:
            Name of the supervisor used, or None when no supervisor matched

        Raises:
            SupervisorStartError: If the matching supervisor fails to start it
        """
        logger.info("🔄 Restarting application...")

        for supervisor in self.supervisors:
            if await supervisor.can_start(app_name):
                await supervisor.start_or_restart(app_name, entrypoint_hint)
                return supervisor.name

        return None
