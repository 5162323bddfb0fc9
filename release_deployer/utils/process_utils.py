"""Subprocess execution with streamed output"""

import asyncio
import contextlib
import logging
import shlex
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

# Exit status reported for commands that could not be launched
COMMAND_NOT_FOUND = 127


@dataclass
class CommandResult:
    """Outcome of one subordinate process"""

    command: List[str]
    returncode: int
    output: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        """True when the process exited with status 0"""
        return self.returncode == 0 and not self.timed_out

    @property
    def display(self) -> str:
        """Shell-quoted command line"""
        return " ".join(shlex.quote(part) for part in self.command)

    def tail(self, lines: int = 20) -> str:
        """Last lines of output, for error messages"""
        return "\n".join(self.output.splitlines()[-lines:])

    def describe_failure(self) -> str:
        """One-line failure summary"""
        if self.timed_out:
            return f"'{self.display}' timed out"
        return f"'{self.display}' exited with status {self.returncode}"


CommandRunner = Callable[..., Awaitable[CommandResult]]


def command_exists(name: str) -> bool:
    """Check whether an executable is on PATH"""
    return shutil.which(name) is not None


async def run_command(command: List[str],
                      cwd: Optional[Union[str, Path]] = None,
                      timeout: Optional[float] = None,
                      env: Optional[Dict[str, str]] = None,
                      log_output: bool = True) -> CommandResult:
    """
    Run a command, streaming its combined output into the log

    Output is consumed line by line while the process runs. The call returns
    only after the process has exited, been killed on timeout, or failed to
    launch.

    Args:
        command: Program and arguments
        cwd: Working directory
        timeout: Seconds before the process is killed (None waits forever)
        env: Environment for the child process
        log_output: Whether to log each output line

    Returns:
        CommandResult with exit status and captured output
    """
    display = " ".join(shlex.quote(part) for part in command)
    logger.debug("Running: %s", display)

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=str(cwd) if cwd else None,
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT
        )
    except (FileNotFoundError, PermissionError) as e:
        logger.debug("Could not launch %s: %s", display, e)
        return CommandResult(command, COMMAND_NOT_FOUND, str(e))

    lines: List[str] = []

    async def _pump_output() -> None:
        while True:
            line = await process.stdout.readline()
            if not line:
                break
            text = line.decode(errors="replace").rstrip()
            lines.append(text)
            if log_output and text:
                logger.info("  %s", text)

    try:
        await asyncio.wait_for(
            asyncio.gather(_pump_output(), process.wait()),
            timeout=timeout
        )
    except asyncio.TimeoutError:
        await _kill(process)
        logger.warning("Command timed out after %ss: %s", timeout, display)
        return CommandResult(command, process.returncode or -1, "\n".join(lines), timed_out=True)
    except asyncio.CancelledError:
        await _kill(process)
        raise

    return CommandResult(command, process.returncode, "\n".join(lines))


async def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill a child process and reap it"""
    with contextlib.suppress(ProcessLookupError):
        process.kill()
    with contextlib.suppress(ProcessLookupError):
        await process.wait()
