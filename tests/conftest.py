"""Shared fixtures for release-deployer tests."""

import io
import os
import tarfile
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import pytest
from click.testing import CliRunner

from release_deployer.core.supervisor import Supervisor
from release_deployer.core.transport import Transport
from release_deployer.models.config import DeployerConfig
from release_deployer.utils.process_utils import CommandResult

FileContent = Union[str, bytes]


def build_tarball(path: Path,
                  files: Dict[str, FileContent],
                  wrap_dir: Optional[str] = None,
                  padding: int = 4096) -> Path:
    """Write a gzip tarball with the given files.

    Args:
        path: Archive path to write
        files: Relative path -> content
        wrap_dir: Put every entry under this top-level directory
        padding: Size of an incompressible padding file, keeping the
            archive above the minimum size (0 disables it)

    Returns:
        The archive path
    """
    entries = dict(files)
    if padding:
        entries["assets/padding.bin"] = os.urandom(padding)

    with tarfile.open(path, "w:gz") as archive:
        for name, content in sorted(entries.items()):
            data = content.encode("utf-8") if isinstance(content, str) else content
            arcname = f"{wrap_dir}/{name}" if wrap_dir else name
            info = tarfile.TarInfo(arcname)
            info.size = len(data)
            info.mode = 0o644
            archive.addfile(info, io.BytesIO(data))

    return path


def read_tree(root: Path) -> Dict[str, bytes]:
    """Map of relative file path -> bytes for every regular file under root."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file() and not p.is_symlink()
    }


class FakeRunner:
    """Command runner recording every call.

    ``responses`` maps a command prefix (tuple) to a return code and output.
    Unmatched commands succeed with empty output.
    """

    def __init__(self, responses: Optional[Dict[tuple, tuple]] = None):
        self.responses = responses or {}
        self.calls: List[List[str]] = []
        self.cwds: List[Optional[str]] = []

    async def __call__(self, command, cwd=None, timeout=None, env=None, log_output=True):
        self.calls.append(list(command))
        self.cwds.append(str(cwd) if cwd else None)

        best = None
        for prefix, response in self.responses.items():
            if tuple(command[:len(prefix)]) == prefix:
                if best is None or len(prefix) > len(best[0]):
                    best = (prefix, response)

        if best is None:
            return CommandResult(list(command), 0, "")
        returncode, output = best[1]
        return CommandResult(list(command), returncode, output)

    def commands(self) -> List[str]:
        return [" ".join(call) for call in self.calls]


class FakeTransport(Transport):
    """Transport that copies a local file instead of downloading."""

    name = "fake"

    def __init__(self, source: Optional[Path] = None, content: Optional[bytes] = None,
                 available: bool = True, error: Optional[Exception] = None):
        self.source = source
        self.content = content
        self.available = available
        self.error = error
        self.fetched: List[str] = []

    def is_available(self) -> bool:
        return self.available

    async def fetch(self, url, destination, timeout):
        self.fetched.append(url)
        if self.error is not None:
            destination.write_bytes(b"partial")
            raise self.error
        if self.source is not None:
            destination.write_bytes(self.source.read_bytes())
        elif self.content is not None:
            destination.write_bytes(self.content)


class FakeSupervisor(Supervisor):
    """Supervisor with scripted capability answers."""

    name = "fake"

    def __init__(self, manages: bool = False, can_start: bool = False,
                 stop_error: Optional[Exception] = None,
                 start_error: Optional[Exception] = None):
        super().__init__(Path("."))
        self._manages = manages
        self._can_start = can_start
        self.stop_error = stop_error
        self.start_error = start_error
        self.stopped: List[str] = []
        self.started: List[tuple] = []

    async def manages(self, app_name):
        return self._manages

    async def can_start(self, app_name):
        return self._can_start

    async def stop(self, app_name):
        if self.stop_error is not None:
            raise self.stop_error
        self.stopped.append(app_name)

    async def start_or_restart(self, app_name, entrypoint_hint):
        if self.start_error is not None:
            raise self.start_error
        self.started.append((app_name, entrypoint_hint))


class FakeHealthVerifier:
    """Health verifier returning a fixed answer."""

    def __init__(self, healthy: bool = True):
        self.healthy = healthy
        self.calls: List[list] = []

    async def verify(self, candidate_ports=None):
        self.calls.append(list(candidate_ports or []))
        return self.healthy


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def make_tarball(tmp_path) -> Callable[..., Path]:
    """Factory writing gzip tarballs under tmp_path/artifacts."""
    artifacts = tmp_path / "artifacts"
    artifacts.mkdir()
    counter = {"n": 0}

    def _make(files: Dict[str, FileContent], wrap_dir: Optional[str] = None,
              padding: int = 4096, name: Optional[str] = None) -> Path:
        counter["n"] += 1
        archive_name = name or f"release-{counter['n']}.tar.gz"
        return build_tarball(artifacts / archive_name, files, wrap_dir=wrap_dir, padding=padding)

    return _make


@pytest.fixture
def deployer_config(tmp_path) -> DeployerConfig:
    """Configuration rooted in tmp_path with health delay disabled."""
    config = DeployerConfig(
        app_name="app",
        live_dir=str(tmp_path / "live"),
        scratch_dir=str(tmp_path / "scratch"),
    )
    config.backup.directory = str(tmp_path / "backups")
    config.health.delay_seconds = 0
    return config


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Command runner that records calls and always succeeds."""
    return FakeRunner()


@pytest.fixture
def fakes():
    """Namespace of fake component classes."""

    class _Fakes:
        Runner = FakeRunner
        Transport = FakeTransport
        Supervisor = FakeSupervisor
        HealthVerifier = FakeHealthVerifier

    return _Fakes


@pytest.fixture
def tree_contents() -> Callable[[Path], Dict[str, bytes]]:
    """Function mapping a directory to its regular files' contents."""
    return read_tree
