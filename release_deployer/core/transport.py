"""Artifact retrieval over HTTP(S) with capability-probed backends"""

import asyncio
import logging
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

import requests

from ..api.exceptions import DownloadError
from ..constants import DEFAULT_CHUNK_SIZE, DEFAULT_FETCH_TIMEOUT, ErrorCode
from ..utils.async_utils import sync_to_async
from ..utils.file_utils import format_size
from ..utils.process_utils import CommandRunner, command_exists, run_command

logger = logging.getLogger(__name__)

# Extra time granted to a child process beyond its own transfer limit
PROCESS_GRACE_SECONDS = 10


class Transport(ABC):
    """Abstract base class for download backends"""

    name: str = "transport"

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check whether this backend can run on this host

        Returns:
            True if usable
        """
        pass

    @abstractmethod
    async def fetch(self, url: str, destination: Path, timeout: float) -> None:
        """
        Download a URL into a local file

        Args:
            url: Remote URL
            destination: Local file to write
            timeout: Upper bound for the whole transfer, in seconds

        Raises:
            DownloadError: On any transport failure or timeout
        """
        pass


class CurlTransport(Transport):
    """Download with the curl command line tool"""

    name = "curl"

    def __init__(self, runner: CommandRunner = run_command):
        self.runner = runner

    def is_available(self) -> bool:
        return command_exists("curl")

    async def fetch(self, url: str, destination: Path, timeout: float) -> None:
        command = [
            "curl",
            "--fail",
            "--location",
            "--silent",
            "--show-error",
            "--max-time", str(int(timeout)),
            "--output", str(destination),
            url,
        ]
        result = await self.runner(command, timeout=timeout + PROCESS_GRACE_SECONDS, log_output=False)
        if not result.ok:
            raise DownloadError(f"curl download failed: {result.describe_failure()}: {result.tail(5)}")


class WgetTransport(Transport):
    """Download with the wget command line tool"""

    name = "wget"

    def __init__(self, runner: CommandRunner = run_command):
        self.runner = runner

    def is_available(self) -> bool:
        return command_exists("wget")

    async def fetch(self, url: str, destination: Path, timeout: float) -> None:
        command = [
            "wget",
            "--quiet",
            f"--timeout={int(timeout)}",
            "--output-document", str(destination),
            url,
        ]
        result = await self.runner(command, timeout=timeout + PROCESS_GRACE_SECONDS, log_output=False)
        if not result.ok:
            raise DownloadError(f"wget download failed: {result.describe_failure()}: {result.tail(5)}")


class RequestsTransport(Transport):
    """In-process download with requests, streamed to disk"""

    name = "requests"

    def __init__(self,
                 session: Optional[requests.Session] = None,
                 connect_timeout: float = 10.0,
                 chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.session = session or requests.Session()
        self.connect_timeout = connect_timeout
        self.chunk_size = chunk_size

    def is_available(self) -> bool:
        return True

    async def fetch(self, url: str, destination: Path, timeout: float) -> None:
        control = _DownloadControl()
        try:
            await sync_to_async(self._download)(url, destination, timeout, control)
        except asyncio.CancelledError:
            control.cancel()
            raise

    def _download(self, url: str, destination: Path, timeout: float,
                  control: Optional['_DownloadControl'] = None) -> None:
        """Blocking streamed download bounded by an overall deadline"""
        control = control or _DownloadControl()
        deadline = time.monotonic() + timeout

        try:
            with self.session.get(
                url,
                stream=True,
                allow_redirects=True,
                timeout=(min(self.connect_timeout, timeout), timeout)
            ) as response:
                control.attach(response)
                response.raise_for_status()

                with open(destination, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if control.cancelled:
                            logger.debug("Download of %s abandoned", url)
                            return
                        if time.monotonic() > deadline:
                            raise DownloadError(f"Download timed out after {timeout}s")
                        if chunk:
                            f.write(chunk)

        except requests.Timeout as e:
            raise DownloadError(f"Download timed out after {timeout}s: {e}")
        except requests.HTTPError as e:
            raise DownloadError(f"Server returned an error: {e}")
        except requests.RequestException as e:
            raise DownloadError(f"Download failed: {e}")


class _DownloadControl:
    """Lets the event loop stop a download running in a worker thread"""

    def __init__(self):
        self._event = threading.Event()
        self._response = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def attach(self, response) -> None:
        self._response = response
        if self.cancelled:
            response.close()

    def cancel(self) -> None:
        self._event.set()
        if self._response is not None:
            self._response.close()


def default_transports(runner: CommandRunner = run_command) -> List[Transport]:
    """Backends in probe order"""
    return [CurlTransport(runner), WgetTransport(runner), RequestsTransport()]


class TransportFetcher:
    """Retrieves a remote artifact into the scratch workspace"""

    def __init__(self,
                 transports: Optional[List[Transport]] = None,
                 timeout: float = DEFAULT_FETCH_TIMEOUT):
        """
        Args:
            transports: Backends in priority order (first available wins)
            timeout: Upper bound for one download, in seconds
        """
        self.transports = transports if transports is not None else default_transports()
        self.timeout = timeout

    def select_transport(self) -> Transport:
        """
        Pick the first available backend

        Returns:
            Transport to use

        Raises:
            DownloadError: If no backend is available
        """
        for transport in self.transports:
            if transport.is_available():
                return transport

        tried = ", ".join(t.name for t in self.transports) or "none configured"
        raise DownloadError(
            f"No download backend available (tried: {tried})",
            ErrorCode.NO_TRANSPORT
        )

    async def fetch(self, url: str, destination: Path) -> Path:
        """
        Download the artifact

        Args:
            url: Artifact URL
            destination: Local file inside the scratch workspace

        Returns:
            Path to the downloaded file

        Raises:
            DownloadError: If no backend is available or the download fails
        """
        transport = self.select_transport()
        logger.info("⬇️  Downloading release artifact with %s", transport.name)
        logger.info("📦 Artifact URL: %s", url)

        destination.parent.mkdir(parents=True, exist_ok=True)

        try:
            await transport.fetch(url, destination, self.timeout)
        except DownloadError:
            self._discard(destination)
            raise

        if not destination.is_file():
            logger.warning("%s reported success but wrote no file", transport.name)
            destination.touch()

        logger.info("✅ Artifact downloaded (%s)", format_size(destination.stat().st_size))
        return destination

    @staticmethod
    def _discard(path: Path) -> None:
        """Remove a partial download"""
        if path.exists():
            path.unlink()
