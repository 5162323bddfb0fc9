"""Post-restart health verification"""

import asyncio
import logging
from typing import List, Optional, Sequence

import requests

from ..constants import (
    DEFAULT_HEALTH_CHECK_DELAY,
    DEFAULT_HEALTH_CHECK_HOST,
    DEFAULT_HEALTH_CHECK_PATHS,
    DEFAULT_HEALTH_CHECK_PORTS,
    DEFAULT_HEALTH_CHECK_TIMEOUT,
)
from ..utils.async_utils import sync_to_async

logger = logging.getLogger(__name__)


class HealthVerifier:
    """Polls candidate local endpoints until one answers"""

    def __init__(self,
                 host: str = DEFAULT_HEALTH_CHECK_HOST,
                 paths: Optional[Sequence[str]] = None,
                 delay_seconds: float = DEFAULT_HEALTH_CHECK_DELAY,
                 timeout_seconds: float = DEFAULT_HEALTH_CHECK_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.host = host
        self.paths = list(paths) if paths is not None else list(DEFAULT_HEALTH_CHECK_PATHS)
        self.delay_seconds = delay_seconds
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def candidate_urls(self, ports: Sequence[int]) -> List[str]:
        """URLs in probe order: each port, each path"""
        return [
            f"http://{self.host}:{port}{path}"
            for port in ports
            for path in self.paths
        ]

    async def verify(self, candidate_ports: Optional[Sequence[int]] = None) -> bool:
        """
        Wait for the settle delay, then probe each candidate endpoint

        Args:
            candidate_ports: Ports to probe in order

        Returns:
            True when an endpoint answered with 2xx or 3xx, False otherwise
        """
        ports = list(candidate_ports) if candidate_ports is not None else list(DEFAULT_HEALTH_CHECK_PORTS)

        logger.info("🏥 Running health check...")
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        for url in self.candidate_urls(ports):
            if await sync_to_async(self._probe)(url):
                logger.info("✅ Health check passed: %s", url)
                return True

        return False

    def _probe(self, url: str) -> bool:
        try:
            response = self.session.get(url, timeout=self.timeout_seconds, allow_redirects=False)
        except requests.RequestException as e:
            logger.debug("Health probe %s failed: %s", url, e)
            return False

        logger.debug("Health probe %s returned %d", url, response.status_code)
        return 200 <= response.status_code < 400
