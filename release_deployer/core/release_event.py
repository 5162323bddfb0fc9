"""Release notification handling"""

import hashlib
import hmac
import logging
from typing import Any, Dict, Optional, Union

from ..api.exceptions import ConfigError, InvalidSignatureError
from ..constants import (
    RELEASE_ACTION_PUBLISHED,
    RELEASE_EVENT,
    SIGNATURE_PREFIX,
    TARBALL_SUFFIXES,
)
from ..models.deployment import DeploymentRequest

logger = logging.getLogger(__name__)


def compute_signature(body: bytes, secret: str) -> str:
    """HMAC-SHA256 signature header value for a payload"""
    digest = hmac.new(secret.encode('utf-8'), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(body: bytes, signature_header: Optional[str], secret: str) -> None:
    """
    Check a payload against its signature header

    Args:
        body: Raw request body
        signature_header: Header value, ``sha256=<hex digest>``
        secret: Shared webhook secret

    Raises:
        InvalidSignatureError: If the header is missing or does not match
    """
    if not signature_header:
        raise InvalidSignatureError("Missing release event signature")

    if not signature_header.startswith(SIGNATURE_PREFIX):
        raise InvalidSignatureError("Unsupported signature format")

    expected = compute_signature(body, secret)
    if not hmac.compare_digest(expected.encode('utf-8'), signature_header.encode('utf-8')):
        raise InvalidSignatureError()


def select_artifact(payload: Dict[str, Any],
                    event: Union[str, None] = RELEASE_EVENT) -> Optional[DeploymentRequest]:
    """
    Turn a release notification into a deployment request

    Only published releases deploy. The first tarball asset is preferred over
    the auto-generated source tarball.

    Args:
        payload: Decoded notification body
        event: Event name the notification was delivered as

    Returns:
        DeploymentRequest, or None when the event should be ignored

    Raises:
        ConfigError: If the release or its assets are malformed
    """
    if event != RELEASE_EVENT:
        logger.info("Ignoring %s event", event)
        return None

    action = payload.get("action")
    if action != RELEASE_ACTION_PUBLISHED:
        logger.info("Ignoring release action: %s", action)
        return None

    release = payload.get("release") or {}
    if not isinstance(release, dict):
        raise ConfigError("Release event field 'release' must be an object")
    release_tag = release.get("tag_name")

    assets = release.get("assets") or []
    if not isinstance(assets, list):
        raise ConfigError("Release event field 'assets' must be a list")

    artifact_url = None
    for asset in assets:
        if not isinstance(asset, dict):
            raise ConfigError("Release event assets must be objects")
        name = asset.get("name") or ""
        if isinstance(name, str) and name.endswith(TARBALL_SUFFIXES) and asset.get("browser_download_url"):
            artifact_url = asset["browser_download_url"]
            break

    if artifact_url is None:
        artifact_url = release.get("tarball_url")

    if not artifact_url or not release_tag:
        logger.warning("Release event carries no usable artifact")
        return None

    logger.info("Release %s published, artifact: %s", release_tag, artifact_url)
    return DeploymentRequest(artifact_url=artifact_url, release_tag=release_tag)
