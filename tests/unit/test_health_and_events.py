"""Unit tests for health verification and release event handling."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from release_deployer.api.exceptions import ConfigError, InvalidSignatureError
from release_deployer.core.health import HealthVerifier
from release_deployer.core.release_event import (
    compute_signature,
    select_artifact,
    verify_signature,
)


def _session(status_by_url):
    """Session whose GET answers from a url -> status map, refusing other URLs."""
    session = MagicMock()

    def _get(url, **kwargs):
        if url not in status_by_url:
            raise requests.ConnectionError(f"refused: {url}")
        response = MagicMock()
        response.status_code = status_by_url[url]
        return response

    session.get.side_effect = _get
    return session


class TestHealthVerifier:
    """Tests for HealthVerifier.verify."""

    def test_candidate_order(self):
        verifier = HealthVerifier(paths=["/health", "/"])

        assert verifier.candidate_urls([3000, 8080]) == [
            "http://localhost:3000/health",
            "http://localhost:3000/",
            "http://localhost:8080/health",
            "http://localhost:8080/",
        ]

    @pytest.mark.asyncio
    async def test_first_success_wins(self):
        session = _session({
            "http://localhost:3000/health": 500,
            "http://localhost:3000/": 302,
            "http://localhost:8080/health": 200,
        })
        verifier = HealthVerifier(delay_seconds=0, session=session)

        assert await verifier.verify([3000, 8080]) is True
        probed = [call.args[0] for call in session.get.call_args_list]
        assert probed == ["http://localhost:3000/health", "http://localhost:3000/"]

    @pytest.mark.asyncio
    async def test_nothing_answers_returns_false(self):
        verifier = HealthVerifier(delay_seconds=0, session=_session({}))

        assert await verifier.verify([3000, 8080, 4000, 5000]) is False

    @pytest.mark.asyncio
    async def test_server_errors_return_false(self):
        session = _session({"http://localhost:3000/health": 503, "http://localhost:3000/": 404})
        verifier = HealthVerifier(delay_seconds=0, session=session)

        assert await verifier.verify([3000]) is False


def _release_payload(assets=None, action="published", tarball_url="https://api.example.com/tarball/v1"):
    return {
        "action": action,
        "release": {
            "tag_name": "v1.0.0",
            "name": "First",
            "tarball_url": tarball_url,
            "assets": assets or [],
        },
    }


class TestSelectArtifact:
    """Tests for turning release events into deployment requests."""

    def test_prefers_first_tarball_asset(self):
        payload = _release_payload(assets=[
            {"name": "notes.txt", "browser_download_url": "https://dl/notes.txt"},
            {"name": "app.tgz", "browser_download_url": "https://dl/app.tgz"},
            {"name": "app-full.tar.gz", "browser_download_url": "https://dl/app-full.tar.gz"},
        ])

        request = select_artifact(payload)

        assert request.artifact_url == "https://dl/app.tgz"
        assert request.release_tag == "v1.0.0"

    def test_falls_back_to_source_tarball(self):
        payload = _release_payload(assets=[{"name": "app.zip", "browser_download_url": "https://dl/app.zip"}])

        assert select_artifact(payload).artifact_url == "https://api.example.com/tarball/v1"

    def test_ignores_other_actions(self):
        assert select_artifact(_release_payload(action="created")) is None

    def test_ignores_other_events(self):
        assert select_artifact(_release_payload(), event="push") is None

    def test_no_url_returns_none(self):
        assert select_artifact(_release_payload(tarball_url=None)) is None

    def test_null_asset_name_skipped(self):
        payload = _release_payload(assets=[{"name": None, "browser_download_url": "https://dl/x"}])

        assert select_artifact(payload).artifact_url == "https://api.example.com/tarball/v1"

    @pytest.mark.parametrize("release", [
        "v1.0.0",
        {"tag_name": "v1", "assets": "app.tgz"},
        {"tag_name": "v1", "assets": ["app.tgz"]},
    ])
    def test_malformed_release_rejected(self, release):
        with pytest.raises(ConfigError):
            select_artifact({"action": "published", "release": release})


class TestSignature:
    """Tests for HMAC signature verification."""

    def test_valid_signature(self):
        body = json.dumps(_release_payload()).encode()

        verify_signature(body, compute_signature(body, "s3cret"), "s3cret")

    def test_tampered_body_rejected(self):
        body = b'{"action": "published"}'
        signature = compute_signature(body, "s3cret")

        with pytest.raises(InvalidSignatureError):
            verify_signature(body + b" ", signature, "s3cret")

    @pytest.mark.parametrize("header", [None, "", "sha1=abc", "sha256=deadbeef"])
    def test_bad_headers_rejected(self, header):
        with pytest.raises(InvalidSignatureError):
            verify_signature(b"{}", header, "s3cret")
