"""Unit tests for HistoryService."""

import pytest

from release_deployer.models.deployment import DeploymentRecord
from release_deployer.services.history_service import HistoryService


def _record(tag, status="success"):
    return DeploymentRecord(
        app_name="app",
        release_tag=tag,
        artifact_url=f"https://example.com/{tag}.tar.gz",
        status=status,
        started_at="2026-01-01T00:00:00",
        finished_at="2026-01-01T00:00:05",
        duration=5.0,
    )


class TestHistoryService:
    """Tests for appending and reading records."""

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path):
        assert await HistoryService(tmp_path / "history.jsonl").read() == []

    @pytest.mark.asyncio
    async def test_newest_first_with_limit(self, tmp_path):
        service = HistoryService(tmp_path / "nested" / "history.jsonl")
        for tag in ("v1", "v2", "v3"):
            await service.append(_record(tag))

        records = await service.read()
        limited = await service.read(limit=2)

        assert [r.release_tag for r in records] == ["v3", "v2", "v1"]
        assert [r.release_tag for r in limited] == ["v3", "v2"]

    @pytest.mark.asyncio
    async def test_fields_survive(self, tmp_path):
        service = HistoryService(tmp_path / "history.jsonl")
        record = _record("v1", status="failed")
        record.failed_stage = "installing"
        record.warnings = ["[stopping] no process"]
        record.rolled_back = True

        await service.append(record)
        (loaded,) = await service.read()

        assert loaded == record

    @pytest.mark.asyncio
    async def test_malformed_lines_skipped(self, tmp_path):
        path = tmp_path / "history.jsonl"
        service = HistoryService(path)
        await service.append(_record("v1"))
        with open(path, "a", encoding="utf-8") as f:
            f.write("{not json\n\n")
            f.write('{"app_name": "app"}\n')
        await service.append(_record("v2"))

        records = await service.read()

        assert [r.release_tag for r in records] == ["v2", "v1"]
