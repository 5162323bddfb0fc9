# release_deployer/services/history_service.py
"""Deployment history service"""

import json
import logging
from pathlib import Path
from typing import List, Optional

import aiofiles

from ..models.deployment import DeploymentRecord

logger = logging.getLogger(__name__)


class HistoryService:
    """Appends and reads deployment records as JSON lines"""

    def __init__(self, history_path: Path):
        self.history_path = Path(history_path)

    async def append(self, record: DeploymentRecord) -> None:
        """
        Append one record

        Args:
            record: Record to write

        Raises:
            OSError: If the file cannot be written
        """
        self.history_path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(record.to_dict(), ensure_ascii=False)

        async with aiofiles.open(self.history_path, 'a', encoding='utf-8') as f:
            await f.write(line + "\n")

        logger.debug("Recorded deployment of %s in %s", record.release_tag, self.history_path)

    async def read(self, limit: Optional[int] = None) -> List[DeploymentRecord]:
        """
        Read records, newest first

        Args:
            limit: Maximum number of records

        Returns:
            List of records
        """
        if not self.history_path.exists():
            return []

        records = []
        async with aiofiles.open(self.history_path, 'r', encoding='utf-8') as f:
            line_number = 0
            async for line in f:
                line_number += 1
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(DeploymentRecord.from_dict(json.loads(line)))
                except (ValueError, KeyError, TypeError) as e:
                    logger.warning("Skipping malformed history line %d: %s", line_number, e)

        records.reverse()
        if limit is not None:
            records = records[:limit]
        return records
