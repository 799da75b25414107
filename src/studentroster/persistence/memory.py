"""
StudentRoster Persistence Layer - Memory Backend

In-memory record store for development and testing.
Data is lost when the process exits.
"""

import logging
from typing import Dict, List

from ..core.errors import NotFoundError
from ..core.record import StudentRecord
from .base import RecordStore

logger = logging.getLogger(__name__)


class MemoryStore(RecordStore):
    """
    In-memory record store.

    Rows keep insertion order; an update replaces a row in place. Ids start
    at 1 and are never reused, even after a delete.
    """

    def __init__(self, retry_delay: float = 1.0):
        super().__init__(retry_delay=retry_delay)
        self._rows: Dict[int, StudentRecord] = {}
        self._next_id = 1

    async def insert(self, name: str, course: str) -> StudentRecord:
        record = StudentRecord(id=self._next_id, name=name, course=course)
        self._next_id += 1
        self._rows[record.id] = record
        logger.debug("Inserted student %s", record.id)
        self._notify_changed()
        return record

    async def update(self, record_id: int, name: str, course: str) -> StudentRecord:
        if record_id not in self._rows:
            raise NotFoundError(record_id)
        record = StudentRecord(id=record_id, name=name, course=course)
        self._rows[record_id] = record
        logger.debug("Updated student %s", record_id)
        self._notify_changed()
        return record

    async def delete(self, record_id: int) -> bool:
        existed = self._rows.pop(record_id, None) is not None
        if existed:
            logger.debug("Deleted student %s", record_id)
            self._notify_changed()
        return existed

    async def snapshot(self) -> List[StudentRecord]:
        return list(self._rows.values())

    def __len__(self) -> int:
        return len(self._rows)
