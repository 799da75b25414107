"""
StudentRoster Persistence Layer - Base Classes

This module provides the abstract interface every record store implements,
plus the live subscription shared by all of them.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Optional

from ..core.errors import StorageError
from ..core.record import StudentRecord
from ..core.signals import Signal

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """
    Abstract base class for student record stores.

    Implementations provide the four storage operations and call
    ``_notify_changed`` after every successful mutation. The base class turns
    those notifications into a stream of full snapshots.
    """

    def __init__(self, retry_delay: float = 1.0):
        """
        Initialize the store.

        Args:
            retry_delay: Seconds to wait before re-reading after a failed snapshot
        """
        self.retry_delay = retry_delay
        self._changes: Signal[int] = Signal(0, name=f"{self.__class__.__name__}.changes")

    @abstractmethod
    async def insert(self, name: str, course: str) -> StudentRecord:
        """
        Insert a new record.

        Args:
            name: Trimmed student name
            course: Trimmed course name

        Returns:
            The stored record with its assigned id
        """
        pass

    @abstractmethod
    async def update(self, record_id: int, name: str, course: str) -> StudentRecord:
        """
        Replace name and course of an existing record.

        Returns:
            The updated record

        Raises:
            NotFoundError: If no record has this id
        """
        pass

    @abstractmethod
    async def delete(self, record_id: int) -> bool:
        """
        Delete a record by id.

        Returns:
            True if a record was removed, False if the id was absent
        """
        pass

    @abstractmethod
    async def snapshot(self) -> List[StudentRecord]:
        """Read all records in store order."""
        pass

    @property
    def closed(self) -> bool:
        return self._changes.closed

    def _notify_changed(self) -> None:
        """Signal subscribers that the table contents changed."""
        if not self._changes.closed:
            self._changes.set(self._changes.value + 1)

    async def subscribe_all(self) -> AsyncIterator[List[StudentRecord]]:
        """
        Stream full snapshots of the table.

        The current contents are yielded first, then a fresh snapshot after
        changes. Changes that pile up while a snapshot is being read or
        consumed are coalesced into one read, and a snapshot equal to the
        previous one is not yielded again. Snapshots are read after the change
        that triggered them, so a later snapshot is never older than an
        earlier one. A failed read is retried; the stream only ends when the
        store closes.
        """
        last: Optional[List[StudentRecord]] = None
        async for _ in self._changes.observe(conflate=True):
            records = await self._read_snapshot()
            if records is None:
                return
            if records == last:
                continue
            last = records
            yield records

    async def _read_snapshot(self) -> Optional[List[StudentRecord]]:
        while not self.closed:
            try:
                return await self.snapshot()
            except StorageError as e:
                logger.warning(
                    "%s: snapshot read failed, retrying in %ss: %s",
                    self.__class__.__name__, self.retry_delay, e
                )
                await asyncio.sleep(self.retry_delay)
        return None

    async def close(self) -> None:
        """End all subscriptions and release backend resources."""
        if self.closed:
            return
        self._changes.close()
        await self._do_close()
        logger.info("%s closed", self.__class__.__name__)

    async def _do_close(self) -> None:
        """Override in subclasses to release connections"""
        pass
