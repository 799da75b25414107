"""
Student Repository

Thin pass-through between the projection core and a record store. The store
is injected at construction; the repository adds nothing but a stable seam.
"""

from typing import AsyncIterator, List

from ..core.record import StudentRecord
from ..persistence.base import RecordStore


class StudentRepository:
    """Exposes the store's live collection and its mutations."""

    def __init__(self, store: RecordStore):
        self.store = store

    def subscribe_all(self) -> AsyncIterator[List[StudentRecord]]:
        """Live stream of full snapshots, current contents first."""
        return self.store.subscribe_all()

    async def insert(self, name: str, course: str) -> StudentRecord:
        return await self.store.insert(name, course)

    async def update(self, record_id: int, name: str, course: str) -> StudentRecord:
        return await self.store.update(record_id, name, course)

    async def delete(self, record_id: int) -> bool:
        return await self.store.delete(record_id)

    async def close(self) -> None:
        await self.store.close()
