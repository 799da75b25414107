"""
Shared fixtures for the StudentRoster test suite.
"""

import asyncio
from typing import Iterable, List, Optional, Tuple

import pytest
import pytest_asyncio

from studentroster import (
    MemoryStore, NotFoundError, SQLStore, StorageError, StudentProjection, StudentRecord,
    StudentRepository,
)


class ScriptedRepository:
    """
    Repository double whose snapshots are pushed by the test.

    Mutations are recorded instead of stored, so the projection only sees
    what the test pushes.
    """

    def __init__(self, initial: Iterable[StudentRecord] = ()):
        self._snapshots: asyncio.Queue = asyncio.Queue()
        self._snapshots.put_nowait(list(initial))
        self.calls: List[Tuple] = []
        self.missing_ids: set = set()
        self.block: Optional[asyncio.Event] = None
        self.error: Optional[Exception] = None
        self.closed = False
        self._next_id = 100

    def push(self, records: Iterable[StudentRecord]) -> None:
        self._snapshots.put_nowait(list(records))

    async def subscribe_all(self):
        while True:
            yield await self._snapshots.get()

    async def _maybe_block(self) -> None:
        if self.block is not None:
            await self.block.wait()
        if self.error is not None:
            raise self.error

    async def insert(self, name: str, course: str) -> StudentRecord:
        self.calls.append(("insert", name, course))
        await self._maybe_block()
        self._next_id += 1
        return StudentRecord(id=self._next_id, name=name, course=course)

    async def update(self, record_id: int, name: str, course: str) -> StudentRecord:
        self.calls.append(("update", record_id, name, course))
        await self._maybe_block()
        if record_id in self.missing_ids:
            raise NotFoundError(record_id)
        return StudentRecord(id=record_id, name=name, course=course)

    async def delete(self, record_id: int) -> bool:
        self.calls.append(("delete", record_id))
        await self._maybe_block()
        return record_id not in self.missing_ids

    async def close(self) -> None:
        self.closed = True


class BrokenRepository(ScriptedRepository):
    """Repository whose subscription fails before the first snapshot."""

    async def subscribe_all(self):
        raise StorageError("students table is unreadable")
        yield


ANN = StudentRecord(id=1, name="Ann", course="Math")
BO = StudentRecord(id=2, name="Bo", course="Art")


@pytest.fixture
def sample_records() -> List[StudentRecord]:
    return [ANN, BO]


@pytest_asyncio.fixture
async def memory_store():
    store = MemoryStore(retry_delay=0.01)
    yield store
    await store.close()


@pytest_asyncio.fixture
async def sql_store():
    store = SQLStore("sqlite://", retry_delay=0.01)
    yield store
    await store.close()


@pytest_asyncio.fixture
async def seeded_projection(memory_store):
    """Started projection over a memory store holding Ann and Bo."""
    await memory_store.insert("Ann", "Math")
    await memory_store.insert("Bo", "Art")
    projection = StudentProjection(StudentRepository(memory_store))
    await projection.start()
    yield projection
    await projection.close()


@pytest_asyncio.fixture
async def scripted(sample_records):
    """Started projection over a ScriptedRepository seeded with Ann and Bo."""
    repository = ScriptedRepository(sample_records)
    projection = StudentProjection(repository)
    await projection.start()
    yield projection, repository
    await projection.close()
