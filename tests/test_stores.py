"""
Tests for the record store backends and their live subscription.
"""

import asyncio
import logging
from contextlib import aclosing

import pytest

from studentroster import MemoryStore, NotFoundError, SQLStore, StorageError, StudentRecord


@pytest.fixture(params=["memory", "sql"])
def store_factory(request):
    def factory():
        if request.param == "memory":
            return MemoryStore(retry_delay=0.01)
        return SQLStore("sqlite://", retry_delay=0.01)
    return factory


@pytest.mark.asyncio
async def test_insert_assigns_increasing_ids(store_factory):
    store = store_factory()
    try:
        ann = await store.insert("Ann", "Math")
        bo = await store.insert("Bo", "Art")
        assert ann.id < bo.id
        assert await store.snapshot() == [ann, bo]
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_update_replaces_fields_in_place(store_factory):
    store = store_factory()
    try:
        ann = await store.insert("Ann", "Math")
        bo = await store.insert("Bo", "Art")
        updated = await store.update(ann.id, "Anna", "Physics")

        assert updated == StudentRecord(id=ann.id, name="Anna", course="Physics")
        assert await store.snapshot() == [updated, bo]
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_update_missing_id_raises_not_found(store_factory):
    store = store_factory()
    try:
        with pytest.raises(NotFoundError) as exc_info:
            await store.update(42, "Ghost", "None")
        assert exc_info.value.record_id == 42
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_delete_reports_whether_row_existed(store_factory):
    store = store_factory()
    try:
        ann = await store.insert("Ann", "Math")
        assert await store.delete(ann.id) is True
        assert await store.delete(ann.id) is False
        assert await store.snapshot() == []
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_memory_ids_are_not_reused_after_delete(memory_store):
    first = await memory_store.insert("Ann", "Math")
    second = await memory_store.insert("Bo", "Art")
    await memory_store.delete(second.id)
    third = await memory_store.insert("Cleo", "Biology")
    assert third.id not in (first.id, second.id)


@pytest.mark.asyncio
async def test_subscription_replays_then_follows_changes(store_factory):
    store = store_factory()
    try:
        ann = await store.insert("Ann", "Math")
        async with aclosing(store.subscribe_all()) as snapshots:
            assert await anext(snapshots) == [ann]

            bo = await store.insert("Bo", "Art")
            assert await asyncio.wait_for(anext(snapshots), 1) == [ann, bo]

            await store.delete(ann.id)
            assert await asyncio.wait_for(anext(snapshots), 1) == [bo]
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_subscription_ends_when_store_closes(store_factory):
    store = store_factory()
    snapshots = store.subscribe_all()
    assert await anext(snapshots) == []

    await store.close()
    with pytest.raises(StopAsyncIteration):
        await asyncio.wait_for(anext(snapshots), 1)


@pytest.mark.asyncio
async def test_absent_delete_does_not_notify(memory_store):
    async with aclosing(memory_store.subscribe_all()) as snapshots:
        await anext(snapshots)
        await memory_store.delete(99)
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(anext(snapshots), 0.05)


class FlakyStore(MemoryStore):
    """Memory store whose first reads fail."""

    def __init__(self, failures: int):
        super().__init__(retry_delay=0.01)
        self.failures = failures

    async def snapshot(self):
        if self.failures:
            self.failures -= 1
            raise StorageError("disk busy")
        return await super().snapshot()


@pytest.mark.asyncio
async def test_subscription_retries_failed_reads(caplog):
    store = FlakyStore(failures=2)
    try:
        await store.insert("Ann", "Math")
        with caplog.at_level(logging.WARNING, logger="studentroster.persistence.base"):
            async with aclosing(store.subscribe_all()) as snapshots:
                first = await asyncio.wait_for(anext(snapshots), 1)

        assert [record.name for record in first] == ["Ann"]
        assert store.failures == 0
        assert "retrying" in caplog.text
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_sql_errors_are_wrapped(sql_store):
    with sql_store.engine.begin() as connection:
        connection.exec_driver_sql("DROP TABLE students")

    with pytest.raises(StorageError) as exc_info:
        await sql_store.insert("Ann", "Math")
    assert exc_info.value.__cause__ is not None


@pytest.mark.asyncio
async def test_sql_store_persists_across_instances(tmp_path):
    url = f"sqlite:///{tmp_path / 'students.db'}"

    store = SQLStore(url)
    ann = await store.insert("Ann", "Math")
    await store.close()

    reopened = SQLStore(url)
    try:
        assert await reopened.snapshot() == [ann]
    finally:
        await reopened.close()


@pytest.mark.asyncio
async def test_subscription_coalesces_queued_changes(store_factory):
    store = store_factory()
    try:
        async with aclosing(store.subscribe_all()) as snapshots:
            assert await anext(snapshots) == []

            ann = await store.insert("Ann", "Math")
            bo = await store.insert("Bo", "Art")
            cleo = await store.insert("Cleo", "Biology")

            assert await asyncio.wait_for(anext(snapshots), 1) == [ann, bo, cleo]
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(anext(snapshots), 0.05)
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_sql_close_waits_for_running_session(sql_store):
    sql_store._lock.acquire()
    try:
        closing = asyncio.create_task(sql_store.close())
        await asyncio.sleep(0.05)
        assert not closing.done()
    finally:
        sql_store._lock.release()

    await asyncio.wait_for(closing, 1)
    assert sql_store.closed
