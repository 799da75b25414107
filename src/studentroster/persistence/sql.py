"""
StudentRoster Persistence Layer - SQL Backend

🗃️ SQLModel Record Store:
Stores student records in a relational ``students`` table through SQLModel.
Sessions are blocking, so every operation runs in a worker thread and the
event loop is never blocked on database I/O.

Key Features:
- Works with any SQLAlchemy URL (SQLite by default)
- Store-assigned integer ids via an autoincrement primary key
- SQLAlchemy failures surfaced as StorageError
"""

import asyncio
import logging
import threading
from typing import Any, Callable, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, Session, SQLModel, create_engine, select

from ..core.errors import NotFoundError, StorageError
from ..core.record import StudentRecord
from .base import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///students.db"


class StudentRow(SQLModel, table=True):
    """Table model backing StudentRecord"""
    __tablename__ = "students"
    __table_args__ = {'extend_existing': True}

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    course: str

    def to_record(self) -> StudentRecord:
        return StudentRecord(id=self.id, name=self.name, course=self.course)


def create_sql_engine(database_url: str = DEFAULT_DATABASE_URL, echo: bool = False) -> Engine:
    """
    Create an engine suitable for use from worker threads.

    In-memory SQLite databases live in a single connection, so they get a
    StaticPool to keep every thread on the same database.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo)

    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(database_url, echo=echo, **kwargs)


class SQLStore(RecordStore):
    """
    SQL record store using SQLModel.

    The engine is created (or injected) per store instance; nothing is
    shared through module globals.
    """

    def __init__(self,
                 database_url: str = DEFAULT_DATABASE_URL,
                 echo: bool = False,
                 retry_delay: float = 1.0,
                 engine: Optional[Engine] = None):
        super().__init__(retry_delay=retry_delay)
        self.database_url = database_url
        self._owns_engine = engine is None
        self.engine = engine if engine is not None else create_sql_engine(database_url, echo)
        # SQLite connections are not safe for concurrent use across threads
        self._lock = threading.Lock()

        try:
            SQLModel.metadata.create_all(self.engine, tables=[StudentRow.__table__])
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to initialize students table: {e}") from e

        logger.info("SQLStore ready: %s", self.engine.url)

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking session operation in a worker thread."""
        try:
            return await asyncio.to_thread(func, *args)
        except SQLAlchemyError as e:
            raise StorageError(f"{func.__name__.lstrip('_')} failed: {e}") from e

    async def insert(self, name: str, course: str) -> StudentRecord:
        record = await self._run(self._insert, name, course)
        logger.debug("Inserted student %s", record.id)
        self._notify_changed()
        return record

    async def update(self, record_id: int, name: str, course: str) -> StudentRecord:
        record = await self._run(self._update, record_id, name, course)
        logger.debug("Updated student %s", record_id)
        self._notify_changed()
        return record

    async def delete(self, record_id: int) -> bool:
        existed = await self._run(self._delete, record_id)
        if existed:
            logger.debug("Deleted student %s", record_id)
            self._notify_changed()
        return existed

    async def snapshot(self) -> List[StudentRecord]:
        return await self._run(self._snapshot)

    def _insert(self, name: str, course: str) -> StudentRecord:
        with self._lock, Session(self.engine) as session:
            row = StudentRow(name=name, course=course)
            session.add(row)
            session.commit()
            session.refresh(row)
            return row.to_record()

    def _update(self, record_id: int, name: str, course: str) -> StudentRecord:
        with self._lock, Session(self.engine) as session:
            row = session.get(StudentRow, record_id)
            if row is None:
                raise NotFoundError(record_id)
            row.name = name
            row.course = course
            session.add(row)
            session.commit()
            session.refresh(row)
            return row.to_record()

    def _delete(self, record_id: int) -> bool:
        with self._lock, Session(self.engine) as session:
            row = session.get(StudentRow, record_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    def _snapshot(self) -> List[StudentRecord]:
        with self._lock, Session(self.engine) as session:
            rows = session.exec(select(StudentRow).order_by(StudentRow.id)).all()
            return [row.to_record() for row in rows]

    async def _do_close(self) -> None:
        # A worker cancelled mid-commit still holds the lock until it finishes
        await asyncio.to_thread(self._dispose)

    def _dispose(self) -> None:
        with self._lock:
            if self._owns_engine:
                self.engine.dispose()
