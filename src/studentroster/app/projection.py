"""
Student Projection - Reactive View Model

🔄 Search-Filtered Live Roster:
The projection keeps two inputs, the latest full snapshot from the store and
the user's search term, and republishes a filtered view every time either of
them changes. Mutations are validated locally and then handed to the
repository as tasks; their effect arrives back through the store
subscription like any other change.

Key Features:
- Replay-latest streams for the view and the search term
- One recomputation and one published view per input change
- Snapshots applied strictly in delivery order
- Mutation tasks owned by the projection and cancelled on close
"""

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import (
    AsyncIterator, Callable, Coroutine, Any, Iterator, Optional, Sequence, Set, Tuple
)

from ..core.record import StudentRecord, clean_fields
from ..core.signals import Signal
from .repository import StudentRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectedView:
    """Records matching the active search term, in store order."""
    records: Tuple[StudentRecord, ...] = ()
    search_term: str = ""
    total: int = 0

    @property
    def count(self) -> int:
        return len(self.records)

    @property
    def is_filtered(self) -> bool:
        return bool(self.search_term.strip())

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[StudentRecord]:
        return iter(self.records)


def project(records: Sequence[StudentRecord], term: str) -> Tuple[StudentRecord, ...]:
    """
    Filter records by a search term.

    A blank term passes the collection through unchanged. Otherwise a record
    is kept when its name or course contains the term, ignoring case. The
    term itself is not trimmed, so inner leading or trailing spaces count.

    Args:
        records: Full collection in store order
        term: Search text

    Returns:
        Matching records in their original order
    """
    if not term.strip():
        return tuple(records)
    return tuple(record for record in records if record.matches(term))


class StudentProjection:
    """
    Live, search-filtered projection of the student table.

    Usage:
        ```python
        async with StudentProjection(repository) as roster:
            roster.set_search_term("math")
            await roster.add_record("Ann", "Math")
            async for view in roster.observe_projected_view():
                render(view)
        ```

    Not safe for use from several threads; all calls belong to the event
    loop that started it.
    """

    def __init__(self, repository: StudentRepository, close_repository: bool = False):
        """
        Initialize the projection.

        Args:
            repository: Source of snapshots and target of mutations
            close_repository: Also close the repository when the projection closes
        """
        self.repository = repository
        self.close_repository = close_repository

        self._collection: Tuple[StudentRecord, ...] = ()
        self._search_term: Signal[str] = Signal("", name="search_term")
        self._view: Signal[ProjectedView] = Signal(ProjectedView(), name="projected_view")
        # Term changes drive the view; snapshots call _recompute directly
        self._search_term.subscribe(lambda term: self._recompute(), replay=False)

        self._subscription: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()
        self._loaded = asyncio.Event()
        self._closed = False

    # Lifecycle

    async def start(self) -> 'StudentProjection':
        """
        Subscribe to the repository and wait for the first snapshot.

        Calling start on a running projection does nothing.

        Raises:
            RuntimeError: If the projection has been closed
        """
        if self._closed:
            raise RuntimeError("StudentProjection is closed")

        if self._subscription is None:
            self._subscription = asyncio.create_task(
                self._consume(), name="student-projection-subscription"
            )
            logger.info("StudentProjection started")

        await self._loaded.wait()
        if self._subscription.done() and not self._subscription.cancelled():
            # Surface a subscription that failed before delivering anything
            self._subscription.result()
        return self

    async def close(self) -> None:
        """Cancel the subscription and in-flight mutations, then end all streams."""
        if self._closed:
            return
        self._closed = True

        tasks = list(self._pending)
        if self._subscription is not None:
            tasks.append(self._subscription)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._pending.clear()

        self._search_term.close()
        self._view.close()

        if self.close_repository:
            await self.repository.close()

        logger.info("StudentProjection closed (%d task(s) cancelled)", len(tasks))

    async def __aenter__(self) -> 'StudentProjection':
        return await self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def loaded(self) -> bool:
        """Whether at least one snapshot has been received."""
        return self._loaded.is_set()

    # Inputs and derivation

    async def _consume(self) -> None:
        try:
            async for snapshot in self.repository.subscribe_all():
                self._ingest_snapshot(snapshot)
                self._loaded.set()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Student subscription failed")
            raise
        finally:
            self._loaded.set()

    def _ingest_snapshot(self, snapshot: Sequence[StudentRecord]) -> None:
        self._collection = tuple(snapshot)
        logger.debug("Snapshot received: %d record(s)", len(self._collection))
        self._recompute()

    def _recompute(self) -> None:
        term = self._search_term.value
        self._view.set(ProjectedView(
            records=project(self._collection, term),
            search_term=term,
            total=len(self._collection),
        ))

    # Presentation contract

    @property
    def projected_view(self) -> ProjectedView:
        return self._view.value

    @property
    def search_term(self) -> str:
        return self._search_term.value

    @property
    def full_collection(self) -> Tuple[StudentRecord, ...]:
        return self._collection

    def observe_projected_view(self) -> AsyncIterator[ProjectedView]:
        """Current view first, then every recomputed view, until close."""
        return self._view.observe()

    def observe_search_term(self) -> AsyncIterator[str]:
        """Current search term first, then every change, until close."""
        return self._search_term.observe()

    def get_record(self, record_id: int) -> Optional[StudentRecord]:
        """Look up a record in the latest snapshot, ignoring the search term."""
        for record in self._collection:
            if record.id == record_id:
                return record
        return None

    async def wait_for_view(self,
                            predicate: Callable[[ProjectedView], bool],
                            timeout: Optional[float] = None) -> ProjectedView:
        """
        Wait for the first published view that satisfies a predicate.

        The current view is checked first.

        Args:
            predicate: Test applied to each view
            timeout: Seconds to wait before raising asyncio.TimeoutError

        Raises:
            RuntimeError: If the projection closes before a match
        """
        async def _wait() -> ProjectedView:
            async with aclosing(self._view.observe()) as views:
                async for view in views:
                    if predicate(view):
                        return view
            raise RuntimeError("StudentProjection closed while waiting for a view")

        return await asyncio.wait_for(_wait(), timeout)

    def set_search_term(self, text: str) -> None:
        """
        Replace the search term and republish the view.

        Setting the term it already has publishes nothing.
        """
        if text == self._search_term.value:
            return
        self._search_term.set(text)

    def clear_search_term(self) -> None:
        self.set_search_term("")

    # Mutations

    def add_record(self, name: str, course: str) -> asyncio.Task:
        """
        Validate and insert a new student.

        The collection is not touched here; the new record shows up when the
        store subscription delivers the next snapshot.

        Returns:
            Task resolving to the stored record

        Raises:
            ValidationError: If name or course is blank (no store call is made)
        """
        name, course = clean_fields(name, course)
        return self._launch(self.repository.insert(name, course), "add")

    def update_record(self, record_id: int, name: str, course: str) -> asyncio.Task:
        """
        Validate and update an existing student.

        Returns:
            Task resolving to the updated record; it fails with NotFoundError
            if the id no longer exists

        Raises:
            ValidationError: If name or course is blank (no store call is made)
        """
        name, course = clean_fields(name, course)
        return self._launch(self.repository.update(record_id, name, course), f"update:{record_id}")

    def delete_record(self, record_id: int) -> asyncio.Task:
        """
        Delete a student.

        Deleting an id that is already gone is a no-op.

        Returns:
            Task resolving to True if a record was removed, False otherwise
        """
        return self._launch(self.repository.delete(record_id), f"delete:{record_id}")

    def _launch(self, coro: Coroutine[Any, Any, Any], action: str) -> asyncio.Task:
        if self._closed:
            coro.close()
            raise RuntimeError("StudentProjection is closed")

        task = asyncio.create_task(coro, name=f"student-{action}")
        self._pending.add(task)
        task.add_done_callback(self._mutation_done)
        return task

    def _mutation_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning("Mutation %s failed: %s", task.get_name(), error)

    @property
    def pending_mutations(self) -> int:
        return len(self._pending)
