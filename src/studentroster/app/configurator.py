"""
Application Configurator

Builds the store, repository and projection from a RosterConfig in the right
order. Every object is constructed here and passed down explicitly.
"""

import logging
from typing import Optional

from ..config import PersistenceConfig, RosterConfig, configure_logging
from ..persistence import MemoryStore, RecordStore, SQLStore
from .projection import StudentProjection
from .repository import StudentRepository

logger = logging.getLogger(__name__)


def create_store(config: PersistenceConfig) -> RecordStore:
    """
    Create the record store named by the persistence configuration.

    Raises:
        ValueError: If the backend is unknown
    """
    if config.backend == "memory":
        return MemoryStore(retry_delay=config.retry_delay)
    if config.backend == "sql":
        return SQLStore(
            database_url=config.database_url,
            echo=config.echo,
            retry_delay=config.retry_delay,
        )
    raise ValueError(f"Unknown persistence backend: {config.backend!r}")


def configure_roster(config: Optional[RosterConfig] = None) -> StudentProjection:
    """
    Configure logging and assemble an unstarted projection.

    The projection owns the store it is built on and closes it on exit.

    Example:
        ```python
        async with configure_roster(RosterConfig.for_environment(Environment.TESTING)) as roster:
            await roster.add_record("Ann", "Math")
        ```
    """
    config = config or RosterConfig.from_environment()
    configure_logging(config.logging)

    store = create_store(config.persistence)
    logger.info(
        "Roster configured: environment=%s backend=%s",
        config.environment.value, config.persistence.backend
    )
    return StudentProjection(StudentRepository(store), close_repository=True)
