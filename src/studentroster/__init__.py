"""
StudentRoster - Reactive Student Record Management

A persisted student table exposed through a live, search-filtered projection.
Record stores feed full snapshots to a repository; the projection combines
them with the current search term and republishes the filtered view whenever
either changes.
"""

from .core import (
    RosterError, ValidationError, NotFoundError, StorageError,
    StudentRecord, Signal,
)
from .persistence import RecordStore, MemoryStore, SQLStore
from .app import (
    StudentRepository, StudentProjection, ProjectedView, project,
    create_store, configure_roster,
)
from .config import Environment, RosterConfig, PersistenceConfig, LoggingConfig, configure_logging

__version__ = "0.1.0"

__all__ = [
    # Core
    'StudentRecord',
    'Signal',
    'RosterError',
    'ValidationError',
    'NotFoundError',
    'StorageError',

    # Persistence
    'RecordStore',
    'MemoryStore',
    'SQLStore',

    # Application
    'StudentRepository',
    'StudentProjection',
    'ProjectedView',
    'project',
    'create_store',
    'configure_roster',

    # Configuration
    'Environment',
    'RosterConfig',
    'PersistenceConfig',
    'LoggingConfig',
    'configure_logging',
]
