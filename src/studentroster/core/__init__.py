"""
StudentRoster Core Module

Domain layer: the record model, its errors and the signal primitive.
No persistence or application concerns live here.
"""

from .errors import RosterError, ValidationError, NotFoundError, StorageError
from .record import StudentRecord, clean_fields
from .signals import Signal

__all__ = [
    "RosterError",
    "ValidationError",
    "NotFoundError",
    "StorageError",
    "StudentRecord",
    "clean_fields",
    "Signal",
]
