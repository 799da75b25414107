"""
StudentRoster Errors

Exception hierarchy shared by the store, repository and projection layers.
"""

from typing import Optional


class RosterError(Exception):
    """Base exception for roster operations"""
    pass


class ValidationError(RosterError):
    """Raised when a record field is empty after trimming"""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"{field} must not be empty")


class NotFoundError(RosterError):
    """Raised when an update targets a record id that does not exist"""

    def __init__(self, record_id: int):
        self.record_id = record_id
        super().__init__(f"Student record {record_id} not found")


class StorageError(RosterError):
    """Raised when the underlying store fails"""
    pass


__all__ = ["RosterError", "ValidationError", "NotFoundError", "StorageError"]
