"""
StudentRoster Application Layer

Repository, reactive projection and wiring.
"""

from .repository import StudentRepository
from .projection import StudentProjection, ProjectedView, project
from .configurator import create_store, configure_roster

__all__ = [
    "StudentRepository",
    "StudentProjection",
    "ProjectedView",
    "project",
    "create_store",
    "configure_roster",
]
