"""Storage module for persisting grade records."""

from .grade_store import GradeStore, GradeVersionConflictError

__all__ = [
    "GradeStore",
    "GradeVersionConflictError",
]
