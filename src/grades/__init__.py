"""Grade (semester/quarter) records and the service that manages them."""

from .grade_service import GradeAccessError, GradeNotFoundError, GradeService, GradeServiceError
from .models import Grade, GradeValidationError

__all__ = [
    "Grade",
    "GradeValidationError",
    "GradeService",
    "GradeServiceError",
    "GradeNotFoundError",
    "GradeAccessError",
]
