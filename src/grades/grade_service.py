"""Grade (semester/quarter) service: ownership checks, patching and persistence."""

import logging
from typing import Any, Dict, List, Optional

from src.patch import PatchEngine, PatchGuard
from src.storage.grade_store import GradeStore

from .models import SUMMARY_FIELDS, Grade, GradeValidationError, strip_bookkeeping, summarize

logger = logging.getLogger(__name__)

# Fields a client may not set when creating a grade
SERVER_FIELDS = ("gradeId", "userId", "version", "createdAt", "updatedAt")


class GradeServiceError(Exception):
    """Base exception for grade service errors."""

    status_code = 500
    code = "GRADE_ERROR"


class GradeNotFoundError(GradeServiceError):
    status_code = 404
    code = "GRADE_NOT_FOUND"

    def __init__(self, grade_id: str):
        self.grade_id = grade_id
        super().__init__(f"Grade not found: {grade_id}")


class GradeAccessError(GradeServiceError):
    status_code = 403
    code = "ACCESS_DENIED"

    def __init__(self, grade_id: str):
        self.grade_id = grade_id
        super().__init__(f"Access denied to grade: {grade_id}")


class GradeService:
    """Owns the grade workflow between the HTTP layer and storage."""

    def __init__(self, store: GradeStore, engine: Optional[PatchEngine] = None):
        self.store = store
        self.engine = engine or PatchEngine()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "GradeService":
        storage = config.get("storage", {})
        patch = config.get("patch", {})
        store = GradeStore(
            table_name=storage.get("table_name", "grades"),
            user_index=storage.get("user_index", "userId-index"),
        )
        guard = PatchGuard(
            disallowed_fields=patch.get("disallowed_fields"),
            metaproperties=patch.get("metaproperties"),
        )
        return cls(store, PatchEngine(guard=guard))

    def create_grade(self, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and store a new grade owned by ``user_id``.

        Raises:
            GradeValidationError: payload does not satisfy the grade schema
        """
        if not isinstance(payload, dict):
            raise GradeValidationError(["grade: must be an object"])

        document = {k: v for k, v in payload.items() if k not in SERVER_FIELDS}
        document["userId"] = user_id
        grade = Grade.from_dict(document)

        stored = self.store.create_grade(grade.to_dict())
        return strip_bookkeeping(stored)

    def list_grades(self, user_id: str, detailed: bool = False) -> List[Dict[str, Any]]:
        if detailed:
            return [strip_bookkeeping(g) for g in self.store.list_grades(user_id)]
        grades = self.store.list_grades(user_id, projection=SUMMARY_FIELDS)
        return [summarize(g) for g in grades]

    def get_grade(self, user_id: str, grade_id: str) -> Dict[str, Any]:
        return strip_bookkeeping(self._fetch_owned(user_id, grade_id))

    def update_grade(self, user_id: str, grade_id: str, operations: List[Any]) -> Dict[str, Any]:
        """Apply patch operations to a grade and persist the result.

        Nothing is written unless every operation succeeds and the patched
        document still satisfies the grade schema.

        Raises:
            GradeNotFoundError / GradeAccessError: lookup or ownership failure
            PatchError: an operation failed
            GradeValidationError: the patched document is invalid
            GradeVersionConflictError: concurrent modification
        """
        current = self._fetch_owned(user_id, grade_id)
        expected_version = int(current.get("version", 0))

        patched = self.engine.apply(current, operations)
        # Only schema fields are persisted; unknown keys added by a patch are dropped.
        document = Grade.from_dict(patched).to_dict()

        stored = self.store.save_grade(document, expected_version)
        logger.info(f"Patched grade {grade_id} with {len(operations)} operations")
        return strip_bookkeeping(stored)

    def delete_grade(self, user_id: str, grade_id: str) -> Dict[str, Any]:
        self._fetch_owned(user_id, grade_id)
        deleted = self.store.delete_grade(grade_id)
        if deleted is None:
            raise GradeNotFoundError(grade_id)
        return strip_bookkeeping(deleted)

    def _fetch_owned(self, user_id: str, grade_id: str) -> Dict[str, Any]:
        grade = self.store.get_grade(grade_id)
        if grade is None:
            raise GradeNotFoundError(grade_id)
        if grade.get("userId") != user_id:
            logger.warning(f"User {user_id} attempted to access grade {grade_id}")
            raise GradeAccessError(grade_id)
        return grade
