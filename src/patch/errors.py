"""Exceptions raised by the structured patch engine."""

from enum import Enum
from typing import Optional


class PatchErrorKind(Enum):
    """Machine-readable failure categories surfaced to API callers."""

    INVALID_PATH = "INVALID_PATH"
    INVALID_FROM_PATH = "INVALID_FROM_PATH"
    INVALID_OPERATION = "INVALID_OPERATION"
    TEST_FAILED = "TEST_FAILED"
    ACCESS_DENIED = "ACCESS_DENIED"


class PatchError(Exception):
    """Base exception for patch failures.

    The engine fills in ``operation_index`` and ``op`` when the error escapes
    a specific operation so callers can report exactly which one failed.
    """

    kind = PatchErrorKind.INVALID_OPERATION

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        operation_index: Optional[int] = None,
        op: Optional[str] = None,
    ):
        self.path = path
        self.operation_index = operation_index
        self.op = op
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "code": self.kind.value,
            "error": str(self),
            "path": self.path,
            "operationIndex": self.operation_index,
            "op": self.op,
        }


class InvalidPathError(PatchError):
    """Raised when a target path is malformed or cannot be resolved."""

    kind = PatchErrorKind.INVALID_PATH


class InvalidFromPathError(PatchError):
    """Raised when the ``from`` path of a copy/move cannot be resolved."""

    kind = PatchErrorKind.INVALID_FROM_PATH


class InvalidOperationError(PatchError):
    """Raised for unknown verbs or operations missing required members."""

    kind = PatchErrorKind.INVALID_OPERATION


class PatchTestFailedError(PatchError):
    """Raised when a ``test`` operation's value does not match."""

    kind = PatchErrorKind.TEST_FAILED


class ForbiddenPathError(PatchError):
    """Raised when a path targets a protected field or a metaproperty."""

    kind = PatchErrorKind.ACCESS_DENIED
