"""Structured patch engine for nested grade documents."""

from .engine import PatchEngine, apply_patch
from .errors import (
    ForbiddenPathError,
    InvalidFromPathError,
    InvalidOperationError,
    InvalidPathError,
    PatchError,
    PatchErrorKind,
    PatchTestFailedError,
)
from .guard import PatchGuard
from .operations import PatchOperation, PatchOperationExecutor, values_equal

__all__ = [
    "PatchEngine",
    "apply_patch",
    "PatchGuard",
    "PatchOperation",
    "PatchOperationExecutor",
    "values_equal",
    "PatchError",
    "PatchErrorKind",
    "InvalidPathError",
    "InvalidFromPathError",
    "InvalidOperationError",
    "PatchTestFailedError",
    "ForbiddenPathError",
]
