"""Patch operation parsing and the semantics of each verb."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from decimal import Decimal
from numbers import Number
from typing import Any, Dict

from .errors import (
    InvalidFromPathError,
    InvalidOperationError,
    InvalidPathError,
    PatchError,
    PatchTestFailedError,
)
from .pointer import Location, get_value, parse_pointer, resolve

VALID_OPS = ("add", "replace", "remove", "copy", "move", "test")
VALUE_OPS = ("add", "replace", "test")
FROM_OPS = ("copy", "move")


@dataclass(frozen=True)
class PatchOperation:
    op: str
    path: str
    from_path: str | None = None
    value: Any = None

    @classmethod
    def from_dict(cls, raw: Any) -> PatchOperation:
        """Build an operation from its wire shape ``{op, path, from?, value?}``."""
        if not isinstance(raw, dict):
            raise InvalidOperationError("Operation must be an object")

        op = raw.get("op")
        path = raw.get("path")
        if op not in VALID_OPS:
            raise InvalidOperationError(
                f"Unsupported op: {op!r}", path=path if isinstance(path, str) else None
            )
        if not isinstance(path, str):
            raise InvalidOperationError(f"Operation '{op}' requires a string path")

        from_path = None
        if op in FROM_OPS:
            if "from" not in raw or raw["from"] is None:
                raise InvalidOperationError(f"Operation '{op}' requires 'from'", path=path)
            from_path = raw["from"]
            if not isinstance(from_path, str):
                raise InvalidFromPathError(f"Operation '{op}' requires a string 'from'", path=path)

        if op in VALUE_OPS and "value" not in raw:
            raise InvalidOperationError(f"Operation '{op}' requires 'value'", path=path)

        # The caller's payload must never alias into the patched document.
        return cls(op=op, path=path, from_path=from_path, value=copy.deepcopy(raw.get("value")))


def _as_decimal(number: Any) -> Decimal:
    return number if isinstance(number, Decimal) else Decimal(str(number))


def values_equal(left: Any, right: Any) -> bool:
    """Structural equality over JSON-like values.

    Booleans never equal numbers, and numbers compare by value regardless
    of int/float/Decimal representation.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, Number) and isinstance(right, Number):
        return _as_decimal(left) == _as_decimal(right)
    if isinstance(left, dict) and isinstance(right, dict):
        if left.keys() != right.keys():
            return False
        return all(values_equal(left[k], right[k]) for k in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right))
    if type(left) is not type(right):
        return False
    return left == right


class PatchOperationExecutor:
    """Applies a single parsed operation to a document in place."""

    def execute(self, document: Any, operation: PatchOperation) -> None:
        handler = getattr(self, f"_apply_{operation.op}", None)
        if handler is None:
            raise InvalidOperationError(f"Unsupported op: {operation.op!r}", path=operation.path)
        handler(document, operation)

    # === verbs ===

    def _apply_add(self, document: Any, operation: PatchOperation) -> None:
        self._reject_root(operation)
        location = resolve(document, operation.path, create_missing=True)
        self._insert(location, operation.value)

    def _apply_replace(self, document: Any, operation: PatchOperation) -> None:
        self._reject_root(operation)
        location = resolve(document, operation.path)
        if not location.exists():
            raise InvalidPathError(f"Path does not exist: {operation.path}", path=operation.path)
        if location.is_list():
            location.container[location.index()] = operation.value
        else:
            location.container[location.key] = operation.value

    def _apply_remove(self, document: Any, operation: PatchOperation) -> None:
        self._reject_root(operation)
        self._pop(resolve(document, operation.path))

    def _apply_copy(self, document: Any, operation: PatchOperation) -> None:
        self._reject_root(operation)
        value = get_value(document, operation.from_path, error_cls=InvalidFromPathError)
        location = resolve(document, operation.path)
        self._insert(location, copy.deepcopy(value))

    def _apply_move(self, document: Any, operation: PatchOperation) -> None:
        self._reject_root(operation)
        from_tokens = parse_pointer(operation.from_path, InvalidFromPathError)
        if not from_tokens:
            raise InvalidFromPathError("Cannot move the document root", path=operation.from_path)

        source = resolve(document, operation.from_path, error_cls=InvalidFromPathError)
        if not source.exists():
            raise InvalidFromPathError(
                f"Path does not exist: {operation.from_path}", path=operation.from_path
            )

        path_tokens = parse_pointer(operation.path)
        if path_tokens == from_tokens:
            return
        if path_tokens[: len(from_tokens)] == from_tokens:
            raise InvalidPathError(
                f"Cannot move {operation.from_path} into its own child {operation.path}",
                path=operation.path,
            )

        index = source.index() if source.is_list() else None
        value = self._pop(source)
        try:
            self._insert(resolve(document, operation.path), value)
        except PatchError:
            if index is None:
                source.container[source.key] = value
            else:
                source.container.insert(index, value)
            raise

    def _apply_test(self, document: Any, operation: PatchOperation) -> None:
        try:
            actual = get_value(document, operation.path)
        except InvalidPathError as e:
            raise PatchTestFailedError(str(e), path=operation.path) from e

        if not values_equal(actual, operation.value):
            raise PatchTestFailedError(
                f"Value at {operation.path or '/'} does not match", path=operation.path
            )

    # === helpers ===

    @staticmethod
    def _reject_root(operation: PatchOperation) -> None:
        if operation.path == "":
            raise InvalidPathError(
                f"Operation '{operation.op}' cannot target the document root", path=""
            )

    @staticmethod
    def _insert(location: Location, value: Any) -> None:
        if location.is_list():
            index = location.index(allow_end=True)
            location.materialize()
            location.container.insert(index, value)
        else:
            location.materialize()
            location.container[location.key] = value

    @staticmethod
    def _pop(location: Location) -> Any:
        if not location.exists():
            raise location.error_cls(
                f"Path does not exist: {location.pointer}", path=location.pointer
            )
        if location.is_list():
            return location.container.pop(location.index())
        return location.container.pop(location.key)


def describe(operation: PatchOperation) -> Dict[str, Any]:
    """Compact log representation of an operation."""
    entry: Dict[str, Any] = {"op": operation.op, "path": operation.path}
    if operation.from_path is not None:
        entry["from"] = operation.from_path
    return entry
