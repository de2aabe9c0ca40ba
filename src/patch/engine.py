"""Ordered, fail-fast application of patch operation lists."""

import copy
import logging
from typing import Any, List, Optional

from .errors import InvalidOperationError, PatchError
from .guard import PatchGuard
from .operations import PatchOperation, PatchOperationExecutor, describe

logger = logging.getLogger(__name__)


class PatchEngine:
    """Applies a list of patch operations to a private copy of a document.

    Operations run strictly in order. Each one is parsed, authorized by the
    guard, resolved and executed; the first failure aborts the batch and
    surfaces as a ``PatchError`` carrying the failing operation's index, verb
    and path. The caller's document is never touched, so nothing from an
    aborted batch can leak into what the caller persists.
    """

    def __init__(
        self,
        guard: Optional[PatchGuard] = None,
        executor: Optional[PatchOperationExecutor] = None,
    ):
        self.guard = guard or PatchGuard()
        self.executor = executor or PatchOperationExecutor()

    def apply(self, document: Any, operations: List[Any]) -> Any:
        """Return a patched copy of ``document``.

        Args:
            document: Nested dict/list snapshot to patch
            operations: Wire-shaped operations ``{op, path, from?, value?}``

        Returns:
            The fully patched copy

        Raises:
            PatchError: on the first invalid, forbidden or failing operation
        """
        if not isinstance(operations, list):
            raise InvalidOperationError("Patch must be a list of operations")

        working = copy.deepcopy(document)

        for index, raw in enumerate(operations):
            try:
                operation = PatchOperation.from_dict(raw)
                self.guard.authorize(operation.path, operation.from_path, operation.op)
                self.executor.execute(working, operation)
            except PatchError as e:
                e.operation_index = index
                if e.op is None and isinstance(raw, dict):
                    e.op = raw.get("op") if isinstance(raw.get("op"), str) else None
                logger.warning(
                    f"Patch aborted at operation {index} ({e.op} {e.path}): "
                    f"{e.kind.value} {str(e)}"
                )
                raise

            logger.debug(f"Applied patch operation {index}: {describe(operation)}")

        logger.info(f"Applied {len(operations)} patch operations")
        return working


def apply_patch(document: Any, operations: List[Any], guard: Optional[PatchGuard] = None) -> Any:
    """Convenience wrapper around ``PatchEngine(guard).apply``."""
    return PatchEngine(guard=guard).apply(document, operations)
