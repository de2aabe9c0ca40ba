"""Path authorization for patch operations."""

from typing import Iterable, List, Optional

from .errors import ForbiddenPathError, InvalidFromPathError, InvalidPathError
from .pointer import parse_pointer

DEFAULT_DISALLOWED_FIELDS = frozenset(
    {
        "/gradeId",
        "/userId",
        "/version",
        "/createdAt",
        "/updatedAt",
    }
)

# Names that reach shared runtime structure in JavaScript clients and
# downstream consumers of the stored document.
DEFAULT_METAPROPERTIES = frozenset({"__proto__", "constructor", "prototype"})


class PatchGuard:
    """Rejects paths that target protected fields or structural metaproperties.

    A disallowed field also protects everything beneath it, so ``/userId``
    blocks ``/userId/anything`` as well.
    """

    def __init__(
        self,
        disallowed_fields: Optional[Iterable[str]] = None,
        metaproperties: Optional[Iterable[str]] = None,
    ):
        self.disallowed_fields = frozenset(
            DEFAULT_DISALLOWED_FIELDS if disallowed_fields is None else disallowed_fields
        )
        self.metaproperties = frozenset(
            DEFAULT_METAPROPERTIES if metaproperties is None else metaproperties
        )
        self._protected = tuple(
            tuple(parse_pointer(f)) for f in sorted(self.disallowed_fields) if f
        )

    def authorize(self, path: str, from_path: Optional[str] = None, op: Optional[str] = None) -> None:
        """Raise unless ``path`` (and ``from_path``) may be used by ``op``.

        Raises:
            InvalidPathError / InvalidFromPathError: malformed pointer
            ForbiddenPathError: protected field or metaproperty segment
        """
        tokens = parse_pointer(path, InvalidPathError)
        self._check_metaproperties(tokens, path)

        from_tokens = None
        if from_path is not None:
            from_tokens = parse_pointer(from_path, InvalidFromPathError)
            self._check_metaproperties(from_tokens, from_path)

        if self._is_protected(tokens):
            raise ForbiddenPathError(f"Path not allowed: {path}", path=path)
        if op == "move" and from_tokens is not None and self._is_protected(from_tokens):
            raise ForbiddenPathError(f"Path not allowed: {from_path}", path=from_path)

    def _check_metaproperties(self, tokens: List[str], pointer: str) -> None:
        for token in tokens:
            if token in self.metaproperties:
                raise ForbiddenPathError(
                    f"Path segment '{token}' is not allowed: {pointer}", path=pointer
                )

    def _is_protected(self, tokens: List[str]) -> bool:
        for protected in self._protected:
            if tuple(tokens[: len(protected)]) == protected:
                return True
        return False
