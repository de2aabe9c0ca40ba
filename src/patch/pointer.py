"""Slash-delimited pointer parsing and guarded traversal of nested documents.

Pointers follow RFC 6901: ``""`` is the whole document, ``/a/b/0`` walks
mapping key ``a``, then ``b``, then list index ``0``. ``~1`` and ``~0`` in a
segment decode to ``/`` and ``~``.
"""

import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Type

from .errors import InvalidPathError, PatchError

APPEND_TOKEN = "-"

_INDEX_RE = re.compile(r"0|[1-9][0-9]*")
_BAD_ESCAPE_RE = re.compile(r"~(?![01])")


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def parse_pointer(pointer: Any, error_cls: Type[PatchError] = InvalidPathError) -> List[str]:
    """Split a pointer into its unescaped segments.

    Raises ``error_cls`` if the pointer is not a string, does not start with
    ``/`` (other than the empty root pointer) or carries a dangling ``~``.
    """
    if not isinstance(pointer, str):
        raise error_cls(f"Pointer must be a string, got {type(pointer).__name__}")
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        raise error_cls(f"Invalid JSON Pointer: {pointer}", path=pointer)

    tokens = pointer.split("/")[1:]
    for token in tokens:
        if _BAD_ESCAPE_RE.search(token):
            raise error_cls(f"Invalid escape sequence in pointer: {pointer}", path=pointer)
    return [_unescape(t) for t in tokens]


def is_index_token(token: str) -> bool:
    return token == APPEND_TOKEN or bool(_INDEX_RE.fullmatch(token))


def parse_index(
    token: str,
    length: int,
    pointer: str,
    allow_end: bool = False,
    error_cls: Type[PatchError] = InvalidPathError,
) -> int:
    """Convert a list segment into an in-bounds index.

    With ``allow_end`` the index may equal ``length`` (insert position) and
    the ``-`` marker means "append".
    """
    if token == APPEND_TOKEN:
        if allow_end:
            return length
        raise error_cls(f"'-' is only valid as an insert position: {pointer}", path=pointer)
    if not _INDEX_RE.fullmatch(token):
        raise error_cls(f"Non-integer index in path: {pointer}", path=pointer)

    idx = int(token)
    upper = length if allow_end else length - 1
    if idx > upper:
        raise error_cls(f"Index out of range in path: {pointer}", path=pointer)
    return idx


@dataclass
class Location:
    """Parent container plus final key of a resolved pointer.

    When missing intermediate mappings were planned by ``resolve`` they stay
    detached in ``pending`` until ``materialize`` is called, so resolving
    never changes the document on its own.
    """

    container: Any
    key: str
    pointer: str
    tokens: List[str]
    error_cls: Type[PatchError] = InvalidPathError
    pending: Optional[Tuple[dict, str, Any]] = field(default=None, repr=False)

    def is_list(self) -> bool:
        return isinstance(self.container, list)

    def index(self, allow_end: bool = False) -> int:
        return parse_index(
            self.key, len(self.container), self.pointer, allow_end=allow_end, error_cls=self.error_cls
        )

    def exists(self) -> bool:
        if self.pending is not None:
            return False
        if self.is_list():
            return bool(_INDEX_RE.fullmatch(self.key)) and int(self.key) < len(self.container)
        return self.key in self.container

    def get(self) -> Any:
        if not self.exists():
            raise self.error_cls(f"Path does not exist: {self.pointer}", path=self.pointer)
        if self.is_list():
            return self.container[int(self.key)]
        return self.container[self.key]

    def materialize(self) -> None:
        """Attach any planned intermediate containers to the document."""
        if self.pending is not None:
            anchor, key, child = self.pending
            anchor[key] = child
            self.pending = None


def resolve(
    document: Any,
    pointer: str,
    create_missing: bool = False,
    error_cls: Type[PatchError] = InvalidPathError,
) -> Location:
    """Walk ``document`` to the parent container of ``pointer``.

    Every segment but the last must name an existing container. With
    ``create_missing`` a missing mapping key gets a new container planned in
    its place: a list when the following segment is an index, else a dict.
    """
    tokens = parse_pointer(pointer, error_cls)
    if not tokens:
        raise error_cls("The document root has no parent container", path=pointer)

    node = document
    pending = None
    for position, token in enumerate(tokens[:-1]):
        if isinstance(node, dict):
            if token in node:
                node = node[token]
                continue
            if not create_missing:
                raise error_cls(f"Path does not exist: {pointer}", path=pointer)
            child: Any = [] if is_index_token(tokens[position + 1]) else {}
            if pending is None:
                pending = (node, token, child)
            else:
                node[token] = child
            node = child
        elif isinstance(node, list):
            node = node[parse_index(token, len(node), pointer, error_cls=error_cls)]
        else:
            raise error_cls(f"Cannot traverse into non-container at: {pointer}", path=pointer)

    if not isinstance(node, (dict, list)):
        raise error_cls(f"Parent of {pointer} is not a container", path=pointer)

    return Location(
        container=node,
        key=tokens[-1],
        pointer=pointer,
        tokens=tokens,
        error_cls=error_cls,
        pending=pending,
    )


def get_value(document: Any, pointer: str, error_cls: Type[PatchError] = InvalidPathError) -> Any:
    """Return the value addressed by ``pointer``; the root pointer returns ``document``."""
    if parse_pointer(pointer, error_cls) == []:
        return document
    return resolve(document, pointer, error_cls=error_cls).get()
