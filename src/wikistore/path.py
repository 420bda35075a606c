"""Byte-oriented repository paths.

A :class:`Path` is a normalized, slash-separated sequence of non-empty byte
segments.  Stored filenames may be arbitrary bytes, so text only appears at
the percent-encoding boundary (links, URLs, command-line arguments).
"""

from __future__ import annotations

import os
from pathlib import PurePosixPath
from typing import Iterator
from urllib.parse import quote_from_bytes, unquote_to_bytes

__all__ = ["Path", "SEPARATOR"]

SEPARATOR = b"/"

# Printable ASCII left untouched by percent_encode().  quote_from_bytes()
# always keeps letters, digits and "_.-~"; '%' is deliberately absent so
# that decoding is unambiguous.
_SAFE = "/!$&'()*+,:;=@[\\]^|"


def _normalize(content: bytes) -> bytes:
    """Collapse separator runs and strip one leading and trailing separator."""
    while SEPARATOR * 2 in content:
        content = content.replace(SEPARATOR * 2, SEPARATOR)
    if content.startswith(SEPARATOR):
        content = content[1:]
    if content.endswith(SEPARATOR):
        content = content[:-1]
    return content


def _to_bytes(value: Path | bytes | str) -> bytes:
    if isinstance(value, Path):
        return value._content
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"Expected Path, bytes or str, got {type(value).__name__}")


class Path:
    """A location in the store, e.g. ``Path(b"docs/index.md")``.

    The empty path is the root.  Paths change only through :meth:`push` and
    :meth:`pop_first`; because of that they are not hashable, use
    ``bytes(path)`` as a dictionary key.
    """

    __slots__ = ("_content",)
    __hash__ = None  # type: ignore[assignment]

    def __init__(self, content: Path | bytes | str = b""):
        self._content = _normalize(_to_bytes(content))

    @classmethod
    def from_percent_encoded(cls, encoded: bytes | str) -> Path:
        """Build a path from its percent-encoded form (see :meth:`percent_encode`)."""
        return cls(unquote_to_bytes(encoded))

    @classmethod
    def from_os_path(cls, path: str | os.PathLike[str]) -> Path:
        """Build a path from a local filesystem path."""
        return cls(os.fsencode(path))

    def to_os_path(self) -> PurePosixPath:
        """Return the path as a :class:`~pathlib.PurePosixPath`.

        Raises:
            UnicodeDecodeError: If the path is not valid UTF-8.  Only use
                this on trusted content.
        """
        return PurePosixPath(self._content.decode("utf-8"))

    def percent_encode(self) -> str:
        """Return an ASCII form safe for links and URLs; ``%`` is escaped too."""
        return quote_from_bytes(self._content, safe=_SAFE)

    # --- Decomposition ---

    def segments(self) -> Iterator[bytes]:
        """Yield the segments in order.

        The root yields a single empty segment; use :meth:`is_empty` to
        tell the root apart.
        """
        start = 0
        while True:
            index = self._content.find(SEPARATOR, start)
            if index == -1:
                yield self._content[start:]
                return
            yield self._content[start:index]
            start = index + 1

    def is_empty(self) -> bool:
        """True for the root."""
        return len(self._content) == 0

    def filename(self) -> bytes | None:
        """The last segment, or ``None`` for the root."""
        if self.is_empty():
            return None
        return self._content.rpartition(SEPARATOR)[2]

    def extension(self) -> bytes | None:
        """Everything after the first dot of the filename.

        A leading dot (as in ``.hidden``) does not count, so ``a.b.c`` has
        extension ``b.c`` and ``.a.b`` has extension ``b``.
        """
        name = self.filename()
        if not name:
            return None
        index = name.find(b".", 1)
        if index == -1:
            return None
        return name[index + 1:]

    def parent(self) -> Path | None:
        """The containing path, or ``None`` for the root."""
        if self.is_empty():
            return None
        head, _, _ = self._content.rpartition(SEPARATOR)
        return Path(head)

    def depth(self) -> int:
        """Number of real segments (0 for the root)."""
        if self.is_empty():
            return 0
        return self._content.count(SEPARATOR) + 1

    # --- Mutation ---

    def push(self, child: Path | bytes | str) -> None:
        """Append *child* below this path."""
        self._content = _normalize(self._content + SEPARATOR + _to_bytes(child))

    def pop_first(self) -> Path | None:
        """Remove and return the first segment, or ``None`` for the root."""
        if self.is_empty():
            return None
        first, _, rest = self._content.partition(SEPARATOR)
        self._content = rest
        return Path(first)

    def copy(self) -> Path:
        return Path(self._content)

    def __truediv__(self, child: Path | bytes | str) -> Path:
        new = self.copy()
        new.push(child)
        return new

    # --- Dunder ---

    def __bytes__(self) -> bytes:
        return self._content

    def __str__(self) -> str:
        return self._content.decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        return f"Path({self._content!r})"

    def __eq__(self, other):
        if isinstance(other, Path):
            return self._content == other._content
        return NotImplemented
