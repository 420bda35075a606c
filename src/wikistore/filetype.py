"""Classification of stored documents by filename extension."""

from __future__ import annotations

from enum import Enum

from .path import Path


class Filetype(Enum):
    """How a document's bytes should be treated by a renderer."""

    RAW = "raw"
    MARKDOWN = "markdown"

    @classmethod
    def from_path(cls, path: Path | bytes | str) -> Filetype:
        """Classify *path*: ``.md`` is markdown, everything else is raw."""
        if not isinstance(path, Path):
            path = Path(path)
        extension = path.extension()
        if extension is None:
            return cls.RAW
        try:
            text = extension.decode("utf-8")
        except UnicodeDecodeError:
            return cls.RAW
        return _EXTENSIONS.get(text, cls.RAW)

    @property
    def is_safe(self) -> bool:
        """Whether rendered output may be served as HTML."""
        return self is Filetype.MARKDOWN


_EXTENSIONS = {
    "md": Filetype.MARKDOWN,
}
