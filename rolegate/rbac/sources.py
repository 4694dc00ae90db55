"""Document sources: where raw config text comes from."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Protocol, runtime_checkable

from rolegate.rbac.errors import SourceReadError
from rolegate.rbac.parser import DocumentFormat

_SUFFIX_FORMATS: dict[str, DocumentFormat] = {
    ".xml": "xml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".json": "yaml",  # JSON is a YAML subset
}


@runtime_checkable
class DocumentSource(Protocol):
    """Produces raw document text from an identifying reference."""

    @property
    def key(self) -> str:
        """Stable identity used as the store's cache key."""
        ...

    @property
    def format(self) -> DocumentFormat: ...

    def read(self) -> str: ...


class FileSource:
    """A config document on the local filesystem."""

    def __init__(
        self,
        path: str | Path,
        fmt: DocumentFormat = "auto",
        encoding: str = "utf-8",
    ) -> None:
        self.path = Path(path)
        if fmt == "auto":
            fmt = _SUFFIX_FORMATS.get(self.path.suffix.lower(), "auto")
        self._format: DocumentFormat = fmt
        self.encoding = encoding

    @property
    def key(self) -> str:
        return str(self.path.resolve())

    @property
    def format(self) -> DocumentFormat:
        return self._format

    def read(self) -> str:
        try:
            return self.path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise SourceReadError(str(self.path), e) from e

    def __repr__(self) -> str:
        return f"FileSource({str(self.path)!r})"


class TextSource:
    """An in-memory config document."""

    def __init__(self, text: str, fmt: DocumentFormat = "auto") -> None:
        self.text = text
        self._format: DocumentFormat = fmt
        self._key = "text:" + hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]

    @property
    def key(self) -> str:
        return self._key

    @property
    def format(self) -> DocumentFormat:
        return self._format

    def read(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"TextSource({self._key!r})"


def as_source(
    ref: str | Path | DocumentSource, fmt: DocumentFormat = "auto", encoding: str = "utf-8"
) -> DocumentSource:
    """Coerce a path or an existing source into a DocumentSource."""
    if isinstance(ref, (str, Path)):
        return FileSource(ref, fmt=fmt, encoding=encoding)
    if isinstance(ref, DocumentSource):
        return ref
    raise TypeError(f"Not a document source: {ref!r}")
