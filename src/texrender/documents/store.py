"""Document store — document identities, content reads and block structure."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from texrender.documents.scanner import scan_blocks
from texrender.errors.exceptions import DocumentNotFoundError, DocumentReadError
from texrender.types import BlockDescriptor

logger = logging.getLogger(__name__)

_DEFAULT_SUFFIXES = (".md", ".markdown")


@runtime_checkable
class DocumentStore(Protocol):
    """What the cache needs from the host's document collection."""

    def exists(self, document_id: str) -> bool: ...

    def read(self, document_id: str) -> str: ...

    def blocks(self, document_id: str) -> list[BlockDescriptor]: ...


class FileSystemDocumentStore:
    """A directory of markdown files; a document id is its POSIX path under root."""

    def __init__(self, root: Path, suffixes: tuple[str, ...] = _DEFAULT_SUFFIXES) -> None:
        self._root = root.resolve()
        self._suffixes = suffixes

    @property
    def root(self) -> Path:
        return self._root

    def exists(self, document_id: str) -> bool:
        path = self._resolve(document_id)
        return path is not None and path.is_file()

    def read(self, document_id: str) -> str:
        path = self._resolve(document_id)
        if path is None or not path.is_file():
            raise DocumentNotFoundError(document_id)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise DocumentNotFoundError(document_id) from e
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentReadError(document_id, str(e)) from e

    def blocks(self, document_id: str) -> list[BlockDescriptor]:
        return scan_blocks(self.read(document_id))

    def document_id(self, path: Path) -> str:
        """Document id for a filesystem path inside the root."""
        return path.resolve().relative_to(self._root).as_posix()

    def list_documents(self) -> list[str]:
        return sorted(
            self.document_id(p)
            for p in self._root.rglob("*")
            if p.is_file() and p.suffix.lower() in self._suffixes
        )

    def _resolve(self, document_id: str) -> Path | None:
        path = (self._root / document_id).resolve()
        if not path.is_relative_to(self._root):
            logger.warning("Document id escapes the store root: %s", document_id)
            return None
        return path
