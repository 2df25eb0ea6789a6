"""Document model — block scanning and the document store interface."""

from texrender.documents.scanner import (
    RENDER_MARKER,
    extract_source_blocks,
    is_render_block,
    scan_blocks,
)
from texrender.documents.store import DocumentStore, FileSystemDocumentStore

__all__ = [
    "RENDER_MARKER",
    "DocumentStore",
    "FileSystemDocumentStore",
    "extract_source_blocks",
    "is_render_block",
    "scan_blocks",
]
