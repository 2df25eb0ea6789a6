"""Per-document reconciliation of the reverse index against live content."""

from __future__ import annotations

import logging

from texrender.cache.keys import hash_source
from texrender.cache.store import CacheStore
from texrender.documents.scanner import RENDER_MARKER, extract_source_blocks
from texrender.documents.store import DocumentStore

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """Drops owner links for hashes a document no longer contains."""

    def __init__(
        self,
        store: CacheStore,
        documents: DocumentStore,
        marker: str = RENDER_MARKER,
    ) -> None:
        self._store = store
        self._documents = documents
        self._marker = marker

    def document_hashes(self, document_id: str) -> set[str]:
        """Hashes of every render block currently in the document."""
        text = self._documents.read(document_id)
        blocks = self._documents.blocks(document_id)
        return {
            hash_source(block.source)
            for block in extract_source_blocks(document_id, text, blocks, self._marker)
        }

    def reconcile(self, document_id: str) -> int:
        """Remove stale links for one document. Returns the number dropped."""
        live = self.document_hashes(document_id)
        cached = self._store.hashes_for_document(document_id)
        stale = cached - live
        for content_hash in sorted(stale):
            destroyed = self._store.remove_owner(content_hash, document_id)
            logger.debug(
                "Dropped %s from %s%s",
                document_id,
                content_hash,
                " (entry removed)" if destroyed else "",
            )
        if stale:
            logger.info("Reconciled %s: %d stale link(s) dropped", document_id, len(stale))
        return len(stale)
