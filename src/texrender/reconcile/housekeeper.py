"""Global sweep over every document referenced by the cache."""

from __future__ import annotations

import logging

from texrender.cache.store import CacheStore
from texrender.documents.store import DocumentStore
from texrender.errors.exceptions import DocumentNotFoundError, DocumentReadError
from texrender.reconcile.engine import ReconciliationEngine
from texrender.types import SweepReport

logger = logging.getLogger(__name__)


class Housekeeper:
    """Prunes links to deleted documents and reconciles the rest.

    Idempotent; the index is persisted at the end of every sweep whether or
    not anything changed.
    """

    def __init__(
        self,
        store: CacheStore,
        documents: DocumentStore,
        engine: ReconciliationEngine,
    ) -> None:
        self._store = store
        self._documents = documents
        self._engine = engine

    def sweep(self) -> SweepReport:
        report = SweepReport()
        entries_before = len(self._store)
        try:
            for document_id in sorted(self._store.documents()):
                report.documents_checked += 1
                if self._documents.exists(document_id):
                    try:
                        report.links_dropped += self._engine.reconcile(document_id)
                        continue
                    except DocumentNotFoundError:
                        # Deleted between the existence check and the read.
                        pass
                    except (DocumentReadError, OSError, UnicodeDecodeError) as e:
                        # Links stay until the document can be read again.
                        logger.warning("Skipping unreadable document %s: %s", document_id, e)
                        report.documents_unreadable.append(document_id)
                        continue
                report.links_dropped += self._drop_document(document_id)
                report.documents_missing.append(document_id)
        finally:
            self._store.persist()
        report.entries_removed = entries_before - len(self._store)
        return report

    def _drop_document(self, document_id: str) -> int:
        dropped = len(self._store.hashes_for_document(document_id))
        self._store.remove_document(document_id)
        logger.info("Document %s is gone, dropped %d link(s)", document_id, dropped)
        return dropped
