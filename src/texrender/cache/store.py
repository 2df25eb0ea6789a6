"""Content-addressed artifact folder plus its per-document reverse index."""

from __future__ import annotations

import contextlib
import logging
import shutil
from pathlib import Path

from texrender.cache.stats import CacheStats
from texrender.errors.exceptions import TexRenderError
from texrender.settings.store import SettingsStore
from texrender.types import CacheEntry

logger = logging.getLogger(__name__)

VECTOR_EXTENSION = ".svg"
RASTER_EXTENSION = ".png"

_INDEX_KEY = "cache"


class CacheStore:
    """Reverse index (hash -> owning documents) and the artifact folder.

    Invariant: ``<hash>.svg`` exists iff the hash has at least one owner.
    An indexed hash whose file has gone missing is tolerated and reads as a
    miss; the next render overwrites the file.
    """

    def __init__(self, settings_store: SettingsStore) -> None:
        self._settings_store = settings_store
        self._folder: Path | None = None
        self._index: dict[str, set[str]] = {}
        self._stats = CacheStats()

    @property
    def folder(self) -> Path:
        if self._folder is None:
            raise TexRenderError("Cache store is not initialized")
        return self._folder

    @property
    def initialized(self) -> bool:
        return self._folder is not None

    def initialize(self, folder: Path) -> None:
        """Attach to ``folder``, loading the persisted index when it exists.

        A folder that does not exist yet means a first run: it is created and
        the index starts empty, whatever the settings blob still holds.
        """
        self._folder = folder
        if not folder.exists():
            folder.mkdir(parents=True)
            self._index = {}
            logger.info("Created cache folder %s", folder)
            return

        self._index = {}
        for pair in self._settings_store.load().get(_INDEX_KEY, []):
            try:
                content_hash, owners = pair
            except (TypeError, ValueError):
                logger.warning("Skipping malformed index entry: %r", pair)
                continue
            if owners:
                self._index[str(content_hash)] = {str(o) for o in owners}
        logger.info("Loaded %d cache entries from %s", len(self._index), folder)

    # ── Lookups ──

    def artifact_path(self, content_hash: str) -> Path:
        return self.folder / f"{content_hash}{VECTOR_EXTENSION}"

    def raster_path(self, content_hash: str) -> Path:
        return self.folder / f"{content_hash}{RASTER_EXTENSION}"

    def lookup(self, content_hash: str) -> Path | None:
        """Return the artifact path on a hit, None on a miss.

        A hit needs both the index entry and the file on disk.
        """
        path = self.artifact_path(content_hash)
        if content_hash in self._index and path.exists():
            self._stats.hits += 1
            return path
        self._stats.misses += 1
        return None

    def read_artifact(self, content_hash: str) -> str:
        return self.artifact_path(content_hash).read_text(encoding="utf-8")

    def owners(self, content_hash: str) -> set[str]:
        return set(self._index.get(content_hash, ()))

    def entries(self) -> list[CacheEntry]:
        return [
            CacheEntry(content_hash=h, owners=set(owners))
            for h, owners in sorted(self._index.items())
        ]

    def hashes_for_document(self, document_id: str) -> set[str]:
        return {h for h, owners in self._index.items() if document_id in owners}

    def documents(self) -> set[str]:
        """Every document id that owns at least one entry."""
        result: set[str] = set()
        for owners in self._index.values():
            result.update(owners)
        return result

    def __contains__(self, content_hash: object) -> bool:
        return content_hash in self._index

    def __len__(self) -> int:
        return len(self._index)

    # ── Mutations ──

    def write_artifact(self, content_hash: str, svg: str) -> Path:
        path = self.artifact_path(content_hash)
        path.write_text(svg, encoding="utf-8")
        return path

    def write_raster(self, content_hash: str, png: bytes) -> Path:
        path = self.raster_path(content_hash)
        path.write_bytes(png)
        return path

    def add_owner(self, content_hash: str, document_id: str) -> None:
        self._index.setdefault(content_hash, set()).add(document_id)

    def remove_owner(self, content_hash: str, document_id: str) -> bool:
        """Drop one owner link. Returns True if the entry was destroyed."""
        owners = self._index.get(content_hash)
        if owners is None:
            return False
        owners.discard(document_id)
        if owners:
            return False
        self._remove_entry(content_hash)
        return True

    def remove_document(self, document_id: str) -> int:
        """Remove a document from every owner set. Returns entries destroyed."""
        removed = 0
        for content_hash in [h for h, o in self._index.items() if document_id in o]:
            if self.remove_owner(content_hash, document_id):
                removed += 1
        return removed

    def persist(self) -> None:
        """Write the index back to the settings blob as (hash, owners) pairs."""
        pairs = [entry.to_pair() for entry in self.entries()]
        self._settings_store.update(**{_INDEX_KEY: pairs})
        logger.debug("Persisted %d cache entries", len(pairs))

    def teardown(self) -> None:
        """Recursively delete the cache folder and forget the index."""
        if self._folder is not None:
            shutil.rmtree(self._folder, ignore_errors=True)
            logger.info("Removed cache folder %s", self._folder)
        self._index = {}

    # ── Stats ──

    def record_render(self, ok: bool) -> None:
        if ok:
            self._stats.renders += 1
        else:
            self._stats.failures += 1

    def record_coalesced(self) -> None:
        self._stats.coalesced += 1

    def stats(self) -> CacheStats:
        size_bytes = 0
        if self._folder is not None and self._folder.exists():
            for path in self._folder.iterdir():
                if path.is_file():
                    size_bytes += path.stat().st_size
        return CacheStats(
            entries=len(self._index),
            owners=len(self.documents()),
            size_mb=size_bytes / (1024 * 1024),
            hits=self._stats.hits,
            misses=self._stats.misses,
            renders=self._stats.renders,
            failures=self._stats.failures,
            coalesced=self._stats.coalesced,
        )

    def _remove_entry(self, content_hash: str) -> None:
        self._index.pop(content_hash, None)
        for path in (self.artifact_path(content_hash), self.raster_path(content_hash)):
            with contextlib.suppress(FileNotFoundError):
                path.unlink()
        logger.debug("Removed cache entry %s", content_hash)
