"""Top-level entry points: TexRender and the render_document() convenience wrapper."""

from __future__ import annotations

import asyncio
import logging
import random
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from texrender.cache.keys import hash_source
from texrender.cache.stats import CacheStats
from texrender.cache.store import CacheStore
from texrender.concurrency.debounce import Debouncer
from texrender.concurrency.pool import RenderPool
from texrender.config.hierarchy import load_config_hierarchy
from texrender.config.schema import RendererSettings
from texrender.documents.scanner import extract_source_blocks
from texrender.documents.store import DocumentStore, FileSystemDocumentStore
from texrender.errors.exceptions import ConfigError
from texrender.reconcile.engine import ReconciliationEngine
from texrender.reconcile.housekeeper import Housekeeper
from texrender.render.pipeline import RenderPipeline
from texrender.render.postprocess import prefix_ids, random_prefix
from texrender.render.template import extract_style
from texrender.settings.store import SettingsStore
from texrender.types import EmbeddedBlock, RenderResult, SourceBlock, SweepReport

logger = logging.getLogger(__name__)

_FINGERPRINT_KEY = "fingerprint"
_FOLDER_KEY = "cache_folder_path"


def load_settings(start_dir: Path | None = None, **overrides: Any) -> RendererSettings:
    """Resolve the config hierarchy into validated settings."""
    config = load_config_hierarchy(start_dir=start_dir, **overrides)
    try:
        return RendererSettings.model_validate(config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


class TexRender:
    """Render context: settings, cache store, pipeline and housekeeping.

    One instance per document root. Index mutations only happen on the
    event loop, under ``_lock``.
    """

    def __init__(
        self,
        root: str | Path,
        settings: RendererSettings | None = None,
        documents: DocumentStore | None = None,
        settings_store: SettingsStore | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._root = Path(root).resolve()
        self._settings = settings or load_settings(start_dir=self._root)
        self._cache_folder = self._resolve_cache_folder(self._settings)
        self._documents = documents or FileSystemDocumentStore(self._root)
        self._settings_store = settings_store or SettingsStore(
            db_path=self._root / self._settings.settings_path
        )
        self._rng = rng

        self._store = CacheStore(self._settings_store)
        self._pipeline = RenderPipeline(self._settings, self._store, rng=rng)
        self._engine = ReconciliationEngine(self._store, self._documents)
        self._housekeeper = Housekeeper(self._store, self._documents, self._engine)
        self._pool = RenderPool(self._settings.max_workers)
        self._sweeper = Debouncer(self._settings.debounce_seconds, self.sweep)
        self._lock = asyncio.Lock()
        self._started = False
        self._closed = False

    @property
    def root(self) -> Path:
        return self._root

    @property
    def settings(self) -> RendererSettings:
        return self._settings

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def documents(self) -> DocumentStore:
        return self._documents

    @property
    def engine(self) -> ReconciliationEngine:
        return self._engine

    @property
    def pool(self) -> RenderPool:
        return self._pool

    @property
    def cache_folder(self) -> Path:
        return self._cache_folder

    # ── Lifecycle ──

    def start(self) -> None:
        """Attach the cache store to its folder.

        If the cache-affecting settings differ from the ones recorded at the
        last flush, the old folder is torn down first, as if the settings had
        been edited while running.
        """
        if self._started:
            return
        self._started = True
        if not self._settings.enable_cache:
            return

        saved = self._settings_store.load()
        previous = saved.get(_FINGERPRINT_KEY)
        fingerprint = self._settings.cache_fingerprint()
        reset = previous is not None and previous != fingerprint
        if reset:
            old_folder = self._recorded_folder(saved.get(_FOLDER_KEY))
            logger.info("Cache settings changed since last run, clearing %s", old_folder)
            self._store.initialize(old_folder)
            self._store.teardown()

        self._store.initialize(self.cache_folder)
        if reset:
            self._store.persist()
        self._record_fingerprint()

    async def reconfigure(self, **changes: Any) -> RendererSettings:
        """Apply settings changes.

        A change to any cache-affecting option tears the cache folder down,
        reinitializes it (empty) and flushes the index.
        """
        self.start()
        try:
            updated = RendererSettings.model_validate(
                {**self._settings.model_dump(), **changes}
            )
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
        folder = self._resolve_cache_folder(updated)

        async with self._lock:
            rebuild = updated.enable_cache and (
                self._settings.affects_cache(updated) or not self._store.initialized
            )
            self._settings = updated
            self._cache_folder = folder
            self._pipeline.settings = updated
            if rebuild:
                self._store.teardown()
                self._store.initialize(self.cache_folder)
                self._store.persist()
                self._record_fingerprint()

        if "max_workers" in changes:
            # Running jobs finish on the old pool first.
            await self._pool.wait_idle()
            self._pool = RenderPool(updated.max_workers)
        if "debounce_seconds" in changes:
            self._sweeper.cancel()
            self._sweeper = Debouncer(updated.debounce_seconds, self.sweep)
        return updated

    async def flush(self) -> None:
        """Finish in-flight renders and run any pending sweep now."""
        await self._pool.wait_idle()
        await self._sweeper.flush()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self.flush()
        if self._store.initialized:
            self._store.persist()
        self._settings_store.close()

    # ── Rendering ──

    async def render_block(self, block: SourceBlock) -> EmbeddedBlock:
        """Serve one block from the cache or render it."""
        self.start()
        style = extract_style(block.source)
        content_hash = hash_source(block.source)

        if self._settings.enable_cache:
            svg = self._read_cached(content_hash)
            if svg is not None:
                async with self._lock:
                    self._store.add_owner(content_hash, block.document_id)
                self._sweeper.schedule()
                return EmbeddedBlock(
                    document_id=block.document_id,
                    content_hash=content_hash,
                    style=style,
                    content=prefix_ids(svg, random_prefix(rng=self._rng)),
                    cached=True,
                )

        result, shared = await self._pool.run(
            content_hash, lambda: self._pipeline.render(block)
        )
        if shared:
            self._store.record_coalesced()

        if self._settings.enable_cache:
            if result.ok:
                async with self._lock:
                    self._register(result, block.document_id)
            self._sweeper.schedule()

        return self._embed(block, style, result, shared)

    async def render_document(self, document_id: str) -> list[EmbeddedBlock]:
        """Render every latex block of a document concurrently, in order."""
        text = self._documents.read(document_id)
        blocks = extract_source_blocks(document_id, text, self._documents.blocks(document_id))
        return list(await asyncio.gather(*(self.render_block(b) for b in blocks)))

    # ── Housekeeping ──

    async def reconcile(self, document_id: str) -> int:
        self.start()
        async with self._lock:
            return self._engine.reconcile(document_id)

    async def sweep(self) -> SweepReport:
        self.start()
        if not self._store.initialized:
            return SweepReport()
        async with self._lock:
            report = self._housekeeper.sweep()
        logger.info(
            "Sweep: %d document(s), %d missing, %d unreadable, "
            "%d link(s) dropped, %d entr(ies) removed",
            report.documents_checked,
            len(report.documents_missing),
            len(report.documents_unreadable),
            report.links_dropped,
            report.entries_removed,
        )
        return report

    async def clear_cache(self) -> None:
        """Delete every artifact and start over with an empty index."""
        self.start()
        async with self._lock:
            self._store.teardown()
            self._store.initialize(self.cache_folder)
            self._store.persist()
            self._record_fingerprint()

    def stats(self) -> CacheStats:
        return self._store.stats()

    # ── Internals ──

    def _read_cached(self, content_hash: str) -> str | None:
        if self._store.lookup(content_hash) is None:
            return None
        try:
            return self._store.read_artifact(content_hash)
        except FileNotFoundError:
            return None

    def _register(self, result: RenderResult, document_id: str) -> None:
        content_hash = result.content_hash
        self._store.add_owner(content_hash, document_id)
        # A sweep may have destroyed the entry while this render was finishing.
        try:
            if result.svg and not self._store.artifact_path(content_hash).exists():
                self._store.write_artifact(content_hash, result.svg)
            if result.png and not self._store.raster_path(content_hash).exists():
                self._store.write_raster(content_hash, result.png)
        except OSError as e:
            logger.warning("Could not restore artifact %s: %s", content_hash, e)

    def _resolve_cache_folder(self, settings: RendererSettings) -> Path:
        """Absolute cache folder for ``settings``.

        The folder is deleted wholesale on teardown, so it may not be the
        document root, one of its ancestors, or hold the settings database.
        """
        folder = (self._root / settings.cache_folder).resolve()
        if self._root.is_relative_to(folder):
            raise ConfigError(
                f"cache_folder {settings.cache_folder!r} resolves to {folder}, "
                f"which contains the document root {self._root}"
            )
        settings_db = (self._root / settings.settings_path).resolve()
        if settings_db.is_relative_to(folder):
            raise ConfigError(
                f"cache_folder {settings.cache_folder!r} resolves to {folder}, "
                f"which contains the settings database {settings_db}"
            )
        return folder

    def _recorded_folder(self, recorded: str | None) -> Path:
        """Folder to tear down on a settings change detected at start.

        Only a recorded folder strictly inside this root qualifies; a blob
        copied from another root falls back to the current folder.
        """
        if recorded:
            folder = Path(recorded).resolve()
            settings_db = (self._root / self._settings.settings_path).resolve()
            if (
                folder != self._root
                and folder.is_relative_to(self._root)
                and not settings_db.is_relative_to(folder)
            ):
                return folder
            logger.warning(
                "Recorded cache folder %s is not inside %s, clearing %s instead",
                folder, self._root, self.cache_folder,
            )
        return self.cache_folder

    def _embed(
        self,
        block: SourceBlock,
        style: str,
        result: RenderResult,
        shared: bool,
    ) -> EmbeddedBlock:
        if not result.ok:
            return EmbeddedBlock(
                document_id=block.document_id,
                content_hash=result.content_hash,
                style=style,
                content=result.failure.as_text() if result.failure else "Render failed",
                ok=False,
            )
        svg = result.svg or ""
        if shared:
            svg = prefix_ids(svg, random_prefix(rng=self._rng))
        return EmbeddedBlock(
            document_id=block.document_id,
            content_hash=result.content_hash,
            style=style,
            content=svg,
        )

    def _record_fingerprint(self) -> None:
        self._settings_store.update(**{
            _FINGERPRINT_KEY: self._settings.cache_fingerprint(),
            _FOLDER_KEY: str(self.cache_folder),
        })


# ── Module-level convenience functions ──


def render_document(
    root: str | Path,
    document_id: str,
    **overrides: Any,
) -> list[EmbeddedBlock]:
    """Render one document's latex blocks and run the sweep (sync wrapper)."""
    settings = load_settings(start_dir=Path(root), **overrides)
    renderer = TexRender(root, settings=settings)

    async def _run() -> list[EmbeddedBlock]:
        try:
            return await renderer.render_document(document_id)
        finally:
            await renderer.close()

    return asyncio.run(_run())
