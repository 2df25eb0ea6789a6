"""Render pipeline: template, external process, post-processing, persistence."""

from __future__ import annotations

import logging
import random
import shutil
import tempfile
from pathlib import Path

from texrender.cache.keys import hash_source
from texrender.cache.store import VECTOR_EXTENSION, CacheStore
from texrender.config.schema import RendererSettings
from texrender.errors.exceptions import RenderError
from texrender.render.postprocess import prefix_ids, random_prefix, rasterize
from texrender.render.process import run_renderer
from texrender.render.template import format_source
from texrender.types import RenderFailure, RenderRequest, RenderResult, SourceBlock

logger = logging.getLogger(__name__)

_WORKDIR_PREFIX = "texrender-"


class RenderPipeline:
    """Turns one SourceBlock into a RenderResult.

    Failures never raise out of ``render``; they come back as a
    RenderFailure carrying the captured process output.
    """

    def __init__(
        self,
        settings: RendererSettings,
        store: CacheStore,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._rng = rng

    @property
    def settings(self) -> RendererSettings:
        return self._settings

    @settings.setter
    def settings(self, value: RendererSettings) -> None:
        self._settings = value

    def prepare(self, block: SourceBlock) -> RenderRequest:
        content_hash = hash_source(block.source)
        artifact_path = (
            self._store.artifact_path(content_hash) if self._settings.enable_cache else None
        )
        return RenderRequest(
            source=format_source(block.source, self._settings.additional_packages),
            content_hash=content_hash,
            artifact_path=artifact_path,
        )

    async def render(self, block: SourceBlock) -> RenderResult:
        request = self.prepare(block)
        try:
            svg, png = await self._execute(request)
        except RenderError as exc:
            logger.info("Render failed for %s: %s", request.content_hash, exc.message)
            self._store.record_render(ok=False)
            return RenderResult(
                content_hash=request.content_hash,
                failure=RenderFailure(
                    error=exc.message,
                    stdout=exc.stdout,
                    stderr=exc.stderr,
                    returncode=exc.returncode,
                    timed_out=exc.timed_out,
                ),
            )
        self._store.record_render(ok=True)
        return RenderResult(content_hash=request.content_hash, svg=svg, png=png)

    async def _execute(self, request: RenderRequest) -> tuple[str, bytes | None]:
        content_hash = request.content_hash
        try:
            workdir = Path(tempfile.mkdtemp(prefix=_WORKDIR_PREFIX))
            (workdir / f"{content_hash}.tex").write_text(request.source, encoding="utf-8")
        except OSError as exc:
            raise RenderError(f"Could not prepare working directory: {exc}") from exc

        stdout, stderr = await run_renderer(
            self._settings.command,
            content_hash,
            cwd=workdir,
            timeout=self._settings.timeout_seconds,
        )

        output = workdir / f"{content_hash}{VECTOR_EXTENSION}"
        try:
            raw_svg = output.read_text(encoding="utf-8")
        except OSError as exc:
            raise RenderError(
                f"Renderer did not produce {output.name} in {workdir}",
                stdout=stdout,
                stderr=stderr,
                returncode=0,
            ) from exc

        svg = prefix_ids(raw_svg, random_prefix(rng=self._rng))
        png = self._rasterize(raw_svg) if self._settings.png_copy else None

        if request.artifact_path is not None:
            try:
                self._store.write_artifact(content_hash, svg)
                if png is not None:
                    self._store.write_raster(content_hash, png)
            except OSError as exc:
                raise RenderError(f"Could not write artifact for {content_hash}: {exc}") from exc

        if self._settings.clean_workdirs:
            shutil.rmtree(workdir, ignore_errors=True)
        logger.debug("Rendered %s in %s", content_hash, workdir)
        return svg, png

    def _rasterize(self, svg: str) -> bytes | None:
        try:
            return rasterize(svg, self._settings.png_scale)
        except (RuntimeError, ValueError) as e:
            logger.warning("PNG copy failed, keeping SVG only: %s", e)
            return None
