"""Rendering — LaTeX template, external renderer process and SVG post-processing."""

from texrender.render.pipeline import RenderPipeline
from texrender.render.postprocess import prefix_ids, random_prefix, rasterize
from texrender.render.template import extract_style, format_source

__all__ = [
    "RenderPipeline",
    "extract_style",
    "format_source",
    "prefix_ids",
    "random_prefix",
    "rasterize",
]
