"""texrender — LaTeX blocks in markdown to cached SVG artifacts."""

from texrender.core import TexRender, load_settings, render_document
from texrender.types import EmbeddedBlock, RenderResult, SourceBlock, SweepReport

__version__ = "0.1.0"

__all__ = [
    "TexRender",
    "EmbeddedBlock",
    "RenderResult",
    "SourceBlock",
    "SweepReport",
    "load_settings",
    "render_document",
]
