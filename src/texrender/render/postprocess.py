"""SVG post-processing: identifier prefixing and rasterization."""

from __future__ import annotations

import logging
import random
import re
import string

logger = logging.getLogger(__name__)

PREFIX_LENGTH = 4

# dvisvgm names glyph paths g<font>-<char> and references them with
# xlink:href; both sides must get the same prefix.
_ID_RE = re.compile(r"(<path id=(['\"])g)")
_HREF_RE = re.compile(r"((?:xlink:)?href=(['\"])#g)")


def random_prefix(length: int = PREFIX_LENGTH, rng: random.Random | None = None) -> str:
    """Random alphabetic prefix, mixed case."""
    chooser = rng or random
    return "".join(chooser.choice(string.ascii_letters) for _ in range(length))


def prefix_ids(svg: str, prefix: str) -> str:
    """Prefix glyph ids and their references so inlined SVGs cannot collide.

    Prefixing an already prefixed document stacks the prefixes, which keeps
    ids and references consistent.
    """
    svg = _HREF_RE.sub(lambda m: m.group(1) + prefix, svg)
    return _ID_RE.sub(lambda m: m.group(1) + prefix, svg)


def rasterize(svg: str, scale: float = 1.0) -> bytes:
    """Render an SVG document to PNG bytes at ``scale`` times its natural size."""
    import pymupdf

    doc = pymupdf.open(stream=svg.encode("utf-8"), filetype="svg")
    try:
        page = doc[0]
        pix = page.get_pixmap(matrix=pymupdf.Matrix(scale, scale))
        return pix.tobytes("png")
    finally:
        doc.close()
