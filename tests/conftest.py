import random
import sys

import pytest

from texrender.config.schema import RendererSettings

FAKE_RENDERER = r'''
import pathlib
import sys
import time

stem = sys.argv[1]
log = pathlib.Path(sys.argv[2])
with log.open("a") as f:
    f.write(stem + "\n")

tex = pathlib.Path(stem + ".tex").read_text()
if "\\fail" in tex:
    print("This is pdfTeX")
    print("! Undefined control sequence.", file=sys.stderr)
    sys.exit(2)
if "\\hang" in tex:
    time.sleep(30)
if "\\slow" in tex:
    time.sleep(0.3)
if "\\nosvg" in tex:
    sys.exit(0)

pathlib.Path(stem + ".svg").write_text(
    "<svg xmlns='http://www.w3.org/2000/svg' "
    "xmlns:xlink='http://www.w3.org/1999/xlink' "
    "width='20pt' height='10pt' viewBox='0 0 20 10'>"
    "<defs><path id='g0-1' d='M0 0L10 0L10 10Z'/></defs>"
    "<use x='0' y='0' xlink:href='#g0-1'/>"
    "<desc>" + str(len(tex)) + "</desc>"
    "</svg>"
)
'''

SAMPLE_SVG = (
    "<svg xmlns='http://www.w3.org/2000/svg' xmlns:xlink='http://www.w3.org/1999/xlink' "
    "width='20pt' height='10pt' viewBox='0 0 20 10'>"
    "<defs><path id='g0-1' d='M0 0L10 0L10 10Z'/><path id='g0-2' d='M0 0L5 5Z'/></defs>"
    "<use x='0' y='0' xlink:href='#g0-1'/><use x='5' y='0' xlink:href='#g0-2'/>"
    "</svg>"
)


@pytest.fixture
def sample_svg():
    return SAMPLE_SVG


@pytest.fixture
def render_log(tmp_path):
    """File the fake renderer appends one line to per invocation."""
    return tmp_path / "renders.log"


@pytest.fixture
def fake_command(tmp_path, render_log):
    """Renderer command template that runs the fake renderer script."""
    script = tmp_path / "fake_renderer.py"
    script.write_text(FAKE_RENDERER)
    return f'"{sys.executable}" "{script}" {{file-path}} "{render_log}"'


@pytest.fixture
def vault(tmp_path):
    """Empty document root."""
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def make_settings(fake_command):
    def _make(**overrides):
        values = {
            "command": fake_command,
            "timeout_ms": 10_000,
            "debounce_seconds": 60.0,
        }
        values.update(overrides)
        return RendererSettings(**values)
    return _make


@pytest.fixture
def make_renderer(vault, make_settings):
    """Build a TexRender over the vault with the fake renderer configured."""
    from texrender.core import TexRender

    def _make(**overrides):
        return TexRender(vault, settings=make_settings(**overrides), rng=random.Random(7))
    return _make


@pytest.fixture
def render_count(render_log):
    """Callable returning how many times the fake renderer has run."""
    def _count() -> int:
        if not render_log.exists():
            return 0
        return len(render_log.read_text().splitlines())
    return _count


@pytest.fixture
def latex_doc():
    """Callable building a markdown document with one latex fence per source."""
    def _doc(*sources: str) -> str:
        parts = ["# Notes", ""]
        for source in sources:
            parts.extend(["```latex", source, "```", ""])
        return "\n".join(parts)
    return _doc
