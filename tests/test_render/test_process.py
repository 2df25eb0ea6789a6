"""Tests for the external renderer invocation."""

import sys
import time

import pytest

from texrender.errors.exceptions import RenderError
from texrender.render.process import build_command, run_renderer

HASH = "ab" * 32


@pytest.fixture
def workdir(tmp_path):
    path = tmp_path / "work"
    path.mkdir()
    return path


def write_tex(workdir, body):
    (workdir / f"{HASH}.tex").write_text(body)


class TestBuildCommand:
    def test_replaces_every_placeholder(self):
        cmd = build_command('latex "{file-path}" && dvisvgm "{file-path}"', "abc")
        assert cmd == 'latex "abc" && dvisvgm "abc"'

    def test_no_placeholder(self):
        assert build_command("true", "abc") == "true"


class TestRunRenderer:
    async def test_success(self, workdir, fake_command):
        write_tex(workdir, "x^2")
        stdout, stderr = await run_renderer(fake_command, HASH, cwd=workdir, timeout=10)
        assert (workdir / f"{HASH}.svg").exists()
        assert stderr == ""

    async def test_nonzero_exit_carries_output(self, workdir, fake_command):
        write_tex(workdir, "\\fail")
        with pytest.raises(RenderError) as exc_info:
            await run_renderer(fake_command, HASH, cwd=workdir, timeout=10)
        err = exc_info.value
        assert err.returncode == 2
        assert "pdfTeX" in err.stdout
        assert "Undefined control sequence" in err.stderr
        assert not err.timed_out

    @pytest.mark.skipif(sys.platform == "win32", reason="process groups are posix-only")
    async def test_timeout_kills_process(self, workdir, fake_command):
        write_tex(workdir, "\\hang")
        started = time.monotonic()
        with pytest.raises(RenderError) as exc_info:
            await run_renderer(fake_command, HASH, cwd=workdir, timeout=0.5)
        assert exc_info.value.timed_out
        assert time.monotonic() - started < 10
        assert not (workdir / f"{HASH}.svg").exists()

    async def test_missing_program(self, workdir):
        with pytest.raises(RenderError) as exc_info:
            await run_renderer("texrender-no-such-program-xyz", HASH, cwd=workdir, timeout=10)
        assert exc_info.value.returncode not in (0, None)
