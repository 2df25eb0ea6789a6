"""External renderer invocation with a hard timeout."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
from pathlib import Path

from texrender.config.schema import FILE_PATH_PLACEHOLDER
from texrender.errors.exceptions import RenderError

logger = logging.getLogger(__name__)


def build_command(template: str, content_hash: str) -> str:
    """Substitute every placeholder with the content hash (an identifier, not a path)."""
    return template.replace(FILE_PATH_PLACEHOLDER, content_hash)


async def run_renderer(
    command: str,
    content_hash: str,
    cwd: Path,
    timeout: float,
) -> tuple[str, str]:
    """Run the renderer command in ``cwd`` and return (stdout, stderr).

    Raises RenderError on spawn failure, non-zero exit or timeout. On
    timeout the whole process group is killed.
    """
    cmd = build_command(command, content_hash)
    logger.debug("Running renderer in %s: %s", cwd, cmd)
    try:
        proc = await asyncio.create_subprocess_shell(
            cmd,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=os.name == "posix",
        )
    except OSError as exc:
        raise RenderError(f"Failed to start renderer: {exc}") from exc

    try:
        stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), timeout)
    except TimeoutError:
        _kill(proc)
        stdout_b, stderr_b = await proc.communicate()
        logger.warning("Renderer timed out after %.1fs for %s", timeout, content_hash)
        raise RenderError(
            f"Renderer timed out after {timeout:g}s: {cmd}",
            stdout=_decode(stdout_b),
            stderr=_decode(stderr_b),
            returncode=proc.returncode,
            timed_out=True,
        ) from None

    stdout, stderr = _decode(stdout_b), _decode(stderr_b)
    if proc.returncode != 0:
        raise RenderError(
            f"Renderer exited with code {proc.returncode}: {cmd}",
            stdout=stdout,
            stderr=stderr,
            returncode=proc.returncode,
        )
    return stdout, stderr


def _kill(proc: asyncio.subprocess.Process) -> None:
    # The shell's children (latex, dvisvgm) share its session; kill them too.
    if os.name == "posix":
        with contextlib.suppress(ProcessLookupError, PermissionError):
            os.killpg(proc.pid, signal.SIGKILL)
            return
    with contextlib.suppress(ProcessLookupError):
        proc.kill()


def _decode(data: bytes | None) -> str:
    return data.decode("utf-8", errors="replace") if data else ""
