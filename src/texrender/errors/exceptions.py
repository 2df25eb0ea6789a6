"""Custom exception hierarchy for texrender."""

from __future__ import annotations

from typing import Any


class TexRenderError(Exception):
    """Base exception for all texrender errors."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message


class RenderError(TexRenderError):
    """The external renderer did not produce an artifact.

    Covers spawn failures, non-zero exit, timeouts and a missing output
    file. Never retried; the captured output is shown to the user.
    """

    def __init__(
        self,
        message: str = "",
        stdout: str = "",
        stderr: str = "",
        returncode: int | None = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode
        self.timed_out = timed_out


class DocumentNotFoundError(TexRenderError):
    """The document store has no document with this id."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document not found: {document_id}")
        self.document_id = document_id


class ConfigError(TexRenderError):
    """Invalid or inconsistent configuration."""


class DocumentReadError(TexRenderError):
    """The document exists but its content could not be read or decoded."""

    def __init__(self, document_id: str, reason: str = "") -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(f"Could not read document {document_id}{detail}")
        self.document_id = document_id
        self.reason = reason
