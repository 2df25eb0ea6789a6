"""Shared Pydantic models for texrender."""

from __future__ import annotations

import html
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field

# ── Enums ──


class BlockKind(StrEnum):
    CODE = "code"
    PARAGRAPH = "paragraph"
    HEADING = "heading"


# ── Document model ──


class BlockDescriptor(BaseModel):
    """Structural block metadata for one section of a document.

    Line numbers are 0-based. For fenced code, ``start_line`` is the opening
    fence and ``end_line`` the closing fence (or the last line when the fence
    is never closed).
    """

    kind: BlockKind
    language: str | None = None
    start_line: int
    end_line: int
    opening_line: str = ""
    text: str = ""


class SourceBlock(BaseModel):
    document_id: str
    source: str
    start_line: int = 0
    end_line: int = 0


# ── Cache models ──


class CacheEntry(BaseModel):
    """One reverse-index entry: content hash and the documents that own it."""

    content_hash: str
    owners: set[str] = Field(default_factory=set)

    def to_pair(self) -> list:
        return [self.content_hash, sorted(self.owners)]


# ── Render models ──


class RenderRequest(BaseModel):
    source: str
    content_hash: str
    artifact_path: Path | None = None


class RenderFailure(BaseModel):
    error: str
    stdout: str = ""
    stderr: str = ""
    returncode: int | None = None
    timed_out: bool = False

    def as_text(self) -> str:
        """Combined diagnostic shown in place of the artifact."""
        parts = [self.error]
        if self.stdout.strip():
            parts.append(self.stdout.rstrip())
        if self.stderr.strip():
            parts.append(self.stderr.rstrip())
        return "\n".join(parts)


class RenderResult(BaseModel):
    content_hash: str
    svg: str | None = None
    png: bytes | None = None
    failure: RenderFailure | None = None
    cached: bool = False

    @property
    def ok(self) -> bool:
        return self.failure is None and self.svg is not None


class EmbeddedBlock(BaseModel):
    """Rendered output for one block, ready to be placed into a page."""

    document_id: str
    content_hash: str
    style: str = ""
    content: str = ""
    ok: bool = True
    cached: bool = False

    def to_html(self) -> str:
        style = f' style="{html.escape(self.style, quote=True)}"' if self.style else ""
        if self.ok:
            body = self.content
        else:
            body = f'<pre class="texrender-error">{html.escape(self.content)}</pre>'
        return f'<div class="texrender-block"{style}>{body}</div>'


class SweepReport(BaseModel):
    documents_checked: int = 0
    documents_missing: list[str] = Field(default_factory=list)
    documents_unreadable: list[str] = Field(default_factory=list)
    links_dropped: int = 0
    entries_removed: int = 0
