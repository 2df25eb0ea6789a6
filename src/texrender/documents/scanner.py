"""Markdown block scanner — structural block descriptors for a document."""

from __future__ import annotations

import re

from texrender.types import BlockDescriptor, BlockKind, SourceBlock

RENDER_MARKER = "latex"

# Fences may be indented up to three spaces; deeper fences (inside list items,
# block quotes, callouts) are not recognised structurally.
_FENCE_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})\s*(?P<info>[^`]*)$")
_HEADING_RE = re.compile(r"^ {0,3}#{1,6}(\s|$)")


def _opening_line_re(marker: str) -> re.Pattern[str]:
    return re.compile(r"``` *" + re.escape(marker))


def scan_blocks(text: str) -> list[BlockDescriptor]:
    """Split a markdown document into code, heading and paragraph blocks."""
    lines = text.split("\n")
    blocks: list[BlockDescriptor] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        fence = _FENCE_RE.match(line)
        if fence:
            end = _find_closing_fence(lines, i + 1, fence.group("fence"))
            closed = end is not None
            end_line = end if closed else len(lines) - 1
            body = lines[i + 1:end] if closed else lines[i + 1:]
            info = fence.group("info").strip()
            blocks.append(BlockDescriptor(
                kind=BlockKind.CODE,
                language=info.split()[0] if info else None,
                start_line=i,
                end_line=end_line,
                opening_line=line,
                text="\n".join(body),
            ))
            i = end_line + 1
            continue

        if not line.strip():
            i += 1
            continue

        if _HEADING_RE.match(line):
            blocks.append(BlockDescriptor(
                kind=BlockKind.HEADING,
                start_line=i,
                end_line=i,
                opening_line=line,
                text=line,
            ))
            i += 1
            continue

        start = i
        while (
            i + 1 < len(lines)
            and lines[i + 1].strip()
            and not _FENCE_RE.match(lines[i + 1])
            and not _HEADING_RE.match(lines[i + 1])
        ):
            i += 1
        blocks.append(BlockDescriptor(
            kind=BlockKind.PARAGRAPH,
            start_line=start,
            end_line=i,
            opening_line=lines[start],
            text="\n".join(lines[start:i + 1]),
        ))
        i += 1
    return blocks


def is_render_block(block: BlockDescriptor, marker: str = RENDER_MARKER) -> bool:
    """True for blocks tagged with the render marker.

    Code blocks are decided by their language tag. Anything else (or a code
    block without a tag) falls back to matching the opening line.
    """
    if block.kind == BlockKind.CODE and block.language is not None:
        return block.language == marker
    return _opening_line_re(marker).search(block.opening_line) is not None


def extract_source_blocks(
    document_id: str,
    text: str,
    blocks: list[BlockDescriptor] | None = None,
    marker: str = RENDER_MARKER,
) -> list[SourceBlock]:
    """Return the render blocks of a document as SourceBlocks."""
    if blocks is None:
        blocks = scan_blocks(text)
    lines = text.split("\n")
    result: list[SourceBlock] = []
    for block in blocks:
        if not is_render_block(block, marker):
            continue
        if block.kind == BlockKind.CODE:
            source = block.text
        else:
            source = "\n".join(lines[block.start_line + 1:block.end_line])
        result.append(SourceBlock(
            document_id=document_id,
            source=source,
            start_line=block.start_line,
            end_line=block.end_line,
        ))
    return result


def _find_closing_fence(lines: list[str], start: int, fence: str) -> int | None:
    char = fence[0]
    closing = re.compile(r"^ {0,3}" + re.escape(char) + "{" + str(len(fence)) + r",}\s*$")
    for j in range(start, len(lines)):
        if closing.match(lines[j]):
            return j
    return None
