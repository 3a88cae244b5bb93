"""Character-based text chunking for the knowledge base."""

from __future__ import annotations

import re
from dataclasses import dataclass

# How far back from the window end to look for a natural break
_BREAK_WINDOW = 100

_SENTENCE_END = re.compile(r"[.!?]\s")
_SECTION_SPLIT = re.compile(r"\n#{1,3}\s+")


@dataclass
class Chunk:
    content: str
    index: int
    total: int
    start: int
    end: int


def _find_break(text: str, start: int, size: int) -> int:
    """Return the end offset for a window starting at ``start``."""
    end = start + size
    search_start = max(end - _BREAK_WINDOW, start)
    window = text[search_start:end]

    sentence_ends = list(_SENTENCE_END.finditer(window))
    if sentence_ends:
        return search_start + sentence_ends[-1].end()
    for sep in ("\n\n", "\n", " "):
        pos = window.rfind(sep)
        if pos != -1:
            return search_start + pos + len(sep)
    return end


def chunk_text(text: str, size: int = 1500, overlap: int = 200) -> list[Chunk]:
    """
    Split text into overlapping chunks of at most ``size`` characters.

    Breaks are placed, in order of preference, after a sentence end,
    a paragraph break, a newline or a space within the last 100
    characters of each window.  Consecutive chunks share ``overlap``
    characters.  ``start`` and ``end`` are offsets into ``text``; the
    slice they cover, stripped, is the chunk content.
    """
    if size <= 0:
        raise ValueError("size must be positive")
    if overlap < 0 or overlap >= size:
        raise ValueError("overlap must be in [0, size)")
    if not text or not text.strip():
        return []

    clean = text.strip()
    lead = len(text) - len(text.lstrip())
    if len(clean) <= size:
        return [Chunk(content=clean, index=0, total=1, start=lead, end=lead + len(clean))]

    chunks: list[Chunk] = []
    start = 0
    while start < len(clean):
        if start + size < len(clean):
            end = _find_break(clean, start, size)
        else:
            end = len(clean)

        content = clean[start:end].strip()
        if content:
            chunks.append(Chunk(
                content=content, index=len(chunks), total=0,
                start=lead + start, end=lead + end,
            ))

        if end >= len(clean):
            break
        start = max(start + 1, end - overlap)

    for chunk in chunks:
        chunk.total = len(chunks)
    return chunks


def chunk_sections(text: str, size: int = 3000, overlap: int = 300) -> list[Chunk]:
    """
    Chunk markdown-ish documentation section by section.

    The text is split on level 1-3 headings first so that chunks do not
    straddle sections; indexes are then renumbered across the document.
    Offsets are relative to the whole document.
    """
    text = text or ""
    chunks: list[Chunk] = []
    base = 0
    for match in [*_SECTION_SPLIT.finditer(text), None]:
        stop = match.start() if match else len(text)
        for chunk in chunk_text(text[base:stop], size, overlap):
            chunk.start += base
            chunk.end += base
            chunks.append(chunk)
        if match:
            base = match.end()

    for i, chunk in enumerate(chunks):
        chunk.index = i
        chunk.total = len(chunks)
    return chunks
