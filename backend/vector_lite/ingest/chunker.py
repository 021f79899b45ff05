"""Chunking utilities."""

from __future__ import annotations

import re
from typing import Iterable, Iterator

from vector_lite.core.errors import ChunkingInputInvalid
from vector_lite.ingest.types import SegmentPayload
from vector_lite.utils.text import estimate_tokens

_PARAGRAPH_RE = re.compile(r"\n\s*\n")
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")
_OVERLAP_BOUNDARY_RE = re.compile(r"\.(?=\s)")

PARAGRAPH_SEPARATOR = "\n\n"


def chunk_text(text: str, max_size: int = 1000, overlap_size: int = 200) -> list[str]:
    """Split text into ordered chunks of at most ``max_size`` characters.

    Paragraphs are packed greedily; a paragraph longer than ``max_size`` is packed
    sentence by sentence instead. Each new chunk is seeded with up to ``overlap_size``
    trailing characters of the previous one, trimmed to start on a sentence. A final
    pass splits anything still oversized on whitespace.
    """
    if max_size < 1:
        raise ChunkingInputInvalid("max_size must be at least 1")
    if overlap_size < 0 or overlap_size >= max_size:
        raise ChunkingInputInvalid("overlap_size must be >= 0 and smaller than max_size")
    if not text or not text.strip():
        return []

    chunks: list[str] = []
    current = ""
    for unit, separator in _iter_units(text, max_size):
        if current and len(current) + len(separator) + len(unit) > max_size:
            chunks.append(current.strip())
            current = _seed(_overlap_tail(current, overlap_size), unit, max_size)
        elif current:
            current = f"{current}{separator}{unit}"
        else:
            current = unit
    if current.strip():
        chunks.append(current.strip())

    final: list[str] = []
    for chunk in chunks:
        if len(chunk) <= max_size:
            final.append(chunk)
        else:
            final.extend(_split_words(chunk, max_size))
    return [chunk for chunk in final if chunk]


def build_segments(chunks: Iterable[str]) -> list[SegmentPayload]:
    """Number chunks in document order and attach token estimates."""
    return [
        SegmentPayload(index=index, text=chunk, token_count=estimate_tokens(chunk))
        for index, chunk in enumerate(chunks)
    ]


def _iter_units(text: str, max_size: int) -> Iterator[tuple[str, str]]:
    """Yield (unit, separator) pairs: whole paragraphs, or sentences of long ones."""
    for paragraph in _PARAGRAPH_RE.split(text):
        paragraph = paragraph.strip()
        if not paragraph:
            continue
        if len(paragraph) <= max_size:
            yield paragraph, PARAGRAPH_SEPARATOR
            continue
        for sentence in _SENTENCE_RE.split(paragraph):
            sentence = sentence.strip()
            if sentence:
                yield sentence, " "


def _overlap_tail(chunk: str, overlap_size: int) -> str:
    if overlap_size <= 0:
        return ""
    chunk = chunk.strip()
    if len(chunk) <= overlap_size:
        return chunk
    tail = chunk[-overlap_size:]
    boundary = None
    for match in _OVERLAP_BOUNDARY_RE.finditer(tail):
        boundary = match.start()
    if boundary is not None and boundary > overlap_size * 0.5:
        tail = tail[boundary + 1 :]
    return tail.strip()


def _seed(overlap: str, unit: str, max_size: int) -> str:
    if overlap and len(overlap) + len(PARAGRAPH_SEPARATOR) + len(unit) <= max_size:
        return f"{overlap}{PARAGRAPH_SEPARATOR}{unit}"
    return unit


def _split_words(chunk: str, max_size: int) -> list[str]:
    pieces: list[str] = []
    current = ""
    for word in chunk.split():
        # A single word longer than max_size is the only thing ever cut mid-word.
        while len(word) > max_size:
            if current:
                pieces.append(current)
                current = ""
            pieces.append(word[:max_size])
            word = word[max_size:]
        if not word:
            continue
        if current and len(current) + 1 + len(word) > max_size:
            pieces.append(current)
            current = word
        else:
            current = f"{current} {word}" if current else word
    if current:
        pieces.append(current)
    return pieces


__all__ = ["chunk_text", "build_segments", "PARAGRAPH_SEPARATOR"]
