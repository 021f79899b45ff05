"""Common ingestion data structures."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True)
class LoadedDocument:
    """Text extracted from a file, ready for chunking."""

    path: Path
    title: str
    text: str
    file_type: str
    size_bytes: int


@dataclass(slots=True)
class SegmentPayload:
    """Chunk produced by the chunker prior to persistence."""

    index: int
    text: str
    token_count: int


@dataclass(slots=True)
class IngestResult:
    document_id: int
    segment_count: int
    replaced: bool = False


@dataclass(slots=True)
class PathResult:
    """Outcome for a single file handed to ``ingest_paths``."""

    path: Path
    status: str
    document_id: int | None = None
    segment_count: int = 0
    detail: str | None = None


@dataclass(slots=True)
class DuplicateInfo:
    filename: str
    existing_id: int
    existing_title: str
    existing_type: str | None


__all__ = [
    "LoadedDocument",
    "SegmentPayload",
    "IngestResult",
    "PathResult",
    "DuplicateInfo",
]
