"""Ingest pipeline orchestration."""

from __future__ import annotations

import sqlite3
import uuid
from pathlib import Path, PurePath
from typing import Sequence

from vector_lite.core.config import Settings
from vector_lite.core.errors import DocumentNotFound
from vector_lite.core.logging import get_logger
from vector_lite.db.sqlite import SQLiteDatabase
from vector_lite.groups.service import GroupService, link_groups
from vector_lite.ingest.chunker import build_segments, chunk_text
from vector_lite.ingest.loaders import LoaderRegistry
from vector_lite.ingest.types import DuplicateInfo, IngestResult, PathResult
from vector_lite.queue.service import EmbeddingQueue
from vector_lite.queue.state import QueueStatus
from vector_lite.utils.time import now_ms

logger = get_logger(__name__)

# Entries being embedded right now are left for the drain to fail as vanished.
_PURGE_QUEUE_SQL = f"""
    DELETE FROM embedding_queue
    WHERE status != '{QueueStatus.PROCESSING.value}'
      AND chunk_id IN (SELECT id FROM chunks WHERE document_id = ?)
"""


class IngestPipeline:
    """Coordinate chunking, queue-entry creation, and document persistence.

    Embeddings are not computed here; every segment becomes a pending queue entry that a
    later drain resolves. Each document is committed on its own.
    """

    def __init__(
        self,
        database: SQLiteDatabase,
        settings: Settings,
        queue: EmbeddingQueue,
        groups: GroupService | None = None,
    ) -> None:
        self.db = database
        self.settings = settings
        self.queue = queue
        self.groups = groups or GroupService(database)
        self.loader_registry = LoaderRegistry()

    def ingest(
        self,
        title: str,
        text: str,
        file_type: str = "txt",
        size_bytes: int | None = None,
        groups: Sequence[int | str] | None = None,
        replace: bool = False,
    ) -> IngestResult:
        """Store a document, chunk it, and queue every segment for embedding.

        With ``replace`` an existing document of the same title and file type is
        rewritten in place: its segments, embeddings and queue entries are dropped and its
        group memberships are merged with ``groups``.
        """
        title = (title or "").strip()
        if not title:
            raise ValueError("Document title is required")
        file_type = (file_type or "txt").lower().lstrip(".")
        text = text or ""
        if size_bytes is None:
            size_bytes = len(text.encode("utf-8"))

        chunks = chunk_text(text, self.settings.chunk_size, self.settings.chunk_overlap)
        segments = build_segments(chunks)
        group_ids = self.groups.resolve(groups)
        existing_id = self._find_existing(title, file_type) if replace else None
        now = now_ms()

        with self.db.transaction() as cursor:
            if existing_id is not None:
                document_id = existing_id
                self._purge_segments(cursor, document_id)
                cursor.execute(
                    "UPDATE documents SET content = ?, file_size = ?, updated_at = ? WHERE id = ?",
                    [text, size_bytes, now, document_id],
                )
            else:
                cursor.execute(
                    """
                    INSERT INTO documents (title, content, document_key, file_type, file_size, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    [title, text, _document_key(), file_type, size_bytes, now, now],
                )
                document_id = int(cursor.lastrowid)

            link_groups(cursor, document_id, group_ids)

            for segment in segments:
                cursor.execute(
                    "INSERT INTO chunks (document_id, chunk_index, content, token_count) VALUES (?, ?, ?, ?)",
                    [document_id, segment.index, segment.text, segment.token_count],
                )
                self.queue.enqueue(int(cursor.lastrowid), segment.text, cursor=cursor)

        if not segments:
            logger.warning("Document %s produced no segments", title)
        logger.info(
            "Ingested %s (%s segments)",
            title,
            len(segments),
            extra={"ctx_document_id": document_id, "ctx_replaced": existing_id is not None},
        )
        return IngestResult(
            document_id=document_id,
            segment_count=len(segments),
            replaced=existing_id is not None,
        )

    def ingest_paths(
        self,
        paths: Sequence[Path],
        groups: Sequence[int | str] | None = None,
        replace: bool = False,
    ) -> list[PathResult]:
        results: list[PathResult] = []
        for path in paths:
            results.append(self._process_path(Path(path).expanduser(), groups, replace))
        return results

    def find_duplicates(self, filenames: Sequence[str]) -> list[DuplicateInfo]:
        """Report filenames whose stem and extension match a stored document."""
        duplicates: list[DuplicateInfo] = []
        for filename in filenames:
            pure = PurePath(filename)
            row = self.db.fetchone(
                "SELECT id, title, file_type FROM documents WHERE title = ? AND file_type = ?",
                [pure.stem, pure.suffix.lower().lstrip(".")],
            )
            if row:
                duplicates.append(
                    DuplicateInfo(
                        filename=filename,
                        existing_id=row["id"],
                        existing_title=row["title"],
                        existing_type=row["file_type"],
                    )
                )
        return duplicates

    def delete_document(self, document_id: int) -> None:
        if self.db.scalar("SELECT 1 FROM documents WHERE id = ?", [document_id]) is None:
            raise DocumentNotFound(f"Document {document_id} not found")
        with self.db.transaction() as cursor:
            self._purge_segments(cursor, document_id)
            cursor.execute("DELETE FROM document_groups WHERE document_id = ?", [document_id])
            cursor.execute("DELETE FROM documents WHERE id = ?", [document_id])
        logger.info("Deleted document %s", document_id)

    # Internal helpers -------------------------------------------------

    def _process_path(
        self,
        path: Path,
        groups: Sequence[int | str] | None,
        replace: bool,
    ) -> PathResult:
        try:
            loaded = self.loader_registry.load(path)
        except Exception as exc:
            logger.exception("Failed to load %s: %s", path, exc)
            return PathResult(path=path, status="error", detail=str(exc))

        if not loaded.text.strip():
            logger.warning("Could not extract content from %s", path)
            return PathResult(path=path, status="error", detail="Could not extract content")

        try:
            result = self.ingest(
                loaded.title,
                loaded.text,
                file_type=loaded.file_type,
                size_bytes=loaded.size_bytes,
                groups=groups,
                replace=replace,
            )
        except Exception as exc:
            logger.exception("Failed to persist %s: %s", path, exc)
            return PathResult(path=path, status="error", detail=str(exc))
        return PathResult(
            path=path,
            status="replaced" if result.replaced else "processed",
            document_id=result.document_id,
            segment_count=result.segment_count,
        )

    def _find_existing(self, title: str, file_type: str) -> int | None:
        document_id = self.db.scalar(
            "SELECT id FROM documents WHERE title = ? AND file_type = ? ORDER BY id LIMIT 1",
            [title, file_type],
        )
        return int(document_id) if document_id is not None else None

    @staticmethod
    def _purge_segments(cursor: sqlite3.Cursor, document_id: int) -> None:
        cursor.execute(_PURGE_QUEUE_SQL, [document_id])
        cursor.execute(
            "DELETE FROM embeddings WHERE chunk_id IN (SELECT id FROM chunks WHERE document_id = ?)",
            [document_id],
        )
        cursor.execute("DELETE FROM chunks WHERE document_id = ?", [document_id])


def _document_key() -> str:
    return f"doc_{uuid.uuid4().hex}"


__all__ = ["IngestPipeline"]
