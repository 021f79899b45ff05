"""Caller-driven embedding queue.

Entries move ``pending -> processing -> completed | failed``. Draining is done in
bounded batches by whoever calls :meth:`EmbeddingQueue.drain`; there is no background
worker. Claiming an entry is a conditional update, so two concurrent drains never
process the same entry.
"""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import asdict, dataclass, field
from typing import Any, Sequence

from vector_lite.core.errors import EntryReleased, SegmentVanished, VectorLiteError
from vector_lite.core.logging import get_logger
from vector_lite.core.metrics import PENDING_ENTRIES, QUEUE_ENTRIES
from vector_lite.db.sqlite import SQLiteDatabase, placeholders
from vector_lite.embeddings.client import EmbeddingClient
from vector_lite.embeddings.codec import encode_vector
from vector_lite.embeddings.providers import EmbeddingVector
from vector_lite.models.entities import QueueEntry
from vector_lite.queue.state import QueueStatus, transition
from vector_lite.utils.time import now_ms

logger = get_logger(__name__)

_UPSERT_EMBEDDING = """
    INSERT INTO embeddings (chunk_id, embedding, model, dimensions, created_at)
    VALUES (?, ?, ?, ?, ?)
    ON CONFLICT(chunk_id) DO UPDATE SET
      embedding = excluded.embedding,
      model = excluded.model,
      dimensions = excluded.dimensions,
      created_at = excluded.created_at
"""


@dataclass(slots=True)
class EntryResult:
    entry_id: int
    chunk_id: int
    success: bool
    error: str | None = None


@dataclass(slots=True)
class DrainReport:
    """Progress snapshot returned by one drain call."""

    results: list[EntryResult] = field(default_factory=list)
    total: int = 0
    completed: int = 0
    batch_offset: int = 0
    has_more: bool = False

    @property
    def progress_percent(self) -> float:
        if self.total <= 0:
            return 100.0
        return round(self.completed / self.total * 100, 1)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["progress_percent"] = self.progress_percent
        return payload


class EmbeddingQueue:
    def __init__(
        self,
        db: SQLiteDatabase,
        client: EmbeddingClient,
        provider: str | None = None,
    ) -> None:
        self.db = db
        self.client = client
        self.provider = provider

    def enqueue(self, chunk_id: int, content: str, cursor: sqlite3.Cursor | None = None) -> int:
        """Add a pending entry; pass ``cursor`` to join the caller's transaction."""
        now = now_ms()
        sql = """
            INSERT INTO embedding_queue (chunk_id, content, status, attempts, created_at, updated_at)
            VALUES (?, ?, ?, 0, ?, ?)
        """
        params = [chunk_id, content, QueueStatus.PENDING.value, now, now]
        if cursor is not None:
            cursor.execute(sql, params)
            return int(cursor.lastrowid)
        with self.db.transaction() as own_cursor:
            own_cursor.execute(sql, params)
            return int(own_cursor.lastrowid)

    def drain(
        self,
        document_ids: Sequence[int] | None = None,
        batch_size: int = 10,
        batch_offset: int = 0,
        limit_total: int | None = None,
        cancel: threading.Event | None = None,
    ) -> DrainReport:
        """Process one batch of pending entries, oldest first.

        ``document_ids`` scopes the drain to those documents' segments; ``None`` means
        every pending entry. Batch ``k`` of a run covers positions
        ``[k * batch_size, (k + 1) * batch_size)`` of the pending set as it stood when
        the run started. Earlier batches have already left ``pending``, so that window
        is the head of what is pending now. ``cancel`` is checked between entries;
        entries not reached stay pending.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if batch_offset < 0:
            raise ValueError("batch_offset must not be negative")
        if document_ids is not None and not document_ids:
            return DrainReport(batch_offset=batch_offset)

        visited = batch_offset * batch_size
        cap = None if limit_total is None else max(0, limit_total - visited)
        remaining = self._count(QueueStatus.PENDING, document_ids)
        if cap is not None:
            remaining = min(remaining, cap)
        batch = self._pending(document_ids, min(batch_size, remaining))

        results: list[EntryResult] = []
        consumed = 0
        for entry in batch:
            if cancel is not None and cancel.is_set():
                logger.info("Drain cancelled after %s of %s entries", consumed, len(batch))
                break
            consumed += 1
            result = self._process(entry)
            if result is not None:
                results.append(result)

        total = visited + remaining
        completed = visited + consumed
        report = DrainReport(
            results=results,
            total=total,
            completed=completed,
            batch_offset=batch_offset,
            has_more=completed < total,
        )
        self._refresh_gauge()
        logger.info(
            "Drained %s queue entries (%s/%s)",
            len(results),
            completed,
            total,
            extra={"ctx_batch_offset": batch_offset, "ctx_failed": sum(not r.success for r in results)},
        )
        return report

    def process_pending(self, batch_size: int = 5) -> DrainReport:
        """Bulk maintenance: one unscoped, oldest-first batch."""
        return self.drain(None, batch_size=batch_size, batch_offset=0)

    def requeue(self, document_ids: Sequence[int] | None = None) -> int:
        """Reset failed entries in scope to pending with attempts and error cleared.

        Failed entries whose segment no longer exists can never succeed; they are
        deleted instead of being retried.
        """
        self._drop_orphaned_failures()
        count = self._move_all(QueueStatus.FAILED, QueueStatus.PENDING, document_ids, reset=True)
        logger.info("Requeued %s failed entries", count)
        self._refresh_gauge()
        return count

    def recover_stranded(self) -> int:
        """Return entries left in ``processing`` by a crashed process to ``pending``."""
        count = self._move_all(QueueStatus.PROCESSING, QueueStatus.PENDING, None)
        if count:
            logger.warning("Recovered %s stranded queue entries", count)
        self._refresh_gauge()
        return count

    def counts(self, document_ids: Sequence[int] | None = None) -> dict[str, int]:
        counts = {status.value: 0 for status in QueueStatus}
        if document_ids is not None and not document_ids:
            return counts
        scope_sql, scope_params = _scope_clause(document_ids)
        rows = self.db.query(
            f"SELECT status, COUNT(*) AS n FROM embedding_queue WHERE 1 = 1{scope_sql} GROUP BY status",
            scope_params,
        )
        for row in rows:
            counts[row["status"]] = int(row["n"])
        return counts

    def entries(
        self,
        document_ids: Sequence[int] | None = None,
        status: QueueStatus | None = None,
    ) -> list[QueueEntry]:
        scope_sql, params = _scope_clause(document_ids)
        if status is not None:
            scope_sql += " AND status = ?"
            params.append(QueueStatus(status).value)
        rows = self.db.query(
            f"SELECT * FROM embedding_queue WHERE 1 = 1{scope_sql} ORDER BY created_at, id",
            params,
        )
        return [QueueEntry.from_row(row) for row in rows]

    # Internal helpers -------------------------------------------------

    def _process(self, entry: QueueEntry) -> EntryResult | None:
        if not self._move(entry.id, QueueStatus.PENDING, QueueStatus.PROCESSING):
            logger.debug("Queue entry %s was claimed elsewhere", entry.id)
            return None
        try:
            if self.db.fetchone("SELECT 1 FROM chunks WHERE id = ?", [entry.chunk_id]) is None:
                raise _vanished(entry)
            vector = self.client.embed(entry.content, provider=self.provider)
            self._complete(entry, vector)
        except VectorLiteError as exc:
            return self._fail(entry, str(exc))
        except Exception as exc:
            logger.exception("Unexpected error embedding queue entry %s", entry.id)
            return self._fail(entry, str(exc) or type(exc).__name__)
        QUEUE_ENTRIES.labels(outcome="completed").inc()
        return EntryResult(entry_id=entry.id, chunk_id=entry.chunk_id, success=True)

    def _complete(self, entry: QueueEntry, vector: EmbeddingVector) -> None:
        with self.db.transaction() as cursor:
            exists = cursor.execute("SELECT 1 FROM chunks WHERE id = ?", [entry.chunk_id]).fetchone()
            if exists is None:
                raise _vanished(entry)
            cursor.execute(
                _UPSERT_EMBEDDING,
                [entry.chunk_id, encode_vector(vector.values), vector.model, vector.dimensions, now_ms()],
            )
            if not self._move(entry.id, QueueStatus.PROCESSING, QueueStatus.COMPLETED, cursor=cursor):
                # Raising rolls the upsert back; whoever moved the entry owns it now.
                raise EntryReleased(f"Queue entry {entry.id} left processing before completion")

    def _fail(self, entry: QueueEntry, message: str) -> EntryResult:
        logger.warning(
            "Embedding failed for queue entry %s: %s",
            entry.id,
            message,
            extra={"ctx_entry_id": entry.id, "ctx_chunk_id": entry.chunk_id},
        )
        self._move(entry.id, QueueStatus.PROCESSING, QueueStatus.FAILED, error=message)
        QUEUE_ENTRIES.labels(outcome="failed").inc()
        return EntryResult(entry_id=entry.id, chunk_id=entry.chunk_id, success=False, error=message)

    def _move(
        self,
        entry_id: int,
        current: QueueStatus,
        target: QueueStatus,
        cursor: sqlite3.Cursor | None = None,
        error: str | None = None,
    ) -> bool:
        """Conditionally move one entry; False if it was no longer in ``current``."""
        transition(current, target)
        assignments = ["status = ?", "updated_at = ?"]
        params: list[Any] = [target.value, now_ms()]
        if target is QueueStatus.FAILED:
            assignments += ["attempts = attempts + 1", "error_message = ?"]
            params.append(error)
        params += [entry_id, current.value]
        sql = f"UPDATE embedding_queue SET {', '.join(assignments)} WHERE id = ? AND status = ?"
        if cursor is not None:
            return cursor.execute(sql, params).rowcount == 1
        with self.db.transaction() as own_cursor:
            return own_cursor.execute(sql, params).rowcount == 1

    def _move_all(
        self,
        current: QueueStatus,
        target: QueueStatus,
        document_ids: Sequence[int] | None,
        reset: bool = False,
    ) -> int:
        transition(current, target)
        if document_ids is not None and not document_ids:
            return 0
        assignments = "status = ?, updated_at = ?"
        if reset:
            assignments += ", attempts = 0, error_message = NULL"
        scope_sql, scope_params = _scope_clause(document_ids)
        with self.db.transaction() as cursor:
            updated = cursor.execute(
                f"UPDATE embedding_queue SET {assignments} WHERE status = ?{scope_sql}",
                [target.value, now_ms(), current.value, *scope_params],
            ).rowcount
        return int(updated)

    def _drop_orphaned_failures(self) -> None:
        with self.db.transaction() as cursor:
            dropped = cursor.execute(
                """
                DELETE FROM embedding_queue
                WHERE status = ? AND NOT EXISTS (SELECT 1 FROM chunks c WHERE c.id = embedding_queue.chunk_id)
                """,
                [QueueStatus.FAILED.value],
            ).rowcount
        if dropped:
            logger.info("Dropped %s failed entries whose segments were deleted", dropped)

    def _count(self, status: QueueStatus, document_ids: Sequence[int] | None) -> int:
        scope_sql, scope_params = _scope_clause(document_ids)
        return int(
            self.db.scalar(
                f"SELECT COUNT(*) FROM embedding_queue WHERE status = ?{scope_sql}",
                [status.value, *scope_params],
            )
        )

    def _pending(self, document_ids: Sequence[int] | None, limit: int) -> list[QueueEntry]:
        if limit <= 0:
            return []
        scope_sql, scope_params = _scope_clause(document_ids)
        rows = self.db.query(
            f"""
            SELECT * FROM embedding_queue
            WHERE status = ?{scope_sql}
            ORDER BY created_at, id
            LIMIT ?
            """,
            [QueueStatus.PENDING.value, *scope_params, limit],
        )
        return [QueueEntry.from_row(row) for row in rows]

    def _refresh_gauge(self) -> None:
        PENDING_ENTRIES.set(self._count(QueueStatus.PENDING, None))


def _vanished(entry: QueueEntry) -> SegmentVanished:
    return SegmentVanished(f"Segment {entry.chunk_id} was deleted during processing")


def _scope_clause(document_ids: Sequence[int] | None) -> tuple[str, list[Any]]:
    if document_ids is None:
        return "", []
    ids = list(document_ids)
    return (
        f" AND chunk_id IN (SELECT id FROM chunks WHERE document_id IN ({placeholders(ids)}))",
        ids,
    )


__all__ = ["EmbeddingQueue", "DrainReport", "EntryResult"]
