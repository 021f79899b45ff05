"""SQLite storage handle and schema bootstrap."""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, Sequence

from vector_lite.utils.time import now_ms

DEFAULT_PRAGMAS = (
    "PRAGMA journal_mode=WAL;",
    "PRAGMA synchronous=NORMAL;",
    "PRAGMA foreign_keys=ON;",
    "PRAGMA temp_store=MEMORY;",
)

DEFAULT_GROUP = "default"
DEFAULT_GROUP_DESCRIPTION = "Default content group"


class SQLiteDatabase:
    """Explicit storage handle passed to every service; owns one sqlite3 connection.

    The API serves requests from a thread pool, so every statement and every
    :meth:`transaction` block runs under one re-entrant lock. Writes belong in
    :meth:`transaction`; a bare :meth:`execute` followed by :meth:`commit` from two
    threads could commit or roll back the other thread's statements.
    """

    def __init__(self, db_path: Path | str, read_only: bool = False) -> None:
        self.db_path = Path(db_path).expanduser()
        self.read_only = read_only
        self._connection: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    def connect(self) -> sqlite3.Connection:
        with self._lock:
            if self._connection is None:
                if self.read_only:
                    uri = f"file:{self.db_path}?mode=ro"
                    self._connection = sqlite3.connect(uri, uri=True, check_same_thread=False)
                else:
                    self.db_path.parent.mkdir(parents=True, exist_ok=True)
                    self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
                self._connection.row_factory = sqlite3.Row
                for pragma in DEFAULT_PRAGMAS:
                    self._connection.execute(pragma)
            return self._connection

    def close(self) -> None:
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None

    def __enter__(self) -> "SQLiteDatabase":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        self.close()

    def commit(self) -> None:
        with self._lock:
            if self._connection is not None:
                self._connection.commit()

    def rollback(self) -> None:
        with self._lock:
            if self._connection is not None:
                self._connection.rollback()

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> sqlite3.Cursor:
        with self._lock:
            return self.connect().execute(sql, params or [])

    def executemany(self, sql: str, seq_of_params: Iterable[Sequence[Any]]) -> sqlite3.Cursor:
        with self._lock:
            return self.connect().executemany(sql, seq_of_params)

    def query(self, sql: str, params: Sequence[Any] | None = None) -> list[sqlite3.Row]:
        with self._lock:
            return self.execute(sql, params).fetchall()

    def fetchone(self, sql: str, params: Sequence[Any] | None = None) -> sqlite3.Row | None:
        with self._lock:
            return self.execute(sql, params).fetchone()

    def scalar(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        row = self.fetchone(sql, params)
        return row[0] if row is not None else None

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """Run a block of statements atomically; rolls back and re-raises on error.

        The lock is held for the whole block, so other threads wait rather than
        interleave statements into it.
        """
        with self._lock:
            conn = self.connect()
            cursor = conn.cursor()
            try:
                yield cursor
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                cursor.close()

    def ensure_schema(self, schema_sql: str | None = None) -> None:
        """Create tables if missing and make sure the default group exists."""
        if schema_sql is None:
            schema_sql = Path(__file__).with_name("schema.sql").read_text(encoding="utf-8")
        with self._lock:
            conn = self.connect()
            conn.executescript(schema_sql)
            conn.execute(
                "INSERT OR IGNORE INTO content_groups (name, description, created_at) VALUES (?, ?, ?)",
                [DEFAULT_GROUP, DEFAULT_GROUP_DESCRIPTION, now_ms()],
            )
            conn.commit()


def placeholders(values: Sequence[Any]) -> str:
    return ",".join("?" for _ in values)


def database_stats(db: SQLiteDatabase) -> dict[str, int]:
    """Row counts shown on the dashboard."""
    return {
        "documents": int(db.scalar("SELECT COUNT(*) FROM documents")),
        "chunks": int(db.scalar("SELECT COUNT(*) FROM chunks")),
        "embeddings": int(db.scalar("SELECT COUNT(*) FROM embeddings")),
        "pending_embeddings": int(
            db.scalar("SELECT COUNT(*) FROM embedding_queue WHERE status = 'pending'")
        ),
        "failed_embeddings": int(
            db.scalar("SELECT COUNT(*) FROM embedding_queue WHERE status = 'failed'")
        ),
        "groups": int(db.scalar("SELECT COUNT(*) FROM content_groups")),
    }


__all__ = ["SQLiteDatabase", "DEFAULT_GROUP", "placeholders", "database_stats"]
