"""Internal dataclasses representing persisted entities."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from vector_lite.queue.state import QueueStatus


@dataclass(slots=True)
class Document:
    id: int
    title: str
    document_key: str
    file_type: str | None
    file_size: int | None
    created_at: int
    updated_at: int

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Document":
        return cls(
            id=row["id"],
            title=row["title"],
            document_key=row["document_key"],
            file_type=row["file_type"],
            file_size=row["file_size"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


@dataclass(slots=True)
class Group:
    id: int
    name: str
    description: str
    color: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Group":
        return cls(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            color=row["color"],
        )


@dataclass(slots=True)
class QueueEntry:
    id: int
    chunk_id: int
    content: str
    status: QueueStatus
    attempts: int
    error_message: str | None
    created_at: int

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "QueueEntry":
        return cls(
            id=row["id"],
            chunk_id=row["chunk_id"],
            content=row["content"],
            status=QueueStatus(row["status"]),
            attempts=row["attempts"],
            error_message=row["error_message"],
            created_at=row["created_at"],
        )


__all__ = ["Document", "Group", "QueueEntry"]
