"""Content groups and document membership."""

from __future__ import annotations

import sqlite3
from typing import Iterable, Sequence

from vector_lite.core.errors import DefaultGroupProtected, DocumentNotFound, GroupNotFound
from vector_lite.core.logging import get_logger
from vector_lite.db.sqlite import DEFAULT_GROUP, SQLiteDatabase, placeholders
from vector_lite.models.entities import Group
from vector_lite.utils.time import now_ms

logger = get_logger(__name__)

DEFAULT_COLOR = "#007cba"


class GroupService:
    """Group CRUD. The ``default`` group always exists and every document belongs somewhere."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self.db = db

    def list_groups(self) -> list[Group]:
        rows = self.db.query("SELECT id, name, description, color FROM content_groups ORDER BY name")
        return [Group.from_row(row) for row in rows]

    def get(self, group_id: int) -> Group:
        row = self.db.fetchone(
            "SELECT id, name, description, color FROM content_groups WHERE id = ?",
            [group_id],
        )
        if row is None:
            raise GroupNotFound(f"Group {group_id} not found")
        return Group.from_row(row)

    def default_group_id(self) -> int:
        group_id = self.db.scalar("SELECT id FROM content_groups WHERE name = ?", [DEFAULT_GROUP])
        if group_id is None:
            # ensure_schema seeds it; recreate if someone removed it by hand.
            with self.db.transaction() as cursor:
                cursor.execute(
                    "INSERT INTO content_groups (name, description, created_at) VALUES (?, ?, ?)",
                    [DEFAULT_GROUP, "Default content group", now_ms()],
                )
                group_id = cursor.lastrowid
        return int(group_id)

    def save_group(
        self,
        name: str,
        description: str = "",
        color: str = DEFAULT_COLOR,
        group_id: int | None = None,
    ) -> Group:
        """Create a group, or update ``group_id`` when given."""
        name = (name or "").strip()
        if not name:
            raise ValueError("Group name is required")
        description = (description or "").strip()
        color = (color or "").strip() or DEFAULT_COLOR
        if group_id is not None:
            existing = self.get(group_id)
            if existing.name == DEFAULT_GROUP and name != DEFAULT_GROUP:
                raise DefaultGroupProtected("The default group cannot be renamed")
        try:
            with self.db.transaction() as cursor:
                if group_id is None:
                    cursor.execute(
                        "INSERT INTO content_groups (name, description, color, created_at) VALUES (?, ?, ?, ?)",
                        [name, description, color, now_ms()],
                    )
                    group_id = int(cursor.lastrowid)
                else:
                    cursor.execute(
                        "UPDATE content_groups SET name = ?, description = ?, color = ? WHERE id = ?",
                        [name, description, color, group_id],
                    )
        except sqlite3.IntegrityError:
            raise ValueError(f"Group name already exists: {name}") from None
        logger.info("Saved group %s", name, extra={"ctx_group_id": group_id})
        return self.get(group_id)

    def delete_group(self, group_id: int) -> None:
        group = self.get(group_id)
        if group.name == DEFAULT_GROUP:
            raise DefaultGroupProtected("Cannot delete default group")
        default_id = self.default_group_id()
        with self.db.transaction() as cursor:
            cursor.execute("DELETE FROM content_groups WHERE id = ?", [group_id])
            # Documents left without any membership fall back to default.
            cursor.execute(
                """
                INSERT OR IGNORE INTO document_groups (document_id, group_id, created_at)
                SELECT d.id, ?, ? FROM documents d
                WHERE NOT EXISTS (SELECT 1 FROM document_groups dg WHERE dg.document_id = d.id)
                """,
                [default_id, now_ms()],
            )
        logger.info("Deleted group %s", group.name, extra={"ctx_group_id": group_id})

    def document_groups(self, document_id: int) -> list[Group]:
        self._require_document(document_id)
        rows = self.db.query(
            """
            SELECT g.id, g.name, g.description, g.color
            FROM content_groups g
            JOIN document_groups dg ON g.id = dg.group_id
            WHERE dg.document_id = ?
            ORDER BY g.name
            """,
            [document_id],
        )
        return [Group.from_row(row) for row in rows]

    def set_document_groups(self, document_id: int, groups: Sequence[int | str] | None) -> list[Group]:
        """Replace a document's memberships; an empty selection means ``default``."""
        self._require_document(document_id)
        group_ids = self.resolve(groups)
        with self.db.transaction() as cursor:
            cursor.execute("DELETE FROM document_groups WHERE document_id = ?", [document_id])
            link_groups(cursor, document_id, group_ids)
        return self.document_groups(document_id)

    def resolve(self, groups: Iterable[int | str] | None) -> list[int]:
        """Map ids, numeric strings and names to existing group ids.

        Unknown entries are dropped. If nothing survives, the default group id is returned.
        """
        ids: list[int] = []
        names: list[str] = []
        for item in groups or []:
            if isinstance(item, bool):
                continue
            if isinstance(item, int):
                ids.append(item)
            elif isinstance(item, str) and item.strip().isdigit():
                ids.append(int(item.strip()))
            elif isinstance(item, str) and item.strip():
                names.append(item.strip())

        found: list[int] = []
        if ids:
            rows = self.db.query(f"SELECT id FROM content_groups WHERE id IN ({placeholders(ids)})", ids)
            found.extend(int(row["id"]) for row in rows)
        if names:
            rows = self.db.query(f"SELECT id FROM content_groups WHERE name IN ({placeholders(names)})", names)
            found.extend(int(row["id"]) for row in rows)

        resolved = list(dict.fromkeys(found))
        if not resolved:
            return [self.default_group_id()]
        return resolved

    def _require_document(self, document_id: int) -> None:
        if self.db.scalar("SELECT 1 FROM documents WHERE id = ?", [document_id]) is None:
            raise DocumentNotFound(f"Document {document_id} not found")


def link_groups(cursor: sqlite3.Cursor, document_id: int, group_ids: Iterable[int]) -> None:
    now = now_ms()
    cursor.executemany(
        "INSERT OR IGNORE INTO document_groups (document_id, group_id, created_at) VALUES (?, ?, ?)",
        [(document_id, group_id, now) for group_id in group_ids],
    )


__all__ = ["GroupService", "DEFAULT_COLOR", "link_groups"]
