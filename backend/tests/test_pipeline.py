"""Tests for the ingest pipeline."""

from __future__ import annotations

from pathlib import Path

import pytest

from vector_lite.core.errors import DocumentNotFound


def _group_names(groups, document_id: int) -> list[str]:
    return [group.name for group in groups.document_groups(document_id)]


def test_ingest_stores_segments_and_queues_them(pipeline, queue, db, make_text, segment_text) -> None:
    result = pipeline.ingest("notes", make_text("notes", 3), file_type="TXT")

    assert result.segment_count == 3 and not result.replaced
    rows = db.query("SELECT chunk_index, content, token_count FROM chunks WHERE document_id = ? ORDER BY chunk_index", [result.document_id])
    assert [row["chunk_index"] for row in rows] == [0, 1, 2]
    assert rows[1]["content"] == segment_text("notes", 1)
    assert rows[1]["token_count"] == -(-len(segment_text("notes", 1)) // 4)
    entries = queue.entries([result.document_id])
    assert [entry.content for entry in entries] == [row["content"] for row in rows]
    assert all(entry.status.value == "pending" and entry.attempts == 0 for entry in entries)
    document = db.execute("SELECT file_type, file_size, document_key FROM documents WHERE id = ?", [result.document_id]).fetchone()
    assert document["file_type"] == "txt"
    assert document["file_size"] == len(make_text("notes", 3).encode("utf-8"))
    assert document["document_key"].startswith("doc_")


def test_empty_text_still_creates_document(pipeline, groups, queue) -> None:
    result = pipeline.ingest("empty", "   ")
    assert result.segment_count == 0
    assert queue.counts([result.document_id])["pending"] == 0
    assert _group_names(groups, result.document_id) == ["default"]


def test_groups_resolve_by_name_and_id(pipeline, groups, make_text) -> None:
    alpha = groups.save_group("alpha")
    groups.save_group("beta")
    result = pipeline.ingest("doc", make_text("doc", 1), groups=[str(alpha.id), "beta", "unknown"])
    assert _group_names(groups, result.document_id) == ["alpha", "beta"]


def test_unknown_groups_fall_back_to_default(pipeline, groups, make_text) -> None:
    result = pipeline.ingest("doc", make_text("doc", 1), groups=["nope"])
    assert _group_names(groups, result.document_id) == ["default"]


def test_replace_rewrites_document_in_place(pipeline, queue, groups, db, make_text) -> None:
    groups.save_group("alpha")
    groups.save_group("beta")
    original = pipeline.ingest("report", make_text("old", 2), groups=["alpha"])
    queue.drain(batch_size=10)
    assert db.scalar("SELECT COUNT(*) FROM embeddings") == 2

    updated = pipeline.ingest("report", make_text("new", 3), groups=["beta"], replace=True)

    assert updated.document_id == original.document_id
    assert updated.replaced and updated.segment_count == 3
    assert db.scalar("SELECT COUNT(*) FROM documents") == 1
    assert db.scalar("SELECT COUNT(*) FROM embeddings") == 0
    assert db.scalar("SELECT content FROM documents WHERE id = ?", [original.document_id]) == make_text("new", 3)
    assert queue.counts() == {"pending": 3, "processing": 0, "completed": 0, "failed": 0}
    assert all(entry.content.startswith("new") for entry in queue.entries())
    assert _group_names(groups, original.document_id) == ["alpha", "beta"]


def test_replace_without_match_inserts(pipeline, db, make_text) -> None:
    pipeline.ingest("report", make_text("a", 1), file_type="md")
    result = pipeline.ingest("report", make_text("b", 1), file_type="txt", replace=True)
    assert not result.replaced
    assert db.scalar("SELECT COUNT(*) FROM documents") == 2


def test_same_title_without_replace_creates_new_document(pipeline, make_text) -> None:
    first = pipeline.ingest("report", make_text("a", 1))
    second = pipeline.ingest("report", make_text("b", 1))
    assert first.document_id != second.document_id


def test_find_duplicates_matches_stem_and_extension(pipeline, make_text) -> None:
    existing = pipeline.ingest("notes", make_text("n", 1), file_type="txt")
    duplicates = pipeline.find_duplicates(["notes.TXT", "notes.md", "other.txt"])
    assert len(duplicates) == 1
    assert duplicates[0].filename == "notes.TXT"
    assert duplicates[0].existing_id == existing.document_id
    assert duplicates[0].existing_title == "notes"
    assert duplicates[0].existing_type == "txt"


def test_delete_document_removes_everything(pipeline, queue, db, make_text) -> None:
    doc = pipeline.ingest("doc", make_text("doc", 3))
    queue.drain(batch_size=2)

    pipeline.delete_document(doc.document_id)

    for table in ("documents", "chunks", "embeddings", "embedding_queue", "document_groups"):
        assert db.scalar(f"SELECT COUNT(*) FROM {table}") == 0, table
    with pytest.raises(DocumentNotFound):
        pipeline.delete_document(doc.document_id)


def test_ingest_paths_reports_each_file(pipeline, tmp_path: Path) -> None:
    good = tmp_path / "guide.md"
    good.write_text("---\ntitle: User Guide\n---\n\nFirst paragraph.\n\nSecond paragraph.", encoding="utf-8")
    blank = tmp_path / "blank.txt"
    blank.write_text("  \n", encoding="utf-8")
    missing = tmp_path / "missing.txt"

    results = pipeline.ingest_paths([good, blank, missing])

    assert [item.status for item in results] == ["processed", "error", "error"]
    assert results[0].document_id is not None and results[0].segment_count >= 1
    assert results[1].detail == "Could not extract content"
    assert "No such file" in results[2].detail
    assert pipeline.find_duplicates(["User Guide.md"])[0].existing_id == results[0].document_id


def test_ingest_paths_replace(pipeline, tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("Version one.", encoding="utf-8")
    first = pipeline.ingest_paths([path])[0]
    path.write_text("Version two.", encoding="utf-8")
    second = pipeline.ingest_paths([path], replace=True)[0]
    assert second.status == "replaced"
    assert second.document_id == first.document_id


def test_blank_title_is_rejected(pipeline) -> None:
    with pytest.raises(ValueError):
        pipeline.ingest("  ", "text")
