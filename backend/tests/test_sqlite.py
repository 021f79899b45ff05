"""Tests for the shared SQLite handle."""

from __future__ import annotations

import threading
import time

import pytest


def _group_names(db) -> set[str]:
    return {row["name"] for row in db.query("SELECT name FROM content_groups")}


def test_transaction_rolls_back_on_error(db) -> None:
    with pytest.raises(RuntimeError):
        with db.transaction() as cursor:
            cursor.execute("INSERT INTO content_groups (name, created_at) VALUES ('gone', 0)")
            raise RuntimeError("boom")
    assert "gone" not in _group_names(db)


def test_transactions_from_other_threads_do_not_interleave(db) -> None:
    inside = threading.Event()
    proceed = threading.Event()

    def failing_writer() -> None:
        with pytest.raises(RuntimeError):
            with db.transaction() as cursor:
                cursor.execute("INSERT INTO content_groups (name, created_at) VALUES ('rolled-back', 0)")
                inside.set()
                proceed.wait(5)
                raise RuntimeError("abort")

    def writer() -> None:
        with db.transaction() as cursor:
            cursor.execute("INSERT INTO content_groups (name, created_at) VALUES ('kept', 0)")

    first = threading.Thread(target=failing_writer)
    first.start()
    assert inside.wait(5)
    second = threading.Thread(target=writer)
    second.start()
    time.sleep(0.05)
    assert second.is_alive()
    proceed.set()
    first.join(5)
    second.join(5)

    names = _group_names(db)
    assert "kept" in names
    assert "rolled-back" not in names


def test_scalar_and_fetchone(db) -> None:
    assert db.scalar("SELECT COUNT(*) FROM content_groups") == 1
    assert db.fetchone("SELECT name FROM content_groups")["name"] == "default"
    assert db.fetchone("SELECT name FROM content_groups WHERE id = -1") is None
