"""Tests for content groups."""

from __future__ import annotations

import pytest

from vector_lite.core.errors import DefaultGroupProtected, DocumentNotFound, GroupNotFound


def test_default_group_is_seeded(groups) -> None:
    names = [group.name for group in groups.list_groups()]
    assert names == ["default"]
    assert groups.get(groups.default_group_id()).description == "Default content group"


def test_save_group_creates_and_updates(groups) -> None:
    created = groups.save_group("  research ", description="papers", color="")
    assert (created.name, created.description, created.color) == ("research", "papers", "#007cba")

    updated = groups.save_group("reading", color="#ff0000", group_id=created.id)
    assert updated.id == created.id
    assert (updated.name, updated.color) == ("reading", "#ff0000")
    assert [group.name for group in groups.list_groups()] == ["default", "reading"]


def test_save_group_validation(groups) -> None:
    with pytest.raises(ValueError):
        groups.save_group("   ")
    groups.save_group("dupe")
    with pytest.raises(ValueError, match="already exists"):
        groups.save_group("dupe")
    with pytest.raises(DefaultGroupProtected):
        groups.save_group("renamed", group_id=groups.default_group_id())
    with pytest.raises(GroupNotFound):
        groups.save_group("ghost", group_id=9999)


def test_default_group_cannot_be_deleted(groups) -> None:
    with pytest.raises(DefaultGroupProtected):
        groups.delete_group(groups.default_group_id())
    with pytest.raises(GroupNotFound):
        groups.delete_group(12345)


def test_deleting_last_group_reattaches_default(groups, pipeline, make_text) -> None:
    only = groups.save_group("only")
    both = groups.save_group("both")
    lonely = pipeline.ingest("lonely", make_text("l", 1), groups=["only"])
    shared = pipeline.ingest("shared", make_text("s", 1), groups=["only", "both"])

    groups.delete_group(only.id)

    assert [group.name for group in groups.document_groups(lonely.document_id)] == ["default"]
    assert [group.name for group in groups.document_groups(shared.document_id)] == ["both"]
    assert both.id in [group.id for group in groups.list_groups()]


def test_set_document_groups(groups, pipeline, make_text) -> None:
    groups.save_group("alpha")
    doc = pipeline.ingest("doc", make_text("d", 1))

    assigned = groups.set_document_groups(doc.document_id, ["alpha"])
    assert [group.name for group in assigned] == ["alpha"]

    cleared = groups.set_document_groups(doc.document_id, [])
    assert [group.name for group in cleared] == ["default"]

    with pytest.raises(DocumentNotFound):
        groups.set_document_groups(999, ["alpha"])


def test_resolve_accepts_ids_numeric_strings_and_names(groups) -> None:
    alpha = groups.save_group("alpha")
    beta = groups.save_group("beta")
    assert groups.resolve([alpha.id, str(beta.id), "alpha", "missing"]) == [alpha.id, beta.id]
    assert groups.resolve(None) == [groups.default_group_id()]
    assert groups.resolve([424242]) == [groups.default_group_id()]
