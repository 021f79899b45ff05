"""API integration tests."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setenv("VLA_DEFAULT_PROVIDER", "hashed")
    monkeypatch.setenv("VLA_SEARCH_THRESHOLD", "0.1")
    from vector_lite.app import app

    with TestClient(app) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


def test_ingest_drain_and_search_flow(client: TestClient) -> None:
    ingest_resp = client.post(
        "/documents",
        json={"title": "retrieval", "text": "This is a sample document about retrieval.\n\nSecond paragraph on vectors."},
    )
    assert ingest_resp.status_code == 200
    document = ingest_resp.json()
    assert document["segment_count"] == 1

    assert client.get("/queue/counts").json()["pending"] == 1

    drain_resp = client.post("/queue/drain", json={"batch_size": 5})
    assert drain_resp.status_code == 200
    report = drain_resp.json()
    assert report["has_more"] is False
    assert report["progress_percent"] == 100.0
    assert [item["success"] for item in report["results"]] == [True]

    search_resp = client.post("/search", json={"query": "retrieval vectors"})
    assert search_resp.status_code == 200
    results = search_resp.json()["results"]
    assert results, "Expected at least one result"
    assert results[0]["document_id"] == document["document_id"]
    assert results[0]["model"] == "hashed-bow"

    stats = client.get("/stats").json()
    assert stats["documents"] == 1 and stats["embeddings"] == 1
    assert stats["default_provider"] == "hashed"
    assert stats["queue"]["completed"] == 1


def test_ingest_paths_and_duplicates(tmp_path: Path, client: TestClient) -> None:
    sample = tmp_path / "sample.md"
    sample.write_text("# Sample\n\nThis is a sample document about retrieval.", encoding="utf-8")

    resp = client.post("/documents/paths", json={"paths": [str(sample), str(tmp_path / "missing.txt")]})
    assert resp.status_code == 200
    statuses = [item["status"] for item in resp.json()["results"]]
    assert statuses == ["processed", "error"]

    duplicates = client.post("/documents/duplicates", json={"filenames": ["sample.md", "other.md"]}).json()
    assert [item["filename"] for item in duplicates["duplicates"]] == ["sample.md"]


def test_groups_and_membership(client: TestClient) -> None:
    created = client.post("/groups", json={"name": "research", "color": "#123456"})
    assert created.status_code == 200
    group_id = created.json()["id"]

    doc = client.post("/documents", json={"title": "paper", "text": "Body.", "groups": ["research"]}).json()
    groups = client.get(f"/documents/{doc['document_id']}/groups").json()
    assert [group["name"] for group in groups] == ["research"]

    replaced = client.put(f"/documents/{doc['document_id']}/groups", json={"groups": []}).json()
    assert [group["name"] for group in replaced] == ["default"]

    assert client.delete(f"/groups/{group_id}").status_code == 200
    names = [group["name"] for group in client.get("/groups").json()]
    assert names == ["default"]


def test_default_group_is_protected(client: TestClient) -> None:
    default = next(group for group in client.get("/groups").json() if group["name"] == "default")
    resp = client.delete(f"/groups/{default['id']}")
    assert resp.status_code == 409
    assert resp.json()["error"] == "DefaultGroupProtected"


def test_not_found_and_bad_input(client: TestClient) -> None:
    assert client.delete("/documents/999").status_code == 404
    assert client.get("/documents/999/groups").status_code == 404
    assert client.post("/groups", json={"name": "  "}).status_code == 400
    assert client.post("/search", json={"query": "   "}).status_code == 400


def test_failed_entries_can_be_requeued(client: TestClient) -> None:
    from vector_lite.api.dependencies import get_queue

    doc = client.post("/documents", json={"title": "doc", "text": "Some text to embed."}).json()
    queue = get_queue()
    queue.provider = "openai"  # no API key configured
    report = client.post("/queue/drain", json={"document_ids": [doc["document_id"]]}).json()
    assert report["results"][0]["success"] is False
    assert "API key" in report["results"][0]["error"]

    queue.provider = None
    assert client.post("/queue/requeue", json={}).json() == {"requeued": 1}
    processed = client.post("/queue/process", json={"batch_size": 5}).json()
    assert [item["success"] for item in processed["results"]] == [True]


def test_embedding_test_endpoint(client: TestClient) -> None:
    resp = client.post("/embeddings/test", json={"provider": "hashed"})
    assert resp.status_code == 200
    assert resp.json() == {"provider": "hashed", "model": "hashed-bow", "dimensions": 384}

    assert client.post("/embeddings/test", json={"provider": "nope"}).status_code == 400


def test_metrics_endpoint(client: TestClient) -> None:
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "vla_pending_entries" in resp.text


def test_health_answers_while_drain_waits_on_provider(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    from vector_lite.api.dependencies import get_embedding_client

    hashed = get_embedding_client().provider("hashed")
    real_embed = hashed.embed
    entered = threading.Event()
    release = threading.Event()

    def slow_embed(text: str):
        entered.set()
        release.wait(5)
        return real_embed(text)

    monkeypatch.setattr(hashed, "embed", slow_embed)
    client.post("/documents", json={"title": "slow", "text": "Waiting on the provider."})

    with ThreadPoolExecutor(max_workers=1) as pool:
        drain = pool.submit(client.post, "/queue/drain", json={"batch_size": 1})
        assert entered.wait(5)
        health = client.get("/health")
        drain_finished_first = drain.done()
        release.set()
        report = drain.result(timeout=10).json()

    assert health.status_code == 200
    assert not drain_finished_first
    assert [item["success"] for item in report["results"]] == [True]
