"""CLI entrypoint for Vector Lite."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List, Optional

import requests
import typer

app = typer.Typer(name="vla", help="Vector Lite command-line interface")

DEFAULT_HOST = "http://127.0.0.1:8000"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("VLA_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=120, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


@app.command()
def ingest(
    paths: List[Path] = typer.Argument(..., help="Files to ingest"),
    group: Optional[List[str]] = typer.Option(None, "--group", "-g", help="Group name or id (repeatable)"),
    replace: bool = typer.Option(False, "--replace", help="Replace documents with the same title and type"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Ingest files; their segments are queued for embedding."""
    body: dict[str, object] = {
        "paths": [str(path.expanduser().resolve()) for path in paths],
        "replace": replace,
    }
    if group:
        body["groups"] = group
    resp = _request("POST", "/documents/paths", host=host, json=body)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def drain(
    batch_size: int = typer.Option(10, "--batch-size", min=1, help="Entries per batch"),
    document: Optional[List[int]] = typer.Option(None, "--document", "-d", help="Restrict to a document id"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Drain pending embeddings batch by batch until nothing is left."""
    offset = 0
    failed = 0
    while True:
        body: dict[str, object] = {"batch_size": batch_size, "batch_offset": offset}
        if document:
            body["document_ids"] = document
        report = _request("POST", "/queue/drain", host=host, json=body).json()
        failed += sum(1 for item in report["results"] if not item["success"])
        typer.echo(f"{report['completed']}/{report['total']} ({report['progress_percent']:.1f}%)")
        if not report["has_more"]:
            break
        offset += 1
    if failed:
        typer.echo(f"{failed} entries failed; run `vla requeue` to retry them", err=True)


@app.command()
def requeue(
    document: Optional[List[int]] = typer.Option(None, "--document", "-d", help="Restrict to a document id"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Move failed entries back to pending."""
    body: dict[str, object] = {}
    if document:
        body["document_ids"] = document
    resp = _request("POST", "/queue/requeue", host=host, json=body)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    limit: Optional[int] = typer.Option(None, "--limit", help="Maximum number of results"),
    threshold: Optional[float] = typer.Option(None, "--threshold", help="Minimum similarity score"),
    group: Optional[List[str]] = typer.Option(None, "--group", "-g", help="Restrict to group name (repeatable)"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Run a semantic search."""
    payload: dict[str, object] = {"query": query}
    if limit is not None:
        payload["limit"] = limit
    if threshold is not None:
        payload["threshold"] = threshold
    if group:
        payload["groups"] = group
    resp = _request("POST", "/search", host=host, json=payload)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def stats(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show document, segment and queue counts."""
    resp = _request("GET", "/stats", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    app()
