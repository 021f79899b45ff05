"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class DocumentIngestRequest(BaseModel):
    title: str = Field(min_length=1)
    text: str = ""
    file_type: str = "txt"
    size_bytes: int | None = Field(default=None, ge=0)
    groups: list[int | str] | None = Field(default=None, description="Group ids or names")
    replace: bool = Field(default=False, description="Rewrite a document with the same title and type")


class DocumentIngestResponse(BaseModel):
    document_id: int
    segment_count: int
    replaced: bool


class PathIngestRequest(BaseModel):
    paths: list[str] = Field(min_length=1)
    groups: list[int | str] | None = None
    replace: bool = False


class PathIngestResult(BaseModel):
    path: str
    status: Literal["processed", "replaced", "error"]
    document_id: int | None = None
    segment_count: int = 0
    detail: str | None = None


class PathIngestResponse(BaseModel):
    results: list[PathIngestResult]


class DuplicateCheckRequest(BaseModel):
    filenames: list[str]


class DuplicateEntry(BaseModel):
    filename: str
    existing_id: int
    existing_title: str
    existing_type: str | None


class DuplicateCheckResponse(BaseModel):
    duplicates: list[DuplicateEntry]


class GroupPayload(BaseModel):
    id: int | None = None
    name: str
    description: str = ""
    color: str = "#007cba"


class GroupResponse(BaseModel):
    id: int
    name: str
    description: str
    color: str


class DocumentGroupsRequest(BaseModel):
    groups: list[int | str] = Field(default_factory=list)


class DrainRequest(BaseModel):
    document_ids: list[int] | None = Field(default=None, description="Restrict to these documents")
    batch_size: int | None = Field(default=None, ge=1, le=500)
    batch_offset: int = Field(default=0, ge=0)
    limit_total: int | None = Field(default=None, ge=0)


class ProcessRequest(BaseModel):
    batch_size: int = Field(default=5, ge=1, le=500)


class EntryResultModel(BaseModel):
    entry_id: int
    chunk_id: int
    success: bool
    error: str | None = None


class DrainResponse(BaseModel):
    results: list[EntryResultModel]
    total: int
    completed: int
    batch_offset: int
    has_more: bool
    progress_percent: float


class RequeueRequest(BaseModel):
    document_ids: list[int] | None = None


class RequeueResponse(BaseModel):
    requeued: int


class SearchRequest(BaseModel):
    query: str = Field(min_length=1)
    limit: int | None = Field(default=None, ge=0, le=100)
    threshold: float | None = Field(default=None, ge=-1.0, le=1.0)
    groups: list[str] | None = None


class SearchHitModel(BaseModel):
    chunk_id: int
    document_id: int
    title: str
    chunk_index: int
    content: str
    score: float
    model: str


class SearchResponse(BaseModel):
    query: str
    results: list[SearchHitModel]


class EmbeddingTestRequest(BaseModel):
    provider: str | None = None
    text: str = "Test embedding"


class EmbeddingTestResponse(BaseModel):
    provider: str
    model: str
    dimensions: int


class DeleteResponse(BaseModel):
    status: Literal["ok"]
    deleted: int


class StatsResponse(BaseModel):
    documents: int
    chunks: int
    embeddings: int
    pending_embeddings: int
    failed_embeddings: int
    groups: int
    queue: dict[str, int]
    providers: list[str]
    default_provider: str


__all__ = [
    "DocumentIngestRequest",
    "DocumentIngestResponse",
    "PathIngestRequest",
    "PathIngestResult",
    "PathIngestResponse",
    "DuplicateCheckRequest",
    "DuplicateEntry",
    "DuplicateCheckResponse",
    "GroupPayload",
    "GroupResponse",
    "DocumentGroupsRequest",
    "DrainRequest",
    "ProcessRequest",
    "EntryResultModel",
    "DrainResponse",
    "RequeueRequest",
    "RequeueResponse",
    "SearchRequest",
    "SearchHitModel",
    "SearchResponse",
    "EmbeddingTestRequest",
    "EmbeddingTestResponse",
    "DeleteResponse",
    "StatsResponse",
]
