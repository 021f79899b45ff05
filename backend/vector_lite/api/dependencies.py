"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from vector_lite.core.config import Settings, get_settings
from vector_lite.db.sqlite import SQLiteDatabase
from vector_lite.embeddings.client import EmbeddingClient
from vector_lite.groups.service import GroupService
from vector_lite.ingest.pipeline import IngestPipeline
from vector_lite.queue.service import EmbeddingQueue
from vector_lite.retrieval import SearchEngine

_DB: SQLiteDatabase | None = None
_CLIENT: EmbeddingClient | None = None
_QUEUE: EmbeddingQueue | None = None
_GROUPS: GroupService | None = None
_PIPELINE: IngestPipeline | None = None
_SEARCH: SearchEngine | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_database() -> SQLiteDatabase:
    global _DB
    if _DB is None:
        settings = get_app_settings()
        db = SQLiteDatabase(settings.db_path)
        db.ensure_schema()
        _DB = db
    return _DB


def get_embedding_client() -> EmbeddingClient:
    global _CLIENT
    if _CLIENT is None:
        _CLIENT = EmbeddingClient(get_app_settings())
    return _CLIENT


def get_queue() -> EmbeddingQueue:
    global _QUEUE
    if _QUEUE is None:
        _QUEUE = EmbeddingQueue(db=get_database(), client=get_embedding_client())
    return _QUEUE


def get_group_service() -> GroupService:
    global _GROUPS
    if _GROUPS is None:
        _GROUPS = GroupService(get_database())
    return _GROUPS


def get_ingest_pipeline() -> IngestPipeline:
    global _PIPELINE
    if _PIPELINE is None:
        _PIPELINE = IngestPipeline(
            database=get_database(),
            settings=get_app_settings(),
            queue=get_queue(),
            groups=get_group_service(),
        )
    return _PIPELINE


def get_search_engine() -> SearchEngine:
    global _SEARCH
    if _SEARCH is None:
        _SEARCH = SearchEngine(db=get_database(), client=get_embedding_client())
    return _SEARCH


__all__ = [
    "get_app_settings",
    "get_database",
    "get_embedding_client",
    "get_queue",
    "get_group_service",
    "get_ingest_pipeline",
    "get_search_engine",
]
