"""Similarity search over stored segment embeddings."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Any, Sequence

from vector_lite.core.logging import get_logger
from vector_lite.core.metrics import SEARCH_LATENCY
from vector_lite.db.sqlite import SQLiteDatabase, placeholders
from vector_lite.embeddings.client import EmbeddingClient
from vector_lite.embeddings.codec import decode_vector
from vector_lite.retrieval.similarity import cosine_similarity

logger = get_logger(__name__)


@dataclass(slots=True)
class SearchHit:
    chunk_id: int
    document_id: int
    title: str
    chunk_index: int
    content: str
    score: float
    model: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class SearchEngine:
    """Brute-force cosine ranking of every stored embedding in scope."""

    def __init__(
        self,
        db: SQLiteDatabase,
        client: EmbeddingClient,
        provider: str | None = None,
    ) -> None:
        self.db = db
        self.client = client
        self.provider = provider

    def search(
        self,
        query: str,
        limit: int = 10,
        threshold: float = 0.6,
        groups: Sequence[str] | None = None,
    ) -> list[SearchHit]:
        """Rank segments by cosine similarity to ``query``.

        Hits scoring below ``threshold`` are dropped. The rest are ordered by score,
        highest first, with ties going to the lower chunk id, and cut to ``limit``.
        ``groups`` restricts candidates to documents in at least one of the named
        groups. Embedding failures propagate; there are no partial results.
        """
        if not query or not query.strip():
            raise ValueError("Query text is required")
        if limit <= 0:
            return []
        started = time.perf_counter()
        query_vector = self.client.embed(query, provider=self.provider).values

        hits: list[SearchHit] = []
        for row in self._candidates(groups):
            try:
                stored = decode_vector(row["embedding"])
            except ValueError as exc:
                logger.warning("Skipping unreadable embedding for chunk %s: %s", row["chunk_id"], exc)
                continue
            score = cosine_similarity(query_vector, stored)
            if score < threshold:
                continue
            hits.append(
                SearchHit(
                    chunk_id=row["chunk_id"],
                    document_id=row["document_id"],
                    title=row["title"],
                    chunk_index=row["chunk_index"],
                    content=row["content"],
                    score=score,
                    model=row["model"],
                )
            )

        hits.sort(key=lambda hit: (-hit.score, hit.chunk_id))
        duration = time.perf_counter() - started
        SEARCH_LATENCY.observe(duration)
        logger.debug("Search returned %s hits in %.3fs", min(len(hits), limit), duration)
        return hits[:limit]

    def _candidates(self, groups: Sequence[str] | None) -> list[Any]:
        sql = """
            SELECT
              e.chunk_id,
              e.embedding,
              e.model,
              c.document_id,
              c.chunk_index,
              c.content,
              d.title
            FROM embeddings e
            JOIN chunks c ON c.id = e.chunk_id
            JOIN documents d ON d.id = c.document_id
        """
        params: list[Any] = []
        if groups:
            names = list(groups)
            sql += f"""
            WHERE EXISTS (
              SELECT 1 FROM document_groups dg
              JOIN content_groups g ON g.id = dg.group_id
              WHERE dg.document_id = d.id AND g.name IN ({placeholders(names)})
            )
            """
            params.extend(names)
        return self.db.query(sql, params)


__all__ = ["SearchEngine", "SearchHit"]
