"""Search routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from vector_lite.api.dependencies import get_app_settings, get_search_engine
from vector_lite.core.config import Settings
from vector_lite.models.dto import SearchHitModel, SearchRequest, SearchResponse
from vector_lite.retrieval.search import SearchEngine

router = APIRouter()


@router.post("/search", response_model=SearchResponse, summary="Semantic search over embedded segments")
def search(
    request: SearchRequest,
    engine: SearchEngine = Depends(get_search_engine),
    settings: Settings = Depends(get_app_settings),
) -> SearchResponse:
    limit = settings.search_limit if request.limit is None else request.limit
    threshold = settings.search_threshold if request.threshold is None else request.threshold
    hits = engine.search(request.query, limit=limit, threshold=threshold, groups=request.groups)
    return SearchResponse(
        query=request.query,
        results=[SearchHitModel(**hit.to_dict()) for hit in hits],
    )


__all__ = ["router"]
