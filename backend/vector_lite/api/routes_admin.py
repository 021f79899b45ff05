"""Administrative routes for Vector Lite."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from vector_lite.api.dependencies import (
    get_app_settings,
    get_database,
    get_embedding_client,
    get_group_service,
    get_queue,
)
from vector_lite.core.config import Settings
from vector_lite.core.metrics import metrics_response
from vector_lite.db.sqlite import SQLiteDatabase, database_stats
from vector_lite.embeddings.client import EmbeddingClient
from vector_lite.groups.service import GroupService
from vector_lite.models.dto import (
    DeleteResponse,
    EmbeddingTestRequest,
    EmbeddingTestResponse,
    GroupPayload,
    GroupResponse,
    StatsResponse,
)
from vector_lite.queue.service import EmbeddingQueue

router = APIRouter()


@router.get("/groups", response_model=list[GroupResponse], summary="List content groups")
async def list_groups(groups: GroupService = Depends(get_group_service)) -> list[GroupResponse]:
    return [
        GroupResponse(id=group.id, name=group.name, description=group.description, color=group.color)
        for group in groups.list_groups()
    ]


@router.post("/groups", response_model=GroupResponse, summary="Create or update a group")
async def save_group(
    request: GroupPayload,
    groups: GroupService = Depends(get_group_service),
) -> GroupResponse:
    group = groups.save_group(
        request.name,
        description=request.description,
        color=request.color,
        group_id=request.id,
    )
    return GroupResponse(id=group.id, name=group.name, description=group.description, color=group.color)


@router.delete("/groups/{group_id}", response_model=DeleteResponse, summary="Delete a group")
async def delete_group(group_id: int, groups: GroupService = Depends(get_group_service)) -> DeleteResponse:
    groups.delete_group(group_id)
    return DeleteResponse(status="ok", deleted=1)


@router.get("/stats", response_model=StatsResponse, summary="Database and queue statistics")
async def stats(
    db: SQLiteDatabase = Depends(get_database),
    queue: EmbeddingQueue = Depends(get_queue),
    client: EmbeddingClient = Depends(get_embedding_client),
    settings: Settings = Depends(get_app_settings),
) -> StatsResponse:
    return StatsResponse(
        **database_stats(db),
        queue=queue.counts(),
        providers=client.provider_names,
        default_provider=settings.default_provider,
    )


@router.post("/embeddings/test", response_model=EmbeddingTestResponse, summary="Embed a sample string")
def test_embedding(
    request: EmbeddingTestRequest,
    client: EmbeddingClient = Depends(get_embedding_client),
) -> EmbeddingTestResponse:
    return EmbeddingTestResponse(**client.test_provider(request.provider, request.text))


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
