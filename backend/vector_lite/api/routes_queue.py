"""Embedding queue routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from vector_lite.api.dependencies import get_app_settings, get_queue
from vector_lite.core.config import Settings
from vector_lite.models.dto import (
    DrainRequest,
    DrainResponse,
    ProcessRequest,
    RequeueRequest,
    RequeueResponse,
)
from vector_lite.queue.service import DrainReport, EmbeddingQueue

router = APIRouter()


@router.post("/drain", response_model=DrainResponse, summary="Embed one batch of pending entries")
def drain(
    request: DrainRequest,
    queue: EmbeddingQueue = Depends(get_queue),
    settings: Settings = Depends(get_app_settings),
) -> DrainResponse:
    report = queue.drain(
        request.document_ids,
        batch_size=request.batch_size or settings.queue_batch_size,
        batch_offset=request.batch_offset,
        limit_total=request.limit_total,
    )
    return _drain_response(report)


@router.post("/process", response_model=DrainResponse, summary="Embed the oldest pending entries")
def process_pending(
    request: ProcessRequest,
    queue: EmbeddingQueue = Depends(get_queue),
) -> DrainResponse:
    return _drain_response(queue.process_pending(request.batch_size))


@router.post("/requeue", response_model=RequeueResponse, summary="Retry failed entries")
async def requeue(
    request: RequeueRequest,
    queue: EmbeddingQueue = Depends(get_queue),
) -> RequeueResponse:
    return RequeueResponse(requeued=queue.requeue(request.document_ids))


@router.get("/counts", response_model=dict[str, int], summary="Queue entries per status")
async def counts(
    document_id: list[int] | None = Query(default=None),
    queue: EmbeddingQueue = Depends(get_queue),
) -> dict[str, int]:
    return queue.counts(document_id)


def _drain_response(report: DrainReport) -> DrainResponse:
    return DrainResponse(**report.to_dict())


__all__ = ["router"]
