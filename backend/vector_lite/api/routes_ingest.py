"""Document ingest and document-management routes."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends

from vector_lite.api.dependencies import get_group_service, get_ingest_pipeline
from vector_lite.groups.service import GroupService
from vector_lite.ingest.pipeline import IngestPipeline
from vector_lite.models.dto import (
    DeleteResponse,
    DocumentGroupsRequest,
    DocumentIngestRequest,
    DocumentIngestResponse,
    DuplicateCheckRequest,
    DuplicateCheckResponse,
    DuplicateEntry,
    GroupResponse,
    PathIngestRequest,
    PathIngestResponse,
    PathIngestResult,
)

router = APIRouter()


@router.post("", response_model=DocumentIngestResponse, summary="Ingest a document from text")
async def ingest_document(
    request: DocumentIngestRequest,
    pipeline: IngestPipeline = Depends(get_ingest_pipeline),
) -> DocumentIngestResponse:
    result = pipeline.ingest(
        request.title,
        request.text,
        file_type=request.file_type,
        size_bytes=request.size_bytes,
        groups=request.groups,
        replace=request.replace,
    )
    return DocumentIngestResponse(
        document_id=result.document_id,
        segment_count=result.segment_count,
        replaced=result.replaced,
    )


@router.post("/paths", response_model=PathIngestResponse, summary="Ingest files from disk")
async def ingest_paths(
    request: PathIngestRequest,
    pipeline: IngestPipeline = Depends(get_ingest_pipeline),
) -> PathIngestResponse:
    paths = [Path(path).expanduser() for path in request.paths]
    results = pipeline.ingest_paths(paths, groups=request.groups, replace=request.replace)
    return PathIngestResponse(
        results=[
            PathIngestResult(
                path=str(item.path),
                status=item.status,
                document_id=item.document_id,
                segment_count=item.segment_count,
                detail=item.detail,
            )
            for item in results
        ]
    )


@router.post("/duplicates", response_model=DuplicateCheckResponse, summary="Find already-stored filenames")
async def check_duplicates(
    request: DuplicateCheckRequest,
    pipeline: IngestPipeline = Depends(get_ingest_pipeline),
) -> DuplicateCheckResponse:
    duplicates = pipeline.find_duplicates(request.filenames)
    return DuplicateCheckResponse(
        duplicates=[
            DuplicateEntry(
                filename=item.filename,
                existing_id=item.existing_id,
                existing_title=item.existing_title,
                existing_type=item.existing_type,
            )
            for item in duplicates
        ]
    )


@router.delete("/{document_id}", response_model=DeleteResponse, summary="Delete a document")
async def delete_document(
    document_id: int,
    pipeline: IngestPipeline = Depends(get_ingest_pipeline),
) -> DeleteResponse:
    pipeline.delete_document(document_id)
    return DeleteResponse(status="ok", deleted=1)


@router.get("/{document_id}/groups", response_model=list[GroupResponse], summary="List a document's groups")
async def get_document_groups(
    document_id: int,
    groups: GroupService = Depends(get_group_service),
) -> list[GroupResponse]:
    return [_group_response(group) for group in groups.document_groups(document_id)]


@router.put("/{document_id}/groups", response_model=list[GroupResponse], summary="Replace a document's groups")
async def set_document_groups(
    document_id: int,
    request: DocumentGroupsRequest,
    groups: GroupService = Depends(get_group_service),
) -> list[GroupResponse]:
    return [_group_response(group) for group in groups.set_document_groups(document_id, request.groups)]


def _group_response(group) -> GroupResponse:
    return GroupResponse(id=group.id, name=group.name, description=group.description, color=group.color)


__all__ = ["router"]
