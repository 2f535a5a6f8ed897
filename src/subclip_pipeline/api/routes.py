"""FastAPI route handlers for SubClip creation and the SubClip library."""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Response

from subclip_pipeline.api.dependencies import (
    get_caller_id,
    get_optional_caller_id,
    get_services,
)
from subclip_pipeline.api.schemas import (
    ErrorResponse,
    SubClipCreateRequest,
    SubClipCreateResponse,
    SubClipListResponse,
)
from subclip_pipeline.library import delete_subclip, list_subclips
from subclip_pipeline.models.clip import OverlayKind
from subclip_pipeline.pipeline import run_subclip_pipeline
from subclip_pipeline.services import PipelineServices

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/subclips")

_ERROR_RESPONSES = {
    status: {"model": ErrorResponse} for status in (400, 401, 403, 404, 500, 502, 504)
}


@router.post("", response_model=SubClipCreateResponse, responses=_ERROR_RESPONSES)
async def create_subclip(
    request: SubClipCreateRequest,
    caller_id: Optional[str] = Depends(get_optional_caller_id),
    services: PipelineServices = Depends(get_services),
):
    """Run the full SubClip pipeline and return the persisted clip.

    The connection stays open for the whole run, including transform polling.
    """
    logger.info(
        "api.create_subclip",
        video_id=request.video_id,
        start_time=request.start_time,
        end_time=request.end_time,
        qr_type=request.qr_type,
        auto_caption=request.auto_caption,
    )
    record = await run_subclip_pipeline(caller_id, request.to_pipeline_input(), services)
    return SubClipCreateResponse.from_record(record)


@router.get("", response_model=SubClipListResponse, responses=_ERROR_RESPONSES)
async def get_subclips(
    q: Optional[str] = Query(default=None, description="Search caption or hashtags"),
    qr_type: Optional[OverlayKind] = Query(default=None),
    caller_id: str = Depends(get_caller_id),
    services: PipelineServices = Depends(get_services),
):
    """List the caller's SubClip library, newest first."""
    records = await list_subclips(services, caller_id, query=q, overlay_kind=qr_type)
    return SubClipListResponse(subclips=records, count=len(records))


@router.delete("/{subclip_id}", status_code=204, responses=_ERROR_RESPONSES)
async def remove_subclip(
    subclip_id: str,
    caller_id: str = Depends(get_caller_id),
    services: PipelineServices = Depends(get_services),
):
    """Delete one SubClip from the caller's library."""
    await delete_subclip(services, caller_id, subclip_id)
    return Response(status_code=204)
