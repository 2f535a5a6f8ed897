"""Entry point for one synchronous SubClip pipeline run."""

from __future__ import annotations

import uuid
from functools import lru_cache
from typing import Optional

import structlog

from subclip_pipeline.common.paths import run_stamp
from subclip_pipeline.errors import SubClipError
from subclip_pipeline.graph.builder import build_graph
from subclip_pipeline.graph.state import SubClipInput, SubClipState
from subclip_pipeline.models.clip import SubClipRecord
from subclip_pipeline.services import PipelineServices

logger = structlog.get_logger()


@lru_cache(maxsize=1)
def get_compiled_graph():
    """Return the compiled pipeline graph."""
    return build_graph()


def initial_state(
    caller_id: Optional[str], raw_request: SubClipInput, services: PipelineServices
) -> SubClipState:
    return {
        "run_id": str(uuid.uuid4()),
        "caller_id": caller_id,
        "stamp": run_stamp(services.clock),
        "raw_request": raw_request,
        "clip_request": None,
        "source_media": None,
        "overlay_asset": None,
        "transform_job": None,
        "caption_result": None,
        "record": None,
        "cleanup_errors": [],
    }


async def run_subclip_pipeline(
    caller_id: Optional[str],
    raw_request: SubClipInput,
    services: PipelineServices,
) -> SubClipRecord:
    """Run every stage for one request and return the persisted record.

    Each call is an independent attempt with freshly namespaced assets; a
    failed run is retried by calling this again, never by resuming.

    Raises:
        SubClipError: The first fatal stage failure.
    """
    state = initial_state(caller_id, raw_request, services)
    graph = get_compiled_graph()
    config = {"configurable": {"services": services}}

    with structlog.contextvars.bound_contextvars(run_id=state["run_id"]):
        logger.info(
            "pipeline.started",
            caller_id=caller_id,
            source_media_id=raw_request.get("source_media_id"),
        )
        try:
            final = await graph.ainvoke(state, config=config)
        except SubClipError as exc:
            logger.warning("pipeline.failed", code=exc.code, error=exc.message)
            raise

        record = final["record"]
        logger.info("pipeline.completed", subclip_id=record.id)
        return record
