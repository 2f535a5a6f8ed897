"""Transform Orchestrator node — raw upload, async edit request, readiness polling."""

from __future__ import annotations

import structlog
from langchain_core.runnables import RunnableConfig

from subclip_pipeline.common.paths import namespaced_path
from subclip_pipeline.common.polling import PollTimeout, poll_until_ready
from subclip_pipeline.config import Settings
from subclip_pipeline.errors import TransformRequestFailed, TransformTimeout
from subclip_pipeline.graph.state import SubClipState, services_from
from subclip_pipeline.models.clip import (
    ClipRequest,
    TransformJob,
    TransformSpec,
    TransformStatus,
)

logger = structlog.get_logger()


def overlay_appear_offset(clip_duration: float, lead_seconds: float) -> float:
    """Seconds into the trimmed clip at which the end-card overlay appears."""
    return max(0.0, clip_duration - lead_seconds)


def build_transform_spec(
    request: ClipRequest, overlay_public_id: str, settings: Settings
) -> TransformSpec:
    """Trim window, target frame, and an overlay scoped to the last seconds of the clip.

    The overlay is sized to a quarter of the frame width.
    """
    width, height = request.orientation.frame_size
    return TransformSpec(
        start_seconds=request.start_seconds,
        end_seconds=request.end_seconds,
        width=width,
        height=height,
        overlay_public_id=overlay_public_id,
        overlay_width=width // 4,
        overlay_margin=settings.overlay_margin_px,
        overlay_start_seconds=overlay_appear_offset(
            request.duration_seconds, settings.overlay_lead_seconds
        ),
    )


async def transform_orchestrator(state: SubClipState, config: RunnableConfig) -> dict:
    """Upload the untouched source, request the edit, and wait for the result."""
    services = services_from(config)
    settings = services.settings
    request: ClipRequest = state["clip_request"]
    source = state["source_media"]
    overlay = state["overlay_asset"]

    public_id = namespaced_path(
        state["caller_id"], state["stamp"], "source", prefix=settings.transcode_folder
    )

    # ── Step 1: Upload raw source ────────────────────────────────────────
    logger.info("transform.upload.start", source_media_id=source.id, public_id=public_id)
    try:
        data = await services.storage.fetch_source(source.video_url)
        asset = await services.transcoder.upload_raw(data, public_id, resource_type="video")
    except Exception as exc:
        logger.exception("transform.upload.failed", public_id=public_id)
        raise TransformRequestFailed(f"Failed to upload source video: {exc}") from exc

    # ── Step 2: Request transform ────────────────────────────────────────
    spec = build_transform_spec(request, overlay.storage_locator.public_id, settings)
    job = TransformJob(job_id=asset.public_id, source_asset=asset, operation_spec=spec)
    try:
        job.result = await services.transcoder.request_transform(asset, spec)
    except Exception as exc:
        logger.exception("transform.request.failed", job_id=job.job_id)
        raise TransformRequestFailed(f"Transform request rejected: {exc}") from exc
    job.status = TransformStatus.PENDING

    logger.info(
        "transform.requested",
        job_id=job.job_id,
        result_url=job.result.url,
        overlay_start=spec.overlay_start_seconds,
    )

    # ── Step 3: Poll for readiness ───────────────────────────────────────
    try:
        job.attempts = await poll_until_ready(
            lambda: services.transcoder.check_ready(job.result),
            interval=settings.poll_interval_sec,
            max_attempts=settings.poll_max_attempts,
            sleep=services.sleep,
            label="transform.poll",
        )
    except PollTimeout as exc:
        job.status = TransformStatus.TIMED_OUT
        job.attempts = exc.attempts
        logger.error("transform.timeout", job_id=job.job_id, attempts=exc.attempts)
        raise TransformTimeout(
            f"Transformed clip not ready after {exc.waited:g} seconds; try again"
        ) from exc

    job.status = TransformStatus.READY
    logger.info("transform.ready", job_id=job.job_id, attempts=job.attempts)
    return {"transform_job": job}
