"""Artifact Finalizer node — durable copies, catalog record, transient cleanup."""

from __future__ import annotations

import structlog
from langchain_core.runnables import RunnableConfig

from subclip_pipeline.common.paths import namespaced_path
from subclip_pipeline.errors import DownloadFailed, PersistFailed, ThumbnailFailed
from subclip_pipeline.graph.policy import recovers_locally
from subclip_pipeline.graph.state import SubClipState, services_from
from subclip_pipeline.models.clip import SubClipRecord

logger = structlog.get_logger()


async def _cleanup_transients(services, assets) -> list[str]:
    """Delete transient transcoder assets; failures are returned, never raised."""
    errors: list[str] = []
    for asset in assets:
        try:
            await services.transcoder.delete(asset)
        except Exception as exc:
            if not recovers_locally("cleanup"):
                raise
            logger.warning("cleanup.failed", public_id=asset.public_id, error=str(exc))
            errors.append(f"{asset.public_id}: {exc}")
    return errors


async def artifact_finalizer(state: SubClipState, config: RunnableConfig) -> dict:
    """Download the finished clip, derive a thumbnail, persist both, and record them.

    The catalog insert happens last. A persist failure leaves the stored clip and
    thumbnail orphaned in object storage; they are not removed here.
    """
    services = services_from(config)
    settings = services.settings
    request = state["clip_request"]
    source = state["source_media"]
    overlay = state["overlay_asset"]
    job = state["transform_job"]
    caption = state["caption_result"]
    caller_id = state["caller_id"]
    stamp = state["stamp"]

    # ── Step 1: Download finished clip ───────────────────────────────────
    try:
        clip_bytes = await services.transcoder.download(job.result)
        if not clip_bytes:
            raise ValueError("empty response body")
    except Exception as exc:
        logger.exception("finalizer.download.failed", result_url=job.result.url)
        raise DownloadFailed(f"Failed to download processed clip: {exc}") from exc

    # ── Step 2: Thumbnail ────────────────────────────────────────────────
    try:
        thumb_bytes = await services.transcoder.extract_still(
            job.result,
            offset_seconds=settings.thumbnail_offset_sec,
            size=request.orientation.thumbnail_size,
        )
        if not thumb_bytes:
            raise ValueError("empty response body")
    except Exception as exc:
        logger.exception("finalizer.thumbnail.failed", result_url=job.result.url)
        raise ThumbnailFailed(f"Failed to generate thumbnail: {exc}") from exc

    # ── Step 3: Durable storage ──────────────────────────────────────────
    try:
        clip_url = await services.storage.put(
            clip_bytes, namespaced_path(caller_id, stamp, "clip.mp4"), "video/mp4"
        )
        thumbnail_url = await services.storage.put(
            thumb_bytes, namespaced_path(caller_id, stamp, "thumb.jpg"), "image/jpeg"
        )
    except Exception as exc:
        logger.exception("finalizer.storage.failed", caller_id=caller_id)
        raise PersistFailed(f"Failed to upload clip: {exc}") from exc

    logger.info("finalizer.stored", clip_url=clip_url, thumbnail_url=thumbnail_url)

    # ── Step 4: Catalog record ───────────────────────────────────────────
    record = SubClipRecord(
        artist_id=source.artist_id,
        source_video_id=source.id,
        clip_url=clip_url,
        thumbnail_url=thumbnail_url,
        duration_seconds=request.duration_seconds,
        start_seconds=request.start_seconds,
        end_seconds=request.end_seconds,
        caption=caption.text,
        hashtags=caption.hashtags,
        caption_origin=caption.origin,
        overlay_kind=request.overlay_kind,
        destination_url=overlay.destination_url,
        status="ready",
    )
    try:
        record = await services.catalog.insert(record)
    except Exception as exc:
        logger.exception(
            "finalizer.persist.failed",
            orphaned=[clip_url, thumbnail_url],
        )
        raise PersistFailed(f"Failed to save clip record: {exc}") from exc

    # ── Step 5: Best-effort cleanup ──────────────────────────────────────
    cleanup_errors = await _cleanup_transients(
        services, [overlay.storage_locator, job.source_asset]
    )

    logger.info(
        "finalizer.done",
        subclip_id=record.id,
        cleanup_errors=len(cleanup_errors),
    )
    return {"record": record, "cleanup_errors": cleanup_errors}
