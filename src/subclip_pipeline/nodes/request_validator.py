"""Request Validator node — authorization and clip-window checks."""

from __future__ import annotations

import structlog
from langchain_core.runnables import RunnableConfig
from pydantic import ValidationError

from subclip_pipeline.config import Settings
from subclip_pipeline.errors import Forbidden, InvalidWindow, NotFound, Unauthenticated
from subclip_pipeline.graph.state import SubClipInput, SubClipState, services_from
from subclip_pipeline.models.clip import CaptionMode, ClipRequest

logger = structlog.get_logger()


def build_clip_request(raw: SubClipInput, settings: Settings) -> ClipRequest:
    """Turn a raw payload into a ``ClipRequest`` without touching any collaborator.

    Raises:
        InvalidWindow: If a required field is missing or malformed, or the
            window duration falls outside the configured bounds.
    """
    missing = [
        name
        for name in ("source_media_id", "start_seconds", "end_seconds", "overlay_kind")
        if raw.get(name) in (None, "")
    ]
    if missing:
        raise InvalidWindow(f"Missing required fields: {', '.join(missing)}")

    caption = raw.get("caption") or None
    caption_mode = (
        CaptionMode.AUTO if raw.get("auto_caption") and not caption else CaptionMode.LITERAL
    )

    try:
        request = ClipRequest(
            source_media_id=raw["source_media_id"],
            start_seconds=raw["start_seconds"],
            end_seconds=raw["end_seconds"],
            overlay_kind=raw["overlay_kind"],
            orientation=raw.get("orientation") or "vertical",
            caption_mode=caption_mode,
            caption=caption,
        )
    except ValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
        raise InvalidWindow(f"Invalid clip request fields: {fields}") from exc

    duration = request.duration_seconds
    if not settings.min_clip_seconds <= duration <= settings.max_clip_seconds:
        raise InvalidWindow(
            f"Clip duration must be between {settings.min_clip_seconds:g} and "
            f"{settings.max_clip_seconds:g} seconds (got {duration:g})"
        )
    return request


async def request_validator(state: SubClipState, config: RunnableConfig) -> dict:
    """Validate the caller and the clip window, then confirm source ownership.

    Window checks run before the ownership lookup so a malformed request never
    reaches any collaborator.
    """
    services = services_from(config)
    caller_id = state.get("caller_id")
    raw = state.get("raw_request") or {}

    if not caller_id:
        raise Unauthenticated("Unauthorized")

    request = build_clip_request(raw, services.settings)

    try:
        source = await services.identity.get_source_media(request.source_media_id)
    except Exception as exc:
        logger.warning(
            "request_validator.lookup_failed",
            source_media_id=request.source_media_id,
            error=str(exc),
        )
        raise NotFound("Video not found") from exc
    if source is None:
        raise NotFound("Video not found")

    if source.artist_user_id != caller_id:
        logger.warning(
            "request_validator.forbidden",
            caller_id=caller_id,
            source_media_id=request.source_media_id,
        )
        raise Forbidden("Forbidden - not your video")

    logger.info(
        "request_validator.accepted",
        source_media_id=request.source_media_id,
        duration=request.duration_seconds,
        overlay_kind=request.overlay_kind.value,
        orientation=request.orientation.value,
        caption_mode=request.caption_mode.value,
    )
    return {"clip_request": request, "source_media": source}
