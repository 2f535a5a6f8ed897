"""Overlay Asset Generator node — renders the end-card QR image and stores it."""

from __future__ import annotations

from urllib.parse import quote, urlencode

import structlog
from langchain_core.runnables import RunnableConfig

from subclip_pipeline.common.paths import namespaced_path
from subclip_pipeline.errors import OverlayGenerationFailed
from subclip_pipeline.graph.state import SubClipState, services_from
from subclip_pipeline.models.clip import OverlayAsset, OverlayKind

logger = structlog.get_logger()

# overlay kind → (path suffix, action query value)
_DESTINATIONS: dict[OverlayKind, tuple[str, str | None]] = {
    OverlayKind.TIP: ("", "tip"),
    OverlayKind.TICKET: ("", "tickets"),
    OverlayKind.CONTENT: ("", "subscribe"),
    OverlayKind.MERCH: ("/merch", None),
}

ATTRIBUTION_PARAMS: dict[str, str] = {
    "utm_source": "social",
    "utm_medium": "qr",
    "utm_campaign": "subclip",
}


def destination_url(base_url: str, owner_slug: str, kind: OverlayKind) -> str:
    """Build the tracked URL an overlay of ``kind`` sends viewers to."""
    suffix, action = _DESTINATIONS[kind]
    params: dict[str, str] = {}
    if action:
        params["action"] = action
    params.update(ATTRIBUTION_PARAMS)
    return f"{base_url.rstrip('/')}/{quote(owner_slug)}{suffix}?{urlencode(params)}"


async def overlay_generator(state: SubClipState, config: RunnableConfig) -> dict:
    """Render the destination URL as a QR image and upload it untouched."""
    services = services_from(config)
    settings = services.settings
    request = state["clip_request"]
    source = state["source_media"]

    url = destination_url(settings.portal_base_url, source.artist_slug, request.overlay_kind)
    public_id = namespaced_path(
        state["caller_id"], state["stamp"], "qr", prefix=settings.transcode_folder
    )

    logger.info("overlay_generator.start", destination_url=url, public_id=public_id)

    try:
        image = await services.renderer.render(
            url,
            size=settings.qr_size,
            error_correction=settings.qr_error_correction,
            margin=settings.qr_margin,
        )
        if not image:
            raise ValueError("rendering service returned an empty image")
        locator = await services.transcoder.upload_raw(image, public_id, resource_type="image")
    except Exception as exc:
        logger.exception("overlay_generator.failed", public_id=public_id)
        raise OverlayGenerationFailed(f"Failed to generate overlay: {exc}") from exc

    logger.info("overlay_generator.done", public_id=locator.public_id, bytes=len(image))
    return {"overlay_asset": OverlayAsset(destination_url=url, storage_locator=locator)}
