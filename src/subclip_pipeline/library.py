"""SubClip library — listing, filtering, and deleting an artist's clips."""

from __future__ import annotations

from typing import Optional

import structlog

from subclip_pipeline.errors import Forbidden, NotFound
from subclip_pipeline.models.clip import OverlayKind, SubClipRecord
from subclip_pipeline.services import PipelineServices

logger = structlog.get_logger()


def filter_subclips(
    records: list[SubClipRecord],
    query: Optional[str] = None,
    overlay_kind: Optional[OverlayKind] = None,
) -> list[SubClipRecord]:
    """Case-insensitive match on caption or any hashtag, plus an overlay-kind filter."""
    results = records
    if query:
        needle = query.lower()
        results = [
            r
            for r in results
            if needle in r.caption.lower() or any(needle in tag.lower() for tag in r.hashtags)
        ]
    if overlay_kind is not None:
        results = [r for r in results if r.overlay_kind == overlay_kind]
    return results


async def _require_artist(services: PipelineServices, caller_id: str) -> str:
    artist_id = await services.identity.get_owned_artist_id(caller_id)
    if artist_id is None:
        raise NotFound("No artist profile for this account")
    return artist_id


async def list_subclips(
    services: PipelineServices,
    caller_id: str,
    query: Optional[str] = None,
    overlay_kind: Optional[OverlayKind] = None,
) -> list[SubClipRecord]:
    artist_id = await _require_artist(services, caller_id)
    records = await services.catalog.list_for_artist(artist_id)
    return filter_subclips(records, query, overlay_kind)


async def delete_subclip(services: PipelineServices, caller_id: str, subclip_id: str) -> None:
    """Delete one library record owned by the caller's artist account.

    Stored clip and thumbnail objects are left in place.
    """
    artist_id = await _require_artist(services, caller_id)
    record = await services.catalog.get(subclip_id)
    if record is None:
        raise NotFound("SubClip not found")
    if record.artist_id != artist_id:
        raise Forbidden("Forbidden - not your SubClip")

    await services.catalog.delete(subclip_id)
    logger.info("library.subclip_deleted", subclip_id=subclip_id, artist_id=artist_id)
