"""Central pipeline state definition for the LangGraph workflow."""

from __future__ import annotations

from typing import Any, Optional

from typing_extensions import TypedDict


class SubClipInput(TypedDict, total=False):
    """Raw caller payload, before validation."""

    source_media_id: str
    start_seconds: float
    end_seconds: float
    overlay_kind: str
    orientation: str
    caption: Optional[str]
    auto_caption: bool


class SubClipState(TypedDict):
    """State shared across the five pipeline nodes.

    Model-valued entries hold pydantic objects from ``models.clip``.
    """

    # Run configuration (set once at start)
    run_id: str
    caller_id: Optional[str]
    stamp: str
    raw_request: SubClipInput

    # Node outputs
    clip_request: Optional[Any]  # ClipRequest
    source_media: Optional[Any]  # SourceMedia
    overlay_asset: Optional[Any]  # OverlayAsset
    transform_job: Optional[Any]  # TransformJob
    caption_result: Optional[Any]  # CaptionResult
    record: Optional[Any]  # SubClipRecord

    # Cleanup outcome (advisory only)
    cleanup_errors: list[str]


def services_from(config: dict) -> Any:
    """Return the ``PipelineServices`` bundle injected via ``configurable``."""
    try:
        return config["configurable"]["services"]
    except (KeyError, TypeError) as exc:
        raise RuntimeError("pipeline invoked without services in config") from exc
