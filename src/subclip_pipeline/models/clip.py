"""Pydantic models for the SubClip pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OverlayKind(str, Enum):
    TIP = "tip"
    TICKET = "ticket"
    CONTENT = "content"
    MERCH = "merch"


class Orientation(str, Enum):
    VERTICAL = "vertical"
    LANDSCAPE = "landscape"

    @property
    def frame_size(self) -> tuple[int, int]:
        """Output (width, height) in pixels."""
        if self is Orientation.VERTICAL:
            return 1080, 1920
        return 1920, 1080

    @property
    def thumbnail_size(self) -> tuple[int, int]:
        if self is Orientation.VERTICAL:
            return 360, 640
        return 640, 360


class CaptionMode(str, Enum):
    AUTO = "auto"
    LITERAL = "literal"


class CaptionOrigin(str, Enum):
    AI_GENERATED = "ai-generated"
    FALLBACK_TEMPLATE = "fallback-template"
    CALLER_SUPPLIED = "caller-supplied"


class TransformStatus(str, Enum):
    SUBMITTED = "submitted"
    PENDING = "pending"
    READY = "ready"
    TIMED_OUT = "timed-out"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class SourceMedia(BaseModel):
    """Source video joined with its owning artist, as returned by the identity lookup."""

    id: str
    title: str = ""
    kind: str = "music_video"
    video_url: str
    artist_id: str
    artist_user_id: str
    artist_slug: str


class ClipRequest(BaseModel):
    """Validated, immutable input driving one pipeline run."""

    model_config = ConfigDict(frozen=True)

    source_media_id: str
    start_seconds: float = Field(ge=0)
    end_seconds: float
    overlay_kind: OverlayKind
    orientation: Orientation = Orientation.VERTICAL
    caption_mode: CaptionMode = CaptionMode.AUTO
    caption: Optional[str] = None

    @property
    def duration_seconds(self) -> float:
        return self.end_seconds - self.start_seconds


# ---------------------------------------------------------------------------
# Intermediate artifacts
# ---------------------------------------------------------------------------


class AssetLocator(BaseModel):
    """Location of an asset inside the transcoding service's asset space."""

    model_config = ConfigDict(frozen=True)

    public_id: str
    resource_type: str = "video"
    url: str = ""


class OverlayAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    destination_url: str
    storage_locator: AssetLocator


class TransformSpec(BaseModel):
    """Trim + reformat + timed end-card composite, relative to the source clip."""

    model_config = ConfigDict(frozen=True)

    start_seconds: float
    end_seconds: float
    width: int
    height: int
    overlay_public_id: str
    overlay_width: int
    overlay_margin: int
    overlay_start_seconds: float


class ResultLocator(BaseModel):
    """Deterministic location where a requested transform will appear."""

    model_config = ConfigDict(frozen=True)

    public_id: str
    transformation: str
    url: str


class TransformJob(BaseModel):
    job_id: str
    source_asset: AssetLocator
    operation_spec: TransformSpec
    result: Optional[ResultLocator] = None
    status: TransformStatus = TransformStatus.SUBMITTED
    attempts: int = 0


class CaptionResult(BaseModel):
    text: str
    hashtags: list[str] = Field(default_factory=list)
    origin: CaptionOrigin


# ---------------------------------------------------------------------------
# Durable output
# ---------------------------------------------------------------------------


class SubClipRecord(BaseModel):
    id: Optional[str] = None
    artist_id: str
    source_video_id: str
    clip_url: str
    thumbnail_url: str
    duration_seconds: float
    start_seconds: float
    end_seconds: float
    caption: str
    hashtags: list[str] = Field(default_factory=list)
    caption_origin: Optional[CaptionOrigin] = None
    overlay_kind: OverlayKind
    destination_url: str
    status: str = "ready"
    created_at: Optional[str] = None
