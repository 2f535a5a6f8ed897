"""Request/Response schemas for the FastAPI endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from subclip_pipeline.models.clip import CaptionOrigin, SubClipRecord


class SubClipCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    video_id: str = Field(alias="sourceMediaId")
    start_time: float = Field(alias="startSeconds")
    end_time: float = Field(alias="endSeconds")
    qr_type: Optional[str] = Field(default=None, alias="overlayKind")
    caption: Optional[str] = None
    auto_caption: bool = Field(default=True, alias="autoCaption")
    orientation: str = "vertical"

    def to_pipeline_input(self) -> dict:
        return {
            "source_media_id": self.video_id,
            "start_seconds": self.start_time,
            "end_seconds": self.end_time,
            "overlay_kind": self.qr_type,
            "orientation": self.orientation,
            "caption": self.caption,
            "auto_caption": self.auto_caption,
        }


class SubClipCreateResponse(BaseModel):
    success: bool = True
    subclip_id: Optional[str] = None
    clip_url: str
    thumbnail_url: str
    caption: str
    hashtags: list[str]
    duration: float
    caption_origin: Optional[CaptionOrigin] = None

    @classmethod
    def from_record(cls, record: SubClipRecord) -> "SubClipCreateResponse":
        return cls(
            subclip_id=record.id,
            clip_url=record.clip_url,
            thumbnail_url=record.thumbnail_url,
            caption=record.caption,
            hashtags=record.hashtags,
            duration=record.duration_seconds,
            caption_origin=record.caption_origin,
        )


class SubClipListResponse(BaseModel):
    subclips: list[SubClipRecord]
    count: int


class ErrorResponse(BaseModel):
    error: str
    code: Optional[str] = None
