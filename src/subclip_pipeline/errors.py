"""SubClip pipeline error taxonomy.

Client errors (401/403/404/400) are raised before any external side effect.
Pipeline failures (5xx) may leave transient assets behind in the transcoding
service; those are bounded by its retention policy and never rolled back.
"""

from __future__ import annotations


class SubClipError(Exception):
    """Base class for every failure surfaced to the caller."""

    code: str = "subclip_error"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message, "code": self.code}


# ---------------------------------------------------------------------------
# Client errors
# ---------------------------------------------------------------------------


class Unauthenticated(SubClipError):
    code = "unauthenticated"
    status_code = 401


class NotFound(SubClipError):
    code = "not_found"
    status_code = 404


class Forbidden(SubClipError):
    code = "forbidden"
    status_code = 403


class InvalidWindow(SubClipError):
    code = "invalid_window"
    status_code = 400


# ---------------------------------------------------------------------------
# Pipeline failures
# ---------------------------------------------------------------------------


class OverlayGenerationFailed(SubClipError):
    code = "overlay_generation_failed"
    status_code = 502


class TransformRequestFailed(SubClipError):
    code = "transform_request_failed"
    status_code = 502


class TransformTimeout(SubClipError):
    code = "transform_timeout"
    status_code = 504


class DownloadFailed(SubClipError):
    code = "download_failed"
    status_code = 502


class ThumbnailFailed(SubClipError):
    code = "thumbnail_failed"
    status_code = 502


class PersistFailed(SubClipError):
    code = "persist_failed"
    status_code = 500
