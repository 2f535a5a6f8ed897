"""Collaborator interfaces consumed by the pipeline.

Each interface is vendor-neutral; concrete adapters live in
``subclip_pipeline.tools``. Tests substitute in-memory fakes.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from subclip_pipeline.config import Settings, settings as default_settings
from subclip_pipeline.models.clip import (
    AssetLocator,
    ResultLocator,
    SourceMedia,
    SubClipRecord,
    TransformSpec,
)


class IdentityService(ABC):
    """Resolves callers and source media ownership (read-only)."""

    @abstractmethod
    async def resolve_caller(self, access_token: str) -> Optional[str]:
        """Return the caller's user id, or None when the token is not valid."""

    @abstractmethod
    async def get_source_media(self, source_media_id: str) -> Optional[SourceMedia]:
        """Return the source video joined with its owning artist, or None."""

    @abstractmethod
    async def get_owned_artist_id(self, caller_id: str) -> Optional[str]:
        """Return the id of the artist account owned by the caller, if any."""


class RenderingService(ABC):
    @abstractmethod
    async def render(
        self, url: str, size: int, error_correction: str, margin: int
    ) -> bytes:
        """Render a scannable image encoding ``url``."""


class TranscodingService(ABC):
    @abstractmethod
    async def upload_raw(
        self, data: bytes, public_id: str, resource_type: str = "video"
    ) -> AssetLocator:
        """Store bytes untouched under ``public_id``."""

    @abstractmethod
    async def request_transform(
        self, asset: AssetLocator, spec: TransformSpec
    ) -> ResultLocator:
        """Submit an asynchronous edit and return where its result will appear."""

    @abstractmethod
    async def check_ready(self, result: ResultLocator) -> bool:
        """Lightweight existence check against a result locator."""

    @abstractmethod
    async def download(self, result: ResultLocator) -> bytes:
        """Fetch the finished asset bytes."""

    @abstractmethod
    async def extract_still(
        self, result: ResultLocator, offset_seconds: float, size: tuple[int, int]
    ) -> bytes:
        """Return a single JPEG frame of the transformed clip."""

    @abstractmethod
    async def delete(self, asset: AssetLocator) -> None:
        """Remove an asset and its derived copies."""


class CaptionModel(ABC):
    """AI text service. Implementations raise on rate limits and API errors."""

    @abstractmethod
    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Return the model's text response."""


class ObjectStorage(ABC):
    @abstractmethod
    async def fetch_source(self, video_url: str) -> bytes:
        """Download the original bytes of a source video."""

    @abstractmethod
    async def put(self, data: bytes, path: str, content_type: str) -> str:
        """Store bytes durably and return their public URL."""


class CatalogStore(ABC):
    @abstractmethod
    async def insert(self, record: SubClipRecord) -> SubClipRecord:
        """Persist a record and return it with its assigned id."""

    @abstractmethod
    async def list_for_artist(self, artist_id: str) -> list[SubClipRecord]:
        """Return an artist's records, newest first."""

    @abstractmethod
    async def get(self, subclip_id: str) -> Optional[SubClipRecord]:
        ...

    @abstractmethod
    async def delete(self, subclip_id: str) -> None:
        ...


@dataclass
class PipelineServices:
    """Everything a pipeline run talks to, bundled for injection."""

    identity: IdentityService
    renderer: RenderingService
    transcoder: TranscodingService
    captions: CaptionModel
    storage: ObjectStorage
    catalog: CatalogStore
    settings: Settings = field(default_factory=lambda: default_settings)
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    clock: Callable[[], float] = time.time
