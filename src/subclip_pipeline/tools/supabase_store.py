"""Supabase-backed identity lookup, object storage, and SubClip catalog."""

from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Any, Optional

import structlog
from supabase import Client, create_client

from subclip_pipeline.config import settings
from subclip_pipeline.models.clip import SourceMedia, SubClipRecord
from subclip_pipeline.services import CatalogStore, IdentityService, ObjectStorage

logger = structlog.get_logger()


@lru_cache(maxsize=1)
def _get_supabase_client() -> Client:
    """Create a Supabase client using service_role key."""
    return create_client(settings.supabase_url, settings.supabase_service_role_key)


def record_to_row(record: SubClipRecord) -> dict[str, Any]:
    """Map a ``SubClipRecord`` onto ``subclip_library`` columns."""
    return {
        "artist_id": record.artist_id,
        "source_video_id": record.source_video_id,
        "clip_url": record.clip_url,
        "thumbnail_url": record.thumbnail_url,
        "duration": record.duration_seconds,
        "start_time": record.start_seconds,
        "end_time": record.end_seconds,
        "caption": record.caption,
        "hashtags": record.hashtags,
        "qr_type": record.overlay_kind.value,
        "qr_url": record.destination_url,
        "status": record.status,
    }


def row_to_record(row: dict[str, Any]) -> SubClipRecord:
    return SubClipRecord(
        id=str(row["id"]),
        artist_id=str(row["artist_id"]),
        source_video_id=str(row.get("source_video_id", "")),
        clip_url=row.get("clip_url", ""),
        thumbnail_url=row.get("thumbnail_url") or "",
        duration_seconds=row.get("duration") or 0.0,
        start_seconds=row.get("start_time") or 0.0,
        end_seconds=row.get("end_time") or 0.0,
        caption=row.get("caption") or "",
        hashtags=row.get("hashtags") or [],
        overlay_kind=row.get("qr_type", "tip"),
        destination_url=row.get("qr_url") or "",
        status=row.get("status", "ready"),
        created_at=row.get("created_at"),
    )


def source_path_from_url(video_url: str, bucket: str) -> str:
    """Extract the object path from a public storage URL of ``bucket``."""
    marker = f"/{bucket}/"
    if marker not in video_url:
        raise ValueError(f"video_url is not in the {bucket!r} bucket: {video_url}")
    return video_url.split(marker, 1)[1]


# ---------------------------------------------------------------------------
# Identity / ownership
# ---------------------------------------------------------------------------


class SupabaseIdentity(IdentityService):
    def __init__(self, client: Optional[Client] = None) -> None:
        self._client = client

    @property
    def client(self) -> Client:
        return self._client or _get_supabase_client()

    def _resolve_caller_sync(self, access_token: str) -> Optional[str]:
        response = self.client.auth.get_user(access_token)
        user = getattr(response, "user", None)
        return user.id if user else None

    async def resolve_caller(self, access_token: str) -> Optional[str]:
        if not access_token:
            return None
        try:
            return await asyncio.to_thread(self._resolve_caller_sync, access_token)
        except Exception:
            logger.warning("supabase.auth.invalid_token", exc_info=True)
            return None

    def _get_source_media_sync(self, source_media_id: str) -> Optional[SourceMedia]:
        response = (
            self.client.table("videos")
            .select("*, artists!inner(id, user_id, slug)")
            .eq("id", source_media_id)
            .maybe_single()
            .execute()
        )
        row = response.data if response is not None else None
        if not row:
            return None
        artist = row["artists"]
        return SourceMedia(
            id=str(row["id"]),
            title=row.get("title") or "",
            kind=row.get("kind") or "music_video",
            video_url=row.get("video_url") or "",
            artist_id=str(artist["id"]),
            artist_user_id=str(artist["user_id"]),
            artist_slug=artist["slug"],
        )

    async def get_source_media(self, source_media_id: str) -> Optional[SourceMedia]:
        return await asyncio.to_thread(self._get_source_media_sync, source_media_id)

    def _get_owned_artist_id_sync(self, caller_id: str) -> Optional[str]:
        response = (
            self.client.table("artists")
            .select("id")
            .eq("user_id", caller_id)
            .limit(1)
            .execute()
        )
        rows = response.data or []
        return str(rows[0]["id"]) if rows else None

    async def get_owned_artist_id(self, caller_id: str) -> Optional[str]:
        return await asyncio.to_thread(self._get_owned_artist_id_sync, caller_id)


# ---------------------------------------------------------------------------
# Object storage
# ---------------------------------------------------------------------------


class SupabaseObjectStorage(ObjectStorage):
    def __init__(
        self,
        client: Optional[Client] = None,
        source_bucket: Optional[str] = None,
        clip_bucket: Optional[str] = None,
    ) -> None:
        self._client = client
        self.source_bucket = source_bucket or settings.source_bucket
        self.clip_bucket = clip_bucket or settings.clip_bucket

    @property
    def client(self) -> Client:
        return self._client or _get_supabase_client()

    def public_url(self, path: str) -> str:
        return f"{settings.supabase_url}/storage/v1/object/public/{self.clip_bucket}/{path}"

    def _fetch_source_sync(self, video_url: str) -> bytes:
        path = source_path_from_url(video_url, self.source_bucket)
        return self.client.storage.from_(self.source_bucket).download(path)

    async def fetch_source(self, video_url: str) -> bytes:
        data = await asyncio.to_thread(self._fetch_source_sync, video_url)
        logger.info("supabase.source.downloaded", bytes=len(data))
        return data

    def _put_sync(self, data: bytes, path: str, content_type: str) -> str:
        self.client.storage.from_(self.clip_bucket).upload(
            path,
            data,
            file_options={"content-type": content_type, "cache-control": "3600"},
        )
        logger.info("supabase.upload.success", storage_path=path)
        return self.public_url(path)

    async def put(self, data: bytes, path: str, content_type: str) -> str:
        return await asyncio.to_thread(self._put_sync, data, path, content_type)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class SupabaseCatalog(CatalogStore):
    def __init__(self, client: Optional[Client] = None, table: Optional[str] = None) -> None:
        self._client = client
        self.table = table or settings.subclip_table

    @property
    def client(self) -> Client:
        return self._client or _get_supabase_client()

    def _insert_sync(self, record: SubClipRecord) -> SubClipRecord:
        response = self.client.table(self.table).insert(record_to_row(record)).execute()
        rows = response.data or []
        if not rows:
            raise RuntimeError("insert returned no row")
        stored = row_to_record(rows[0])
        logger.info("supabase.subclip.created", subclip_id=stored.id)
        return stored.model_copy(update={"caption_origin": record.caption_origin})

    async def insert(self, record: SubClipRecord) -> SubClipRecord:
        return await asyncio.to_thread(self._insert_sync, record)

    def _list_sync(self, artist_id: str) -> list[SubClipRecord]:
        response = (
            self.client.table(self.table)
            .select("*")
            .eq("artist_id", artist_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [row_to_record(row) for row in response.data or []]

    async def list_for_artist(self, artist_id: str) -> list[SubClipRecord]:
        return await asyncio.to_thread(self._list_sync, artist_id)

    def _get_sync(self, subclip_id: str) -> Optional[SubClipRecord]:
        response = (
            self.client.table(self.table)
            .select("*")
            .eq("id", subclip_id)
            .maybe_single()
            .execute()
        )
        row = response.data if response is not None else None
        return row_to_record(row) if row else None

    async def get(self, subclip_id: str) -> Optional[SubClipRecord]:
        return await asyncio.to_thread(self._get_sync, subclip_id)

    def _delete_sync(self, subclip_id: str) -> None:
        self.client.table(self.table).delete().eq("id", subclip_id).execute()
        logger.info("supabase.subclip.deleted", subclip_id=subclip_id)

    async def delete(self, subclip_id: str) -> None:
        await asyncio.to_thread(self._delete_sync, subclip_id)
