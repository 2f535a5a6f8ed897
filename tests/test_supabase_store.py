"""Tests for Supabase row mapping and the adapters' query chains."""

from types import SimpleNamespace

import pytest

from subclip_pipeline.models.clip import CaptionOrigin, OverlayKind, SubClipRecord
from subclip_pipeline.tools.supabase_store import (
    SupabaseCatalog,
    SupabaseIdentity,
    SupabaseObjectStorage,
    record_to_row,
    row_to_record,
    source_path_from_url,
)


class FakeQuery:
    """Chainable stand-in for the postgrest query builder."""

    def __init__(self, data):
        self.data = data
        self.ops: list[tuple] = []

    def __getattr__(self, name):
        def op(*args, **kwargs):
            self.ops.append((name, args))
            return self

        return op

    def execute(self):
        return SimpleNamespace(data=self.data)


class FakeSupabase:
    def __init__(self, data=None):
        self.query = FakeQuery(data)
        self.tables: list[str] = []
        self.uploads: list[tuple] = []
        self.auth = SimpleNamespace(get_user=lambda token: SimpleNamespace(user=SimpleNamespace(id="u-1")))
        self.storage = SimpleNamespace(from_=self._bucket)

    def table(self, name):
        self.tables.append(name)
        return self.query

    def _bucket(self, bucket):
        def upload(path, data, file_options=None):
            self.uploads.append((bucket, path, file_options))

        return SimpleNamespace(upload=upload, download=lambda path: f"{bucket}:{path}".encode())


def _record() -> SubClipRecord:
    return SubClipRecord(
        artist_id="a1",
        source_video_id="v1",
        clip_url="https://s/clip.mp4",
        thumbnail_url="https://s/thumb.jpg",
        duration_seconds=15,
        start_seconds=0,
        end_seconds=15,
        caption="hi",
        hashtags=["#music"],
        caption_origin=CaptionOrigin.AI_GENERATED,
        overlay_kind=OverlayKind.TIP,
        destination_url="https://subamerica.net/x?action=tip",
    )


def test_row_uses_catalog_column_names():
    row = record_to_row(_record())

    assert row["duration"] == 15
    assert row["qr_type"] == "tip"
    assert row["qr_url"] == "https://subamerica.net/x?action=tip"
    assert row["status"] == "ready"
    assert "caption_origin" not in row


def test_row_round_trip_keeps_fields():
    row = {"id": 7, **record_to_row(_record()), "created_at": "2026-01-01T00:00:00Z"}
    record = row_to_record(row)

    assert record.id == "7"
    assert record.overlay_kind is OverlayKind.TIP
    assert record.hashtags == ["#music"]


def test_source_path_from_url():
    url = "https://x.supabase.co/storage/v1/object/public/videos/artist/abc.mp4"
    assert source_path_from_url(url, "videos") == "artist/abc.mp4"
    with pytest.raises(ValueError):
        source_path_from_url("https://elsewhere/abc.mp4", "videos")


async def test_identity_joins_artist():
    client = FakeSupabase(
        {
            "id": "v1",
            "title": "Song",
            "kind": "live_performance",
            "video_url": "https://x/videos/a.mp4",
            "artists": {"id": "a1", "user_id": "u-1", "slug": "band"},
        }
    )
    media = await SupabaseIdentity(client).get_source_media("v1")

    assert media.artist_user_id == "u-1"
    assert media.artist_slug == "band"
    assert client.tables == ["videos"]
    assert ("eq", ("id", "v1")) in client.query.ops


async def test_identity_missing_video():
    assert await SupabaseIdentity(FakeSupabase(None)).get_source_media("nope") is None


async def test_resolve_caller():
    assert await SupabaseIdentity(FakeSupabase()).resolve_caller("jwt") == "u-1"
    assert await SupabaseIdentity(FakeSupabase()).resolve_caller("") is None


async def test_storage_put_returns_public_url():
    client = FakeSupabase()
    storage = SupabaseObjectStorage(client, clip_bucket="social_clips")
    url = await storage.put(b"x", "u/1_clip.mp4", "video/mp4")

    assert url.endswith("/storage/v1/object/public/social_clips/u/1_clip.mp4")
    assert client.uploads[0][2]["content-type"] == "video/mp4"


async def test_storage_fetch_source_uses_source_bucket():
    storage = SupabaseObjectStorage(FakeSupabase(), source_bucket="videos")
    data = await storage.fetch_source("https://x/storage/v1/object/public/videos/a/b.mp4")
    assert data == b"videos:a/b.mp4"


async def test_catalog_insert_keeps_caption_origin():
    client = FakeSupabase([{"id": "sc-9", **record_to_row(_record())}])
    stored = await SupabaseCatalog(client, table="subclip_library").insert(_record())

    assert stored.id == "sc-9"
    assert stored.caption_origin is CaptionOrigin.AI_GENERATED
    assert client.tables == ["subclip_library"]
