"""Tests for request validation and ownership checks."""

import pytest

from fakes import OTHER_ID, OWNER_ID, FakeIdentity, make_services
from subclip_pipeline.config import Settings
from subclip_pipeline.errors import Forbidden, InvalidWindow, NotFound, Unauthenticated
from subclip_pipeline.models.clip import CaptionMode, Orientation, OverlayKind
from subclip_pipeline.nodes.request_validator import build_clip_request, request_validator


def _raw(**overrides) -> dict:
    raw = {
        "source_media_id": "v1",
        "start_seconds": 0,
        "end_seconds": 15,
        "overlay_kind": "tip",
        "orientation": "vertical",
        "auto_caption": True,
    }
    raw.update(overrides)
    return raw


def _state(caller_id, raw):
    return {"caller_id": caller_id, "raw_request": raw, "stamp": "1_abc"}


def _config(services):
    return {"configurable": {"services": services}}


@pytest.mark.parametrize("start,end", [(0, 3), (10, 40), (5, 65)])
def test_accepts_bounds_inclusive(start, end):
    request = build_clip_request(_raw(start_seconds=start, end_seconds=end), Settings(_env_file=None))
    assert 3 <= request.duration_seconds <= 60


@pytest.mark.parametrize("start,end", [(0, 2.9), (10, 10), (0, 60.5), (20, 10)])
def test_rejects_out_of_range_windows(start, end):
    with pytest.raises(InvalidWindow):
        build_clip_request(_raw(start_seconds=start, end_seconds=end), Settings(_env_file=None))


def test_missing_overlay_kind_is_invalid():
    with pytest.raises(InvalidWindow, match="overlay_kind"):
        build_clip_request(_raw(overlay_kind=None), Settings(_env_file=None))


def test_unknown_overlay_kind_is_invalid():
    with pytest.raises(InvalidWindow):
        build_clip_request(_raw(overlay_kind="billboard"), Settings(_env_file=None))


def test_caption_mode_selection():
    settings = Settings(_env_file=None)
    auto = build_clip_request(_raw(), settings)
    literal = build_clip_request(_raw(caption="my words", auto_caption=True), settings)
    manual = build_clip_request(_raw(auto_caption=False), settings)

    assert auto.caption_mode is CaptionMode.AUTO
    assert literal.caption_mode is CaptionMode.LITERAL
    assert literal.caption == "my words"
    assert manual.caption_mode is CaptionMode.LITERAL
    assert auto.orientation is Orientation.VERTICAL
    assert auto.overlay_kind is OverlayKind.TIP


def test_request_is_immutable():
    request = build_clip_request(_raw(), Settings(_env_file=None))
    with pytest.raises(Exception):
        request.end_seconds = 50


async def test_no_caller_is_unauthenticated():
    services = make_services()
    with pytest.raises(Unauthenticated):
        await request_validator(_state(None, _raw()), _config(services))
    assert services.identity.calls == []


async def test_invalid_window_rejected_before_lookup():
    services = make_services()
    with pytest.raises(InvalidWindow):
        await request_validator(_state(OWNER_ID, _raw(end_seconds=90)), _config(services))
    assert services.identity.calls == []


async def test_unknown_source_is_not_found():
    services = make_services()
    with pytest.raises(NotFound):
        await request_validator(_state(OWNER_ID, _raw(source_media_id="nope")), _config(services))


async def test_lookup_error_is_not_found():
    services = make_services(identity=FakeIdentity(fail_lookup=True))
    with pytest.raises(NotFound):
        await request_validator(_state(OWNER_ID, _raw()), _config(services))
    assert services.identity.names() == ["get_source_media"]


async def test_other_users_video_is_forbidden():
    services = make_services()
    with pytest.raises(Forbidden):
        await request_validator(_state(OTHER_ID, _raw()), _config(services))


async def test_owner_gets_request_and_source():
    services = make_services()
    update = await request_validator(_state(OWNER_ID, _raw()), _config(services))

    assert update["clip_request"].duration_seconds == 15
    assert update["source_media"].artist_slug == "night-owls"
    assert services.identity.names() == ["get_source_media"]
