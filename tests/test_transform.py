"""Tests for the transform orchestrator: overlay timing, submission, polling."""

import pytest

from fakes import OWNER_ID, FakeTranscoder, make_services, source_media
from subclip_pipeline.config import Settings
from subclip_pipeline.errors import TransformRequestFailed, TransformTimeout
from subclip_pipeline.models.clip import (
    AssetLocator,
    ClipRequest,
    OverlayAsset,
    TransformStatus,
)
from subclip_pipeline.nodes.transform_orchestrator import (
    build_transform_spec,
    overlay_appear_offset,
    transform_orchestrator,
)


def _request(start=10.0, end=40.0, orientation="vertical") -> ClipRequest:
    return ClipRequest(
        source_media_id="v1",
        start_seconds=start,
        end_seconds=end,
        overlay_kind="tip",
        orientation=orientation,
    )


def _state(request):
    return {
        "caller_id": OWNER_ID,
        "stamp": "1700000000000_abcd1234",
        "clip_request": request,
        "source_media": source_media(),
        "overlay_asset": OverlayAsset(
            destination_url="https://subamerica.net/night-owls?action=tip",
            storage_locator=AssetLocator(public_id="subclips/u/qr", resource_type="image"),
        ),
    }


def test_overlay_appears_for_final_seconds():
    assert overlay_appear_offset(30, 2.5) == 27.5


def test_overlay_offset_at_minimum_duration():
    assert overlay_appear_offset(3, 2.5) == 0.5


def test_overlay_offset_clamps_to_zero():
    assert overlay_appear_offset(2, 2.5) == 0
    assert overlay_appear_offset(2.5, 2.5) == 0


def test_spec_relative_to_trimmed_clip():
    spec = build_transform_spec(_request(10, 40), "subclips/u/qr", Settings(_env_file=None))

    assert spec.start_seconds == 10
    assert spec.end_seconds == 40
    assert spec.overlay_start_seconds == 27.5
    assert (spec.width, spec.height) == (1080, 1920)
    assert spec.overlay_width == 270
    assert spec.overlay_margin == 30


def test_landscape_frame():
    spec = build_transform_spec(_request(orientation="landscape"), "qr", Settings(_env_file=None))
    assert (spec.width, spec.height) == (1920, 1080)
    assert spec.overlay_width == 480


async def test_ready_job_is_returned():
    services = make_services(transcoder=FakeTranscoder(ready_after=3))
    update = await transform_orchestrator(_state(_request()), {"configurable": {"services": services}})

    job = update["transform_job"]
    assert job.status is TransformStatus.READY
    assert job.attempts == 3
    assert job.source_asset.public_id == "subclips/user-owner/1700000000000_abcd1234_source"
    assert services.transcoder.specs[0].overlay_start_seconds == 27.5


async def test_transient_check_errors_do_not_fail():
    services = make_services(transcoder=FakeTranscoder(ready_after=2, flaky_checks=1))
    update = await transform_orchestrator(_state(_request()), {"configurable": {"services": services}})
    assert update["transform_job"].attempts == 2


async def test_never_ready_times_out_after_budget():
    services = make_services(transcoder=FakeTranscoder(ready_after=None))

    with pytest.raises(TransformTimeout):
        await transform_orchestrator(_state(_request()), {"configurable": {"services": services}})

    assert services.transcoder.checks == 30
    assert services.sleep.delays == [2.0] * 30


async def test_rejected_submission():
    services = make_services(transcoder=FakeTranscoder(fail_transform=True))

    with pytest.raises(TransformRequestFailed):
        await transform_orchestrator(_state(_request()), {"configurable": {"services": services}})
    assert "check_ready" not in services.transcoder.names()


async def test_failed_raw_upload():
    services = make_services(transcoder=FakeTranscoder(fail_upload=True))

    with pytest.raises(TransformRequestFailed):
        await transform_orchestrator(_state(_request()), {"configurable": {"services": services}})
    assert "request_transform" not in services.transcoder.names()
