"""Tests for caption parsing and the fallback path."""

import httpx
import openai
import pytest

from fakes import FakeCaptionModel
from subclip_pipeline.graph.policy import STAGE_POLICIES, OnFailure
from subclip_pipeline.models.clip import CaptionOrigin
from subclip_pipeline.nodes.caption_generator import (
    FALLBACK_HASHTAGS,
    generate_caption,
    normalize_hashtag,
    parse_caption_response,
)


def _status_error(cls, status: int):
    request = httpx.Request("POST", "https://ai.test/v1/chat/completions")
    response = httpx.Response(status, request=request, json={"error": "nope"})
    return cls("nope", response=response, body=None)


@pytest.mark.parametrize(
    "token,expected",
    [("#music", "#music"), ("music", "#music"), ("##Night#Drive", "#NightDrive"), ("#", "")],
)
def test_normalize_hashtag(token, expected):
    assert normalize_hashtag(token) == expected


def test_parse_splits_on_delimiter():
    text, tags = parse_caption_response(
        "Turn it up tonight.\n\nHashtags: #music ##NightDrive synthwave #music"
    )
    assert text == "Turn it up tonight."
    assert tags == ["#music", "#NightDrive", "#synthwave"]


def test_parse_without_hashtags():
    text, tags = parse_caption_response("Just a caption")
    assert text == "Just a caption"
    assert tags == []


def test_parse_caps_hashtags():
    tags_part = " ".join(f"#t{i}" for i in range(12))
    _, tags = parse_caption_response(f"Caption\nHashtags: {tags_part}")
    assert len(tags) == 8


async def test_ai_success():
    result = await generate_caption(FakeCaptionModel(), "Midnight Drive", "music_video", 15)

    assert result.origin is CaptionOrigin.AI_GENERATED
    assert result.text == "Late-night vibes only. Turn it up."
    assert "#NightDrive" in result.hashtags


async def test_prompt_mentions_title_kind_and_duration():
    model = FakeCaptionModel()
    await generate_caption(model, "Midnight Drive", "music_video", 15)

    prompt = model.calls[0][1]
    assert '15s video titled "Midnight Drive"' in prompt
    assert "music video" in prompt


@pytest.mark.parametrize(
    "error",
    [
        _status_error(openai.RateLimitError, 429),
        _status_error(openai.InternalServerError, 500),
        RuntimeError("caption model returned empty content"),
    ],
)
async def test_ai_failures_fall_back(error):
    result = await generate_caption(FakeCaptionModel(error=error), "Midnight Drive", "music_video", 15)

    assert result.origin is CaptionOrigin.FALLBACK_TEMPLATE
    assert "Midnight Drive" in result.text
    assert result.hashtags == FALLBACK_HASHTAGS


async def test_blank_caption_falls_back():
    result = await generate_caption(
        FakeCaptionModel(response="   \nHashtags: #a #b"), "Midnight Drive", "music_video", 15
    )
    assert result.origin is CaptionOrigin.FALLBACK_TEMPLATE


async def test_fatal_caption_policy_propagates_errors(monkeypatch):
    monkeypatch.setitem(STAGE_POLICIES, "caption", OnFailure.FATAL)
    with pytest.raises(ConnectionError):
        await generate_caption(
            FakeCaptionModel(error=ConnectionError("gateway down")), "Midnight Drive", "music_video", 15
        )
