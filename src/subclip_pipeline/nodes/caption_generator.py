"""Caption Generator node — AI-authored caption with a deterministic fallback."""

from __future__ import annotations

import structlog
from langchain_core.runnables import RunnableConfig

from subclip_pipeline.graph.policy import recovers_locally
from subclip_pipeline.graph.state import SubClipState, services_from
from subclip_pipeline.models.clip import CaptionMode, CaptionOrigin, CaptionResult

logger = structlog.get_logger()

# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

HASHTAG_DELIMITER = "Hashtags:"
MAX_HASHTAGS = 8

CAPTION_SYSTEM_PROMPT = f"""\
You are a professional social media caption writer. Create engaging captions \
with relevant hashtags for TikTok/Instagram. Format your response as:
[Caption text]

{HASHTAG_DELIMITER} #tag1 #tag2 #tag3"""

CAPTION_USER_PROMPT = """\
Create a viral caption for a {duration:g}s video titled "{title}". Include 5-8 \
relevant hashtags. The video is about {kind}. Make it engaging and optimized \
for TikTok/Instagram Reels."""

FALLBACK_CAPTION = "Check out my latest: {title} \U0001f3b5"
FALLBACK_HASHTAGS = ["#music", "#artist", "#newrelease"]


class EmptyCaption(ValueError):
    """The AI service answered but produced no usable caption."""


def normalize_hashtag(token: str) -> str:
    """Strip every ``#`` from ``token`` and prefix exactly one."""
    bare = token.replace("#", "").strip()
    return f"#{bare}" if bare else ""


def parse_caption_response(content: str) -> tuple[str, list[str]]:
    """Split an AI response on the hashtag delimiter.

    Returns:
        (caption text, normalized hashtags)

    Raises:
        EmptyCaption: If no caption text remains after parsing.
    """
    caption_part, _, tags_part = content.partition(HASHTAG_DELIMITER)
    text = caption_part.strip()
    if not text:
        raise EmptyCaption("AI response contained no caption text")

    hashtags: list[str] = []
    for token in tags_part.split():
        tag = normalize_hashtag(token)
        if tag and tag not in hashtags:
            hashtags.append(tag)
    return text, hashtags[:MAX_HASHTAGS]


def fallback_caption(title: str) -> CaptionResult:
    return CaptionResult(
        text=FALLBACK_CAPTION.format(title=title or "new clip"),
        hashtags=list(FALLBACK_HASHTAGS),
        origin=CaptionOrigin.FALLBACK_TEMPLATE,
    )


async def generate_caption(captions, title: str, kind: str, duration: float) -> CaptionResult:
    """Ask the caption model for a caption; fall back when the stage policy allows."""
    user_prompt = CAPTION_USER_PROMPT.format(
        duration=duration, title=title, kind=kind.replace("_", " ")
    )
    try:
        content = await captions.complete(CAPTION_SYSTEM_PROMPT, user_prompt)
        text, hashtags = parse_caption_response(content or "")
    except Exception as exc:
        if not recovers_locally("caption"):
            raise
        logger.warning(
            "caption_generator.fallback",
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return fallback_caption(title)

    return CaptionResult(text=text, hashtags=hashtags, origin=CaptionOrigin.AI_GENERATED)


async def caption_generator(state: SubClipState, config: RunnableConfig) -> dict:
    """Produce the clip caption; never fails the run on AI errors."""
    services = services_from(config)
    request = state["clip_request"]
    source = state["source_media"]

    if request.caption_mode is CaptionMode.LITERAL:
        result = CaptionResult(
            text=request.caption or "",
            hashtags=[],
            origin=CaptionOrigin.CALLER_SUPPLIED,
        )
        logger.info("caption_generator.caller_supplied", length=len(result.text))
        return {"caption_result": result}

    logger.info("caption_generator.start", source_media_id=source.id)
    result = await generate_caption(
        services.captions, source.title, source.kind, request.duration_seconds
    )
    logger.info(
        "caption_generator.done",
        origin=result.origin.value,
        hashtag_count=len(result.hashtags),
    )
    return {"caption_result": result}
