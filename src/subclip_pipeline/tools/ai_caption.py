"""Chat-completion caption model on an OpenAI-compatible gateway."""

from __future__ import annotations

import structlog
from openai import AsyncOpenAI

from subclip_pipeline.config import settings
from subclip_pipeline.services import CaptionModel

logger = structlog.get_logger()


class OpenAICaptionModel(CaptionModel):
    """Wraps ``AsyncOpenAI`` chat completions.

    Rate limits (429), quota errors and other non-2xx answers surface as
    ``openai.APIStatusError`` subclasses; callers decide how to recover.
    """

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        model: str | None = None,
    ) -> None:
        self.client = client or AsyncOpenAI(
            api_key=settings.ai_api_key or "unset",
            base_url=settings.ai_base_url,
            max_retries=0,
            timeout=settings.http_timeout_sec,
        )
        self.model = model or settings.caption_model

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        logger.info("ai_caption.start", model=self.model, prompt_len=len(user_prompt))
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise RuntimeError("caption model returned empty content")
        logger.info("ai_caption.done", content_len=len(content))
        return content
