"""QR code rendering through an HTTP image service."""

from __future__ import annotations

import httpx
import structlog

from subclip_pipeline.config import settings
from subclip_pipeline.services import RenderingService

logger = structlog.get_logger()


class HttpQRRenderer(RenderingService):
    """Renders QR images with a qrserver-compatible ``create-qr-code`` endpoint."""

    def __init__(
        self,
        endpoint: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint or settings.qr_render_url
        self.timeout = timeout or settings.http_timeout_sec
        self._transport = transport

    async def render(
        self, url: str, size: int, error_correction: str, margin: int
    ) -> bytes:
        params = {
            "data": url,
            "size": f"{size}x{size}",
            "ecc": error_correction,
            "margin": str(margin),
            "format": "png",
        }
        logger.info("qr_render.start", size=size, ecc=error_correction, margin=margin)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.get(self.endpoint, params=params)
            if not resp.is_success:
                logger.error(
                    "qr_render.api_error",
                    status_code=resp.status_code,
                    response_body=resp.text[:500],
                )
                resp.raise_for_status()

        if not resp.content:
            raise RuntimeError("QR render service returned an empty body")

        logger.info("qr_render.done", bytes=len(resp.content))
        return resp.content
