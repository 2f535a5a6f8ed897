"""Cloudinary-backed transcoding service (upload, eager transform, delivery URLs)."""

from __future__ import annotations

import hashlib
import time

import httpx
import structlog

from subclip_pipeline.config import settings
from subclip_pipeline.models.clip import AssetLocator, ResultLocator, TransformSpec
from subclip_pipeline.services import TranscodingService

logger = structlog.get_logger()

_API_BASE = "https://api.cloudinary.com/v1_1"
_DELIVERY_BASE = "https://res.cloudinary.com"

# Parameters Cloudinary excludes from the request signature
_UNSIGNED_PARAMS = {"file", "api_key", "resource_type", "cloud_name"}


def _num(value: float) -> str:
    """Format seconds the way Cloudinary expects (no trailing zeros)."""
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return text or "0"


def sign_params(params: dict[str, str], api_secret: str) -> str:
    """SHA-1 signature over the sorted ``key=value`` pairs plus the API secret."""
    payload = "&".join(
        f"{key}={params[key]}"
        for key in sorted(params)
        if key not in _UNSIGNED_PARAMS and params[key] not in (None, "")
    )
    return hashlib.sha1(f"{payload}{api_secret}".encode("utf-8")).hexdigest()


def transformation_string(spec: TransformSpec) -> str:
    """Render a ``TransformSpec`` as a chained Cloudinary transformation.

    Trim, then fill to the target frame, then composite the overlay in the
    bottom-right corner starting at ``overlay_start_seconds`` of the trimmed clip.
    """
    layer_id = spec.overlay_public_id.replace("/", ":")
    return "/".join(
        [
            f"so_{_num(spec.start_seconds)},eo_{_num(spec.end_seconds)}",
            f"c_fill,w_{spec.width},h_{spec.height}",
            f"l_{layer_id},w_{spec.overlay_width}",
            (
                f"fl_layer_apply,g_south_east,x_{spec.overlay_margin},"
                f"y_{spec.overlay_margin},so_{_num(spec.overlay_start_seconds)}"
            ),
        ]
    )


class CloudinaryTranscoder(TranscodingService):
    """Talks to the Cloudinary upload/admin REST API with signed requests."""

    def __init__(
        self,
        cloud_name: str | None = None,
        api_key: str | None = None,
        api_secret: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.cloud_name = cloud_name or settings.cloudinary_cloud_name
        self.api_key = api_key or settings.cloudinary_api_key
        self.api_secret = api_secret or settings.cloudinary_api_secret
        self.timeout = timeout or settings.http_timeout_sec
        self._transport = transport

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout or self.timeout, transport=self._transport)

    def _signed(self, params: dict[str, str]) -> dict[str, str]:
        signed = {**params, "timestamp": str(int(time.time()))}
        signed["signature"] = sign_params(signed, self.api_secret)
        signed["api_key"] = self.api_key
        return signed

    def _api_url(self, resource_type: str, action: str) -> str:
        return f"{_API_BASE}/{self.cloud_name}/{resource_type}/{action}"

    def delivery_url(
        self, public_id: str, transformation: str = "", resource_type: str = "video", ext: str = "mp4"
    ) -> str:
        parts = [_DELIVERY_BASE, self.cloud_name, resource_type, "upload"]
        if transformation:
            parts.append(transformation)
        return "/".join(parts) + f"/{public_id}.{ext}"

    async def _post(self, url: str, data: dict[str, str], files=None) -> dict:
        async with self._client() as client:
            resp = await client.post(url, data=data, files=files)
            if not resp.is_success:
                logger.error(
                    "cloudinary.api_error",
                    url=url,
                    status_code=resp.status_code,
                    response_body=resp.text[:500],
                )
                resp.raise_for_status()
            return resp.json()

    # ------------------------------------------------------------------
    # TranscodingService
    # ------------------------------------------------------------------

    async def upload_raw(
        self, data: bytes, public_id: str, resource_type: str = "video"
    ) -> AssetLocator:
        logger.info("cloudinary.upload.start", public_id=public_id, bytes=len(data))
        body = await self._post(
            self._api_url(resource_type, "upload"),
            data=self._signed({"public_id": public_id}),
            files={"file": (public_id.rsplit("/", 1)[-1], data)},
        )
        locator = AssetLocator(
            public_id=body.get("public_id", public_id),
            resource_type=resource_type,
            url=body.get("secure_url", ""),
        )
        logger.info("cloudinary.upload.done", public_id=locator.public_id)
        return locator

    async def request_transform(
        self, asset: AssetLocator, spec: TransformSpec
    ) -> ResultLocator:
        transformation = transformation_string(spec)
        await self._post(
            self._api_url("video", "explicit"),
            data=self._signed(
                {
                    "public_id": asset.public_id,
                    "type": "upload",
                    "eager": transformation,
                    "eager_async": "true",
                }
            ),
        )
        return ResultLocator(
            public_id=asset.public_id,
            transformation=transformation,
            url=self.delivery_url(asset.public_id, transformation),
        )

    async def check_ready(self, result: ResultLocator) -> bool:
        async with self._client(timeout=10) as client:
            resp = await client.head(result.url)
        return resp.status_code == 200

    async def download(self, result: ResultLocator) -> bytes:
        async with self._client() as client:
            resp = await client.get(result.url)
            resp.raise_for_status()
        return resp.content

    async def extract_still(
        self, result: ResultLocator, offset_seconds: float, size: tuple[int, int]
    ) -> bytes:
        width, height = size
        still = f"so_{_num(offset_seconds)},w_{width},h_{height},c_fill"
        url = self.delivery_url(
            result.public_id, f"{result.transformation}/{still}", ext="jpg"
        )
        async with self._client() as client:
            resp = await client.get(url)
            resp.raise_for_status()
        return resp.content

    async def delete(self, asset: AssetLocator) -> None:
        body = await self._post(
            self._api_url(asset.resource_type, "destroy"),
            data=self._signed({"public_id": asset.public_id, "invalidate": "true"}),
        )
        if body.get("result") not in ("ok", "not found"):
            raise RuntimeError(f"destroy returned {body.get('result')!r}")
        logger.info("cloudinary.deleted", public_id=asset.public_id)
