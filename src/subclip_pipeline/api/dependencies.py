"""FastAPI dependency injection — collaborator bundle and caller identity."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from subclip_pipeline.config import settings
from subclip_pipeline.errors import Unauthenticated
from subclip_pipeline.services import PipelineServices
from subclip_pipeline.tools.ai_caption import OpenAICaptionModel
from subclip_pipeline.tools.cloudinary import CloudinaryTranscoder
from subclip_pipeline.tools.qr_render import HttpQRRenderer
from subclip_pipeline.tools.supabase_store import (
    SupabaseCatalog,
    SupabaseIdentity,
    SupabaseObjectStorage,
)


@lru_cache(maxsize=1)
def get_services() -> PipelineServices:
    """Return the singleton bundle of production collaborators."""
    return PipelineServices(
        identity=SupabaseIdentity(),
        renderer=HttpQRRenderer(),
        transcoder=CloudinaryTranscoder(),
        captions=OpenAICaptionModel(),
        storage=SupabaseObjectStorage(),
        catalog=SupabaseCatalog(),
        settings=settings,
    )


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        return ""
    scheme, _, token = authorization.partition(" ")
    return token.strip() if scheme.lower() == "bearer" else ""


async def get_optional_caller_id(
    authorization: Optional[str] = Header(default=None),
    services: PipelineServices = Depends(get_services),
) -> Optional[str]:
    """Resolve the caller from the bearer token; None when absent or invalid."""
    token = _bearer_token(authorization)
    if not token:
        return None
    return await services.identity.resolve_caller(token)


async def get_caller_id(
    caller_id: Optional[str] = Depends(get_optional_caller_id),
) -> str:
    if not caller_id:
        raise Unauthenticated("Unauthorized")
    return caller_id
