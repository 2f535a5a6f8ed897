"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from subclip_pipeline.api.routes import router
from subclip_pipeline.config import settings
from subclip_pipeline.errors import SubClipError
from subclip_pipeline.log_config import configure_logging

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# CORS configuration
# ---------------------------------------------------------------------------

_DEV_ORIGINS = ("http://localhost:5173", "http://localhost:8080")

# Hosting platforms whose per-branch preview deployments get their own subdomain
_PREVIEW_HOSTS = {
    "vercel.app": r"https://[a-zA-Z0-9\-]+\.vercel\.app",
    "railway.app": r"https://[a-zA-Z0-9\-]+\.up\.railway\.app",
}


def cors_origins(configured: str) -> list[str]:
    """Dev origins plus the comma-separated ``configured`` list, deduplicated."""
    extra = [o.strip().rstrip("/") for o in configured.split(",") if o.strip()]
    return sorted({*_DEV_ORIGINS, *extra})


def preview_origin_regex(origins: list[str]) -> str | None:
    """Regex admitting preview deployments of any configured hosted origin."""
    patterns = sorted({p for host, p in _PREVIEW_HOSTS.items() if any(host in o for o in origins)})
    return f"^({'|'.join(patterns)})$" if patterns else None


_ALLOWED_ORIGINS = cors_origins(settings.allowed_origins)
_ORIGIN_REGEX = preview_origin_regex(_ALLOWED_ORIGINS)


# ---------------------------------------------------------------------------
# App lifecycle
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level, json=settings.log_json)
    logger.info("app.startup", allowed_origins=_ALLOWED_ORIGINS, origin_regex=_ORIGIN_REGEX)
    yield
    logger.info("app.shutdown")


app = FastAPI(
    title="SubClip Generator",
    description="Short-form clip generation with QR end-cards, AI captions and thumbnails",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_ALLOWED_ORIGINS,
    allow_origin_regex=_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["authorization", "content-type", "x-client-info", "apikey"],
)

app.include_router(router)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


@app.exception_handler(SubClipError)
async def subclip_error_handler(request: Request, exc: SubClipError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    return JSONResponse(
        status_code=400,
        content={"error": f"Missing or invalid fields: {', '.join(fields)}", "code": "invalid_request"},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("api.unexpected_error", path=request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Unknown error"})


@app.get("/health")
async def health_check():
    return {"status": "ok"}
