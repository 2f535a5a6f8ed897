"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Supabase (storage, catalog, auth)
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    source_bucket: str = "videos"
    clip_bucket: str = "social_clips"
    subclip_table: str = "subclip_library"

    # Public portal the overlay links point to
    portal_base_url: str = "https://subamerica.net"

    # QR rendering service
    qr_render_url: str = "https://api.qrserver.com/v1/create-qr-code/"
    qr_size: int = 800
    qr_error_correction: str = "H"
    qr_margin: int = 40

    # Transcoding service (Cloudinary)
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    transcode_folder: str = "subclips"

    # AI caption service (OpenAI-compatible gateway)
    ai_base_url: str = "https://ai.gateway.lovable.dev/v1"
    ai_api_key: str = ""
    caption_model: str = "google/gemini-2.5-flash"

    # Pipeline Settings
    min_clip_seconds: float = 3.0
    max_clip_seconds: float = 60.0
    overlay_lead_seconds: float = 2.5
    overlay_margin_px: int = 30
    poll_interval_sec: float = 2.0
    poll_max_attempts: int = 30
    thumbnail_offset_sec: float = 1.0
    http_timeout_sec: float = 60.0

    # Server
    allowed_origins: str = ""
    log_level: str = "INFO"
    log_json: bool = False


settings = Settings()
