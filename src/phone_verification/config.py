"""Phone Verification Service — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── Database (durable code store) ─────────────────────
    database_url: str = "sqlite+aiosqlite:///./phone_verification.db"

    # ── WhatsApp Business API (code delivery) ─────────────
    whatsapp_api_token: str = ""
    whatsapp_phone_number_id: str = ""
    whatsapp_api_version: str = "v21.0"

    # ── Verification codes ────────────────────────────────
    code_length: int = 6
    code_ttl_minutes: float = 10
    sweep_interval_seconds: float = 60
    # Development only: echo the plaintext code back to the caller
    expose_debug_code: bool = False
    # Development only: log codes instead of sending them when no
    # WhatsApp token is configured
    delivery_mock: bool = False

    # ── App ───────────────────────────────────────────────
    app_name: str = "Phone Verification"
    debug: bool = False
    database_echo: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton settings instance
settings = Settings()
