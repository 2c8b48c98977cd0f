"""Application settings loaded from the environment and ``.env``."""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(raw: str) -> list[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Runtime
    environment: str = "development"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./survey.db"
    create_tables_on_startup: bool = True

    # Admin access
    admin_keys: str = Field(default="", validation_alias=AliasChoices("admin_keys", "admin_key"))
    admin_emails: str = Field(
        default="",
        validation_alias=AliasChoices("admin_emails", "admin_notification_email"),
    )
    access_token_ttl_minutes: int = 10
    access_request_window_minutes: int = 15
    access_request_max: int = 3
    decision_requires_confirmation: bool = False

    # Email (Resend)
    resend_api_key: str = ""
    email_from: str = ""
    email_timeout_seconds: float = 20
    app_base_url: str = "http://localhost:5000"

    # OTP
    otp_ttl_minutes: int = 10
    verified_email_ttl_minutes: int = 60
    require_verified_email: bool = True

    # TTL store backend: memory:// or redis://host:port/db
    cache_url: str = "memory://"

    # CORS, empty means any origin
    cors_origin: str = ""

    export_timezone: str = "Asia/Kolkata"

    @property
    def admin_key_set(self) -> frozenset[str]:
        return frozenset(_split_csv(self.admin_keys))

    @property
    def admin_recipients(self) -> list[str]:
        return _split_csv(self.admin_emails)

    @property
    def cors_origins(self) -> list[str]:
        return _split_csv(self.cors_origin) or ["*"]

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "test")

    @property
    def public_base_url(self) -> str:
        return self.app_base_url.rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
