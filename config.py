"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).
Sub-configs are composed into AppSettings by a model_validator so every
section reads from the same env/dotenv source.
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "recipe-hub"


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    jwt_issuer: str = "recipe-hub"
    jwt_audience: str = "recipe-hub.api"
    access_token_ttl_seconds: int = 604800  # 7 days

    # RS256 keys (preferred)
    jwt_private_key: str = ""
    jwt_public_key: str = ""

    # HS256 fallback (used when RS256 keys are absent)
    jwt_secret: str = ""

    @property
    def use_rs256(self) -> bool:
        return bool(self.jwt_private_key and self.jwt_public_key)


class EmailSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Empty token → ConsoleEmailProvider (development)
    zepto_api_token: str = ""
    zepto_api_url: str = "https://api.zeptomail.com/v1.1/email"
    zepto_from_email: str = "noreply@recipe-hub.app"
    zepto_from_name: str = "Recipe Hub"
    http_timeout_seconds: float = 10.0


class VerificationSettings(BaseSettings):
    """Hybrid token/OTP challenge policy for both flows."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    verify_mode_token: bool = True
    verify_mode_otp: bool = True
    verify_token_expires_min: int = 60
    verify_code_expires_min: int = 15
    verify_code_length: int = 6
    verify_max_attempts: int = 5

    reset_mode_token: bool = True
    reset_mode_otp: bool = True
    reset_token_expires_min: int = 30
    reset_code_expires_min: int = 10
    reset_code_length: int = 6
    reset_max_attempts: int = 5

    resend_cooldown_seconds: int = 60

    @model_validator(mode="after")
    def _require_a_mode(self) -> "VerificationSettings":
        if not (self.verify_mode_token or self.verify_mode_otp):
            raise ValueError("email verification needs token and/or OTP mode")
        if not (self.reset_mode_token or self.reset_mode_otp):
            raise ValueError("password reset needs token and/or OTP mode")
        return self


class MediaSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    default_avatar_url: str = ""
    default_recipe_thumbnail: str = ""
    default_blog_thumbnail: str = ""


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_url: str = "http://localhost:5173"
    app_name: str = "Recipe Hub"

    # Empty list → all origins (development)
    cors_origins: list[str] = []

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    jwt: Optional[JWTSettings] = None
    email: Optional[EmailSettings] = None
    verification: Optional[VerificationSettings] = None
    media: Optional[MediaSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.db is None:
            self.db = DatabaseSettings()
        if self.jwt is None:
            self.jwt = JWTSettings()
        if self.email is None:
            self.email = EmailSettings()
        if self.verification is None:
            self.verification = VerificationSettings()
        if self.media is None:
            self.media = MediaSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def allowed_origins(self) -> list[str]:
        return self.cors_origins or ["*"]
