"""Application configuration using pydantic-settings."""
from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = Field("member-portal", description="Service name for logging")
    log_level: str = Field("INFO", description="Log level")
    log_file: Path = Field(Path("member-portal.log"), description="File path for log output")
    host: str = Field("0.0.0.0", description="Host for the HTTP server")
    port: int = Field(8000, description="Port for the HTTP server")

    database_url: str = Field(
        "sqlite:///./member_portal.db", description="SQLAlchemy database URL"
    )

    default_membership_tier: str = Field(
        "TAGESMITGLIED", description="Tier assigned to newly registered members"
    )
    seed_defaults: bool = Field(
        True, description="Reconcile default tiers and benefits at startup"
    )
    seed_demo_data: bool = Field(
        False,
        description="Also seed demo members, radio settings, gallery images and news",
    )

    admin_enforced: bool = Field(
        True, description="Require the admin flag on administrative endpoints"
    )
    identity_header: str = Field(
        "X-User-Id", description="Header carrying the authenticated member id"
    )

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).parent.parent / ".env"),
        env_file_encoding="utf-8",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
