"""Centralised server configuration loaded from environment / .env file."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings; values are sourced from env vars or ``.env``."""

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Mistral API ──────────────────────────────────────────────────────
    mistral_api_key: str = Field(default="", description="Mistral La Plateforme API key")
    mistral_translation_model: str = "mistral-small-latest"
    translation_max_tokens: int = 4096
    translation_target_language: str = "Polish"

    # ── Storage ──────────────────────────────────────────────────────────
    data_file: Path = Field(
        default=_PROJECT_ROOT / "data" / "tasks.json",
        description="JSON document holding the canonical board",
    )
    save_debounce_seconds: float = 0.15

    # ── Server ───────────────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"])
    max_body_bytes: int = 1_000_000
    debug: bool = False


settings = Settings()
