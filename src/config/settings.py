"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: Literal["local", "dev", "prod"] = Field(default="local")
    log_level: str = Field(default="INFO")

    # Remote classifier
    classifier_provider: Literal["gemini", "gemini_rest"] = Field(default="gemini")
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("gemini_api_key", "api_key"),
        description="Credential for the hosted Gemini model.",
    )
    classifier_model: str = Field(default="gemini-2.5-flash")
    gemini_endpoint: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL used by the plain HTTPS client.",
    )
    classifier_timeout_seconds: float | None = Field(
        default=None,
        description="Optional HTTP timeout for the plain HTTPS client. None waits indefinitely.",
    )
    model_context_max_chars: int = Field(
        default=2000,
        ge=0,
        description="Prefix of the notebook text embedded in the classification prompt.",
    )

    # Uploads
    max_upload_bytes: int = Field(default=25 * 1024 * 1024, gt=0)

    # Spectrum visualizer
    visualizer_fft_size: int = Field(default=256)
    visualizer_smoothing: float = Field(default=0.8, ge=0.0, le=1.0)
    visualizer_min_decibels: float = Field(default=-100.0)
    visualizer_max_decibels: float = Field(default=-30.0)
    visualizer_width: int = Field(default=600, gt=0)
    visualizer_height: int = Field(default=150, gt=0)
    visualizer_frame_rate: float = Field(default=60.0, gt=0.0)

    @field_validator("visualizer_fft_size")
    @classmethod
    def fft_size_power_of_two(cls, value: int) -> int:
        if value < 32 or value & (value - 1):
            raise ValueError("visualizer_fft_size must be a power of two >= 32.")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
