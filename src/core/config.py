"""
Configuration management with pydantic-settings.

Every tunable of the price engine lives here: acceptance thresholds,
the currency-mismatch penalty and the sanity ceiling are empirically
tuned and must be overridable per deployment through the environment
(prefix ``PRICE_ENGINE_``) or a ``.env`` file.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PRICE_ENGINE_",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Acceptance ────────────────────────────────────────────────────
    confidence_threshold: float = Field(
        default=0.70,
        ge=0.0,
        le=1.0,
        description="Minimum confidence for a parsed price to be surfaced.",
    )
    relaxed_confidence_threshold: float = Field(
        default=0.65,
        ge=0.0,
        le=1.0,
        description="Threshold for sites with known highly variable markup.",
    )

    # ── Validation ────────────────────────────────────────────────────
    currency_mismatch_factor: float = Field(
        default=0.8,
        gt=0.0,
        le=1.0,
        description="Confidence multiplier applied when currency != expected.",
    )
    sanity_ceiling: float = Field(
        default=50_000,
        gt=0,
        description=(
            "Values above this, in dollar-sized units, are treated as digit-concatenation "
            "errors. Multiplied per currency by its price_scale."
        ),
    )
    sanity_floor: float = Field(
        default=0,
        ge=0,
        description="Values below this are rejected.",
    )

    # ── Parsing defaults ──────────────────────────────────────────────
    default_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Fallback when structured data omits priceCurrency.",
    )
    default_locale: str = Field(
        default="en-US",
        description="Locale assumed when the page declares none.",
    )
    max_text_length: int = Field(
        default=100,
        gt=0,
        description="Longer candidate texts are not considered price labels.",
    )

    # ── Dynamic pages ─────────────────────────────────────────────────
    wait_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="How long to wait for a price element to materialize.",
    )


# Singleton instance — import this everywhere
settings = Settings()
