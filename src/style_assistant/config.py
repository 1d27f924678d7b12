"""Configuration management for the style assistant."""

from __future__ import annotations

from typing import Literal

from common.config import Settings as BaseSettings


class Settings(BaseSettings):
    """Style assistant configuration.

    Inherits logging and environment settings from ``common.config.Settings``
    and adds the session's feature flag, timing constants, and ledger rates.
    """

    # Service identity
    service_name: str = "style-assistant"
    service_version: str = "0.1.0"

    # Feature flag: "full" enables cart and checkout, "catalog" is browse-only
    ecommerce_mode: Literal["full", "catalog"] = "full"

    # Turn timing (seconds)
    thinking_step_delay: float = 0.6
    thinking_settle_delay: float = 0.5
    response_delay: float = 0.3

    # Filter prompt timing (seconds)
    filter_response_delay: float = 0.0
    filter_advance_delay: float = 0.8

    # Checkout timing (seconds)
    payment_processing_delay: float = 2.0
    order_confirmation_delay: float = 3.0

    # Cart ledger
    tax_rate: float = 0.08
    free_shipping_threshold: float = 100.0
    flat_shipping_fee: float = 10.0

    # Catalog
    default_price_range: tuple[float, float] = (0, 1000)
    default_bucket_limit: int = 50


def get_settings() -> Settings:
    """Return a settings instance read from the environment."""
    return Settings()
