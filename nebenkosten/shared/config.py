"""Shared configuration management for the Nebenkosten checker.

Based on Pydantic Settings v2:
https://docs.pydantic.dev/latest/concepts/pydantic_settings/

Business thresholds (comparison bands, savings triggers, confidence deltas)
live here as well so they can be tuned per locale without code changes.
They are provisional product rules, not statistically derived values.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with the prefix 'APP_'.
    Example: APP_LOG_LEVEL=debug
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Service configuration
    service_name: str = Field(
        default="nebenkosten-checker",
        description="Service identifier for metrics and logs",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )

    # OCR configuration
    ocr_provider: Literal["tesseract", "paddleocr"] = Field(
        default="tesseract",
        description="OCR provider: tesseract (CPU), paddleocr (GPU-accelerated)",
    )
    ocr_language: str = Field(
        default="deu",
        description="Tesseract language hint (German utility bills)",
    )
    ocr_preprocess: bool = Field(
        default=True,
        description="Enhance contrast, sharpen and binarize images before OCR",
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum accepted upload size in bytes",
    )
    pdf_max_pages: int = Field(
        default=3,
        ge=1,
        description="Leading PDF pages rendered for OCR; statements put the figures up front",
    )
    pdf_render_dpi: int = Field(
        default=144,
        description="Resolution of rendered PDF pages (twice the PDF default of 72)",
    )

    # Extraction configuration
    extraction_provider: str = Field(
        default="heuristic",
        description="Name of a provider in the extraction ProviderRegistry",
    )
    max_plausible_cost: float = Field(
        default=1000.0,
        description="Extracted cost amounts at or above this value are treated as noise",
    )

    # External services
    http_timeout_seconds: float = Field(
        default=8.0,
        description="Timeout for calls to external APIs",
    )
    location_api_base_url: str = Field(
        default="https://api.zippopotam.us/de",
        description="Postal code lookup API (Zippopotam.us format)",
    )
    awattar_api_url: str = Field(
        default="https://api.awattar.de/v1/marketdata",
        description="aWATTar market data endpoint",
    )
    energy_charts_api_url: str = Field(
        default="https://api.energy-charts.info/price",
        description="Energy-Charts day-ahead price endpoint",
    )
    energy_charts_bidding_zone: str = Field(
        default="DE-LU",
        description="Bidding zone queried on Energy-Charts",
    )

    # Electricity price handling (review periodically)
    fallback_electricity_price: float = Field(
        default=0.397,
        description="German household average in EUR/kWh used when all price sources fail",
    )
    household_price_markup: float = Field(
        default=0.28,
        description="Taxes, grid fees and supplier margin added to wholesale EUR/kWh",
    )

    # Comparison bands (percentage deviation from baseline)
    band_low_below: float = Field(
        default=-15.0,
        description="Deviations below this are 'low'",
    )
    band_high_from: float = Field(
        default=15.0,
        description="Deviations from this value up are 'high'",
    )
    band_very_high_from: float = Field(
        default=50.0,
        description="Deviations from this value up are 'very_high'",
    )

    # Savings estimation
    heating_excess_multiplier: float = Field(
        default=1.2,
        description="Heating triggers a recommendation above this multiple of baseline",
    )
    water_excess_multiplier: float = Field(
        default=1.3,
        description="Water triggers a recommendation above this multiple of baseline",
    )
    maintenance_excess_multiplier: float = Field(
        default=1.5,
        description="Maintenance triggers a recommendation above this multiple of baseline",
    )
    savings_landlord_tier: float = Field(
        default=200.0,
        description="Annual savings (EUR) above which landlord contact is recommended",
    )
    savings_tenant_association_tier: float = Field(
        default=500.0,
        description="Annual savings (EUR) above which a tenant association is recommended",
    )

    # Confidence scoring
    confidence_estimated_penalty: int = Field(default=25)
    confidence_small_town_penalty: int = Field(default=15)
    confidence_missing_data_penalty: int = Field(default=20)
    confidence_large_city_bonus: int = Field(default=10)
    small_town_population: int = Field(
        default=50_000,
        description="Population below which baseline data is considered thin",
    )
    large_city_population: int = Field(
        default=500_000,
        description="Population above which official baselines earn a bonus",
    )
    confidence_floor: int = Field(default=50)
    confidence_ceiling: int = Field(default=100)


def get_settings() -> Settings:
    """Factory function to get settings instance.

    Returns:
        Configured Settings instance
    """
    return Settings()
