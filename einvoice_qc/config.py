"""
Configuration for the e-invoice QC service.

Settings are read from environment variables prefixed with ``EINVOICE_``
(for example ``EINVOICE_CURRENCY_CODE=NGN``) or from a local ``.env`` file.
The operating-country defaults here are the values the converters fall back
to when a payload leaves a field out.
"""

import logging
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Operating-country defaults (Nigeria, FIRS e-invoicing)
DEFAULT_COUNTRY_CODE = "NG"
DEFAULT_CURRENCY_CODE = "NGN"

#: Standard VAT rate applied to legacy lines that do not carry their own rate.
STANDARD_VAT_RATE = 7.5

#: Tax category attached to synthesized tax subtotals.
STANDARD_TAX_CATEGORY = "VAT"

#: Invoice type code used when a legacy or XML payload omits one.
#: 381 is "Credit Note"; callers should send the code explicitly.
DEFAULT_INVOICE_TYPE_CODE = "381"

DEFAULT_CITY = "Lagos"
DEFAULT_STREET = "Unspecified"

#: Line count above which an invoice is flagged as a candidate for splitting.
MAX_LINE_ITEMS = 1000

#: Tolerance for monetary consistency checks, in currency units.
AMOUNT_TOLERANCE = 0.01


class Settings(BaseSettings):
    """Service settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="EINVOICE_",
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
    service_name: str = Field(
        default="einvoice-qc-service",
        description="Service identifier for logs and the info endpoint",
    )
    service_version: str = Field(default="1.0.0", description="Service version")
    cors_origins: List[str] = Field(
        default=["*"],
        description="Origins allowed to call the HTTP API (JSON list in the environment)",
    )

    # Operating-country defaults
    country_code: str = Field(
        default=DEFAULT_COUNTRY_CODE,
        min_length=2,
        max_length=2,
        description="ISO country code applied to addresses without one",
    )
    currency_code: str = Field(
        default=DEFAULT_CURRENCY_CODE,
        min_length=3,
        max_length=3,
        description="Document and tax currency applied when a payload has none",
    )
    standard_vat_rate: float = Field(
        default=STANDARD_VAT_RATE,
        ge=0,
        le=100,
        description="VAT percentage applied to lines without a rate",
    )
    tax_category_id: str = Field(
        default=STANDARD_TAX_CATEGORY,
        description="Tax category ID for synthesized tax subtotals",
    )
    default_invoice_type_code: str = Field(
        default=DEFAULT_INVOICE_TYPE_CODE,
        description="Invoice type code applied when a payload has none",
    )
    default_city: str = Field(
        default=DEFAULT_CITY,
        description="City applied to legacy party addresses without one",
    )
    default_street: str = Field(
        default=DEFAULT_STREET,
        description="Street applied to legacy party addresses without one",
    )

    # Rule thresholds
    max_line_items: int = Field(
        default=MAX_LINE_ITEMS,
        ge=1,
        description="Line count above which a warning is issued",
    )
    amount_tolerance: float = Field(
        default=AMOUNT_TOLERANCE,
        ge=0,
        description="Tolerance for monetary consistency checks",
    )
    warn_on_defaults: bool = Field(
        default=True,
        description="Report default substitutions made during conversion as warnings",
    )


def get_settings() -> Settings:
    """
    Build a Settings instance from the current environment.

    Returns:
        Configured Settings instance
    """
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Configure root logging for the CLI and API entry points."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
