"""Storefront Core Configuration

Central defaults for the derived-aggregate computations and the primary
remote source, with environment overrides.

Environment variables:
  STOREFRONT_TAX_RATE: Tax rate applied to order subtotals (default: 0.08)
  STOREFRONT_BASE_FEATURES: Comma-separated base comparison rows
      (default: "Price,Brand,Rating,In Stock")
  STOREFRONT_API_BASE_URL: Base URL of the remote storefront API (unset = offline)
  STOREFRONT_API_TOKEN: Optional bearer token for the remote API
  STOREFRONT_API_TIMEOUT: Request timeout in seconds (default: 10)
"""

import os
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TAX_RATE = 0.08
DEFAULT_BASE_FEATURES = ["Price", "Brand", "Rating", "In Stock"]
DEFAULT_API_TIMEOUT = 10.0

# Entity kinds, also the URL segment on the remote API
PRODUCTS = "products"
ORDERS = "orders"


class CoreConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    tax_rate: float = Field(default=DEFAULT_TAX_RATE, ge=0)
    base_comparison_features: List[str] = Field(
        default_factory=lambda: list(DEFAULT_BASE_FEATURES)
    )


class ApiSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_url: Optional[str] = None
    token: Optional[str] = None
    timeout: float = Field(default=DEFAULT_API_TIMEOUT, gt=0)


def load_config() -> CoreConfig:
    """Build CoreConfig from the environment.

    Raises:
        pydantic.ValidationError: If STOREFRONT_TAX_RATE is not a
            non-negative number.
    """
    values = {}
    tax_rate = os.getenv("STOREFRONT_TAX_RATE")
    if tax_rate:
        values["tax_rate"] = tax_rate
    features = os.getenv("STOREFRONT_BASE_FEATURES")
    if features:
        values["base_comparison_features"] = [
            f.strip() for f in features.split(",") if f.strip()
        ]
    return CoreConfig(**values)


def load_api_settings() -> ApiSettings:
    values = {
        "base_url": os.getenv("STOREFRONT_API_BASE_URL") or None,
        "token": os.getenv("STOREFRONT_API_TOKEN") or None,
    }
    timeout = os.getenv("STOREFRONT_API_TIMEOUT")
    if timeout:
        values["timeout"] = timeout
    return ApiSettings(**values)
