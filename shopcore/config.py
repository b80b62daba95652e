"""Runtime configuration read from the environment (and an optional .env file)."""
from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import cache
from pathlib import Path

from dotenv import load_dotenv

from shopcore.services.money import to_decimal

ROOT_DIR = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=ROOT_DIR / ".env")


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_decimal(*keys: str, default: str) -> Decimal:
    return to_decimal(_get_env(*keys, default=default))


@dataclass(frozen=True)
class Settings:
    store_backend: str
    upstash_url: str
    upstash_token: str
    key_prefix: str
    free_shipping_threshold: Decimal
    shipping_fee: Decimal
    default_currency: str
    default_symbol: str
    default_exchange_rate: Decimal


def load_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings(
        store_backend=(_get_env("SHOPCORE_STORE_BACKEND", default="memory") or "memory").lower(),
        upstash_url=_get_env("UPSTASH_REDIS_REST_URL", default="") or "",
        upstash_token=_get_env("UPSTASH_REDIS_REST_TOKEN", default="") or "",
        key_prefix=_get_env("SHOPCORE_KEY_PREFIX", default="shopcore:") or "",
        free_shipping_threshold=_get_decimal("SHOPCORE_FREE_SHIPPING_THRESHOLD", default="50.00"),
        shipping_fee=_get_decimal("SHOPCORE_SHIPPING_FEE", default="4.99"),
        default_currency=_get_env("SHOPCORE_DEFAULT_CURRENCY", default="GBP") or "GBP",
        default_symbol=_get_env("SHOPCORE_DEFAULT_SYMBOL", default="£") or "£",
        default_exchange_rate=_get_decimal("SHOPCORE_DEFAULT_RATE", default="1"),
    )


@cache
def get_settings() -> Settings:
    """Get cached settings (first call reads the environment)."""
    return load_settings()
