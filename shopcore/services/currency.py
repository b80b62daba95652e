"""
Currency Conversion Service

Prices are authored in the base currency (GBP). The service holds the
active display currency and converts and renders amounts for display.

Two rendering entry points are kept apart on purpose:
- format(amount): amount is in base currency, converted first
- format_currency(amount): amount is already in the active currency
"""
import json
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shopcore.config import Settings, get_settings
from shopcore.db import StorageKeys
from shopcore.errors import ERROR_UNKNOWN_COUNTRY
from shopcore.events import EVENT_COUNTRY_CHANGED, EventBus, emit_country_changed
from shopcore.logging import get_logger, sanitize_string_for_logging
from shopcore.models import ParseResult, parse_json_payload
from shopcore.services.money import Number, format_amount, to_decimal
from shopcore.store import KeyValueStore

logger = get_logger(__name__)


class CurrencySelection(BaseModel):
    """Active currency; replaced as a whole, never edited in place."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    currency: str = Field(min_length=1)
    symbol: str
    exchange_rate: Decimal = Field(alias="exchangeRate")

    @field_validator("exchange_rate", mode="before")
    @classmethod
    def convert_rate_to_decimal(cls, v):
        if isinstance(v, float):
            return to_decimal(v)
        return v

    def to_dict(self) -> dict:
        return {
            "currency": self.currency,
            "symbol": self.symbol,
            "exchangeRate": float(self.exchange_rate),
        }


class Country(BaseModel):
    """Country the shopper can pick, with its display currency."""
    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    currency: str
    symbol: str
    exchange_rate: Decimal


# Rates are units of target currency per 1 GBP
COUNTRIES: Dict[str, Country] = {
    c.code: c
    for c in (
        Country(code="GB", name="United Kingdom", currency="GBP", symbol="£", exchange_rate=Decimal("1")),
        Country(code="NG", name="Nigeria", currency="NGN", symbol="₦", exchange_rate=Decimal("2000")),
        Country(code="GH", name="Ghana", currency="GHS", symbol="₵", exchange_rate=Decimal("15.5")),
        Country(code="IN", name="India", currency="INR", symbol="₹", exchange_rate=Decimal("105")),
        Country(code="JM", name="Jamaica", currency="JMD", symbol="J$", exchange_rate=Decimal("195")),
        Country(code="US", name="United States", currency="USD", symbol="$", exchange_rate=Decimal("1.27")),
    )
}


def parse_currency_payload(raw: Optional[str]) -> ParseResult[CurrencySelection]:
    """Validate a serialized currency selection. Never raises."""
    return parse_json_payload(raw, CurrencySelection.model_validate)


class CurrencyService:
    """Service for currency selection, conversion and display formatting."""

    def __init__(
        self,
        store: KeyValueStore,
        bus: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize currency service.

        Loads the persisted selection, falling back to the configured default
        when the key is missing or unreadable, and starts listening for
        country.changed broadcasts on the bus.

        Args:
            store: Store holding "selectedCurrency"
            bus: Session event bus (a private one if omitted)
            settings: Settings providing the default currency
        """
        self.store = store
        self.bus = bus or EventBus()
        settings = settings or get_settings()
        self.default = CurrencySelection(
            currency=settings.default_currency,
            symbol=settings.default_symbol,
            exchange_rate=settings.default_exchange_rate,
        )
        self._selection = self._load()
        self._unsubscribe = self.bus.subscribe(EVENT_COUNTRY_CHANGED, self.on_country_changed)

    def _load(self) -> CurrencySelection:
        raw = self.store.get(StorageKeys.CURRENCY)
        if raw is None:
            return self.default

        result = parse_currency_payload(raw)
        if not result.ok:
            logger.warning(
                f"Corrupted currency selection in store ({result.error}), using default: "
                f"{sanitize_string_for_logging(raw)}"
            )
            return self.default
        return result.value

    def close(self) -> None:
        """Stop listening for country changes."""
        self._unsubscribe()

    # ==================== State ====================

    @property
    def selection(self) -> CurrencySelection:
        return self._selection

    @property
    def currency(self) -> str:
        return self._selection.currency

    @property
    def symbol(self) -> str:
        return self._selection.symbol

    @property
    def exchange_rate(self) -> Decimal:
        return self._selection.exchange_rate

    def set_currency(self, currency: str, symbol: str, exchange_rate: Number) -> CurrencySelection:
        """
        Replace currency, symbol and rate as one unit and persist them.

        Rates are not validated; a non-positive rate is accepted and logged.
        """
        selection = self._apply(currency, symbol, exchange_rate)
        self.store.set(StorageKeys.CURRENCY, json.dumps(selection.to_dict()))
        return selection

    def _apply(self, currency: str, symbol: str, exchange_rate: Any) -> CurrencySelection:
        selection = CurrencySelection(currency=currency, symbol=symbol, exchange_rate=exchange_rate)
        if selection.exchange_rate <= 0:
            logger.warning(f"Non-positive exchange rate {selection.exchange_rate} for {currency}")
        self._selection = selection
        return selection

    def on_country_changed(self, payload: Dict[str, Any]) -> None:
        """
        Apply a country.changed broadcast.

        The triple replaces the in-memory selection atomically; like the
        storefront it is not written to the store.
        """
        self._apply(payload["currency"], payload["symbol"], payload["exchangeRate"])
        logger.info(f"Currency switched to {self.currency} by country change")

    def select_country(self, code: str) -> Country:
        """
        Broadcast a country change for a country from COUNTRIES.

        Raises:
            ValueError: If the country code is unknown
        """
        country = COUNTRIES.get((code or "").strip().upper())
        if country is None:
            raise ValueError(f"{ERROR_UNKNOWN_COUNTRY}: {code}")
        emit_country_changed(self.bus, country.currency, country.symbol, country.exchange_rate)
        return country

    # ==================== Conversion ====================

    def convert(self, base_amount: Number) -> Decimal:
        """Convert a base-currency amount into the active currency."""
        return to_decimal(base_amount) * self.exchange_rate

    def format(self, base_amount: Number) -> str:
        """Convert a base-currency amount, then render it."""
        return format_amount(self.convert(base_amount), self.currency, self.symbol)

    def format_currency(self, amount: Number) -> str:
        """Render an amount already expressed in the active currency."""
        return format_amount(amount, self.currency, self.symbol)
