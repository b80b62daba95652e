"""Promo code and shipping calculator.

Totals are derived from the cart on every request, nothing is cached:

    subtotal        = cart.total_price()
    shipping_fee    = 0 if subtotal >= threshold else flat fee
    discount_amount = subtotal × percent / 100   (shipping never discounted)
    total           = subtotal + shipping_fee - discount_amount

The applied promo lives only in this object's memory: it is not persisted
and not shared with other contexts.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from shopcore.cart import CartManager
from shopcore.config import Settings, get_settings
from shopcore.logging import get_logger, sanitize_string_for_logging

logger = get_logger(__name__)


class PromoCode(BaseModel):
    """Static promo table entry."""
    model_config = ConfigDict(frozen=True)

    code: str
    discount_percent: Decimal = Field(ge=0, le=100)
    description: str = ""


class AppliedPromo(BaseModel):
    """The promo currently applied in this session."""
    model_config = ConfigDict(frozen=True)

    code: str
    discount_percent: Decimal


DEFAULT_PROMO_CODES = (
    PromoCode(code="SAVE10", discount_percent=Decimal("10"), description="10% off your order"),
    PromoCode(code="WELCOME", discount_percent=Decimal("15"), description="15% off for new customers"),
    PromoCode(code="BULK20", discount_percent=Decimal("20"), description="20% off bulk orders"),
)


def normalize_code(code: Optional[str]) -> str:
    return (code or "").upper()


@dataclass(frozen=True)
class OrderTotals:
    """Snapshot of derived totals, all in base currency."""
    item_count: int
    subtotal: Decimal
    shipping_fee: Decimal
    discount_amount: Decimal
    total: Decimal
    amount_to_free_shipping: Decimal
    applied_promo: Optional[AppliedPromo] = None

    @property
    def free_shipping(self) -> bool:
        return self.shipping_fee == 0

    def to_dict(self) -> dict:
        return {
            "item_count": self.item_count,
            "subtotal": str(self.subtotal),
            "shipping_fee": str(self.shipping_fee),
            "discount_amount": str(self.discount_amount),
            "total": str(self.total),
            "amount_to_free_shipping": str(self.amount_to_free_shipping),
            "promo_code": self.applied_promo.code if self.applied_promo else None,
        }


class PromotionCalculator:
    """Applies promo codes and derives shipping/discount/total for a cart."""

    def __init__(
        self,
        cart: CartManager,
        promo_codes: Optional[Iterable[PromoCode]] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.cart = cart
        self.free_shipping_threshold = settings.free_shipping_threshold
        self.flat_shipping_fee = settings.shipping_fee
        self.codes: Dict[str, PromoCode] = {
            normalize_code(p.code): p
            for p in (DEFAULT_PROMO_CODES if promo_codes is None else promo_codes)
        }
        self.applied: Optional[AppliedPromo] = None

    # ==================== Promo ====================

    def lookup(self, code: str) -> Optional[PromoCode]:
        return self.codes.get(normalize_code(code))

    def apply(self, code: str) -> Optional[AppliedPromo]:
        """
        Apply a promo code (case-insensitive).

        Unknown codes are ignored: no state change, no error.

        Returns:
            The applied promo, or None if the code is unknown
        """
        promo = self.lookup(code)
        if promo is None:
            logger.debug(f"Unknown promo code ignored: {sanitize_string_for_logging(code, 20)}")
            return None

        self.applied = AppliedPromo(code=normalize_code(promo.code), discount_percent=promo.discount_percent)
        return self.applied

    def remove(self) -> None:
        self.applied = None

    # ==================== Totals ====================

    def subtotal(self) -> Decimal:
        return self.cart.total_price()

    def shipping_fee(self, subtotal: Optional[Decimal] = None) -> Decimal:
        subtotal = self.subtotal() if subtotal is None else subtotal
        if subtotal >= self.free_shipping_threshold:
            return Decimal("0")
        return self.flat_shipping_fee

    def discount_amount(self, subtotal: Optional[Decimal] = None) -> Decimal:
        if self.applied is None:
            return Decimal("0")
        subtotal = self.subtotal() if subtotal is None else subtotal
        # Exact; rounded only when rendered
        return subtotal * self.applied.discount_percent / 100

    def total(self) -> Decimal:
        return self.totals().total

    def totals(self) -> OrderTotals:
        """Derive every figure from the current cart in one pass."""
        subtotal = self.subtotal()
        shipping = self.shipping_fee(subtotal)
        discount = self.discount_amount(subtotal)
        return OrderTotals(
            item_count=self.cart.total_items(),
            subtotal=subtotal,
            shipping_fee=shipping,
            discount_amount=discount,
            total=subtotal + shipping - discount,
            amount_to_free_shipping=max(self.free_shipping_threshold - subtotal, Decimal("0")),
            applied_promo=self.applied,
        )
