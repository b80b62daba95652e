"""
Tests for Promotion Calculator
"""

from decimal import Decimal

import pytest

from shopcore.cart import LineItem
from shopcore.services.promo import PromoCode, PromotionCalculator


def fill(cart, amount):
    cart.add_item(LineItem(product_id="p", name="Item", unit_price=Decimal(amount), quantity=1))


class TestApplyPromo:
    """Tests for applying and removing codes."""

    def test_apply_known_code(self, promo):
        applied = promo.apply("SAVE10")

        assert applied.code == "SAVE10"
        assert applied.discount_percent == 10
        assert promo.applied == applied

    def test_apply_is_case_insensitive(self, promo):
        applied = promo.apply("welcome")

        assert applied.code == "WELCOME"
        assert applied.discount_percent == 15

    def test_padded_code_not_trimmed(self, promo):
        assert promo.apply(" SAVE10 ") is None
        assert promo.applied is None

    def test_unknown_code_ignored(self, promo):
        assert promo.apply("XYZ") is None
        assert promo.applied is None

    def test_unknown_code_keeps_previous(self, promo):
        promo.apply("BULK20")
        before = promo.applied

        assert promo.apply("XYZ") is None
        assert promo.applied == before

    def test_apply_replaces_previous(self, promo):
        promo.apply("SAVE10")
        promo.apply("BULK20")

        assert promo.applied.code == "BULK20"

    def test_remove(self, promo):
        promo.apply("SAVE10")
        promo.remove()

        assert promo.applied is None
        assert promo.discount_amount() == 0

    def test_custom_table(self, cart, settings):
        calc = PromotionCalculator(cart, promo_codes=[PromoCode(code="half", discount_percent=50)], settings=settings)

        assert calc.apply("SAVE10") is None
        assert calc.apply("HALF").discount_percent == 50

    def test_percent_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            PromoCode(code="BAD", discount_percent=120)


class TestTotals:
    """Tests for derived shipping, discount and total."""

    def test_discount_on_subtotal(self, cart, promo):
        fill(cart, "100.00")
        promo.apply("SAVE10")

        assert promo.discount_amount() == Decimal("10.00")

    @pytest.mark.parametrize("subtotal,shipping", [
        ("49.99", Decimal("4.99")),
        ("50.00", Decimal("0")),
        ("0", Decimal("4.99")),
        ("120", Decimal("0")),
    ])
    def test_shipping_threshold(self, cart, promo, subtotal, shipping):
        if Decimal(subtotal) > 0:
            fill(cart, subtotal)

        assert promo.subtotal() == Decimal(subtotal)
        assert promo.shipping_fee() == shipping

    def test_shipping_not_discounted(self, cart, promo):
        fill(cart, "20.00")
        promo.apply("BULK20")
        totals = promo.totals()

        assert totals.discount_amount == Decimal("4.00")
        assert totals.shipping_fee == Decimal("4.99")
        assert totals.total == Decimal("20.99")

    def test_totals_follow_cart(self, cart, promo):
        promo.apply("SAVE10")
        fill(cart, "30")
        assert promo.total() == Decimal("30") + Decimal("4.99") - Decimal("3.00")

        cart.set_quantity("p", 2)
        assert promo.total() == Decimal("54.00")

        cart.clear()
        totals = promo.totals()
        assert totals.subtotal == 0
        assert totals.discount_amount == 0
        assert totals.total == Decimal("4.99")

    def test_amount_to_free_shipping(self, cart, promo):
        fill(cart, "42.50")

        assert promo.totals().amount_to_free_shipping == Decimal("7.50")

        cart.set_quantity("p", 2)
        assert promo.totals().amount_to_free_shipping == 0
        assert promo.totals().free_shipping

    def test_total_never_negative(self, cart, settings):
        calc = PromotionCalculator(cart, promo_codes=[PromoCode(code="FREE", discount_percent=100)], settings=settings)
        fill(cart, "80")
        calc.apply("FREE")

        assert calc.totals().total == 0

    def test_to_dict(self, cart, promo):
        fill(cart, "10")
        promo.apply("SAVE10")
        data = promo.totals().to_dict()

        assert data["subtotal"] == "10"
        assert Decimal(data["discount_amount"]) == Decimal("1")
        assert data["promo_code"] == "SAVE10"

    def test_discount_not_rounded(self, cart, promo):
        fill(cart, "10.05")
        promo.apply("SAVE10")
        totals = promo.totals()

        assert totals.discount_amount == Decimal("1.005")
        assert totals.total == Decimal("10.05") + Decimal("4.99") - Decimal("1.005")

    def test_full_discount_on_half_cent_subtotal(self, cart, settings):
        calc = PromotionCalculator(cart, promo_codes=[PromoCode(code="FREE", discount_percent=100)], settings=settings)
        fill(cart, "50.005")
        calc.apply("FREE")
        totals = calc.totals()

        assert totals.discount_amount <= totals.subtotal
        assert totals.discount_amount == Decimal("50.005")
        assert totals.total == 0
