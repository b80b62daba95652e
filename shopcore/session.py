"""
Shop Session - explicit wiring of one execution context.

Each tab/window builds its own ShopSession at startup and passes it (or
its parts) to whatever renders the cart. Nothing is reachable through a
module-level singleton.

Usage:
    host = SharedMemoryHost()
    tab = ShopSession.create(store=host.open_context())
    tab.cart.add_item({"id": "p1", "name": "Zobo", "price": 10})
    tab.currency.format(tab.promo.total())
    tab.close()
"""
from dataclasses import dataclass
from typing import Optional

from shopcore.cart import CartManager, CartSyncListener
from shopcore.config import Settings, get_settings
from shopcore.db import create_store
from shopcore.events import EventBus
from shopcore.logging import get_logger
from shopcore.services.currency import CurrencyService
from shopcore.services.promo import PromotionCalculator
from shopcore.store import KeyValueStore

logger = get_logger(__name__)


@dataclass
class ShopSession:
    """Cart, currency and promo state of one execution context."""
    store: KeyValueStore
    bus: EventBus
    cart: CartManager
    currency: CurrencyService
    promo: PromotionCalculator
    sync: CartSyncListener

    @classmethod
    def create(
        cls,
        store: Optional[KeyValueStore] = None,
        bus: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
    ) -> "ShopSession":
        """
        Build and start a session.

        Args:
            store: Store for this context (created from settings if omitted)
            bus: Event bus (a new one if omitted)
            settings: Settings (environment settings if omitted)

        Returns:
            A session whose sync listener is already running
        """
        settings = settings or get_settings()
        store = store if store is not None else create_store(settings)
        bus = bus or EventBus()

        cart = CartManager(store, bus)
        currency = CurrencyService(store, bus, settings)
        promo = PromotionCalculator(cart, settings=settings)
        sync = CartSyncListener(cart)
        sync.start()

        logger.debug(f"Session started with {cart.total_items()} item(s), currency {currency.currency}")
        return cls(store=store, bus=bus, cart=cart, currency=currency, promo=promo, sync=sync)

    def close(self) -> None:
        """Stop listening to the store and the bus."""
        self.sync.stop()
        self.currency.close()

    def summary(self) -> dict:
        """Cart summary with base-currency figures and display strings."""
        totals = self.promo.totals()
        return {
            "is_empty": self.cart.is_empty(),
            "items": [
                {
                    "product_id": item.product_id,
                    "name": item.name,
                    "quantity": item.quantity,
                    "unit_price": self.currency.format(item.unit_price),
                    "total": self.currency.format(item.line_total),
                }
                for item in self.cart.items
            ],
            **totals.to_dict(),
            "currency": self.currency.currency,
            "formatted": {
                "subtotal": self.currency.format(totals.subtotal),
                "shipping_fee": self.currency.format(totals.shipping_fee),
                "discount_amount": self.currency.format(totals.discount_amount),
                "total": self.currency.format(totals.total),
            },
        }
