"""Cross-context cart synchronization.

Listens for writes to "cart-items" made by other contexts and overwrites the
local collection with whatever was written last. There is no merge: two
contexts adding different items at the same time can lose one addition.
"""
from typing import Optional

from shopcore.logging import get_logger, sanitize_string_for_logging
from shopcore.store import Subscription
from .models import parse_cart_payload
from .service import CartManager
from .storage import StorageKeys

logger = get_logger(__name__)


class CartSyncListener:
    """Keeps one CartManager in step with writes from other contexts."""

    def __init__(self, cart: CartManager):
        self.cart = cart
        self._subscription: Optional[Subscription] = None

    @property
    def running(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def start(self) -> None:
        if self.running:
            return
        self._subscription = self.cart.store.subscribe(StorageKeys.CART, self.on_change)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def on_change(self, key: str, new_value: Optional[str]) -> bool:
        """
        Handle a foreign write.

        Returns:
            True if the local collection was replaced
        """
        if key != StorageKeys.CART:
            return False

        result = parse_cart_payload(new_value)
        if not result.ok:
            logger.warning(
                f"Ignoring unreadable cart update from another context ({result.error}): "
                f"{sanitize_string_for_logging(new_value)}"
            )
            return False

        self.cart.replace_all(result.value)
        logger.debug(f"Cart replaced from another context ({len(result.value)} item(s))")
        return True
