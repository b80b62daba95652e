"""Event Bus - in-process broadcast of session events.

Same-process counterpart of a window event: emitters do not wait for or
receive any acknowledgement, handlers run synchronously in subscription
order.

Events:
- country.changed: {"currency", "symbol", "exchangeRate"}
- cart.cleared: {"event", "item_count"}
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List

from shopcore.logging import get_logger

logger = get_logger(__name__)

EVENT_COUNTRY_CHANGED = "country.changed"
EVENT_CART_CLEARED = "cart.cleared"

Handler = Callable[[Dict[str, Any]], None]


class EventBus:
    """Synchronous publish/subscribe bus scoped to one session."""

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, event: str, handler: Handler) -> Callable[[], None]:
        """Register a handler. Returns a callable that unsubscribes it."""
        self._handlers[event].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event]:
                self._handlers[event].remove(handler)

        return unsubscribe

    def emit(self, event: str, payload: Dict[str, Any]) -> int:
        """Deliver payload to every handler of event.

        A failing handler is logged and does not stop delivery to the rest.

        Returns:
            Number of handlers that ran without raising
        """
        delivered = 0
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(payload)
                delivered += 1
            except Exception as e:
                logger.warning(f"Handler for {event} failed: {e}", exc_info=True)
        logger.debug(f"Emitted {event} to {delivered} handler(s)")
        return delivered


def emit_country_changed(bus: EventBus, currency: str, symbol: str, exchange_rate: Any) -> None:
    """Broadcast a country change carrying the full currency triple."""
    bus.emit(
        EVENT_COUNTRY_CHANGED,
        {"currency": currency, "symbol": symbol, "exchangeRate": exchange_rate},
    )


def emit_cart_cleared(bus: EventBus, item_count: int) -> None:
    """Broadcast that the cart was explicitly cleared."""
    bus.emit(EVENT_CART_CLEARED, {"event": EVENT_CART_CLEARED, "item_count": item_count})
