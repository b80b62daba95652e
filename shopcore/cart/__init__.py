"""Cart package: models, storage, manager and cross-context sync."""
from .models import LineItem, parse_cart_payload, serialize_cart
from .service import CartManager
from .sync import CartSyncListener

__all__ = [
    "LineItem",
    "parse_cart_payload",
    "serialize_cart",
    "CartManager",
    "CartSyncListener",
]
