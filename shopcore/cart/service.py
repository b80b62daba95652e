"""Cart manager service backed by the shared key-value store."""
from decimal import Decimal
from typing import Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from shopcore.errors import (
    ERROR_INVALID_ITEM,
    ERROR_INVALID_QUANTITY,
    ERROR_INVALID_UNIT_PRICE,
    ERROR_PRODUCT_ID_REQUIRED,
)
from shopcore.events import EventBus, emit_cart_cleared
from shopcore.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging
from .models import LineItem, parse_cart_payload, serialize_cart
from .storage import KeyValueStore, StorageKeys

logger = get_logger(__name__)


def _check_quantity(quantity) -> None:
    # bool is an int subclass
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValueError(ERROR_INVALID_QUANTITY)


class CartManager:
    """
    Owns the ordered, deduplicated line-item collection of one context.

    Features:
    - Merge on add (quantities summed, position kept)
    - Every mutation rewrites the whole collection to the store
    - Aggregates derived on every call, never tracked incrementally
    - Corrupt store payloads are logged and leave state unchanged

    Usage:
        cart = CartManager(store, bus)
        cart.add_item({"id": "p1", "name": "Zobo", "price": 10}, quantity=2)
        cart.total_price()
        cart.clear()
    """

    def __init__(self, store: KeyValueStore, bus: Optional[EventBus] = None):
        self.store = store
        self.bus = bus or EventBus()
        self._items: List[LineItem] = []
        self.reload()

    # ==================== Persistence ====================

    def reload(self) -> bool:
        """
        Re-read the collection from the store.

        Returns:
            True if the in-memory collection was replaced
        """
        raw = self.store.get(StorageKeys.CART)
        if raw is None:
            return False

        result = parse_cart_payload(raw)
        if not result.ok:
            logger.warning(
                f"Corrupted cart data in store ({result.error}), keeping current state: "
                f"{sanitize_string_for_logging(raw)}"
            )
            return False

        self._items = list(result.value)
        return True

    def save(self) -> None:
        """Write the full collection to the store."""
        self.store.set(StorageKeys.CART, serialize_cart(self._items))

    def replace_all(self, items: Iterable[LineItem]) -> None:
        """Overwrite the in-memory collection without writing the store.

        Used when another context's write has already reached the store.
        """
        self._items = list(items)

    # ==================== Mutations ====================

    def add_item(self, item: Union[LineItem, Mapping], quantity: Optional[int] = None) -> LineItem:
        """
        Add an item, merging into an existing entry with the same product_id.

        Args:
            item: LineItem or catalog product mapping
            quantity: Quantity to add; defaults to the item's own quantity

        Returns:
            The resulting line item as stored in the cart

        Raises:
            ValueError: If unit_price < 0, quantity < 1 or the item is malformed
        """
        line = self._coerce_item(item, quantity)

        index = self._index_of(line.product_id)
        if index is None:
            line = self._clamp(line, line.quantity)
            self._items.append(line)
        else:
            existing = self._items[index]
            line = self._clamp(existing, existing.quantity + line.quantity)
            self._items[index] = line

        self.save()
        return line

    def remove_item(self, product_id: str) -> None:
        """Remove an item. Absent ids are ignored."""
        product_id = str(product_id)
        if self._index_of(product_id) is None:
            return
        self._items = [item for item in self._items if item.product_id != product_id]
        self.save()

    def set_quantity(self, product_id: str, quantity: int) -> None:
        """
        Replace the quantity of an existing item in place.

        quantity <= 0 behaves exactly like remove_item(). Absent ids are
        ignored and never create an entry.

        Raises:
            ValueError: If quantity is not an integer
        """
        product_id = str(product_id)
        _check_quantity(quantity)
        if quantity <= 0:
            self.remove_item(product_id)
            return

        index = self._index_of(product_id)
        if index is None:
            return

        self._items[index] = self._clamp(self._items[index], quantity)
        self.save()

    def clear(self) -> None:
        """Empty the cart and announce it with a single cart.cleared event."""
        removed = self.total_items()
        self._items = []
        self.save()
        emit_cart_cleared(self.bus, removed)

    # ==================== Queries ====================

    @property
    def items(self) -> List[LineItem]:
        """Copy of the collection, in insertion order."""
        return list(self._items)

    def total_items(self) -> int:
        """Total number of units in the cart."""
        return sum(item.quantity for item in self._items)

    def total_price(self) -> Decimal:
        """Sum of unit_price × quantity in base currency."""
        return sum((item.line_total for item in self._items), Decimal("0"))

    def contains(self, product_id: str) -> bool:
        return self._index_of(str(product_id)) is not None

    def get(self, product_id: str) -> Optional[LineItem]:
        index = self._index_of(str(product_id))
        return None if index is None else self._items[index]

    def is_empty(self) -> bool:
        return not self._items

    def snapshot(self) -> str:
        """Serialized form of the current in-memory collection."""
        return serialize_cart(self._items)

    # ==================== Helpers ====================

    def _index_of(self, product_id: str) -> Optional[int]:
        for i, item in enumerate(self._items):
            if item.product_id == product_id:
                return i
        return None

    def _coerce_item(self, item: Union[LineItem, Mapping], quantity: Optional[int]) -> LineItem:
        if quantity is not None:
            _check_quantity(quantity)
            if quantity < 1:
                raise ValueError(ERROR_INVALID_QUANTITY)

        if isinstance(item, LineItem):
            line = item if quantity is None else item.with_quantity(quantity)
        elif isinstance(item, Mapping):
            try:
                line = LineItem.from_product(item, quantity if quantity is not None else item.get("quantity", 1))
            except ValidationError as e:
                fields = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
                if fields & {"unitPrice", "unit_price"}:
                    raise ValueError(ERROR_INVALID_UNIT_PRICE)
                if "quantity" in fields:
                    raise ValueError(ERROR_INVALID_QUANTITY)
                if fields & {"productId", "product_id"}:
                    raise ValueError(ERROR_PRODUCT_ID_REQUIRED)
                raise ValueError(f"{ERROR_INVALID_ITEM}: {e.error_count()} error(s)")
        else:
            raise ValueError(ERROR_INVALID_ITEM)

        # LineItem instances built with model_construct skip validation
        if line.unit_price < 0:
            raise ValueError(ERROR_INVALID_UNIT_PRICE)
        if line.quantity < 1:
            raise ValueError(ERROR_INVALID_QUANTITY)
        return line

    def _clamp(self, item: LineItem, quantity: int) -> LineItem:
        if item.max_quantity is not None and quantity > item.max_quantity:
            logger.info(
                f"Quantity for {sanitize_id_for_logging(item.product_id)} "
                f"capped at {item.max_quantity} (requested {quantity})"
            )
            quantity = item.max_quantity
        return item.with_quantity(quantity)
