"""Cart models with Decimal-based pricing."""
import json
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shopcore.errors import PARSE_DUPLICATE_IDS, PARSE_SCHEMA_MISMATCH
from shopcore.models import ParseResult, parse_json_payload
from shopcore.services.money import to_decimal


class LineItem(BaseModel):
    """Single product entry in the cart.

    Serialized with the camelCase keys the storefront writes to
    "cart-items" (productId, unitPrice, maxQuantity, ...).
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    product_id: str = Field(alias="productId", min_length=1)
    name: str = ""
    unit_price: Decimal = Field(alias="unitPrice", ge=0)
    image: str = ""
    quantity: int = Field(default=1, ge=1)
    max_quantity: Optional[int] = Field(default=None, alias="maxQuantity", ge=1)
    # Catalog extras kept for display
    original_price: Optional[Decimal] = Field(default=None, alias="originalPrice")
    category: Optional[str] = None
    brand: Optional[str] = None
    country: Optional[str] = None
    in_stock: Optional[bool] = Field(default=None, alias="inStock")

    @field_validator("product_id", mode="before")
    @classmethod
    def coerce_product_id(cls, v):
        # Catalog ids are numeric
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("unit_price", "original_price", mode="before")
    @classmethod
    def convert_price_to_decimal(cls, v):
        if isinstance(v, float):
            return to_decimal(v)
        return v

    @property
    def line_total(self) -> Decimal:
        """unit_price × quantity, unrounded."""
        return self.unit_price * self.quantity

    def with_quantity(self, quantity: int) -> "LineItem":
        return self.model_copy(update={"quantity": quantity})

    def to_dict(self) -> dict:
        """Convert to the JSON-ready dictionary stored under "cart-items"."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        """Create from dictionary (raises pydantic.ValidationError)."""
        return cls.model_validate(data)

    @classmethod
    def from_product(cls, product: dict, quantity: int = 1) -> "LineItem":
        """
        Build a line item from a catalog product mapping.

        Accepts the catalog's field names (id, price, stockCount) as well as
        the line item's own.
        """
        data = dict(product)
        if "productId" not in data and "product_id" not in data and "id" in data:
            data["productId"] = data["id"]
        if "unitPrice" not in data and "unit_price" not in data and "price" in data:
            data["unitPrice"] = data["price"]
        if "maxQuantity" not in data and "max_quantity" not in data and data.get("stockCount"):
            data["maxQuantity"] = data["stockCount"]
        data["quantity"] = quantity
        return cls.model_validate(data)


def _build_items(data: Any) -> List[LineItem]:
    if not isinstance(data, list):
        raise ValueError(f"{PARSE_SCHEMA_MISMATCH}: expected a list")
    items = [LineItem.from_dict(entry) for entry in data]
    ids = [item.product_id for item in items]
    if len(set(ids)) != len(ids):
        raise ValueError(PARSE_DUPLICATE_IDS)
    return items


def parse_cart_payload(raw: Optional[str]) -> ParseResult[List[LineItem]]:
    """Validate a serialized cart. Never raises."""
    return parse_json_payload(raw, _build_items)


def serialize_cart(items: List[LineItem]) -> str:
    """Serialize the full collection as one JSON array."""
    return json.dumps([item.to_dict() for item in items])
