"""Pytest configuration and fixtures"""
import os
from decimal import Decimal

import pytest

# Set test environment variables
os.environ.setdefault("SHOPCORE_STORE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from shopcore.cart import CartManager  # noqa: E402
from shopcore.config import Settings  # noqa: E402
from shopcore.events import EventBus  # noqa: E402
from shopcore.services.currency import CurrencyService  # noqa: E402
from shopcore.services.promo import PromotionCalculator  # noqa: E402
from shopcore.store import SharedMemoryHost  # noqa: E402


@pytest.fixture
def settings():
    """Settings independent of the developer's environment"""
    return Settings(
        store_backend="memory",
        upstash_url="",
        upstash_token="",
        key_prefix="test:",
        free_shipping_threshold=Decimal("50.00"),
        shipping_fee=Decimal("4.99"),
        default_currency="GBP",
        default_symbol="£",
        default_exchange_rate=Decimal("1"),
    )


@pytest.fixture
def host():
    """Storage area shared by all tabs of a test"""
    return SharedMemoryHost()


@pytest.fixture
def store(host):
    """First tab's view of the shared store"""
    return host.open_context()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def cart(store, bus):
    return CartManager(store, bus)


@pytest.fixture
def currency(store, bus, settings):
    service = CurrencyService(store, bus, settings)
    yield service
    service.close()


@pytest.fixture
def promo(cart, settings):
    return PromotionCalculator(cart, settings=settings)


@pytest.fixture
def sample_product():
    """Catalog product as delivered by the product pages"""
    return {
        "id": 101,
        "name": "Zobo Drink 50cl",
        "price": 2.5,
        "originalPrice": 3.0,
        "image": "/images/zobo.jpg",
        "country": "Nigeria",
        "category": "Beverages",
        "brand": "Chivita",
        "inStock": True,
        "stockCount": 10,
    }
