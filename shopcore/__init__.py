"""shopcore - shopping cart, currency display and promo totals shared across tabs."""

__version__ = "1.0.0"
