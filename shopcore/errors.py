"""
Common Error Constants

Centralized error messages to avoid string duplication, plus the few
exception types the core raises.
"""

# Cart errors
ERROR_PRODUCT_ID_REQUIRED = "product_id must be a non-empty string"
ERROR_INVALID_QUANTITY = "quantity must be a positive integer"
ERROR_INVALID_UNIT_PRICE = "unit_price must be a non-negative number"
ERROR_INVALID_ITEM = "item must be a LineItem or a product mapping"

# Currency errors
ERROR_UNKNOWN_COUNTRY = "Unknown country code"

# Store errors
ERROR_STORE_UNAVAILABLE = "Store unavailable"
ERROR_STORE_NOT_CONFIGURED = "UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set"
ERROR_UNKNOWN_BACKEND = "Unknown store backend"

# Parse failure reasons (deserialization never raises, see ParseResult)
PARSE_EMPTY = "empty payload"
PARSE_INVALID_JSON = "invalid JSON"
PARSE_SCHEMA_MISMATCH = "schema mismatch"
PARSE_DUPLICATE_IDS = "duplicate product_id"


class StoreUnavailableError(ValueError):
    """Raised when a store backend cannot complete a read or write."""
