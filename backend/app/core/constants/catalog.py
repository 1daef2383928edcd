"""
Catalog constants — product statuses, table names, paging limits.

Catalog store constants.
"""

PRODUCT_STATUS_ACTIVE: str = "ACTIVE"
PRODUCT_STATUS_DRAFT: str = "DRAFT"
PRODUCT_STATUS_ARCHIVED: str = "ARCHIVED"

PRODUCT_STATUSES: frozenset[str] = frozenset({
    PRODUCT_STATUS_ACTIVE,
    PRODUCT_STATUS_DRAFT,
    PRODUCT_STATUS_ARCHIVED,
})

DEFAULT_PRODUCT_STATUS: str = PRODUCT_STATUS_ACTIVE

# Catalog tables
PRODUCTS_TABLE: str = "products"
OPTIONS_TABLE: str = "product_options"
OPTION_VALUES_TABLE: str = "product_option_values"
VARIANTS_TABLE: str = "product_variants"
VARIANT_OPTION_VALUES_TABLE: str = "product_variant_option_values"

# Postgres function that inserts a whole aggregate in one transaction
CREATE_AGGREGATE_RPC: str = "create_product_aggregate"

# Postgres unique_violation SQLSTATE
UNIQUE_VIOLATION_CODE: str = "23505"

MAX_PAGE_LIMIT: int = 250

# Money columns are numeric(12, 2)
MONEY_MAX_DIGITS: int = 12
MONEY_DECIMAL_PLACES: int = 2
