"""
Sync constants — ledger statuses, table names, Shopify protocol values.

Sync ledger constants.
"""

# Product-level ledger statuses (PENDING -> SYNCING -> SYNCED | FAILED)
SYNC_STATUS_PENDING: str = "PENDING"
SYNC_STATUS_SYNCING: str = "SYNCING"
SYNC_STATUS_SYNCED: str = "SYNCED"
SYNC_STATUS_FAILED: str = "FAILED"

PRODUCT_SYNC_STATUSES: frozenset[str] = frozenset({
    SYNC_STATUS_PENDING,
    SYNC_STATUS_SYNCING,
    SYNC_STATUS_SYNCED,
    SYNC_STATUS_FAILED,
})

# Variant rows never pass through SYNCING
VARIANT_SYNC_STATUSES: frozenset[str] = frozenset({
    SYNC_STATUS_PENDING,
    SYNC_STATUS_SYNCED,
    SYNC_STATUS_FAILED,
})

# Ledger tables
PRODUCT_SYNC_TABLE: str = "product_store_syncs"
VARIANT_SYNC_TABLE: str = "variant_store_syncs"

# Store registry tables
STORES_TABLE: str = "stores"
OAUTH_STATES_TABLE: str = "oauth_states"

# Removes the placeholder variant Shopify creates with the product shell
VARIANT_CREATE_STRATEGY: str = "REMOVE_STANDALONE_VARIANT"

# Valid myshopify domain (after normalization)
SHOP_DOMAIN_PATTERN: str = r"^[a-zA-Z0-9][a-zA-Z0-9-]*\.myshopify\.com$"

# Celery retry backoff ceiling for transport failures (seconds)
SYNC_RETRY_BACKOFF_MAX: int = 300
