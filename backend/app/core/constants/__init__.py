"""
Constants package — re-exports from domain-specific modules.

Centralized constants for Storefront Sync Hub.

Usage:
    from app.core.constants.sync import SYNC_STATUS_SYNCED
    from app.core.constants.catalog import PRODUCTS_TABLE
    # or import everything:
    from app.core.constants import catalog, sync
"""

from app.core.constants import catalog, sync
from app.core.constants.catalog import (
    PRODUCT_STATUSES,
    DEFAULT_PRODUCT_STATUS,
    MAX_PAGE_LIMIT,
)
from app.core.constants.sync import (
    SYNC_STATUS_PENDING,
    SYNC_STATUS_SYNCING,
    SYNC_STATUS_SYNCED,
    SYNC_STATUS_FAILED,
    VARIANT_CREATE_STRATEGY,
)

__all__ = [
    "catalog",
    "sync",
    "PRODUCT_STATUSES",
    "DEFAULT_PRODUCT_STATUS",
    "MAX_PAGE_LIMIT",
    "SYNC_STATUS_PENDING",
    "SYNC_STATUS_SYNCING",
    "SYNC_STATUS_SYNCED",
    "SYNC_STATUS_FAILED",
    "VARIANT_CREATE_STRATEGY",
]
