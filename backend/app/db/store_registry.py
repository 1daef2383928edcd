"""
Store registry — connected Shopify storefronts.

Stores are written only by the install/authorization flow through
upsert_store (keyed by domain, so re-authorizing refreshes the credential
and reactivates the store). The sync engine only reads them.
"""

import logging
import re
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from app.core.constants.sync import SHOP_DOMAIN_PATTERN, STORES_TABLE
from app.core.exceptions import StoreNotFoundError, ValidationError
from app.db.base_store import BaseStore
from app.schemas.stores import StoreRecord

logger = logging.getLogger("store_registry")

_SHOP_DOMAIN_RE = re.compile(SHOP_DOMAIN_PATTERN)


def normalize_shop_domain(domain: Optional[str]) -> Optional[str]:
    """
    Normalize a Shopify store domain to ``name.myshopify.com``.

    Handles these formats:
    - "my-store" -> "my-store.myshopify.com"
    - "My-Store.myshopify.com" -> "my-store.myshopify.com"
    - "https://my-store.myshopify.com/" -> "my-store.myshopify.com"
    """
    if not domain:
        return domain

    domain = domain.strip().lower()
    domain = domain.replace("https://", "").replace("http://", "")
    domain = domain.rstrip("/")

    # Bare shop name
    if "." not in domain:
        domain = f"{domain}.myshopify.com"

    return domain


def validate_shop_domain(domain: Optional[str]) -> str:
    """Normalize and validate a shop domain, raising ValidationError if malformed."""
    normalized = normalize_shop_domain(domain)
    if not normalized or not _SHOP_DOMAIN_RE.match(normalized):
        raise ValidationError(f"Invalid shop domain: {domain!r}")
    return normalized


class StoreRegistry(BaseStore):
    """Read and upsert connected stores."""

    async def list_active_stores(self) -> List[StoreRecord]:
        rows = await self._select(STORES_TABLE, filters={"is_active": True}, order_by="id")
        return [StoreRecord.model_validate(row) for row in rows]

    async def get_store(self, store_id: int) -> StoreRecord:
        rows = await self._select(STORES_TABLE, filters={"id": store_id})
        if not rows:
            raise StoreNotFoundError(store_id)
        return StoreRecord.model_validate(rows[0])

    async def get_stores(self, store_ids: Sequence[int]) -> List[StoreRecord]:
        """Fetch stores in the requested order; every id must exist."""
        if not store_ids:
            return []
        rows = await self._select(STORES_TABLE, in_filters={"id": list(store_ids)})
        by_id = {row["id"]: StoreRecord.model_validate(row) for row in rows}
        missing = [sid for sid in store_ids if sid not in by_id]
        if missing:
            raise StoreNotFoundError(missing)
        return [by_id[sid] for sid in store_ids]

    async def upsert_store(
        self, domain: str, access_token: str, scope: Optional[str] = None
    ) -> StoreRecord:
        """Create or refresh a store after authorization; always reactivates."""
        normalized = validate_shop_domain(domain)
        if not access_token:
            raise ValidationError("access_token is required")

        row = {
            "domain": normalized,
            "access_token": access_token,
            "scope": scope,
            "is_active": True,
            "installed_at": datetime.now(timezone.utc).isoformat(),
        }
        saved = await self._upsert(STORES_TABLE, [row], on_conflict="domain")
        logger.info("store upserted domain=%s", normalized)
        if saved:
            return StoreRecord.model_validate(saved[0])
        rows = await self._select(STORES_TABLE, filters={"domain": normalized})
        return StoreRecord.model_validate(rows[0])

    async def deactivate_store(self, store_id: int) -> None:
        updated = await self._update(STORES_TABLE, {"id": store_id}, {"is_active": False})
        if not updated:
            raise StoreNotFoundError(store_id)
        logger.info("store deactivated store_id=%s", store_id)
