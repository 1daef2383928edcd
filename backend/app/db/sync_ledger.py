"""
Sync ledger — per-(product, store) and per-(variant, store) sync outcomes.

Each row maps one local entity to its id in one external store, with the
status of the last sync attempt. Writes are single-statement upserts keyed
by the unique (entity, store) pair, last write wins: a pair is owned by
the sync run currently targeting it, so no optimistic locking is done.

Row semantics:
- last_synced_at is stamped when a run finishes (SYNCED or FAILED)
- error_message is cleared whenever the status is not FAILED
- an absent external id never overwrites one recorded earlier
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.core.constants.sync import (
    PRODUCT_SYNC_STATUSES,
    PRODUCT_SYNC_TABLE,
    STORES_TABLE,
    SYNC_STATUS_FAILED,
    SYNC_STATUS_SYNCED,
    VARIANT_SYNC_STATUSES,
    VARIANT_SYNC_TABLE,
)
from app.db.base_store import BaseStore
from app.schemas.sync import SyncStatusEntry

logger = logging.getLogger("sync_ledger")

# (variant_id, status, external_variant_id, error)
VariantSyncEntry = Tuple[int, str, Optional[str], Optional[str]]


def _ledger_row(
    status: str,
    external_key: str,
    external_id: Optional[str],
    error: Optional[str],
    now: str,
) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "status": status,
        "error_message": error if status == SYNC_STATUS_FAILED else None,
        "updated_at": now,
    }
    if external_id is not None:
        row[external_key] = external_id
    if status in (SYNC_STATUS_SYNCED, SYNC_STATUS_FAILED):
        row["last_synced_at"] = now
    return row


class SyncLedger(BaseStore):
    """Idempotent upserts and reporting for sync outcomes."""

    async def upsert_product_sync(
        self,
        product_id: int,
        store_id: int,
        status: str,
        external_id: Optional[str] = None,
        error: Optional[str] = None,
    ) -> Dict[str, Any]:
        if status not in PRODUCT_SYNC_STATUSES:
            raise ValueError(f"invalid product sync status: {status}")

        now = datetime.now(timezone.utc).isoformat()
        row = _ledger_row(status, "external_product_id", external_id, error, now)
        row.update({"product_id": product_id, "store_id": store_id})

        saved = await self._upsert(PRODUCT_SYNC_TABLE, [row], on_conflict="product_id,store_id")
        logger.info(
            "ledger product sync product_id=%s store_id=%s status=%s",
            product_id, store_id, status,
        )
        return saved[0] if saved else row

    async def upsert_variant_sync(
        self,
        variant_id: int,
        store_id: int,
        status: str,
        external_id: Optional[str] = None,
        error: Optional[str] = None,
    ) -> Dict[str, Any]:
        saved = await self.upsert_variant_syncs(store_id, [(variant_id, status, external_id, error)])
        return saved[0] if saved else {}

    async def upsert_variant_syncs(
        self, store_id: int, entries: Sequence[VariantSyncEntry]
    ) -> List[Dict[str, Any]]:
        """Write one row per variant for a store in a single upsert."""
        if not entries:
            return []

        now = datetime.now(timezone.utc).isoformat()
        rows = []
        for variant_id, status, external_id, error in entries:
            if status not in VARIANT_SYNC_STATUSES:
                raise ValueError(f"invalid variant sync status: {status}")
            row = _ledger_row(status, "external_variant_id", external_id, error, now)
            row.update({"variant_id": variant_id, "store_id": store_id})
            rows.append(row)

        # PostgREST bulk upserts need a uniform column set
        if len({frozenset(r) for r in rows}) > 1:
            saved: List[Dict[str, Any]] = []
            for row in rows:
                saved.extend(await self._upsert(VARIANT_SYNC_TABLE, [row], on_conflict="variant_id,store_id"))
        else:
            saved = await self._upsert(VARIANT_SYNC_TABLE, rows, on_conflict="variant_id,store_id")

        logger.info("ledger variant syncs store_id=%s count=%s", store_id, len(rows))
        return saved

    async def get_product_sync(self, product_id: int, store_id: int) -> Optional[Dict[str, Any]]:
        rows = await self._select(
            PRODUCT_SYNC_TABLE, filters={"product_id": product_id, "store_id": store_id}
        )
        return rows[0] if rows else None

    async def get_variant_syncs(self, variant_ids: Sequence[int]) -> List[Dict[str, Any]]:
        if not variant_ids:
            return []
        return await self._select(VARIANT_SYNC_TABLE, in_filters={"variant_id": list(variant_ids)})

    async def get_sync_status(self, product_id: int) -> List[SyncStatusEntry]:
        """All product-level rows for a product joined with their store domain."""
        rows = await self._select(
            PRODUCT_SYNC_TABLE, filters={"product_id": product_id}, order_by="store_id"
        )
        if not rows:
            return []

        store_ids = sorted({row["store_id"] for row in rows})
        store_rows = await self._select(STORES_TABLE, "id,domain", in_filters={"id": store_ids})
        domains = {s["id"]: s["domain"] for s in store_rows}

        return [
            SyncStatusEntry(
                store_id=row["store_id"],
                domain=domains.get(row["store_id"]),
                external_product_id=row.get("external_product_id"),
                status=row["status"],
                last_synced_at=row.get("last_synced_at"),
                error_message=row.get("error_message"),
            )
            for row in sorted(rows, key=lambda r: r["store_id"])
        ]
