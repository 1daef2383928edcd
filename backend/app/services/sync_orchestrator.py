"""
Sync orchestrator — pushes one product aggregate to N Shopify stores.

Per (product, store) the ledger moves PENDING -> SYNCING -> SYNCED | FAILED.
Stores are independent: each gets its own branch, a failure is recorded
for that store only and the remaining stores carry on. Branches run
concurrently up to settings.sync_max_concurrency (1 = sequential); every
branch touches only its own ledger rows.

Known limitations:
- concurrent syncs of the same product to overlapping store sets must be
  serialized by the caller
- a crash between a successful store call and the ledger write leaves a
  product in the store with no SYNCED row; it is not reconciled here
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from app.core.config import Settings
from app.core.constants.sync import (
    SYNC_STATUS_FAILED,
    SYNC_STATUS_SYNCED,
    SYNC_STATUS_SYNCING,
)
from app.core.exceptions import (
    AdapterFieldError,
    AdapterTransportError,
    AuthenticationError,
    DatabaseError,
    EmptyTargetSetError,
    StorefrontSyncException,
)
from app.db.catalog_store import CatalogStore
from app.db.store_registry import StoreRegistry
from app.db.sync_ledger import SyncLedger
from app.schemas.catalog import ProductAggregate, ProductSpec
from app.schemas.stores import StoreRecord
from app.schemas.sync import (
    ProductRef,
    SyncResponse,
    SyncResultEntry,
    SyncStatusResponse,
)
from app.services.shopify_adapter import ShopifyStoreAdapter

logger = logging.getLogger("sync_orchestrator")


class SyncOrchestrator:
    """Coordinates the store adapter and the sync ledger across target stores."""

    def __init__(
        self,
        catalog: CatalogStore,
        registry: StoreRegistry,
        ledger: SyncLedger,
        adapter: ShopifyStoreAdapter,
        settings: Optional[Settings] = None,
    ) -> None:
        self._catalog = catalog
        self._registry = registry
        self._ledger = ledger
        self._adapter = adapter
        concurrency = settings.sync_max_concurrency if settings else 1
        self._max_concurrency = max(1, concurrency)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def sync(
        self, product_id: int, store_ids: Optional[Sequence[int]] = None
    ) -> SyncResponse:
        results = await self.sync_product_to_stores(product_id, store_ids)
        return SyncResponse(product_id=product_id, results=results)

    async def sync_status(self, product_id: int) -> SyncStatusResponse:
        product = await self._catalog.get_product(product_id)
        syncs = await self._ledger.get_sync_status(product_id)
        return SyncStatusResponse(
            product=ProductRef(id=product.id, title=product.title),
            syncs=syncs,
        )

    async def create_and_sync(
        self,
        spec: Union[ProductSpec, Dict[str, Any]],
        store_ids: Optional[Sequence[int]] = None,
    ) -> SyncResponse:
        """Create a product aggregate, then sync it to the target stores."""
        product = await self._catalog.create_product_aggregate(spec)
        return await self.sync(product.id, store_ids)

    async def sync_product_to_stores(
        self, product_id: int, store_ids: Optional[Sequence[int]] = None
    ) -> List[SyncResultEntry]:
        """
        Sync a product to explicit stores, or to every active store.

        Raises ProductNotFoundError / StoreNotFoundError / EmptyTargetSetError
        before any ledger row is written. Otherwise returns one entry per
        target store, in target order; callers inspect each entry.
        """
        product = await self._catalog.get_product_aggregate(product_id)
        stores = await self._resolve_targets(store_ids)
        if not stores:
            raise EmptyTargetSetError()

        logger.info(
            "sync start product_id=%s stores=%s concurrency=%s",
            product_id, [s.id for s in stores], self._max_concurrency,
        )

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _bounded(store: StoreRecord) -> SyncResultEntry:
            async with semaphore:
                return await self._sync_to_store(product, store)

        results = list(await asyncio.gather(*(_bounded(s) for s in stores)))

        logger.info(
            "sync done product_id=%s synced=%s failed=%s",
            product_id,
            sum(1 for r in results if r.success),
            sum(1 for r in results if not r.success),
        )
        return results

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _resolve_targets(self, store_ids: Optional[Sequence[int]]) -> List[StoreRecord]:
        if store_ids is None:
            return await self._registry.list_active_stores()
        unique_ids = list(dict.fromkeys(store_ids))
        return await self._registry.get_stores(unique_ids)

    async def _sync_to_store(self, product: ProductAggregate, store: StoreRecord) -> SyncResultEntry:
        try:
            if not store.is_active:
                raise AuthenticationError("Store is not active", domain=store.domain)

            await self._ledger.upsert_product_sync(product.id, store.id, SYNC_STATUS_SYNCING)
            result = await self._adapter.create_product(store, product)

            if len(result.external_variant_ids) != len(product.variants):
                await self._adapter.delete_product(store, result.external_product_id)
                raise AdapterFieldError(
                    f"Expected {len(product.variants)} variants, store returned "
                    f"{len(result.external_variant_ids)}",
                    domain=store.domain,
                )

            await self._ledger.upsert_product_sync(
                product.id, store.id, SYNC_STATUS_SYNCED, external_id=result.external_product_id
            )
            await self._ledger.upsert_variant_syncs(store.id, [
                (variant.id, SYNC_STATUS_SYNCED, external_id, None)
                for variant, external_id in zip(product.variants, result.external_variant_ids)
            ])
        except StorefrontSyncException as exc:
            logger.info(
                "sync failed product_id=%s store_id=%s domain=%s error=%s",
                product.id, store.id, store.domain, exc,
            )
            return await self._record_failure(
                product, store, str(exc), retryable=isinstance(exc, AdapterTransportError)
            )
        except Exception as exc:
            logger.exception(
                "sync crashed product_id=%s store_id=%s domain=%s",
                product.id, store.id, store.domain,
            )
            return await self._record_failure(product, store, f"Unexpected error: {exc}")

        logger.info(
            "sync ok product_id=%s store_id=%s external_id=%s variants=%s",
            product.id, store.id, result.external_product_id, len(result.external_variant_ids),
        )
        return SyncResultEntry(
            store_id=store.id,
            domain=store.domain,
            success=True,
            external_product_id=result.external_product_id,
            variants_created=len(result.external_variant_ids),
        )

    async def _record_failure(
        self,
        product: ProductAggregate,
        store: StoreRecord,
        message: str,
        retryable: bool = False,
    ) -> SyncResultEntry:
        try:
            await self._ledger.upsert_product_sync(
                product.id, store.id, SYNC_STATUS_FAILED, error=message
            )
            await self._ledger.upsert_variant_syncs(store.id, [
                (variant.id, SYNC_STATUS_FAILED, None, message) for variant in product.variants
            ])
        except DatabaseError as ledger_err:
            logger.error(
                "ledger failure write failed product_id=%s store_id=%s error=%s",
                product.id, store.id, ledger_err,
            )
        return SyncResultEntry(
            store_id=store.id,
            domain=store.domain,
            success=False,
            error=message,
            retryable=retryable,
        )
