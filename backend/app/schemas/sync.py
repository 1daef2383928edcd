"""
Sync schemas — adapter results, per-store sync outcomes, ledger status.

Outward models serialize with camelCase keys:
    response.model_dump(by_alias=True, exclude_none=True)
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.catalog import CamelModel


class AdapterResult(BaseModel):
    """Outcome of one successful creation against one store."""
    external_product_id: str
    # Aligned with the aggregate's variant order
    external_variant_ids: List[str] = Field(default_factory=list)


class SyncResultEntry(CamelModel):
    store_id: int
    domain: str
    success: bool
    external_product_id: Optional[str] = None
    variants_created: Optional[int] = None
    error: Optional[str] = None
    # Transport-class failure; a later attempt may succeed
    retryable: bool = Field(default=False, exclude=True)


class SyncResponse(CamelModel):
    product_id: int
    results: List[SyncResultEntry]

    @property
    def succeeded(self) -> List[SyncResultEntry]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> List[SyncResultEntry]:
        return [r for r in self.results if not r.success]

    @property
    def retryable_store_ids(self) -> List[int]:
        return [r.store_id for r in self.results if not r.success and r.retryable]


class SyncStatusEntry(CamelModel):
    store_id: int
    domain: Optional[str] = None
    external_product_id: Optional[str] = None
    status: str
    last_synced_at: Optional[datetime] = None
    error_message: Optional[str] = None


class ProductRef(BaseModel):
    id: int
    title: str


class SyncStatusResponse(CamelModel):
    product: ProductRef
    syncs: List[SyncStatusEntry]
