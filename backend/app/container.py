"""
Lazy DI container — singleton access to clients, stores, and services.

All stores share one Supabase client. Works from Celery workers and
scripts alike; import individual getters to avoid circular imports.
"""

from functools import lru_cache

from app.core.config import settings
from app.clients.supabase_client import SupabaseClient
from app.db.catalog_store import CatalogStore
from app.db.oauth_state_store import OAuthStateStore
from app.db.store_registry import StoreRegistry
from app.db.sync_ledger import SyncLedger
from app.services.shopify_adapter import ShopifyStoreAdapter
from app.services.sync_orchestrator import SyncOrchestrator


# -- Settings / clients ----------------------------------------------------

def get_settings():
    return settings


@lru_cache(maxsize=1)
def get_supabase_client():
    return SupabaseClient(settings)


# -- DB Stores -------------------------------------------------------------

@lru_cache(maxsize=1)
def get_catalog_store():
    return CatalogStore(get_supabase_client())


@lru_cache(maxsize=1)
def get_store_registry():
    return StoreRegistry(get_supabase_client())


@lru_cache(maxsize=1)
def get_oauth_state_store():
    return OAuthStateStore(get_supabase_client(), ttl_minutes=settings.oauth_state_ttl_minutes)


@lru_cache(maxsize=1)
def get_sync_ledger():
    return SyncLedger(get_supabase_client())


# -- Services --------------------------------------------------------------

@lru_cache(maxsize=1)
def get_shopify_adapter():
    return ShopifyStoreAdapter(settings)


@lru_cache(maxsize=1)
def get_sync_orchestrator():
    return SyncOrchestrator(
        catalog=get_catalog_store(),
        registry=get_store_registry(),
        ledger=get_sync_ledger(),
        adapter=get_shopify_adapter(),
        settings=settings,
    )
