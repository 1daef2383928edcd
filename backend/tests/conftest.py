"""
Pytest configuration and shared fixtures for Storefront Sync Hub tests.

Provides settings, an in-memory Supabase, stores wired to it, a mocked
Shopify transport, and sample catalog data.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from fakes import FakeSupabase


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_settings():
    """Settings object with test defaults (no real credentials)."""
    from app.core.config import Settings
    return Settings(
        supabase_url="https://test.supabase.co",
        supabase_service_role_key="test-service-role-key",
        shopify_api_version="2024-10",
        shopify_timeout_seconds=5.0,
        sync_max_concurrency=4,
        sync_max_retries=3,
        oauth_state_ttl_minutes=10,
        product_page_limit=50,
    )


# ---------------------------------------------------------------------------
# Supabase (in-memory)
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def fake_db(fake_supabase):
    """Direct table access for seeding and assertions."""
    return fake_supabase.db


@pytest.fixture
def supabase_client(mock_settings, fake_supabase):
    from app.clients.supabase_client import SupabaseClient
    return SupabaseClient(mock_settings, client=fake_supabase)


@pytest.fixture
def catalog_store(supabase_client):
    from app.db.catalog_store import CatalogStore
    return CatalogStore(supabase_client)


@pytest.fixture
def store_registry(supabase_client):
    from app.db.store_registry import StoreRegistry
    return StoreRegistry(supabase_client)


@pytest.fixture
def sync_ledger(supabase_client):
    from app.db.sync_ledger import SyncLedger
    return SyncLedger(supabase_client)


@pytest.fixture
def oauth_state_store(supabase_client):
    from app.db.oauth_state_store import OAuthStateStore
    return OAuthStateStore(supabase_client, ttl_minutes=10)


@pytest.fixture
def seed_store(fake_db):
    """Insert a connected store row; returns the stored row."""
    def _seed(domain: str, is_active: bool = True, access_token: str = "shpat_test"):
        return fake_db.insert_row("stores", {
            "domain": domain,
            "access_token": access_token,
            "scope": "write_products",
            "is_active": is_active,
        })
    return _seed


# ---------------------------------------------------------------------------
# Shopify (mocked)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_shopify_client():
    """Mocked ShopifyClient (HTTP transport only)."""
    client = MagicMock()
    client.domain = "store-a.myshopify.com"
    client.call_shopify_graphql = AsyncMock(return_value={})
    client.to_gid = MagicMock(side_effect=lambda entity, val: f"gid://shopify/{entity}/{val}")
    return client


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

@pytest.fixture
def tshirt_spec():
    """T-Shirt with one Size option and two variants."""
    return {
        "title": "T-Shirt",
        "description": "Soft cotton tee",
        "vendor": "Acme",
        "productType": "Apparel",
        "status": "ACTIVE",
        "options": [{"name": "Size", "values": ["S", "M"]}],
        "variants": [
            {"sku": "TS-S", "price": "19.99", "inventoryQuantity": 5, "optionValues": {"Size": "S"}},
            {"sku": "TS-M", "price": "19.99", "inventoryQuantity": 3, "optionValues": {"Size": "M"}},
        ],
    }


@pytest.fixture
def two_option_spec():
    """Shirt with Size x Color options and explicit compare-at / cost."""
    return {
        "title": "Oxford Shirt",
        "options": [
            {"name": "Size", "values": ["S", "M"]},
            {"name": "Color", "values": ["Blue", "White"]},
        ],
        "variants": [
            {"sku": "OX-S-BL", "price": "49.50", "compareAtPrice": "59.00", "cost": "20.10",
             "optionValues": {"Size": "S", "Color": "Blue"}},
            {"sku": "OX-M-WH", "price": "49.50", "optionValues": {"Size": "M", "Color": "White"}},
            {"sku": "OX-S-WH", "price": "52.00", "barcode": "0123456789012",
             "optionValues": {"Color": "White", "Size": "S"}},
        ],
    }
