"""
Unit tests for ShopifyStoreAdapter — the per-store creation protocol.

Tests cover:
- productCreate -> location -> productVariantsBulkCreate call sequence
- placeholder-variant strategy and option GID mapping
- location lookup cached per store domain
- shell deletion when variant creation fails
- userErrors surfaced as field errors
"""
from decimal import Decimal

import pytest
from unittest.mock import AsyncMock

from app.core.exceptions import AdapterFieldError, AdapterTransportError
from app.schemas.catalog import (
    OptionRecord,
    OptionValueRecord,
    ProductAggregate,
    VariantRecord,
    VariantSelection,
)
from app.schemas.stores import StoreRecord
from app.services.shopify_adapter import (
    DEFAULT_LOCATION_QUERY,
    PRODUCT_CREATE_MUTATION,
    PRODUCT_DELETE_MUTATION,
    VARIANTS_BULK_CREATE_MUTATION,
    ShopifyStoreAdapter,
)


pytestmark = pytest.mark.unit

PRODUCT_GID = "gid://shopify/Product/100"
LOCATION_GID = "gid://shopify/Location/5"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _store(store_id=1, domain="store-a.myshopify.com"):
    return StoreRecord(id=store_id, domain=domain, access_token="shpat_test")


def _tshirt(variant_count=2):
    sizes = ["S", "M", "L"][:variant_count]
    return ProductAggregate(
        id=7,
        title="T-Shirt",
        status="ACTIVE",
        options=[OptionRecord(id=1, name="Size", position=1, values=[
            OptionValueRecord(id=i + 1, value=size, position=i + 1) for i, size in enumerate(sizes)
        ])],
        variants=[
            VariantRecord(
                id=i + 1,
                sku=f"TS-{size}",
                price=Decimal("19.99"),
                inventory_quantity=3,
                position=i + 1,
                selections=[VariantSelection(option_name="Size", value=size)],
            )
            for i, size in enumerate(sizes)
        ],
    )


def _shopify_responses(variant_ids=None, product_errors=None, variant_errors=None, variant_exc=None):
    """Dispatch GraphQL documents to canned responses."""
    variant_ids = variant_ids if variant_ids is not None else [
        "gid://shopify/ProductVariant/1", "gid://shopify/ProductVariant/2",
    ]

    async def _call(query, variables=None):
        if query == PRODUCT_CREATE_MUTATION:
            return {"productCreate": {
                "product": None if product_errors else {
                    "id": PRODUCT_GID,
                    "title": "T-Shirt",
                    "options": [{"id": "gid://shopify/ProductOption/9", "name": "Size", "position": 1}],
                },
                "userErrors": product_errors or [],
            }}
        if query == DEFAULT_LOCATION_QUERY:
            return {"locations": {"edges": [{"node": {"id": LOCATION_GID, "name": "Main"}}]}}
        if query == VARIANTS_BULK_CREATE_MUTATION:
            if variant_exc:
                raise variant_exc
            return {"productVariantsBulkCreate": {
                "productVariants": [] if variant_errors else [{"id": v} for v in variant_ids],
                "userErrors": variant_errors or [],
            }}
        if query == PRODUCT_DELETE_MUTATION:
            return {"productDelete": {"deletedProductId": variables["input"]["id"], "userErrors": []}}
        raise AssertionError(f"unexpected query: {query}")

    return AsyncMock(side_effect=_call)


def _adapter(mock_settings, mock_shopify_client):
    return ShopifyStoreAdapter(mock_settings, client_factory=lambda store: mock_shopify_client)


def _queries(mock_shopify_client):
    return [c.args[0] for c in mock_shopify_client.call_shopify_graphql.call_args_list]


# ---------------------------------------------------------------------------
# create_product
# ---------------------------------------------------------------------------

class TestCreateProduct:

    @pytest.mark.asyncio
    async def test_full_protocol(self, mock_settings, mock_shopify_client):
        mock_shopify_client.call_shopify_graphql = _shopify_responses()
        adapter = _adapter(mock_settings, mock_shopify_client)

        result = await adapter.create_product(_store(), _tshirt())

        assert result.external_product_id == PRODUCT_GID
        assert result.external_variant_ids == [
            "gid://shopify/ProductVariant/1", "gid://shopify/ProductVariant/2",
        ]
        assert _queries(mock_shopify_client) == [
            PRODUCT_CREATE_MUTATION, DEFAULT_LOCATION_QUERY, VARIANTS_BULK_CREATE_MUTATION,
        ]

    @pytest.mark.asyncio
    async def test_bulk_create_replaces_placeholder_variant(self, mock_settings, mock_shopify_client):
        mock_shopify_client.call_shopify_graphql = _shopify_responses()
        adapter = _adapter(mock_settings, mock_shopify_client)

        await adapter.create_product(_store(), _tshirt())

        variables = mock_shopify_client.call_shopify_graphql.call_args_list[2].args[1]
        assert variables["productId"] == PRODUCT_GID
        assert variables["strategy"] == "REMOVE_STANDALONE_VARIANT"
        first = variables["variants"][0]
        assert first["price"] == "19.99"
        assert first["optionValues"] == [{"optionId": "gid://shopify/ProductOption/9", "name": "S"}]
        assert first["inventoryQuantities"] == [{"availableQuantity": 3, "locationId": LOCATION_GID}]
        assert "compareAtPrice" not in first

    @pytest.mark.asyncio
    async def test_product_input_carries_options(self, mock_settings, mock_shopify_client):
        mock_shopify_client.call_shopify_graphql = _shopify_responses()
        adapter = _adapter(mock_settings, mock_shopify_client)

        await adapter.create_product(_store(), _tshirt())

        product_input = mock_shopify_client.call_shopify_graphql.call_args_list[0].args[1]["input"]
        assert product_input["title"] == "T-Shirt"
        assert product_input["productOptions"] == [
            {"name": "Size", "values": [{"name": "S"}, {"name": "M"}]},
        ]

    @pytest.mark.asyncio
    async def test_location_resolved_once_per_store(self, mock_settings, mock_shopify_client):
        mock_shopify_client.call_shopify_graphql = _shopify_responses()
        adapter = _adapter(mock_settings, mock_shopify_client)

        await adapter.create_product(_store(), _tshirt())
        await adapter.create_product(_store(), _tshirt())
        await adapter.create_product(_store(2, "store-b.myshopify.com"), _tshirt())

        assert _queries(mock_shopify_client).count(DEFAULT_LOCATION_QUERY) == 2

    @pytest.mark.asyncio
    async def test_zero_variants_skips_bulk_create(self, mock_settings, mock_shopify_client):
        mock_shopify_client.call_shopify_graphql = _shopify_responses()
        adapter = _adapter(mock_settings, mock_shopify_client)
        product = _tshirt().model_copy(update={"options": [], "variants": []})

        result = await adapter.create_product(_store(), product)

        assert result.external_variant_ids == []
        assert _queries(mock_shopify_client) == [PRODUCT_CREATE_MUTATION]

    @pytest.mark.asyncio
    async def test_product_user_errors_raise_field_error(self, mock_settings, mock_shopify_client):
        errors = [{"field": ["input", "title"], "message": "Title can't be blank"}]
        mock_shopify_client.call_shopify_graphql = _shopify_responses(product_errors=errors)
        adapter = _adapter(mock_settings, mock_shopify_client)

        with pytest.raises(AdapterFieldError, match="input.title: Title can't be blank") as exc_info:
            await adapter.create_product(_store(), _tshirt())

        assert exc_info.value.field_errors == errors
        assert exc_info.value.domain == "store-a.myshopify.com"
        assert PRODUCT_DELETE_MUTATION not in _queries(mock_shopify_client)

    @pytest.mark.asyncio
    async def test_variant_user_errors_delete_shell(self, mock_settings, mock_shopify_client):
        errors = [{"field": ["variants", "0", "price"], "message": "is invalid"}]
        mock_shopify_client.call_shopify_graphql = _shopify_responses(variant_errors=errors)
        adapter = _adapter(mock_settings, mock_shopify_client)

        with pytest.raises(AdapterFieldError, match="productVariantsBulkCreate rejected"):
            await adapter.create_product(_store(), _tshirt())

        delete_call = mock_shopify_client.call_shopify_graphql.call_args_list[-1]
        assert delete_call.args[0] == PRODUCT_DELETE_MUTATION
        assert delete_call.args[1] == {"input": {"id": PRODUCT_GID}}

    @pytest.mark.asyncio
    async def test_transport_error_during_variants_deletes_shell(self, mock_settings, mock_shopify_client):
        mock_shopify_client.call_shopify_graphql = _shopify_responses(
            variant_exc=AdapterTransportError("timed out", domain="store-a.myshopify.com")
        )
        adapter = _adapter(mock_settings, mock_shopify_client)

        with pytest.raises(AdapterTransportError):
            await adapter.create_product(_store(), _tshirt())

        assert _queries(mock_shopify_client)[-1] == PRODUCT_DELETE_MUTATION

    @pytest.mark.asyncio
    async def test_variant_without_id_deletes_shell(self, mock_settings, mock_shopify_client):
        mock_shopify_client.call_shopify_graphql = _shopify_responses(
            variant_ids=["gid://shopify/ProductVariant/1", None]
        )
        adapter = _adapter(mock_settings, mock_shopify_client)

        with pytest.raises(AdapterFieldError, match="without an id"):
            await adapter.create_product(_store(), _tshirt())

        assert _queries(mock_shopify_client)[-1] == PRODUCT_DELETE_MUTATION

    @pytest.mark.asyncio
    async def test_missing_shell_option_deletes_shell(self, mock_settings, mock_shopify_client):
        mock_shopify_client.call_shopify_graphql = _shopify_responses()
        adapter = _adapter(mock_settings, mock_shopify_client)
        product = _tshirt()
        product.variants[0].selections.append(VariantSelection(option_name="Color", value="Red"))

        with pytest.raises(AdapterFieldError) as exc_info:
            await adapter.create_product(_store(), product)

        assert exc_info.value.domain == "store-a.myshopify.com"
        assert _queries(mock_shopify_client)[-1] == PRODUCT_DELETE_MUTATION

    @pytest.mark.asyncio
    async def test_no_location_is_field_error(self, mock_settings, mock_shopify_client):
        async def _call(query, variables=None):
            if query == DEFAULT_LOCATION_QUERY:
                return {"locations": {"edges": []}}
            return await _shopify_responses()(query, variables)

        mock_shopify_client.call_shopify_graphql = AsyncMock(side_effect=_call)
        adapter = _adapter(mock_settings, mock_shopify_client)

        with pytest.raises(AdapterFieldError, match="No location"):
            await adapter.create_product(_store(), _tshirt())


# ---------------------------------------------------------------------------
# delete_product
# ---------------------------------------------------------------------------

class TestDeleteProduct:

    @pytest.mark.asyncio
    async def test_returns_true_on_success(self, mock_settings, mock_shopify_client):
        mock_shopify_client.call_shopify_graphql = _shopify_responses()
        adapter = _adapter(mock_settings, mock_shopify_client)

        assert await adapter.delete_product(_store(), PRODUCT_GID) is True

    @pytest.mark.asyncio
    async def test_swallows_adapter_errors(self, mock_settings, mock_shopify_client):
        mock_shopify_client.call_shopify_graphql = AsyncMock(
            side_effect=AdapterTransportError("down", domain="store-a.myshopify.com")
        )
        adapter = _adapter(mock_settings, mock_shopify_client)

        assert await adapter.delete_product(_store(), PRODUCT_GID) is False


def test_default_client_factory_builds_per_store_client(mock_settings):
    adapter = ShopifyStoreAdapter(mock_settings)

    client = adapter._client_factory(_store(domain="store-z.myshopify.com"))

    assert client.domain == "store-z.myshopify.com"
