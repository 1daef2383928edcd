"""
Shopify store adapter — executes the product creation protocol against one store.

Protocol per (product, store):
1. productCreate with title, description, vendor, type, status and options
   (the "shell" product; Shopify adds a placeholder variant to it)
2. map option name -> option GID from the shell response
3. resolve the store's default location (cached per store domain)
4. productVariantsBulkCreate with REMOVE_STANDALONE_VARIANT so the
   placeholder variant is replaced by the real ones

If a step after the shell fails, the shell is deleted (saga compensation)
so the store is not left holding a half-built product. The option map is
local to one call; only the location cache lives on the adapter.
"""
import logging
from typing import Callable, Dict, List, Optional

from app.clients.shopify_client import ShopifyClient
from app.core.config import Settings
from app.core.constants.sync import VARIANT_CREATE_STRATEGY
from app.core.exceptions import AdapterError, AdapterFieldError
from app.schemas.catalog import ProductAggregate
from app.schemas.stores import StoreRecord
from app.schemas.sync import AdapterResult
from app.utils.shopify_payload_builder import (
    build_option_id_map,
    build_product_input,
    build_variants_input,
)

logger = logging.getLogger("shopify_adapter")


PRODUCT_CREATE_MUTATION = """
    mutation CreateProduct($input: ProductInput!) {
        productCreate(input: $input) {
            product {
                id
                title
                options(first: 3) {
                    id
                    name
                    position
                }
            }
            userErrors { field message }
        }
    }
"""

DEFAULT_LOCATION_QUERY = """
    query DefaultLocation {
        locations(first: 1) {
            edges { node { id name } }
        }
    }
"""

VARIANTS_BULK_CREATE_MUTATION = """
    mutation CreateVariants(
        $productId: ID!,
        $variants: [ProductVariantsBulkInput!]!,
        $strategy: ProductVariantsBulkCreateStrategy
    ) {
        productVariantsBulkCreate(productId: $productId, variants: $variants, strategy: $strategy) {
            productVariants { id sku }
            userErrors { field message }
        }
    }
"""

PRODUCT_DELETE_MUTATION = """
    mutation DeleteProduct($input: ProductDeleteInput!) {
        productDelete(input: $input) {
            deletedProductId
            userErrors { field message }
        }
    }
"""


def _format_user_errors(errors: List[Dict]) -> str:
    parts = []
    for err in errors:
        field = err.get("field")
        field_path = ".".join(str(f) for f in field) if isinstance(field, list) else field
        message = err.get("message") or "invalid"
        parts.append(f"{field_path}: {message}" if field_path else message)
    return "; ".join(parts)


class ShopifyStoreAdapter:
    """Projects product aggregates into Shopify stores."""

    def __init__(
        self,
        settings: Settings,
        client_factory: Optional[Callable[[StoreRecord], ShopifyClient]] = None,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory or self._default_client
        # store domain -> location GID, for this adapter's lifetime
        self._location_cache: Dict[str, str] = {}

    def _default_client(self, store: StoreRecord) -> ShopifyClient:
        return ShopifyClient(store.domain, store.access_token, self._settings)

    async def get_default_location(self, store: StoreRecord, client: ShopifyClient) -> str:
        """Resolve (and cache) the first inventory location of a store."""
        cached = self._location_cache.get(store.domain)
        if cached:
            return cached

        data = await client.call_shopify_graphql(DEFAULT_LOCATION_QUERY)
        edges = (data.get("locations") or {}).get("edges") or []
        location_id = ((edges[0] or {}).get("node") or {}).get("id") if edges else None
        if not location_id:
            raise AdapterFieldError("No location found for store", domain=store.domain)

        self._location_cache[store.domain] = location_id
        logger.info("shopify location resolved domain=%s location_id=%s", store.domain, location_id)
        return location_id

    async def create_product(self, store: StoreRecord, product: ProductAggregate) -> AdapterResult:
        """Create the product and all its variants in one store."""
        client = self._client_factory(store)

        data = await client.call_shopify_graphql(
            PRODUCT_CREATE_MUTATION, {"input": build_product_input(product)}
        )
        created = data.get("productCreate") or {}
        user_errors = created.get("userErrors") or []
        if user_errors:
            raise AdapterFieldError(
                f"productCreate rejected: {_format_user_errors(user_errors)}",
                domain=store.domain,
                field_errors=user_errors,
            )
        shell = created.get("product") or {}
        external_product_id = shell.get("id")
        if not external_product_id:
            raise AdapterFieldError("productCreate returned no product", domain=store.domain)

        logger.info(
            "shopify shell created domain=%s product_id=%s external_id=%s",
            store.domain, product.id, external_product_id,
        )

        if not product.variants:
            return AdapterResult(external_product_id=external_product_id, external_variant_ids=[])

        try:
            variant_ids = await self._create_variants(client, store, product, shell)
        except AdapterError:
            await self.delete_product(store, external_product_id, client=client)
            raise

        return AdapterResult(
            external_product_id=external_product_id,
            external_variant_ids=variant_ids,
        )

    async def _create_variants(
        self,
        client: ShopifyClient,
        store: StoreRecord,
        product: ProductAggregate,
        shell: Dict,
    ) -> List[str]:
        option_id_map = build_option_id_map(shell)
        location_id = await self.get_default_location(store, client)
        try:
            variants_input = build_variants_input(product, option_id_map, location_id)
        except AdapterFieldError as exc:
            exc.domain = store.domain
            raise

        data = await client.call_shopify_graphql(
            VARIANTS_BULK_CREATE_MUTATION,
            {
                "productId": shell["id"],
                "variants": variants_input,
                "strategy": VARIANT_CREATE_STRATEGY,
            },
        )
        created = data.get("productVariantsBulkCreate") or {}
        user_errors = created.get("userErrors") or []
        if user_errors:
            raise AdapterFieldError(
                f"productVariantsBulkCreate rejected: {_format_user_errors(user_errors)}",
                domain=store.domain,
                field_errors=user_errors,
            )

        variant_ids = [v.get("id") for v in created.get("productVariants") or []]
        if not all(variant_ids):
            raise AdapterFieldError("productVariantsBulkCreate returned a variant without an id", domain=store.domain)
        logger.info(
            "shopify variants created domain=%s product_id=%s count=%s",
            store.domain, product.id, len(variant_ids),
        )
        return variant_ids

    async def delete_product(
        self,
        store: StoreRecord,
        external_product_id: str,
        client: Optional[ShopifyClient] = None,
    ) -> bool:
        """Best-effort removal of a product created by this adapter; never raises."""
        client = client or self._client_factory(store)
        try:
            await client.call_shopify_graphql(
                PRODUCT_DELETE_MUTATION, {"input": {"id": ShopifyClient.to_gid("Product", external_product_id)}}
            )
            logger.info("shopify product deleted domain=%s external_id=%s", store.domain, external_product_id)
            return True
        except AdapterError as rollback_err:
            logger.error(
                "shopify product delete failed domain=%s external_id=%s error=%s",
                store.domain, external_product_id, rollback_err,
            )
            return False
