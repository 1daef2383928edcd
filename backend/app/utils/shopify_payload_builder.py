"""
Shopify payload builder — pure projection of a product aggregate into
Admin GraphQL inputs.

Kept apart from the adapter so the projection can be unit-tested without
network calls.

Numeric rules:
- money (price, compareAtPrice, cost) is sent as a decimal string
- quantities are non-negative ints
- optional fields that are absent are omitted, never sent as null or zero
"""

import logging
from typing import Any, Dict, List

from app.core.exceptions import AdapterFieldError
from app.schemas.catalog import ProductAggregate, VariantRecord
from app.utils.type_converters import format_money

logger = logging.getLogger("shopify_payload_builder")


# ── Product shell ─────────────────────────────────────────────────

def build_product_options(product: ProductAggregate) -> List[Dict[str, Any]]:
    """Options in position order, each with its values in position order."""
    return [
        {
            "name": option.name,
            "values": [{"name": v.value} for v in sorted(option.values, key=lambda v: v.position)],
        }
        for option in sorted(product.options, key=lambda o: o.position)
    ]


def build_product_input(product: ProductAggregate) -> Dict[str, Any]:
    """ProductInput for productCreate (the shell product)."""
    body: Dict[str, Any] = {
        "title": product.title,
        "status": product.status,
    }
    if product.description:
        body["descriptionHtml"] = product.description
    if product.vendor:
        body["vendor"] = product.vendor
    if product.product_type:
        body["productType"] = product.product_type

    options = build_product_options(product)
    if options:
        body["productOptions"] = options
    return body


def build_option_id_map(shell_product: Dict[str, Any]) -> Dict[str, str]:
    """Map option name -> Shopify option GID from a productCreate response."""
    return {
        opt["name"]: opt["id"]
        for opt in shell_product.get("options") or []
        if opt.get("name") and opt.get("id")
    }


# ── Variants ──────────────────────────────────────────────────────

def build_variant_input(
    variant: VariantRecord,
    option_id_map: Dict[str, str],
    location_id: str,
) -> Dict[str, Any]:
    """ProductVariantsBulkInput for one variant."""
    option_values = []
    for selection in variant.selections:
        option_id = option_id_map.get(selection.option_name)
        if option_id is None:
            raise AdapterFieldError(
                f"Shopify shell has no option '{selection.option_name}' for variant {variant.sku or variant.id}"
            )
        option_values.append({"optionId": option_id, "name": selection.value})

    inventory_item: Dict[str, Any] = {"tracked": True}
    if variant.sku:
        inventory_item["sku"] = variant.sku
    cost = format_money(variant.cost)
    if cost is not None:
        inventory_item["cost"] = cost

    body: Dict[str, Any] = {
        "price": format_money(variant.price),
        "optionValues": option_values,
        "inventoryItem": inventory_item,
        "inventoryQuantities": [{
            "availableQuantity": max(0, int(variant.inventory_quantity or 0)),
            "locationId": location_id,
        }],
    }
    compare_at = format_money(variant.compare_at_price)
    if compare_at is not None:
        body["compareAtPrice"] = compare_at
    if variant.barcode:
        body["barcode"] = variant.barcode
    return body


def build_variants_input(
    product: ProductAggregate,
    option_id_map: Dict[str, str],
    location_id: str,
) -> List[Dict[str, Any]]:
    """Variant inputs in the aggregate's variant order."""
    return [
        build_variant_input(variant, option_id_map, location_id)
        for variant in product.variants
    ]
