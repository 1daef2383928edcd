"""
Catalog store — product aggregate persistence.

A product aggregate is a product with its options, option values, variants
and the variant → option value links. It is written in one call to the
``create_product_aggregate`` Postgres function (see
``backend/migrations/001_catalog_sync.sql``) so all rows commit or roll
back together; readers never observe a partial aggregate.

Every rule that can be checked without the database is checked here first,
so a rejected spec never reaches Supabase.
"""

import logging
import math
from typing import Any, Dict, List, Union

from pydantic import ValidationError as PydanticValidationError
from postgrest.exceptions import APIError

from app.core.constants.catalog import (
    PRODUCTS_TABLE,
    OPTIONS_TABLE,
    OPTION_VALUES_TABLE,
    VARIANTS_TABLE,
    VARIANT_OPTION_VALUES_TABLE,
    CREATE_AGGREGATE_RPC,
    UNIQUE_VIOLATION_CODE,
)
from app.core.exceptions import DatabaseError, ProductNotFoundError, ValidationError
from app.db.base_store import BaseStore
from app.schemas.catalog import (
    OptionRecord,
    OptionValueRecord,
    Pagination,
    ProductAggregate,
    ProductListFilter,
    ProductPage,
    ProductRecord,
    ProductSpec,
    VariantRecord,
    VariantSelection,
)
from app.utils.type_converters import format_money, to_decimal

logger = logging.getLogger("catalog_store")


def _format_pydantic_errors(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
    return "; ".join(parts)


def escape_like(text: str) -> str:
    """Escape LIKE metacharacters so user text matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def parse_product_spec(spec: Union[ProductSpec, Dict[str, Any]]) -> ProductSpec:
    """Coerce raw input into a ProductSpec, mapping shape errors to ValidationError."""
    if isinstance(spec, ProductSpec):
        return spec
    try:
        return ProductSpec.model_validate(spec)
    except PydanticValidationError as e:
        raise ValidationError(_format_pydantic_errors(e)) from e


def validate_aggregate(spec: ProductSpec) -> None:
    """
    Check references, coverage and duplicates inside one product spec.

    Raises ValidationError listing every problem found.
    """
    errors: List[str] = []

    declared: Dict[str, set] = {}
    for opt in spec.options:
        if opt.name in declared:
            errors.append(f"duplicate option name '{opt.name}'")
            continue
        seen_values = set()
        for value in opt.values:
            if not value or not value.strip():
                errors.append(f"option '{opt.name}' has a blank value")
            elif value in seen_values:
                errors.append(f"option '{opt.name}' declares value '{value}' twice")
            seen_values.add(value)
        declared[opt.name] = seen_values

    seen_skus: Dict[str, int] = {}
    seen_combinations: Dict[tuple, int] = {}
    for index, variant in enumerate(spec.variants, start=1):
        label = f"variant {index}" + (f" ({variant.sku})" if variant.sku else "")

        for option_name, value in variant.option_values.items():
            if option_name not in declared:
                errors.append(f"{label} references undeclared option '{option_name}'")
            elif value not in declared[option_name]:
                errors.append(
                    f"{label} references undeclared value '{value}' for option '{option_name}'"
                )

        missing = [name for name in declared if name not in variant.option_values]
        if missing:
            errors.append(f"{label} has no value for option(s) {', '.join(missing)}")

        if variant.sku:
            if variant.sku in seen_skus:
                errors.append(
                    f"sku '{variant.sku}' used by variant {seen_skus[variant.sku]} and variant {index}"
                )
            else:
                seen_skus[variant.sku] = index

        if declared and not missing:
            combination = tuple(variant.option_values.get(name) for name in declared)
            if combination in seen_combinations:
                errors.append(
                    f"{label} repeats the option combination of variant {seen_combinations[combination]}"
                )
            else:
                seen_combinations[combination] = index

    if errors:
        raise ValidationError("; ".join(errors))


def build_aggregate_payload(spec: ProductSpec) -> Dict[str, Any]:
    """Shape a validated spec into the JSON document the Postgres function expects."""
    return {
        "product": {
            "title": spec.title,
            "description": spec.description,
            "vendor": spec.vendor,
            "product_type": spec.product_type,
            "status": spec.status,
        },
        "options": [
            {"name": opt.name, "position": pos, "values": list(opt.values)}
            for pos, opt in enumerate(spec.options, start=1)
        ],
        "variants": [
            {
                "sku": v.sku,
                "barcode": v.barcode,
                # Strings keep numeric precision through JSON into numeric(12,2)
                "price": format_money(v.price),
                "compare_at_price": format_money(v.compare_at_price),
                "cost": format_money(v.cost),
                "inventory_quantity": v.inventory_quantity,
                "position": pos,
                "option_values": dict(v.option_values),
            }
            for pos, v in enumerate(spec.variants, start=1)
        ],
    }


class CatalogStore(BaseStore):
    """Product aggregate CRUD."""

    async def create_product_aggregate(
        self, spec: Union[ProductSpec, Dict[str, Any]]
    ) -> ProductAggregate:
        """Validate and atomically persist a product with options and variants."""
        product_spec = parse_product_spec(spec)
        validate_aggregate(product_spec)

        skus = [v.sku for v in product_spec.variants if v.sku]
        if skus:
            existing = await self._select(VARIANTS_TABLE, "sku", in_filters={"sku": skus})
            if existing:
                taken = sorted({row["sku"] for row in existing})
                raise ValidationError(f"sku already exists: {', '.join(taken)}")

        payload = build_aggregate_payload(product_spec)
        try:
            response = self._client.rpc(CREATE_AGGREGATE_RPC, {"payload": payload}).execute()
        except APIError as e:
            if getattr(e, "code", None) == UNIQUE_VIOLATION_CODE:
                # Lost a race with a concurrent insert of the same sku
                raise ValidationError(f"sku already exists: {e.message}") from e
            logger.info("supabase rpc error fn=%s detail=%s", CREATE_AGGREGATE_RPC, str(e))
            raise DatabaseError(CREATE_AGGREGATE_RPC, str(e)) from e

        product_id = response.data
        if isinstance(product_id, list):
            product_id = product_id[0] if product_id else None
        if isinstance(product_id, dict):
            product_id = product_id.get("id") or product_id.get(CREATE_AGGREGATE_RPC)
        if product_id is None:
            raise DatabaseError(CREATE_AGGREGATE_RPC, "no product id returned")

        logger.info(
            "catalog product created product_id=%s options=%s variants=%s",
            product_id, len(product_spec.options), len(product_spec.variants),
        )
        return await self.get_product_aggregate(int(product_id))

    async def get_product(self, product_id: int) -> ProductRecord:
        rows = await self._select(PRODUCTS_TABLE, filters={"id": product_id})
        if not rows:
            raise ProductNotFoundError(product_id)
        return ProductRecord.model_validate(rows[0])

    async def get_product_aggregate(self, product_id: int) -> ProductAggregate:
        """Load a product with ordered options, values, variants and resolved selections."""
        product = await self.get_product(product_id)

        option_rows = await self._select(
            OPTIONS_TABLE, filters={"product_id": product_id}, order_by="position"
        )
        option_ids = [row["id"] for row in option_rows]
        value_rows = []
        if option_ids:
            value_rows = await self._select(
                OPTION_VALUES_TABLE, in_filters={"option_id": option_ids}, order_by="position"
            )

        values_by_option: Dict[int, List[OptionValueRecord]] = {oid: [] for oid in option_ids}
        value_lookup: Dict[int, str] = {}
        for row in value_rows:
            values_by_option.setdefault(row["option_id"], []).append(
                OptionValueRecord(id=row["id"], value=row["value"], position=row["position"])
            )
            value_lookup[row["id"]] = row["value"]

        options = [
            OptionRecord(
                id=row["id"],
                name=row["name"],
                position=row["position"],
                values=sorted(values_by_option.get(row["id"], []), key=lambda v: v.position),
            )
            for row in sorted(option_rows, key=lambda r: r["position"])
        ]
        option_order = {opt.id: (opt.position, opt.name) for opt in options}

        variant_rows = await self._select(
            VARIANTS_TABLE, filters={"product_id": product_id}, order_by="position"
        )
        variant_ids = [row["id"] for row in variant_rows]
        link_rows = []
        if variant_ids:
            link_rows = await self._select(
                VARIANT_OPTION_VALUES_TABLE, in_filters={"variant_id": variant_ids}
            )

        links_by_variant: Dict[int, List[Dict[str, Any]]] = {}
        for row in link_rows:
            links_by_variant.setdefault(row["variant_id"], []).append(row)

        variants = []
        for row in sorted(variant_rows, key=lambda r: r["position"]):
            links = sorted(
                links_by_variant.get(row["id"], []),
                key=lambda link: option_order.get(link["option_id"], (0, ""))[0],
            )
            selections = [
                VariantSelection(
                    option_name=option_order[link["option_id"]][1],
                    value=value_lookup[link["option_value_id"]],
                )
                for link in links
                if link["option_id"] in option_order and link["option_value_id"] in value_lookup
            ]
            variants.append(
                VariantRecord(
                    id=row["id"],
                    sku=row.get("sku"),
                    barcode=row.get("barcode"),
                    price=to_decimal(row.get("price")),
                    compare_at_price=to_decimal(row.get("compare_at_price")),
                    cost=to_decimal(row.get("cost")),
                    inventory_quantity=row.get("inventory_quantity") or 0,
                    position=row["position"],
                    selections=selections,
                )
            )

        return ProductAggregate(
            **product.model_dump(),
            options=options,
            variants=variants,
        )

    async def list_products(self, filters: ProductListFilter | Dict[str, Any] | None = None) -> ProductPage:
        """List products newest-first with equality and title-substring filters."""
        if filters is None:
            filters = ProductListFilter()
        elif not isinstance(filters, ProductListFilter):
            try:
                filters = ProductListFilter.model_validate(filters)
            except PydanticValidationError as e:
                raise ValidationError(_format_pydantic_errors(e)) from e

        offset = (filters.page - 1) * filters.limit
        try:
            query = self._client.table(PRODUCTS_TABLE).select("*", count="exact")
            if filters.status:
                query = query.eq("status", filters.status)
            if filters.vendor:
                query = query.eq("vendor", filters.vendor)
            if filters.search:
                query = query.ilike("title", f"%{escape_like(filters.search)}%")
            response = query.order("created_at", desc=True) \
                .order("id", desc=True) \
                .range(offset, offset + filters.limit - 1) \
                .execute()
        except APIError as e:
            logger.info("supabase error table=%s detail=%s", PRODUCTS_TABLE, str(e))
            raise DatabaseError(PRODUCTS_TABLE, f"select failed: {e}") from e

        rows = response.data or []
        total = response.count if response.count is not None else len(rows)
        return ProductPage(
            products=[ProductRecord.model_validate(row) for row in rows],
            pagination=Pagination(
                page=filters.page,
                limit=filters.limit,
                total=total,
                pages=math.ceil(total / filters.limit) if total else 0,
            ),
        )

    async def delete_product(self, product_id: int) -> None:
        """Delete a product; options, variants, links and ledger rows cascade."""
        deleted = await self._delete(PRODUCTS_TABLE, {"id": product_id})
        if not deleted:
            raise ProductNotFoundError(product_id)
        logger.info("catalog product deleted product_id=%s", product_id)
