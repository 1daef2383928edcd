"""
Catalog schemas — product aggregate input and read models.

Input models validate shape only (types, required fields, non-negative
numbers). Cross-field rules such as variant selections referencing declared
options are checked by CatalogStore before anything is written.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.core.config import settings
from app.core.constants.catalog import (
    DEFAULT_PRODUCT_STATUS,
    MAX_PAGE_LIMIT,
    MONEY_DECIMAL_PLACES,
    MONEY_MAX_DIGITS,
)


ProductStatus = Literal["ACTIVE", "DRAFT", "ARCHIVED"]


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys while keeping snake_case attributes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

class OptionSpec(CamelModel):
    name: str = Field(min_length=1)
    values: List[str] = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("option name must not be blank")
        return v


class VariantSpec(CamelModel):
    sku: Optional[str] = None
    barcode: Optional[str] = None
    price: Decimal = Field(ge=0, max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES)
    compare_at_price: Optional[Decimal] = Field(
        default=None, ge=0, max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES
    )
    cost: Optional[Decimal] = Field(
        default=None, ge=0, max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES
    )
    inventory_quantity: int = Field(default=0, ge=0)
    option_values: Dict[str, str] = Field(default_factory=dict)

    @field_validator("sku", "barcode")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("option_values")
    @classmethod
    def _strip_option_names(cls, v: Dict[str, str]) -> Dict[str, str]:
        # Option names are stripped on OptionSpec too
        stripped: Dict[str, str] = {}
        for name, value in v.items():
            key = name.strip()
            if key in stripped:
                raise ValueError(f"option '{key}' selected more than once")
            stripped[key] = value
        return stripped


class ProductSpec(CamelModel):
    title: str
    description: Optional[str] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    status: ProductStatus = DEFAULT_PRODUCT_STATUS
    options: List[OptionSpec] = Field(default_factory=list)
    variants: List[VariantSpec] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _title_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title is required")
        return v

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


class ProductListFilter(CamelModel):
    status: Optional[ProductStatus] = None
    vendor: Optional[str] = None
    search: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default_factory=lambda: settings.product_page_limit, ge=1, le=MAX_PAGE_LIMIT)


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------

class OptionValueRecord(CamelModel):
    id: int
    value: str
    position: int


class OptionRecord(CamelModel):
    id: int
    name: str
    position: int
    values: List[OptionValueRecord] = Field(default_factory=list)


class VariantSelection(CamelModel):
    option_name: str
    value: str


class VariantRecord(CamelModel):
    id: int
    sku: Optional[str] = None
    barcode: Optional[str] = None
    price: Decimal
    compare_at_price: Optional[Decimal] = None
    cost: Optional[Decimal] = None
    inventory_quantity: int = 0
    position: int
    selections: List[VariantSelection] = Field(default_factory=list)

    @property
    def option_values(self) -> Dict[str, str]:
        return {s.option_name: s.value for s in self.selections}


class ProductRecord(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    status: str = DEFAULT_PRODUCT_STATUS
    created_at: Optional[datetime] = None


class ProductAggregate(ProductRecord):
    options: List[OptionRecord] = Field(default_factory=list)
    variants: List[VariantRecord] = Field(default_factory=list)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ProductPage(BaseModel):
    products: List[ProductRecord]
    pagination: Pagination
