"""
Pydantic schemas for the store product catalog.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from partner_portal.core.sanitization import sanitize_short, sanitize_long
from partner_portal.models.product import DEFAULT_MARKUP


def normalize_sku(value: Any) -> Any:
    """Spreadsheets hand SKUs back as numbers; catalog SKUs are strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    return value


# ──────────────────────────────────────────────
# Request Schemas
# ──────────────────────────────────────────────

class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)
    sku: Optional[str] = Field(None, max_length=128)
    category: Optional[str] = Field(None, max_length=64)
    manufacturer: Optional[str] = Field(None, max_length=128)
    description: Optional[str] = None
    product_url: Optional[str] = Field(None, max_length=1024)
    images: Optional[list[str]] = None
    specs: Optional[dict[str, Any]] = None
    msrp: Decimal = Field(default=Decimal("0"), ge=0)
    markup: Decimal = Field(default=DEFAULT_MARKUP, ge=0, le=10)
    store_price: Optional[Decimal] = Field(None, ge=0)
    is_approved: bool = False

    @field_validator("name", "sku", "category", "manufacturer", mode="before")
    @classmethod
    def clean_short(cls, v):
        return sanitize_short(v) if isinstance(v, str) else v

    @field_validator("description", mode="before")
    @classmethod
    def clean_long(cls, v):
        return sanitize_long(v) if isinstance(v, str) else v


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=256)
    sku: Optional[str] = Field(None, max_length=128)
    category: Optional[str] = Field(None, max_length=64)
    manufacturer: Optional[str] = Field(None, max_length=128)
    description: Optional[str] = None
    product_url: Optional[str] = Field(None, max_length=1024)
    images: Optional[list[str]] = None
    specs: Optional[dict[str, Any]] = None
    msrp: Optional[Decimal] = Field(None, ge=0)
    markup: Optional[Decimal] = Field(None, ge=0, le=10)
    store_price: Optional[Decimal] = Field(None, ge=0)
    is_approved: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("name", "sku", "category", "manufacturer", mode="before")
    @classmethod
    def clean_short(cls, v):
        return sanitize_short(v) if isinstance(v, str) else v

    @field_validator("description", mode="before")
    @classmethod
    def clean_long(cls, v):
        return sanitize_long(v) if isinstance(v, str) else v

    # Omit a field to leave it unchanged; these columns have no empty state
    @field_validator("name", "msrp", "markup", "store_price", "is_approved", "is_active")
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class ProductImportRow(ProductCreate):
    """One already-parsed spreadsheet row. Validated per row during import."""
    name: str = Field(..., min_length=1, max_length=256)

    @field_validator("sku", mode="before")
    @classmethod
    def numeric_sku(cls, v):
        return normalize_sku(v)

    @field_validator("msrp", mode="before")
    @classmethod
    def strip_currency(cls, v):
        if isinstance(v, str):
            return v.replace("$", "").replace(",", "").strip() or "0"
        return v


class ProductImportRequest(BaseModel):
    rows: list[dict[str, Any]] = Field(..., min_length=1, max_length=5000)
    default_markup: Optional[Decimal] = Field(None, ge=0, le=10)
    auto_approve: bool = False


class ProductApproval(BaseModel):
    approved: bool = True


# ──────────────────────────────────────────────
# Response Schemas
# ──────────────────────────────────────────────

class ProductResponse(BaseModel):
    id: int
    name: str
    sku: Optional[str]
    category: Optional[str]
    manufacturer: Optional[str]
    description: Optional[str]
    product_url: Optional[str]
    images: Optional[list[str]] = None
    specs: Optional[dict[str, Any]] = None
    msrp: Decimal
    markup: Decimal
    store_price: Decimal
    partner_price: Decimal
    is_approved: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProductImportResponse(BaseModel):
    created: int
    skipped: int
    failed: int
    errors: list[str]
    product_ids: list[int]
