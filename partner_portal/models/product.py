"""
Store product model.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional
from datetime import datetime, UTC

from sqlalchemy import JSON, Boolean, String, Integer, Numeric, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from partner_portal.core.base import Base

DEFAULT_MARKUP = Decimal("0.20")

# Flat partner discount: partner price = store price x 0.95
PARTNER_PRICE_FACTOR = Decimal("0.95")

_CENTS = Decimal("0.01")


def to_money(value: Decimal | float | int | str) -> Decimal:
    """Round to cents, half up."""
    return Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)


def compute_store_price(msrp: Decimal | float | int | str, markup: Decimal | float | int | str) -> Decimal:
    return to_money(Decimal(str(msrp)) * (Decimal("1") + Decimal(str(markup))))


def compute_partner_price(store_price: Decimal | float | int | str) -> Decimal:
    return to_money(Decimal(str(store_price)) * PARTNER_PRICE_FACTOR)


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    sku: Mapped[Optional[str]] = mapped_column(String(128), unique=True, nullable=True, index=True)
    category: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    manufacturer: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    product_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    images: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    specs: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    msrp: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    markup: Mapped[Decimal] = mapped_column(Numeric(6, 4), nullable=False, default=DEFAULT_MARKUP)
    store_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    # Admin approval for the store front
    is_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    @property
    def partner_price(self) -> Decimal:
        return compute_partner_price(self.store_price or 0)
