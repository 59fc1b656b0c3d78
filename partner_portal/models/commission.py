"""
Commission and Payment models.
"""
import enum
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from datetime import date, datetime, UTC

from sqlalchemy import String, Integer, Numeric, Date, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partner_portal.core.base import Base, str_enum

if TYPE_CHECKING:
    from partner_portal.models.partner import Partner


class CommissionStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


class Commission(Base):
    """Monthly earnings owed to a partner."""
    __tablename__ = "commissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    partner_id: Mapped[int] = mapped_column(Integer, ForeignKey("partners.id"), nullable=False, index=True)
    period_month: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    status: Mapped[CommissionStatus] = mapped_column(
        str_enum(CommissionStatus), nullable=False, default=CommissionStatus.PENDING
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )

    partner: Mapped["Partner"] = relationship("Partner", back_populates="commissions")


class Payment(Base):
    """Payout issued to a partner."""
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    partner_id: Mapped[int] = mapped_column(Integer, ForeignKey("partners.id"), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="completed")
    reference: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    paid_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )

    partner: Mapped["Partner"] = relationship("Partner", back_populates="payments")
