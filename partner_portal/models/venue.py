"""
Venue and Device models - the locations and hardware a partner hosts.
"""
import enum
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from datetime import datetime, UTC

from sqlalchemy import String, Integer, Float, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partner_portal.core.base import Base, str_enum

if TYPE_CHECKING:
    from partner_portal.models.partner import Partner


class VenueStatus(str, enum.Enum):
    PENDING = "pending"
    TRIAL = "trial"
    ACTIVE = "active"
    INACTIVE = "inactive"


class DeviceStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    OFFLINE = "offline"
    INACTIVE = "inactive"


class Venue(Base):
    __tablename__ = "venues"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    partner_id: Mapped[int] = mapped_column(Integer, ForeignKey("partners.id"), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(256), nullable=False)
    venue_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    address_line_1: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    zip: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    square_footage: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    status: Mapped[VenueStatus] = mapped_column(
        str_enum(VenueStatus), nullable=False, default=VenueStatus.PENDING
    )
    trial_start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    trial_end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    partner: Mapped["Partner"] = relationship("Partner", back_populates="venues")
    devices: Mapped[list["Device"]] = relationship("Device", back_populates="venue")


class Device(Base):
    __tablename__ = "devices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    venue_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("venues.id"), nullable=True, index=True)
    partner_id: Mapped[int] = mapped_column(Integer, ForeignKey("partners.id"), nullable=False, index=True)

    name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    device_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    mac_address: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    serial_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    status: Mapped[DeviceStatus] = mapped_column(
        str_enum(DeviceStatus), nullable=False, default=DeviceStatus.PENDING
    )
    data_usage_gb: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    monthly_earnings: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    last_seen_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )

    venue: Mapped[Optional["Venue"]] = relationship("Venue", back_populates="devices")
    partner: Mapped["Partner"] = relationship("Partner", back_populates="devices")
