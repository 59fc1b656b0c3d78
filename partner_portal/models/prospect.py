"""
CRM prospect model - a lead before it becomes a Partner.
"""
import enum
from typing import Any, Optional
from datetime import datetime, UTC

from sqlalchemy import JSON, String, Integer, DateTime, ForeignKey, Text, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partner_portal.core.base import Base, str_enum


class ProspectStatus(str, enum.Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    PROPOSAL_SENT = "proposal_sent"
    NEGOTIATING = "negotiating"
    WON = "won"
    LOST = "lost"
    ARCHIVED = "archived"


class ProspectType(str, enum.Enum):
    LOCATION_PARTNER = "location_partner"
    REFERRAL_PARTNER = "referral_partner"
    CHANNEL_PARTNER = "channel_partner"
    RELATIONSHIP_PARTNER = "relationship_partner"
    CONTRACTOR = "contractor"


# Activity types that count as a touch point with the prospect
CONTACT_ACTIVITY_TYPES = frozenset({"email", "call", "meeting"})


class Prospect(Base):
    __tablename__ = "prospects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    prospect_type: Mapped[ProspectType] = mapped_column(
        str_enum(ProspectType), nullable=False, default=ProspectType.LOCATION_PARTNER
    )
    status: Mapped[ProspectStatus] = mapped_column(
        str_enum(ProspectStatus), nullable=False, default=ProspectStatus.NEW, index=True
    )

    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    last_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    company_name: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    title: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    source: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    last_contact_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    next_follow_up: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    follow_up_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    converted_partner_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("partners.id"), nullable=True
    )
    converted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    activities: Mapped[list["ProspectActivity"]] = relationship(
        "ProspectActivity",
        back_populates="prospect",
        cascade="all, delete-orphan",
        order_by="ProspectActivity.created_at.desc()",
    )

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)


class ProspectActivity(Base):
    """Immutable activity log entry. Updates are rejected at flush time."""

    __tablename__ = "prospect_activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    prospect_id: Mapped[int] = mapped_column(Integer, ForeignKey("prospects.id", ondelete="CASCADE"), index=True)

    activity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    performed_by: Mapped[str] = mapped_column(String(128), default="System")
    details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )

    prospect: Mapped["Prospect"] = relationship("Prospect", back_populates="activities")


class ImmutableRecordError(Exception):
    """Raised when code tries to modify an append-only record."""
    pass


@event.listens_for(ProspectActivity, "before_update")
def _reject_activity_update(mapper, connection, target: ProspectActivity) -> None:
    raise ImmutableRecordError(f"Prospect activity {target.id} is immutable")
