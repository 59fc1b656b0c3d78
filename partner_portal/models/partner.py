"""
Partner model - an onboarding entity moving through the pipeline.
"""
import enum
import json
from typing import TYPE_CHECKING, Any, Optional
from datetime import datetime, UTC

from sqlalchemy import JSON, String, Integer, DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partner_portal.core.base import Base, str_enum
from partner_portal.models.stage import PIPELINE_STAGES

if TYPE_CHECKING:
    from partner_portal.models.venue import Venue, Device
    from partner_portal.models.commission import Commission, Payment
    from partner_portal.models.document import Document


class PartnerType(str, enum.Enum):
    LOCATION = "location_partner"
    REFERRAL = "referral_partner"
    CHANNEL = "channel_partner"
    RELATIONSHIP = "relationship_partner"
    CONTRACTOR = "contractor"


class ReviewStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class DocumentStatus(str, enum.Enum):
    NOT_SENT = "not_sent"
    SENT = "sent"
    VIEWED = "viewed"
    SIGNED = "signed"
    DECLINED = "declined"


class ReviewType(str, enum.Enum):
    INITIAL = "initial"
    POST_CALL = "post_call"


# review type -> (status column, reviewed-at column, default next stage)
REVIEW_FIELDS: dict[ReviewType, tuple[str, str, str]] = {
    ReviewType.INITIAL: ("initial_review_status", "initial_reviewed_at", "discovery_scheduled"),
    ReviewType.POST_CALL: ("post_call_review_status", "post_call_reviewed_at", "venues_setup"),
}

PARTNER_CODE_PREFIX = {
    PartnerType.LOCATION: "LP",
    PartnerType.REFERRAL: "RP",
    PartnerType.CHANNEL: "CP",
    PartnerType.RELATIONSHIP: "RL",
    PartnerType.CONTRACTOR: "CT",
}


class Partner(Base):
    """Partner record.

    ``pipeline_stage`` holds a registry stage id or the ``inactive`` sentinel.
    Partners are never hard-deleted.
    """
    __tablename__ = "partners"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    partner_id: Mapped[Optional[str]] = mapped_column(String(32), unique=True, nullable=True, index=True)
    partner_type: Mapped[PartnerType] = mapped_column(
        str_enum(PartnerType), nullable=False, default=PartnerType.LOCATION
    )

    # Pipeline
    pipeline_stage: Mapped[str] = mapped_column(
        String(50), nullable=False, default=PIPELINE_STAGES[0].id, index=True
    )
    stage_entered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    skip_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    skipped_stages: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Reviews
    initial_review_status: Mapped[ReviewStatus] = mapped_column(
        str_enum(ReviewStatus), nullable=False, default=ReviewStatus.PENDING
    )
    initial_reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    post_call_review_status: Mapped[ReviewStatus] = mapped_column(
        str_enum(ReviewStatus), nullable=False, default=ReviewStatus.PENDING
    )
    post_call_reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Documents
    loi_status: Mapped[DocumentStatus] = mapped_column(
        str_enum(DocumentStatus), nullable=False, default=DocumentStatus.NOT_SENT
    )
    loi_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    loi_signed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    loi_docuseal_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    contract_status: Mapped[DocumentStatus] = mapped_column(
        str_enum(DocumentStatus), nullable=False, default=DocumentStatus.NOT_SENT
    )
    contract_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    contract_signed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    contract_docuseal_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    nda_status: Mapped[DocumentStatus] = mapped_column(
        str_enum(DocumentStatus), nullable=False, default=DocumentStatus.NOT_SENT
    )
    nda_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    nda_signed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    nda_docuseal_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Trial window
    trial_start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    trial_end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Payouts
    tipalti_payee_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    tipalti_status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    # Contact
    contact_first_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    contact_last_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    contact_title: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    # Company
    company_legal_name: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    dba_name: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    address_line_1: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    address_line_2: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    zip: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    source: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    # Relationships
    venues: Mapped[list["Venue"]] = relationship(
        "Venue", back_populates="partner", order_by="Venue.created_at"
    )
    devices: Mapped[list["Device"]] = relationship("Device", back_populates="partner")
    commissions: Mapped[list["Commission"]] = relationship(
        "Commission", back_populates="partner", order_by="Commission.period_month.desc()"
    )
    payments: Mapped[list["Payment"]] = relationship(
        "Payment", back_populates="partner", order_by="Payment.paid_at.desc()"
    )
    documents: Mapped[list["Document"]] = relationship("Document", back_populates="partner")
    activities: Mapped[list["PartnerActivity"]] = relationship(
        "PartnerActivity",
        back_populates="partner",
        cascade="all, delete-orphan",
        order_by="PartnerActivity.created_at.desc()",
    )

    @property
    def contact_name(self) -> str:
        return " ".join(p for p in (self.contact_first_name, self.contact_last_name) if p)

    @property
    def display_name(self) -> str:
        return self.dba_name or self.company_legal_name or self.contact_name or f"Partner {self.id}"

    @property
    def skipped_stage_list(self) -> list[str]:
        if not self.skipped_stages:
            return []
        return json.loads(self.skipped_stages)


class PartnerActivity(Base):
    """Append-only audit trail for a partner."""

    __tablename__ = "partner_activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    partner_id: Mapped[int] = mapped_column(Integer, ForeignKey("partners.id", ondelete="CASCADE"), index=True)

    activity_type: Mapped[str] = mapped_column(String(50))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    performed_by: Mapped[str] = mapped_column(String(128), default="System")
    details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )

    partner: Mapped["Partner"] = relationship("Partner", back_populates="activities")
