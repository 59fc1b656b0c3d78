"""
E-signature models: registered DocuSeal templates and sent documents.
"""
import enum
from typing import TYPE_CHECKING, Any, Optional
from datetime import datetime, UTC

from sqlalchemy import JSON, Boolean, String, Integer, DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partner_portal.core.base import Base, str_enum

if TYPE_CHECKING:
    from partner_portal.models.partner import Partner


class TemplateType(str, enum.Enum):
    CONTRACTOR_CONTRACT = "contractor_contract"
    NDA = "nda"
    LOI = "loi"
    LOCATION_DEPLOYMENT = "location_deployment"
    REFERRAL_AGREEMENT = "referral_agreement"
    NON_COMPETE = "non_compete"
    EMPLOYEE_WRITEUP = "employee_writeup"
    OFFER_LETTER = "offer_letter"
    TERMINATION = "termination"


class SubmissionStatus(str, enum.Enum):
    SENT = "sent"
    VIEWED = "viewed"
    IN_PROGRESS = "in_progress"
    PARTIALLY_SIGNED = "partially_signed"
    SIGNED = "signed"
    DECLINED = "declined"
    ARCHIVED = "archived"


class DocumentTemplate(Base):
    """Local registration of a DocuSeal template. One row per template type."""
    __tablename__ = "document_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    template_type: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    slug: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    docuseal_template_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    html: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )


class Document(Base):
    """A template sent to a recipient for signature."""
    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    partner_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("partners.id"), nullable=True, index=True)

    # loi / contract / nda / ... (what the partner record tracks)
    document_type: Mapped[str] = mapped_column(String(50), nullable=False)
    template_type: Mapped[str] = mapped_column(String(50), nullable=False)
    docuseal_submission_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    status: Mapped[SubmissionStatus] = mapped_column(
        str_enum(SubmissionStatus), nullable=False, default=SubmissionStatus.SENT
    )
    recipient_email: Mapped[str] = mapped_column(String(255), nullable=False)
    recipient_name: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    sent_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    document_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    viewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    declined_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    partner: Mapped[Optional["Partner"]] = relationship("Partner", back_populates="documents")
