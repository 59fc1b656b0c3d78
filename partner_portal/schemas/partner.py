"""
Pydantic schemas for Partner API.
"""
import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from partner_portal.core.sanitization import sanitize_short, sanitize_long
from partner_portal.models.partner import DocumentStatus, PartnerType, ReviewStatus, ReviewType
from partner_portal.models.stage import is_assignable_stage, is_valid_stage, step_of
from partner_portal.models.venue import DeviceStatus, VenueStatus
from partner_portal.services.portal_stats import trial_days_remaining


_SHORT_FIELDS = (
    "contact_first_name", "contact_last_name", "contact_phone", "contact_title",
    "company_legal_name", "dba_name", "address_line_1", "address_line_2",
    "city", "state", "zip", "source",
)


# ──────────────────────────────────────────────
# Request Schemas
# ──────────────────────────────────────────────

class PartnerCreate(BaseModel):
    """Application intake payload."""
    partner_type: PartnerType = PartnerType.LOCATION
    contact_first_name: str = Field(..., min_length=1, max_length=128)
    contact_last_name: Optional[str] = Field(None, max_length=128)
    contact_email: str = Field(..., min_length=3, max_length=255)
    contact_phone: Optional[str] = Field(None, max_length=64)
    contact_title: Optional[str] = Field(None, max_length=128)
    company_legal_name: Optional[str] = Field(None, max_length=256)
    dba_name: Optional[str] = Field(None, max_length=256)
    address_line_1: Optional[str] = Field(None, max_length=256)
    address_line_2: Optional[str] = Field(None, max_length=256)
    city: Optional[str] = Field(None, max_length=128)
    state: Optional[str] = Field(None, max_length=64)
    zip: Optional[str] = Field(None, max_length=20)
    source: Optional[str] = Field(None, max_length=64)
    notes: Optional[str] = None

    @field_validator(*_SHORT_FIELDS, mode="before")
    @classmethod
    def clean_short(cls, v):
        return sanitize_short(v) if isinstance(v, str) else v

    @field_validator("notes", mode="before")
    @classmethod
    def clean_notes(cls, v):
        return sanitize_long(v) if isinstance(v, str) else v

    @field_validator("contact_email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class PartnerUpdate(BaseModel):
    """Partial update; only fields present in the payload are written."""
    pipeline_stage: Optional[str] = None
    partner_type: Optional[PartnerType] = None

    initial_review_status: Optional[ReviewStatus] = None
    post_call_review_status: Optional[ReviewStatus] = None
    loi_status: Optional[DocumentStatus] = None
    contract_status: Optional[DocumentStatus] = None
    nda_status: Optional[DocumentStatus] = None

    trial_start_date: Optional[datetime] = None
    trial_end_date: Optional[datetime] = None
    tipalti_payee_id: Optional[str] = Field(None, max_length=64)
    tipalti_status: Optional[str] = Field(None, max_length=32)

    contact_first_name: Optional[str] = Field(None, max_length=128)
    contact_last_name: Optional[str] = Field(None, max_length=128)
    contact_email: Optional[str] = Field(None, max_length=255)
    contact_phone: Optional[str] = Field(None, max_length=64)
    contact_title: Optional[str] = Field(None, max_length=128)
    company_legal_name: Optional[str] = Field(None, max_length=256)
    dba_name: Optional[str] = Field(None, max_length=256)
    address_line_1: Optional[str] = Field(None, max_length=256)
    address_line_2: Optional[str] = Field(None, max_length=256)
    city: Optional[str] = Field(None, max_length=128)
    state: Optional[str] = Field(None, max_length=64)
    zip: Optional[str] = Field(None, max_length=20)
    source: Optional[str] = Field(None, max_length=64)
    notes: Optional[str] = None

    @field_validator("pipeline_stage")
    @classmethod
    def known_stage(cls, v):
        if v is None:
            raise ValueError("pipeline_stage cannot be null")
        if not is_assignable_stage(v):
            raise ValueError(f"Unknown pipeline stage '{v}'")
        return v

    @field_validator(
        "partner_type", "initial_review_status", "post_call_review_status",
        "loi_status", "contract_status", "nda_status",
    )
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator(*_SHORT_FIELDS, mode="before")
    @classmethod
    def clean_short(cls, v):
        return sanitize_short(v) if isinstance(v, str) else v

    @field_validator("notes", mode="before")
    @classmethod
    def clean_notes(cls, v):
        return sanitize_long(v) if isinstance(v, str) else v


class ReviewApproval(BaseModel):
    review_type: ReviewType
    target_stage: Optional[str] = None
    skip_reason: Optional[str] = Field(None, max_length=1024)

    @field_validator("skip_reason", mode="before")
    @classmethod
    def clean_reason(cls, v):
        return sanitize_long(v) if isinstance(v, str) else v


class ReviewDenial(BaseModel):
    review_type: ReviewType
    reason: Optional[str] = Field(None, max_length=1024)


class StageChange(BaseModel):
    """Manual override, or a forward skip when ``skip_reason`` is given."""
    stage: str
    skip_reason: Optional[str] = Field(None, max_length=1024)

    @field_validator("stage")
    @classmethod
    def known_stage(cls, v):
        if not is_assignable_stage(v):
            raise ValueError(f"Unknown pipeline stage '{v}'")
        return v


# ──────────────────────────────────────────────
# Response Schemas
# ──────────────────────────────────────────────

class PipelineStageResponse(BaseModel):
    id: str
    name: str
    step: int

    model_config = {"from_attributes": True}


class PartnerActivityResponse(BaseModel):
    id: int
    activity_type: str
    description: Optional[str]
    performed_by: str
    details: Optional[dict[str, Any]] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class DeviceResponse(BaseModel):
    id: int
    venue_id: Optional[int]
    name: Optional[str]
    device_type: Optional[str]
    mac_address: Optional[str]
    serial_number: Optional[str]
    status: DeviceStatus
    data_usage_gb: float
    monthly_earnings: Decimal
    last_seen_at: Optional[datetime]

    model_config = {"from_attributes": True}


class VenueResponse(BaseModel):
    id: int
    partner_id: int
    name: str
    venue_type: Optional[str]
    address_line_1: Optional[str]
    city: Optional[str]
    state: Optional[str]
    zip: Optional[str]
    square_footage: Optional[int]
    status: VenueStatus
    trial_start_date: Optional[datetime]
    trial_end_date: Optional[datetime]
    created_at: datetime

    model_config = {"from_attributes": True}


class VenueWithDevicesResponse(VenueResponse):
    devices: list[DeviceResponse] = []


class PartnerResponse(BaseModel):
    id: int
    partner_id: Optional[str]
    partner_type: PartnerType
    pipeline_stage: str
    current_step: int = 0
    stage_entered_at: Optional[datetime]
    skip_reason: Optional[str]
    skipped_stages: list[str] = []

    initial_review_status: ReviewStatus
    initial_reviewed_at: Optional[datetime]
    post_call_review_status: ReviewStatus
    post_call_reviewed_at: Optional[datetime]

    loi_status: DocumentStatus
    loi_sent_at: Optional[datetime]
    loi_signed_at: Optional[datetime]
    contract_status: DocumentStatus
    contract_sent_at: Optional[datetime]
    contract_signed_at: Optional[datetime]
    nda_status: DocumentStatus
    nda_signed_at: Optional[datetime]

    trial_start_date: Optional[datetime]
    trial_end_date: Optional[datetime]
    trial_days_remaining: Optional[int] = None
    tipalti_payee_id: Optional[str]
    tipalti_status: Optional[str]

    contact_first_name: Optional[str]
    contact_last_name: Optional[str]
    contact_email: Optional[str]
    contact_phone: Optional[str]
    contact_title: Optional[str]
    company_legal_name: Optional[str]
    dba_name: Optional[str]
    address_line_1: Optional[str]
    address_line_2: Optional[str]
    city: Optional[str]
    state: Optional[str]
    zip: Optional[str]
    source: Optional[str]
    notes: Optional[str]

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("skipped_stages", mode="before")
    @classmethod
    def parse_skipped(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return json.loads(v)
        return v

    @model_validator(mode="after")
    def derive_fields(self):
        self.current_step = step_of(self.pipeline_stage) if is_valid_stage(self.pipeline_stage) else 0
        self.trial_days_remaining = trial_days_remaining(self.trial_end_date)
        return self


class PartnerDetailResponse(PartnerResponse):
    venues: list[VenueWithDevicesResponse] = []
    activities: list[PartnerActivityResponse] = []


class PipelineStatsResponse(BaseModel):
    total: int
    by_stage: dict[str, int]
    pending_review: int
    in_trial: int
    trial_ending_soon: int
    active: int
    inactive: int

    model_config = {"from_attributes": True}


class PartnerListResponse(BaseModel):
    items: list[PartnerResponse]
    total: int
    page: int
    page_size: int
    has_next: bool
    has_prev: bool
    stats: PipelineStatsResponse


class TipaltiInviteResponse(BaseModel):
    partner_id: int
    tipalti_payee_id: str
    tipalti_status: str
    onboarding_url: str


class TipaltiStatusResponse(BaseModel):
    tipalti_payee_id: str
    tipalti_status: str
    payment_method: Optional[str] = None
    is_payable: Optional[bool] = None
