"""
Pydantic schemas for CRM prospects.
"""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from partner_portal.core.sanitization import sanitize_short, sanitize_long
from partner_portal.models.prospect import ProspectStatus, ProspectType

_SHORT_FIELDS = ("first_name", "last_name", "phone", "company_name", "title", "source")


# ──────────────────────────────────────────────
# Request Schemas
# ──────────────────────────────────────────────

class ProspectCreate(BaseModel):
    prospect_type: ProspectType = ProspectType.LOCATION_PARTNER
    status: ProspectStatus = ProspectStatus.NEW
    first_name: str = Field(..., min_length=1, max_length=128)
    last_name: Optional[str] = Field(None, max_length=128)
    email: str = Field(..., min_length=3, max_length=255)
    phone: Optional[str] = Field(None, max_length=64)
    company_name: Optional[str] = Field(None, max_length=256)
    title: Optional[str] = Field(None, max_length=128)
    source: Optional[str] = Field(None, max_length=64)
    notes: Optional[str] = None
    next_follow_up: Optional[datetime] = None

    @field_validator(*_SHORT_FIELDS, mode="before")
    @classmethod
    def clean_short(cls, v):
        return sanitize_short(v) if isinstance(v, str) else v

    @field_validator("notes", mode="before")
    @classmethod
    def clean_notes(cls, v):
        return sanitize_long(v) if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class ProspectUpdate(BaseModel):
    prospect_type: Optional[ProspectType] = None
    status: Optional[ProspectStatus] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=128)
    last_name: Optional[str] = Field(None, max_length=128)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=64)
    company_name: Optional[str] = Field(None, max_length=256)
    title: Optional[str] = Field(None, max_length=128)
    source: Optional[str] = Field(None, max_length=64)
    notes: Optional[str] = None
    next_follow_up: Optional[datetime] = None

    @field_validator(*_SHORT_FIELDS, mode="before")
    @classmethod
    def clean_short(cls, v):
        return sanitize_short(v) if isinstance(v, str) else v

    @field_validator("notes", mode="before")
    @classmethod
    def clean_notes(cls, v):
        return sanitize_long(v) if isinstance(v, str) else v


class ProspectActivityCreate(BaseModel):
    activity_type: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    details: Optional[dict[str, Any]] = None

    @field_validator("description", mode="before")
    @classmethod
    def clean_description(cls, v):
        return sanitize_long(v) if isinstance(v, str) else v


# ──────────────────────────────────────────────
# Response Schemas
# ──────────────────────────────────────────────

class ProspectActivityResponse(BaseModel):
    id: int
    prospect_id: int
    activity_type: str
    description: Optional[str]
    performed_by: str
    details: Optional[dict[str, Any]] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ProspectResponse(BaseModel):
    id: int
    prospect_type: ProspectType
    status: ProspectStatus
    first_name: str
    last_name: Optional[str]
    email: str
    phone: Optional[str]
    company_name: Optional[str]
    title: Optional[str]
    source: Optional[str]
    notes: Optional[str]
    last_contact_date: Optional[datetime]
    next_follow_up: Optional[datetime]
    follow_up_count: int
    converted_partner_id: Optional[int]
    converted_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    activities: list[ProspectActivityResponse] = []

    model_config = {"from_attributes": True}


class ProspectListResponse(BaseModel):
    items: list[ProspectResponse]
    total: int


class InviteResponse(BaseModel):
    prospect: ProspectResponse
    form_url: str


class ConvertResponse(BaseModel):
    prospect: ProspectResponse
    partner_id: int
    partner_code: Optional[str]
    pipeline_stage: str
