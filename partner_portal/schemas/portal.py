"""
Pydantic schemas for the partner-facing portal.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from partner_portal.core.sanitization import sanitize_short
from partner_portal.models.commission import CommissionStatus
from partner_portal.schemas.partner import DeviceResponse, PartnerResponse, VenueResponse


# ──────────────────────────────────────────────
# Request Schemas
# ──────────────────────────────────────────────

class VenueCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)
    venue_type: Optional[str] = Field(None, max_length=64)
    address_line_1: Optional[str] = Field(None, max_length=256)
    city: Optional[str] = Field(None, max_length=128)
    state: Optional[str] = Field(None, max_length=64)
    zip: Optional[str] = Field(None, max_length=20)
    square_footage: Optional[int] = Field(None, ge=0)

    @field_validator("name", "venue_type", "address_line_1", "city", "state", "zip", mode="before")
    @classmethod
    def clean_short(cls, v):
        return sanitize_short(v) if isinstance(v, str) else v


# ──────────────────────────────────────────────
# Response Schemas
# ──────────────────────────────────────────────

class PortalStatsResponse(BaseModel):
    total_venues: int
    active_venues: int
    trial_venues: int
    total_devices: int
    active_devices: int
    total_earnings: Decimal
    this_month_earnings: Decimal
    total_data_usage_gb: float
    next_payment_estimate: Decimal
    trial_days_remaining: Optional[int]
    last_payment_amount: Optional[Decimal]
    last_payment_date: Optional[datetime]

    model_config = {"from_attributes": True}


class PortalVenueResponse(VenueResponse):
    device_count: int = 0


class CommissionResponse(BaseModel):
    id: int
    period_month: date
    amount: Decimal
    status: CommissionStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class PaymentResponse(BaseModel):
    id: int
    amount: Decimal
    status: str
    reference: Optional[str]
    paid_at: Optional[datetime]

    model_config = {"from_attributes": True}


class PortalResponse(BaseModel):
    partner: PartnerResponse
    stats: PortalStatsResponse
    venues: list[PortalVenueResponse]
    devices: list[DeviceResponse]
    commissions: list[CommissionResponse]
    payments: list[PaymentResponse]
