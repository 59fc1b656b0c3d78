"""
Pydantic schemas for e-signature templates and documents.
"""
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from partner_portal.models.document import SubmissionStatus, TemplateType


# ──────────────────────────────────────────────
# Request Schemas
# ──────────────────────────────────────────────

class TemplateCreateRequest(BaseModel):
    """``create_all`` registers every type (or ``template_types``); ``create_single`` one."""
    action: Literal["create_all", "create_single"] = "create_all"
    template_type: Optional[TemplateType] = None
    template_types: Optional[list[TemplateType]] = None

    @model_validator(mode="after")
    def single_needs_type(self):
        if self.action == "create_single" and self.template_type is None:
            raise ValueError("template_type is required for create_single")
        return self


class DocumentSendRequest(BaseModel):
    document_type: str = Field(..., min_length=1, max_length=50)
    partner_id: Optional[int] = None
    template_type: Optional[TemplateType] = None
    recipient_email: Optional[str] = Field(None, max_length=255)
    recipient_name: Optional[str] = Field(None, max_length=256)
    custom_values: dict[str, Any] = Field(default_factory=dict)
    send_email: bool = True

    @field_validator("document_type", mode="before")
    @classmethod
    def lower_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @model_validator(mode="after")
    def needs_recipient(self):
        if self.partner_id is None and not self.recipient_email:
            raise ValueError("partner_id or recipient_email is required")
        return self


# ──────────────────────────────────────────────
# Response Schemas
# ──────────────────────────────────────────────

class TemplateResultResponse(BaseModel):
    template_type: str
    success: bool
    external_id: Optional[str] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    error: Optional[str] = None

    model_config = {"from_attributes": True}


class TemplateBatchResponse(BaseModel):
    message: str
    results: list[TemplateResultResponse]


class DocumentTemplateResponse(BaseModel):
    id: int
    template_type: str
    name: str
    slug: Optional[str]
    docuseal_template_id: Optional[str]
    is_active: bool
    is_default: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TemplateFieldResponse(BaseModel):
    name: str
    kind: str
    role: str
    required: bool
    label: str
    options: list[str] = []


class TemplateSectionResponse(BaseModel):
    title: str
    fields: list[TemplateFieldResponse]


class TemplateSchemaResponse(BaseModel):
    template_type: str
    name: str
    title: str
    roles: list[str]
    sections: list[TemplateSectionResponse]


class DocumentResponse(BaseModel):
    id: int
    partner_id: Optional[int]
    document_type: str
    template_type: str
    docuseal_submission_id: Optional[str]
    status: SubmissionStatus
    recipient_email: str
    recipient_name: Optional[str]
    sent_by: Optional[str]
    document_url: Optional[str]
    sent_at: datetime
    viewed_at: Optional[datetime]
    completed_at: Optional[datetime]
    declined_at: Optional[datetime]

    model_config = {"from_attributes": True}


class WebhookAck(BaseModel):
    status: str
    event_type: Optional[str] = None
    document_status: Optional[str] = None
    partner_id: Optional[int] = None
