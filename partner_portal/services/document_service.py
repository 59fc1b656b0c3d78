"""
DocumentService — sends registered templates for signature and applies
DocuSeal webhook events back onto documents and partners.
"""
from datetime import date, datetime, UTC
from typing import Any, Optional

from partner_portal.core.config import settings
from partner_portal.core.logging import get_logger
from partner_portal.integrations.docuseal import DocuSealClient, DocuSealError
from partner_portal.models.document import Document, SubmissionStatus, TemplateType
from partner_portal.models.partner import DocumentStatus, Partner, PartnerType
from partner_portal.models.stage import step_of
from partner_portal.repositories.document_repo import DocumentRepository, TemplateRepository
from partner_portal.repositories.partner_repo import PartnerRepository
from partner_portal.services.pipeline_service import PipelineService, current_step
from partner_portal.services.template_schemas import SKYYIELD, TemplateError, TemplateSchema, get_template_schema

logger = get_logger(__name__)

# Document kinds whose status is mirrored on the partner record
TRACKED_DOCUMENTS = ("loi", "contract", "nda")

# Stage a partner enters when a tracked document reaches a status
STAGE_ON_SENT = {"loi": "loi_sent"}
STAGE_ON_SIGNED = {"loi": "loi_signed", "contract": "active"}

CONTRACT_TEMPLATE_BY_PARTNER_TYPE = {
    PartnerType.LOCATION: TemplateType.LOCATION_DEPLOYMENT,
    PartnerType.REFERRAL: TemplateType.REFERRAL_AGREEMENT,
    PartnerType.CHANNEL: TemplateType.REFERRAL_AGREEMENT,
    PartnerType.RELATIONSHIP: TemplateType.REFERRAL_AGREEMENT,
    PartnerType.CONTRACTOR: TemplateType.CONTRACTOR_CONTRACT,
}

_EVENT_STATUS = {
    "form.viewed": SubmissionStatus.VIEWED,
    "form.started": SubmissionStatus.IN_PROGRESS,
    "form.declined": SubmissionStatus.DECLINED,
    "submission.completed": SubmissionStatus.SIGNED,
    "submission.archived": SubmissionStatus.ARCHIVED,
}


class DocumentSendError(Exception):
    """Raised when a document cannot be sent (missing template, recipient, ...)."""
    pass


def default_template_type(document_type: str, partner: Optional[Partner]) -> TemplateType:
    if document_type == "contract":
        partner_type = PartnerType(partner.partner_type) if partner else PartnerType.LOCATION
        return CONTRACT_TEMPLATE_BY_PARTNER_TYPE[partner_type]
    try:
        return TemplateType(document_type)
    except ValueError:
        raise DocumentSendError(f"No default template for document type '{document_type}'") from None


def detect_document_type(name: Optional[str]) -> Optional[str]:
    """Best guess from a DocuSeal template or document name."""
    lowered = (name or "").lower()
    if "loi" in lowered or "letter of intent" in lowered:
        return "loi"
    if "nda" in lowered or "non-disclosure" in lowered:
        return "nda"
    if any(word in lowered for word in ("deployment", "agreement", "contract")):
        return "contract"
    return None


def partner_prefill(partner: Partner) -> dict[str, Any]:
    """Values every partner-facing template may reuse, keyed by field name."""
    company = partner.company_legal_name or partner.dba_name
    address = ", ".join(p for p in (partner.address_line_1, partner.city, partner.state, partner.zip) if p)
    today = date.today().isoformat()
    values: dict[str, Any] = {
        "loi_date": today,
        "agreement_date": today,
        "effective_date": today,
        "lp_company_name": company,
        "lp_address": address,
        "lp_address_1": partner.address_line_1,
        "lp_address_2": partner.address_line_2,
        "lp_city": partner.city,
        "lp_state": partner.state,
        "lp_zip": partner.zip,
        "lp_contact_name": partner.contact_name,
        "lp_contact_title": partner.contact_title,
        "lp_contact_email": partner.contact_email,
        "receiving_party_name": company or partner.contact_name,
        "receiving_party_address": address,
        "disclosing_party_name": settings.COMPANY_NAME,
        "partner_name": partner.contact_name,
        "partner_company": company,
        "partner_address": address,
        "contractor_name": partner.contact_name,
        "contractor_legal_name": company,
        "contractor_address_1": partner.address_line_1,
        "contractor_address_2": partner.address_line_2,
        "contractor_city": partner.city,
        "contractor_state": partner.state,
        "contractor_zip": partner.zip,
    }
    if partner.trial_start_date:
        values["trial_start_date"] = partner.trial_start_date.date().isoformat()
    if partner.trial_end_date:
        values["trial_end_date"] = partner.trial_end_date.date().isoformat()
    return {k: v for k, v in values.items() if v not in (None, "")}


def split_values_by_role(schema: TemplateSchema, values: dict[str, Any], strict: bool = False) -> dict[str, dict[str, Any]]:
    """Group values by the role that owns each field. Unknown names raise when ``strict``."""
    owners = {f.name: f.role for f in schema.fields}
    by_role: dict[str, dict[str, Any]] = {role: {} for role in schema.roles}
    for name, value in values.items():
        role = owners.get(name)
        if role is None:
            if strict:
                raise TemplateError(f"Field '{name}' is not part of {schema.template_type.value}")
            continue
        by_role[role][name] = value
    return by_role


def _submission_id(response: Any) -> Optional[str]:
    if isinstance(response, list) and response:
        first = response[0]
        value = first.get("submission_id") or first.get("id")
    elif isinstance(response, dict):
        value = response.get("id") or response.get("submission_id")
    else:
        value = None
    return str(value) if value is not None else None


class DocumentService:
    def __init__(
        self,
        partner_repo: PartnerRepository,
        template_repo: TemplateRepository,
        document_repo: DocumentRepository,
        pipeline: PipelineService,
        client: DocuSealClient,
    ):
        self.partner_repo = partner_repo
        self.template_repo = template_repo
        self.document_repo = document_repo
        self.pipeline = pipeline
        self.client = client

    # ──────────────────────────────────────────────
    # Sending
    # ──────────────────────────────────────────────

    async def send_document(
        self,
        document_type: str,
        partner: Optional[Partner] = None,
        template_type: Optional[str] = None,
        recipient_email: Optional[str] = None,
        recipient_name: Optional[str] = None,
        custom_values: Optional[dict[str, Any]] = None,
        send_email: bool = True,
        performed_by: str = "System",
    ) -> Document:
        ttype = TemplateType(template_type) if template_type else default_template_type(document_type, partner)
        schema = get_template_schema(ttype.value)

        template = await self.template_repo.get_by_type(ttype.value)
        if template is None or not template.docuseal_template_id or not template.is_active:
            raise DocumentSendError(f"Template '{ttype.value}' is not registered with DocuSeal")

        email = recipient_email or (partner.contact_email if partner else None)
        if not email:
            raise DocumentSendError("Recipient email is required")
        name = recipient_name or (partner.contact_name if partner else None)

        values = partner_prefill(partner) if partner else {}
        by_role = split_values_by_role(schema, values)
        for role, role_values in split_values_by_role(schema, custom_values or {}, strict=True).items():
            by_role[role].update(role_values)

        counterparty = next((r for r in schema.roles if r != SKYYIELD), SKYYIELD)
        submitters = []
        if counterparty != SKYYIELD:
            submitters.append({
                "role": SKYYIELD,
                "email": settings.CONTRACTS_EMAIL,
                "values": by_role.get(SKYYIELD, {}),
            })
        submitters.append({
            "role": counterparty,
            "email": email,
            "name": name,
            "values": by_role.get(counterparty, {}),
        })

        metadata = {"document_type": document_type}
        if partner is not None:
            metadata.update(partner_id=partner.id, partner_type=PartnerType(partner.partner_type).value)

        response = await self.client.create_submission(
            template.docuseal_template_id, submitters, send_email=send_email, metadata=metadata
        )
        submission_id = _submission_id(response)
        if submission_id is None:
            raise DocuSealError("DocuSeal returned no submission id")

        now = datetime.now(UTC)
        document = await self.document_repo.create(Document(
            partner_id=partner.id if partner else None,
            document_type=document_type,
            template_type=ttype.value,
            docuseal_submission_id=submission_id,
            status=SubmissionStatus.SENT,
            recipient_email=email,
            recipient_name=name,
            sent_by=performed_by,
            sent_at=now,
            details={"submitters": [s["role"] for s in submitters]},
        ))

        if partner is not None:
            await self._mark_partner_sent(partner, document_type, submission_id, now, performed_by, email)

        logger.info(
            "document_sent",
            document_id=document.id,
            document_type=document_type,
            template_type=ttype.value,
            submission_id=submission_id,
        )
        return document

    async def _mark_partner_sent(
        self,
        partner: Partner,
        document_type: str,
        submission_id: str,
        now: datetime,
        performed_by: str,
        email: str,
    ) -> None:
        fields: dict[str, Any] = {}
        if document_type in TRACKED_DOCUMENTS:
            fields = {
                f"{document_type}_status": DocumentStatus.SENT,
                f"{document_type}_sent_at": now,
                f"{document_type}_docuseal_id": submission_id,
            }
        if document_type in STAGE_ON_SENT:
            await self.pipeline.set_stage(
                partner, STAGE_ON_SENT[document_type], performed_by=performed_by, extra_fields=fields
            )
        elif fields:
            await self.partner_repo.update_fields(partner, fields)
        await self.partner_repo.add_activity(
            partner.id,
            "document_sent",
            description=f"{document_type.upper()} sent to {email}",
            performed_by=performed_by,
            details={"document_type": document_type, "submission_id": submission_id},
        )

    # ──────────────────────────────────────────────
    # Webhooks
    # ──────────────────────────────────────────────

    async def handle_webhook(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Apply one DocuSeal event. Unknown events and submissions are acknowledged and ignored."""
        event_type = payload.get("event_type")
        data = payload.get("data") or {}

        status = self._status_for_event(event_type, data)
        if status is None:
            return {"status": "ignored", "event_type": event_type}

        submission = data.get("submission") or {}
        raw_id = data.get("submission_id") or submission.get("id")
        if raw_id is None and event_type and event_type.startswith("submission."):
            raw_id = data.get("id")
        submission_id = str(raw_id) if raw_id is not None else None

        document = await self.document_repo.get_by_submission_id(submission_id) if submission_id else None
        metadata = data.get("metadata") or submission.get("metadata") or {}

        partner_pk = document.partner_id if document else metadata.get("partner_id")
        document_type = (
            (document.document_type if document else None)
            or metadata.get("document_type")
            or detect_document_type((data.get("template") or {}).get("name"))
        )

        now = datetime.now(UTC)
        if document is not None:
            self._apply_document_status(document, status, data, now)
            await self.document_repo.save(document)

        if partner_pk is None or document_type not in TRACKED_DOCUMENTS:
            logger.info("docuseal_webhook_unlinked", event_type=event_type, submission_id=submission_id)
            return {"status": "ok", "event_type": event_type, "document_status": status.value}

        partner = await self.partner_repo.get_by_id(int(partner_pk))
        if partner is None:
            logger.warning("docuseal_webhook_partner_missing", partner_id=partner_pk, submission_id=submission_id)
            return {"status": "ok", "event_type": event_type, "document_status": status.value}

        await self._apply_partner_status(partner, document_type, status, now, submission_id)
        return {
            "status": "ok",
            "event_type": event_type,
            "document_status": status.value,
            "partner_id": partner.id,
        }

    @staticmethod
    def _status_for_event(event_type: Optional[str], data: dict[str, Any]) -> Optional[SubmissionStatus]:
        if event_type == "form.completed":
            return SubmissionStatus.SIGNED if _all_signed(data) else SubmissionStatus.PARTIALLY_SIGNED
        return _EVENT_STATUS.get(event_type or "")

    @staticmethod
    def _apply_document_status(document: Document, status: SubmissionStatus, data: dict[str, Any], now: datetime) -> None:
        # Signed and archived documents never move back to an earlier status
        if document.status in (SubmissionStatus.SIGNED, SubmissionStatus.ARCHIVED) and status != SubmissionStatus.ARCHIVED:
            return
        document.status = status
        if status == SubmissionStatus.VIEWED and document.viewed_at is None:
            document.viewed_at = now
        elif status == SubmissionStatus.SIGNED:
            document.completed_at = now
            documents = data.get("documents") or []
            if documents and documents[0].get("url"):
                document.document_url = documents[0]["url"]
            elif data.get("audit_log_url"):
                document.document_url = data["audit_log_url"]
        elif status == SubmissionStatus.DECLINED:
            document.declined_at = now

    async def _apply_partner_status(
        self,
        partner: Partner,
        document_type: str,
        status: SubmissionStatus,
        now: datetime,
        submission_id: Optional[str],
    ) -> None:
        status_field = f"{document_type}_status"
        current = DocumentStatus(getattr(partner, status_field))

        if status == SubmissionStatus.SIGNED:
            fields = {status_field: DocumentStatus.SIGNED, f"{document_type}_signed_at": now}
            target = STAGE_ON_SIGNED.get(document_type)
            # Late or replayed events never pull a partner back down the pipeline
            if target is not None and step_of(target) > current_step(partner):
                await self.pipeline.set_stage(
                    partner, target, performed_by="DocuSeal", extra_fields=fields
                )
            else:
                await self.partner_repo.update_fields(partner, fields)
            activity = "document_signed"
        elif status == SubmissionStatus.DECLINED:
            await self.partner_repo.update_fields(partner, {status_field: DocumentStatus.DECLINED})
            activity = "document_declined"
        elif status in (SubmissionStatus.VIEWED, SubmissionStatus.IN_PROGRESS) and current == DocumentStatus.SENT:
            await self.partner_repo.update_fields(partner, {status_field: DocumentStatus.VIEWED})
            activity = "document_viewed"
        else:
            return

        await self.partner_repo.add_activity(
            partner.id,
            activity,
            description=f"{document_type.upper()} {activity.split('_', 1)[1]}",
            performed_by="DocuSeal",
            details={"document_type": document_type, "submission_id": submission_id},
        )
        logger.info("partner_document_status", partner_id=partner.id, document_type=document_type, status=status.value)


def _all_signed(data: dict[str, Any]) -> bool:
    submission = data.get("submission") or {}
    if submission.get("status") == "completed":
        return True
    submitters = data.get("submitters") or submission.get("submitters") or []
    if submitters:
        return all(s.get("status") == "completed" or s.get("completed_at") for s in submitters)
    return False
