"""
Inbound webhooks from DocuSeal.
"""
import json

from fastapi import APIRouter, Depends, Header, Request

from partner_portal.api.errors import bad_request, raise_api_error
from partner_portal.core.config import settings
from partner_portal.core.deps import get_document_service
from partner_portal.core.logging import get_logger
from partner_portal.integrations.docuseal import verify_webhook_signature
from partner_portal.schemas.document import WebhookAck
from partner_portal.services.document_service import DocumentService

logger = get_logger(__name__)

router = APIRouter()


@router.post("/docuseal", response_model=WebhookAck)
async def docuseal_webhook(
    request: Request,
    x_docuseal_signature: str | None = Header(default=None, alias="X-Docuseal-Signature"),
    svc: DocumentService = Depends(get_document_service),
):
    """
    Apply a DocuSeal submission event.

    The signature is checked only when DOCUSEAL_WEBHOOK_SECRET is set.
    """
    body = await request.body()
    if settings.DOCUSEAL_WEBHOOK_SECRET:
        if not x_docuseal_signature or not verify_webhook_signature(body, x_docuseal_signature):
            logger.warning("docuseal_webhook_bad_signature")
            raise_api_error(
                status_code=401,
                code="invalid_signature",
                message="Invalid webhook signature",
            )

    try:
        payload = json.loads(body or b"{}")
    except ValueError:
        bad_request("Webhook body is not valid JSON")
    if not isinstance(payload, dict):
        bad_request("Webhook body must be a JSON object")

    logger.info("docuseal_webhook_received", event_type=payload.get("event_type"))
    return await svc.handle_webhook(payload)
