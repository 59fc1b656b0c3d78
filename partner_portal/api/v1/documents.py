"""
E-signature template and document endpoints.
"""
from fastapi import APIRouter, Depends, Query
from starlette import status

from partner_portal.api.errors import bad_request, not_found, raise_api_error, upstream_failed
from partner_portal.core.deps import get_document_service, get_partner_repo, get_template_factory
from partner_portal.core.security import Principal, Role, require_role
from partner_portal.integrations.docuseal import DocuSealError
from partner_portal.models.document import TemplateType
from partner_portal.repositories.partner_repo import PartnerRepository
from partner_portal.schemas.document import (
    DocumentResponse,
    DocumentSendRequest,
    DocumentTemplateResponse,
    TemplateBatchResponse,
    TemplateCreateRequest,
    TemplateSchemaResponse,
)
from partner_portal.services.document_service import DocumentSendError, DocumentService
from partner_portal.services.template_factory import TemplateFactory
from partner_portal.services.template_schemas import TemplateError, TemplateSchema, get_template_schema


router = APIRouter(dependencies=[Depends(require_role(Role.EMPLOYEE))])


def _schema_payload(schema: TemplateSchema) -> dict:
    return {
        "template_type": schema.template_type.value,
        "name": schema.name,
        "title": schema.title,
        "roles": schema.roles,
        "sections": [
            {
                "title": section.title,
                "fields": [
                    {
                        "name": f.name,
                        "kind": f.kind.value,
                        "role": f.role,
                        "required": f.required,
                        "label": f.display_label,
                        "options": list(f.options),
                    }
                    for f in section.fields
                ],
            }
            for section in schema.sections
        ],
    }


# ──────────────────────────────────────────────
# Templates
# ──────────────────────────────────────────────

@router.get("/templates", response_model=list[DocumentTemplateResponse])
async def list_templates(
    active_only: bool = Query(default=False),
    factory: TemplateFactory = Depends(get_template_factory),
):
    """Locally registered templates."""
    return await factory.repo.get_all(active_only=active_only)


@router.post("/templates", response_model=TemplateBatchResponse)
async def create_templates(
    data: TemplateCreateRequest,
    factory: TemplateFactory = Depends(get_template_factory),
    _: Principal = Depends(require_role(Role.ADMIN)),
):
    """
    Register templates with DocuSeal.

    ``create_all`` attempts every type and reports each one; a failing type
    does not stop the rest. ``create_single`` fails the request on error.
    """
    if data.action == "create_single":
        try:
            result = await factory.create_template(data.template_type.value)
        except TemplateError as e:
            bad_request(str(e))
        except DocuSealError as e:
            upstream_failed("docuseal", str(e), e.status_code)
        return {"message": f"Created {result.name}", "results": [result]}

    types = [t.value for t in data.template_types] if data.template_types else None
    results = await factory.create_all(types)
    created = sum(1 for r in results if r.success)
    return {"message": f"Created {created}/{len(results)} templates", "results": results}


@router.get("/fields/{template_type}", response_model=TemplateSchemaResponse)
async def get_template_fields(template_type: str):
    """Field schema of one template type."""
    try:
        return _schema_payload(get_template_schema(template_type))
    except TemplateError:
        raise_api_error(
            status_code=404,
            code="template_type_not_found",
            message="Template type not found",
            detail=f"Unknown template type '{template_type}'",
            context={"allowed": [t.value for t in TemplateType]},
        )


# ──────────────────────────────────────────────
# Sending
# ──────────────────────────────────────────────

@router.post("/send", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def send_document(
    data: DocumentSendRequest,
    svc: DocumentService = Depends(get_document_service),
    partner_repo: PartnerRepository = Depends(get_partner_repo),
    user: Principal = Depends(require_role(Role.EMPLOYEE)),
):
    """Create a DocuSeal submission from a registered template."""
    partner = None
    if data.partner_id is not None:
        partner = await partner_repo.get_by_id(data.partner_id)
        if partner is None:
            not_found("partner", data.partner_id)

    try:
        return await svc.send_document(
            data.document_type,
            partner=partner,
            template_type=data.template_type.value if data.template_type else None,
            recipient_email=data.recipient_email,
            recipient_name=data.recipient_name,
            custom_values=data.custom_values,
            send_email=data.send_email,
            performed_by=user.email or user.subject,
        )
    except (DocumentSendError, TemplateError) as e:
        bad_request(str(e))
    except DocuSealError as e:
        upstream_failed("docuseal", str(e), e.status_code)


@router.get("/partner/{partner_id}", response_model=list[DocumentResponse])
async def list_partner_documents(
    partner_id: int,
    svc: DocumentService = Depends(get_document_service),
):
    return await svc.document_repo.get_by_partner(partner_id)
