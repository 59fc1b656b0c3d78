"""
CRM prospect endpoints.
"""
from fastapi import APIRouter, Depends, Header, Query
from starlette import status

from partner_portal.api.errors import conflict, not_found
from partner_portal.core.deps import get_prospect_service
from partner_portal.core.idempotency import idempotency_store
from partner_portal.core.security import Principal, Role, require_role
from partner_portal.models.prospect import ProspectStatus, ProspectType
from partner_portal.schemas.prospect import (
    ConvertResponse,
    InviteResponse,
    ProspectActivityCreate,
    ProspectActivityResponse,
    ProspectCreate,
    ProspectListResponse,
    ProspectResponse,
    ProspectUpdate,
)
from partner_portal.services.prospect_service import (
    ProspectConversionError,
    ProspectNotFoundError,
    ProspectService,
)


router = APIRouter(dependencies=[Depends(require_role(Role.EMPLOYEE))])

staff = require_role(Role.EMPLOYEE)


@router.get("", response_model=ProspectListResponse)
async def list_prospects(
    type: ProspectType | None = Query(default=None, description="Filter by prospect type"),
    status: ProspectStatus | None = Query(default=None),
    search: str | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    svc: ProspectService = Depends(get_prospect_service),
):
    items, total = await svc.get_prospects(
        prospect_type=type, status=status, query=search, offset=offset, limit=limit
    )
    return {"items": items, "total": total}


@router.post("", response_model=ProspectResponse, status_code=status.HTTP_201_CREATED)
async def create_prospect(
    data: ProspectCreate,
    svc: ProspectService = Depends(get_prospect_service),
    user: Principal = Depends(staff),
):
    return await svc.create_prospect(data, performed_by=user.email or user.subject)


@router.get("/{prospect_id}", response_model=ProspectResponse)
async def get_prospect(
    prospect_id: int,
    svc: ProspectService = Depends(get_prospect_service),
):
    try:
        return await svc.get_prospect(prospect_id)
    except ProspectNotFoundError:
        not_found("prospect", prospect_id)


@router.patch("/{prospect_id}", response_model=ProspectResponse)
async def update_prospect(
    prospect_id: int,
    data: ProspectUpdate,
    svc: ProspectService = Depends(get_prospect_service),
    user: Principal = Depends(staff),
):
    """Partial update. Setting status to ``won`` converts the prospect."""
    try:
        prospect = await svc.get_prospect(prospect_id)
        return await svc.update_prospect(prospect, data, performed_by=user.email or user.subject)
    except ProspectNotFoundError:
        not_found("prospect", prospect_id)


# ──────────────────────────────────────────────
# Activity log
# ──────────────────────────────────────────────

@router.get("/{prospect_id}/activity", response_model=list[ProspectActivityResponse])
async def list_activity(
    prospect_id: int,
    svc: ProspectService = Depends(get_prospect_service),
):
    try:
        prospect = await svc.get_prospect(prospect_id)
    except ProspectNotFoundError:
        not_found("prospect", prospect_id)
    return await svc.get_activities(prospect)


@router.post(
    "/{prospect_id}/activity",
    response_model=ProspectActivityResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_activity(
    prospect_id: int,
    data: ProspectActivityCreate,
    svc: ProspectService = Depends(get_prospect_service),
    user: Principal = Depends(staff),
):
    """Append an activity. Emails, calls and meetings count as contact."""
    try:
        prospect = await svc.get_prospect(prospect_id)
    except ProspectNotFoundError:
        not_found("prospect", prospect_id)
    return await svc.add_activity(
        prospect,
        data.activity_type,
        description=data.description,
        performed_by=user.email or user.subject,
        details=data.details,
    )


# ──────────────────────────────────────────────
# Invite & conversion
# ──────────────────────────────────────────────

@router.post("/{prospect_id}/invite", response_model=InviteResponse)
async def send_invite(
    prospect_id: int,
    svc: ProspectService = Depends(get_prospect_service),
    user: Principal = Depends(staff),
):
    """Send the application form link for the prospect's partner type."""
    try:
        prospect = await svc.get_prospect(prospect_id)
    except ProspectNotFoundError:
        not_found("prospect", prospect_id)
    form_url = await svc.send_invite(prospect, performed_by=user.email or user.subject)
    return {"prospect": await svc.get_prospect(prospect_id), "form_url": form_url}


@router.post("/{prospect_id}/convert", response_model=ConvertResponse)
async def convert_prospect(
    prospect_id: int,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    svc: ProspectService = Depends(get_prospect_service),
    user: Principal = Depends(staff),
):
    """Create a partner from the prospect. A prospect converts only once."""
    if idempotency_key:
        cache_key = idempotency_store.key("convert_prospect", prospect_id, idempotency_key)
        cached = await idempotency_store.get(cache_key)
        if cached:
            return cached

    try:
        prospect = await svc.get_prospect(prospect_id)
        partner = await svc.convert(prospect, performed_by=user.email or user.subject)
    except ProspectNotFoundError:
        not_found("prospect", prospect_id)
    except ProspectConversionError as e:
        conflict("prospect_already_converted", str(e))

    response = ConvertResponse(
        prospect=ProspectResponse.model_validate(await svc.get_prospect(prospect_id)),
        partner_id=partner.id,
        partner_code=partner.partner_id,
        pipeline_stage=partner.pipeline_stage,
    )
    if idempotency_key:
        await idempotency_store.set(cache_key, response.model_dump(mode="json"))
    return response
