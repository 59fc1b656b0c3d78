"""
Partner pipeline API endpoints.
"""
from fastapi import APIRouter, Depends, Header, Query
from starlette import status

from partner_portal.api.errors import bad_request, conflict, not_found, upstream_failed
from partner_portal.core.deps import get_partner_service, get_payee_service, get_pipeline_service
from partner_portal.core.idempotency import idempotency_store
from partner_portal.core.security import Principal, Role, require_role
from partner_portal.integrations.tipalti import TipaltiError
from partner_portal.models.partner import PartnerType
from partner_portal.models.stage import is_assignable_stage, list_stages
from partner_portal.schemas.partner import (
    PartnerCreate,
    PartnerDetailResponse,
    PartnerListResponse,
    PartnerResponse,
    PartnerUpdate,
    PipelineStageResponse,
    ReviewApproval,
    ReviewDenial,
    StageChange,
    TipaltiInviteResponse,
    TipaltiStatusResponse,
)
from partner_portal.services.partner_service import PartnerService
from partner_portal.services.payee_service import PayeeAlreadyInvitedError, PayeeInviteError, PayeeService
from partner_portal.services.pipeline_service import (
    PartnerNotFoundError,
    PipelineService,
    PipelineStageError,
    selectable_targets,
)


router = APIRouter(dependencies=[Depends(require_role(Role.EMPLOYEE))])

staff = require_role(Role.EMPLOYEE)


def performer(user: Principal) -> str:
    return user.email or user.subject


# ──────────────────────────────────────────────
# Registry
# ──────────────────────────────────────────────

@router.get("/stages", response_model=list[PipelineStageResponse])
async def get_stages():
    """The ordered pipeline stage registry."""
    return list(list_stages())


# ──────────────────────────────────────────────
# CRUD
# ──────────────────────────────────────────────

@router.post("", response_model=PartnerResponse, status_code=status.HTTP_201_CREATED)
async def create_partner(
    data: PartnerCreate,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    svc: PartnerService = Depends(get_partner_service),
    user: Principal = Depends(staff),
):
    """Application intake. The partner lands in initial review."""
    if idempotency_key:
        cache_key = idempotency_store.key("create_partner", idempotency_key)
        cached = await idempotency_store.get(cache_key)
        if cached:
            return cached

    partner = await svc.intake(data, performed_by=performer(user))
    if idempotency_key:
        await idempotency_store.set(
            cache_key, PartnerResponse.model_validate(partner).model_dump(mode="json")
        )
    return partner


@router.get("", response_model=PartnerListResponse)
async def list_partners(
    stage: str | None = Query(default=None, description="Filter by pipeline stage"),
    partner_type: PartnerType | None = Query(default=None),
    search: str | None = Query(default=None, description="Name, company or email"),
    page: int = Query(default=1, ge=1, description="Page number"),
    page_size: int = Query(default=50, ge=1, le=200, description="Items per page"),
    svc: PartnerService = Depends(get_partner_service),
):
    """List partners with pagination, filters and pipeline counts."""
    if stage is not None and not is_assignable_stage(stage):
        bad_request(f"Unknown pipeline stage '{stage}'")

    offset = (page - 1) * page_size
    items, total = await svc.get_partners(
        stage=stage, partner_type=partner_type, query=search, offset=offset, limit=page_size
    )
    total_pages = (total + page_size - 1) // page_size

    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "has_next": page < total_pages,
        "has_prev": page > 1,
        "stats": await svc.get_pipeline_stats(),
    }


@router.get("/{partner_id}", response_model=PartnerDetailResponse)
async def get_partner(
    partner_id: int,
    svc: PartnerService = Depends(get_partner_service),
):
    try:
        return await svc.get_partner(partner_id, with_details=True)
    except PartnerNotFoundError:
        not_found("partner", partner_id)


@router.put("/{partner_id}", response_model=PartnerResponse)
async def update_partner(
    partner_id: int,
    data: PartnerUpdate,
    svc: PartnerService = Depends(get_partner_service),
    user: Principal = Depends(staff),
):
    """Partial update. A new ``pipeline_stage`` is applied as a manual stage change."""
    try:
        partner = await svc.get_partner(partner_id)
        return await svc.update_partner(partner, data, performed_by=performer(user))
    except PartnerNotFoundError:
        not_found("partner", partner_id)
    except PipelineStageError as e:
        bad_request(str(e))


# ──────────────────────────────────────────────
# Stage management
# ──────────────────────────────────────────────

@router.get("/{partner_id}/selectable-stages", response_model=list[PipelineStageResponse])
async def get_selectable_stages(
    partner_id: int,
    pipeline: PipelineService = Depends(get_pipeline_service),
):
    """Stages the partner can be advanced or skipped to."""
    try:
        partner = await pipeline.get_partner(partner_id)
    except PartnerNotFoundError:
        not_found("partner", partner_id)
    return selectable_targets(partner)


@router.post("/{partner_id}/approve", response_model=PartnerResponse)
async def approve_review(
    partner_id: int,
    data: ReviewApproval,
    pipeline: PipelineService = Depends(get_pipeline_service),
    user: Principal = Depends(staff),
):
    """
    Approve an initial or post-call review.

    ``target_stage`` must be later than the current stage. Passing a
    ``skip_reason`` with it records which stages were bypassed.
    """
    try:
        partner = await pipeline.get_partner(partner_id)
        if data.target_stage and data.target_stage not in {s.id for s in selectable_targets(partner)}:
            bad_request(
                f"Cannot move from '{partner.pipeline_stage}' to '{data.target_stage}'",
                context={"current_stage": partner.pipeline_stage, "target_stage": data.target_stage},
            )
        return await pipeline.approve(
            partner,
            data.review_type,
            target_stage=data.target_stage,
            skip_reason=data.skip_reason,
            performed_by=performer(user),
        )
    except PartnerNotFoundError:
        not_found("partner", partner_id)
    except PipelineStageError as e:
        bad_request(str(e))


@router.post("/{partner_id}/deny", response_model=PartnerResponse)
async def deny_review(
    partner_id: int,
    data: ReviewDenial,
    pipeline: PipelineService = Depends(get_pipeline_service),
    user: Principal = Depends(staff),
):
    """Deny a review; the partner becomes inactive."""
    try:
        partner = await pipeline.get_partner(partner_id)
        return await pipeline.deny(partner, data.review_type, reason=data.reason, performed_by=performer(user))
    except PartnerNotFoundError:
        not_found("partner", partner_id)


@router.post("/{partner_id}/stage", response_model=PartnerResponse)
async def change_stage(
    partner_id: int,
    data: StageChange,
    pipeline: PipelineService = Depends(get_pipeline_service),
    user: Principal = Depends(staff),
):
    """Manual stage override in any direction, or a forward skip when ``skip_reason`` is given."""
    try:
        partner = await pipeline.get_partner(partner_id)
        if data.skip_reason:
            return await pipeline.skip_to(partner, data.stage, data.skip_reason, performed_by=performer(user))
        return await pipeline.set_stage(partner, data.stage, performed_by=performer(user))
    except PartnerNotFoundError:
        not_found("partner", partner_id)
    except PipelineStageError as e:
        bad_request(str(e))


# ──────────────────────────────────────────────
# Payouts
# ──────────────────────────────────────────────

@router.post("/{partner_id}/tipalti-invite", response_model=TipaltiInviteResponse)
async def send_tipalti_invite(
    partner_id: int,
    svc: PartnerService = Depends(get_partner_service),
    payees: PayeeService = Depends(get_payee_service),
    user: Principal = Depends(staff),
):
    """Register the partner as a Tipalti payee and return its onboarding link."""
    try:
        partner = await svc.get_partner(partner_id)
        invite = await payees.invite(partner, performed_by=performer(user))
        return TipaltiInviteResponse(
            partner_id=partner.id,
            tipalti_payee_id=invite.payee_id,
            tipalti_status=partner.tipalti_status,
            onboarding_url=invite.onboarding_url,
        )
    except PartnerNotFoundError:
        not_found("partner", partner_id)
    except PayeeAlreadyInvitedError as e:
        conflict("tipalti_payee_exists", str(e), context={"tipalti_payee_id": e.payee_id})
    except PayeeInviteError as e:
        bad_request(str(e))
    except TipaltiError as e:
        upstream_failed("tipalti", str(e), e.status_code)


@router.get("/{partner_id}/tipalti-status", response_model=TipaltiStatusResponse)
async def get_tipalti_status(
    partner_id: int,
    svc: PartnerService = Depends(get_partner_service),
    payees: PayeeService = Depends(get_payee_service),
):
    """Current payee status from Tipalti; the stored status is updated to match."""
    try:
        partner = await svc.get_partner(partner_id)
        return await payees.refresh_status(partner)
    except PartnerNotFoundError:
        not_found("partner", partner_id)
    except PayeeInviteError as e:
        bad_request(str(e))
    except TipaltiError as e:
        upstream_failed("tipalti", str(e), e.status_code)
