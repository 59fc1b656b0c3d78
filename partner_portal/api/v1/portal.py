"""
Partner portal endpoints. The caller is always a partner acting on their own record.
"""
from fastapi import APIRouter, Depends
from starlette import status

from partner_portal.api.errors import raise_api_error
from partner_portal.core.deps import get_portal_service
from partner_portal.core.security import Principal, Role, get_current_user
from partner_portal.models.partner import Partner
from partner_portal.schemas.partner import VenueResponse
from partner_portal.schemas.portal import PortalResponse, VenueCreate
from partner_portal.services.pipeline_service import PartnerNotFoundError
from partner_portal.services.portal_service import PortalService


router = APIRouter(dependencies=[Depends(get_current_user)])


async def current_partner(
    user: Principal = Depends(get_current_user),
    svc: PortalService = Depends(get_portal_service),
) -> Partner:
    """Resolve the partner record bound to the caller's token."""
    if user.role != Role.PARTNER or user.partner_id is None:
        raise_api_error(
            status_code=403,
            code="not_a_partner",
            message="Portal is only available to partners",
        )
    try:
        return await svc.get_partner(user.partner_id)
    except PartnerNotFoundError:
        raise_api_error(
            status_code=404,
            code="partner_not_found",
            message="Partner not found",
            context={"partner_id": user.partner_id},
        )


@router.get("/me", response_model=PortalResponse)
async def get_my_portal(
    partner: Partner = Depends(current_partner),
    svc: PortalService = Depends(get_portal_service),
):
    """Partner record, dashboard stats, venues, devices, commissions and payments."""
    return await svc.get_view(partner)


@router.post("/venues", response_model=VenueResponse, status_code=status.HTTP_201_CREATED)
async def add_venue(
    data: VenueCreate,
    partner: Partner = Depends(current_partner),
    svc: PortalService = Depends(get_portal_service),
):
    """Register a new venue; it starts as pending."""
    return await svc.add_venue(partner, data)
