"""
PortalService — what a signed-in partner sees about themselves.
"""
from dataclasses import asdict
from datetime import datetime
from typing import Any, Optional

from partner_portal.core.logging import get_logger
from partner_portal.models.partner import Partner
from partner_portal.models.venue import Venue, VenueStatus
from partner_portal.repositories.partner_repo import PartnerRepository
from partner_portal.repositories.portal_repo import PortalRepository
from partner_portal.schemas.portal import VenueCreate
from partner_portal.services.pipeline_service import PartnerNotFoundError
from partner_portal.services.portal_stats import build_portal_stats, venue_device_counts

logger = get_logger(__name__)


class PortalService:
    def __init__(self, partner_repo: PartnerRepository, portal_repo: PortalRepository):
        self.partner_repo = partner_repo
        self.repo = portal_repo

    async def get_partner(self, partner_pk: Optional[int]) -> Partner:
        partner = await self.partner_repo.get_by_id(partner_pk) if partner_pk is not None else None
        if not partner:
            raise PartnerNotFoundError(f"Partner {partner_pk} not found")
        return partner

    async def get_view(self, partner: Partner, now: Optional[datetime] = None) -> dict[str, Any]:
        venues = await self.repo.get_venues(partner.id)
        devices = await self.repo.get_devices(partner.id)
        commissions = await self.repo.get_commissions(partner.id)
        payments = await self.repo.get_payments(partner.id)

        stats = build_portal_stats(partner, venues, devices, commissions, payments, now=now)
        counts = venue_device_counts(venues, devices)
        return {
            "partner": partner,
            "stats": asdict(stats),
            "venues": [
                {**{c.key: getattr(v, c.key) for c in Venue.__table__.columns}, "device_count": counts[v.id]}
                for v in venues
            ],
            "devices": devices,
            "commissions": commissions,
            "payments": payments,
        }

    async def add_venue(self, partner: Partner, data: VenueCreate) -> Venue:
        """Partners register venues themselves; staff activate them later."""
        venue = await self.repo.create_venue(
            Venue(partner_id=partner.id, status=VenueStatus.PENDING, **data.model_dump())
        )
        await self.partner_repo.add_activity(
            partner.id,
            "venue_added",
            description=f"Venue {venue.name} added",
            performed_by=partner.contact_email or "Partner",
            details={"venue_id": venue.id},
        )
        logger.info("venue_added", partner_id=partner.id, venue_id=venue.id)
        return venue
