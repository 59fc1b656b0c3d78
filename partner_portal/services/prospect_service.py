"""
ProspectService — CRM prospects, their activity log and conversion to partners.

Rules enforced here:
- Activity entries are append-only (the model rejects updates)
- email/call/meeting activities count as a contact
- Moving a prospect to ``won`` converts it into a Partner exactly once
"""
from datetime import datetime, UTC
from typing import Any, Optional

from partner_portal.core.config import settings
from partner_portal.core.logging import get_logger
from partner_portal.models.partner import Partner, PartnerType
from partner_portal.models.prospect import (
    CONTACT_ACTIVITY_TYPES,
    Prospect,
    ProspectActivity,
    ProspectStatus,
    ProspectType,
)
from partner_portal.repositories.partner_repo import PartnerRepository
from partner_portal.repositories.prospect_repo import ProspectRepository
from partner_portal.schemas.prospect import ProspectCreate, ProspectUpdate
from partner_portal.services.partner_service import generate_partner_code

logger = get_logger(__name__)

APPLICATION_FORM_PATHS = {
    ProspectType.LOCATION_PARTNER: "location-partner",
    ProspectType.REFERRAL_PARTNER: "referral-partner",
    ProspectType.CHANNEL_PARTNER: "channel-partner",
    ProspectType.RELATIONSHIP_PARTNER: "relationship-partner",
    ProspectType.CONTRACTOR: "contractor",
}


class ProspectNotFoundError(Exception):
    """Raised when prospect is not found."""
    pass


class ProspectConversionError(Exception):
    """Raised when a prospect cannot be converted (e.g. already converted)."""
    pass


def application_form_url(prospect: Prospect) -> str:
    path = APPLICATION_FORM_PATHS[ProspectType(prospect.prospect_type)]
    return f"{settings.PUBLIC_APP_URL.rstrip('/')}/apply/{path}?ref={prospect.id}"


class ProspectService:
    def __init__(self, prospect_repo: ProspectRepository, partner_repo: PartnerRepository):
        self.repo = prospect_repo
        self.partner_repo = partner_repo

    async def get_prospect(self, prospect_id: int) -> Prospect:
        prospect = await self.repo.get_by_id(prospect_id)
        if not prospect:
            raise ProspectNotFoundError(f"Prospect {prospect_id} not found")
        return prospect

    async def get_prospects(
        self,
        prospect_type: Optional[ProspectType] = None,
        status: Optional[ProspectStatus] = None,
        query: Optional[str] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> tuple[list[Prospect], int]:
        return await self.repo.get_all(
            prospect_type=prospect_type, status=status, query=query, offset=offset, limit=limit
        )

    async def create_prospect(self, data: ProspectCreate, performed_by: str = "System") -> Prospect:
        prospect = await self.repo.create(Prospect(**data.model_dump()))
        await self._log(prospect, "note", "Prospect created", performed_by)
        return await self.get_prospect(prospect.id)

    async def update_prospect(
        self,
        prospect: Prospect,
        data: ProspectUpdate,
        performed_by: str = "System",
    ) -> Prospect:
        fields: dict[str, Any] = data.model_dump(exclude_unset=True)
        new_status = fields.pop("status", None)

        for key, value in fields.items():
            setattr(prospect, key, value)

        if new_status is not None and ProspectStatus(new_status) != ProspectStatus(prospect.status):
            if ProspectStatus(new_status) == ProspectStatus.WON and prospect.converted_partner_id is None:
                await self.repo.save(prospect)
                await self.convert(prospect, performed_by=performed_by)
                return await self.get_prospect(prospect.id)
            old_status = ProspectStatus(prospect.status)
            prospect.status = ProspectStatus(new_status)
            await self._log(
                prospect,
                "status_change",
                f"Status changed from {old_status.value} to {prospect.status.value}",
                performed_by,
                {"old_status": old_status.value, "new_status": prospect.status.value},
            )

        await self.repo.save(prospect)
        return await self.get_prospect(prospect.id)

    async def add_activity(
        self,
        prospect: Prospect,
        activity_type: str,
        description: Optional[str] = None,
        performed_by: str = "System",
        details: Optional[dict[str, Any]] = None,
    ) -> ProspectActivity:
        activity = await self._log(prospect, activity_type, description, performed_by, details)
        if activity_type in CONTACT_ACTIVITY_TYPES:
            prospect.last_contact_date = activity.created_at
            prospect.follow_up_count = (prospect.follow_up_count or 0) + 1
            await self.repo.save(prospect)
        return activity

    async def get_activities(self, prospect: Prospect) -> list[ProspectActivity]:
        return await self.repo.get_activities(prospect.id)

    async def send_invite(self, prospect: Prospect, performed_by: str = "System") -> str:
        """Log the application form invite; a new prospect becomes contacted."""
        form_url = application_form_url(prospect)
        await self._log(
            prospect,
            "form_sent",
            f"Application form sent to {prospect.email}",
            performed_by,
            {"form_url": form_url},
        )
        prospect.last_contact_date = datetime.now(UTC)
        if ProspectStatus(prospect.status) == ProspectStatus.NEW:
            prospect.status = ProspectStatus.CONTACTED
        await self.repo.save(prospect)
        logger.info("prospect_invite_sent", prospect_id=prospect.id, form_url=form_url)
        return form_url

    async def convert(self, prospect: Prospect, performed_by: str = "System") -> Partner:
        """
        Create a Partner from the prospect and mark the prospect won.

        Location partners skip straight to initial review; other types start
        at application.
        """
        if prospect.converted_partner_id is not None:
            raise ProspectConversionError(
                f"Prospect {prospect.id} was already converted to partner {prospect.converted_partner_id}"
            )

        partner_type = PartnerType(ProspectType(prospect.prospect_type).value)
        stage = "initial_review" if partner_type == PartnerType.LOCATION else "application"
        now = datetime.now(UTC)
        partner = await self.partner_repo.create(Partner(
            partner_id=generate_partner_code(partner_type),
            partner_type=partner_type,
            pipeline_stage=stage,
            stage_entered_at=now,
            contact_first_name=prospect.first_name,
            contact_last_name=prospect.last_name,
            contact_email=prospect.email,
            contact_phone=prospect.phone,
            contact_title=prospect.title,
            company_legal_name=prospect.company_name,
            source="crm_conversion",
            notes=prospect.notes,
        ))
        await self.partner_repo.add_activity(
            partner.id,
            "converted_from_prospect",
            description=f"Converted from prospect {prospect.id}",
            performed_by=performed_by,
            details={"prospect_id": prospect.id, "stage": stage},
        )

        old_status = ProspectStatus(prospect.status)
        prospect.status = ProspectStatus.WON
        prospect.converted_partner_id = partner.id
        prospect.converted_at = now
        await self._log(
            prospect,
            "status_change",
            f"Converted to partner {partner.partner_id}",
            performed_by,
            {"old_status": old_status.value, "new_status": ProspectStatus.WON.value, "new_partner_id": partner.id},
        )
        await self.repo.save(prospect)
        logger.info("prospect_converted", prospect_id=prospect.id, partner_id=partner.id)
        return partner

    async def _log(
        self,
        prospect: Prospect,
        activity_type: str,
        description: Optional[str],
        performed_by: str,
        details: Optional[dict[str, Any]] = None,
    ) -> ProspectActivity:
        return await self.repo.add_activity(ProspectActivity(
            prospect_id=prospect.id,
            activity_type=activity_type,
            description=description,
            performed_by=performed_by,
            details=details,
        ))
