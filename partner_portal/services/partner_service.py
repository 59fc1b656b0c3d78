"""
PartnerService — partner intake, partial updates and listing.

Stage changes are delegated to PipelineService so that every path that moves
a partner writes the same audit entry.
"""
import secrets
from typing import Any, Optional

from partner_portal.core.logging import get_logger
from partner_portal.models.partner import Partner, PartnerType, PARTNER_CODE_PREFIX
from partner_portal.repositories.partner_repo import PartnerRepository
from partner_portal.schemas.partner import PartnerCreate, PartnerUpdate
from partner_portal.services.pipeline_service import PipelineService
from partner_portal.services.portal_stats import PipelineStats, build_pipeline_stats

logger = get_logger(__name__)


def generate_partner_code(partner_type: PartnerType) -> str:
    return f"{PARTNER_CODE_PREFIX[PartnerType(partner_type)]}-{secrets.token_hex(3).upper()}"


class PartnerService:
    def __init__(self, partner_repo: PartnerRepository, pipeline: PipelineService):
        self.repo = partner_repo
        self.pipeline = pipeline

    async def intake(self, data: PartnerCreate, performed_by: str = "System") -> Partner:
        """
        Record a new application.

        The partner is created at ``application`` and immediately queued for
        initial review; both steps are logged.
        """
        partner = Partner(
            partner_id=generate_partner_code(data.partner_type),
            pipeline_stage="application",
            **data.model_dump(exclude_unset=False),
        )
        partner = await self.repo.create(partner)
        await self.repo.add_activity(
            partner.id,
            "application_submitted",
            description=f"Application received from {partner.display_name}",
            performed_by=performed_by,
            details={"partner_type": PartnerType(partner.partner_type).value, "source": partner.source},
        )
        logger.info("partner_application_received", partner_id=partner.id, partner_code=partner.partner_id)
        return await self.pipeline.set_stage(partner, "initial_review", performed_by="System")

    async def get_partner(self, partner_pk: int, with_details: bool = False) -> Partner:
        return await self.pipeline.get_partner(partner_pk, with_details=with_details)

    async def get_partners(
        self,
        stage: Optional[str] = None,
        partner_type: Optional[PartnerType] = None,
        query: Optional[str] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[Partner], int]:
        return await self.repo.get_all(
            stage=stage, partner_type=partner_type, query=query, offset=offset, limit=limit
        )

    async def get_pipeline_stats(self) -> PipelineStats:
        return build_pipeline_stats(await self.repo.get_all_for_stats())

    async def update_partner(
        self,
        partner: Partner,
        data: PartnerUpdate,
        performed_by: str = "System",
    ) -> Partner:
        """Apply a partial update. A changed ``pipeline_stage`` goes through the pipeline."""
        fields: dict[str, Any] = data.model_dump(exclude_unset=True)
        new_stage = fields.pop("pipeline_stage", None)

        if new_stage is not None and new_stage != partner.pipeline_stage:
            return await self.pipeline.set_stage(
                partner, new_stage, performed_by=performed_by, extra_fields=fields
            )

        if fields:
            await self.repo.update_fields(partner, fields)
            await self.repo.add_activity(
                partner.id,
                "partner_updated",
                description="Partner details updated",
                performed_by=performed_by,
                details={"fields": sorted(fields)},
            )
        return partner
