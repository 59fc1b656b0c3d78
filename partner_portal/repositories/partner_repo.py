"""
Partner Repository - Data Access Layer for Partner and PartnerActivity.
"""
from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy import select, func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from partner_portal.models.partner import Partner, PartnerActivity, PartnerType
from partner_portal.models.venue import Venue


class PartnerRepository:
    """Repository for Partner CRUD operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, partner: Partner) -> Partner:
        """Create a new partner."""
        self.db.add(partner)
        await self.db.flush()
        await self.db.refresh(partner)
        return partner

    async def get_by_id(self, partner_pk: int, with_details: bool = False) -> Optional[Partner]:
        """Get partner by primary key. ``with_details`` loads venues, devices and the activity log."""
        stmt = select(Partner).where(Partner.id == partner_pk)
        if with_details:
            stmt = stmt.options(
                selectinload(Partner.venues).selectinload(Venue.devices),
                selectinload(Partner.activities),
                selectinload(Partner.commissions),
                selectinload(Partner.payments),
            ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_code(self, code: str) -> Optional[Partner]:
        """Get partner by its public partner_id code."""
        result = await self.db.execute(select(Partner).where(Partner.partner_id == code))
        return result.scalar_one_or_none()

    async def get_all(
        self,
        stage: Optional[str] = None,
        partner_type: Optional[PartnerType] = None,
        query: Optional[str] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[Partner], int]:
        """Get partners with optional filtering and pagination."""
        stmt = select(Partner)

        if stage:
            stmt = stmt.where(Partner.pipeline_stage == stage)
        if partner_type:
            stmt = stmt.where(Partner.partner_type == partner_type)
        if query:
            q_pattern = f"%{query}%"
            stmt = stmt.where(
                or_(
                    Partner.contact_first_name.ilike(q_pattern),
                    Partner.contact_last_name.ilike(q_pattern),
                    Partner.company_legal_name.ilike(q_pattern),
                    Partner.dba_name.ilike(q_pattern),
                    Partner.contact_email.ilike(q_pattern),
                )
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = stmt.offset(offset).limit(limit).order_by(Partner.created_at.desc(), Partner.id.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def get_all_for_stats(self) -> list[Partner]:
        result = await self.db.execute(select(Partner))
        return list(result.scalars().all())

    async def get_in_stages(self, stages: Iterable[str]) -> list[Partner]:
        stmt = select(Partner).where(Partner.pipeline_stage.in_(list(stages))).order_by(Partner.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update_fields(self, partner: Partner, fields: dict[str, Any]) -> Partner:
        """
        Apply all fields in a single UPDATE statement.

        The in-memory partner is refreshed only after the statement succeeds;
        on failure the exception propagates and the object keeps its old values.
        """
        if not fields:
            return partner
        stmt = (
            update(Partner)
            .where(Partner.id == partner.id)
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(stmt)
        await self.db.refresh(partner, attribute_names=[*fields.keys(), "updated_at"])
        return partner

    async def add_activity(
        self,
        partner_pk: int,
        activity_type: str,
        description: str | None = None,
        performed_by: str = "System",
        details: dict[str, Any] | None = None,
        created_at: datetime | None = None,
    ) -> PartnerActivity:
        activity = PartnerActivity(
            partner_id=partner_pk,
            activity_type=activity_type,
            description=description,
            performed_by=performed_by,
            details=details,
        )
        if created_at is not None:
            activity.created_at = created_at
        self.db.add(activity)
        await self.db.flush()
        return activity

    async def get_activities(self, partner_pk: int, limit: int = 100) -> list[PartnerActivity]:
        stmt = (
            select(PartnerActivity)
            .where(PartnerActivity.partner_id == partner_pk)
            .order_by(PartnerActivity.created_at.desc(), PartnerActivity.id.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
