"""
Prospect Repository - Data Access Layer for CRM prospects.
"""
from typing import Optional

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from partner_portal.models.prospect import Prospect, ProspectActivity, ProspectStatus, ProspectType


class ProspectRepository:
    """Repository for Prospect CRUD operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, prospect: Prospect) -> Prospect:
        self.db.add(prospect)
        await self.db.flush()
        await self.db.refresh(prospect)
        return prospect

    async def get_by_id(self, prospect_id: int) -> Optional[Prospect]:
        stmt = (
            select(Prospect)
            .options(selectinload(Prospect.activities))
            .where(Prospect.id == prospect_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all(
        self,
        prospect_type: Optional[ProspectType] = None,
        status: Optional[ProspectStatus] = None,
        query: Optional[str] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> tuple[list[Prospect], int]:
        stmt = select(Prospect)
        if prospect_type:
            stmt = stmt.where(Prospect.prospect_type == prospect_type)
        if status:
            stmt = stmt.where(Prospect.status == status)
        if query:
            q_pattern = f"%{query}%"
            stmt = stmt.where(
                or_(
                    Prospect.first_name.ilike(q_pattern),
                    Prospect.last_name.ilike(q_pattern),
                    Prospect.email.ilike(q_pattern),
                    Prospect.company_name.ilike(q_pattern),
                )
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = (
            stmt.options(selectinload(Prospect.activities))
            .offset(offset)
            .limit(limit)
            .order_by(Prospect.created_at.desc(), Prospect.id.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def save(self, prospect: Prospect) -> Prospect:
        await self.db.flush()
        return prospect

    async def add_activity(self, activity: ProspectActivity) -> ProspectActivity:
        self.db.add(activity)
        await self.db.flush()
        await self.db.refresh(activity)
        return activity

    async def get_activities(self, prospect_id: int) -> list[ProspectActivity]:
        stmt = (
            select(ProspectActivity)
            .where(ProspectActivity.prospect_id == prospect_id)
            .order_by(ProspectActivity.created_at.desc(), ProspectActivity.id.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
