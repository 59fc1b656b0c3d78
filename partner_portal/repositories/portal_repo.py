"""
Portal Repository - venues, devices, commissions and payments of one partner.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from partner_portal.models.commission import Commission, Payment
from partner_portal.models.venue import Venue, Device


class PortalRepository:
    """Read side of the partner portal plus venue creation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_venues(self, partner_pk: int) -> list[Venue]:
        stmt = select(Venue).where(Venue.partner_id == partner_pk).order_by(Venue.created_at, Venue.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_devices(self, partner_pk: int) -> list[Device]:
        stmt = select(Device).where(Device.partner_id == partner_pk).order_by(Device.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_commissions(self, partner_pk: int) -> list[Commission]:
        stmt = (
            select(Commission)
            .where(Commission.partner_id == partner_pk)
            .order_by(Commission.period_month.desc(), Commission.id.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_payments(self, partner_pk: int) -> list[Payment]:
        stmt = select(Payment).where(Payment.partner_id == partner_pk).order_by(Payment.paid_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_venue(self, venue: Venue) -> Venue:
        self.db.add(venue)
        await self.db.flush()
        await self.db.refresh(venue)
        return venue
