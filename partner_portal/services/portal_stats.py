"""
Read-only projections over already-fetched partner data.

Nothing here touches the database; callers load the collections and pass
them in, which keeps the arithmetic easy to test.
"""
import math
from dataclasses import dataclass, field
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from partner_portal.core.config import settings
from partner_portal.models.commission import Commission, CommissionStatus, Payment
from partner_portal.models.partner import Partner
from partner_portal.models.stage import REVIEW_STAGES, TRIAL_STAGES, list_stages
from partner_portal.models.venue import Device, DeviceStatus, Venue, VenueStatus

_DAY_SECONDS = 24 * 60 * 60


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def trial_days_remaining(trial_end: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    """Whole days left in a trial, rounded up. Never negative; None without an end date."""
    end = as_utc(trial_end)
    if end is None:
        return None
    now = as_utc(now) or datetime.now(UTC)
    return max(0, math.ceil((end - now).total_seconds() / _DAY_SECONDS))


@dataclass
class PortalStats:
    total_venues: int = 0
    active_venues: int = 0
    trial_venues: int = 0
    total_devices: int = 0
    active_devices: int = 0
    total_earnings: Decimal = Decimal("0")
    this_month_earnings: Decimal = Decimal("0")
    total_data_usage_gb: float = 0.0
    next_payment_estimate: Decimal = Decimal("0")
    trial_days_remaining: Optional[int] = None
    last_payment_amount: Optional[Decimal] = None
    last_payment_date: Optional[datetime] = None


def build_portal_stats(
    partner: Partner,
    venues: Sequence[Venue],
    devices: Sequence[Device],
    commissions: Sequence[Commission],
    payments: Sequence[Payment],
    now: Optional[datetime] = None,
) -> PortalStats:
    """Aggregate one partner's portal dashboard numbers."""
    stats = PortalStats()

    stats.total_venues = len(venues)
    stats.active_venues = sum(1 for v in venues if v.status == VenueStatus.ACTIVE)
    stats.trial_venues = sum(1 for v in venues if v.status == VenueStatus.TRIAL)

    stats.total_devices = len(devices)
    stats.active_devices = sum(1 for d in devices if d.status == DeviceStatus.ACTIVE)
    stats.total_data_usage_gb = round(sum(float(d.data_usage_gb or 0) for d in devices), 3)

    stats.total_earnings = sum((Decimal(c.amount or 0) for c in commissions), Decimal("0"))
    stats.next_payment_estimate = sum(
        (Decimal(c.amount or 0) for c in commissions if c.status == CommissionStatus.PENDING),
        Decimal("0"),
    )
    latest = _latest_commission(commissions)
    if latest is not None:
        stats.this_month_earnings = Decimal(latest.amount or 0)

    stats.trial_days_remaining = trial_days_remaining(partner.trial_end_date, now)

    if payments:
        last = max(payments, key=lambda p: as_utc(p.paid_at))
        stats.last_payment_amount = Decimal(last.amount)
        stats.last_payment_date = last.paid_at

    return stats


def _latest_commission(commissions: Iterable[Commission]) -> Optional[Commission]:
    latest: Optional[Commission] = None
    for commission in commissions:
        if latest is None or (commission.period_month or date.min) > (latest.period_month or date.min):
            latest = commission
    return latest


def venue_device_counts(venues: Sequence[Venue], devices: Sequence[Device]) -> dict[int, int]:
    counts = {v.id: 0 for v in venues}
    for device in devices:
        if device.venue_id in counts:
            counts[device.venue_id] += 1
    return counts


@dataclass
class PipelineStats:
    total: int = 0
    by_stage: dict[str, int] = field(default_factory=dict)
    pending_review: int = 0
    in_trial: int = 0
    trial_ending_soon: int = 0
    active: int = 0
    inactive: int = 0


def build_pipeline_stats(partners: Sequence[Partner], now: Optional[datetime] = None) -> PipelineStats:
    """Counts shown above the admin pipeline board."""
    stats = PipelineStats(total=len(partners))
    stats.by_stage = {stage.id: 0 for stage in list_stages()}
    for partner in partners:
        stage = partner.pipeline_stage
        if stage in stats.by_stage:
            stats.by_stage[stage] += 1
        else:
            stats.inactive += 1
        if stage in REVIEW_STAGES:
            stats.pending_review += 1
        if stage in TRIAL_STAGES:
            stats.in_trial += 1
        if stage == "trial_active":
            remaining = trial_days_remaining(partner.trial_end_date, now)
            if remaining is not None and remaining <= settings.TRIAL_REMINDER_DAYS:
                stats.trial_ending_soon += 1
        if stage == "active":
            stats.active += 1
    return stats
