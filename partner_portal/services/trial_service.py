"""
Daily trial check.

trial_active partners within the reminder window move to trial_ending;
partners whose trial is over move to contract_decision.
"""
from dataclasses import dataclass, field
from datetime import datetime, UTC, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from partner_portal.core.config import settings
from partner_portal.core.logging import get_logger
from partner_portal.models.stage import TRIAL_STAGES
from partner_portal.repositories.partner_repo import PartnerRepository
from partner_portal.services.pipeline_service import PipelineService, PipelineStageError
from partner_portal.services.portal_stats import as_utc

logger = get_logger(__name__)


@dataclass
class TrialCheckResult:
    checked: int = 0
    moved_to_trial_ending: list[int] = field(default_factory=list)
    moved_to_contract_decision: list[int] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class TrialService:
    def __init__(self, partner_repo: PartnerRepository, pipeline: PipelineService):
        self.repo = partner_repo
        self.pipeline = pipeline

    async def run_trial_check(self, now: Optional[datetime] = None) -> TrialCheckResult:
        now = as_utc(now) or datetime.now(UTC)
        reminder_cutoff = now + timedelta(days=settings.TRIAL_REMINDER_DAYS)
        result = TrialCheckResult()

        for partner in await self.repo.get_in_stages(sorted(TRIAL_STAGES)):
            end = as_utc(partner.trial_end_date)
            if end is None:
                continue
            result.checked += 1
            try:
                async with self.repo.db.begin_nested():
                    if end <= now:
                        await self.pipeline.set_stage(partner, "contract_decision", performed_by="Trial Check")
                        result.moved_to_contract_decision.append(partner.id)
                    elif partner.pipeline_stage == "trial_active" and end <= reminder_cutoff:
                        await self.pipeline.set_stage(partner, "trial_ending", performed_by="Trial Check")
                        result.moved_to_trial_ending.append(partner.id)
            except (PipelineStageError, SQLAlchemyError) as exc:
                logger.warning("trial_check_failed", partner_id=partner.id, error=str(exc))
                result.errors.append(f"Partner {partner.id}: {exc}")

        logger.info(
            "trial_check_complete",
            checked=result.checked,
            trial_ending=len(result.moved_to_trial_ending),
            contract_decision=len(result.moved_to_contract_decision),
            errors=len(result.errors),
        )
        return result
