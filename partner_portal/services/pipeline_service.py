"""
PipelineService — stage transitions for partners.

Rules enforced here:
- Approving a review moves the partner to the review's default next stage,
  or to an explicit later stage (a "skip") with the bypassed stages recorded
- Denying a review always parks the partner in the ``inactive`` sentinel
- Manual stage overrides may move in any direction
- Every stage change is one UPDATE plus an activity row in the same transaction
"""
import json
from datetime import datetime, UTC, timedelta
from typing import Any, Optional

from partner_portal.core.config import settings
from partner_portal.core.logging import get_logger
from partner_portal.models.partner import Partner, ReviewStatus, ReviewType, REVIEW_FIELDS
from partner_portal.models.stage import (
    INACTIVE,
    PipelineStage,
    StageNotFoundError,
    get_stage,
    is_assignable_stage,
    list_stages,
    step_of,
)
from partner_portal.repositories.partner_repo import PartnerRepository

logger = get_logger(__name__)


class PipelineStageError(Exception):
    """Raised when a requested stage change is invalid."""
    pass


class PartnerNotFoundError(Exception):
    """Raised when partner is not found."""
    pass


# ─────────────────────────────────────────────────────────────
# Pure stage arithmetic
# ─────────────────────────────────────────────────────────────

def _step_or_zero(stage_id: Optional[str]) -> int:
    try:
        return step_of(stage_id)
    except StageNotFoundError:
        return 0


def current_step(partner: Partner) -> int:
    """Step of the partner's stage; 0 for ``inactive`` or anything not in the registry."""
    return _step_or_zero(partner.pipeline_stage)


def compute_skipped_stages(current_stage: Optional[str], target_stage: Optional[str]) -> list[str]:
    """
    Stage ids strictly between ``current_stage`` and ``target_stage``, ascending.

    Unknown stages count as step 0, so an unknown target yields an empty list.
    Callers restrict targets with ``selectable_targets`` first.
    """
    low = _step_or_zero(current_stage)
    high = _step_or_zero(target_stage)
    return [stage.id for stage in list_stages() if low < stage.step < high]


def selectable_targets(partner: Partner) -> list[PipelineStage]:
    """Stages a partner may be advanced (or skipped) to."""
    step = current_step(partner)
    return [stage for stage in list_stages() if stage.step > step]


def trial_window(start: datetime) -> tuple[datetime, datetime]:
    return start, start + timedelta(days=settings.TRIAL_LENGTH_DAYS)


def stage_change_fields(partner: Partner, new_stage: str, now: datetime) -> dict[str, Any]:
    """Columns that accompany any stage change."""
    fields: dict[str, Any] = {"pipeline_stage": new_stage, "stage_entered_at": now}
    if new_stage == "trial_active" and partner.trial_start_date is None:
        fields["trial_start_date"], fields["trial_end_date"] = trial_window(now)
    return fields


def _stage_label(stage_id: str) -> str:
    if stage_id == INACTIVE:
        return "Inactive"
    try:
        return get_stage(stage_id).name
    except StageNotFoundError:
        return stage_id


class PipelineService:
    def __init__(self, partner_repo: PartnerRepository):
        self.repo = partner_repo

    async def get_partner(self, partner_pk: int, with_details: bool = False) -> Partner:
        partner = await self.repo.get_by_id(partner_pk, with_details=with_details)
        if not partner:
            raise PartnerNotFoundError(f"Partner {partner_pk} not found")
        return partner

    async def _apply(
        self,
        partner: Partner,
        fields: dict[str, Any],
        performed_by: str,
        description: str,
        details: dict[str, Any],
        activity_type: str = "stage_change",
    ) -> Partner:
        old_stage = partner.pipeline_stage
        await self.repo.update_fields(partner, fields)
        await self.repo.add_activity(
            partner.id,
            activity_type,
            description=description,
            performed_by=performed_by,
            details={"old_stage": old_stage, "new_stage": partner.pipeline_stage, **details},
        )
        logger.info(
            "partner_stage_changed",
            partner_id=partner.id,
            old_stage=old_stage,
            new_stage=partner.pipeline_stage,
            performed_by=performed_by,
        )
        return partner

    async def approve(
        self,
        partner: Partner,
        review_type: ReviewType,
        target_stage: Optional[str] = None,
        skip_reason: Optional[str] = None,
        performed_by: str = "System",
    ) -> Partner:
        """
        Approve a review and advance the partner.

        Without ``target_stage`` the partner moves to the review's default next
        stage. With both ``target_stage`` and ``skip_reason`` the bypassed
        stages and the reason are stored alongside the stage change.
        """
        status_field, reviewed_field, default_stage = REVIEW_FIELDS[ReviewType(review_type)]
        new_stage = target_stage or default_stage
        if not is_assignable_stage(new_stage) or new_stage == INACTIVE:
            raise PipelineStageError(f"Cannot approve into stage '{new_stage}'")

        now = datetime.now(UTC)
        fields = {
            status_field: ReviewStatus.APPROVED,
            reviewed_field: now,
            **stage_change_fields(partner, new_stage, now),
        }
        details: dict[str, Any] = {"review_type": ReviewType(review_type).value}
        description = f"{ReviewType(review_type).value.replace('_', '-').capitalize()} review approved"

        if target_stage and skip_reason:
            skipped = compute_skipped_stages(partner.pipeline_stage, target_stage)
            fields["skip_reason"] = skip_reason
            fields["skipped_stages"] = json.dumps(skipped)
            details.update(skip_reason=skip_reason, skipped_stages=skipped)
            description += f", skipped to {_stage_label(new_stage)}"

        return await self._apply(partner, fields, performed_by, description, details)

    async def deny(
        self,
        partner: Partner,
        review_type: ReviewType,
        reason: Optional[str] = None,
        performed_by: str = "System",
    ) -> Partner:
        """Deny a review. The partner always ends in ``inactive``."""
        status_field, reviewed_field, _ = REVIEW_FIELDS[ReviewType(review_type)]
        now = datetime.now(UTC)
        fields = {
            status_field: ReviewStatus.DENIED,
            reviewed_field: now,
            "pipeline_stage": INACTIVE,
            "stage_entered_at": now,
        }
        details: dict[str, Any] = {"review_type": ReviewType(review_type).value}
        if reason:
            details["reason"] = reason
        description = f"{ReviewType(review_type).value.replace('_', '-').capitalize()} review denied"
        return await self._apply(partner, fields, performed_by, description, details)

    async def set_stage(
        self,
        partner: Partner,
        new_stage: str,
        performed_by: str = "System",
        extra_fields: Optional[dict[str, Any]] = None,
    ) -> Partner:
        """Manual override. Any registry stage or ``inactive``, either direction."""
        if not is_assignable_stage(new_stage):
            raise PipelineStageError(f"Unknown pipeline stage '{new_stage}'")
        now = datetime.now(UTC)
        fields = {**(extra_fields or {}), **stage_change_fields(partner, new_stage, now)}
        description = f"Stage changed to {_stage_label(new_stage)}"
        return await self._apply(partner, fields, performed_by, description, {})

    async def skip_to(
        self,
        partner: Partner,
        target_stage: str,
        skip_reason: str,
        performed_by: str = "System",
    ) -> Partner:
        """Forward skip outside of a review, recording the bypassed stages."""
        if target_stage not in {s.id for s in selectable_targets(partner)}:
            raise PipelineStageError(
                f"Cannot skip from '{partner.pipeline_stage}' to '{target_stage}'"
            )
        skipped = compute_skipped_stages(partner.pipeline_stage, target_stage)
        now = datetime.now(UTC)
        fields = {
            **stage_change_fields(partner, target_stage, now),
            "skip_reason": skip_reason,
            "skipped_stages": json.dumps(skipped),
        }
        description = f"Skipped to {_stage_label(target_stage)}"
        details = {"skip_reason": skip_reason, "skipped_stages": skipped}
        return await self._apply(partner, fields, performed_by, description, details)
