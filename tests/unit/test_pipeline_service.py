"""
PipelineService against a real (in-memory) database: reviews, overrides and
the audit trail each stage change leaves behind.
"""
import json
import pytest
from datetime import datetime, timedelta, UTC

from partner_portal.models.partner import Partner, PartnerType, ReviewStatus, ReviewType
from partner_portal.models.stage import INACTIVE
from partner_portal.repositories.partner_repo import PartnerRepository
from partner_portal.services.pipeline_service import PipelineService, PipelineStageError
from partner_portal.services.portal_stats import as_utc


@pytest.fixture
async def repo(db_session):
    return PartnerRepository(db_session)


@pytest.fixture
async def pipeline(repo):
    return PipelineService(repo)


async def _partner(repo: PartnerRepository, stage: str = "initial_review", **kwargs) -> Partner:
    return await repo.create(Partner(
        partner_id="LP-TEST01",
        partner_type=PartnerType.LOCATION,
        pipeline_stage=stage,
        contact_first_name="Dana",
        contact_email="dana@example.com",
        **kwargs,
    ))


class TestApprove:
    async def test_initial_approval_moves_to_discovery(self, repo, pipeline):
        partner = await _partner(repo)
        await pipeline.approve(partner, ReviewType.INITIAL)

        assert partner.pipeline_stage == "discovery_scheduled"
        assert partner.initial_review_status == ReviewStatus.APPROVED
        assert partner.initial_reviewed_at is not None
        assert partner.skip_reason is None
        assert partner.skipped_stages is None

    async def test_post_call_approval_moves_to_venues_setup(self, repo, pipeline):
        partner = await _partner(repo, stage="discovery_complete")
        await pipeline.approve(partner, ReviewType.POST_CALL)

        assert partner.pipeline_stage == "venues_setup"
        assert partner.post_call_review_status == ReviewStatus.APPROVED

    async def test_approval_with_skip_records_bypassed_stages(self, repo, pipeline):
        partner = await _partner(repo)
        await pipeline.approve(
            partner, ReviewType.INITIAL, target_stage="venues_setup", skip_reason="Existing customer"
        )

        assert partner.pipeline_stage == "venues_setup"
        assert partner.skip_reason == "Existing customer"
        assert json.loads(partner.skipped_stages) == ["discovery_scheduled", "discovery_complete"]

    async def test_target_without_reason_records_no_skip(self, repo, pipeline):
        partner = await _partner(repo)
        await pipeline.approve(partner, ReviewType.INITIAL, target_stage="venues_setup")

        assert partner.pipeline_stage == "venues_setup"
        assert partner.skip_reason is None
        assert partner.skipped_stages is None

    async def test_cannot_approve_into_inactive(self, repo, pipeline):
        partner = await _partner(repo)
        with pytest.raises(PipelineStageError):
            await pipeline.approve(partner, ReviewType.INITIAL, target_stage=INACTIVE)

    async def test_approval_writes_stage_change_activity(self, repo, pipeline):
        partner = await _partner(repo)
        await pipeline.approve(partner, ReviewType.INITIAL)

        activities = await repo.get_activities(partner.id)
        assert activities[0].activity_type == "stage_change"
        assert activities[0].details["old_stage"] == "initial_review"
        assert activities[0].details["new_stage"] == "discovery_scheduled"


class TestDeny:
    @pytest.mark.parametrize("review_type", list(ReviewType))
    async def test_deny_always_inactive(self, repo, pipeline, review_type):
        partner = await _partner(repo)
        await pipeline.deny(partner, review_type, reason="Not a fit")

        assert partner.pipeline_stage == INACTIVE
        status_field = "initial_review_status" if review_type == ReviewType.INITIAL else "post_call_review_status"
        assert getattr(partner, status_field) == ReviewStatus.DENIED

    async def test_deny_reason_is_logged(self, repo, pipeline):
        partner = await _partner(repo)
        await pipeline.deny(partner, ReviewType.INITIAL, reason="Too small")

        activities = await repo.get_activities(partner.id)
        assert activities[0].details["reason"] == "Too small"


class TestSetStage:
    async def test_can_move_backward(self, repo, pipeline):
        partner = await _partner(repo, stage="loi_signed")
        await pipeline.set_stage(partner, "initial_review")
        assert partner.pipeline_stage == "initial_review"

    async def test_unknown_stage_rejected(self, repo, pipeline):
        partner = await _partner(repo)
        with pytest.raises(PipelineStageError):
            await pipeline.set_stage(partner, "nowhere")
        assert partner.pipeline_stage == "initial_review"

    async def test_entering_trial_starts_sixty_day_trial(self, repo, pipeline):
        partner = await _partner(repo, stage="install_scheduled")
        before = datetime.now(UTC)
        await pipeline.set_stage(partner, "trial_active")

        start = as_utc(partner.trial_start_date)
        end = as_utc(partner.trial_end_date)
        assert start >= before - timedelta(seconds=1)
        assert end - start == timedelta(days=60)

    async def test_existing_trial_is_kept(self, repo, pipeline):
        started = datetime(2026, 1, 1, tzinfo=UTC)
        partner = await _partner(
            repo, stage="install_scheduled", trial_start_date=started, trial_end_date=started + timedelta(days=30)
        )
        await pipeline.set_stage(partner, "trial_active")
        assert as_utc(partner.trial_end_date) == started + timedelta(days=30)

    async def test_stage_entered_at_is_stamped(self, repo, pipeline):
        partner = await _partner(repo)
        await pipeline.set_stage(partner, "loi_sent")
        assert partner.stage_entered_at is not None


class TestSkipTo:
    async def test_skip_forward(self, repo, pipeline):
        partner = await _partner(repo, stage="venues_setup")
        await pipeline.skip_to(partner, "install_scheduled", "LOI signed on paper")

        assert partner.pipeline_stage == "install_scheduled"
        assert json.loads(partner.skipped_stages) == ["loi_sent", "loi_signed"]

    async def test_skip_backward_rejected(self, repo, pipeline):
        partner = await _partner(repo, stage="venues_setup")
        with pytest.raises(PipelineStageError):
            await pipeline.skip_to(partner, "application", "oops")
