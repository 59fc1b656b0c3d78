"""
Daily trial check transitions.
"""
import pytest
from datetime import datetime, timedelta, UTC

from partner_portal.models.partner import Partner, PartnerType
from partner_portal.repositories.partner_repo import PartnerRepository
from partner_portal.services.pipeline_service import PipelineService
from partner_portal.services.trial_service import TrialService

NOW = datetime(2026, 6, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
async def repo(db_session):
    return PartnerRepository(db_session)


@pytest.fixture
async def trials(repo):
    return TrialService(repo, PipelineService(repo))


async def _in_trial(repo, code: str, stage: str, ends_in: timedelta | None) -> Partner:
    return await repo.create(Partner(
        partner_id=code,
        partner_type=PartnerType.LOCATION,
        pipeline_stage=stage,
        contact_first_name="Trial",
        contact_email=f"{code.lower()}@example.com",
        trial_start_date=NOW - timedelta(days=50) if ends_in is not None else None,
        trial_end_date=NOW + ends_in if ends_in is not None else None,
    ))


async def test_nearly_over_moves_to_trial_ending(repo, trials):
    partner = await _in_trial(repo, "LP-AAA001", "trial_active", timedelta(days=5))
    result = await trials.run_trial_check(now=NOW)

    assert result.moved_to_trial_ending == [partner.id]
    assert partner.pipeline_stage == "trial_ending"


async def test_expired_moves_to_contract_decision(repo, trials):
    active = await _in_trial(repo, "LP-AAA002", "trial_active", timedelta(days=-1))
    ending = await _in_trial(repo, "LP-AAA003", "trial_ending", timedelta(hours=-2))

    result = await trials.run_trial_check(now=NOW)

    assert sorted(result.moved_to_contract_decision) == sorted([active.id, ending.id])
    assert active.pipeline_stage == "contract_decision"
    assert ending.pipeline_stage == "contract_decision"


async def test_long_trial_untouched(repo, trials):
    partner = await _in_trial(repo, "LP-AAA004", "trial_active", timedelta(days=30))
    result = await trials.run_trial_check(now=NOW)

    assert result.checked == 1
    assert result.moved_to_trial_ending == []
    assert partner.pipeline_stage == "trial_active"


async def test_ending_partner_not_moved_again(repo, trials):
    await _in_trial(repo, "LP-AAA005", "trial_ending", timedelta(days=3))
    result = await trials.run_trial_check(now=NOW)
    assert result.moved_to_trial_ending == []
    assert result.moved_to_contract_decision == []


async def test_partner_without_end_date_is_skipped(repo, trials):
    await _in_trial(repo, "LP-AAA006", "trial_active", None)
    result = await trials.run_trial_check(now=NOW)
    assert result.checked == 0


async def test_other_stages_ignored(repo, trials):
    await _in_trial(repo, "LP-AAA007", "install_scheduled", timedelta(days=-10))
    result = await trials.run_trial_check(now=NOW)
    assert result.checked == 0
