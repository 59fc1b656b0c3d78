"""
CRM prospects: activity log, invites and conversion into partners.
"""
import pytest

from partner_portal.models.partner import PartnerType
from partner_portal.models.prospect import ImmutableRecordError, ProspectStatus, ProspectType
from partner_portal.repositories.partner_repo import PartnerRepository
from partner_portal.repositories.prospect_repo import ProspectRepository
from partner_portal.schemas.prospect import ProspectCreate, ProspectUpdate
from partner_portal.services.prospect_service import ProspectConversionError, ProspectService


@pytest.fixture
async def svc(db_session):
    return ProspectService(ProspectRepository(db_session), PartnerRepository(db_session))


async def _prospect(svc, **kwargs):
    data = {"first_name": "Riley", "last_name": "Moss", "email": "Riley@Cafe.example", "company_name": "Moss Cafe"}
    data.update(kwargs)
    return await svc.create_prospect(ProspectCreate(**data), performed_by="rep@skyyield.io")


class TestActivityLog:
    async def test_creation_is_logged(self, svc):
        prospect = await _prospect(svc)
        activities = await svc.get_activities(prospect)
        assert [a.activity_type for a in activities] == ["note"]
        assert activities[0].performed_by == "rep@skyyield.io"

    async def test_email_is_normalized(self, svc):
        prospect = await _prospect(svc)
        assert prospect.email == "riley@cafe.example"

    async def test_contact_activity_bumps_follow_up(self, svc):
        prospect = await _prospect(svc)
        await svc.add_activity(prospect, "call", "Left voicemail")
        await svc.add_activity(prospect, "email", "Sent deck")

        assert prospect.follow_up_count == 2
        assert prospect.last_contact_date is not None

    async def test_note_does_not_count_as_contact(self, svc):
        prospect = await _prospect(svc)
        await svc.add_activity(prospect, "note", "Owner is on vacation")
        assert prospect.follow_up_count == 0
        assert prospect.last_contact_date is None

    async def test_activities_are_immutable(self, svc, db_session):
        prospect = await _prospect(svc)
        activity = await svc.add_activity(prospect, "call", "Intro call")

        activity.description = "Rewritten history"
        with pytest.raises(ImmutableRecordError):
            await db_session.flush()


class TestStatus:
    async def test_status_change_is_logged(self, svc):
        prospect = await _prospect(svc)
        prospect = await svc.update_prospect(prospect, ProspectUpdate(status=ProspectStatus.QUALIFIED))

        assert prospect.status == ProspectStatus.QUALIFIED
        change = next(a for a in prospect.activities if a.activity_type == "status_change")
        assert change.details == {"old_status": "new", "new_status": "qualified"}

    async def test_won_converts(self, svc):
        prospect = await _prospect(svc)
        prospect = await svc.update_prospect(prospect, ProspectUpdate(status=ProspectStatus.WON))

        assert prospect.status == ProspectStatus.WON
        assert prospect.converted_partner_id is not None


class TestInvite:
    async def test_invite_moves_new_to_contacted(self, svc):
        prospect = await _prospect(svc, prospect_type=ProspectType.REFERRAL_PARTNER)
        form_url = await svc.send_invite(prospect)

        assert prospect.status == ProspectStatus.CONTACTED
        assert form_url.endswith(f"/apply/referral-partner?ref={prospect.id}")
        assert prospect.last_contact_date is not None

    async def test_invite_keeps_later_status(self, svc):
        prospect = await _prospect(svc, status=ProspectStatus.NEGOTIATING)
        await svc.send_invite(prospect)
        assert prospect.status == ProspectStatus.NEGOTIATING


class TestConvert:
    async def test_location_prospect_starts_at_initial_review(self, svc, db_session):
        prospect = await _prospect(svc)
        partner = await svc.convert(prospect)

        assert partner.partner_type == PartnerType.LOCATION
        assert partner.pipeline_stage == "initial_review"
        assert partner.partner_id.startswith("LP-")
        assert partner.contact_email == "riley@cafe.example"
        assert partner.company_legal_name == "Moss Cafe"
        assert prospect.converted_partner_id == partner.id
        assert prospect.status == ProspectStatus.WON

        partner_activities = await PartnerRepository(db_session).get_activities(partner.id)
        assert partner_activities[0].details["prospect_id"] == prospect.id

    async def test_other_types_start_at_application(self, svc):
        prospect = await _prospect(svc, prospect_type=ProspectType.CHANNEL_PARTNER)
        partner = await svc.convert(prospect)
        assert partner.pipeline_stage == "application"
        assert partner.partner_type == PartnerType.CHANNEL

    async def test_second_conversion_rejected(self, svc):
        prospect = await _prospect(svc)
        await svc.convert(prospect)
        with pytest.raises(ProspectConversionError):
            await svc.convert(prospect)
