"""
Sending documents through DocuSeal and applying webhook events.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from partner_portal.integrations.docuseal import DocuSealClient
from partner_portal.models.document import SubmissionStatus, TemplateType
from partner_portal.models.partner import DocumentStatus, Partner, PartnerType
from partner_portal.repositories.document_repo import DocumentRepository, TemplateRepository
from partner_portal.repositories.partner_repo import PartnerRepository
from partner_portal.services.document_service import (
    DocumentSendError,
    DocumentService,
    default_template_type,
    detect_document_type,
)
from partner_portal.services.pipeline_service import PipelineService
from partner_portal.services.template_schemas import TemplateError


@pytest.fixture
def client():
    client = MagicMock(spec=DocuSealClient)
    client.create_submission = AsyncMock(return_value=[{"id": 1, "submission_id": 555}])
    return client


@pytest.fixture
async def svc(db_session, client):
    partner_repo = PartnerRepository(db_session)
    return DocumentService(
        partner_repo,
        TemplateRepository(db_session),
        DocumentRepository(db_session),
        PipelineService(partner_repo),
        client,
    )


@pytest.fixture
async def partner(db_session):
    return await PartnerRepository(db_session).create(Partner(
        partner_id="LP-DOC001",
        partner_type=PartnerType.LOCATION,
        pipeline_stage="venues_setup",
        contact_first_name="Sam",
        contact_last_name="Lee",
        contact_email="sam@bistro.example",
        company_legal_name="Bistro LLC",
        city="Austin",
    ))


async def _register(db_session, template_type: str = "loi"):
    await TemplateRepository(db_session).upsert(
        template_type, {"name": f"SkyYield - {template_type}", "docuseal_template_id": "101", "is_active": True}
    )


class TestHelpers:
    def test_contract_template_follows_partner_type(self):
        contractor = Partner(partner_type=PartnerType.CONTRACTOR)
        assert default_template_type("contract", contractor) == TemplateType.CONTRACTOR_CONTRACT
        assert default_template_type("contract", None) == TemplateType.LOCATION_DEPLOYMENT

    def test_unknown_document_type(self):
        with pytest.raises(DocumentSendError):
            default_template_type("invoice", None)

    @pytest.mark.parametrize("name,expected", [
        ("SkyYield - LOI", "loi"),
        ("Mutual Non-Disclosure", "nda"),
        ("Location Deployment Agreement", "contract"),
        ("Offer", None),
    ])
    def test_detect_document_type(self, name, expected):
        assert detect_document_type(name) == expected


class TestSend:
    async def test_send_loi_moves_partner(self, db_session, svc, client, partner):
        await _register(db_session)
        document = await svc.send_document("loi", partner=partner, performed_by="ops@skyyield.io")

        assert document.docuseal_submission_id == "555"
        assert document.status == SubmissionStatus.SENT
        assert document.recipient_email == "sam@bistro.example"
        assert partner.pipeline_stage == "loi_sent"
        assert partner.loi_status == DocumentStatus.SENT
        assert partner.loi_docuseal_id == "555"

        submitters = client.create_submission.await_args.args[1]
        assert [s["role"] for s in submitters] == ["SkyYield", "Client"]
        assert submitters[1]["values"]["lp_company_name"] == "Bistro LLC"
        assert "loi_date" in submitters[0]["values"]

    async def test_unregistered_template(self, svc, partner):
        with pytest.raises(DocumentSendError):
            await svc.send_document("loi", partner=partner)

    async def test_unknown_custom_field(self, db_session, svc, partner):
        await _register(db_session)
        with pytest.raises(TemplateError):
            await svc.send_document("loi", partner=partner, custom_values={"favourite_colour": "blue"})

    async def test_no_recipient(self, db_session, svc):
        await _register(db_session, "nda")
        with pytest.raises(DocumentSendError):
            await svc.send_document("nda")


class TestWebhook:
    async def test_loi_signed(self, db_session, svc, partner):
        await _register(db_session)
        await svc.send_document("loi", partner=partner)

        ack = await svc.handle_webhook({
            "event_type": "submission.completed",
            "data": {"id": 555, "documents": [{"url": "https://docs.example/loi.pdf"}]},
        })

        assert ack["document_status"] == "signed"
        assert partner.pipeline_stage == "loi_signed"
        assert partner.loi_status == DocumentStatus.SIGNED
        document = await DocumentRepository(db_session).get_by_submission_id("555")
        assert document.document_url == "https://docs.example/loi.pdf"

    async def test_partial_signature_keeps_stage(self, db_session, svc, partner):
        await _register(db_session)
        await svc.send_document("loi", partner=partner)

        await svc.handle_webhook({
            "event_type": "form.completed",
            "data": {"submission_id": 555, "submitters": [{"status": "completed"}, {"status": "sent"}]},
        })

        document = await DocumentRepository(db_session).get_by_submission_id("555")
        assert document.status == SubmissionStatus.PARTIALLY_SIGNED
        assert partner.pipeline_stage == "loi_sent"

    async def test_viewed(self, db_session, svc, partner):
        await _register(db_session)
        await svc.send_document("loi", partner=partner)

        await svc.handle_webhook({"event_type": "form.viewed", "data": {"submission_id": 555}})
        assert partner.loi_status == DocumentStatus.VIEWED

    async def test_signed_document_does_not_regress(self, db_session, svc, partner):
        await _register(db_session)
        await svc.send_document("loi", partner=partner)
        await svc.handle_webhook({"event_type": "submission.completed", "data": {"id": 555}})
        await svc.handle_webhook({"event_type": "form.viewed", "data": {"submission_id": 555}})

        document = await DocumentRepository(db_session).get_by_submission_id("555")
        assert document.status == SubmissionStatus.SIGNED

    async def test_late_signature_keeps_later_stage(self, db_session, svc, partner):
        await _register(db_session)
        await svc.send_document("loi", partner=partner)
        await svc.pipeline.set_stage(partner, "trial_active", performed_by="ops")

        await svc.handle_webhook({"event_type": "submission.completed", "data": {"id": 555}})

        assert partner.pipeline_stage == "trial_active"
        assert partner.loi_status == DocumentStatus.SIGNED
        assert partner.loi_signed_at is not None

    async def test_unknown_event_ignored(self, svc):
        ack = await svc.handle_webhook({"event_type": "template.created", "data": {}})
        assert ack["status"] == "ignored"

    async def test_unlinked_submission_acknowledged(self, svc):
        ack = await svc.handle_webhook({"event_type": "submission.completed", "data": {"id": 999}})
        assert ack["status"] == "ok"
        assert "partner_id" not in ack
