"""
Tipalti payee client and partner payee invites.
"""
import hashlib
import hmac
import json
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from partner_portal.integrations.tipalti import TipaltiClient, TipaltiError
from partner_portal.models.partner import Partner, PartnerType
from partner_portal.repositories.partner_repo import PartnerRepository
from partner_portal.services.payee_service import (
    PayeeAlreadyInvitedError,
    PayeeInviteError,
    PayeeService,
    payee_entity_type,
)


def _client(handler, **kwargs) -> TipaltiClient:
    return TipaltiClient(
        api_key="tk",
        hmac_secret="hs",
        base_url="https://tipalti.test",
        ui_url="https://ui.tipalti.test",
        payer_name="skyyield",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"idap": json.loads(request.content)["idap"]})


@pytest.fixture
async def partner(db_session):
    return await PartnerRepository(db_session).create(Partner(
        partner_id="LP-PAY001",
        partner_type=PartnerType.LOCATION,
        pipeline_stage="active",
        contact_first_name="Dana",
        contact_email="dana@cafe.example",
        company_legal_name="Corner Cafe LLC",
        address_line_1="1 Main St",
        city="Boise",
        state="ID",
        zip="83702",
    ))


class TestClient:
    async def test_create_payee_is_signed(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["ts"] = request.headers["X-Tipalti-Timestamp"]
            seen["sig"] = request.headers["X-Tipalti-Signature"]
            seen["body"] = request.content.decode()
            return httpx.Response(200, json={"ok": True})

        await _client(handler).create_payee({"idap": "LP-1", "email": "a@b.c"})

        expected = hmac.new(b"hs", (seen["ts"] + seen["body"]).encode(), hashlib.sha256).hexdigest()
        assert seen["path"] == "/api/v1/payees"
        assert seen["auth"] == "Bearer tk"
        assert seen["sig"] == expected
        assert json.loads(seen["body"])["idap"] == "LP-1"

    async def test_error_status_raises(self):
        client = _client(lambda request: httpx.Response(401, text="bad key"))
        with pytest.raises(TipaltiError) as exc_info:
            await client.get_payee("LP-1")
        assert exc_info.value.status_code == 401

    async def test_missing_api_key(self):
        client = TipaltiClient(api_key="", base_url="https://tipalti.test")
        with pytest.raises(TipaltiError, match="not configured"):
            await client.get_payee("LP-1")

    def test_onboarding_url_hash(self):
        client = _client(_ok)
        url = client.onboarding_url("LP-1", timestamp=1700000000)

        parts = urlsplit(url)
        query = parts.query.rsplit("&hash=", 1)
        assert parts.netloc == "ui.tipalti.test"
        assert parts.path == "/payeedashboard/home"
        assert parse_qs(parts.query)["idap"] == ["LP-1"]
        assert query[1] == hmac.new(b"hs", query[0].encode(), hashlib.sha256).hexdigest()


class TestEntityType:
    @pytest.mark.parametrize("company,expected", [
        ("Corner Cafe LLC", "LLC"),
        ("Acme Corp.", "Corporation"),
        ("Lincoln Diner", "Company"),
        ("Smith & Jones Partnership", "Partnership"),
    ])
    def test_company_types(self, company, expected):
        assert payee_entity_type(Partner(company_legal_name=company)) == expected

    def test_contractor_without_company_is_individual(self):
        assert payee_entity_type(Partner(partner_type=PartnerType.CONTRACTOR)) == "Individual"


class TestInvite:
    async def test_invite_records_payee(self, db_session, partner):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["payee"] = json.loads(request.content)
            return httpx.Response(200, json={})

        invite = await PayeeService(PartnerRepository(db_session), _client(handler)).invite(partner, "ops")

        assert invite.payee_id == "LP-PAY001"
        assert partner.tipalti_payee_id == "LP-PAY001"
        assert partner.tipalti_status == "invited"
        assert "idap=LP-PAY001" in invite.onboarding_url
        assert seen["payee"]["payeeEntityType"] == "LLC"
        assert seen["payee"]["email"] == "dana@cafe.example"
        activities = await PartnerRepository(db_session).get_activities(partner.id)
        assert "tipalti_invite_sent" in [a.activity_type for a in activities]

    async def test_existing_remote_payee_still_invites(self, db_session, partner):
        client = _client(lambda request: httpx.Response(409, text="payee exists"))
        await PayeeService(PartnerRepository(db_session), client).invite(partner)
        assert partner.tipalti_status == "invited"

    async def test_upstream_failure_records_nothing(self, db_session, partner):
        client = _client(lambda request: httpx.Response(500, text="down"))
        with pytest.raises(TipaltiError):
            await PayeeService(PartnerRepository(db_session), client).invite(partner)
        assert partner.tipalti_payee_id is None

    async def test_second_invite_rejected(self, db_session, partner):
        svc = PayeeService(PartnerRepository(db_session), _client(_ok))
        await svc.invite(partner)
        with pytest.raises(PayeeAlreadyInvitedError):
            await svc.invite(partner)

    async def test_refresh_status(self, db_session, partner):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json={"payeeStatus": "Active", "paymentMethod": "ACH", "isPayable": True})
            return httpx.Response(200, json={})

        svc = PayeeService(PartnerRepository(db_session), _client(handler))
        with pytest.raises(PayeeInviteError):
            await svc.refresh_status(partner)

        await svc.invite(partner)
        status = await svc.refresh_status(partner)

        assert status["tipalti_status"] == "active"
        assert status["is_payable"] is True
        assert partner.tipalti_status == "active"
