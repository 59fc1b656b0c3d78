import hashlib
import hmac
import json

import pytest
from httpx import AsyncClient

from partner_portal.core.config import settings
from partner_portal.integrations.docuseal import DocuSealError


async def _partner(client: AsyncClient, headers) -> dict:
    response = await client.post("/api/v1/partners", json={
        "contact_first_name": "Casey",
        "contact_email": "casey@hotel.example",
        "company_legal_name": "Harbor Hotel",
    }, headers=headers)
    return response.json()


@pytest.mark.asyncio
async def test_template_creation_requires_admin(client: AsyncClient, make_headers, docuseal):
    response = await client.post(
        "/api/v1/documents/templates", json={"action": "create_all"}, headers=make_headers(role="employee")
    )
    assert response.status_code == 403
    docuseal.create_html_template.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_all_templates(client: AsyncClient, admin_headers, docuseal):
    response = await client.post("/api/v1/documents/templates", json={"action": "create_all"}, headers=admin_headers)

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["message"] == "Created 9/9 templates"
    assert all(r["success"] for r in body["results"])

    listing = await client.get("/api/v1/documents/templates", headers=admin_headers)
    assert len(listing.json()) == 9


@pytest.mark.asyncio
async def test_create_all_reports_failures(client: AsyncClient, admin_headers, docuseal):
    original = docuseal.create_html_template.side_effect

    async def flaky(name, html, folder_name):
        if name == "SkyYield - NDA":
            raise DocuSealError("DocuSeal API error: 500 - boom", status_code=500)
        return await original(name, html, folder_name)

    docuseal.create_html_template.side_effect = flaky
    response = await client.post("/api/v1/documents/templates", json={"action": "create_all"}, headers=admin_headers)

    body = response.json()
    assert body["message"] == "Created 8/9 templates"
    failed = [r for r in body["results"] if not r["success"]]
    assert failed[0]["template_type"] == "nda"


@pytest.mark.asyncio
async def test_create_single_upstream_failure(client: AsyncClient, admin_headers, docuseal):
    docuseal.create_html_template.side_effect = DocuSealError("DocuSeal API error: 401 - bad key", status_code=401)
    response = await client.post(
        "/api/v1/documents/templates",
        json={"action": "create_single", "template_type": "loi"},
        headers=admin_headers,
    )
    assert response.status_code == 502
    assert response.json()["detail"]["context"]["upstream_status"] == 401


@pytest.mark.asyncio
async def test_create_single_needs_type(client: AsyncClient, admin_headers, docuseal):
    response = await client.post(
        "/api/v1/documents/templates", json={"action": "create_single"}, headers=admin_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_template_fields(client: AsyncClient, admin_headers):
    response = await client.get("/api/v1/documents/fields/loi", headers=admin_headers)
    body = response.json()
    assert body["name"] == "SkyYield - LOI"
    assert body["roles"] == ["SkyYield", "Client"]

    response = await client.get("/api/v1/documents/fields/lease", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_send_loi_and_sign(client: AsyncClient, admin_headers, docuseal):
    await client.post(
        "/api/v1/documents/templates", json={"action": "create_single", "template_type": "loi"}, headers=admin_headers
    )
    partner = await _partner(client, admin_headers)

    response = await client.post(
        "/api/v1/documents/send", json={"document_type": "LOI", "partner_id": partner["id"]}, headers=admin_headers
    )
    assert response.status_code == 201, response.text
    document = response.json()
    assert document["status"] == "sent"
    assert document["document_type"] == "loi"

    detail = (await client.get(f"/api/v1/partners/{partner['id']}", headers=admin_headers)).json()
    assert detail["pipeline_stage"] == "loi_sent"
    assert detail["loi_status"] == "sent"

    response = await client.post("/api/v1/webhooks/docuseal", json={
        "event_type": "submission.completed",
        "data": {"id": int(document["docuseal_submission_id"])},
    })
    assert response.json()["document_status"] == "signed"

    detail = (await client.get(f"/api/v1/partners/{partner['id']}", headers=admin_headers)).json()
    assert detail["pipeline_stage"] == "loi_signed"
    assert detail["loi_status"] == "signed"

    documents = (await client.get(f"/api/v1/documents/partner/{partner['id']}", headers=admin_headers)).json()
    assert documents[0]["status"] == "signed"


@pytest.mark.asyncio
async def test_send_without_template(client: AsyncClient, admin_headers, docuseal):
    partner = await _partner(client, admin_headers)
    response = await client.post(
        "/api/v1/documents/send", json={"document_type": "loi", "partner_id": partner["id"]}, headers=admin_headers
    )
    assert response.status_code == 400
    docuseal.create_submission.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_to_missing_partner(client: AsyncClient, admin_headers, docuseal):
    response = await client.post(
        "/api/v1/documents/send", json={"document_type": "loi", "partner_id": 404}, headers=admin_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_send_needs_recipient(client: AsyncClient, admin_headers, docuseal):
    response = await client.post("/api/v1/documents/send", json={"document_type": "nda"}, headers=admin_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_webhook_rejects_bad_json(client: AsyncClient):
    response = await client.post(
        "/api/v1/webhooks/docuseal", content=b"not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_webhook_signature(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "DOCUSEAL_WEBHOOK_SECRET", "whsec")
    body = json.dumps({"event_type": "template.updated", "data": {}}).encode()

    response = await client.post("/api/v1/webhooks/docuseal", content=body, headers={"X-Docuseal-Signature": "nope"})
    assert response.status_code == 401

    signature = hmac.new(b"whsec", body, hashlib.sha256).hexdigest()
    response = await client.post(
        "/api/v1/webhooks/docuseal", content=body, headers={"X-Docuseal-Signature": f"sha256={signature}"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "ignored"
