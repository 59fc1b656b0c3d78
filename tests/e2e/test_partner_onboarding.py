"""
Onboarding a location partner end to end: application, reviews, LOI, trial
and contract, driven only through the HTTP API.
"""
from datetime import datetime, timedelta, UTC

import pytest
from httpx import AsyncClient

from partner_portal.core.config import settings


async def _stage(client: AsyncClient, headers, partner_id: int) -> str:
    response = await client.get(f"/api/v1/partners/{partner_id}", headers=headers)
    return response.json()["pipeline_stage"]


async def _signed(client: AsyncClient, submission_id: str) -> None:
    response = await client.post("/api/v1/webhooks/docuseal", json={
        "event_type": "form.completed",
        "data": {
            "submission_id": int(submission_id),
            "submitters": [{"status": "completed"}, {"status": "completed"}],
        },
    })
    assert response.status_code == 200, response.text


@pytest.mark.asyncio
async def test_location_partner_onboarding(client: AsyncClient, admin_headers, make_headers, docuseal, monkeypatch):
    ops = make_headers(role="employee", sub="ops")
    api = "/api/v1/partners"

    # 1. Templates registered once by an admin
    response = await client.post("/api/v1/documents/templates", json={"action": "create_all"}, headers=admin_headers)
    assert response.json()["message"] == "Created 9/9 templates"

    # 2. Application intake
    response = await client.post(api, json={
        "contact_first_name": "Quinn",
        "contact_last_name": "Park",
        "contact_email": "quinn@brewery.example",
        "company_legal_name": "Park Brewing Co",
        "address_line_1": "1 Hop Rd",
        "city": "Portland",
        "state": "OR",
        "zip": "97201",
    }, headers=ops)
    partner = response.json()
    pid = partner["id"]
    assert partner["pipeline_stage"] == "initial_review"

    # 3. Reviews
    await client.post(f"{api}/{pid}/approve", json={"review_type": "initial"}, headers=ops)
    assert await _stage(client, ops, pid) == "discovery_scheduled"

    await client.post(f"{api}/{pid}/stage", json={"stage": "discovery_complete"}, headers=ops)
    response = await client.post(f"{api}/{pid}/approve", json={"review_type": "post_call"}, headers=ops)
    assert response.json()["post_call_review_status"] == "approved"
    assert response.json()["pipeline_stage"] == "venues_setup"

    # 4. Partner adds a venue from the portal
    partner_headers = make_headers(role="partner", partner_id=pid, sub="quinn")
    response = await client.post("/api/v1/portal/venues", json={"name": "Taproom"}, headers=partner_headers)
    assert response.status_code == 201

    # 5. LOI out and back
    response = await client.post("/api/v1/documents/send", json={"document_type": "loi", "partner_id": pid}, headers=ops)
    loi = response.json()
    assert await _stage(client, ops, pid) == "loi_sent"

    submitters = docuseal.create_submission.await_args.args[1]
    client_values = next(s for s in submitters if s["role"] == "Client")["values"]
    assert client_values["lp_company_name"] == "Park Brewing Co"
    assert client_values["lp_city"] == "Portland"

    await _signed(client, loi["docuseal_submission_id"])
    assert await _stage(client, ops, pid) == "loi_signed"

    # 6. Install, then a trial that is about to end
    await client.post(f"{api}/{pid}/stage", json={"stage": "install_scheduled"}, headers=ops)
    now = datetime.now(UTC)
    await client.put(f"{api}/{pid}", json={
        "trial_start_date": (now - timedelta(days=55)).isoformat(),
        "trial_end_date": (now + timedelta(days=5)).isoformat(),
    }, headers=ops)
    await client.post(f"{api}/{pid}/stage", json={"stage": "trial_active"}, headers=ops)

    portal = (await client.get("/api/v1/portal/me", headers=partner_headers)).json()
    assert portal["stats"]["trial_days_remaining"] == 5
    assert portal["stats"]["total_venues"] == 1

    monkeypatch.setattr(settings, "CRON_SECRET", "cron-secret")
    response = await client.post("/api/v1/cron/trial-check", headers={"Authorization": "Bearer cron-secret"})
    assert response.json()["moved_to_trial_ending"] == [pid]
    assert await _stage(client, ops, pid) == "trial_ending"

    # 7. Contract decision and signature
    await client.post(f"{api}/{pid}/stage", json={"stage": "contract_decision"}, headers=ops)
    response = await client.post(
        "/api/v1/documents/send", json={"document_type": "contract", "partner_id": pid}, headers=ops
    )
    contract = response.json()
    assert contract["template_type"] == "location_deployment"

    await _signed(client, contract["docuseal_submission_id"])

    detail = (await client.get(f"{api}/{pid}", headers=ops)).json()
    assert detail["pipeline_stage"] == "active"
    assert detail["contract_status"] == "signed"
    assert detail["loi_status"] == "signed"
    assert detail["current_step"] == 12

    activity_types = [a["activity_type"] for a in detail["activities"]]
    assert "document_signed" in activity_types
    assert "venue_added" in activity_types
