from datetime import date

import pytest
from httpx import AsyncClient

from app.services.lifecycle_service import derive_age

BASE = "/api/v1/applications"


async def _submit(client: AsyncClient, headers: dict, payload: dict) -> dict:
    response = await client.post(BASE, json=payload, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


async def _approve(client: AsyncClient, headers: dict, application_id: str, **pass_dates) -> dict:
    body = {"decision": "approved"}
    if pass_dates:
        body["pass_dates"] = pass_dates
    response = await client.post(
        f"/api/v1/admin/applications/{application_id}/decision", json=body, headers=headers
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestSubmitApplication:
    """Tests for POST /api/v1/applications"""

    async def test_submit(self, client: AsyncClient, auth_headers: dict, draft_payload):
        data = await _submit(client, auth_headers, draft_payload())

        assert data["status"] == "pending"
        assert data["student_name"] == "Asha Patil"
        assert data["age"] == derive_age(date(2003, 5, 1), date.today())
        assert data["class_type"] == "2nd Class"
        assert data["valid_until"] is None
        assert data["is_expired"] is False

    async def test_submit_ignores_client_age(self, client, auth_headers, draft_payload):
        data = await _submit(client, auth_headers, draft_payload(age=3))
        assert data["age"] != 3

    async def test_submit_missing_field(self, client, auth_headers, draft_payload):
        payload = draft_payload()
        del payload["concession_form_no"]

        response = await client.post(BASE, json=payload, headers=auth_headers)

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["data"]["field"] == "concession_form_no"

    async def test_submit_requires_login(self, client, draft_payload):
        response = await client.post(BASE, json=draft_payload())
        assert response.status_code == 401

    async def test_admin_cannot_submit(self, client, admin_headers, draft_payload):
        response = await client.post(BASE, json=draft_payload(), headers=admin_headers)
        assert response.status_code == 403


class TestViewApplications:
    """Tests for the student's own views."""

    async def test_list_my_applications(
        self, client, auth_headers, other_headers, draft_payload
    ):
        mine = await _submit(client, auth_headers, draft_payload())
        await _submit(client, other_headers, draft_payload(concession_form_no="CF-9"))

        response = await client.get(f"{BASE}/me", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == mine["id"]

    async def test_my_stats(self, client, auth_headers, admin_headers, draft_payload):
        first = await _submit(client, auth_headers, draft_payload())
        await _submit(client, auth_headers, draft_payload(concession_form_no="CF-2"))
        await _approve(client, admin_headers, first["id"])

        response = await client.get(f"{BASE}/me/stats", headers=auth_headers)

        assert response.status_code == 200
        counts = response.json()["counts"]
        assert counts == {"total": 2, "pending": 1, "approved": 1, "rejected": 0}

    async def test_get_own_application(self, client, auth_headers, draft_payload):
        created = await _submit(client, auth_headers, draft_payload())

        response = await client.get(f"{BASE}/{created['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["concession_form_no"] == "CF-1001"

    async def test_other_students_application_is_hidden(
        self, client, auth_headers, other_headers, draft_payload
    ):
        created = await _submit(client, auth_headers, draft_payload())

        response = await client.get(f"{BASE}/{created['id']}", headers=other_headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    async def test_admin_can_view_any_application(
        self, client, auth_headers, admin_headers, draft_payload
    ):
        created = await _submit(client, auth_headers, draft_payload())

        response = await client.get(f"{BASE}/{created['id']}", headers=admin_headers)

        assert response.status_code == 200

    async def test_unknown_application(self, client, auth_headers):
        response = await client.get(f"{BASE}/does-not-exist", headers=auth_headers)
        assert response.status_code == 404


class TestDocuments:
    """Tests for evidence uploads."""

    async def test_upload_and_list(self, client, auth_headers, draft_payload, png_bytes, pdf_bytes):
        created = await _submit(client, auth_headers, draft_payload())

        response = await client.post(
            f"{BASE}/{created['id']}/documents/id_card",
            files={"file": ("card.png", png_bytes, "image/png")},
            headers=auth_headers,
        )
        assert response.status_code == 200, response.text
        assert response.json()["id_card_url"].startswith("http://test/uploads/id-cards/")

        await client.post(
            f"{BASE}/{created['id']}/documents/fee_receipt",
            files={"file": ("receipt.pdf", pdf_bytes, "application/pdf")},
            headers=auth_headers,
        )

        response = await client.get(f"{BASE}/{created['id']}/documents", headers=auth_headers)
        data = response.json()
        assert data["completeness"] == {"uploaded": 2, "total": 3}
        assert data["aadhar_url"] is None

    async def test_upload_rejects_bad_file(self, client, auth_headers, draft_payload):
        created = await _submit(client, auth_headers, draft_payload())

        response = await client.post(
            f"{BASE}/{created['id']}/documents/aadhar",
            files={"file": ("aadhar.exe", b"MZ...", "application/x-msdownload")},
            headers=auth_headers,
        )

        assert response.status_code == 422

    async def test_upload_unknown_slot(self, client, auth_headers, draft_payload, png_bytes):
        created = await _submit(client, auth_headers, draft_payload())

        response = await client.post(
            f"{BASE}/{created['id']}/documents/passport",
            files={"file": ("p.png", png_bytes, "image/png")},
            headers=auth_headers,
        )

        assert response.status_code == 422

    async def test_upload_after_decision(
        self, client, auth_headers, admin_headers, draft_payload, png_bytes
    ):
        created = await _submit(client, auth_headers, draft_payload())
        await _approve(client, admin_headers, created["id"])

        response = await client.post(
            f"{BASE}/{created['id']}/documents/id_card",
            files={"file": ("card.png", png_bytes, "image/png")},
            headers=auth_headers,
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_TRANSITION"

    async def test_upload_to_someone_elses_application(
        self, client, auth_headers, other_headers, draft_payload, png_bytes
    ):
        created = await _submit(client, auth_headers, draft_payload())

        response = await client.post(
            f"{BASE}/{created['id']}/documents/id_card",
            files={"file": ("card.png", png_bytes, "image/png")},
            headers=other_headers,
        )

        assert response.status_code == 404


class TestRenewal:
    """Tests for renewing expired passes."""

    async def test_renew_expired_pass(self, client, auth_headers, admin_headers, draft_payload):
        created = await _submit(client, auth_headers, draft_payload(pass_type="Quarterly"))
        approved = await _approve(
            client, admin_headers, created["id"], issue_date="2024-01-01", expiry_date="2024-03-31"
        )
        assert approved["is_expired"] is True

        response = await client.post(f"{BASE}/{created['id']}/renew", headers=auth_headers)

        assert response.status_code == 200, response.text
        draft = response.json()
        assert draft["supersedes_id"] == created["id"]
        assert draft["pass_type"] == "Quarterly"
        assert draft["previous_pass_date"] == "2024-01-01"
        assert draft["concession_form_no"] is None

        draft["concession_form_no"] = "CF-2002"
        renewed = await _submit(client, auth_headers, draft)

        assert renewed["supersedes_id"] == created["id"]
        assert renewed["status"] == "pending"
        assert renewed["previous_pass_expiry"] == "2024-04-01"

    async def test_renew_active_pass(self, client, auth_headers, admin_headers, draft_payload):
        created = await _submit(client, auth_headers, draft_payload())
        await _approve(client, admin_headers, created["id"])

        response = await client.post(f"{BASE}/{created['id']}/renew", headers=auth_headers)

        assert response.status_code == 409

    @pytest.mark.parametrize("decision", ["rejected", None])
    async def test_renew_undecided_or_rejected(
        self, client, auth_headers, admin_headers, draft_payload, decision
    ):
        created = await _submit(client, auth_headers, draft_payload())
        if decision:
            await client.post(
                f"/api/v1/admin/applications/{created['id']}/decision",
                json={"decision": decision},
                headers=admin_headers,
            )

        response = await client.post(f"{BASE}/{created['id']}/renew", headers=auth_headers)

        assert response.status_code == 409
