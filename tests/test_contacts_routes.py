"""
tests/test_contacts_routes.py -- Integration tests for /api/v1/contacts.

Coverage:
  - Public submission, anonymous and signed-in (user_id linked)
  - Invalid optional credentials degrade to anonymous instead of 401
  - Inbox management is admin-only
  - mark-read moves NEW to READ; reply mails the sender and records REPLIED
  - A mail delivery failure is a 502 and leaves the message unchanged
"""

from __future__ import annotations

from conftest import bearer
from fastapi.testclient import TestClient

from core.errors import UpstreamError

_MESSAGE = {"name": "Grace", "email": "grace@navy.io", "subject": "Hiring", "message": "Are you available?"}


def _submit(client: TestClient, headers: dict | None = None, **fields) -> dict:
    resp = client.post("/api/v1/contacts", headers=headers or {}, json={**_MESSAGE, **fields})
    assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
    return resp.json()["data"]


class TestSubmission:
    """POST /api/v1/contacts"""

    def test_anonymous_submission(self, api_client: tuple[TestClient, str, int]) -> None:
        client, _, _ = api_client
        contact = _submit(client)
        assert contact["status"] == "NEW"
        assert contact["read"] is False
        assert contact["user_id"] is None

    def test_signed_in_submission_links_user(self, api_client, user_factory) -> None:
        client, _, _ = api_client
        token, uid = user_factory()
        contact = _submit(client, headers=bearer(token))
        assert contact["user_id"] == uid

    def test_invalid_token_treated_as_anonymous(self, api_client: tuple[TestClient, str, int]) -> None:
        client, _, _ = api_client
        contact = _submit(client, headers={"Authorization": "Bearer not-a-jwt"})
        assert contact["user_id"] is None

    def test_invalid_email_rejected(self, api_client: tuple[TestClient, str, int]) -> None:
        client, _, _ = api_client
        resp = client.post("/api/v1/contacts", json={**_MESSAGE, "email": "not-an-email"})
        assert resp.status_code == 400, f"Expected 400, got {resp.status_code}: {resp.text}"
        assert "email" in resp.json()["error"]["message"]


class TestInbox:
    """Admin inbox management."""

    def test_user_cannot_list(self, api_client, user_factory) -> None:
        client, _, _ = api_client
        token, _ = user_factory()
        assert client.get("/api/v1/contacts", headers=bearer(token)).status_code == 403
        assert client.get("/api/v1/contacts").status_code == 401

    def test_mark_read(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        contact = _submit(client, subject="Read me")
        resp = client.put(f"/api/v1/contacts/{contact['id']}/read", headers=bearer(token))
        assert resp.status_code == 200, f"Expected 200, got {resp.status_code}: {resp.text}"
        data = resp.json()["data"]
        assert data["read"] is True
        assert data["status"] == "READ"

        new_only = client.get("/api/v1/contacts?status=new&limit=100", headers=bearer(token)).json()["data"]
        assert contact["id"] not in [c["id"] for c in new_only["items"]]

    def test_reply_sends_mail_and_records(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        mailer = client.app.state.mailer
        mailer.send.reset_mock()
        mailer.send.side_effect = None
        contact = _submit(client)

        resp = client.post(
            f"/api/v1/contacts/{contact['id']}/reply",
            headers=bearer(token),
            json={"reply": "Yes, let's talk."},
        )
        assert resp.status_code == 200, f"Expected 200, got {resp.status_code}: {resp.text}"
        data = resp.json()["data"]
        assert data["status"] == "REPLIED"
        assert data["reply"] == "Yes, let's talk."
        assert data["replied_at"]
        assert data["read"] is True
        mailer.send.assert_called_once_with("grace@navy.io", "Re: Hiring", "Yes, let's talk.")

    def test_empty_reply_rejected(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        contact = _submit(client)
        resp = client.post(f"/api/v1/contacts/{contact['id']}/reply", headers=bearer(token), json={"reply": "  "})
        assert resp.status_code == 400, f"Expected 400, got {resp.status_code}: {resp.text}"

    def test_delivery_failure_is_502(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        mailer = client.app.state.mailer
        mailer.send.side_effect = UpstreamError("Could not deliver email.")
        try:
            contact = _submit(client)
            resp = client.post(
                f"/api/v1/contacts/{contact['id']}/reply",
                headers=bearer(token),
                json={"reply": "Hello?"},
            )
        finally:
            mailer.send.side_effect = None
        assert resp.status_code == 502, f"Expected 502, got {resp.status_code}: {resp.text}"
        assert resp.json()["error"]["code"] == "upstream_error"

        stored = client.get(f"/api/v1/contacts/{contact['id']}", headers=bearer(token)).json()["data"]
        assert stored["status"] == "NEW"
        assert stored["reply"] is None

    def test_delete(self, api_client: tuple[TestClient, str, int]) -> None:
        client, token, _ = api_client
        contact = _submit(client)
        url = f"/api/v1/contacts/{contact['id']}"
        assert client.delete(url, headers=bearer(token)).status_code == 204
        assert client.get(url, headers=bearer(token)).status_code == 404
