"""End-to-end tests for the onboarding API over the mocked container."""

import json
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from onboard.interface.api.app import create_app
from tests.di import build_test_container

ADMIN_ID = str(uuid4())

OCTOCAT_PROFILE = {
    "display_name": "The Octocat",
    "role": "developer",
    "github_handle": "octocat",
}


@pytest.fixture
def client(monkeypatch):
    """Create test client with one admin issuer and no background sweep."""
    monkeypatch.setenv("INVITATIONS__ADMIN_ISSUERS", json.dumps([ADMIN_ID]))
    monkeypatch.setenv("REGISTRATION__SWEEP_INTERVAL_SECONDS", "0")
    app = create_app(build_test_container(with_fastapi=True))
    with TestClient(app) as test_client:
        yield test_client


def issue_invitation(client: TestClient, **body) -> dict:
    response = client.post("/invitations", json={"issuer_id": ADMIN_ID, **body})
    assert response.status_code == 201
    return response.json()


def start_registration(client: TestClient, code: str, actor_id: str = "tg:1"):
    return client.post(
        "/registrations", json={"invitation_code": code, "actor_id": actor_id}
    )


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestRegistrationFlow:
    """Invitation to member, one HTTP call per conversational turn."""

    def test_invitation_to_member(self, client):
        invitation = issue_invitation(client)
        code = invitation["code"]

        check = client.get(f"/invitations/{code.lower()}")
        assert check.status_code == 200
        assert check.json()["valid"] is True

        started = start_registration(client, code)
        assert started.status_code == 201
        session = started.json()
        assert session["state"] == "collecting_profile"
        assert session["prompt"]

        done = client.post(
            f"/registrations/{session['session_id']}/steps",
            json={"fields": OCTOCAT_PROFILE},
        )
        assert done.status_code == 200
        result = done.json()
        assert result["state"] == "complete"
        assert result["reputation_score"] == 1125
        assert result["reputation_tier"] == "Experienced"

        member = client.get(f"/members/{result['member_id']}")
        assert member.status_code == 200
        assert member.json()["github_handle"] == "octocat"
        assert member.json()["invited_by_member_id"] == ADMIN_ID

        listed = client.get("/invitations", params={"issuer_id": ADMIN_ID})
        [item] = listed.json()["invitations"]
        assert item["status"] == "accepted"
        assert item["accepted_by_member_id"] == result["member_id"]

        directory = client.get("/members", params={"search": "octo"})
        assert directory.json()["total"] == 1

    def test_consumed_code_conflicts(self, client):
        code = issue_invitation(client)["code"]
        session = start_registration(client, code).json()
        client.post(
            f"/registrations/{session['session_id']}/steps",
            json={"fields": OCTOCAT_PROFILE},
        )

        response = start_registration(client, code, actor_id="tg:2")

        assert response.status_code == 409
        assert response.json()["error"] == "InvitationAlreadyConsumedError"
        assert client.get(f"/invitations/{code}").json()["valid"] is False

    def test_reserved_code_conflicts(self, client):
        code = issue_invitation(client)["code"]
        start_registration(client, code)

        response = start_registration(client, code, actor_id="tg:2")

        assert response.status_code == 409
        assert response.json()["category"] == "contention"

    def test_field_errors_keep_the_session(self, client):
        code = issue_invitation(client)["code"]
        session = start_registration(client, code).json()

        response = client.post(
            f"/registrations/{session['session_id']}/steps",
            json={"fields": {"display_name": "Ada", "role": "wizard"}},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "collecting_profile"
        assert "Role must be one of" in body["error"]

    def test_cancel_frees_the_code(self, client):
        code = issue_invitation(client)["code"]
        session = start_registration(client, code).json()

        cancelled = client.delete(f"/registrations/{session['session_id']}")

        assert cancelled.status_code == 200
        assert cancelled.json()["state"] == "abandoned"
        assert start_registration(client, code, actor_id="tg:2").status_code == 201

    def test_get_registration_returns_pending_prompt(self, client):
        code = issue_invitation(client)["code"]
        session = start_registration(client, code).json()

        response = client.get(f"/registrations/{session['session_id']}")

        assert response.status_code == 200
        assert response.json()["prompt"] == session["prompt"]


class TestErrorResponses:
    def test_unknown_session_is_404(self, client):
        response = client.get(f"/registrations/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "SessionNotFoundError"

    def test_unknown_code_is_404(self, client):
        response = start_registration(client, "UNKNOWN000000001")

        assert response.status_code == 404
        assert response.json()["category"] == "user_correctable"

    def test_repeated_starts_are_rate_limited(self, client):
        # Starts count even when the code is unusable
        for _ in range(5):
            assert start_registration(client, "UNKNOWN000000001").status_code == 404

        response = start_registration(client, "UNKNOWN000000001")

        assert response.status_code == 429
        assert response.headers["retry-after"] == "3600"

    def test_non_member_cannot_issue(self, client):
        response = client.post("/invitations", json={"issuer_id": str(uuid4())})

        assert response.status_code == 403
        assert response.json()["error"] == "IssuerNotAuthorizedError"

    def test_malformed_request_is_422(self, client):
        response = client.post("/registrations", json={"invitation_code": "X"})

        assert response.status_code == 422
