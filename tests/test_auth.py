"""
Tests for the forgot-password verification endpoints
"""
import pytest
from httpx import ASGITransport, AsyncClient
from otp_recovery.config import settings
from otp_recovery.core.session import SessionHandoff
from otp_recovery.main import app
from otp_recovery.schemas.verification import VerificationType

URL = "/api/auth/forgot-password/verify"
KIND = VerificationType.reset_password


def test_verify_success_sets_handoff_cookie(client, service, store, user):
    code = service.prepare(user.email)

    response = client.post(URL, json={"target": user.email, "code": code})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"] == {"status": "success",
                            "redirectTo": settings.reset_password_path}
    token = response.cookies.get(settings.session_cookie_name)
    assert token
    assert SessionHandoff().read(token) == "kody"
    assert store.count(KIND, user.email) == 0


def test_wrong_code_and_unknown_target_look_the_same(client, issue_record, user):
    issue_record(user.email, otp="123456", secret="not-the-right-secret-for-123456")

    wrong = client.post(URL, json={"target": user.email, "code": "654321"})
    unknown = client.post(URL, json={"target": "nobody@example.com", "code": "654321"})

    assert wrong.status_code == unknown.status_code == 422
    for response in (wrong, unknown):
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Invalid code"
        assert body["code"] == "VALIDATION_ERROR"
        assert body["errors"] == {"code": ["Invalid code"]}
        assert settings.session_cookie_name not in response.cookies


def test_replay_is_rejected(client, service, user):
    code = service.prepare(user.email)

    first = client.post(URL, json={"target": user.email, "code": code})
    second = client.post(URL, json={"target": user.email, "code": code})

    assert first.status_code == 200
    assert second.status_code == 422
    assert second.json()["errors"] == {"code": ["Invalid code"]}


@pytest.mark.parametrize("code", ["12345", "1234567", "abcdef"])
def test_malformed_code_is_field_error(client, code):
    response = client.post(URL, json={"target": "kody", "code": code})

    assert response.status_code == 422
    assert "code" in response.json()["errors"]


@pytest.mark.parametrize("target", ["ab", "not an email!", "x" * 101 + "@example.com"])
def test_malformed_target_is_field_error(client, target):
    response = client.post(URL, json={"target": target, "code": "123456"})

    assert response.status_code == 422
    assert "target" in response.json()["errors"]


def test_missing_identity_is_generic_server_error(client, issue_record):
    code = issue_record("ghost@example.com")

    response = client.post(URL, json={"target": "ghost@example.com", "code": code})

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "Internal server error"
    assert body["code"] == "INTERNAL_ERROR"
    assert "User not found" not in response.text
    assert settings.session_cookie_name not in response.cookies


def test_link_without_code_is_idle(client):
    response = client.get(URL, params={"target": "kody"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "idle"
    assert data["payload"] == {"target": "kody"}
    assert data["errors"] == {}


def test_prefilled_link_verifies(client, service, user):
    code = service.prepare("kody")

    response = client.get(URL, params={"target": "kody", "code": code})

    assert response.status_code == 200
    assert SessionHandoff().read(
        response.cookies.get(settings.session_cookie_name)) == "kody"


def test_prefilled_link_with_bad_code_is_field_error(client):
    response = client.get(URL, params={"target": "kody", "code": "12"})

    assert response.status_code == 422
    assert "code" in response.json()["errors"]


@pytest.mark.asyncio
async def test_verify_async_client(client, service, user):
    code = service.prepare(user.email)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as async_client:
        response = await async_client.post(URL, json={"target": user.email, "code": code})

    assert response.status_code == 200
    assert response.json()["success"] is True
