import pytest

from tests.conftest import STRONG_PASSWORD


def _register_body(**kw):
    body = {"fullName": "New Student", "email": "new@example.com", "password": STRONG_PASSWORD}
    body.update(kw)
    return body


def test_registration_happy_path(client, app_and_deps):
    _, uow, email = app_and_deps

    r = client.post("/v1/auth/send-otp", json={"email": "New@Example.com"})
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "OTP sent successfully"}
    assert email.calls[0]["to"] == "new@example.com"

    r = client.post("/v1/auth/verify-otp", json={"email": "new@example.com", "otp": "123456"})
    assert r.status_code == 200

    r = client.post("/v1/auth/register", json=_register_body())
    assert r.status_code == 201
    data = r.json()
    assert data["token"]
    assert data["refreshToken"]
    assert data["expires"]
    assert data["refreshExpires"]
    assert data["user"]["fullName"] == "New Student"
    assert data["user"]["role"] == "user"
    assert "passwordHash" not in data["user"]
    assert len(uow.users.by_id) == 1

    r = client.post("/v1/auth/register", json=_register_body())
    assert r.status_code == 409
    assert r.json()["success"] is False


def test_register_without_verification(client):
    r = client.post("/v1/auth/register", json=_register_body())

    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["redirect"] == "/register"
    assert body["field"] == "email"


def test_send_otp_for_registered_email(client, seeded_user):
    r = client.post("/v1/auth/send-otp", json={"email": seeded_user.email})

    assert r.status_code == 409
    assert r.json()["redirect"] == "/login"


@pytest.mark.parametrize("payload", [{"email": "nope"}, {}])
def test_send_otp_invalid_email(client, payload):
    r = client.post("/v1/auth/send-otp", json=payload)
    assert r.status_code == 400
    assert r.json()["field"] == "email"


def test_send_otp_rate_limit(client):
    for _ in range(3):
        assert client.post("/v1/auth/send-otp", json={"email": "a@example.com"}).status_code == 200

    r = client.post("/v1/auth/send-otp", json={"email": "a@example.com"})
    assert r.status_code == 429
    assert r.headers["retry-after"] == "900"


def test_send_otp_provider_failure(client, failing_email):
    r = client.post("/v1/auth/send-otp", json={"email": "a@example.com"})

    assert r.status_code == 500
    body = r.json()
    assert body["code"] == "EAUTH"
    assert "provider said no" not in body["error"]


def test_verify_otp_errors(client):
    r = client.post("/v1/auth/verify-otp", json={"email": "a@example.com", "otp": "123456"})
    assert r.status_code == 400
    assert r.json()["error"] == "OTP not found. Please request a new OTP."

    client.post("/v1/auth/send-otp", json={"email": "a@example.com"})
    r = client.post("/v1/auth/verify-otp", json={"email": "a@example.com", "otp": "000000"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid OTP. Please try again."

    r = client.post("/v1/auth/verify-otp", json={"email": "a@example.com"})
    assert r.status_code == 400


def test_malformed_json_body_is_a_400(client):
    r = client.post(
        "/v1/auth/send-otp", content="{not json", headers={"content-type": "application/json"}
    )
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_send_otp_is_limited_per_ip(client):
    for i in range(5):
        r = client.post("/v1/auth/send-otp", json={"email": f"student{i}@example.com"})
        assert r.status_code == 200

    r = client.post("/v1/auth/send-otp", json={"email": "student9@example.com"})
    assert r.status_code == 429
    assert r.json()["error"] == "Too many OTP requests from this IP. Try again in 15 minutes."

    other = client.post(
        "/v1/auth/send-otp",
        json={"email": "student9@example.com"},
        headers={"x-forwarded-for": "4.4.4.4"},
    )
    assert other.status_code == 200
