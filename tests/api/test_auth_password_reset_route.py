from tests.conftest import STRONG_PASSWORD

NEW_PASSWORD = "N3w!Password"
FORGOT_MESSAGE = "If your email is registered, you will receive a password reset OTP"


def test_password_reset_happy_path(client, app_and_deps, seeded_user):
    _, _, email = app_and_deps

    r = client.post("/v1/auth/forgot-password", json={"email": seeded_user.email})
    assert r.status_code == 200
    assert r.json()["message"] == FORGOT_MESSAGE
    assert email.calls[0]["subject"] == "Password Reset OTP for CAprep"

    r = client.post(
        "/v1/auth/verify-reset-otp", json={"email": seeded_user.email, "otp": "123456"}
    )
    assert r.status_code == 200

    r = client.post(
        "/v1/auth/reset-password",
        json={"email": seeded_user.email, "otp": "123456", "newPassword": NEW_PASSWORD},
    )
    assert r.status_code == 200

    old = client.post(
        "/v1/auth/login", json={"email": seeded_user.email, "password": STRONG_PASSWORD}
    )
    assert old.status_code == 401
    new = client.post(
        "/v1/auth/login", json={"email": seeded_user.email, "password": NEW_PASSWORD}
    )
    assert new.status_code == 200


def test_forgot_password_does_not_reveal_accounts(client, app_and_deps):
    _, _, email = app_and_deps

    r = client.post("/v1/auth/forgot-password", json={"email": "ghost@example.com"})

    assert r.status_code == 200
    assert r.json()["message"] == FORGOT_MESSAGE
    assert email.calls == []


def test_forgot_password_invalid_email(client):
    assert client.post("/v1/auth/forgot-password", json={"email": "x"}).status_code == 400


def test_reset_with_wrong_code_or_weak_password(client, seeded_user):
    client.post("/v1/auth/forgot-password", json={"email": seeded_user.email})

    r = client.post(
        "/v1/auth/reset-password",
        json={"email": seeded_user.email, "otp": "000000", "newPassword": NEW_PASSWORD},
    )
    assert r.status_code == 400

    r = client.post(
        "/v1/auth/reset-password",
        json={"email": seeded_user.email, "otp": "123456", "newPassword": "weak"},
    )
    assert r.status_code == 400
    assert r.json()["field"] == "newPassword"


def test_reset_for_unknown_email(client):
    r = client.post(
        "/v1/auth/verify-reset-otp", json={"email": "ghost@example.com", "otp": "123456"}
    )
    assert r.status_code == 400


def test_reset_code_stops_working_after_too_many_wrong_guesses(client, seeded_user):
    client.post("/v1/auth/forgot-password", json={"email": seeded_user.email})

    responses = [
        client.post(
            "/v1/auth/verify-reset-otp",
            json={"email": seeded_user.email, "otp": f"00000{i}"},
        )
        for i in range(5)
    ]
    assert [r.status_code for r in responses] == [400] * 5
    assert responses[-1].json()["error"] == "Too many failed attempts. Please request a new OTP."

    r = client.post(
        "/v1/auth/reset-password",
        json={"email": seeded_user.email, "otp": "123456", "newPassword": NEW_PASSWORD},
    )
    assert r.status_code == 400
    assert r.json()["error"] == "No reset token found - please request a new OTP"

    login = client.post(
        "/v1/auth/login", json={"email": seeded_user.email, "password": NEW_PASSWORD}
    )
    assert login.status_code == 401


def test_forgot_password_is_limited_per_ip(client):
    for i in range(5):
        r = client.post("/v1/auth/forgot-password", json={"email": f"ghost{i}@example.com"})
        assert r.status_code == 200

    r = client.post("/v1/auth/forgot-password", json={"email": "ghost9@example.com"})

    assert r.status_code == 429
    assert r.json() == {
        "success": False,
        "error": "Too many password reset requests from this IP. Try again in 15 minutes.",
        "code": "RATE_LIMITED",
    }
    assert r.headers["retry-after"] == "900"
