import time

from caprep.infrastructure.security.tokens import TokenService
from tests.conftest import STRONG_PASSWORD


def _login(client, email="student@example.com", password=STRONG_PASSWORD, ip=None):
    headers = {"x-forwarded-for": ip} if ip else {}
    return client.post(
        "/v1/auth/login", json={"email": email, "password": password}, headers=headers
    )


def test_login_and_me(client, seeded_user):
    r = _login(client)
    assert r.status_code == 200
    data = r.json()
    assert data["user"] == {
        "id": "u1",
        "fullName": "Test Student",
        "email": "student@example.com",
        "role": "user",
    }

    me = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "student@example.com"
    assert me.json()["fullName"] == "Test Student"


def test_login_failures(client, seeded_user):
    assert _login(client, password="Wr0ng!Pass").status_code == 401
    r = _login(client, email="ghost@example.com")
    assert r.status_code == 401
    assert r.json()["code"] == "EMAIL_NOT_REGISTERED"
    assert _login(client, email="ghost").status_code == 400


def test_login_lockout(client, seeded_user):
    for _ in range(5):
        assert _login(client, password="Wr0ng!Pass", ip="1.2.3.4").status_code == 401

    r = _login(client, ip="1.2.3.4")
    assert r.status_code == 429
    assert "Too many failed login attempts" in r.json()["error"]

    # a different client address is tracked separately
    assert _login(client, ip="5.6.7.8").status_code == 200


def test_me_requires_a_valid_token(client, seeded_user, settings):
    r = client.get("/v1/auth/me")
    assert r.status_code == 401
    assert r.json()["code"] == "NO_TOKEN"

    r = client.get("/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["code"] == "INVALID_TOKEN"

    expired = TokenService(
        secret=settings.jwt_secret, clock=lambda: time.time() - 2 * 86400
    ).issue(seeded_user)
    r = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {expired.token}"})
    assert r.status_code == 401
    assert r.json()["code"] == "TOKEN_EXPIRED"


def test_me_for_deleted_user(client, seeded_user, auth_headers, uow):
    headers = auth_headers(seeded_user)
    del uow.users.by_id[seeded_user.id]

    r = client.get("/v1/auth/me", headers=headers)
    assert r.status_code == 401
    assert r.json()["error"] == "User not found"


def test_refresh_with_refresh_token(client, seeded_user, state):
    pair = state.tokens.issue(seeded_user)

    r = client.post("/v1/auth/refresh-token", json={"refreshToken": pair.refresh_token})
    assert r.status_code == 200
    assert r.json()["message"] == "Token refreshed successfully"
    assert state.tokens.decode_access(r.json()["token"])["id"] == "u1"


def test_refresh_with_recently_expired_access_token(client, seeded_user, settings):
    expired = TokenService(
        secret=settings.jwt_secret, clock=lambda: time.time() - 2 * 86400
    ).issue(seeded_user)

    r = client.post(
        "/v1/auth/refresh-token", headers={"Authorization": f"Bearer {expired.token}"}
    )
    assert r.status_code == 200


def test_refresh_rejections(client, seeded_user, auth_headers):
    r = client.post("/v1/auth/refresh-token")
    assert r.status_code == 401
    assert r.json()["code"] == "AUTH_REQUIRED"

    r = client.post(
        "/v1/auth/refresh-token",
        json={"refreshToken": "garbage"},
        headers=auth_headers(seeded_user),
    )
    assert r.status_code == 401
    assert r.json()["code"] == "INVALID_REFRESH_TOKEN"


def test_lockout_ignores_addresses_prepended_by_the_caller(client, seeded_user):
    for i in range(5):
        spoofed = f"10.0.0.{i}, 1.2.3.4"
        assert _login(client, password="Wr0ng!Pass", ip=spoofed).status_code == 401

    assert _login(client, ip="1.2.3.4").status_code == 429


def test_login_is_limited_per_ip(client, seeded_user):
    for i in range(10):
        assert _login(client, email=f"ghost{i}@example.com", ip="9.9.9.9").status_code == 401

    r = _login(client, email="ghost10@example.com", ip="9.9.9.9")
    assert r.status_code == 429
    assert r.json()["code"] == "RATE_LIMITED"
    assert r.json()["error"] == "Too many login attempts from this IP. Try again in 15 minutes."

    assert _login(client, ip="8.8.8.8").status_code == 200
