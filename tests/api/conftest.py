import pytest
from fastapi.testclient import TestClient

from caprep.domain.entities import User
from caprep.main import create_app
from caprep.presentation.dependencies import (
    get_email_port,
    get_hash_password,
    get_login_delay,
    get_uow,
    get_uow_factory,
    get_verify_password,
)
from caprep.presentation.rate_limits import limiter
from caprep.settings import Settings
from tests.fakes import FakeEmail, no_delay, plain_hash, plain_verify


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        app_env="test",
        jwt_secret="test-access-secret",
        jwt_refresh_secret="test-refresh-secret",
        verified_emails_path=str(tmp_path / "verified_emails.json"),
        login_delay_min_ms=0,
        login_delay_max_ms=0,
        trusted_proxy_count=1,
    )


@pytest.fixture(autouse=True)
def fresh_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture()
def app_and_deps(settings, uow, email):
    app = create_app(settings)

    app.dependency_overrides[get_uow] = lambda: uow
    app.dependency_overrides[get_uow_factory] = lambda: (lambda: uow)
    app.dependency_overrides[get_email_port] = lambda: email
    app.dependency_overrides[get_hash_password] = lambda: plain_hash
    app.dependency_overrides[get_verify_password] = lambda: plain_verify
    app.dependency_overrides[get_login_delay] = lambda: no_delay

    try:
        yield app, uow, email
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app_and_deps):
    app, _, _ = app_and_deps
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def state(app_and_deps):
    app, _, _ = app_and_deps
    return app.state.caprep


@pytest.fixture()
def auth_headers(state):
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {state.tokens.issue(user).token}"}

    return _headers


@pytest.fixture()
def failing_email(app_and_deps):
    app, _, _ = app_and_deps
    broken = FakeEmail(error_kind="EAUTH")
    app.dependency_overrides[get_email_port] = lambda: broken
    return broken
