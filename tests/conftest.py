import pytest

from caprep.domain.entities import User
from tests.fakes import FakeClock, FakeEmail, FakeUoW, plain_hash

STRONG_PASSWORD = "Str0ng!Pass"


@pytest.fixture()
def uow():
    return FakeUoW()


@pytest.fixture()
def email():
    return FakeEmail()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def hash_password_stub():
    return plain_hash


@pytest.fixture()
def seeded_user(uow) -> User:
    return uow.users.seed(
        User(
            id="u1",
            email="student@example.com",
            full_name="Test Student",
            password_hash=plain_hash(STRONG_PASSWORD),
        )
    )


@pytest.fixture()
def seeded_admin(uow) -> User:
    return uow.users.seed(
        User(
            id="admin-1",
            email="admin@example.com",
            full_name="Site Admin",
            role="admin",
            password_hash=plain_hash(STRONG_PASSWORD),
        )
    )


@pytest.fixture(autouse=True)
def patch_code(monkeypatch):
    """
    Make generated OTP codes deterministic in all tests.
    You can override in a specific test by re-monkeypatching.
    """
    from caprep.domain import services as domain_services

    monkeypatch.setattr(domain_services, "generate_numeric_code", lambda length=6: "123456")
    yield
