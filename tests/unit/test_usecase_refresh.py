import time

import pytest

from caprep.application.refresh import (
    RefreshedViaAccessToken,
    RefreshedViaRefreshToken,
    Rejected,
    resolve_refresh,
)
from caprep.infrastructure.security.tokens import TokenService

DAY = 86400


def _tokens(**kw) -> TokenService:
    kw.setdefault("secret", "access")
    kw.setdefault("refresh_secret", "refresh")
    return TokenService(**kw)


@pytest.mark.asyncio
async def test_refresh_token_path(uow, seeded_user):
    tokens = _tokens()
    pair = tokens.issue(seeded_user)

    outcome = await resolve_refresh(
        uow, tokens, refresh_token=pair.refresh_token, bearer_token=None
    )
    assert isinstance(outcome, RefreshedViaRefreshToken)
    assert outcome.user.id == seeded_user.id


@pytest.mark.asyncio
async def test_bad_refresh_token_is_final_even_with_good_bearer(uow, seeded_user):
    tokens = _tokens()
    pair = tokens.issue(seeded_user)

    outcome = await resolve_refresh(
        uow, tokens, refresh_token="garbage", bearer_token=pair.token
    )
    assert outcome == Rejected("INVALID_REFRESH_TOKEN", "Invalid or expired refresh token")


@pytest.mark.asyncio
async def test_recently_expired_access_token_is_accepted(uow, seeded_user):
    old = _tokens(clock=lambda: time.time() - 2 * DAY).issue(seeded_user)

    outcome = await resolve_refresh(uow, _tokens(), refresh_token=None, bearer_token=old.token)
    assert isinstance(outcome, RefreshedViaAccessToken)


@pytest.mark.asyncio
async def test_long_expired_access_token_is_accepted_without_grace(uow, seeded_user):
    old = _tokens(clock=lambda: time.time() - 30 * DAY).issue(seeded_user)

    outcome = await resolve_refresh(uow, _tokens(), refresh_token=None, bearer_token=old.token)
    assert isinstance(outcome, RefreshedViaAccessToken)


@pytest.mark.asyncio
async def test_access_token_past_configured_grace_is_rejected(uow, seeded_user):
    old = _tokens(clock=lambda: time.time() - 30 * DAY).issue(seeded_user)

    outcome = await resolve_refresh(
        uow,
        _tokens(access_refresh_grace_seconds=7 * DAY),
        refresh_token=None,
        bearer_token=old.token,
    )
    assert isinstance(outcome, Rejected)
    assert outcome.code == "TOKEN_EXPIRED"


@pytest.mark.asyncio
async def test_refresh_token_for_deleted_user(uow, seeded_user):
    tokens = _tokens()
    pair = tokens.issue(seeded_user)
    del uow.users.by_id[seeded_user.id]

    outcome = await resolve_refresh(uow, tokens, refresh_token=pair.refresh_token, bearer_token=None)
    assert isinstance(outcome, Rejected)
    assert outcome.code == "INVALID_REFRESH_TOKEN"


@pytest.mark.asyncio
async def test_nothing_supplied(uow):
    outcome = await resolve_refresh(uow, _tokens(), refresh_token=None, bearer_token=None)
    assert outcome.code == "AUTH_REQUIRED"
