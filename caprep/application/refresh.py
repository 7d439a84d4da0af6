from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from caprep.domain.entities import User
from caprep.domain.errors import AuthenticationError
from caprep.domain.ports.unit_of_work import UnitOfWorkPort
from caprep.infrastructure.security.tokens import TokenError, TokenPair, TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshedViaRefreshToken:
    user: User


@dataclass(frozen=True)
class RefreshedViaAccessToken:
    user: User


@dataclass(frozen=True)
class Rejected:
    code: str
    message: str


RefreshOutcome = Union[RefreshedViaRefreshToken, RefreshedViaAccessToken, Rejected]


async def _load_user(uow: UnitOfWorkPort, user_id: str) -> User | None:
    async with uow as tx:
        return await tx.users.get_by_id(str(user_id))


async def resolve_refresh(
    uow: UnitOfWorkPort,
    tokens: TokenService,
    *,
    refresh_token: str | None,
    bearer_token: str | None,
) -> RefreshOutcome:
    """
    Decide who is asking for new tokens.

    A supplied refresh token is authoritative when refresh tokens are
    enabled: if it fails, the request is rejected without looking at the
    bearer. Otherwise an access token is accepted on signature alone, so a
    recently expired one can still be exchanged.
    """
    if refresh_token and tokens.refresh_enabled:
        try:
            claims = tokens.decode_refresh(refresh_token)
        except TokenError as e:
            return Rejected("INVALID_REFRESH_TOKEN", e.message)
        user = await _load_user(uow, claims["id"])
        if user is None:
            return Rejected("INVALID_REFRESH_TOKEN", "Invalid or expired refresh token")
        return RefreshedViaRefreshToken(user)

    if bearer_token:
        try:
            claims = tokens.decode_access_for_refresh(bearer_token)
        except TokenError as e:
            return Rejected(e.code, e.message)
        user = await _load_user(uow, claims["id"])
        if user is not None:
            return RefreshedViaAccessToken(user)

    return Rejected("AUTH_REQUIRED", "Refresh token or valid access token required")


async def refresh_tokens(
    uow: UnitOfWorkPort,
    tokens: TokenService,
    *,
    refresh_token: str | None,
    bearer_token: str | None,
) -> tuple[User, TokenPair]:
    outcome = await resolve_refresh(
        uow, tokens, refresh_token=refresh_token, bearer_token=bearer_token
    )
    if isinstance(outcome, Rejected):
        raise AuthenticationError(outcome.message, code=outcome.code)
    logger.info(
        "tokens refreshed",
        extra={"user_id": outcome.user.id, "via": type(outcome).__name__},
    )
    return outcome.user, tokens.issue(outcome.user)
