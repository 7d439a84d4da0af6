import asyncio
import logging
import random
from typing import Annotated, Awaitable, Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from caprep.application.otp_service import OtpService
from caprep.container import AppState
from caprep.domain.entities import User
from caprep.domain.errors import AuthenticationError, AuthorizationError
from caprep.domain.ports.email_port import EmailPort
from caprep.domain.ports.login_throttle import LoginThrottlePort
from caprep.domain.ports.otp_store import RateLimiterPort
from caprep.domain.ports.response_cache import ResponseCachePort
from caprep.domain.ports.unit_of_work import UnitOfWorkPort
from caprep.domain.ports.verified_emails import VerifiedEmailStorePort
from caprep.infrastructure.db.pool import get_pool
from caprep.infrastructure.db.uow import PgUnitOfWork
from caprep.infrastructure.security.password import hash_password, verify_password
from caprep.infrastructure.security.tokens import TokenError, TokenService
from caprep.settings import Settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_uow() -> UnitOfWorkPort:
    return PgUnitOfWork(get_pool())


def get_uow_factory() -> Callable[[], UnitOfWorkPort]:
    # background jobs outlive the request, so they open their own unit of work
    return lambda: PgUnitOfWork(get_pool())


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_state(request: Request) -> AppState:
    # This is set in caprep.main create_app()
    return request.app.state.caprep


def get_response_cache(state: Annotated[AppState, Depends(get_state)]) -> ResponseCachePort:
    return state.response_cache


def get_token_service(state: Annotated[AppState, Depends(get_state)]) -> TokenService:
    return state.tokens


def get_verified_emails(
    state: Annotated[AppState, Depends(get_state)],
) -> VerifiedEmailStorePort:
    return state.verified_emails


def get_login_throttle(state: Annotated[AppState, Depends(get_state)]) -> LoginThrottlePort:
    return state.login_throttle


def get_reset_limiter(state: Annotated[AppState, Depends(get_state)]) -> RateLimiterPort:
    return state.reset_limiter


def get_email_port(request: Request) -> EmailPort:
    # This is set in caprep.main lifespan()
    return request.app.state.email_adapter


def get_otp_service(
    state: Annotated[AppState, Depends(get_state)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    email: Annotated[EmailPort, Depends(get_email_port)],
) -> OtpService:
    return OtpService(
        store=state.otp_store,
        limiter=state.otp_limiter,
        verified_emails=state.verified_emails,
        email=email,
        code_length=settings.otp_length,
        ttl_seconds=settings.otp_ttl_seconds,
        max_attempts=settings.otp_max_attempts,
    )


def get_hash_password() -> Callable[..., str]:
    return hash_password


def get_verify_password() -> Callable[[str, str], bool]:
    return verify_password


def get_login_delay(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> Callable[[], Awaitable[None]]:
    low, high = settings.login_delay_min_ms, settings.login_delay_max_ms

    async def delay() -> None:
        await asyncio.sleep(random.uniform(low, max(low, high)) / 1000)

    return delay


def client_ip(request: Request, trusted_proxy_count: int = 0) -> str | None:
    """
    Address of the caller. Each trusted proxy appends the address it saw to
    X-Forwarded-For, so the client is ``trusted_proxy_count`` entries from
    the right. Anything further left is caller-supplied and ignored.
    """
    if trusted_proxy_count > 0:
        forwarded = request.headers.get("x-forwarded-for", "")
        hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
        if len(hops) >= trusted_proxy_count:
            return hops[-trusted_proxy_count]
    return request.client.host if request.client else None


def get_client_ip(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> str | None:
    return client_ip(request, settings.trusted_proxy_count)


def get_bearer_token(
    auth: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str | None:
    if auth is None or not auth.credentials:
        return None
    return auth.credentials


async def get_current_user(
    token: Annotated[str | None, Depends(get_bearer_token)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    uow: Annotated[UnitOfWorkPort, Depends(get_uow)],
) -> User:
    if token is None:
        raise AuthenticationError("No token provided, authorization denied", code="NO_TOKEN")
    try:
        claims = tokens.decode_access(token)
    except TokenError as e:
        raise AuthenticationError(e.message, code=e.code)

    async with uow as tx:
        user = await tx.users.get_by_id(str(claims["id"]))
    if user is None:
        raise AuthenticationError("User not found", code="USER_NOT_FOUND")
    return user


async def require_admin(
    request: Request,
    user: Annotated[User, Depends(get_current_user)],
) -> User:
    if not user.is_admin:
        logger.warning(
            "non-admin access attempt",
            extra={"user_id": user.id, "path": request.url.path},
        )
        raise AuthorizationError("Admin access required", code="FORBIDDEN")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_admin)]
