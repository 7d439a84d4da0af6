from __future__ import annotations

import asyncio
import logging
import math
from typing import Awaitable, Callable

import caprep.domain.services as domain_services
from caprep.domain.entities import User
from caprep.domain.errors import (
    AuthenticationError,
    InternalError,
    NotFoundError,
    RateLimitedError,
    ValidationError,
)
from caprep.domain.ports.login_throttle import LoginThrottlePort
from caprep.domain.ports.unit_of_work import UnitOfWorkPort
from caprep.infrastructure.security.tokens import TokenPair, TokenService

logger = logging.getLogger(__name__)

# consecutive failures at which we start warning about a likely guessing attempt
SUSPICIOUS_FAILURES = 3


def throttle_key(email: str, client_ip: str | None) -> str:
    return f"{email}:{client_ip or 'unknown'}"


async def login_user(
    uow: UnitOfWorkPort,
    throttle: LoginThrottlePort,
    tokens: TokenService,
    verify_password: Callable[[str, str], bool],
    delay: Callable[[], Awaitable[None]],
    email: str | None,
    password: str | None,
    client_ip: str | None,
) -> tuple[User, TokenPair]:
    normalized_email = domain_services.require_valid_email(email)
    if not password or not password.strip():
        raise ValidationError("Password is required", field="password")

    key = throttle_key(normalized_email, client_ip)
    remaining = throttle.blocked_for(key)
    if remaining > 0:
        minutes = math.ceil(remaining / 60)
        raise RateLimitedError(
            f"Too many failed login attempts. Please try again in {minutes} minutes.",
            retry_after_seconds=math.ceil(remaining),
        )

    async with uow as tx:
        user = await tx.users.get_by_email(normalized_email)

    # same pause on hit and miss so response time says little about the account
    await delay()

    if user is None:
        throttle.record_failure(key)
        logger.info("login failed: email not registered")
        raise AuthenticationError(
            "This email is not registered. Please register as a new user.",
            code="EMAIL_NOT_REGISTERED",
        )

    try:
        matches = await asyncio.to_thread(verify_password, password, user.password_hash)
    except (ValueError, TypeError) as e:
        logger.error("password comparison error", extra={"error": str(e)})
        throttle.record_failure(key)
        raise InternalError("Authentication error")

    if not matches:
        failures = throttle.record_failure(key)
        if failures >= SUSPICIOUS_FAILURES:
            logger.warning(
                "multiple failed login attempts",
                extra={"attempts": failures, "ip": client_ip},
            )
        raise AuthenticationError("Invalid credentials")

    throttle.record_success(key)
    logger.info("login successful", extra={"user_id": user.id})
    return user, tokens.issue(user)


async def get_profile(uow: UnitOfWorkPort, user_id: str) -> User:
    async with uow as tx:
        user = await tx.users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user
