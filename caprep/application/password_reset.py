from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

import caprep.domain.services as domain_services
from caprep.application.otp_service import rate_limit_key
from caprep.domain.entities import User
from caprep.domain.errors import (
    EmailSendFailed,
    InvalidOtp,
    OtpAttemptsExhausted,
    OtpExpired,
    OtpNotFound,
    RateLimitedError,
    ValidationError,
)
from caprep.domain.ports.email_port import EmailPort
from caprep.domain.ports.otp_store import OtpPurpose, RateLimiterPort
from caprep.domain.ports.unit_of_work import UnitOfWorkPort
from caprep.infrastructure.email import templates

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def forgot_password(
    uow: UnitOfWorkPort,
    email_port: EmailPort,
    limiter: RateLimiterPort,
    email: str | None,
    ttl_seconds: int = 600,
    now: Callable[[], datetime] = _utcnow,
) -> bool:
    """
    Store a reset code on the account and mail it.

    Returns False for unknown emails; callers answer the same way in both
    cases so the endpoint cannot be used to enumerate accounts.
    """
    normalized_email = domain_services.require_valid_email(
        email, "Please provide a valid email address"
    )
    if not limiter.hit(rate_limit_key(OtpPurpose.PASSWORD_RESET, normalized_email)):
        raise RateLimitedError(
            "Too many password reset requests. Try again in 15 minutes.",
            retry_after_seconds=int(getattr(limiter, "window_seconds", 0)),
        )

    code = domain_services.generate_numeric_code()
    async with uow as tx:
        user = await tx.users.get_by_email(normalized_email)
        if user is None:
            return False
        user.start_password_reset(
            domain_services.pack_code_digest(code),
            now() + timedelta(seconds=ttl_seconds),
        )
        await tx.users.save_password_reset(user)
        await tx.commit()

    subject, html, text = templates.password_reset_otp(
        normalized_email, code, ttl_seconds // 60
    )
    result = await email_port.send(to=normalized_email, subject=subject, html=html, text=text)
    if not result.success:
        logger.error("password reset email failed", extra={"kind": result.error_kind})
        raise EmailSendFailed(
            result.error or "Failed to send password reset email. Please try again later.",
            kind=result.error_kind or "SEND_FAILED",
        )
    return True


def _check_reset_code(user: User | None, code: str, now: datetime) -> User:
    if user is None:
        raise ValidationError("Invalid email address", field="email")
    if not user.reset_password_token:
        raise OtpNotFound("No reset token found - please request a new OTP")
    if user.reset_password_expires is None or user.reset_password_expires < now:
        raise OtpExpired("OTP has expired - please request a new OTP")
    if not domain_services.verify_packed_code_digest(code, user.reset_password_token):
        raise InvalidOtp("Invalid OTP - please check and try again")
    return user


async def _user_with_valid_code(
    tx: UnitOfWorkPort, email: str, code: str, now: datetime, max_attempts: int
) -> User:
    """
    Load the account and check its reset code. A wrong guess is counted
    and committed; the guess that reaches ``max_attempts`` burns the code.
    """
    user = await tx.users.get_by_email(domain_services.normalize_email(email))
    try:
        return _check_reset_code(user, code, now)
    except InvalidOtp:
        exhausted = user.record_failed_reset_attempt() >= max_attempts
        if exhausted:
            user.clear_password_reset()
        await tx.users.save_password_reset(user)
        await tx.commit()
        if exhausted:
            logger.warning("password reset code exhausted", extra={"user_id": user.id})
            raise OtpAttemptsExhausted() from None
        raise


async def verify_reset_otp(
    uow: UnitOfWorkPort,
    email: str | None,
    code: str | None,
    max_attempts: int = 5,
    now: Callable[[], datetime] = _utcnow,
) -> None:
    if not email or not code:
        raise ValidationError("Email and OTP are required")
    async with uow as tx:
        await _user_with_valid_code(tx, email, code, now(), max_attempts)


async def reset_password(
    uow: UnitOfWorkPort,
    hash_password: Callable[..., str],
    email: str | None,
    code: str | None,
    new_password: str | None,
    max_attempts: int = 5,
    now: Callable[[], datetime] = _utcnow,
) -> None:
    if not email or not code or not new_password:
        raise ValidationError("All fields are required")
    domain_services.require_strong_password(new_password, field="newPassword")

    async with uow as tx:
        user = await _user_with_valid_code(tx, email, code, now(), max_attempts)
        user.finish_password_reset(await asyncio.to_thread(hash_password, new_password))
        await tx.users.save_password_reset(user)
        await tx.commit()
    logger.info("password reset", extra={"user_id": user.id})
