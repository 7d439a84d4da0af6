from __future__ import annotations

import asyncio
import logging
from typing import Callable

import caprep.domain.services as domain_services
from caprep.application.otp_service import OtpService
from caprep.domain.entities import User
from caprep.domain.errors import ConflictError, ValidationError
from caprep.domain.ports.unit_of_work import UnitOfWorkPort
from caprep.domain.ports.verified_emails import VerifiedEmailStorePort
from caprep.infrastructure.security.tokens import TokenPair, TokenService

logger = logging.getLogger(__name__)


async def send_registration_otp(
    uow: UnitOfWorkPort,
    otp_service: OtpService,
    email: str | None,
) -> str:
    normalized_email = domain_services.require_valid_email(
        email, "Please provide a valid email address"
    )
    async with uow as tx:
        if await tx.users.exists_by_email(normalized_email):
            raise ConflictError(
                "Email already registered", field="email", redirect="/login"
            )
    await otp_service.issue(normalized_email)
    return normalized_email


def verify_registration_otp(
    otp_service: OtpService, email: str | None, code: str | None
) -> None:
    if not email or not code:
        raise ValidationError("Email and OTP are required")
    otp_service.verify(email, code)


async def register_user(
    uow: UnitOfWorkPort,
    verified_emails: VerifiedEmailStorePort,
    tokens: TokenService,
    hash_password: Callable[..., str],
    full_name: str | None,
    email: str | None,
    password: str | None,
) -> tuple[User, TokenPair]:
    if not full_name or not email or not password:
        raise ValidationError("All fields are required")
    normalized_email = domain_services.require_valid_email(email)
    domain_services.require_strong_password(password)
    full_name = domain_services.require_full_name(full_name)

    async with uow as tx:
        if await tx.users.exists_by_email(normalized_email):
            raise ConflictError(
                "Email already registered", field="email", redirect="/login"
            )
        if not verified_emails.is_verified(normalized_email):
            raise ValidationError(
                "Email verification required. Please verify your email with OTP first.",
                field="email",
                redirect="/register",
            )
        password_hash = await asyncio.to_thread(hash_password, password)
        user = await tx.users.create(
            User(
                email=normalized_email,
                full_name=full_name,
                role="user",
                password_hash=password_hash,
            )
        )
        await tx.commit()

    verified_emails.remove(normalized_email)
    logger.info("user registered", extra={"user_id": user.id})
    return user, tokens.issue(user)
