from typing import Annotated, Awaitable, Callable

from fastapi import APIRouter, Body, Depends, Request

from caprep.application.login import get_profile, login_user
from caprep.application.otp_service import OtpService
from caprep.application.password_reset import (
    forgot_password,
    reset_password,
    verify_reset_otp,
)
from caprep.application.refresh import refresh_tokens
from caprep.application.registration import (
    register_user,
    send_registration_otp,
    verify_registration_otp,
)
from caprep.domain.entities import User
from caprep.domain.ports.email_port import EmailPort
from caprep.domain.ports.login_throttle import LoginThrottlePort
from caprep.domain.ports.otp_store import RateLimiterPort
from caprep.domain.ports.unit_of_work import UnitOfWorkPort
from caprep.domain.ports.verified_emails import VerifiedEmailStorePort
from caprep.infrastructure.security.tokens import TokenPair, TokenService
from caprep.presentation.dependencies import (
    CurrentUser,
    get_app_settings,
    get_bearer_token,
    get_client_ip,
    get_email_port,
    get_hash_password,
    get_login_delay,
    get_login_throttle,
    get_otp_service,
    get_reset_limiter,
    get_token_service,
    get_uow,
    get_verified_emails,
    get_verify_password,
)
from caprep.presentation.rate_limits import (
    forgot_password_limit,
    login_limit,
    send_otp_limit,
)
from caprep.schemas.requests import (
    ForgotPasswordIn,
    LoginIn,
    RefreshIn,
    RegisterIn,
    ResetPasswordIn,
    SendOtpIn,
    VerifyOtpIn,
    VerifyResetOtpIn,
)
from caprep.schemas.responses import AuthOut, MessageOut, ProfileOut, PublicUserOut
from caprep.settings import Settings

router = APIRouter(prefix="/auth", tags=["Auth"])

Uow = Annotated[UnitOfWorkPort, Depends(get_uow)]
Tokens = Annotated[TokenService, Depends(get_token_service)]

FORGOT_PASSWORD_MESSAGE = (
    "If your email is registered, you will receive a password reset OTP"
)


def _auth_out(message: str, user: User, pair: TokenPair) -> AuthOut:
    return AuthOut(
        message=message,
        token=pair.token,
        expires=pair.expires,
        refresh_token=pair.refresh_token,
        refresh_expires=pair.refresh_expires,
        user=PublicUserOut(**user.public()),
    )


@router.post("/send-otp", response_model=MessageOut)
@send_otp_limit
async def post_send_otp(
    request: Request,
    body: SendOtpIn,
    uow: Uow,
    otp_service: Annotated[OtpService, Depends(get_otp_service)],
):
    await send_registration_otp(uow, otp_service, body.email)
    return MessageOut(message="OTP sent successfully")


@router.post("/verify-otp", response_model=MessageOut)
async def post_verify_otp(
    body: VerifyOtpIn,
    otp_service: Annotated[OtpService, Depends(get_otp_service)],
):
    verify_registration_otp(otp_service, body.email, body.otp)
    return MessageOut(message="Email verified successfully")


@router.post(
    "/register",
    status_code=201,
    response_model=AuthOut,
    response_model_exclude_none=True,
)
async def post_register(
    body: RegisterIn,
    uow: Uow,
    tokens: Tokens,
    verified_emails: Annotated[VerifiedEmailStorePort, Depends(get_verified_emails)],
    hash_password: Annotated[Callable[..., str], Depends(get_hash_password)],
):
    user, pair = await register_user(
        uow=uow,
        verified_emails=verified_emails,
        tokens=tokens,
        hash_password=hash_password,
        full_name=body.full_name,
        email=body.email,
        password=body.password,
    )
    return _auth_out("Registration successful", user, pair)


@router.post("/login", response_model=AuthOut, response_model_exclude_none=True)
@login_limit
async def post_login(
    request: Request,
    body: LoginIn,
    uow: Uow,
    tokens: Tokens,
    throttle: Annotated[LoginThrottlePort, Depends(get_login_throttle)],
    verify_password: Annotated[Callable[[str, str], bool], Depends(get_verify_password)],
    delay: Annotated[Callable[[], Awaitable[None]], Depends(get_login_delay)],
    client_ip: Annotated[str | None, Depends(get_client_ip)],
):
    user, pair = await login_user(
        uow=uow,
        throttle=throttle,
        tokens=tokens,
        verify_password=verify_password,
        delay=delay,
        email=body.email,
        password=body.password,
        client_ip=client_ip,
    )
    return _auth_out("Login successful", user, pair)


@router.get("/me", response_model=ProfileOut)
async def get_me(user: CurrentUser, uow: Uow):
    profile = await get_profile(uow, user.id)
    return ProfileOut(
        id=profile.id,
        full_name=profile.full_name,
        email=profile.email,
        role=profile.role,
        created_at=profile.created_at,
    )


@router.post("/refresh-token", response_model=AuthOut, response_model_exclude_none=True)
async def post_refresh_token(
    uow: Uow,
    tokens: Tokens,
    bearer_token: Annotated[str | None, Depends(get_bearer_token)],
    body: Annotated[RefreshIn | None, Body()] = None,
):
    user, pair = await refresh_tokens(
        uow,
        tokens,
        refresh_token=body.refresh_token if body else None,
        bearer_token=bearer_token,
    )
    return _auth_out("Token refreshed successfully", user, pair)


@router.post("/forgot-password", response_model=MessageOut)
@forgot_password_limit
async def post_forgot_password(
    request: Request,
    body: ForgotPasswordIn,
    uow: Uow,
    email_port: Annotated[EmailPort, Depends(get_email_port)],
    limiter: Annotated[RateLimiterPort, Depends(get_reset_limiter)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    await forgot_password(
        uow,
        email_port,
        limiter,
        body.email,
        ttl_seconds=settings.reset_otp_ttl_seconds,
    )
    return MessageOut(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/verify-reset-otp", response_model=MessageOut)
async def post_verify_reset_otp(
    body: VerifyResetOtpIn,
    uow: Uow,
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    await verify_reset_otp(uow, body.email, body.otp, max_attempts=settings.otp_max_attempts)
    return MessageOut(message="OTP verified successfully")


@router.post("/reset-password", response_model=MessageOut)
async def post_reset_password(
    body: ResetPasswordIn,
    uow: Uow,
    hash_password: Annotated[Callable[..., str], Depends(get_hash_password)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    await reset_password(
        uow,
        hash_password,
        body.email,
        body.otp,
        body.new_password,
        max_attempts=settings.otp_max_attempts,
    )
    return MessageOut(message="Password has been reset successfully")
