from __future__ import annotations

from dataclasses import dataclass

from caprep.domain.ports.login_throttle import LoginThrottlePort
from caprep.domain.ports.otp_store import OtpStorePort, RateLimiterPort
from caprep.domain.ports.response_cache import ResponseCachePort
from caprep.domain.ports.verified_emails import VerifiedEmailStorePort
from caprep.infrastructure.housekeeping.sweeper import PeriodicSweeper
from caprep.infrastructure.memory.login_throttle import InMemoryLoginThrottle
from caprep.infrastructure.memory.otp_store import InMemoryOtpStore
from caprep.infrastructure.memory.rate_limiter import SlidingWindowRateLimiter
from caprep.infrastructure.memory.response_cache import InMemoryResponseCache
from caprep.infrastructure.security.tokens import TokenService, parse_duration
from caprep.infrastructure.storage.verified_emails import FileVerifiedEmailStore
from caprep.settings import Settings


@dataclass
class AppState:
    """Process-local state shared by every request of one app instance."""

    response_cache: ResponseCachePort
    otp_store: OtpStorePort
    otp_limiter: RateLimiterPort
    reset_limiter: RateLimiterPort
    verified_emails: VerifiedEmailStorePort
    login_throttle: LoginThrottlePort
    tokens: TokenService
    sweeper: PeriodicSweeper


def build_token_service(settings: Settings) -> TokenService:
    return TokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        access_ttl_seconds=parse_duration(settings.jwt_expires_in),
        refresh_secret=settings.jwt_refresh_secret or None,
        refresh_ttl_seconds=parse_duration(settings.jwt_refresh_expires_in),
        access_refresh_grace_seconds=(
            parse_duration(settings.access_refresh_grace) if settings.access_refresh_grace else None
        ),
    )


def build_state(settings: Settings) -> AppState:
    state = AppState(
        response_cache=InMemoryResponseCache(),
        otp_store=InMemoryOtpStore(retention_seconds=2 * settings.otp_ttl_seconds),
        otp_limiter=SlidingWindowRateLimiter(
            limit=settings.otp_rate_limit, window_seconds=settings.otp_rate_window_seconds
        ),
        reset_limiter=SlidingWindowRateLimiter(
            limit=settings.otp_rate_limit, window_seconds=settings.otp_rate_window_seconds
        ),
        verified_emails=FileVerifiedEmailStore(
            settings.verified_emails_path,
            retention_seconds=settings.verified_email_ttl_seconds,
        ),
        login_throttle=InMemoryLoginThrottle(
            max_attempts=settings.login_max_attempts,
            lockout_seconds=settings.login_lockout_seconds,
        ),
        tokens=build_token_service(settings),
        sweeper=PeriodicSweeper(interval=settings.sweep_interval_seconds),
    )
    state.sweeper.register("response_cache", state.response_cache.sweep)
    state.sweeper.register("otp_store", state.otp_store.sweep)
    state.sweeper.register("otp_rate_limit", state.otp_limiter.sweep)
    state.sweeper.register("reset_rate_limit", state.reset_limiter.sweep)
    state.sweeper.register("verified_emails", state.verified_emails.sweep)
    state.sweeper.register("login_throttle", state.login_throttle.sweep)
    return state
