"""
Per-IP request limits.

One limiter serves the process. ``application_limits`` is a single budget
shared by every route; the auth endpoints carry their own tighter limits
on top. Counters live in memory, like the rest of the process-local state.
"""

from fastapi import FastAPI, Request
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware

from caprep.presentation.dependencies import client_ip
from caprep.settings import Settings, get_settings


def rate_limit_key(request: Request) -> str:
    settings: Settings = request.app.state.settings
    return client_ip(request, settings.trusted_proxy_count) or "unknown"


_settings = get_settings()

limiter = Limiter(
    key_func=rate_limit_key,
    application_limits=[_settings.api_rate_limit],
    strategy="fixed-window",
    enabled=_settings.rate_limit_enabled,
)

login_limit = limiter.limit(
    _settings.login_rate_limit,
    error_message="Too many login attempts from this IP. Try again in 15 minutes.",
)
send_otp_limit = limiter.limit(
    _settings.send_otp_rate_limit,
    error_message="Too many OTP requests from this IP. Try again in 15 minutes.",
)
forgot_password_limit = limiter.limit(
    _settings.forgot_password_rate_limit,
    error_message="Too many password reset requests from this IP. Try again in 15 minutes.",
)


def install_rate_limits(app: FastAPI, settings: Settings) -> None:
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
