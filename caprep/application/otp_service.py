from __future__ import annotations

import logging
import time
from typing import Callable

import caprep.domain.services as domain_services
from caprep.domain.errors import (
    EmailSendFailed,
    InvalidOtp,
    OtpAttemptsExhausted,
    OtpExpired,
    OtpNotFound,
    RateLimitedError,
)
from caprep.domain.ports.email_port import EmailPort
from caprep.domain.ports.otp_store import (
    OtpPurpose,
    OtpRecord,
    OtpStorePort,
    RateLimiterPort,
)
from caprep.domain.ports.verified_emails import VerifiedEmailStorePort
from caprep.infrastructure.email import templates

logger = logging.getLogger(__name__)


def rate_limit_key(purpose: OtpPurpose, email: str) -> str:
    return f"{purpose.value}:{email}"


class OtpService:
    """
    One-time codes proving control of an email address.

    Per (purpose, email) there is at most one active code. Issuing again
    replaces it, a match consumes it, and it dies on expiry or once
    ``max_attempts`` wrong guesses have been made.
    """

    def __init__(
        self,
        *,
        store: OtpStorePort,
        limiter: RateLimiterPort,
        verified_emails: VerifiedEmailStorePort,
        email: EmailPort,
        code_length: int = 6,
        ttl_seconds: int = 15 * 60,
        max_attempts: int = 5,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._limiter = limiter
        self._verified = verified_emails
        self._email = email
        self._code_length = code_length
        self._ttl = ttl_seconds
        self._max_attempts = max_attempts
        self._clock = clock

    async def issue(self, email: str, purpose: OtpPurpose = OtpPurpose.REGISTRATION) -> None:
        email = domain_services.normalize_email(email)
        if not self._limiter.hit(rate_limit_key(purpose, email)):
            raise RateLimitedError(
                "Rate limit exceeded. Please try again in 15 minutes.",
                retry_after_seconds=int(getattr(self._limiter, "window_seconds", 0)),
            )

        code = domain_services.generate_numeric_code(self._code_length)
        salt_b64, digest_b64 = domain_services.make_code_digest(code)
        now = self._clock()
        record = OtpRecord(
            salt_b64=salt_b64,
            digest_b64=digest_b64,
            created_at=now,
            expires_at=now + self._ttl,
        )
        self._store.put(purpose, email, record)
        logger.info("otp issued", extra={"purpose": purpose.value})

        subject, html, text = templates.registration_otp(email, code, self._ttl // 60)
        result = await self._email.send(to=email, subject=subject, html=html, text=text)
        if not result.success:
            # only drop the code if a concurrent issue has not replaced it meanwhile
            if self._store.get(purpose, email) is record:
                self._store.delete(purpose, email)
            logger.error(
                "otp email failed", extra={"purpose": purpose.value, "kind": result.error_kind}
            )
            raise EmailSendFailed(
                result.error or "Failed to send OTP email. Please try again later.",
                kind=result.error_kind or "SEND_FAILED",
            )

    def verify(
        self, email: str, code: str, purpose: OtpPurpose = OtpPurpose.REGISTRATION
    ) -> None:
        email = domain_services.normalize_email(email)
        record = self._store.get(purpose, email)
        if record is None:
            raise OtpNotFound()
        if record.is_expired(self._clock()):
            self._store.delete(purpose, email)
            raise OtpExpired()
        if record.attempts >= self._max_attempts:
            self._store.delete(purpose, email)
            raise OtpAttemptsExhausted()
        if not domain_services.verify_code_digest(code, record.salt_b64, record.digest_b64):
            record.attempts += 1
            self._store.put(purpose, email, record)
            raise InvalidOtp()

        self._store.delete(purpose, email)
        self._limiter.clear(rate_limit_key(purpose, email))
        if purpose is OtpPurpose.REGISTRATION:
            self._verified.mark(email)
        logger.info("otp verified", extra={"purpose": purpose.value})
