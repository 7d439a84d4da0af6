from __future__ import annotations


class DomainError(Exception):
    """Base class for all domain-level errors.

    ``message`` is safe to show to a client, ``code`` is a machine-readable
    subtype and ``field`` names the offending input when there is one.
    """

    def __init__(
        self,
        message: str = "",
        *,
        code: str | None = None,
        field: str | None = None,
        redirect: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or ""
        self.code = code
        self.field = field
        self.redirect = redirect


class ValidationError(DomainError):
    """Malformed or unacceptable input."""


class NotFoundError(DomainError):
    """Requested resource does not exist."""


class AuthenticationError(DomainError):
    """Missing, invalid or expired credential."""


class AuthorizationError(DomainError):
    """Authenticated, but the role does not allow the action."""


class ConflictError(DomainError):
    """Resource already exists."""


class RateLimitedError(DomainError):
    """Too many requests for this subject."""

    def __init__(self, message: str = "", *, retry_after_seconds: int = 0, **kw) -> None:
        super().__init__(message, **kw)
        self.retry_after_seconds = retry_after_seconds


class UpstreamError(DomainError):
    """An external provider (email, storage, AI) failed."""

    def __init__(self, message: str = "", *, kind: str = "UPSTREAM_ERROR", **kw) -> None:
        kw.setdefault("code", kind)
        super().__init__(message, **kw)
        self.kind = kind


class OtpNotFound(ValidationError):
    """OTP not found. Please request a new OTP."""


class OtpExpired(ValidationError):
    """OTP has expired. Please request a new OTP."""


class OtpAttemptsExhausted(ValidationError):
    """Too many failed attempts. Please request a new OTP."""


class InvalidOtp(ValidationError):
    """Invalid OTP. Please try again."""


class EmailSendFailed(UpstreamError):
    """Failed to send email. Please try again later."""

    @property
    def is_client_fault(self) -> bool:
        return self.kind in ("INVALID_EMAIL", "ERECIPIENT")


class InternalError(DomainError):
    """Something went wrong"""
