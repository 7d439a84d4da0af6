from __future__ import annotations

import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from jose import ExpiredSignatureError, JWTError, jwt

from caprep.domain.entities import User

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([dhms]?)\s*$")
_UNIT_SECONDS = {"d": 86400, "h": 3600, "m": 60, "s": 1, "": 1}


def parse_duration(value: str | int | float) -> int:
    """``"1d"``, ``"12h"``, ``"30m"``, ``"45s"`` or plain seconds -> seconds."""
    if isinstance(value, (int, float)):
        return int(value)
    match = _DURATION_RE.match(value)
    if not match:
        raise ValueError(f"invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _UNIT_SECONDS[unit]


class TokenError(Exception):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass(frozen=True)
class TokenPair:
    token: str
    expires: datetime
    refresh_token: str | None = None
    refresh_expires: datetime | None = None


class TokenService:
    """
    Signs and verifies access/refresh JWTs.

    Refresh tokens are only issued and accepted when a separate refresh
    secret is configured.
    """

    def __init__(
        self,
        *,
        secret: str,
        algorithm: str = "HS256",
        access_ttl_seconds: int = 86400,
        refresh_secret: str | None = None,
        refresh_ttl_seconds: int = 7 * 86400,
        access_refresh_grace_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._access_ttl = access_ttl_seconds
        self._refresh_secret = refresh_secret
        self._refresh_ttl = refresh_ttl_seconds
        self._grace = access_refresh_grace_seconds
        self._clock = clock

    @property
    def refresh_enabled(self) -> bool:
        return bool(self._refresh_secret)

    def _sign(self, claims: dict[str, Any], secret: str, ttl: int) -> tuple[str, datetime]:
        now = int(self._clock())
        exp = now + ttl
        to_encode = {**claims, "iat": now, "exp": exp}
        token = jwt.encode(to_encode, secret, algorithm=self._algorithm)
        return token, datetime.fromtimestamp(exp, tz=timezone.utc)

    def issue(self, user: User) -> TokenPair:
        token, expires = self._sign(
            {
                "id": user.id,
                "role": user.role,
                "fullName": user.full_name,
                "email": user.email,
            },
            self._secret,
            self._access_ttl,
        )
        if not self.refresh_enabled:
            return TokenPair(token=token, expires=expires)
        refresh_token, refresh_expires = self._sign(
            {"id": user.id, "type": "refresh"}, self._refresh_secret, self._refresh_ttl
        )
        return TokenPair(
            token=token,
            expires=expires,
            refresh_token=refresh_token,
            refresh_expires=refresh_expires,
        )

    def _decode(self, token: str, secret: str, *, verify_exp: bool) -> dict[str, Any]:
        # algorithms is pinned so tokens signed any other way are rejected
        return jwt.decode(
            token,
            secret,
            algorithms=[self._algorithm],
            options={"verify_exp": verify_exp},
        )

    def decode_access(self, token: str) -> dict[str, Any]:
        try:
            claims = self._decode(token, self._secret, verify_exp=True)
        except ExpiredSignatureError:
            raise TokenError("TOKEN_EXPIRED", "Token has expired")
        except JWTError:
            raise TokenError("INVALID_TOKEN", "Invalid token")
        exp = claims.get("exp")
        if not isinstance(exp, (int, float)) or self._clock() >= exp:
            raise TokenError("TOKEN_EXPIRED", "Token has expired")
        if claims.get("type") == "refresh" or not claims.get("id"):
            raise TokenError("INVALID_TOKEN", "Invalid token")
        return claims

    def decode_access_for_refresh(self, token: str) -> dict[str, Any]:
        """
        Signature check only. Expired tokens are accepted unless a refresh
        grace is configured, in which case they must be younger than it.
        """
        try:
            claims = self._decode(token, self._secret, verify_exp=False)
        except JWTError:
            raise TokenError("INVALID_TOKEN", "Invalid token")
        exp = claims.get("exp")
        if not isinstance(exp, (int, float)):
            raise TokenError("INVALID_TOKEN", "Invalid token")
        if self._grace is not None and self._clock() >= exp + self._grace:
            raise TokenError("TOKEN_EXPIRED", "Token is too old to refresh")
        if claims.get("type") == "refresh" or not claims.get("id"):
            raise TokenError("INVALID_TOKEN", "Invalid token")
        return claims

    def decode_refresh(self, token: str) -> dict[str, Any]:
        if not self.refresh_enabled:
            raise TokenError("INVALID_REFRESH_TOKEN", "Refresh tokens are not enabled")
        try:
            claims = self._decode(token, self._refresh_secret, verify_exp=True)
        except JWTError:
            raise TokenError("INVALID_REFRESH_TOKEN", "Invalid or expired refresh token")
        exp = claims.get("exp")
        if not isinstance(exp, (int, float)) or self._clock() >= exp:
            raise TokenError("INVALID_REFRESH_TOKEN", "Invalid or expired refresh token")
        if claims.get("type") != "refresh" or not claims.get("id"):
            raise TokenError("INVALID_REFRESH_TOKEN", "Invalid or expired refresh token")
        return claims
