# caprep/domain/services.py
from __future__ import annotations

import base64
import hashlib
import hmac
import os
import re
import secrets

from caprep.domain.errors import ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_RE = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$"
)
FULL_NAME_RE = re.compile(r"^[A-Za-z ]+$")

PASSWORD_RULES = (
    "Password must be at least 8 characters long and include at least one "
    "uppercase letter, one lowercase letter, one number, and one special "
    "character (@$!%*?&)"
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_email(email: str | None) -> bool:
    return bool(email) and EMAIL_RE.match(email.strip()) is not None


def require_valid_email(email: str | None, message: str = "Invalid email format") -> str:
    if not is_valid_email(email):
        raise ValidationError(message, field="email")
    return normalize_email(email)


def require_strong_password(password: str | None, field: str = "password") -> str:
    if not password or PASSWORD_RE.match(password) is None:
        raise ValidationError(PASSWORD_RULES, field=field)
    return password


def require_full_name(full_name: str | None) -> str:
    if not full_name or FULL_NAME_RE.match(full_name) is None:
        raise ValidationError(
            "Full name can only contain letters and spaces", field="fullName"
        )
    return full_name.strip()


def generate_numeric_code(length: int = 6) -> str:
    """Zero-padded numeric code from the OS CSPRNG."""
    return f"{secrets.randbelow(10**length):0{length}d}"


def secure_compare(a: str, b: str) -> bool:
    """
    Constant-time comparison for secrets.
    Accepts strings; falls back to bytes if needed.
    """
    try:
        return hmac.compare_digest(a, b)
    except TypeError:
        return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def _sha256_salt_plus_code(salt: bytes, code: str) -> bytes:
    h = hashlib.sha256()
    h.update(salt)
    h.update(code.strip().encode("utf-8"))
    return h.digest()


def make_code_digest(code: str) -> tuple[str, str]:
    """
    Return (salt_b64, digest_b64) where digest = SHA256(salt || code).
    """
    salt = os.urandom(16)
    digest = _sha256_salt_plus_code(salt, code)
    return (
        base64.b64encode(salt).decode("utf-8"),
        base64.b64encode(digest).decode("utf-8"),
    )


def verify_code_digest(code: str, salt_b64: str, digest_b64: str) -> bool:
    """
    Verify code against (salt_b64, digest_b64) from make_code_digest().
    """
    try:
        salt = base64.b64decode(salt_b64.encode("utf-8"), validate=True)
        expected = base64.b64decode(digest_b64.encode("utf-8"), validate=True)
    except Exception:
        return False

    calc = _sha256_salt_plus_code(salt, code)
    return hmac.compare_digest(calc, expected)


def pack_code_digest(code: str) -> str:
    """Single-column form ``salt$digest`` for storing next to a user record."""
    salt_b64, digest_b64 = make_code_digest(code)
    return f"{salt_b64}${digest_b64}"


def verify_packed_code_digest(code: str, packed: str) -> bool:
    salt_b64, sep, digest_b64 = packed.partition("$")
    if not sep:
        return False
    return verify_code_digest(code, salt_b64, digest_b64)
