"""Password hashing and verification codes."""
from __future__ import annotations

import hmac
import secrets

import bcrypt

VERIFICATION_CODE_LENGTH = 8


def encrypt_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


def generate_verification_code() -> str:
    return "".join(secrets.choice("0123456789") for _ in range(VERIFICATION_CODE_LENGTH))


def verification_code_matches(expected: str | None, submitted: str) -> bool:
    if not expected:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), submitted.encode("utf-8"))
