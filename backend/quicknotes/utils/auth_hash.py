"""Password hashing helpers using passlib.

`build_password_context` returns the CryptContext used by the sign-up and
sign-in flow. bcrypt is preferred; the cost can be set with the
`bcrypt_rounds` setting. When the bcrypt backend is missing or broken the
context falls back to pbkdf2_sha256 with a warning.
"""
from __future__ import annotations

import warnings
from typing import Optional

from passlib.context import CryptContext


def build_password_context(rounds: Optional[int] = None) -> CryptContext:
    try:
        if rounds:
            ctx = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
        else:
            ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")
        ctx.hash("bcrypt-self-check")
        return ctx
    except Exception as exc:
        warnings.warn(
            "bcrypt backend not available or failed to initialize; falling back to pbkdf2_sha256. "
            f"Original error: {exc}",
            RuntimeWarning,
        )
    if rounds:
        # bcrypt cost is log2; pbkdf2 wants an iteration count
        return CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto", pbkdf2_sha256__rounds=max(1000, 2**rounds))
    return CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(context: CryptContext, plain: str) -> str:
    """Hash a plaintext password and return the encoded hash string."""
    if plain is None:
        raise ValueError("Password must not be None")
    return context.hash(plain)


def verify_password(context: CryptContext, plain: str, hashed: str) -> bool:
    """Verify a plaintext password against a stored hash.

    Returns True if the password matches, False otherwise.
    """
    if plain is None or hashed is None:
        return False
    try:
        return context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False
