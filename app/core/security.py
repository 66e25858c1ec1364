"""
Secret generation and password hashing (bcrypt).
"""

from __future__ import annotations

import secrets
import string

from passlib.context import CryptContext

from app.core.config import settings
from app.core.exceptions import InvalidArgument

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

_ALPHABET = string.ascii_letters + string.digits


# ── Secrets ─────────────────────────────────────────────────────────
def generate_secure_string(length: int) -> str:
    """Return *length* characters drawn uniformly from ``[A-Za-z0-9]``.

    ``secrets.choice`` samples from the OS CSPRNG without modulo bias.
    """
    if length <= 0:
        raise InvalidArgument("Length must be a positive number.")
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


# ── Passwords ───────────────────────────────────────────────────────
def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str | None) -> bool:
    """Constant-time check of *plain* against a stored bcrypt hash.

    Anything that is not a recognised hash verifies as ``False``.
    """
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False


# Verified when the looked-up account does not exist, so both login
# failure paths pay for one bcrypt round.
_DUMMY_HASH = get_password_hash("dummy-password-for-timing-equalisation")


def burn_password_check(plain: str) -> None:
    pwd_context.verify(plain, _DUMMY_HASH)
