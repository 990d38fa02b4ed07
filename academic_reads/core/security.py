"""Password hashing and session token helpers."""

from datetime import datetime, timedelta
from functools import lru_cache
from typing import Any, Optional
from uuid import uuid4

import bcrypt
from jose import JWTError, jwt

from academic_reads.core.config import settings

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password with a fresh salt (``bcrypt_rounds`` work factor)."""
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=settings.bcrypt_rounds))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time check of a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


@lru_cache
def _dummy_password_hash() -> str:
    return hash_password(uuid4().hex)


def verify_dummy_password(plain_password: str) -> bool:
    """Run a full bcrypt check with no account behind it. Always False."""
    verify_password(plain_password, _dummy_password_hash())
    return False


def create_access_token(
    data: dict[str, Any], expires_delta: Optional[timedelta] = None
) -> tuple[str, datetime]:
    """Sign a JWT carrying ``data`` plus ``exp`` and a random ``jti``.

    Returns the encoded token together with its expiry instant (UTC, naive).
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire, "jti": uuid4().hex})
    token = jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, expire


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """Return the token payload, or ``None`` if it is malformed, forged or expired."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
