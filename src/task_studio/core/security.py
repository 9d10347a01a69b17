"""Password hashing and bearer token helpers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Any
from uuid import uuid4

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from .config import Settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@dataclass(slots=True)
class GeneratedToken:
    """A signed access token with the metadata needed to revoke it."""

    token: str
    expires_at: datetime
    jti: str


def get_password_hash(password: str) -> str:
    """Return a hashed representation of ``password``."""

    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hashed counterpart."""

    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    *,
    subject: str | int,
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> GeneratedToken:
    """Create a signed JWT access token for the provided subject."""

    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    expire = now + expires_delta
    payload: dict[str, Any] = {
        "sub": str(subject),
        "iat": now,
        "exp": expire,
        "jti": uuid4().hex,
    }
    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return GeneratedToken(token=token, expires_at=expire, jti=payload["jti"])


def decode_token(*, token: str, settings: Settings) -> dict[str, Any]:
    """Decode a JWT access token and return its claims."""

    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


class TokenBlacklist:
    """Stores identifiers for revoked tokens until their expiration."""

    def __init__(self) -> None:
        self._revoked: dict[str, datetime] = {}
        self._lock = Lock()

    def add(self, jti: str, expires_at: datetime) -> None:
        with self._lock:
            self._purge_locked(datetime.now(timezone.utc))
            self._revoked[jti] = expires_at

    def is_revoked(self, jti: str) -> bool:
        with self._lock:
            self._purge_locked(datetime.now(timezone.utc))
            return jti in self._revoked

    def _purge_locked(self, current: datetime) -> None:
        expired = [key for key, expiry in self._revoked.items() if expiry <= current]
        for key in expired:
            self._revoked.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._revoked.clear()


_token_blacklist = TokenBlacklist()


def blacklist_token(jti: str, expires_at: datetime) -> None:
    """Register a token identifier as revoked until ``expires_at``."""

    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    _token_blacklist.add(jti, expires_at)


def is_token_blacklisted(jti: str) -> bool:
    return _token_blacklist.is_revoked(jti)


def clear_token_blacklist() -> None:
    _token_blacklist.clear()


__all__ = [
    "ExpiredSignatureError",
    "GeneratedToken",
    "JWTError",
    "TokenBlacklist",
    "blacklist_token",
    "clear_token_blacklist",
    "create_access_token",
    "decode_token",
    "get_password_hash",
    "is_token_blacklisted",
    "verify_password",
]
