"""
Password hashing (bcrypt), access JWTs (PyJWT) and opaque refresh tokens.

- JWT_SECRET / JWT_ALG: signing key and algorithm for access tokens
- ACCESS_TOKEN_EXPIRE_MIN: access token lifetime
- REFRESH_TOKEN_EXPIRE_DAYS: refresh token lifetime
"""

from __future__ import annotations

import hashlib
import logging
import os
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

import bcrypt
import jwt

DEV_JWT_SECRET = "dev-change-this-secret"
ACCESS_TOKEN_TYPE = "access"

# Stored for accounts created implicitly (e.g. the owner of a sheet import).
# It is not a valid bcrypt hash, so password login is impossible for them.
UNUSABLE_PASSWORD_HASH = "!"

logger = logging.getLogger(__name__)


class AuthSecurityError(RuntimeError):
    pass


def _env_positive_int(name: str, default: int) -> int:
    try:
        value = int(os.environ.get(name, "").strip() or default)
    except ValueError:
        return default
    return value if value > 0 else default


@lru_cache(maxsize=1)
def _warn_dev_secret() -> None:
    logger.warning("JWT_SECRET is not set; using the development secret.")


def _signing_params() -> tuple[str, str]:
    secret = os.environ.get("JWT_SECRET", "").strip()
    if not secret:
        _warn_dev_secret()
        secret = DEV_JWT_SECRET
    return secret, os.environ.get("JWT_ALG", "").strip() or "HS256"


def refresh_token_expire_days() -> int:
    return _env_positive_int("REFRESH_TOKEN_EXPIRE_DAYS", 30)


def hash_password(plain_password: str) -> str:
    if not plain_password:
        raise AuthSecurityError("Password is empty.")
    return bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash or password_hash == UNUSABLE_PASSWORD_HASH:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def build_access_token(*, user_id: int, email: str, name: str | None = None) -> str:
    secret, algorithm = _signing_params()
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=_env_positive_int("ACCESS_TOKEN_EXPIRE_MIN", 15))

    claims: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "type": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    if name:
        claims["name"] = name
    return jwt.encode(claims, secret, algorithm=algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Access token is empty.")

    secret, algorithm = _signing_params()
    try:
        claims = jwt.decode(raw, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise AuthSecurityError("Access token is expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid access token.") from exc

    if str(claims.get("type") or "").strip().lower() != ACCESS_TOKEN_TYPE:
        raise AuthSecurityError("Token is not an access token.")
    return claims


def build_refresh_token() -> str:
    return secrets.token_urlsafe(48)


def hash_refresh_token(raw_refresh_token: str) -> str:
    if not raw_refresh_token:
        raise AuthSecurityError("Refresh token is empty.")
    return hashlib.sha256(raw_refresh_token.encode("utf-8")).hexdigest()
