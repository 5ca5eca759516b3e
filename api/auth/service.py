"""
Auth business logic.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status

from . import repository, schemas, security

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _require_active(user_row: dict) -> None:
    if not bool(user_row.get("is_active", False)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive.")


def _to_user_response(user_row: dict) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=int(user_row["id"]),
        email=str(user_row["email"]),
        name=user_row.get("name"),
        is_active=bool(user_row["is_active"]),
        created_at=user_row["created_at"],
    )


async def _issue_token_pair(
    user_row: dict,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
    replaces_token_id: int | None = None,
) -> schemas.TokenPairResponse:
    user_id = int(user_row["id"])
    raw_refresh_token = security.build_refresh_token()

    refresh_row = await repository.insert_refresh_token(
        user_id=user_id,
        token_hash=security.hash_refresh_token(raw_refresh_token),
        expires_at=_utc_now() + timedelta(days=security.refresh_token_expire_days()),
        user_agent=user_agent,
        ip_address=ip_address,
    )
    if replaces_token_id is not None:
        await repository.set_refresh_token_replacement(
            old_token_id=replaces_token_id,
            new_token_id=int(refresh_row["id"]),
        )

    return schemas.TokenPairResponse(
        access_token=security.build_access_token(
            user_id=user_id,
            email=str(user_row["email"]),
            name=user_row.get("name"),
        ),
        refresh_token=raw_refresh_token,
    )


async def _auth_response(user_row: dict, **client_meta: str | None) -> schemas.AuthResponse:
    tokens = await _issue_token_pair(user_row, **client_meta)
    return schemas.AuthResponse(user=_to_user_response(user_row), tokens=tokens)


async def register(
    payload: schemas.RegisterRequest,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.AuthResponse:
    if await repository.get_user_by_email(payload.email) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email is already registered.")

    user_row = await repository.create_user(
        email=payload.email,
        name=payload.name,
        password_hash=security.hash_password(payload.password),
    )
    logger.info("user_registered user_id=%s", user_row["id"])
    return await _auth_response(user_row, user_agent=user_agent, ip_address=ip_address)


async def login(
    payload: schemas.LoginRequest,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.AuthResponse:
    user_row = await repository.get_user_by_email(payload.email)
    if user_row is None:
        raise _unauthorized("Invalid email or password.")
    _require_active(user_row)
    if not security.verify_password(payload.password, str(user_row.get("password_hash") or "")):
        raise _unauthorized("Invalid email or password.")

    return await _auth_response(user_row, user_agent=user_agent, ip_address=ip_address)


async def _usable_refresh_token(raw_refresh_token: str) -> tuple[dict, dict]:
    """
    Resolve a presented refresh token to (token_row, user_row).
    Expired tokens and tokens of missing/inactive users are revoked on sight.
    """
    token_row = await repository.get_refresh_token_by_hash(security.hash_refresh_token(raw_refresh_token))
    if token_row is None:
        raise _unauthorized("Invalid refresh token.")
    if token_row.get("revoked_at") is not None:
        raise _unauthorized("Refresh token is revoked.")

    token_id = int(token_row["id"])
    expires_at = token_row.get("expires_at")
    if not isinstance(expires_at, datetime) or expires_at <= _utc_now():
        await repository.revoke_refresh_token_by_id(token_id)
        raise _unauthorized("Refresh token is expired.")

    user_row = await repository.get_user_by_id(int(token_row["user_id"]))
    if user_row is None or not bool(user_row.get("is_active", False)):
        await repository.revoke_refresh_token_by_id(token_id)
        raise _unauthorized("Invalid refresh token owner.")

    return token_row, user_row


async def refresh_tokens(
    payload: schemas.RefreshRequest,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.TokenPairResponse:
    incoming = (payload.refresh_token or "").strip()
    if not incoming:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="refresh_token is required.")

    token_row, user_row = await _usable_refresh_token(incoming)

    # Rotation: the presented token is single-use.
    token_id = int(token_row["id"])
    await repository.mark_refresh_token_used(token_id)
    await repository.revoke_refresh_token_by_id(token_id)

    return await _issue_token_pair(
        user_row,
        user_agent=user_agent,
        ip_address=ip_address,
        replaces_token_id=token_id,
    )


async def logout(
    payload: schemas.LogoutRequest,
    *,
    current_user_id: int | None = None,
) -> dict[str, bool]:
    refresh_token = (payload.refresh_token or "").strip()
    if refresh_token:
        await repository.revoke_refresh_token_by_hash(security.hash_refresh_token(refresh_token))
    elif current_user_id is not None:
        await repository.revoke_all_refresh_tokens_for_user(current_user_id)
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide refresh_token or authenticated user.",
        )
    return {"ok": True}


async def get_user_from_access_token(access_token: str) -> dict:
    try:
        claims = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise _unauthorized(str(exc)) from exc

    subject = str(claims.get("sub") or "").strip()
    if not subject.isdigit():
        raise _unauthorized("Invalid access token subject.")

    user_row = await repository.get_user_by_id(int(subject))
    if user_row is None:
        raise _unauthorized("User not found.")
    _require_active(user_row)
    return user_row


async def ensure_owner(user: dict) -> None:
    """
    Make sure the owning user row exists before writing records that
    reference it. Idempotent.
    """
    email = str(user.get("email") or "").strip() or "user@example.com"
    name = str(user.get("name") or "").strip() or "User"
    created = await repository.ensure_user(
        user_id=int(user["id"]),
        email=email,
        name=name,
        password_hash=security.UNUSABLE_PASSWORD_HASH,
    )
    if created:
        logger.info("owner_user_created user_id=%s", user["id"])


async def me(user_row: dict) -> schemas.UserResponse:
    return _to_user_response(user_row)
