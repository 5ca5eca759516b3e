"""
Auth persistence helpers (users + refresh tokens).
"""

from __future__ import annotations

from datetime import datetime, timezone

from core import db

_USER_COLUMNS = "id, email, name, password_hash, is_active, created_at, updated_at"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def create_user(
    *,
    email: str,
    password_hash: str,
    name: str | None = None,
    is_active: bool = True,
) -> dict:
    row = await db.fetch_one(
        """
        INSERT INTO users (email, name, password_hash, is_active)
        VALUES ($1, $2, $3, $4)
        RETURNING id, email, name, is_active, created_at, updated_at
        """,
        normalize_email(email),
        (name or "").strip() or None,
        password_hash,
        is_active,
    )
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def ensure_user(*, user_id: int, email: str, name: str | None, password_hash: str) -> bool:
    """
    Create the user row if it does not exist yet.

    Returns True when a row was inserted, False when it already existed.
    """
    row = await db.fetch_one(
        """
        INSERT INTO users (id, email, name, password_hash)
        VALUES ($1, $2, $3, $4)
        ON CONFLICT DO NOTHING
        RETURNING id
        """,
        user_id,
        normalize_email(email),
        name,
        password_hash,
    )
    return row is not None


async def get_user_by_email(email: str) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {_USER_COLUMNS}
        FROM users
        WHERE lower(email) = lower($1)
        """,
        normalize_email(email),
    )


async def get_user_by_id(user_id: int) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {_USER_COLUMNS}
        FROM users
        WHERE id = $1
        """,
        user_id,
    )




# Refresh tokens. Raw tokens never reach this layer; only their SHA-256 hash.

_REFRESH_TOKEN_COLUMNS = (
    "id, user_id, token_hash, expires_at, revoked_at, "
    "replaced_by_token_id, created_at, last_used_at, user_agent, ip_address"
)


async def insert_refresh_token(
    *,
    user_id: int,
    token_hash: str,
    expires_at: datetime,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> dict:
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)

    row = await db.fetch_one(
        f"""
        INSERT INTO refresh_tokens (user_id, token_hash, expires_at, user_agent, ip_address)
        VALUES ($1, $2, $3, $4, $5)
        RETURNING {_REFRESH_TOKEN_COLUMNS}
        """,
        user_id,
        token_hash,
        expires_at,
        user_agent,
        ip_address,
    )
    if row is None:
        raise RuntimeError("Failed to insert refresh token.")
    return row


async def get_refresh_token_by_hash(token_hash: str) -> dict | None:
    return await db.fetch_one(
        f"SELECT {_REFRESH_TOKEN_COLUMNS} FROM refresh_tokens WHERE token_hash = $1",
        token_hash,
    )


async def mark_refresh_token_used(token_id: int) -> None:
    await db.execute("UPDATE refresh_tokens SET last_used_at = now() WHERE id = $1", token_id)


async def _revoke_where(column: str, value: int | str) -> list[dict]:
    # `column` is always one of the literals below, never caller input.
    return await db.fetch_all(
        f"""
        UPDATE refresh_tokens
        SET revoked_at = now()
        WHERE {column} = $1
          AND revoked_at IS NULL
        RETURNING id
        """,
        value,
    )


async def revoke_refresh_token_by_hash(token_hash: str) -> bool:
    return bool(await _revoke_where("token_hash", token_hash))


async def revoke_refresh_token_by_id(token_id: int) -> bool:
    return bool(await _revoke_where("id", token_id))


async def revoke_all_refresh_tokens_for_user(user_id: int) -> int:
    return len(await _revoke_where("user_id", user_id))


async def set_refresh_token_replacement(*, old_token_id: int, new_token_id: int) -> None:
    await db.execute(
        "UPDATE refresh_tokens SET replaced_by_token_id = $2 WHERE id = $1",
        old_token_id,
        new_token_id,
    )
