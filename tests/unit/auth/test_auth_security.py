"""Unit tests for password hashing and token helpers."""

from __future__ import annotations

import asyncio
from typing import Any

import jwt
import pytest
from fastapi import HTTPException

from auth import dependencies, repository, security, service

SECRET = "unit-test-secret-with-at-least-32-bytes"


@pytest.fixture(autouse=True)
def jwt_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JWT_SECRET", SECRET)
    monkeypatch.setenv("JWT_ALG", "HS256")


def test_password_hash_round_trip() -> None:
    """A bcrypt hash verifies its own password only."""
    hashed = security.hash_password("correct horse")

    assert security.verify_password("correct horse", hashed)
    assert not security.verify_password("wrong horse", hashed)


def test_unusable_password_hash_never_verifies() -> None:
    """Implicitly created owners cannot log in with a password."""
    assert not security.verify_password("anything", security.UNUSABLE_PASSWORD_HASH)


def test_access_token_carries_subject_and_name() -> None:
    """Access tokens encode the user id as `sub`."""
    token = security.build_access_token(user_id=42, email="a@example.com", name="Ann")

    payload = security.decode_access_token(token)

    assert (payload["sub"], payload["email"], payload["name"], payload["type"]) == ("42", "a@example.com", "Ann", "access")


def test_decode_rejects_non_access_token() -> None:
    """Tokens of another type are refused."""
    token = jwt.encode({"sub": "1", "type": "refresh"}, SECRET, algorithm="HS256")

    with pytest.raises(security.AuthSecurityError, match="not an access token"):
        security.decode_access_token(token)


def test_decode_rejects_expired_token() -> None:
    """Expired tokens get a dedicated message."""
    token = jwt.encode({"sub": "1", "type": "access", "exp": 1}, SECRET, algorithm="HS256")

    with pytest.raises(security.AuthSecurityError, match="expired"):
        security.decode_access_token(token)


def test_refresh_token_hash_is_stable() -> None:
    """Refresh tokens are stored as deterministic SHA-256 digests."""
    raw = security.build_refresh_token()

    assert security.hash_refresh_token(raw) == security.hash_refresh_token(raw)
    assert security.hash_refresh_token(raw) != raw


@pytest.mark.parametrize("header", ["", "Token abc", "Bearer", "Bearer   "])
def test_bearer_header_validation(header: str) -> None:
    """Malformed Authorization headers are 401s."""
    with pytest.raises(HTTPException) as exc_info:
        dependencies._extract_bearer_token(header)

    assert exc_info.value.status_code == 401


def test_ensure_owner_falls_back_to_placeholder_identity(monkeypatch: pytest.MonkeyPatch) -> None:
    """Owner creation uses the user's id and an unusable password."""
    captured: dict[str, Any] = {}

    async def fake_ensure_user(**kwargs: Any) -> bool:
        captured.update(kwargs)
        return True

    monkeypatch.setattr(repository, "ensure_user", fake_ensure_user)

    asyncio.run(service.ensure_owner({"id": "9", "email": None, "name": ""}))

    assert captured == {
        "user_id": 9,
        "email": "user@example.com",
        "name": "User",
        "password_hash": security.UNUSABLE_PASSWORD_HASH,
    }
