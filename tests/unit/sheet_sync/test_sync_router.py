"""Routing tests for the sheet sync endpoints."""

from __future__ import annotations

from typing import Any, Iterator

import pytest
from fastapi.testclient import TestClient

import main
from auth import dependencies as auth_dependencies
from sheet_sync import service

USER = {"id": 1, "email": "me@example.com", "name": "Me", "is_active": True}


@pytest.fixture
def client() -> Iterator[TestClient]:
    main.app.dependency_overrides[auth_dependencies.get_current_user] = lambda: USER
    try:
        # No context manager: the lifespan (DB pool) is not started.
        yield TestClient(main.app)
    finally:
        main.app.dependency_overrides.clear()


def test_post_sync_returns_counts(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    """POST /prayers/sync runs the import for the authenticated user."""
    seen: list[dict] = []

    async def fake_sync(current_user: dict) -> dict[str, Any]:
        seen.append(current_user)
        return {"message": "ok", "imported": 2, "skipped": 1, "total": 3}

    monkeypatch.setattr(service, "sync_from_sheets", fake_sync)

    response = client.post("/prayers/sync")

    assert response.status_code == 200
    assert response.json()["imported"] == 2 and seen == [USER]


def test_get_sync_is_not_routed_to_prayer_detail(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    """GET /prayers/sync reaches the status check, not /prayers/{id}."""

    async def fake_status() -> dict[str, Any]:
        return {"configured": True, "connected": True, "availablePrayers": 4}

    monkeypatch.setattr(service, "sync_status", fake_status)

    response = client.get("/prayers/sync")

    assert response.status_code == 200
    assert response.json()["availablePrayers"] == 4


def test_sync_requires_authorization_header() -> None:
    """Without a bearer token the endpoint is rejected."""
    response = TestClient(main.app).post("/prayers/sync")

    assert response.status_code == 401
