"""Routing tests for the prayer endpoints."""

from __future__ import annotations

from typing import Any, Iterator

import pytest
from fastapi.testclient import TestClient

import main
from auth import dependencies as auth_dependencies
from prayers import service

USER = {"id": 1, "email": "me@example.com", "name": "Me", "is_active": True}


@pytest.fixture
def client() -> Iterator[TestClient]:
    main.app.dependency_overrides[auth_dependencies.get_current_user] = lambda: USER
    try:
        yield TestClient(main.app)
    finally:
        main.app.dependency_overrides.clear()


def test_list_rejects_page_beyond_limit(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    """A huge page number is a validation error, not a database overflow."""
    called: list[int] = []

    async def fake_list(**kwargs: Any) -> dict[str, Any]:
        called.append(kwargs["page"])
        return {"prayers": [], "pagination": {}}

    monkeypatch.setattr(service, "list_prayers", fake_list)

    response = client.get("/prayers", params={"page": str(2**62)})

    assert response.status_code == 422
    assert called == []


def test_list_accepts_last_allowed_page(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    """The maximum page is still served."""

    async def fake_list(**kwargs: Any) -> dict[str, Any]:
        return {"prayers": [], "pagination": {"current_page": kwargs["page"]}}

    monkeypatch.setattr(service, "list_prayers", fake_list)

    response = client.get("/prayers", params={"page": service.MAX_PAGE})

    assert response.status_code == 200
    assert response.json()["pagination"]["current_page"] == service.MAX_PAGE


def test_list_rejects_unknown_status(client: TestClient) -> None:
    """Status must be answered, unanswered or all."""
    response = client.get("/prayers", params={"status": "pending"})

    assert response.status_code == 422
