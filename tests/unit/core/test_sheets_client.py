"""Unit tests for the Google Sheets REST client."""

from __future__ import annotations

import asyncio
from typing import Callable

import httpx
import pytest

from core import sheets


def _use_transport(monkeypatch: pytest.MonkeyPatch, handler: Callable[[httpx.Request], httpx.Response]) -> None:
    real_client = httpx.AsyncClient

    def client_factory(**kwargs: object) -> httpx.AsyncClient:
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(sheets.httpx, "AsyncClient", client_factory)


def test_get_values_returns_rows_as_strings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Cell values are stringified and the API key is sent as a query param."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"range": "Sheet1!A1:H3", "values": [["Date", "Prayer"], [45000, "Heal"]]})

    _use_transport(monkeypatch, handler)

    rows = asyncio.run(sheets.get_values(api_key="k", spreadsheet_id="abc", cell_range="Sheet1!A:H"))

    assert rows == [["Date", "Prayer"], ["45000", "Heal"]]
    assert requests[0].url.params["key"] == "k"
    assert requests[0].url.path.startswith("/v4/spreadsheets/abc/values/")


def test_get_values_handles_missing_values_key(monkeypatch: pytest.MonkeyPatch) -> None:
    """An empty sheet has no `values` key at all."""
    _use_transport(monkeypatch, lambda request: httpx.Response(200, json={"range": "Sheet1!A1:H1"}))

    rows = asyncio.run(sheets.get_values(api_key="k", spreadsheet_id="abc", cell_range="Sheet1!A:H"))

    assert rows == []


def test_get_values_raises_with_status_code(monkeypatch: pytest.MonkeyPatch) -> None:
    """Non-200 responses raise SheetsError carrying the status code."""
    _use_transport(monkeypatch, lambda request: httpx.Response(404, json={"error": {"message": "not found"}}))

    with pytest.raises(sheets.SheetsError) as exc_info:
        asyncio.run(sheets.get_values(api_key="k", spreadsheet_id="abc", cell_range="Sheet1!A:H"))

    assert exc_info.value.status_code == 404


def test_get_values_wraps_transport_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    """Network failures surface as SheetsError, not httpx errors."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    _use_transport(monkeypatch, handler)

    with pytest.raises(sheets.SheetsError):
        asyncio.run(sheets.get_values(api_key="k", spreadsheet_id="abc", cell_range="Sheet1!A:H"))


def test_get_values_wraps_malformed_base_url() -> None:
    """A broken GOOGLE_SHEETS_BASE_URL surfaces as SheetsError."""
    with pytest.raises(sheets.SheetsError):
        asyncio.run(
            sheets.get_values(
                api_key="k",
                spreadsheet_id="abc",
                cell_range="Sheet1!A:H",
                base_url="https://sheets\x01.example.com/v4",
            )
        )


def test_get_values_rejects_empty_api_key() -> None:
    """An empty key fails fast without a request."""
    with pytest.raises(sheets.SheetsError, match="GOOGLE_SHEETS_API_KEY"):
        asyncio.run(sheets.get_values(api_key=" ", spreadsheet_id="abc", cell_range="Sheet1!A:H"))
