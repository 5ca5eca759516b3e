"""
Google Sheets REST client helpers (API v4, API-key auth).

Used endpoints:
- GET /spreadsheets/{id}/values/{range}  -> {"range": "...", "values": [[...], ...]}
- GET /spreadsheets/{id}                 -> {"properties": {...}, "sheets": [...]}

API-key access only works for sheets shared as "Anyone with the link can view".
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

DEFAULT_BASE_URL = "https://sheets.googleapis.com/v4"


# Sheets failures are explicit and separable from other runtime errors.
class SheetsError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _normalize_base_url(base_url: str) -> str:
    base_url = (base_url or "").strip()
    if not base_url:
        raise SheetsError("GOOGLE_SHEETS_BASE_URL is empty.")
    return base_url.rstrip("/")


def _require(value: str, name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise SheetsError(f"{name} is empty.")
    return value


async def _get_json(
    *,
    base_url: str,
    path: str,
    params: dict[str, str],
    timeout_s: float,
) -> dict[str, Any]:
    try:
        async with httpx.AsyncClient(base_url=_normalize_base_url(base_url), timeout=timeout_s) as client:
            resp = await client.get(path, params=params)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise SheetsError(f"Google Sheets request failed: {exc}") from exc

    if resp.status_code != 200:
        # Avoid dumping huge bodies; include a small snippet.
        body = resp.text[:500]
        raise SheetsError(
            f"Google Sheets request failed: {resp.status_code} {body}",
            status_code=resp.status_code,
        )

    try:
        data = resp.json()
    except ValueError as exc:
        raise SheetsError("Google Sheets returned a non-JSON response.") from exc
    if not isinstance(data, dict):
        raise SheetsError("Google Sheets returned an unexpected payload.")
    return data


async def get_values(
    *,
    api_key: str,
    spreadsheet_id: str,
    cell_range: str,
    base_url: str = DEFAULT_BASE_URL,
    timeout_s: float = 30.0,
) -> list[list[str]]:
    """
    Read all rows of `cell_range` (A1 notation, e.g. "Sheet1!A:H").

    Trailing empty cells are omitted by the API, so rows may be ragged.
    """
    api_key = _require(api_key, "GOOGLE_SHEETS_API_KEY")
    spreadsheet_id = _require(spreadsheet_id, "Spreadsheet id")
    cell_range = _require(cell_range, "Cell range")

    data = await _get_json(
        base_url=base_url,
        path=f"/spreadsheets/{quote(spreadsheet_id, safe='')}/values/{quote(cell_range, safe='')}",
        params={"key": api_key, "majorDimension": "ROWS"},
        timeout_s=timeout_s,
    )

    values = data.get("values") or []
    if not isinstance(values, list):
        raise SheetsError("Google Sheets returned malformed values.")

    rows: list[list[str]] = []
    for row in values:
        if not isinstance(row, list):
            rows.append([])
            continue
        rows.append(["" if cell is None else str(cell) for cell in row])
    return rows


async def get_spreadsheet(
    *,
    api_key: str,
    spreadsheet_id: str,
    base_url: str = DEFAULT_BASE_URL,
    timeout_s: float = 30.0,
) -> dict[str, Any]:
    """
    Fetch spreadsheet metadata (title and sheet tabs), without grid data.
    """
    api_key = _require(api_key, "GOOGLE_SHEETS_API_KEY")
    spreadsheet_id = _require(spreadsheet_id, "Spreadsheet id")

    return await _get_json(
        base_url=base_url,
        path=f"/spreadsheets/{quote(spreadsheet_id, safe='')}",
        params={"key": api_key, "includeGridData": "false"},
        timeout_s=timeout_s,
    )
