"""
Sheet sync "service layer": the import trigger and the availability check.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, status

from core import sheets

from . import reader, reconciler, settings

logger = logging.getLogger(__name__)

NOT_CONFIGURED_DETAIL = (
    "Google Sheets API key not configured. "
    "Please add GOOGLE_SHEETS_API_KEY to your environment variables."
)


def _require_configured() -> None:
    if not settings.is_configured():
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=NOT_CONFIGURED_DETAIL,
        )


async def _fetch_records() -> list[reader.PrayerRecord]:
    return await reader.fetch_prayer_records(
        api_key=settings.api_key(),
        spreadsheet_id=settings.spreadsheet_id(),
        base_url=settings.sheets_base_url(),
        lookback_months=settings.lookback_months(),
    )


async def sync_from_sheets(current_user: dict) -> dict[str, Any]:
    """
    Import recent sheet rows for the current user.

    Configuration and connectivity problems abort before any write.
    """
    _require_configured()

    try:
        records = await _fetch_records()
    except sheets.SheetsError as exc:
        logger.exception("sheet_fetch_failed user_id=%s", current_user.get("id"))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=(
                "Failed to fetch prayers from Google Sheets. "
                "Please check the spreadsheet URL and API configuration."
            ),
        ) from exc

    if not records:
        return {
            "message": "No prayers found in Google Sheets",
            "imported": 0,
            "skipped": 0,
            "total": 0,
        }

    stats = await reconciler.import_records(
        records,
        user=current_user,
        batch_size=settings.batch_size(),
    )
    logger.info(
        "sheet_sync_complete user_id=%s imported=%s skipped=%s total=%s",
        current_user.get("id"),
        stats.imported,
        stats.skipped,
        len(records),
    )
    return {
        "message": "Successfully synced prayers from Google Sheets",
        "imported": stats.imported,
        "skipped": stats.skipped,
        "total": len(records),
    }


async def sync_status() -> dict[str, Any]:
    """
    Report whether the import is configured and the sheet is reachable.
    Read-only. Keys follow the frontend contract (`availablePrayers`).
    """
    if not settings.is_configured():
        return {
            "configured": False,
            "connected": False,
            "availablePrayers": 0,
            "message": "Google Sheets API key not configured",
        }

    try:
        records = await _fetch_records()
    except sheets.SheetsError as exc:
        logger.warning("sheet_status_check_failed error=%s", exc)
        return {
            "configured": True,
            "connected": False,
            "availablePrayers": 0,
            "message": "Connection test failed",
            "error": (
                "Cannot connect to Google Sheets. "
                "Please check the spreadsheet permissions and API key."
            ),
        }

    return {
        "configured": True,
        "connected": True,
        "availablePrayers": len(records),
        "message": "Google Sheets connection is working",
    }


async def sheet_info() -> dict[str, Any]:
    """
    Spreadsheet title and tab names, for diagnosing sheet-name problems.
    """
    _require_configured()

    try:
        data = await sheets.get_spreadsheet(
            api_key=settings.api_key(),
            spreadsheet_id=settings.spreadsheet_id(),
            base_url=settings.sheets_base_url(),
        )
    except sheets.SheetsError as exc:
        logger.warning("sheet_info_failed status=%s error=%s", exc.status_code, exc)
        if exc.status_code == 403:
            detail = (
                "Permission denied: Make sure the Google Sheet is shared publicly "
                'or "Anyone with the link can view".'
            )
        elif exc.status_code == 404:
            detail = "Google Sheet not found: Please check the spreadsheet ID."
        else:
            detail = f"Failed to get sheet information: {exc}"
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail) from exc

    properties = data.get("properties") or {}
    tabs = []
    for sheet in data.get("sheets") or []:
        sheet_properties = (sheet or {}).get("properties") or {}
        tabs.append(
            {
                "title": sheet_properties.get("title"),
                "sheet_id": sheet_properties.get("sheetId"),
            }
        )
    return {"title": properties.get("title"), "sheets": tabs}
