"""
FastAPI router for the Google Sheets import.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from auth import dependencies as auth_dependencies

from . import service

router = APIRouter()


@router.post("/prayers/sync")
async def trigger_sync(
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    """
    Import recent prayer requests from the configured sheet.

    Returns {"message", "imported", "skipped", "total"}.
    """
    return await service.sync_from_sheets(current_user)


@router.get("/prayers/sync")
async def sync_status(
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.sync_status()


@router.get("/prayers/sync/sheet-info")
async def sheet_info(
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.sheet_info()
