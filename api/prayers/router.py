"""
FastAPI router for prayer endpoints.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from auth import dependencies as auth_dependencies

from . import schemas, service

router = APIRouter()


@router.get("/prayers")
async def list_prayers(
    current_user: dict = Depends(auth_dependencies.get_current_user),
    status: str = Query(service.STATUS_ALL, pattern="^(answered|unanswered|all)$"),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    team_member: str | None = Query(default=None, max_length=200),
    page: int = Query(1, ge=1, le=service.MAX_PAGE),
    limit: int = Query(service.DEFAULT_PAGE_SIZE, ge=1, le=100),
) -> dict:
    """
    List the current user's prayers, newest first.

    `team_member` is a case-insensitive substring match on the petitioner.
    """
    return await service.list_prayers(
        user_id=int(current_user["id"]),
        prayer_status=status,
        date_from=date_from,
        date_to=date_to,
        team_member=team_member,
        page=page,
        limit=limit,
    )


@router.post("/prayers", status_code=201)
async def create_prayer(
    payload: schemas.PrayerCreateRequest,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.create_prayer(payload, user_id=int(current_user["id"]))


@router.get("/prayers/{prayer_id:int}")
async def get_prayer(
    prayer_id: int,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.get_prayer(prayer_id, user_id=int(current_user["id"]))


@router.patch("/prayers/{prayer_id:int}")
async def update_prayer(
    prayer_id: int,
    payload: schemas.PrayerUpdateRequest,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    """
    Partially update a prayer (mark answered, toggle private, edit text).
    """
    return await service.update_prayer(prayer_id, payload, user_id=int(current_user["id"]))
