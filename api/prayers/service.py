"""
Prayer business logic: listing with filters/pagination, create, update.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any

import asyncpg
from fastapi import HTTPException, status

from . import repository, schemas

STATUS_ALL = "all"
STATUS_ANSWERED = "answered"
STATUS_UNANSWERED = "unanswered"

DEFAULT_PAGE_SIZE = 10
MAX_PAGE = 10_000


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def answered_filter(prayer_status: str | None) -> bool | None:
    """
    Map the `status` query value to an is_answered filter.
    Anything other than answered/unanswered means "all".
    """
    value = (prayer_status or "").strip().lower()
    if value == STATUS_ANSWERED:
        return True
    if value == STATUS_UNANSWERED:
        return False
    return None


def pagination_meta(*, page: int, limit: int, total_count: int) -> dict[str, Any]:
    total_pages = math.ceil(total_count / limit) if limit > 0 else 0
    return {
        "current_page": page,
        "total_pages": total_pages,
        "total_count": total_count,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1,
        "limit": limit,
    }


def _to_prayer_dict(row: dict[str, Any]) -> dict[str, Any]:
    prayer = {k: v for k, v in row.items() if k not in ("user_name", "user_email")}
    prayer["user"] = {"name": row.get("user_name"), "email": row.get("user_email")}
    return prayer


async def list_prayers(
    *,
    user_id: int,
    prayer_status: str | None = STATUS_ALL,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    team_member: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> dict[str, Any]:
    where_sql, args = repository.build_list_filters(
        user_id=user_id,
        is_answered=answered_filter(prayer_status),
        date_from=_as_utc(date_from),
        date_to=_as_utc(date_to),
        petitioner_contains=team_member,
    )

    total_count = await repository.count_prayers(where_sql, args)
    rows = await repository.list_prayers(where_sql, args, limit=limit, offset=(page - 1) * limit)

    return {
        "prayers": [_to_prayer_dict(r) for r in rows],
        "pagination": pagination_meta(page=page, limit=limit, total_count=total_count),
    }


async def get_prayer(prayer_id: int, *, user_id: int) -> dict[str, Any]:
    row = await repository.get_prayer(prayer_id, user_id=user_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prayer not found.")
    return _to_prayer_dict(row)


async def create_prayer(payload: schemas.PrayerCreateRequest, *, user_id: int) -> dict[str, Any]:
    content = payload.content.strip()
    if not content:
        raise HTTPException(status_code=422, detail="Content is empty.")

    try:
        row = await repository.insert_prayer(
            user_id=user_id,
            title=payload.title.strip() or schemas.DEFAULT_TITLE,
            content=content,
            petitioner=(payload.petitioner or "").strip() or None,
            petitioner_contact_email=payload.petitioner_contact_email,
            petitioner_contact_phone=payload.petitioner_contact_phone,
            is_contact_petitioner=payload.is_contact_petitioner,
            hosanna_location=payload.hosanna_location,
            is_private=payload.is_private,
            created_at=_as_utc(payload.created_at),
        )
    except asyncpg.UniqueViolationError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This prayer request is already recorded for this petitioner.",
        ) from exc
    return await get_prayer(int(row["id"]), user_id=user_id)


async def update_prayer(
    prayer_id: int,
    payload: schemas.PrayerUpdateRequest,
    *,
    user_id: int,
) -> dict[str, Any]:
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    try:
        row = await repository.update_prayer(prayer_id, user_id=user_id, changes=changes)
    except asyncpg.UniqueViolationError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Another prayer with this content and petitioner already exists.",
        ) from exc
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prayer not found.")
    return await get_prayer(prayer_id, user_id=user_id)
