"""
Prayer persistence.
This module is where prayer-related SQL lives. Every query is scoped by user_id.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from core import db

from .schemas import DEFAULT_TITLE

_PRAYER_COLUMNS = """
  p.id,
  p.user_id,
  p.title,
  p.content,
  p.petitioner,
  p.petitioner_contact_email,
  p.petitioner_contact_phone,
  p.is_contact_petitioner,
  p.hosanna_location,
  p.is_answered,
  p.is_private,
  p.created_at,
  p.updated_at,
  u.name AS user_name,
  u.email AS user_email
"""

# Columns a PATCH may touch, in a fixed order.
UPDATABLE_COLUMNS = ("is_answered", "is_private", "title", "content")


def build_list_filters(
    *,
    user_id: int,
    is_answered: bool | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    petitioner_contains: str | None = None,
) -> tuple[str, list[Any]]:
    """
    Build the WHERE clause (without the keyword) and its positional args.
    """
    clauses = ["p.user_id = $1"]
    args: list[Any] = [user_id]

    def add(sql: str, value: Any) -> None:
        args.append(value)
        clauses.append(sql.format(n=len(args)))

    if is_answered is not None:
        add("p.is_answered = ${n}", is_answered)
    if date_from is not None:
        add("p.created_at >= ${n}", date_from)
    if date_to is not None:
        add("p.created_at <= ${n}", date_to)

    needle = (petitioner_contains or "").strip()
    if needle:
        # Escape LIKE wildcards so the filter is a plain substring match.
        escaped = needle.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        add("p.petitioner ILIKE ${n}", f"%{escaped}%")

    return " AND ".join(clauses), args


async def count_prayers(where_sql: str, args: list[Any]) -> int:
    value = await db.fetch_value(f"SELECT count(*) FROM prayers p WHERE {where_sql}", *args)
    return int(value or 0)


async def list_prayers(where_sql: str, args: list[Any], *, limit: int, offset: int) -> list[dict[str, Any]]:
    n = len(args)
    return await db.fetch_all(
        f"""
        SELECT {_PRAYER_COLUMNS}
        FROM prayers p
        JOIN users u ON u.id = p.user_id
        WHERE {where_sql}
        ORDER BY p.created_at DESC, p.id DESC
        LIMIT ${n + 1}
        OFFSET ${n + 2}
        """,
        *args,
        limit,
        offset,
    )


async def get_prayer(prayer_id: int, *, user_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {_PRAYER_COLUMNS}
        FROM prayers p
        JOIN users u ON u.id = p.user_id
        WHERE p.id = $1
          AND p.user_id = $2
        """,
        prayer_id,
        user_id,
    )


async def insert_prayer(
    *,
    user_id: int,
    content: str,
    title: str = DEFAULT_TITLE,
    petitioner: str | None = None,
    petitioner_contact_email: str | None = None,
    petitioner_contact_phone: str | None = None,
    is_contact_petitioner: str | None = None,
    hosanna_location: str | None = None,
    is_answered: bool = False,
    is_private: bool = False,
    created_at: datetime | None = None,
    skip_duplicates: bool = False,
) -> dict[str, Any] | None:
    """
    Insert one prayer and return its id and created_at.

    With skip_duplicates=True a row that collides with the
    (user_id, content, petitioner) unique index is silently not inserted and
    None is returned.
    """
    conflict_sql = "ON CONFLICT DO NOTHING" if skip_duplicates else ""
    row = await db.fetch_one(
        f"""
        INSERT INTO prayers (
          user_id, title, content, petitioner,
          petitioner_contact_email, petitioner_contact_phone,
          is_contact_petitioner, hosanna_location,
          is_answered, is_private, created_at
        )
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, COALESCE($11, now()))
        {conflict_sql}
        RETURNING id, created_at
        """,
        user_id,
        title,
        content,
        petitioner,
        petitioner_contact_email,
        petitioner_contact_phone,
        is_contact_petitioner,
        hosanna_location,
        is_answered,
        is_private,
        created_at,
    )
    if row is None and not skip_duplicates:
        raise RuntimeError("Failed to insert prayer.")
    return row


async def update_prayer(prayer_id: int, *, user_id: int, changes: dict[str, Any]) -> dict[str, Any] | None:
    """
    Apply a partial update. Returns the updated id, or None when the prayer
    does not exist or is not owned by the user.
    """
    unknown = set(changes) - set(UPDATABLE_COLUMNS)
    if unknown:
        raise ValueError(f"Cannot update columns: {sorted(unknown)}")

    assignments = ["updated_at = now()"]
    args: list[Any] = [prayer_id, user_id]
    for column in UPDATABLE_COLUMNS:
        if column in changes:
            args.append(changes[column])
            assignments.append(f"{column} = ${len(args)}")

    return await db.fetch_one(
        f"""
        UPDATE prayers
        SET {", ".join(assignments)}
        WHERE id = $1
          AND user_id = $2
        RETURNING id
        """,
        *args,
    )


async def list_signature_rows(*, user_id: int) -> list[dict[str, Any]]:
    """
    Projection used for import dedup: content + petitioner of every prayer.
    """
    return await db.fetch_all(
        """
        SELECT content, petitioner
        FROM prayers
        WHERE user_id = $1
        """,
        user_id,
    )
