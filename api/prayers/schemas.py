"""
Pydantic schemas for prayer endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

DEFAULT_TITLE = "Prayer Request"


class PrayerCreateRequest(BaseModel):
    title: str = Field(default=DEFAULT_TITLE, min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=10_000)
    petitioner: str | None = Field(default=None, max_length=200)
    petitioner_contact_email: str | None = Field(default=None, max_length=320)
    petitioner_contact_phone: str | None = Field(default=None, max_length=50)
    is_contact_petitioner: str | None = Field(default=None, max_length=50)
    hosanna_location: str | None = Field(default=None, max_length=200)
    is_private: bool = False
    created_at: datetime | None = None


class PrayerUpdateRequest(BaseModel):
    # Only fields present in the request body are updated.
    is_answered: bool | None = None
    is_private: bool | None = None
    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, min_length=1, max_length=10_000)
