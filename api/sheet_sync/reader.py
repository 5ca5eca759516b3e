"""
Spreadsheet reader: Google Sheets rows -> PrayerRecord.

Column layout (A..H, header row skipped):
  A request date | B content | C petitioner | D contact preference
  E phone        | F email   | G email (second column) | H location

Rules:
- rows with empty/whitespace content are dropped
- rows dated more than N months ago are dropped; undated rows and rows whose
  date cannot be parsed are kept
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence

from dateutil import parser as dateutil_parser
from dateutil.relativedelta import relativedelta

from core import sheets

from . import settings

CANDIDATE_SHEET_NAMES = ("Sheet1", "Form Responses 1", "Prayer Requests", "Responses")
COLUMN_RANGE = "A:H"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrayerRecord:
    content: str
    petitioner: str | None = None
    contact_preference: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    location: str | None = None
    request_date: datetime | None = None
    is_answered: bool = False
    is_private: bool = False

    @property
    def signature(self) -> str:
        return signature(self.content, self.petitioner)


def signature(content: str, petitioner: str | None) -> str:
    """
    Dedup key for a prayer: identical content from the same petitioner.
    """
    return f"{content}|{petitioner or ''}"


def _cell(row: Sequence[str], index: int) -> str | None:
    if index >= len(row):
        return None
    value = row[index]
    if value is None or value == "":
        return None
    return str(value)


def parse_request_date(raw: str | None) -> datetime | None:
    """
    Parse a sheet timestamp (Forms writes e.g. "9/14/2026 10:32:05").
    Naive values are taken as UTC. Returns None when unparseable.
    """
    if not raw or not raw.strip():
        return None
    try:
        parsed = dateutil_parser.parse(raw.strip())
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def row_to_record(row: Sequence[str]) -> PrayerRecord:
    return PrayerRecord(
        request_date=parse_request_date(_cell(row, 0)),
        content=_cell(row, 1) or "",
        petitioner=_cell(row, 2),
        contact_preference=_cell(row, 3),
        contact_phone=_cell(row, 4),
        contact_email=_cell(row, 5) or _cell(row, 6),
        location=_cell(row, 7),
    )


def recency_cutoff(*, now: datetime | None = None, lookback_months: int = settings.DEFAULT_LOOKBACK_MONTHS) -> datetime:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now - relativedelta(months=lookback_months)


def is_importable(record: PrayerRecord, *, cutoff: datetime) -> bool:
    if not record.content.strip():
        return False
    if record.request_date is None:
        return True
    return record.request_date >= cutoff


def rows_to_records(
    rows: Sequence[Sequence[str]],
    *,
    now: datetime | None = None,
    lookback_months: int = settings.DEFAULT_LOOKBACK_MONTHS,
) -> list[PrayerRecord]:
    """
    Map raw sheet rows (header included) to importable records.
    """
    if len(rows) <= 1:
        return []

    cutoff = recency_cutoff(now=now, lookback_months=lookback_months)
    records = [row_to_record(row) for row in rows[1:]]
    return [r for r in records if is_importable(r, cutoff=cutoff)]


async def fetch_rows(*, api_key: str, spreadsheet_id: str, base_url: str = sheets.DEFAULT_BASE_URL) -> list[list[str]]:
    """
    Read columns A:H from the first candidate sheet that answers.

    Raises the last SheetsError when no candidate sheet could be read.
    """
    last_error: sheets.SheetsError | None = None
    for sheet_name in CANDIDATE_SHEET_NAMES:
        cell_range = f"{sheet_name}!{COLUMN_RANGE}"
        try:
            rows = await sheets.get_values(
                api_key=api_key,
                spreadsheet_id=spreadsheet_id,
                cell_range=cell_range,
                base_url=base_url,
            )
        except sheets.SheetsError as exc:
            logger.debug("sheet_candidate_failed range=%s error=%s", cell_range, exc)
            last_error = exc
            continue
        logger.debug("sheet_candidate_ok range=%s rows=%s", cell_range, len(rows))
        return rows

    raise last_error or sheets.SheetsError("Could not find a valid sheet.")


async def fetch_prayer_records(
    *,
    api_key: str,
    spreadsheet_id: str,
    base_url: str = sheets.DEFAULT_BASE_URL,
    lookback_months: int = settings.DEFAULT_LOOKBACK_MONTHS,
    now: datetime | None = None,
) -> list[PrayerRecord]:
    rows = await fetch_rows(api_key=api_key, spreadsheet_id=spreadsheet_id, base_url=base_url)
    return rows_to_records(rows, now=now, lookback_months=lookback_months)
