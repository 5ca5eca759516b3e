"""
Import reconciler: persist only the sheet records the user does not have yet.

Records are written in fixed-size batches. Inserts within a batch run
concurrently and the next batch starts only after every insert of the current
one has settled, which caps in-flight writes at the batch size.

A record is skipped when its signature (content + petitioner) is already
stored, was imported earlier in the same run, or its insert fails. Failures
are logged and never abort the run.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from auth import service as auth_service
from prayers import repository as prayers_repository
from prayers.schemas import DEFAULT_TITLE

from . import settings
from .reader import PrayerRecord, signature

logger = logging.getLogger(__name__)


@dataclass
class ImportStats:
    imported: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.imported + self.skipped


def batches(records: Sequence[PrayerRecord], size: int) -> Iterable[Sequence[PrayerRecord]]:
    if size <= 0:
        raise ValueError("Batch size must be > 0.")
    for start in range(0, len(records), size):
        yield records[start : start + size]


async def load_signatures(*, user_id: int) -> set[str]:
    rows = await prayers_repository.list_signature_rows(user_id=user_id)
    return {signature(str(r["content"]), r.get("petitioner")) for r in rows}


async def _insert_record(record: PrayerRecord, *, user_id: int) -> bool:
    """
    Returns False when the store already holds the signature (unique index).
    """
    row = await prayers_repository.insert_prayer(
        user_id=user_id,
        title=DEFAULT_TITLE,
        content=record.content,
        petitioner=record.petitioner,
        petitioner_contact_email=record.contact_email,
        petitioner_contact_phone=record.contact_phone,
        is_contact_petitioner=record.contact_preference,
        hosanna_location=record.location,
        is_answered=record.is_answered,
        is_private=record.is_private,
        created_at=record.request_date,
        skip_duplicates=True,
    )
    return row is not None


async def _import_one(record: PrayerRecord, *, user_id: int, seen: set[str], stats: ImportStats) -> None:
    sig = record.signature
    if sig in seen:
        stats.skipped += 1
        return

    # Claim before awaiting so a same-batch duplicate sees it.
    seen.add(sig)
    try:
        inserted = await _insert_record(record, user_id=user_id)
    except Exception:
        seen.discard(sig)
        stats.skipped += 1
        logger.exception("sheet_import_record_failed user_id=%s petitioner=%s", user_id, record.petitioner)
        return

    if inserted:
        stats.imported += 1
    else:
        stats.skipped += 1


async def reconcile(
    records: Sequence[PrayerRecord],
    existing_signatures: set[str],
    *,
    user_id: int,
    batch_size: int = settings.DEFAULT_BATCH_SIZE,
) -> ImportStats:
    """
    Insert every record whose signature is not yet known.

    `existing_signatures` is copied; the caller's set is left untouched.
    """
    stats = ImportStats()
    seen = set(existing_signatures)

    for batch in batches(records, batch_size):
        await asyncio.gather(
            *(_import_one(r, user_id=user_id, seen=seen, stats=stats) for r in batch),
            return_exceptions=True,
        )

    return stats


async def import_records(
    records: Sequence[PrayerRecord],
    *,
    user: dict,
    batch_size: int = settings.DEFAULT_BATCH_SIZE,
) -> ImportStats:
    """
    Full import for one user: load stored signatures, ensure the owner row
    exists, then reconcile.
    """
    user_id = int(user["id"])
    existing = await load_signatures(user_id=user_id)
    await auth_service.ensure_owner(user)
    return await reconcile(records, existing, user_id=user_id, batch_size=batch_size)
