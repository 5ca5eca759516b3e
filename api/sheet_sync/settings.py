"""
Environment-driven settings for the Google Sheets import.

- GOOGLE_SHEETS_API_KEY: API key with Sheets API access (required)
- GOOGLE_SHEETS_SPREADSHEET_ID: spreadsheet to import from
- GOOGLE_SHEETS_BASE_URL: Sheets REST endpoint (override for tests/proxies)
- SHEET_SYNC_BATCH_SIZE: concurrent inserts per batch
- SHEET_SYNC_LOOKBACK_MONTHS: rows older than this many months are ignored
"""

from __future__ import annotations

import os

from core import sheets

PLACEHOLDER_API_KEY = "your-google-sheets-api-key-here"
DEFAULT_SPREADSHEET_ID = "16B_qet1JSPOs0obGBHEenkpawNYfS4hf3xnqz1kH6TQ"
DEFAULT_BATCH_SIZE = 10
DEFAULT_LOOKBACK_MONTHS = 2


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def api_key() -> str:
    return os.environ.get("GOOGLE_SHEETS_API_KEY", "").strip()


def is_configured() -> bool:
    key = api_key()
    return bool(key) and key != PLACEHOLDER_API_KEY


def spreadsheet_id() -> str:
    return os.environ.get("GOOGLE_SHEETS_SPREADSHEET_ID", "").strip() or DEFAULT_SPREADSHEET_ID


def sheets_base_url() -> str:
    return os.environ.get("GOOGLE_SHEETS_BASE_URL", "").strip() or sheets.DEFAULT_BASE_URL


def batch_size() -> int:
    return _env_int("SHEET_SYNC_BATCH_SIZE", DEFAULT_BATCH_SIZE)


def lookback_months() -> int:
    return _env_int("SHEET_SYNC_LOOKBACK_MONTHS", DEFAULT_LOOKBACK_MONTHS)
