from __future__ import annotations

from datetime import date, datetime, timezone


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date.

    Longer ISO timestamps (``2025-03-01T09:30:00.000Z``) are accepted and
    truncated to their day part, the way mobile clients send them.
    """
    return datetime.strptime((value or "").strip()[:10], "%Y-%m-%d").date()


def now_utc() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def today_utc() -> date:
    """Ledger day key: attendance records are bucketed by UTC calendar date."""
    return now_utc().date()


def epoch_millis(moment: datetime | None = None) -> int:
    moment = moment or now_utc()
    return int(moment.timestamp() * 1000)
