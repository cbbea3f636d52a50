from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from .config import DEFAULT_TIMEZONE

UTC = timezone.utc


def local_now(tz_name: str = DEFAULT_TIMEZONE, *, now: datetime | None = None) -> datetime:
    if now is None:
        now = datetime.now(UTC)
    return now.astimezone(ZoneInfo(tz_name))


def today_iso(tz_name: str = DEFAULT_TIMEZONE, *, now: datetime | None = None) -> str:
    """Calendar date in tz_name as YYYY-MM-DD."""
    return local_now(tz_name, now=now).date().isoformat()


def now_utc_iso() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def ensure_date(value: str) -> str:
    date.fromisoformat(value)
    return value
