"""Shared date utilities used by bay resolution and override planning."""

from __future__ import annotations

from datetime import date, timedelta

ALL_DAYS = "All Days"

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

AVAILABILITY_OPTIONS = ("today", "tomorrow", "custom")


def is_iso_date(value: str | None) -> bool:
    """Return True if value is a yyyy-MM-dd calendar date."""
    if not value or len(str(value)) != 10:
        return False
    try:
        date.fromisoformat(str(value))
    except ValueError:
        return False
    return True


def day_of_week_name(date_iso: str) -> str:
    """Map an ISO date to its English weekday name ("Monday".."Sunday")."""
    return WEEKDAY_NAMES[date.fromisoformat(date_iso).weekday()]


def matches_day(day_of_week: str | None, day_name: str) -> bool:
    """True if an assignment's day_of_week applies on day_name."""
    return day_of_week == day_name or day_of_week == ALL_DAYS


def window_contains(available_from: str | None, available_to: str | None, day: str) -> bool:
    """Inclusive window check on fixed-width yyyy-MM-dd strings.

    A window needs both bounds; a single bound never matches.
    """
    if not available_from or not available_to:
        return False
    return available_from <= day <= available_to


def date_range(start: str, end: str) -> list[str]:
    """Inclusive list of ISO dates from start to end. Empty if end < start."""
    d0 = date.fromisoformat(start)
    d1 = date.fromisoformat(end)
    days: list[str] = []
    cur = d0
    while cur <= d1:
        days.append(cur.isoformat())
        cur += timedelta(days=1)
    return days


def availability_window(
    option: str,
    today: str,
    start: str | None = None,
    end: str | None = None,
) -> tuple[str, str]:
    """Resolve a "make my bay available" choice into (available_from, available_to).

    - today:    (today, today)
    - tomorrow: (today + 1, today + 1)
    - custom:   start only is a single day, start and end is a range
    """
    if option == "today":
        return today, today
    if option == "tomorrow":
        nxt = (date.fromisoformat(today) + timedelta(days=1)).isoformat()
        return nxt, nxt
    if option == "custom":
        if start and not end:
            date.fromisoformat(start)
            return start, start
        if start and end:
            if date.fromisoformat(end) < date.fromisoformat(start):
                raise ValueError(f"End date {end} is before start date {start}")
            return start, end
        raise ValueError("Please select valid date(s)")
    raise ValueError(f"Unknown availability option: {option!r}. Choose from {AVAILABILITY_OPTIONS}")
