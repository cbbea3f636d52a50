"""Column constants and type coercion for CSV I/O."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Input CSV column names
# ---------------------------------------------------------------------------

BAYS_COLS = [
    "bay_id",
    "bay_number",
    "location",
    "status",
    "type",
]

PERMANENT_ASSIGNMENTS_COLS = [
    "assignment_id",
    "bay_id",
    "user_id",
    "day_of_week",
    "available_from",
    "available_to",
]

DAILY_CLAIMS_COLS = [
    "claim_id",
    "bay_id",
    "user_id",
    "claim_date",
    "status",
]

USERS_COLS = [
    "user_id",
    "name",
]

# ---------------------------------------------------------------------------
# Output column names
# ---------------------------------------------------------------------------

BOARD_COLS = [
    "bay_number",
    "bay_id",
    "status",
    "holder_name",
    "holder_user_id",
    "is_permanent",
    "reserved_by_you",
    "location",
]

SCHEDULE_COLS = [
    "bay_number",
    "reservation_type",
    "day_or_date",
    "user_name",
    "status",
    "assignment_id",
    "claim_id",
]

ANOMALY_COLS = [
    "kind",
    "category",
    "source",
    "record_id",
    "detail",
]

# ---------------------------------------------------------------------------
# Type coercion helpers for reading CSV values
# ---------------------------------------------------------------------------


def blank_to_none(value: str | None) -> str | None:
    """Strip a CSV string. Empty/None -> None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def to_number(value: str | None) -> int | float | None:
    """Coerce a CSV string to int (or float if fractional). Empty/invalid -> None."""
    if value is None or str(value).strip() == "":
        return None
    try:
        num = float(value)
    except (ValueError, TypeError):
        return None
    return int(num) if num.is_integer() else num


def fmt_bool(value: bool) -> str:
    """Format a bool for CSV/XLSX output."""
    return "TRUE" if value else "FALSE"
