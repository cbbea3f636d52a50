"""Status vocabularies and resolved-record types shared by the resolver and its callers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any

# Bay status, stored and resolved.
AVAILABLE = "Available"
RESERVED = "Reserved"
MAINTENANCE = "Maintenance"
BAY_STATUSES = (AVAILABLE, RESERVED, MAINTENANCE)

# Daily claim status.
CLAIM_ACTIVE = "Active"
CLAIM_CANCELLED = "Cancelled"
CLAIM_STATUSES = (CLAIM_ACTIVE, CLAIM_CANCELLED)

# Schedule row types and labels.
PERMANENT = "Permanent"
DAILY = "Daily"
LABEL_ACTIVE = "Active"
LABEL_SCHEDULED = "Scheduled"
LABEL_CANCELLED_TODAY = "Cancelled for today"
LABEL_TEMPORARILY_AVAILABLE = "Temporarily available ({available_from} to {available_to})"

UNKNOWN_USER = "Unknown"


@dataclass(frozen=True)
class ResolvedBay:
    """One bay on the grid, as it stands on the resolved date."""

    bay_id: str
    bay_number: int | float
    status: str
    holder_user_id: str | None = None
    holder_name: str | None = None
    is_permanent: bool = False
    reserved_by_you: bool = False
    location: str | None = None
    type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScheduleRow:
    """One row of the assignments table: a permanent assignment or a daily claim."""

    bay_id: str
    bay_number: int | float
    reservation_type: str
    day_or_date: str
    user_id: str | None
    user_name: str
    status: str
    assignment_id: str | None = None
    claim_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def record_key(value: Any) -> str | None:
    """Normalize an id field to a string key. Empty/None -> None."""
    if value is None:
        return None
    key = str(value).strip()
    return key or None


def bay_number_of(bay: Mapping[str, Any]) -> int | float | None:
    """Read bay_number as a number. Numeric strings are coerced; invalid -> None."""
    raw = bay.get("bay_number")
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return raw
    try:
        num = float(str(raw).strip())
    except ValueError:
        return None
    return int(num) if num.is_integer() else num


def user_name_of(user_id: str | None, user_names: Mapping[str, str] | None) -> str:
    """Display name for user_id, or the "Unknown" placeholder."""
    if user_id is None or not user_names:
        return UNKNOWN_USER
    return user_names.get(user_id) or UNKNOWN_USER
