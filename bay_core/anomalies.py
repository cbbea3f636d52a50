"""Anomaly classification and reporting for bay snapshots.

The resolver tolerates malformed and ambiguous records silently. This module
reports the same records so they can be surfaced to operators, classified by
what the resolver does with them:

  - skipped:   the record is dropped from resolution
  - ambiguous: a deterministic tie-break picks one record over another
  - ignored:   a field has no effect on the result
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from typing import Any

from .dates import ALL_DAYS, WEEKDAY_NAMES, is_iso_date
from .records import CLAIM_ACTIVE, CLAIM_STATUSES, bay_number_of, record_key
from .resolver import is_claim_for_day

# ---- Anomaly categories ----------------------------------------------------

SKIPPED_KINDS = frozenset({
    "missing_bay_id",
    "unknown_bay",
    "invalid_bay_number",
})

AMBIGUOUS_KINDS = frozenset({
    "duplicate_active_claim",
    "duplicate_assignment",
})

IGNORED_KINDS = frozenset({
    "half_open_window",
    "inverted_window",
    "invalid_window_date",
    "unknown_day_of_week",
    "unknown_claim_status",
})

_VALID_DAYS = frozenset((*WEEKDAY_NAMES, ALL_DAYS))


def category_of(kind: str) -> str:
    if kind in SKIPPED_KINDS:
        return "skipped"
    if kind in AMBIGUOUS_KINDS:
        return "ambiguous"
    return "ignored"


def _anomaly(kind: str, source: str, record_id: str | None, detail: str) -> dict[str, Any]:
    return {
        "kind": kind,
        "category": category_of(kind),
        "source": source,
        "record_id": record_id,
        "detail": detail,
    }


# ---- Per-collection checks -------------------------------------------------

def _bay_anomalies(bays: Iterable[Mapping[str, Any]]) -> tuple[list[dict[str, Any]], set[str]]:
    found: list[dict[str, Any]] = []
    known: set[str] = set()
    for bay in bays:
        bay_id = record_key(bay.get("bay_id"))
        if bay_id is None:
            found.append(_anomaly("missing_bay_id", "bay", None, "Bay record has no bay_id"))
            continue
        if bay_number_of(bay) is None:
            found.append(_anomaly(
                "invalid_bay_number", "bay", bay_id,
                f"bay_number {bay.get('bay_number')!r} is not numeric",
            ))
            continue
        known.add(bay_id)
    return found, known


def _window_anomalies(assignment: Mapping[str, Any], record_id: str | None) -> list[dict[str, Any]]:
    found: list[dict[str, Any]] = []
    available_from = assignment.get("available_from")
    available_to = assignment.get("available_to")
    if bool(available_from) != bool(available_to):
        found.append(_anomaly(
            "half_open_window", "assignment", record_id,
            f"Window needs both bounds (from={available_from!r}, to={available_to!r})",
        ))
        return found
    if not available_from:
        return found
    if not is_iso_date(available_from) or not is_iso_date(available_to):
        found.append(_anomaly(
            "invalid_window_date", "assignment", record_id,
            f"Window bounds must be yyyy-MM-dd ({available_from!r} to {available_to!r})",
        ))
    elif available_from > available_to:
        found.append(_anomaly(
            "inverted_window", "assignment", record_id,
            f"Window starts after it ends ({available_from} to {available_to})",
        ))
    return found


def _overlapping_day(bay_days: Mapping[str, str | None], day: str) -> str | None:
    """An already assigned day that shares a weekday with day, or None.

    "All Days" overlaps every weekday.
    """
    if day in bay_days:
        return day
    if day == ALL_DAYS:
        return next(iter(bay_days), None)
    if ALL_DAYS in bay_days:
        return ALL_DAYS
    return None


def find_anomalies(
    bays: Iterable[Mapping[str, Any]] | None,
    claims: Iterable[Mapping[str, Any]] | None,
    assignments: Iterable[Mapping[str, Any]] | None,
    *,
    today: str,
) -> list[dict[str, Any]]:
    """Report every record the resolver would skip, tie-break or ignore.

    Returns a list of anomaly dicts:
        {kind, category, source, record_id, detail}
    """
    bay_rows = [b for b in bays or () if b]
    claim_rows = [c for c in claims or () if c]
    assignment_rows = [a for a in assignments or () if a]

    anomalies, known_bays = _bay_anomalies(bay_rows)

    active_seen: dict[str, str | None] = {}
    for claim in claim_rows:
        claim_id = record_key(claim.get("claim_id"))
        bay_id = record_key(claim.get("bay_id"))
        if bay_id is None:
            anomalies.append(_anomaly("missing_bay_id", "claim", claim_id, "Claim has no bay_id"))
            continue
        if bay_id not in known_bays:
            anomalies.append(_anomaly("unknown_bay", "claim", claim_id, f"Claim refers to unknown bay {bay_id}"))
            continue
        status = claim.get("status")
        if status not in CLAIM_STATUSES:
            anomalies.append(_anomaly(
                "unknown_claim_status", "claim", claim_id, f"Claim status {status!r} is not recognised",
            ))
            continue
        if status == CLAIM_ACTIVE and is_claim_for_day(claim, today):
            if bay_id in active_seen:
                anomalies.append(_anomaly(
                    "duplicate_active_claim", "claim", claim_id,
                    f"Bay {bay_id} already has Active claim {active_seen[bay_id]} on {today}; this one is ignored",
                ))
            else:
                active_seen[bay_id] = claim_id

    held: dict[str, dict[str, str | None]] = {}
    for assignment in assignment_rows:
        assignment_id = record_key(assignment.get("assignment_id"))
        bay_id = record_key(assignment.get("bay_id"))
        if bay_id is None:
            anomalies.append(_anomaly("missing_bay_id", "assignment", assignment_id, "Assignment has no bay_id"))
            continue
        if bay_id not in known_bays:
            anomalies.append(_anomaly(
                "unknown_bay", "assignment", assignment_id, f"Assignment refers to unknown bay {bay_id}",
            ))
            continue
        day = assignment.get("day_of_week")
        if day not in _VALID_DAYS:
            anomalies.append(_anomaly(
                "unknown_day_of_week", "assignment", assignment_id, f"day_of_week {day!r} never matches",
            ))
        else:
            bay_days = held.setdefault(bay_id, {})
            clash = _overlapping_day(bay_days, day)
            if clash is not None:
                anomalies.append(_anomaly(
                    "duplicate_assignment", "assignment", assignment_id,
                    f"Bay {bay_id} already assigned on {clash} by {bay_days[clash]}; "
                    f"{day} overlaps it and this one is ignored there",
                ))
            bay_days.setdefault(day, assignment_id)
        anomalies.extend(_window_anomalies(assignment, assignment_id))

    return anomalies


def summarize_anomalies(anomalies: list[dict[str, Any]]) -> dict[str, Any]:
    """Count anomalies by kind and by category."""
    return {
        "total": len(anomalies),
        "by_kind": dict(Counter(a["kind"] for a in anomalies).most_common()),
        "by_category": dict(Counter(a["category"] for a in anomalies).most_common()),
    }
