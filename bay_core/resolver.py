"""Bay availability resolver.

Derives a single status per bay for one date from three read-only snapshots:
bays, permanent assignments and daily claims. Two output shapes exist:

  - grid:      one ResolvedBay per bay (Available / Reserved / Maintenance)
  - schedule:  every permanent assignment row plus today's daily claims,
               labelled for the assignments table

Precedence for the grid, first match wins:

  1. stored Maintenance
  2. Active daily claim for the date
  3. assignee's temporary-availability window covers the date
  4. permanent assignment for the weekday (unless the assignee cancelled)
  5. Available

All functions are pure: inputs are never mutated and every call builds its
own indexes, so concurrent calls on different snapshots are safe.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .dates import day_of_week_name, matches_day, window_contains
from .records import (
    AVAILABLE,
    CLAIM_ACTIVE,
    CLAIM_CANCELLED,
    DAILY,
    LABEL_ACTIVE,
    LABEL_CANCELLED_TODAY,
    LABEL_SCHEDULED,
    LABEL_TEMPORARILY_AVAILABLE,
    MAINTENANCE,
    PERMANENT,
    RESERVED,
    ResolvedBay,
    ScheduleRow,
    bay_number_of,
    record_key,
    user_name_of,
)

logger = logging.getLogger(__name__)

MODES = ("grid", "schedule")

Record = Mapping[str, Any]


@dataclass
class ClaimIndex:
    active_by_bay: dict[str, str | None] = field(default_factory=dict)
    cancelled_by_bay: dict[str, set[str]] = field(default_factory=dict)


@dataclass
class AssignmentIndex:
    temporarily_available: dict[str, str | None] = field(default_factory=dict)
    permanent_by_bay: dict[str, str | None] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Index construction
# ---------------------------------------------------------------------------


def index_bays(bays: Iterable[Record] | None) -> dict[str, tuple[Record, int | float]]:
    """bay_id -> (bay, bay_number) in input order. Malformed bays are skipped."""
    out: dict[str, tuple[Record, int | float]] = {}
    for bay in bays or ():
        if not bay:
            continue
        bay_id = record_key(bay.get("bay_id"))
        if bay_id is None:
            logger.debug("Skipping bay without bay_id: %r", bay)
            continue
        number = bay_number_of(bay)
        if number is None:
            logger.debug("Skipping bay %s with invalid bay_number %r", bay_id, bay.get("bay_number"))
            continue
        if bay_id in out:
            continue
        out[bay_id] = (bay, number)
    return out


def is_claim_for_day(claim: Record, today: str) -> bool:
    """Claims without a claim_date are taken to be pre-filtered to today."""
    claim_date = claim.get("claim_date")
    return not claim_date or str(claim_date) == today


def index_claims(claims: Iterable[Record] | None, today: str) -> ClaimIndex:
    """Split today's claims into the first Active claimant and the cancelling users per bay."""
    idx = ClaimIndex()
    for claim in claims or ():
        if not claim:
            continue
        bay_id = record_key(claim.get("bay_id"))
        if bay_id is None:
            logger.debug("Skipping claim without bay_id: %r", claim)
            continue
        if not is_claim_for_day(claim, today):
            continue
        user_id = record_key(claim.get("user_id"))
        status = claim.get("status")
        if status == CLAIM_ACTIVE:
            # Duplicate Active claims: first in input order wins.
            idx.active_by_bay.setdefault(bay_id, user_id)
        elif status == CLAIM_CANCELLED and user_id is not None:
            idx.cancelled_by_bay.setdefault(bay_id, set()).add(user_id)
    return idx


def index_assignments(
    assignments: Iterable[Record] | None,
    today: str,
    day_of_week: str,
) -> AssignmentIndex:
    """Split assignments into released bays and bays held on day_of_week.

    A window containing today releases the bay whatever the assignment's
    weekday. Only the held side is filtered by day_of_week.
    """
    idx = AssignmentIndex()
    held: list[tuple[str, str | None]] = []
    for assignment in assignments or ():
        if not assignment:
            continue
        bay_id = record_key(assignment.get("bay_id"))
        if bay_id is None:
            logger.debug("Skipping assignment without bay_id: %r", assignment)
            continue
        user_id = record_key(assignment.get("user_id"))
        if window_contains(assignment.get("available_from"), assignment.get("available_to"), today):
            idx.temporarily_available.setdefault(bay_id, user_id)
        elif matches_day(assignment.get("day_of_week"), day_of_week):
            held.append((bay_id, user_id))
    for bay_id, user_id in held:
        if bay_id not in idx.temporarily_available:
            idx.permanent_by_bay.setdefault(bay_id, user_id)
    return idx


def referenced_user_ids(
    claims: Iterable[Record] | None,
    assignments: Iterable[Record] | None,
) -> set[str]:
    """All user ids a resolution may need a display name for."""
    ids: set[str] = set()
    for row in [*(claims or ()), *(assignments or ())]:
        if not row:
            continue
        uid = record_key(row.get("user_id"))
        if uid is not None:
            ids.add(uid)
    return ids


# ---------------------------------------------------------------------------
# Grid mode
# ---------------------------------------------------------------------------


def _resolve_status(
    bay_id: str,
    stored_status: Any,
    claims: ClaimIndex,
    assignments: AssignmentIndex,
) -> tuple[str, str | None, bool]:
    """Return (status, holder_user_id, is_permanent) for one bay."""
    if stored_status == MAINTENANCE:
        return MAINTENANCE, None, False

    if bay_id in claims.active_by_bay:
        return RESERVED, claims.active_by_bay[bay_id], False

    if bay_id in assignments.temporarily_available:
        return AVAILABLE, None, False

    if bay_id in assignments.permanent_by_bay:
        assignee = assignments.permanent_by_bay[bay_id]
        if assignee is not None and assignee in claims.cancelled_by_bay.get(bay_id, ()):
            return AVAILABLE, None, False
        return RESERVED, assignee, True

    return AVAILABLE, None, False


def resolve_grid(
    bays: Iterable[Record] | None,
    claims: Iterable[Record] | None,
    assignments: Iterable[Record] | None,
    *,
    today: str,
    day_of_week: str | None = None,
    current_user_id: str | None = None,
    user_names: Mapping[str, str] | None = None,
) -> list[ResolvedBay]:
    """Resolve today's live status for every bay, ordered by bay_number."""
    day = day_of_week or day_of_week_name(today)
    claim_idx = index_claims(claims, today)
    assign_idx = index_assignments(assignments, today, day)
    current = record_key(current_user_id)

    resolved: list[ResolvedBay] = []
    for bay_id, (bay, number) in index_bays(bays).items():
        status, holder, is_permanent = _resolve_status(bay_id, bay.get("status"), claim_idx, assign_idx)
        resolved.append(
            ResolvedBay(
                bay_id=bay_id,
                bay_number=number,
                status=status,
                holder_user_id=holder,
                holder_name=user_name_of(holder, user_names) if holder is not None else None,
                is_permanent=is_permanent,
                reserved_by_you=holder is not None and holder == current,
                location=bay.get("location"),
                type=bay.get("type"),
            )
        )

    resolved.sort(key=lambda r: r.bay_number)
    return resolved


# ---------------------------------------------------------------------------
# Schedule mode
# ---------------------------------------------------------------------------


def _assignment_label(
    assignment: Record,
    *,
    for_today: bool,
    cancelled_users: set[str],
    user_id: str | None,
    today: str,
) -> str:
    available_from = assignment.get("available_from")
    available_to = assignment.get("available_to")
    if for_today and window_contains(available_from, available_to, today):
        return LABEL_TEMPORARILY_AVAILABLE.format(available_from=available_from, available_to=available_to)
    if for_today and user_id is not None and user_id in cancelled_users:
        return LABEL_CANCELLED_TODAY
    if for_today:
        return LABEL_ACTIVE
    return LABEL_SCHEDULED


def resolve_schedule(
    bays: Iterable[Record] | None,
    claims: Iterable[Record] | None,
    assignments: Iterable[Record] | None,
    *,
    today: str,
    day_of_week: str | None = None,
    user_names: Mapping[str, str] | None = None,
) -> list[ScheduleRow]:
    """Build the full-week assignments table plus today's daily claims.

    Every permanent assignment is emitted regardless of weekday. A permanent
    row and a daily row for the same bay both appear.
    """
    day = day_of_week or day_of_week_name(today)
    numbers = {bay_id: number for bay_id, (_, number) in index_bays(bays).items()}
    claim_list = [c for c in claims or () if c]
    cancelled = index_claims(claim_list, today).cancelled_by_bay

    rows: list[ScheduleRow] = []
    for assignment in assignments or ():
        if not assignment:
            continue
        bay_id = record_key(assignment.get("bay_id"))
        if bay_id is None or bay_id not in numbers:
            logger.debug("Skipping assignment for unknown bay: %r", assignment)
            continue
        user_id = record_key(assignment.get("user_id"))
        label = _assignment_label(
            assignment,
            for_today=matches_day(assignment.get("day_of_week"), day),
            cancelled_users=cancelled.get(bay_id, set()),
            user_id=user_id,
            today=today,
        )
        rows.append(
            ScheduleRow(
                bay_id=bay_id,
                bay_number=numbers[bay_id],
                reservation_type=PERMANENT,
                day_or_date=str(assignment.get("day_of_week") or ""),
                user_id=user_id,
                user_name=user_name_of(user_id, user_names),
                status=label,
                assignment_id=record_key(assignment.get("assignment_id")),
            )
        )

    for claim in claim_list:
        bay_id = record_key(claim.get("bay_id"))
        if bay_id is None or bay_id not in numbers:
            logger.debug("Skipping claim for unknown bay: %r", claim)
            continue
        if not is_claim_for_day(claim, today):
            continue
        user_id = record_key(claim.get("user_id"))
        rows.append(
            ScheduleRow(
                bay_id=bay_id,
                bay_number=numbers[bay_id],
                reservation_type=DAILY,
                day_or_date=str(claim.get("claim_date") or today),
                user_id=user_id,
                user_name=user_name_of(user_id, user_names),
                status=str(claim.get("status") or ""),
                claim_id=record_key(claim.get("claim_id")),
            )
        )

    rows.sort(key=lambda r: r.bay_number)
    return rows


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


def resolve(
    bays: Iterable[Record] | None,
    claims: Iterable[Record] | None,
    assignments: Iterable[Record] | None,
    *,
    today: str,
    day_of_week: str | None = None,
    current_user_id: str | None = None,
    mode: str = "grid",
    user_names: Mapping[str, str] | None = None,
) -> list[ResolvedBay] | list[ScheduleRow]:
    """Resolve bays in the given mode ("grid" or "schedule")."""
    if mode == "grid":
        return resolve_grid(
            bays,
            claims,
            assignments,
            today=today,
            day_of_week=day_of_week,
            current_user_id=current_user_id,
            user_names=user_names,
        )
    if mode == "schedule":
        return resolve_schedule(
            bays,
            claims,
            assignments,
            today=today,
            day_of_week=day_of_week,
            user_names=user_names,
        )
    raise ValueError(f"Unknown mode: {mode!r}. Choose from {MODES}")
