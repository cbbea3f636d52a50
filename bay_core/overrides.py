"""Change-set planners for the cancellation and override rules.

Each planner is pure: it reads the current records and returns the writes
that would put the rule into effect. Applying the change set is the store's
job. A change set always has the same three keys:

    {
        "assignment_updates": [{assignment_id, available_from, available_to}],
        "claim_updates":      [{claim_id, status}],
        "claim_inserts":      [{bay_id, user_id, claim_date, status, created_by}],
    }
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .dates import date_range
from .records import (
    AVAILABLE,
    CLAIM_ACTIVE,
    CLAIM_CANCELLED,
    RESERVED,
    ResolvedBay,
    record_key,
)


def empty_change_set() -> dict[str, list[dict[str, Any]]]:
    return {"assignment_updates": [], "claim_updates": [], "claim_inserts": []}


def _claim_insert(bay_id: str, user_id: str, claim_date: str, status: str, created_by: str) -> dict[str, Any]:
    return {
        "bay_id": bay_id,
        "user_id": user_id,
        "claim_date": claim_date,
        "status": status,
        "created_by": created_by,
    }


def plan_make_available(
    bay_id: str,
    user_id: str,
    assignments: Iterable[Mapping[str, Any]],
    claims: Iterable[Mapping[str, Any]],
    window: tuple[str, str],
    *,
    actor_id: str | None = None,
) -> dict[str, list[dict[str, Any]]]:
    """Release a permanently assigned bay for every date in window.

    Sets the availability window on each of the user's assignments for the
    bay, and records a Cancelled claim per date so the release also shows
    on days the window alone would not cover. Existing claims by the user on
    those dates are flipped to Cancelled instead of duplicated.
    """
    available_from, available_to = window
    bay_key = record_key(bay_id)
    user_key = record_key(user_id)

    own = [
        a for a in assignments
        if a and record_key(a.get("bay_id")) == bay_key and record_key(a.get("user_id")) == user_key
    ]
    if not own:
        raise ValueError("No permanent assignments found for this bay")

    changes = empty_change_set()
    for assignment in own:
        changes["assignment_updates"].append({
            "assignment_id": record_key(assignment.get("assignment_id")),
            "available_from": available_from,
            "available_to": available_to,
        })

    existing: dict[str, Mapping[str, Any]] = {}
    for claim in claims:
        if not claim:
            continue
        if record_key(claim.get("bay_id")) != bay_key or record_key(claim.get("user_id")) != user_key:
            continue
        existing.setdefault(str(claim.get("claim_date") or ""), claim)

    for day in date_range(available_from, available_to):
        claim = existing.get(day)
        if claim is not None:
            if claim.get("status") != CLAIM_CANCELLED:
                changes["claim_updates"].append({
                    "claim_id": record_key(claim.get("claim_id")),
                    "status": CLAIM_CANCELLED,
                })
            continue
        changes["claim_inserts"].append(
            _claim_insert(bay_key, user_key, day, CLAIM_CANCELLED, record_key(actor_id) or user_key)
        )
    return changes


def plan_reservation(bay: ResolvedBay, user_id: str, today: str) -> dict[str, list[dict[str, Any]]]:
    """Claim a resolved bay for today. Only Available bays can be claimed."""
    if bay.status != AVAILABLE:
        raise ValueError(f"Bay {bay.bay_number} is not available for reservation (status: {bay.status})")
    user_key = record_key(user_id)
    if user_key is None:
        raise ValueError("A user_id is required to reserve a bay")
    changes = empty_change_set()
    changes["claim_inserts"].append(_claim_insert(bay.bay_id, user_key, today, CLAIM_ACTIVE, user_key))
    return changes


def plan_revocation(
    bay: ResolvedBay,
    claims: Iterable[Mapping[str, Any]],
    *,
    today: str,
    actor_id: str,
) -> dict[str, list[dict[str, Any]]]:
    """Revoke today's holder of a reserved bay.

    A permanent holder gets a Cancelled claim for today; a daily holder has
    their Active claims on the bay for today cancelled.
    """
    if bay.status != RESERVED or bay.holder_user_id is None:
        raise ValueError(f"Bay {bay.bay_number} has no reservation to revoke (status: {bay.status})")

    changes = empty_change_set()
    if bay.is_permanent:
        changes["claim_inserts"].append(
            _claim_insert(bay.bay_id, bay.holder_user_id, today, CLAIM_CANCELLED, actor_id)
        )
        return changes

    for claim in claims:
        if not claim:
            continue
        if record_key(claim.get("bay_id")) != bay.bay_id:
            continue
        if record_key(claim.get("user_id")) != bay.holder_user_id:
            continue
        if claim.get("status") != CLAIM_ACTIVE:
            continue
        if claim.get("claim_date") and str(claim.get("claim_date")) != today:
            continue
        changes["claim_updates"].append({
            "claim_id": record_key(claim.get("claim_id")),
            "status": CLAIM_CANCELLED,
        })
    return changes
