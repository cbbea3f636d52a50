from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from bay_core.anomalies import find_anomalies, summarize_anomalies
from bay_core.dates import day_of_week_name
from bay_core.records import bay_number_of, record_key

from .utils import now_utc_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SnapshotBuildInput:
    today: str
    payload: dict[str, Any]
    current_user_id: str | None = None


def _normalize_bay(raw: dict[str, Any]) -> dict[str, Any]:
    number = bay_number_of(raw)
    return {
        "bay_id": record_key(raw.get("bay_id")),
        # Unparseable numbers are kept as-is so the anomaly report can name them.
        "bay_number": number if number is not None else raw.get("bay_number"),
        "location": record_key(raw.get("location")),
        "status": record_key(raw.get("status")),
        "type": record_key(raw.get("type")),
    }


def _normalize_assignment(raw: dict[str, Any]) -> dict[str, Any]:
    return {
        "assignment_id": record_key(raw.get("assignment_id")),
        "bay_id": record_key(raw.get("bay_id")),
        "user_id": record_key(raw.get("user_id")),
        "day_of_week": record_key(raw.get("day_of_week")),
        "available_from": record_key(raw.get("available_from")),
        "available_to": record_key(raw.get("available_to")),
    }


def _normalize_claim(raw: dict[str, Any]) -> dict[str, Any]:
    return {
        "claim_id": record_key(raw.get("claim_id")),
        "bay_id": record_key(raw.get("bay_id")),
        "user_id": record_key(raw.get("user_id")),
        "claim_date": record_key(raw.get("claim_date")),
        "status": record_key(raw.get("status")),
        "created_by": record_key(raw.get("created_by")),
    }


def _bay_sort_key(bay: dict[str, Any]) -> float:
    number = bay["bay_number"]
    if isinstance(number, (int, float)) and not isinstance(number, bool):
        return number
    return float("inf")


def build_snapshot(data: SnapshotBuildInput) -> dict[str, Any]:
    """Normalize a raw store payload into the snapshot dict the resolver reads."""
    payload = data.payload
    bays = sorted((_normalize_bay(b) for b in payload.get("bays", []) if b), key=_bay_sort_key)
    assignments = [_normalize_assignment(a) for a in payload.get("permanent_assignments", []) if a]
    claims = [_normalize_claim(c) for c in payload.get("daily_claims", []) if c]

    user_names: dict[str, str] = {}
    for row in payload.get("users", []):
        uid = record_key(row.get("user_id"))
        name = record_key(row.get("name"))
        if uid and name:
            user_names[uid] = name

    anomalies = find_anomalies(bays, claims, assignments, today=data.today)
    summary = summarize_anomalies(anomalies)
    if anomalies:
        logger.warning(
            "Snapshot for %s has %d anomalies: %s",
            data.today,
            summary["total"],
            summary["by_kind"],
        )

    snapshot_id = f"bays-{data.today}-{uuid4().hex[:8]}"
    counts = {
        "bays": len(bays),
        "permanent_assignments": len(assignments),
        "daily_claims": len(claims),
        "users": len(user_names),
    }
    logger.info("Built snapshot %s: %s", snapshot_id, counts)
    return {
        "snapshot_id": snapshot_id,
        "generated_at": now_utc_iso(),
        "date": data.today,
        "day_of_week": day_of_week_name(data.today),
        "current_user_id": record_key(data.current_user_id),
        "bays": bays,
        "permanent_assignments": assignments,
        "daily_claims": claims,
        "user_names": user_names,
        "anomalies": anomalies,
        "metadata": {
            "counts": counts,
            "anomalies": summary,
        },
    }
