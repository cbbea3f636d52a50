"""Write resolver output to JSON artifacts.

board.json holds the grid (one row per bay), schedule.json the assignments
table. Both carry the resolved date and status counts next to the rows so a
display layer can render summaries without recounting.
"""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from bay_core.records import BAY_STATUSES, ResolvedBay, ScheduleRow


def status_counts(rows: Sequence[ResolvedBay | ScheduleRow], *, grid: bool = False) -> dict[str, int]:
    """Count rows by status. With grid=True every bay status is present, even at 0."""
    counts = Counter(r.status for r in rows)
    if grid:
        for status in BAY_STATUSES:
            counts.setdefault(status, 0)
    return dict(sorted(counts.items()))


def build_board_payload(
    rows: Sequence[ResolvedBay],
    *,
    today: str,
    day_of_week: str,
    current_user_id: str | None = None,
) -> dict[str, Any]:
    return {
        "mode": "grid",
        "date": today,
        "day_of_week": day_of_week,
        "current_user_id": current_user_id,
        "counts": status_counts(rows, grid=True),
        "bays": [r.to_dict() for r in rows],
    }


def build_schedule_payload(
    rows: Sequence[ScheduleRow],
    *,
    today: str,
    day_of_week: str,
) -> dict[str, Any]:
    by_type = Counter(r.reservation_type for r in rows)
    return {
        "mode": "schedule",
        "date": today,
        "day_of_week": day_of_week,
        "counts": status_counts(rows),
        "by_reservation_type": dict(sorted(by_type.items())),
        "rows": [r.to_dict() for r in rows],
    }


def write_output(payload: dict[str, Any], directory: Path) -> dict[str, Path]:
    """Write a board or schedule payload into directory.

    Returns {filename: path} for the file written.
    """
    out = Path(directory)
    out.mkdir(parents=True, exist_ok=True)
    name = "schedule.json" if payload.get("mode") == "schedule" else "board.json"
    path = out / name
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    return {name: path}
