"""Read a CSV input directory into the snapshot dict the resolver expects."""

from __future__ import annotations

import csv
import json
from pathlib import Path

from bay_core.dates import day_of_week_name

from .schemas import (
    BAYS_COLS,
    DAILY_CLAIMS_COLS,
    PERMANENT_ASSIGNMENTS_COLS,
    USERS_COLS,
    blank_to_none,
    to_number,
)


def load_input(directory: Path) -> tuple[dict, dict]:
    """Read CSV input dir -> (snapshot_dict, meta_dict).

    Expects bays.csv, permanent_assignments.csv, daily_claims.csv and
    meta.json; users.csv is optional. Raises FileNotFoundError if a
    required file is missing and ValueError if a header lacks a column.
    """
    d = Path(directory)

    # -- meta.json --------------------------------------------------------------
    meta_dict = _read_json(d / "meta.json")
    if "today" not in meta_dict:
        raise ValueError(f"meta.json in {d} has no 'today' date")
    meta_dict.setdefault("day_of_week", day_of_week_name(meta_dict["today"]))
    meta_dict.setdefault("current_user_id", None)

    # -- bays.csv ---------------------------------------------------------------
    bays = []
    for row in _read_csv(d / "bays.csv", BAYS_COLS):
        number = to_number(row.get("bay_number"))
        bays.append(
            {
                "bay_id": blank_to_none(row.get("bay_id")),
                "bay_number": number if number is not None else row.get("bay_number"),
                "location": blank_to_none(row.get("location")),
                "status": blank_to_none(row.get("status")),
                "type": blank_to_none(row.get("type")),
            }
        )
    bays.sort(key=lambda b: b["bay_number"] if isinstance(b["bay_number"], (int, float)) else float("inf"))

    # -- permanent_assignments.csv ---------------------------------------------
    assignments = []
    for row in _read_csv(d / "permanent_assignments.csv", PERMANENT_ASSIGNMENTS_COLS):
        assignments.append(
            {
                "assignment_id": blank_to_none(row.get("assignment_id")),
                "bay_id": blank_to_none(row.get("bay_id")),
                "user_id": blank_to_none(row.get("user_id")),
                "day_of_week": blank_to_none(row.get("day_of_week")),
                "available_from": blank_to_none(row.get("available_from")),
                "available_to": blank_to_none(row.get("available_to")),
            }
        )

    # -- daily_claims.csv -------------------------------------------------------
    claims = []
    for row in _read_csv(d / "daily_claims.csv", DAILY_CLAIMS_COLS):
        claims.append(
            {
                "claim_id": blank_to_none(row.get("claim_id")),
                "bay_id": blank_to_none(row.get("bay_id")),
                "user_id": blank_to_none(row.get("user_id")),
                "claim_date": blank_to_none(row.get("claim_date")),
                "status": blank_to_none(row.get("status")),
            }
        )

    # -- users.csv (optional) ---------------------------------------------------
    user_names: dict[str, str] = {}
    users_path = d / "users.csv"
    if users_path.exists():
        for row in _read_csv(users_path, USERS_COLS):
            uid = blank_to_none(row.get("user_id"))
            name = blank_to_none(row.get("name"))
            if uid and name:
                user_names[uid] = name

    snapshot_dict = {
        "snapshot_id": meta_dict.get("snapshot_id", d.name),
        "date": meta_dict["today"],
        "day_of_week": meta_dict["day_of_week"],
        "bays": bays,
        "permanent_assignments": assignments,
        "daily_claims": claims,
        "user_names": user_names,
        "metadata": {
            "counts": {
                "bays": len(bays),
                "permanent_assignments": len(assignments),
                "daily_claims": len(claims),
                "users": len(user_names),
            }
        },
    }
    return snapshot_dict, meta_dict


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_json(path: Path) -> dict:
    """Read and parse a JSON file."""
    if not path.exists():
        raise FileNotFoundError(f"Required file not found: {path}")
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _read_csv(path: Path, columns: list[str]) -> list[dict[str, str]]:
    """Read a CSV file into a list of dicts via csv.DictReader.

    Raises ValueError if the header lacks any of columns.
    """
    if not path.exists():
        raise FileNotFoundError(f"Required file not found: {path}")
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        missing = [c for c in columns if c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"{path.name} is missing columns: {', '.join(missing)}")
        return list(reader)
