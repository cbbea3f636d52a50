"""Render resolved bays and the assignments table to a multi-sheet XLSX workbook."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from bay_core.records import (
    AVAILABLE,
    LABEL_ACTIVE,
    LABEL_CANCELLED_TODAY,
    LABEL_SCHEDULED,
    MAINTENANCE,
    ResolvedBay,
    ScheduleRow,
)

from .schemas import ANOMALY_COLS, BOARD_COLS, SCHEDULE_COLS, fmt_bool

# Status -> fill colour, matching the board and table colour coding.
_BOARD_FILLS = {
    AVAILABLE: "C6EFCE",
    MAINTENANCE: "FCE4D6",
}
_RESERVED_FILL = "DDEBF7"

_SCHEDULE_FILLS = {
    LABEL_ACTIVE: "C6EFCE",
    LABEL_SCHEDULED: "DDEBF7",
    LABEL_CANCELLED_TODAY: "FFEB9C",
}
_TEMPORARY_FILL = "BDD7EE"
_OTHER_FILL = "FFC7CE"


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _get_openpyxl():
    try:
        from openpyxl import Workbook
        from openpyxl.styles import Font, PatternFill
        return Workbook, Font, PatternFill
    except ImportError as exc:
        raise ImportError("openpyxl is required for XLSX export: pip install openpyxl") from exc


def _style_headers(worksheets):
    """Apply bold + blue fill to header row of each worksheet."""
    _, Font, PatternFill = _get_openpyxl()
    header_font = Font(bold=True)
    header_fill = PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid")
    for ws in worksheets:
        for cell in ws[1]:
            cell.font = header_font
            cell.fill = header_fill


def _fill(color: str):
    _, _, PatternFill = _get_openpyxl()
    return PatternFill(start_color=color, end_color=color, fill_type="solid")


def _cell_value(value: Any) -> Any:
    if isinstance(value, bool):
        return fmt_bool(value)
    return value


def _board_fill(status: str) -> str:
    return _BOARD_FILLS.get(status, _RESERVED_FILL)


def _schedule_fill(status: str) -> str:
    if status in _SCHEDULE_FILLS:
        return _SCHEDULE_FILLS[status]
    if status.startswith("Temporarily available"):
        return _TEMPORARY_FILL
    return _OTHER_FILL


def _write_rows(ws, columns: list[str], rows: list[dict[str, Any]], status_fill=None) -> None:
    ws.append(columns)
    status_col = columns.index("status") + 1 if "status" in columns else None
    for row in rows:
        ws.append([_cell_value(row.get(c)) for c in columns])
        if status_fill and status_col:
            cell = ws.cell(row=ws.max_row, column=status_col)
            cell.fill = _fill(status_fill(str(row.get("status") or "")))
    for idx, col in enumerate(columns, start=1):
        width = max([len(col)] + [len(str(r.get(col) or "")) for r in rows])
        ws.column_dimensions[ws.cell(row=1, column=idx).column_letter].width = min(width + 2, 60)
    ws.freeze_panes = "A2"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def render_xlsx(
    board: Sequence[ResolvedBay],
    schedule: Sequence[ScheduleRow],
    path: Path,
    *,
    anomalies: list[dict[str, Any]] | None = None,
    title: str | None = None,
) -> Path:
    """Write Bays, Schedule (and optionally Anomalies) sheets to path."""
    Workbook, Font, _ = _get_openpyxl()
    wb = Workbook()

    ws_board = wb.active
    ws_board.title = "Bays"
    _write_rows(ws_board, BOARD_COLS, [r.to_dict() for r in board], _board_fill)

    ws_schedule = wb.create_sheet("Schedule")
    _write_rows(ws_schedule, SCHEDULE_COLS, [r.to_dict() for r in schedule], _schedule_fill)

    sheets = [ws_board, ws_schedule]
    if anomalies:
        ws_anomalies = wb.create_sheet("Anomalies")
        _write_rows(ws_anomalies, ANOMALY_COLS, anomalies)
        sheets.append(ws_anomalies)

    _style_headers(sheets)
    if title:
        wb.properties.title = title

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    wb.save(target)
    return target
