"""Input/output layer for bay snapshots and resolver results.

Public API:
    load_input(directory)        -- read CSV input dir -> (snapshot, meta)
    build_board_payload(...)     -- grid rows -> board.json payload
    build_schedule_payload(...)  -- schedule rows -> schedule.json payload
    write_output(payload, dir)   -- write board.json / schedule.json
    render_xlsx(board, ...)      -- generate multi-sheet workbook
"""

from .reader import load_input
from .writer import build_board_payload, build_schedule_payload, status_counts, write_output

__all__ = [
    "build_board_payload",
    "build_schedule_payload",
    "load_input",
    "render_xlsx",
    "status_counts",
    "write_output",
]

# Lazy import for the optional heavy dependency (openpyxl).
def render_xlsx(*args, **kwargs):
    from .xlsx import render_xlsx as _fn
    return _fn(*args, **kwargs)
