"""Shared bay availability core for the board, the schedule table and the MCP tools."""

from .anomalies import find_anomalies, summarize_anomalies
from .dates import availability_window, date_range, day_of_week_name, matches_day, window_contains
from .overrides import plan_make_available, plan_reservation, plan_revocation
from .records import ResolvedBay, ScheduleRow
from .resolver import referenced_user_ids, resolve, resolve_grid, resolve_schedule

# io: render_xlsx is a lazy wrapper, openpyxl loads on first call
from .io import load_input, render_xlsx, write_output

__all__ = [
    "ResolvedBay",
    "ScheduleRow",
    "availability_window",
    "date_range",
    "day_of_week_name",
    "find_anomalies",
    "load_input",
    "matches_day",
    "plan_make_available",
    "plan_reservation",
    "plan_revocation",
    "referenced_user_ids",
    "render_xlsx",
    "resolve",
    "resolve_grid",
    "resolve_schedule",
    "summarize_anomalies",
    "window_contains",
    "write_output",
]
