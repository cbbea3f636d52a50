"""Tests for the bay availability resolver (grid and schedule modes)."""

from __future__ import annotations

import copy

import pytest

from bay_core.records import UNKNOWN_USER
from bay_core.resolver import (
    index_assignments,
    index_claims,
    referenced_user_ids,
    resolve,
    resolve_grid,
    resolve_schedule,
)

TODAY = "2026-03-02"  # a Monday
DAY = "Monday"


def _bay(bay_id="B1", number=1, status="Available", **extra):
    return {"bay_id": bay_id, "bay_number": number, "status": status, **extra}


def _assignment(bay_id="B1", user_id="U1", day="Monday", available_from=None, available_to=None, aid="A1"):
    return {
        "assignment_id": aid,
        "bay_id": bay_id,
        "user_id": user_id,
        "day_of_week": day,
        "available_from": available_from,
        "available_to": available_to,
    }


def _claim(bay_id="B1", user_id="U1", status="Active", claim_date=TODAY, cid="C1"):
    return {
        "claim_id": cid,
        "bay_id": bay_id,
        "user_id": user_id,
        "claim_date": claim_date,
        "status": status,
    }


def _grid(bays, claims=(), assignments=(), current_user_id=None, user_names=None):
    return resolve_grid(
        bays,
        list(claims),
        list(assignments),
        today=TODAY,
        day_of_week=DAY,
        current_user_id=current_user_id,
        user_names=user_names,
    )


class TestGridScenarios:
    def test_no_claims_no_assignments_is_available(self):
        [bay] = _grid([_bay()])
        assert bay.status == "Available"
        assert bay.holder_user_id is None
        assert bay.holder_name is None

    def test_permanent_assignment_reserves_bay(self):
        [bay] = _grid([_bay()], assignments=[_assignment()])
        assert bay.status == "Reserved"
        assert bay.holder_user_id == "U1"
        assert bay.is_permanent is True

    def test_assignee_cancellation_frees_bay(self):
        [bay] = _grid(
            [_bay()],
            claims=[_claim(user_id="U1", status="Cancelled")],
            assignments=[_assignment()],
        )
        assert bay.status == "Available"
        assert bay.holder_user_id is None

    def test_active_claim_beats_permanent_assignment(self):
        [bay] = _grid(
            [_bay()],
            claims=[_claim(user_id="U2")],
            assignments=[_assignment()],
        )
        assert bay.status == "Reserved"
        assert bay.holder_user_id == "U2"
        assert bay.is_permanent is False

    def test_availability_window_frees_bay(self):
        [bay] = _grid([_bay()], assignments=[_assignment(available_from=TODAY, available_to=TODAY)])
        assert bay.status == "Available"
        assert bay.holder_user_id is None

    def test_maintenance_is_terminal(self):
        [bay] = _grid([_bay("B2", 2, "Maintenance")], claims=[_claim(bay_id="B2", user_id="U2")])
        assert bay.status == "Maintenance"
        assert bay.holder_user_id is None
        assert bay.reserved_by_you is False


class TestGridPrecedence:
    def test_maintenance_ignores_assignment_and_window(self):
        [bay] = _grid(
            [_bay(status="Maintenance")],
            claims=[_claim(status="Cancelled")],
            assignments=[_assignment(), _assignment(aid="A2", available_from=TODAY, available_to=TODAY)],
        )
        assert bay.status == "Maintenance"

    def test_active_claim_beats_availability_window(self):
        [bay] = _grid(
            [_bay()],
            claims=[_claim(user_id="U9")],
            assignments=[_assignment(available_from="2026-03-01", available_to="2026-03-05")],
        )
        assert bay.status == "Reserved"
        assert bay.holder_user_id == "U9"
        assert bay.is_permanent is False

    def test_window_outside_today_keeps_reservation(self):
        [bay] = _grid([_bay()], assignments=[_assignment(available_from="2026-03-03", available_to="2026-03-09")])
        assert bay.status == "Reserved"
        assert bay.holder_user_id == "U1"

    def test_window_bounds_are_inclusive(self):
        for window in (("2026-02-20", TODAY), (TODAY, "2026-03-10")):
            [bay] = _grid([_bay()], assignments=[_assignment(available_from=window[0], available_to=window[1])])
            assert bay.status == "Available", window

    def test_single_bound_window_is_not_an_override(self):
        [bay] = _grid([_bay()], assignments=[_assignment(available_from=TODAY)])
        assert bay.status == "Reserved"
        [bay] = _grid([_bay()], assignments=[_assignment(available_to=TODAY)])
        assert bay.status == "Reserved"

    def test_cancellation_by_someone_else_does_not_free_bay(self):
        [bay] = _grid(
            [_bay()],
            claims=[_claim(user_id="U2", status="Cancelled")],
            assignments=[_assignment(user_id="U1")],
        )
        assert bay.status == "Reserved"
        assert bay.holder_user_id == "U1"

    def test_all_days_assignment_matches_any_day(self):
        [bay] = _grid([_bay()], assignments=[_assignment(day="All Days")])
        assert bay.status == "Reserved"
        assert bay.is_permanent is True

    def test_other_weekday_assignment_is_ignored(self):
        [bay] = _grid([_bay()], assignments=[_assignment(day="Tuesday")])
        assert bay.status == "Available"

    def test_window_on_other_weekday_assignment_releases_bay(self):
        [bay] = _grid(
            [_bay()],
            assignments=[
                _assignment(user_id="U1", day="Monday"),
                _assignment(aid="A2", user_id="U2", day="Tuesday", available_from=TODAY, available_to=TODAY),
            ],
        )
        assert bay.status == "Available"
        assert bay.holder_user_id is None

    def test_window_releases_bay_listed_after_holder(self):
        [bay] = _grid(
            [_bay()],
            assignments=[
                _assignment(user_id="U1", day="All Days"),
                _assignment(aid="A2", user_id="U1", day="Friday", available_from="2026-03-01", available_to="2026-03-03"),
            ],
        )
        assert bay.status == "Available"

    def test_active_claim_beats_other_weekday_window(self):
        [bay] = _grid(
            [_bay()],
            claims=[_claim(user_id="U5")],
            assignments=[_assignment(day="Tuesday", available_from=TODAY, available_to=TODAY)],
        )
        assert bay.status == "Reserved"
        assert bay.holder_user_id == "U5"

    def test_stored_reserved_status_is_rederived(self):
        [bay] = _grid([_bay(status="Reserved")])
        assert bay.status == "Available"

    def test_day_of_week_derived_from_today(self):
        [bay] = resolve_grid([_bay()], [], [_assignment(day="Monday")], today=TODAY)
        assert bay.status == "Reserved"


class TestReservedByYou:
    def test_true_for_own_daily_claim(self):
        [bay] = _grid([_bay()], claims=[_claim(user_id="U1")], current_user_id="U1")
        assert bay.reserved_by_you is True

    def test_true_for_own_permanent_bay(self):
        [bay] = _grid([_bay()], assignments=[_assignment(user_id="U1")], current_user_id="U1")
        assert bay.reserved_by_you is True

    def test_false_for_other_holder(self):
        [bay] = _grid([_bay()], claims=[_claim(user_id="U2")], current_user_id="U1")
        assert bay.reserved_by_you is False

    def test_false_without_current_user(self):
        [bay] = _grid([_bay()], claims=[_claim(user_id="U2")])
        assert bay.reserved_by_you is False

    def test_false_for_available_and_maintenance(self):
        bays = [_bay("B1", 1), _bay("B2", 2, "Maintenance")]
        for bay in _grid(bays, current_user_id="U1"):
            assert bay.reserved_by_you is False


class TestGridRobustness:
    def test_empty_input_yields_empty_output(self):
        assert _grid([]) == []
        assert resolve_grid(None, None, None, today=TODAY) == []

    def test_bays_without_data_are_all_available(self):
        bays = [_bay(f"B{i}", i) for i in range(1, 6)]
        assert {b.status for b in _grid(bays)} == {"Available"}

    def test_first_active_claim_wins(self):
        [bay] = _grid(
            [_bay()],
            claims=[_claim(user_id="U2", cid="C1"), _claim(user_id="U3", cid="C2")],
        )
        assert bay.holder_user_id == "U2"

    def test_records_without_bay_id_are_skipped(self):
        [bay] = _grid(
            [_bay(), {"bay_number": 7, "status": "Available"}],
            claims=[{"user_id": "U2", "status": "Active"}],
            assignments=[{"user_id": "U3", "day_of_week": "Monday"}],
        )
        assert bay.bay_id == "B1"
        assert bay.status == "Available"

    def test_bay_with_invalid_number_is_skipped(self):
        result = _grid([_bay(), _bay("B2", "not-a-number")])
        assert [b.bay_id for b in result] == ["B1"]

    def test_numeric_string_bay_number_is_coerced(self):
        [bay] = _grid([_bay(number="12")])
        assert bay.bay_number == 12

    def test_claim_for_another_date_is_ignored(self):
        [bay] = _grid([_bay()], claims=[_claim(claim_date="2026-03-03")])
        assert bay.status == "Available"

    def test_claim_without_date_is_taken_as_today(self):
        [bay] = _grid([_bay()], claims=[{"bay_id": "B1", "user_id": "U2", "status": "Active"}])
        assert bay.status == "Reserved"
        assert bay.holder_user_id == "U2"

    def test_claim_for_unknown_bay_is_ignored(self):
        [bay] = _grid([_bay()], claims=[_claim(bay_id="B99")])
        assert bay.status == "Available"

    def test_holder_name_resolved_or_unknown(self):
        bays = [_bay("B1", 1), _bay("B2", 2)]
        claims = [_claim("B1", "U1", cid="C1"), _claim("B2", "U2", cid="C2")]
        result = _grid(bays, claims=claims, user_names={"U1": "Alice"})
        assert [b.holder_name for b in result] == ["Alice", UNKNOWN_USER]

    def test_output_sorted_by_bay_number_and_stable(self):
        bays = [_bay("B10", 10), _bay("B2", 2), _bay("B2b", 2), _bay("B1", 1)]
        result = _grid(bays)
        assert [b.bay_id for b in result] == ["B1", "B2", "B2b", "B10"]

    def test_inputs_are_not_mutated(self):
        bays = [_bay(number="3"), _bay("B2", 2, "Maintenance")]
        claims = [_claim(user_id="U2"), _claim(user_id="U1", status="Cancelled", cid="C2")]
        assignments = [_assignment(available_from=TODAY, available_to=TODAY)]
        snapshot = copy.deepcopy((bays, claims, assignments))
        _grid(bays, claims=claims, assignments=assignments, current_user_id="U1")
        assert (bays, claims, assignments) == snapshot

    def test_idempotent(self):
        bays = [_bay("B3", 3), _bay("B1", 1), _bay("B2", 2, "Maintenance")]
        claims = [_claim("B3", "U2"), _claim("B1", "U1", "Cancelled", cid="C2")]
        assignments = [_assignment("B1", "U1")]
        first = _grid(bays, claims=claims, assignments=assignments, current_user_id="U2")
        second = _grid(bays, claims=claims, assignments=assignments, current_user_id="U2")
        assert first == second


class TestIndexes:
    def test_index_claims_partitions_by_status(self):
        idx = index_claims(
            [
                _claim("B1", "U1", "Active"),
                _claim("B1", "U2", "Active", cid="C2"),
                _claim("B2", "U3", "Cancelled", cid="C3"),
                _claim("B2", "U4", "Cancelled", cid="C4"),
            ],
            TODAY,
        )
        assert idx.active_by_bay == {"B1": "U1"}
        assert idx.cancelled_by_bay == {"B2": {"U3", "U4"}}

    def test_index_assignments_splits_released_and_held(self):
        idx = index_assignments(
            [
                _assignment("B1", "U1"),
                _assignment("B2", "U2", available_from=TODAY, available_to=TODAY, aid="A2"),
                _assignment("B3", "U3", day="Friday", aid="A3"),
            ],
            TODAY,
            DAY,
        )
        assert idx.permanent_by_bay == {"B1": "U1"}
        assert idx.temporarily_available == {"B2": "U2"}

    def test_index_assignments_window_ignores_weekday(self):
        idx = index_assignments(
            [
                _assignment("B1", "U1"),
                _assignment("B1", "U2", day="Tuesday", available_from=TODAY, available_to=TODAY, aid="A2"),
            ],
            TODAY,
            DAY,
        )
        assert idx.temporarily_available == {"B1": "U2"}
        assert idx.permanent_by_bay == {}

    def test_referenced_user_ids(self):
        ids = referenced_user_ids([_claim(user_id="U1"), {"bay_id": "B1"}], [_assignment(user_id="U2")])
        assert ids == {"U1", "U2"}


class TestSchedule:
    def _schedule(self, bays, claims=(), assignments=(), user_names=None):
        return resolve_schedule(bays, list(claims), list(assignments), today=TODAY, day_of_week=DAY, user_names=user_names)

    def test_active_today(self):
        [row] = self._schedule([_bay()], assignments=[_assignment()])
        assert row.reservation_type == "Permanent"
        assert row.status == "Active"
        assert row.day_or_date == "Monday"
        assert row.assignment_id == "A1"

    def test_other_day_is_scheduled(self):
        [row] = self._schedule([_bay()], assignments=[_assignment(day="Thursday")])
        assert row.status == "Scheduled"

    def test_temporarily_available_label(self):
        [row] = self._schedule(
            [_bay()], assignments=[_assignment(available_from="2026-03-01", available_to="2026-03-04")]
        )
        assert row.status == "Temporarily available (2026-03-01 to 2026-03-04)"

    def test_window_on_other_day_is_still_scheduled(self):
        [row] = self._schedule(
            [_bay()], assignments=[_assignment(day="Friday", available_from=TODAY, available_to=TODAY)]
        )
        assert row.status == "Scheduled"

    def test_window_beats_cancellation(self):
        rows = self._schedule(
            [_bay()],
            claims=[_claim(status="Cancelled")],
            assignments=[_assignment(available_from=TODAY, available_to=TODAY)],
        )
        assert rows[0].status.startswith("Temporarily available")

    def test_cancelled_for_today(self):
        rows = self._schedule(
            [_bay()], claims=[_claim(user_id="U1", status="Cancelled")], assignments=[_assignment()]
        )
        assert [(r.reservation_type, r.status) for r in rows] == [
            ("Permanent", "Cancelled for today"),
            ("Daily", "Cancelled"),
        ]

    def test_cancellation_by_other_user_keeps_active(self):
        rows = self._schedule(
            [_bay()], claims=[_claim(user_id="U2", status="Cancelled")], assignments=[_assignment()]
        )
        assert rows[0].status == "Active"

    def test_daily_claims_emitted_with_raw_status(self):
        rows = self._schedule(
            [_bay()],
            claims=[_claim(user_id="U2", cid="C7")],
            assignments=[_assignment()],
            user_names={"U1": "Alice", "U2": "Ben"},
        )
        daily = [r for r in rows if r.reservation_type == "Daily"]
        assert len(rows) == 2
        assert daily[0].status == "Active"
        assert daily[0].day_or_date == TODAY
        assert daily[0].claim_id == "C7"
        assert daily[0].user_name == "Ben"

    def test_every_assignment_emitted_regardless_of_day(self):
        days = ["Monday", "Tuesday", "Wednesday", "All Days"]
        assignments = [_assignment(day=d, aid=f"A{i}") for i, d in enumerate(days)]
        rows = self._schedule([_bay()], assignments=assignments)
        assert [r.status for r in rows] == ["Active", "Scheduled", "Scheduled", "Active"]

    def test_unknown_bay_rows_are_skipped(self):
        rows = self._schedule(
            [_bay()], claims=[_claim(bay_id="B9")], assignments=[_assignment(bay_id="B9")]
        )
        assert rows == []

    def test_missing_user_name_is_unknown(self):
        [row] = self._schedule([_bay()], assignments=[_assignment()], user_names={})
        assert row.user_name == UNKNOWN_USER

    def test_rows_sorted_by_bay_number(self):
        bays = [_bay("B1", 1), _bay("B2", 2), _bay("B3", 3)]
        rows = self._schedule(
            bays,
            claims=[_claim("B1", "U9", cid="C1")],
            assignments=[_assignment("B3", aid="A3"), _assignment("B2", aid="A2"), _assignment("B1", aid="A1")],
        )
        assert [r.bay_number for r in rows] == [1, 1, 2, 3]
        assert [r.reservation_type for r in rows[:2]] == ["Permanent", "Daily"]

    def test_claim_for_other_date_is_not_emitted(self):
        rows = self._schedule([_bay()], claims=[_claim(claim_date="2026-03-01")])
        assert rows == []


class TestResolveDispatch:
    def test_grid_mode(self):
        [bay] = resolve([_bay()], [], [_assignment()], today=TODAY, mode="grid", current_user_id="U1")
        assert bay.reserved_by_you is True

    def test_schedule_mode(self):
        [row] = resolve([_bay()], [], [_assignment()], today=TODAY, mode="schedule")
        assert row.status == "Active"

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="Unknown mode"):
            resolve([_bay()], [], [], today=TODAY, mode="calendar")
