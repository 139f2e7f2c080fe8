from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from shift_bookk.core.enums import RecurrenceFrequency, ShiftStatus
from shift_bookk.core.exceptions import ValidationError
from shift_bookk.shifts.model import Recurrence, Shift, can_transition, is_terminal


def _shift(recurrence=None):
    start = datetime(2024, 1, 31, 9, tzinfo=timezone.utc)
    return Shift(
        shift_id="s",
        title="Stocktake",
        employee_id="emp-1",
        start_time=start,
        end_time=start.replace(hour=12),
        status=ShiftStatus.APPROVED,
        created_at=start,
        updated_at=start,
        recurrence=recurrence,
    )


def test_monthly_recurrence_clamps_to_month_end():
    shift = _shift(Recurrence(RecurrenceFrequency.MONTHLY))

    starts = [s.date() for s, _ in shift.occurrences(date(2024, 4, 30))]

    assert starts == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30)]


def test_daily_interval():
    shift = _shift(Recurrence(RecurrenceFrequency.DAILY, interval=2))

    assert len(shift.occurrences(date(2024, 2, 6))) == 4


def test_single_shift_occurrence():
    assert len(_shift().occurrences(date(2024, 1, 31))) == 1
    assert _shift().occurrences(date(2024, 1, 30)) == []


def test_from_dict_accepts_camel_case_end_date():
    rec = Recurrence.from_dict({"frequency": "weekly", "interval": 2, "endDate": "2024-03-01"})

    assert rec == Recurrence(RecurrenceFrequency.WEEKLY, interval=2, end_date=date(2024, 3, 1))
    assert Recurrence.from_dict(None) is None
    with pytest.raises(ValidationError):
        Recurrence.from_dict({"frequency": "hourly"})


@pytest.mark.parametrize(
    "data",
    ["weekly", ["weekly"], {"frequency": "weekly", "interval": None}, {"frequency": "weekly", "end_date": 7}],
)
def test_from_dict_rejects_malformed_input(data):
    with pytest.raises(ValidationError):
        Recurrence.from_dict(data)


def test_zero_interval_is_invalid():
    with pytest.raises(ValidationError):
        Recurrence(RecurrenceFrequency.DAILY, interval=0).validate(first_start=datetime(2024, 1, 1, tzinfo=timezone.utc))


@pytest.mark.parametrize(
    "current,target,allowed",
    [
        (ShiftStatus.PENDING, ShiftStatus.APPROVED, True),
        (ShiftStatus.PENDING, ShiftStatus.COMPLETED, False),
        (ShiftStatus.SCHEDULED, ShiftStatus.IN_PROGRESS, True),
        (ShiftStatus.IN_PROGRESS, ShiftStatus.CANCELLED, False),
        (ShiftStatus.COMPLETED, ShiftStatus.IN_PROGRESS, False),
    ],
)
def test_transition_table(current, target, allowed):
    assert can_transition(current, target) is allowed


def test_terminal_statuses():
    assert {s for s in ShiftStatus if is_terminal(s)} == {
        ShiftStatus.REJECTED,
        ShiftStatus.COMPLETED,
        ShiftStatus.CANCELLED,
    }
