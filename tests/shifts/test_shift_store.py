from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from shift_bookk.core.context import RequestContext
from shift_bookk.core.enums import NotificationType, RecurrenceFrequency, Role, ShiftStatus
from shift_bookk.core.exceptions import ConflictError, InvalidTransition, NotFoundError, Unauthorized, ValidationError
from shift_bookk.core.policy import SchedulingPolicy
from shift_bookk.shifts.model import Recurrence
from shift_bookk.shifts.service import ShiftStore, shift_channel


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_create_shift_requires_end_after_start(container, manager):
    with pytest.raises(ValidationError):
        container.shift_store.create_shift(
            manager,
            title="Night",
            employee_id="emp-1",
            start_time=utc(2024, 6, 3, 17),
            end_time=utc(2024, 6, 3, 9),
        )
    with pytest.raises(ValidationError):
        container.shift_store.create_shift(
            manager,
            title="Zero",
            employee_id="emp-1",
            start_time=utc(2024, 6, 3, 9),
            end_time=utc(2024, 6, 3, 9),
        )


def test_manager_created_shift_notifies_employee(container, manager, notifications_repo, push):
    shift = container.shift_store.create_shift(
        manager,
        title="Morning",
        employee_id="emp-1",
        start_time=utc(2024, 6, 3, 9),
        end_time=utc(2024, 6, 3, 17),
        status=ShiftStatus.APPROVED,
    )

    assert shift.status == ShiftStatus.APPROVED
    assert container.shift_store.get_shift(shift.shift_id) == shift
    inbox = notifications_repo.for_user("emp-1")
    assert [n.title for n in inbox] == ["New shift assigned"]
    assert [token for token, _ in push.sent] == ["tok-emp-1"]


def test_employee_shift_starts_pending_and_pings_managers(container, employee, notifications_repo):
    shift = container.shift_store.create_shift(
        employee,
        title="Extra",
        employee_id="emp-1",
        start_time=utc(2024, 6, 4, 9),
        end_time=utc(2024, 6, 4, 12),
    )

    assert shift.status == ShiftStatus.PENDING
    assert [n.title for n in notifications_repo.for_user("mgr-1")] == ["Shift awaiting approval"]
    assert notifications_repo.for_user("emp-1") == []


def test_employee_cannot_create_for_others_or_preapproved(container, employee):
    with pytest.raises(Unauthorized):
        container.shift_store.create_shift(
            employee,
            title="Extra",
            employee_id="emp-2",
            start_time=utc(2024, 6, 4, 9),
            end_time=utc(2024, 6, 4, 12),
        )
    with pytest.raises(Unauthorized):
        container.shift_store.create_shift(
            employee,
            title="Extra",
            employee_id="emp-1",
            start_time=utc(2024, 6, 4, 9),
            end_time=utc(2024, 6, 4, 12),
            status=ShiftStatus.APPROVED,
        )


def test_create_with_same_id_is_idempotent(container, manager, shifts_repo, notifications_repo):
    kwargs = dict(
        title="Morning",
        employee_id="emp-1",
        start_time=utc(2024, 6, 3, 9),
        end_time=utc(2024, 6, 3, 17),
        shift_id="client-1",
    )
    first = container.shift_store.create_shift(manager, **kwargs)
    second = container.shift_store.create_shift(manager, **kwargs)

    assert first == second
    assert list(shifts_repo.shifts) == ["client-1"]
    assert len(notifications_repo.for_user("emp-1")) == 1

    with pytest.raises(ConflictError):
        container.shift_store.create_shift(manager, **{**kwargs, "title": "Evening"})


def test_overlapping_shift_is_rejected(container, manager, make_shift):
    make_shift(start=utc(2024, 6, 3, 9), end=utc(2024, 6, 3, 17))

    with pytest.raises(ValidationError, match="overlaps"):
        container.shift_store.create_shift(
            manager,
            title="Double",
            employee_id="emp-1",
            start_time=utc(2024, 6, 3, 16),
            end_time=utc(2024, 6, 3, 20),
        )

    # back-to-back is fine
    container.shift_store.create_shift(
        manager,
        title="Evening",
        employee_id="emp-1",
        start_time=utc(2024, 6, 3, 17),
        end_time=utc(2024, 6, 3, 21),
    )


def test_cancelled_shift_does_not_block_overlap(container, manager, make_shift):
    make_shift(status=ShiftStatus.CANCELLED)

    shift = container.shift_store.create_shift(
        manager,
        title="Replacement",
        employee_id="emp-1",
        start_time=utc(2024, 6, 3, 10),
        end_time=utc(2024, 6, 3, 14),
    )
    assert shift.title == "Replacement"


def test_duration_policy(shifts_repo, manager):
    store = ShiftStore(shifts_repo, policy=SchedulingPolicy(min_shift_hours=1, max_shift_hours=10))

    with pytest.raises(ValidationError, match="at least"):
        store.create_shift(
            manager, title="Short", employee_id="emp-1", start_time=utc(2024, 6, 3, 9), end_time=utc(2024, 6, 3, 9, 30)
        )
    with pytest.raises(ValidationError, match="exceed"):
        store.create_shift(
            manager, title="Long", employee_id="emp-1", start_time=utc(2024, 6, 3, 6), end_time=utc(2024, 6, 3, 18)
        )


def test_status_transition_notifies_employee(container, manager, make_shift, notifications_repo):
    make_shift(status=ShiftStatus.PENDING)

    updated = container.shift_store.update_status(manager, "s-1", ShiftStatus.APPROVED)

    assert updated.status == ShiftStatus.APPROVED
    assert container.shift_store.get_shift("s-1").status == ShiftStatus.APPROVED
    (note,) = notifications_repo.for_user("emp-1")
    assert note.type == NotificationType.SUCCESS


def test_same_status_is_a_no_op(container, manager, make_shift, shifts_repo, notifications_repo):
    make_shift(status=ShiftStatus.APPROVED)

    container.shift_store.update_status(manager, "s-1", ShiftStatus.APPROVED)

    assert shifts_repo.status_writes == 0
    assert notifications_repo.items == {}


def test_same_status_still_checks_ownership(container, employee, make_shift, shifts_repo):
    make_shift(status=ShiftStatus.APPROVED)
    other = RequestContext(user_id="emp-2", role=Role.EMPLOYEE, department="Kitchen")

    with pytest.raises(Unauthorized):
        container.shift_store.update_status(other, "s-1", ShiftStatus.APPROVED)
    with pytest.raises(Unauthorized):
        container.shift_store.update_status(employee, "s-1", ShiftStatus.APPROVED)
    assert shifts_repo.status_writes == 0


def test_terminal_status_cannot_transition(container, manager, make_shift):
    make_shift(status=ShiftStatus.CANCELLED)

    with pytest.raises(InvalidTransition):
        container.shift_store.update_status(manager, "s-1", ShiftStatus.APPROVED)


def test_legacy_in_progress_spelling(container, employee, make_shift):
    make_shift(status=ShiftStatus.APPROVED)

    updated = container.shift_store.update_status(employee, "s-1", "inProgress")

    assert updated.status == ShiftStatus.IN_PROGRESS


def test_employee_role_rules(container, employee, make_shift):
    make_shift(shift_id="mine", status=ShiftStatus.PENDING)
    make_shift(shift_id="theirs", employee_id="emp-2", status=ShiftStatus.APPROVED, start=utc(2024, 6, 5, 9), end=utc(2024, 6, 5, 17))

    with pytest.raises(Unauthorized):
        container.shift_store.update_status(employee, "mine", ShiftStatus.APPROVED)
    with pytest.raises(Unauthorized):
        container.shift_store.update_status(employee, "theirs", ShiftStatus.IN_PROGRESS)

    assert container.shift_store.update_status(employee, "mine", ShiftStatus.CANCELLED).status == ShiftStatus.CANCELLED


def test_unknown_shift(container, manager):
    with pytest.raises(NotFoundError):
        container.shift_store.update_status(manager, "missing", ShiftStatus.APPROVED)


def test_lost_update_is_a_conflict(container, manager, make_shift, shifts_repo, monkeypatch):
    make_shift(status=ShiftStatus.APPROVED)
    original_get = shifts_repo.get_by_id
    calls = {"n": 0}

    def stale_then_fresh(shift_id):
        calls["n"] += 1
        shift = original_get(shift_id)
        if calls["n"] == 1:
            # someone cancels it between our read and our write
            shifts_repo.shifts[shift_id] = replace(shift, status=ShiftStatus.CANCELLED)
        return shift

    monkeypatch.setattr(shifts_repo, "get_by_id", stale_then_fresh)

    with pytest.raises(ConflictError):
        container.shift_store.update_status(manager, "s-1", ShiftStatus.SCHEDULED)


def test_delete_blocked_by_pending_swap(container, manager, employee, make_shift):
    make_shift()
    container.approval_workflow.create_swap(employee, original_shift_id="s-1", new_employee_id="emp-2")

    with pytest.raises(ConflictError):
        container.shift_store.delete_shift(manager, "s-1")
    with pytest.raises(Unauthorized):
        container.shift_store.delete_shift(employee, "s-1")


def test_delete_publishes_change(container, manager, make_shift, feed):
    make_shift()
    seen = []
    feed.subscribe(shift_channel("emp-1"), seen.append)

    container.shift_store.delete_shift(manager, "s-1")

    assert seen == [None]
    with pytest.raises(NotFoundError):
        container.shift_store.get_shift("s-1")


def test_list_by_employee_ordered_by_start(container, make_shift):
    make_shift(shift_id="late", start=utc(2024, 6, 5, 9), end=utc(2024, 6, 5, 17))
    make_shift(shift_id="early", start=utc(2024, 6, 3, 9), end=utc(2024, 6, 3, 17))
    make_shift(shift_id="other", employee_id="emp-2")

    shifts = container.shift_store.list_by_employee("emp-1")

    assert [s.shift_id for s in shifts] == ["early", "late"]


def test_recurring_shift_occurrences(container, manager):
    shift = container.shift_store.create_shift(
        manager,
        title="Weekly",
        employee_id="emp-1",
        start_time=utc(2024, 6, 3, 9),
        end_time=utc(2024, 6, 3, 13),
        recurrence=Recurrence(RecurrenceFrequency.WEEKLY, end_date=date(2024, 6, 20)),
    )

    pairs = container.shift_store.occurrences(shift.shift_id, until=date(2024, 7, 1))

    assert [s.day for s, _ in pairs] == [3, 10, 17]
    assert all((e - s).total_seconds() == 4 * 3600 for s, e in pairs)


def test_recurrence_end_before_start_is_rejected(container, manager):
    with pytest.raises(ValidationError):
        container.shift_store.create_shift(
            manager,
            title="Weekly",
            employee_id="emp-1",
            start_time=utc(2024, 6, 3, 9),
            end_time=utc(2024, 6, 3, 13),
            recurrence=Recurrence(RecurrenceFrequency.WEEKLY, end_date=date(2024, 6, 1)),
        )
