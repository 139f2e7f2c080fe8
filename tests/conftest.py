from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

import pytest

from shift_bookk.container import assemble
from shift_bookk.core.context import RequestContext
from shift_bookk.core.enums import RequestStatus, Role, ShiftStatus, TimeLogStatus
from shift_bookk.core.exceptions import ConflictError, DeliveryFailure
from shift_bookk.core.policy import SchedulingPolicy
from shift_bookk.notifications.model import Notification
from shift_bookk.realtime.feed import ChangeFeed
from shift_bookk.requests.model import ShiftSwap, TimeOffRequest
from shift_bookk.shifts.model import Shift
from shift_bookk.timelogs.model import TimeLog
from shift_bookk.users.model import UserProfile


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class InMemoryUsers:
    def __init__(self, profiles=()):
        self.profiles: dict[str, UserProfile] = {p.user_id: p for p in profiles}
        self.list_calls = 0

    def add(self, profile: UserProfile) -> None:
        self.profiles[profile.user_id] = profile

    def get_by_id(self, user_id):
        return self.profiles.get(str(user_id))

    def list_ids(self, *, role=None, department=None, active_only=True):
        self.list_calls += 1
        out = []
        for p in self.profiles.values():
            if role is not None and p.role != role:
                continue
            if department is not None and p.department != department:
                continue
            if active_only and not p.is_active:
                continue
            out.append(p.user_id)
        return sorted(out)

    def set_push_token(self, user_id, *, push_token):
        p = self.profiles.get(str(user_id))
        if not p:
            return False
        self.profiles[p.user_id] = replace(p, push_token=push_token)
        return True


class InMemoryShifts:
    def __init__(self):
        self.shifts: dict[str, Shift] = {}
        self.status_writes = 0
        self.fail_reassign = False

    def create(self, shift: Shift) -> None:
        self.shifts[shift.shift_id] = shift

    def get_by_id(self, shift_id):
        return self.shifts.get(str(shift_id))

    def list_by_employee(self, employee_id, *, start=None, end=None):
        out = [
            s
            for s in self.shifts.values()
            if s.employee_id == employee_id
            and (start is None or s.end_time > start)
            and (end is None or s.start_time < end)
        ]
        return sorted(out, key=lambda s: s.start_time)

    def list_range(self, *, start, end, employee_id=None):
        out = [
            s
            for s in self.shifts.values()
            if s.start_time < end and s.end_time > start and (employee_id is None or s.employee_id == employee_id)
        ]
        return sorted(out, key=lambda s: (s.employee_id, s.start_time))

    def update_status(self, shift_id, *, expected, status, updated_at):
        s = self.shifts.get(shift_id)
        if not s or s.status != expected:
            return False
        self.status_writes += 1
        self.shifts[shift_id] = replace(s, status=status, updated_at=updated_at)
        return True

    def reassign(self, shift_id, *, from_employee_id, to_employee_id, updated_at):
        if self.fail_reassign:
            raise RuntimeError("shift write failed")
        s = self.shifts.get(shift_id)
        if not s or s.employee_id != from_employee_id:
            return False
        self.shifts[shift_id] = replace(s, employee_id=to_employee_id, updated_at=updated_at)
        return True

    def delete(self, shift_id):
        return self.shifts.pop(shift_id, None) is not None


class InMemoryRequests:
    """Request store sharing a transaction with the shift store for swap approval."""

    def __init__(self, shifts: InMemoryShifts):
        self._shifts = shifts
        self.time_off: dict[str, TimeOffRequest] = {}
        self.swaps: dict[str, ShiftSwap] = {}

    def create_time_off(self, request):
        self.time_off[request.request_id] = request

    def get_time_off(self, request_id):
        return self.time_off.get(str(request_id))

    def list_time_off(self, *, status=None, employee_id=None, limit=200):
        out = [
            r
            for r in self.time_off.values()
            if (status is None or r.status == status) and (employee_id is None or r.employee_id == employee_id)
        ]
        return out[:limit]

    def decide_time_off(self, request_id, *, status, decided_by, decided_at, manager_note=None):
        r = self.time_off.get(request_id)
        if not r or r.status != RequestStatus.PENDING:
            return False
        self.time_off[request_id] = replace(
            r, status=status, decided_by=decided_by, decided_at=decided_at, manager_note=manager_note
        )
        return True

    def create_swap(self, swap):
        self.swaps[swap.swap_id] = swap

    def get_swap(self, swap_id):
        return self.swaps.get(str(swap_id))

    def list_swaps(self, *, status=None, employee_id=None, limit=200):
        out = [
            s
            for s in self.swaps.values()
            if (status is None or s.status == status)
            and (employee_id is None or employee_id in {s.original_employee_id, s.new_employee_id})
        ]
        return out[:limit]

    def has_pending_swap(self, shift_id):
        return any(s.original_shift_id == shift_id and s.status == RequestStatus.PENDING for s in self.swaps.values())

    def decide_swap(self, swap_id, *, status, decided_by, decided_at, manager_note=None):
        s = self.swaps.get(swap_id)
        if not s or s.status != RequestStatus.PENDING:
            return False
        self.swaps[swap_id] = replace(
            s, status=status, decided_by=decided_by, decided_at=decided_at, manager_note=manager_note
        )
        return True

    def approve_swap(self, swap_id, *, shift_id, from_employee_id, to_employee_id, decided_by, decided_at, manager_note=None):
        swaps_before = dict(self.swaps)
        shifts_before = dict(self._shifts.shifts)
        try:
            if not self.decide_swap(
                swap_id,
                status=RequestStatus.APPROVED,
                decided_by=decided_by,
                decided_at=decided_at,
                manager_note=manager_note,
            ):
                raise ConflictError("Swap is no longer pending")
            if not self._shifts.reassign(
                shift_id,
                from_employee_id=from_employee_id,
                to_employee_id=to_employee_id,
                updated_at=decided_at,
            ):
                raise ConflictError("Shift no longer belongs to the original employee")
        except Exception:
            self.swaps = swaps_before
            self._shifts.shifts = shifts_before
            raise


class InMemoryTimeLogs:
    def __init__(self):
        self.logs: dict[str, TimeLog] = {}

    def create(self, log):
        self.logs[log.log_id] = log

    def get_by_id(self, log_id):
        return self.logs.get(log_id)

    def get_open(self, employee_id):
        open_logs = [log for log in self.logs.values() if log.employee_id == employee_id and log.is_open]
        return max(open_logs, key=lambda log: log.clock_in) if open_logs else None

    def list_by_employee(self, employee_id, *, limit=200):
        logs = [log for log in self.logs.values() if log.employee_id == employee_id]
        return sorted(logs, key=lambda log: log.clock_in, reverse=True)[:limit]

    def close(self, log_id, *, clock_out, updated_at):
        log = self.logs.get(log_id)
        if not log or not log.is_open:
            return False
        self.logs[log_id] = replace(log, clock_out=clock_out, status=TimeLogStatus.COMPLETED, updated_at=updated_at)
        return True

    def update(self, log):
        if log.log_id not in self.logs:
            return False
        self.logs[log.log_id] = log
        return True


class InMemoryNotifications:
    def __init__(self):
        self.items: dict[str, Notification] = {}
        self.fail_for: set[str] = set()

    def create(self, notification):
        if notification.user_id in self.fail_for:
            raise RuntimeError("document store unavailable")
        self.items[notification.notification_id] = notification

    def get_by_id(self, notification_id):
        return self.items.get(notification_id)

    def list_for_user(self, user_id, *, unread_only=False, limit=200):
        out = [n for n in self.items.values() if n.user_id == user_id and not (unread_only and n.read)]
        out.sort(key=lambda n: n.created_at, reverse=True)
        return out[:limit]

    def count_unread(self, user_id):
        return len(self.list_for_user(user_id, unread_only=True))

    def mark_read(self, notification_id):
        n = self.items.get(notification_id)
        if not n or n.read:
            return False
        self.items[notification_id] = replace(n, read=True)
        return True

    def mark_all_read(self, user_id):
        ids = [n.notification_id for n in self.list_for_user(user_id, unread_only=True)]
        for nid in ids:
            self.mark_read(nid)
        return len(ids)

    def delete(self, notification_id):
        return self.items.pop(notification_id, None) is not None

    def for_user(self, user_id):
        return [n for n in self.items.values() if n.user_id == user_id]


class RecordingPush:
    def __init__(self):
        self.sent: list[tuple[str, object]] = []
        self.fail_tokens: set[str] = set()

    def send(self, token, message):
        if token in self.fail_tokens:
            raise DeliveryFailure(f"token {token} rejected")
        self.sent.append((token, message))


@pytest.fixture
def users():
    return InMemoryUsers(
        [
            UserProfile(user_id="adm-1", email="adm@x.io", role=Role.ADMIN, department="Office"),
            UserProfile(user_id="mgr-1", email="mgr@x.io", role=Role.MANAGER, department="Office", push_token="tok-mgr-1"),
            UserProfile(user_id="emp-1", email="e1@x.io", role=Role.EMPLOYEE, department="Kitchen", push_token="tok-emp-1"),
            UserProfile(user_id="emp-2", email="e2@x.io", role=Role.EMPLOYEE, department="Kitchen", push_token="tok-emp-2"),
            UserProfile(user_id="emp-3", email="e3@x.io", role=Role.EMPLOYEE, department="Bar"),
        ]
    )


@pytest.fixture
def shifts_repo():
    return InMemoryShifts()


@pytest.fixture
def requests_repo(shifts_repo):
    return InMemoryRequests(shifts_repo)


@pytest.fixture
def notifications_repo():
    return InMemoryNotifications()


@pytest.fixture
def timelogs_repo():
    return InMemoryTimeLogs()


@pytest.fixture
def push():
    return RecordingPush()


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def container(users, shifts_repo, requests_repo, notifications_repo, timelogs_repo, push, feed):
    return assemble(
        users_repo=users,
        shifts_repo=shifts_repo,
        requests_repo=requests_repo,
        notifications_repo=notifications_repo,
        timelogs_repo=timelogs_repo,
        policy=SchedulingPolicy(),
        push=push,
        feed=feed,
    )


@pytest.fixture
def manager():
    return RequestContext(user_id="mgr-1", role=Role.MANAGER, department="Office")


@pytest.fixture
def admin():
    return RequestContext(user_id="adm-1", role=Role.ADMIN, department="Office")


@pytest.fixture
def employee():
    return RequestContext(user_id="emp-1", role=Role.EMPLOYEE, department="Kitchen")


@pytest.fixture
def make_shift(shifts_repo):
    def _make(
        *,
        shift_id: str = "s-1",
        employee_id: str = "emp-1",
        status: ShiftStatus = ShiftStatus.APPROVED,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        title: str = "Morning",
    ) -> Shift:
        start = start or utc(2024, 6, 3, 9)
        end = end or utc(2024, 6, 3, 17)
        shift = Shift(
            shift_id=shift_id,
            title=title,
            employee_id=employee_id,
            start_time=start,
            end_time=end,
            status=status,
            created_at=utc(2024, 6, 1),
            updated_at=utc(2024, 6, 1),
        )
        shifts_repo.create(shift)
        return shift

    return _make
