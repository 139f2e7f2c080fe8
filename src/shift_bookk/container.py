from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .core.policy import SchedulingPolicy
from .database.connection import DBConfig, DatabaseConnection
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.push import LoggingPushTransport, PushTransport
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationFanout, NotificationInbox
from .realtime.feed import ChangeFeed
from .reports.service import HoursReportService
from .requests.mysql_request_repository import MySQLRequestRepository
from .requests.repository import RequestRepository
from .requests.service import ApprovalWorkflow
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import ShiftRepository
from .shifts.service import ShiftStore
from .timelogs.mysql_timelog_repository import MySQLTimeLogRepository
from .timelogs.repository import TimeLogRepository
from .timelogs.service import TimeLogService
from .users.mysql_user_repository import MySQLUserDirectory
from .users.repository import UserDirectory
from .users.service import ProfileService


@dataclass(frozen=True)
class Container:
    users_repo: UserDirectory
    shifts_repo: ShiftRepository
    requests_repo: RequestRepository
    notifications_repo: NotificationRepository
    timelogs_repo: TimeLogRepository

    feed: ChangeFeed
    policy: SchedulingPolicy

    fanout: NotificationFanout
    inbox: NotificationInbox
    shift_store: ShiftStore
    approval_workflow: ApprovalWorkflow
    profile_service: ProfileService
    hours_report_service: HoursReportService
    timelog_service: TimeLogService


def assemble(
    *,
    users_repo: UserDirectory,
    shifts_repo: ShiftRepository,
    requests_repo: RequestRepository,
    notifications_repo: NotificationRepository,
    timelogs_repo: TimeLogRepository,
    policy: Optional[SchedulingPolicy] = None,
    push: Optional[PushTransport] = None,
    feed: Optional[ChangeFeed] = None,
) -> Container:
    """Wire services on top of the given repositories."""
    policy = policy or SchedulingPolicy()
    feed = feed or ChangeFeed()

    fanout = NotificationFanout(notifications_repo, users_repo, push or LoggingPushTransport(), feed)
    inbox = NotificationInbox(notifications_repo, feed)
    shift_store = ShiftStore(shifts_repo, fanout, swaps=requests_repo, policy=policy, feed=feed)
    approval_workflow = ApprovalWorkflow(requests_repo, shifts_repo, fanout, policy=policy, feed=feed)

    return Container(
        users_repo=users_repo,
        shifts_repo=shifts_repo,
        requests_repo=requests_repo,
        notifications_repo=notifications_repo,
        timelogs_repo=timelogs_repo,
        feed=feed,
        policy=policy,
        fanout=fanout,
        inbox=inbox,
        shift_store=shift_store,
        approval_workflow=approval_workflow,
        profile_service=ProfileService(users_repo),
        hours_report_service=HoursReportService(shifts_repo),
        timelog_service=TimeLogService(timelogs_repo, shifts_repo, feed),
    )


def build_container(*, db_config: dict, policy: Optional[SchedulingPolicy] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble(
        users_repo=MySQLUserDirectory(conn),
        shifts_repo=MySQLShiftRepository(conn),
        requests_repo=MySQLRequestRepository(conn),
        notifications_repo=MySQLNotificationRepository(conn),
        timelogs_repo=MySQLTimeLogRepository(conn),
        policy=policy,
    )
