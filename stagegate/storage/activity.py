from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from stagegate.core import di
from stagegate.lib import json
from stagegate.model import ActivityAction, ActivityID, ActivityLog, ProjectID, UserID

from . import Session
from .table import activity_logs


def find(
    *,
    project_id: ProjectID | None = None,
    user_id: UserID | None = None,
    action: ActivityAction | None = None,
    limit: int | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[ActivityLog, ...]:
    """Find activity entries, newest first."""
    stmt = sqla.select(activity_logs.__table__)
    if project_id is not None:
        stmt = stmt.where(activity_logs.project_id == project_id)
    if user_id is not None:
        stmt = stmt.where(activity_logs.user_id == user_id)
    if action is not None:
        stmt = stmt.where(activity_logs.action == action)
    stmt = stmt.order_by(activity_logs.create_time.desc(), activity_logs.activity_id)
    if limit is not None:
        stmt = stmt.limit(limit)
    rows = session.execute(stmt).mappings().all()
    return tuple(ActivityLog(**row) for row in rows)


def create(
    *,
    project_id: ProjectID,
    user_id: UserID,
    action: ActivityAction,
    details: dict[str, t.Any] | None = None,
    create_time: datetime.datetime | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> ActivityLog:
    """Append an activity entry. Entries are never updated or deleted."""
    activity_id = ActivityID()
    values: dict[str, t.Any] = dict(
        activity_id=activity_id,
        project_id=project_id,
        user_id=user_id,
        action=action,
        # IDs, enums and decimals in details are stored in their JSON form
        details=json.jsonable(details or {}),
    )
    if create_time is not None:
        values["create_time"] = create_time
    session.execute(sqla.insert(activity_logs).values(**values))
    session.flush()
    stmt = sqla.select(activity_logs.__table__).where(activity_logs.activity_id == activity_id)
    return ActivityLog(**session.execute(stmt).mappings().one())
