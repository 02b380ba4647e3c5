from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from stagegate.core import di
from stagegate.lib import json
from stagegate.model import Notification, NotificationEvent, NotificationID, NotificationPreferences, \
    StoredNotificationPreferences, UserID

from . import Session
from .table import notification_preferences, notifications


def find(
    *,
    user_id: UserID,
    unread_only: bool = False,
    limit: int | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Notification, ...]:
    """A user's notifications, newest first."""
    stmt = sqla.select(notifications.__table__).where(notifications.user_id == user_id)
    if unread_only:
        stmt = stmt.where(notifications.is_read == sqla.false())
    stmt = stmt.order_by(notifications.create_time.desc(), notifications.notification_id)
    if limit is not None:
        stmt = stmt.limit(limit)
    rows = session.execute(stmt).mappings().all()
    return tuple(Notification(**row) for row in rows)


def create(
    *,
    user_id: UserID,
    event: NotificationEvent,
    title: str,
    message: str,
    payload: dict[str, t.Any] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Notification:
    notification_id = NotificationID()
    stmt = sqla.insert(notifications).values(
        notification_id=notification_id,
        user_id=user_id,
        event=event,
        title=title,
        message=message,
        payload=json.jsonable(payload or {}),
    )
    session.execute(stmt)
    session.flush()
    row = session.execute(
        sqla.select(notifications.__table__).where(notifications.notification_id == notification_id)
    ).mappings().one()
    return Notification(**row)


def mark_read(
    user_id: UserID,
    notification_ids: t.Iterable[NotificationID] | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """Mark some (or, without notification_ids, all) of a user's notifications read.

    Returns:
        The number of notifications changed
    """
    stmt = (
        sqla
        .update(notifications)
        .where(notifications.user_id == user_id, notifications.is_read == sqla.false())
        .values(is_read=True)
    )
    if notification_ids is not None:
        stmt = stmt.where(notifications.notification_id.in_(list(notification_ids)))
    result = session.execute(stmt)
    session.flush()
    return result.rowcount  # pyright: ignore[reportAttributeAccessIssue]


def get_preferences(
    user_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> NotificationPreferences:
    """A user's preferences, or the defaults if they never saved any."""
    stmt = sqla.select(notification_preferences.__table__).where(notification_preferences.user_id == user_id)
    row = session.execute(stmt).mappings().one_or_none()
    return StoredNotificationPreferences(**row) if row else NotificationPreferences()


def save_preferences(
    user_id: UserID,
    preferences: NotificationPreferences,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> StoredNotificationPreferences:
    """Insert or replace a user's preferences."""
    values = preferences.model_dump(include=set(NotificationPreferences.model_fields))
    stmt = (
        sqla
        .update(notification_preferences)
        .where(notification_preferences.user_id == user_id)
        .values(**values)
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        session.execute(sqla.insert(notification_preferences).values(user_id=user_id, **values))
    session.flush()
    return get_preferences(user_id, session=session)  # type: ignore[return-value]
