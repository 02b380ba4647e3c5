"""Best-effort delivery of gate-review events to users.

Nothing here may fail the operation that triggered the notification: it is
only called after that operation has committed, and every error is logged and
swallowed.
"""

from __future__ import annotations

import typing as t

from stagegate.core import di
from stagegate.core.provider import LoggingProvider
from stagegate.lib import json
from stagegate.model import Notification, NotificationEvent, UserID
from stagegate.storage import notification as notification_storage
from stagegate.storage import Session
from stagegate.storage import user as user_storage

from .email import EmailRenderer, EmailSender

Titles: dict[NotificationEvent, str] = {
    NotificationEvent.ReviewAssigned: "Review assigned: {project_name}",
    NotificationEvent.ReviewSubmitted: "Review submitted: {project_name}",
    NotificationEvent.ProjectStatusChanged: "Project status changed: {project_name}",
}

Messages: dict[NotificationEvent, str] = {
    NotificationEvent.ReviewAssigned: "You have been assigned to review {project_name} ({stage_label}).",
    NotificationEvent.ReviewSubmitted: (
        "{reviewer_name} submitted a {decision} review of {project_name} ({stage_label})."
    ),
    NotificationEvent.ProjectStatusChanged: (
        "{project_name} is now at {to_stage_label} with status {to_status} {reason}."
    ),
}


def notify(
    recipient_id: UserID,
    event: NotificationEvent,
    payload: t.Mapping[str, t.Any],
    *,
    session: Session = di.Provide["storage.persistent.session"],
    renderer: EmailRenderer = di.Provide["notification.renderer"],
    sender: EmailSender = di.Provide["notification.sender"],
    logging: LoggingProvider = di.Provide["logging"],
) -> Notification | None:
    """Record an in-app notification and, if the recipient wants it, email them.

    Must be called outside of any open transaction on session.

    Returns:
        The in-app notification, or None if it could not be recorded
    """
    logger = logging.get_logger()
    context = t.cast(dict[str, t.Any], json.jsonable(dict(payload)))
    extra = {"recipient_id": recipient_id, "event": event.value}

    try:
        with session.begin():
            recipient = user_storage.get(recipient_id, session=session)
            if recipient is None:
                logger.warning("notification recipient does not exist", extra=extra)
                return None
            preferences = notification_storage.get_preferences(recipient_id, session=session)
            notification = notification_storage.create(
                user_id=recipient_id,
                event=event,
                title=Titles[event].format_map(context),
                message=Messages[event].format_map(context),
                payload=context,
                session=session,
            )
    except Exception:
        logger.exception("could not record notification", extra=extra)
        return None

    if not preferences.allows(event):
        logger.debug("email suppressed by preferences", extra=extra)
        return notification

    try:
        rendered = renderer.render(event, {**context, "recipient_name": recipient.name})
        sender.send(to=recipient.email, to_name=recipient.name, subject=rendered.subject, html=rendered.html)
    except Exception:
        logger.exception("could not deliver notification email", extra=extra)
    return notification
