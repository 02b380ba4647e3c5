import typing as t

from .base import BaseModel, WithCtime, WithTimestamps
from .enum import NotificationEvent
from .id import NotificationID, UserID


class Notification(WithCtime):
    notification_id: NotificationID
    user_id: UserID
    event: NotificationEvent
    title: str
    message: str
    payload: dict[str, t.Any] = {}
    is_read: bool = False


class NotificationPreferences(BaseModel):
    """Per-user switches; email_notifications gates every email."""

    email_notifications: bool = True
    review_assignments: bool = True
    review_submissions: bool = True
    status_changes: bool = True
    document_uploads: bool = False
    weekly_digest: bool = False

    def allows(self, event: NotificationEvent) -> bool:
        if not self.email_notifications:
            return False
        match event:
            case NotificationEvent.ReviewAssigned:
                return self.review_assignments
            case NotificationEvent.ReviewSubmitted:
                return self.review_submissions
            case NotificationEvent.ProjectStatusChanged:
                return self.status_changes


class StoredNotificationPreferences(NotificationPreferences, WithTimestamps):
    user_id: UserID
