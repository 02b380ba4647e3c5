"""View models for notifications."""

from __future__ import annotations

import datetime
import typing as t

import pydantic as p

from stagegate.model import NotificationEvent, NotificationID


class PreferencesRequest(p.BaseModel):
    email_notifications: bool = True
    review_assignments: bool = True
    review_submissions: bool = True
    status_changes: bool = True
    document_uploads: bool = False
    weekly_digest: bool = False


class PreferencesResponse(PreferencesRequest):
    pass


class NotificationResponse(p.BaseModel):
    notification_id: NotificationID
    event: NotificationEvent
    title: str
    message: str
    payload: dict[str, t.Any]
    is_read: bool
    create_time: datetime.datetime


class NotificationListResponse(p.BaseModel):
    notifications: list[NotificationResponse]
    unread: int
