"""In-app notification and preference routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from stagegate.auth.middleware import AuthContext, get_current_user
from stagegate.core import di
from stagegate.model import NotificationPreferences
from stagegate.storage import notification as notification_storage
from stagegate.storage import Session

from ..view.notification import NotificationListResponse, NotificationResponse, PreferencesRequest, \
    PreferencesResponse

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def _preferences_response(preferences: NotificationPreferences) -> PreferencesResponse:
    return PreferencesResponse(**preferences.model_dump(include=set(PreferencesResponse.model_fields)))


@router.get("", operation_id="list_notifications")
@di.inject
def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> NotificationListResponse:
    """The caller's notifications, newest first."""
    with session.begin():
        notifications = notification_storage.find(
            user_id=auth.user.user_id, unread_only=unread_only, limit=limit, session=session
        )
        unread = notification_storage.find(user_id=auth.user.user_id, unread_only=True, session=session)

    return NotificationListResponse(
        notifications=[
            NotificationResponse(
                notification_id=n.notification_id,
                event=n.event,
                title=n.title,
                message=n.message,
                payload=n.payload,
                is_read=n.is_read,
                create_time=n.create_time,
            )
            for n in notifications
        ],
        unread=len(unread),
    )


@router.post("/read", operation_id="mark_notifications_read")
@di.inject
def mark_read(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> dict[str, int]:
    with session.begin():
        count = notification_storage.mark_read(auth.user.user_id, session=session)
    return {"marked": count}


@router.get("/preferences", operation_id="get_notification_preferences")
@di.inject
def get_preferences(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> PreferencesResponse:
    with session.begin():
        preferences = notification_storage.get_preferences(auth.user.user_id, session=session)
    return _preferences_response(preferences)


@router.put("/preferences", operation_id="update_notification_preferences")
@di.inject
def update_preferences(
    request: PreferencesRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> PreferencesResponse:
    with session.begin():
        preferences = notification_storage.save_preferences(
            auth.user.user_id, NotificationPreferences(**request.model_dump()), session=session
        )
    return _preferences_response(preferences)
