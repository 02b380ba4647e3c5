import typing as t

from .base import WithCtime
from .enum import ActivityAction
from .id import ActivityID, ProjectID, UserID


class ActivityLog(WithCtime):
    activity_id: ActivityID
    project_id: ProjectID
    user_id: UserID
    action: ActivityAction
    details: dict[str, t.Any] = {}
