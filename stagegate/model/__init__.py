__all__ = [
    # Base
    "BaseModel",
    "WithCtime",
    "WithMtime",
    "WithTimestamps",
    # Enums
    "ActivityAction",
    "AssignmentStatus",
    "Decision",
    "DeploymentEnvironment",
    "ExportFormat",
    "NotificationEvent",
    "ProjectStage",
    "ProjectStatus",
    "RedFlagSeverity",
    "SessionState",
    "UserRole",
    # ID Types
    "ActivityID",
    "AssignmentID",
    "EvaluationID",
    "NotificationID",
    "ProjectID",
    "UserID",
    # Users & projects
    "User",
    "Project",
    # Criteria
    "Criterion",
    "Guidelines",
    "Score",
    "ScoredCriterion",
    # Reviews
    "Evaluation",
    "ReviewAssignment",
    "ReviewSession",
    "SessionApproval",
    # Activity & notifications
    "ActivityLog",
    "Notification",
    "NotificationPreferences",
    "StoredNotificationPreferences",
]

from .activity import ActivityLog
from .assignment import ReviewAssignment
from .base import BaseModel, WithCtime, WithMtime, WithTimestamps
from .criterion import Criterion, Guidelines, Score, ScoredCriterion
from .enum import ActivityAction, AssignmentStatus, Decision, DeploymentEnvironment, ExportFormat, \
    NotificationEvent, ProjectStage, ProjectStatus, RedFlagSeverity, SessionState, UserRole
from .evaluation import Evaluation
from .id import ActivityID, AssignmentID, EvaluationID, NotificationID, ProjectID, UserID
from .notification import Notification, NotificationPreferences, StoredNotificationPreferences
from .project import Project
from .session import ReviewSession, SessionApproval
from .user import User
