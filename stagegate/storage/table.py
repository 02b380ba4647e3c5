import datetime
import decimal
import enum
import typing as t

from sqlalchemy import ForeignKey, func, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass
from sqlalchemy.types import DateTime, Numeric, Text

from stagegate.model import ActivityAction, ActivityID, AssignmentID, Decision, EvaluationID, NotificationEvent, \
    NotificationID, ProjectID, ProjectStage, ProjectStatus, UserID, UserRole

from .type import PortableJSON, ShortUUIDKeyType, ValueEnumMapper

Timestamp = DateTime(timezone=True)


class base(MappedAsDataclass, DeclarativeBase):
    type_annotation_map = {
        UserID: ShortUUIDKeyType(UserID),
        ProjectID: ShortUUIDKeyType(ProjectID),
        AssignmentID: ShortUUIDKeyType(AssignmentID),
        EvaluationID: ShortUUIDKeyType(EvaluationID),
        ActivityID: ShortUUIDKeyType(ActivityID),
        NotificationID: ShortUUIDKeyType(NotificationID),
        datetime.datetime: Timestamp,
        dict[str, t.Any]: PortableJSON,
        dict[str, int]: PortableJSON,
        enum.Enum: ValueEnumMapper,
    }


metadata = base.metadata


class users(base):
    __tablename__ = "users"

    user_id: Mapped[UserID] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(unique=True)
    name: Mapped[str]
    role: Mapped[UserRole]
    department: Mapped[str | None] = mapped_column(default=None)
    password_hash: Mapped[str | None] = mapped_column(default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class projects(base):
    __tablename__ = "projects"

    project_id: Mapped[ProjectID] = mapped_column(primary_key=True)
    name: Mapped[str]
    lead_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    stage: Mapped[ProjectStage]
    status: Mapped[ProjectStatus]
    cluster: Mapped[str | None] = mapped_column(default=None)
    review_round: Mapped[int] = mapped_column(default=1)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


# Gate reviews


class review_assignments(base):
    __tablename__ = "review_assignments"
    __table_args__ = (UniqueConstraint("project_id", "stage", "review_round", "reviewer_id"),)

    assignment_id: Mapped[AssignmentID] = mapped_column(primary_key=True)
    project_id: Mapped[ProjectID] = mapped_column(ForeignKey("projects.project_id"), index=True)
    stage: Mapped[ProjectStage]
    review_round: Mapped[int]
    reviewer_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    assigned_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    due_date: Mapped[datetime.datetime | None] = mapped_column(default=None)
    instructions: Mapped[str | None] = mapped_column(Text, default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class evaluations(base):
    __tablename__ = "evaluations"
    __table_args__ = (UniqueConstraint("project_id", "stage", "review_round", "reviewer_id"),)

    evaluation_id: Mapped[EvaluationID] = mapped_column(primary_key=True)
    project_id: Mapped[ProjectID] = mapped_column(ForeignKey("projects.project_id"), index=True)
    stage: Mapped[ProjectStage]
    review_round: Mapped[int]
    reviewer_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    scores: Mapped[dict[str, int]] = mapped_column(default_factory=dict)
    comments: Mapped[str] = mapped_column(Text, default="")
    decision: Mapped[Decision | None] = mapped_column(default=None)
    weighted_score: Mapped[decimal.Decimal] = mapped_column(Numeric(4, 2), default=decimal.Decimal("0.00"))
    total_score: Mapped[decimal.Decimal] = mapped_column(Numeric(4, 2), default=decimal.Decimal("0.00"))
    is_completed: Mapped[bool] = mapped_column(default=False)
    submitted_at: Mapped[datetime.datetime | None] = mapped_column(default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class session_approvals(base):
    """One row per approved review round; its primary key makes approval one-time."""

    __tablename__ = "session_approvals"

    project_id: Mapped[ProjectID] = mapped_column(ForeignKey("projects.project_id"), primary_key=True)
    stage: Mapped[ProjectStage] = mapped_column(primary_key=True)
    review_round: Mapped[int] = mapped_column(primary_key=True)
    approved_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    decision: Mapped[Decision]
    average_score: Mapped[decimal.Decimal] = mapped_column(Numeric(4, 2))
    from_status: Mapped[ProjectStatus]
    to_stage: Mapped[ProjectStage]
    to_status: Mapped[ProjectStatus]
    approved_at: Mapped[datetime.datetime]
    comments: Mapped[str | None] = mapped_column(Text, default=None)


# Activity & notifications


class activity_logs(base):
    __tablename__ = "activity_logs"

    activity_id: Mapped[ActivityID] = mapped_column(primary_key=True)
    project_id: Mapped[ProjectID] = mapped_column(ForeignKey("projects.project_id"), index=True)
    user_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    action: Mapped[ActivityAction]
    details: Mapped[dict[str, t.Any]] = mapped_column(default_factory=dict)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())


class notifications(base):
    __tablename__ = "notifications"

    notification_id: Mapped[NotificationID] = mapped_column(primary_key=True)
    user_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"), index=True)
    event: Mapped[NotificationEvent]
    title: Mapped[str]
    message: Mapped[str] = mapped_column(Text)
    payload: Mapped[dict[str, t.Any]] = mapped_column(default_factory=dict)
    is_read: Mapped[bool] = mapped_column(default=False)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())


class notification_preferences(base):
    __tablename__ = "notification_preferences"

    user_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"), primary_key=True)
    email_notifications: Mapped[bool] = mapped_column(default=True)
    review_assignments: Mapped[bool] = mapped_column(default=True)
    review_submissions: Mapped[bool] = mapped_column(default=True)
    status_changes: Mapped[bool] = mapped_column(default=True)
    document_uploads: Mapped[bool] = mapped_column(default=False)
    weekly_digest: Mapped[bool] = mapped_column(default=False)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())
