"""Initial schema for gate reviews

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""

import typing as t

from alembic import op
from sqlalchemy import func as f
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.schema import Column, ForeignKey, UniqueConstraint
from sqlalchemy.types import Boolean, DateTime, Integer, JSON, Numeric, String, Text

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None

Key = String(22)
EnumValue = String(32)
Timestamp = DateTime(timezone=True)
PortableJSON = JSON().with_variant(JSONB(), "postgresql")


def upgrade() -> None:
    # Users & projects
    op.create_table(
        "users",
        Column("user_id", Key, primary_key=True),
        Column("email", String, unique=True, nullable=False),
        Column("name", String, nullable=False),
        Column("role", EnumValue, nullable=False),
        Column("department", String, nullable=True),
        Column("password_hash", String, nullable=True),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
        Column("update_time", Timestamp, server_default=f.now(), nullable=False),
    )

    op.create_table(
        "projects",
        Column("project_id", Key, primary_key=True),
        Column("name", String, nullable=False),
        Column("lead_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("stage", EnumValue, nullable=False),
        Column("status", EnumValue, nullable=False),
        Column("cluster", String, nullable=True),
        Column("review_round", Integer, nullable=False, server_default="1"),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
        Column("update_time", Timestamp, server_default=f.now(), nullable=False),
    )

    # Gate reviews
    op.create_table(
        "review_assignments",
        Column("assignment_id", Key, primary_key=True),
        Column("project_id", Key, ForeignKey("projects.project_id"), nullable=False, index=True),
        Column("stage", EnumValue, nullable=False),
        Column("review_round", Integer, nullable=False),
        Column("reviewer_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("assigned_by", Key, ForeignKey("users.user_id"), nullable=False),
        Column("due_date", Timestamp, nullable=True),
        Column("instructions", Text, nullable=True),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
        Column("update_time", Timestamp, server_default=f.now(), nullable=False),
        UniqueConstraint("project_id", "stage", "review_round", "reviewer_id"),
    )

    op.create_table(
        "evaluations",
        Column("evaluation_id", Key, primary_key=True),
        Column("project_id", Key, ForeignKey("projects.project_id"), nullable=False, index=True),
        Column("stage", EnumValue, nullable=False),
        Column("review_round", Integer, nullable=False),
        Column("reviewer_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("scores", PortableJSON, nullable=False),
        Column("comments", Text, nullable=False),
        Column("decision", EnumValue, nullable=True),
        Column("weighted_score", Numeric(4, 2), nullable=False),
        Column("total_score", Numeric(4, 2), nullable=False),
        Column("is_completed", Boolean, nullable=False),
        Column("submitted_at", Timestamp, nullable=True),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
        Column("update_time", Timestamp, server_default=f.now(), nullable=False),
        UniqueConstraint("project_id", "stage", "review_round", "reviewer_id"),
    )

    op.create_table(
        "session_approvals",
        Column("project_id", Key, ForeignKey("projects.project_id"), primary_key=True),
        Column("stage", EnumValue, primary_key=True),
        Column("review_round", Integer, primary_key=True),
        Column("approved_by", Key, ForeignKey("users.user_id"), nullable=False),
        Column("decision", EnumValue, nullable=False),
        Column("average_score", Numeric(4, 2), nullable=False),
        Column("from_status", EnumValue, nullable=False),
        Column("to_stage", EnumValue, nullable=False),
        Column("to_status", EnumValue, nullable=False),
        Column("approved_at", Timestamp, nullable=False),
        Column("comments", Text, nullable=True),
    )

    # Activity & notifications
    op.create_table(
        "activity_logs",
        Column("activity_id", Key, primary_key=True),
        Column("project_id", Key, ForeignKey("projects.project_id"), nullable=False, index=True),
        Column("user_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("action", EnumValue, nullable=False),
        Column("details", PortableJSON, nullable=False),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
    )

    op.create_table(
        "notifications",
        Column("notification_id", Key, primary_key=True),
        Column("user_id", Key, ForeignKey("users.user_id"), nullable=False, index=True),
        Column("event", EnumValue, nullable=False),
        Column("title", String, nullable=False),
        Column("message", Text, nullable=False),
        Column("payload", PortableJSON, nullable=False),
        Column("is_read", Boolean, nullable=False),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
    )

    op.create_table(
        "notification_preferences",
        Column("user_id", Key, ForeignKey("users.user_id"), primary_key=True),
        Column("email_notifications", Boolean, nullable=False),
        Column("review_assignments", Boolean, nullable=False),
        Column("review_submissions", Boolean, nullable=False),
        Column("status_changes", Boolean, nullable=False),
        Column("document_uploads", Boolean, nullable=False),
        Column("weekly_digest", Boolean, nullable=False),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
        Column("update_time", Timestamp, server_default=f.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("notification_preferences")
    op.drop_table("notifications")
    op.drop_table("activity_logs")
    op.drop_table("session_approvals")
    op.drop_table("evaluations")
    op.drop_table("review_assignments")
    op.drop_table("projects")
    op.drop_table("users")
