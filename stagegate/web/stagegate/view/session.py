"""View models for review sessions."""

from __future__ import annotations

import datetime
import decimal

import pydantic as p

from stagegate.model import Decision, ProjectID, ProjectStage, ProjectStatus, SessionState, UserID


class ApproveSessionRequest(p.BaseModel):
    # overrides the aggregate of the reviewers' decisions
    final_decision: Decision | None = None
    comments: str | None = None


class ApprovalResponse(p.BaseModel):
    review_round: int
    approved_by: UserID
    decision: Decision
    average_score: decimal.Decimal
    comments: str | None
    from_status: ProjectStatus
    to_stage: ProjectStage
    to_status: ProjectStatus
    approved_at: datetime.datetime


class ReviewSessionResponse(p.BaseModel):
    project_id: ProjectID
    stage: ProjectStage
    review_round: int
    state: SessionState
    total: int
    completed: int
    pending: int
    completion_rate: decimal.Decimal
    average_score: decimal.Decimal
    decisions: dict[Decision, int]
    approval: ApprovalResponse | None
