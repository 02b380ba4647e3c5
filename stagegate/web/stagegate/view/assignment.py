"""View models for reviewer assignment."""

from __future__ import annotations

import datetime

import pydantic as p

from stagegate.model import AssignmentID, AssignmentStatus, ProjectID, ProjectStage, UserID


class AssignReviewersRequest(p.BaseModel):
    reviewer_ids: list[UserID]
    due_date: datetime.datetime | None = None
    instructions: str | None = None


class AssignmentResponse(p.BaseModel):
    assignment_id: AssignmentID
    project_id: ProjectID
    stage: ProjectStage
    review_round: int
    reviewer_id: UserID
    assigned_by: UserID
    due_date: datetime.datetime | None
    instructions: str | None
    status: AssignmentStatus
    create_time: datetime.datetime


class AssignmentListResponse(p.BaseModel):
    assignments: list[AssignmentResponse]
