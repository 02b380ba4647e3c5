"""View models for projects and their activity."""

from __future__ import annotations

import datetime
import typing as t

import pydantic as p

from stagegate.model import ActivityAction, ActivityID, ProjectID, ProjectStage, ProjectStatus, RedFlagSeverity, UserID


class ProjectCreateRequest(p.BaseModel):
    name: str = p.Field(min_length=1)
    lead_id: UserID
    cluster: str | None = None


class ProjectUpdateRequest(p.BaseModel):
    """Only the fields present in the request body are changed."""

    name: str | None = p.Field(None, min_length=1)
    cluster: str | None = None
    lead_id: UserID | None = None
    status: ProjectStatus | None = None


class StageUpdateRequest(p.BaseModel):
    stage: ProjectStage


class RedFlagRequest(p.BaseModel):
    title: str = p.Field(min_length=1)
    description: str = ""
    severity: RedFlagSeverity = RedFlagSeverity.Medium


class ProjectResponse(p.BaseModel):
    project_id: ProjectID
    name: str
    cluster: str | None
    lead_id: UserID
    stage: ProjectStage
    status: ProjectStatus
    review_round: int
    create_time: datetime.datetime
    update_time: datetime.datetime


class ActivityResponse(p.BaseModel):
    activity_id: ActivityID
    user_id: UserID
    action: ActivityAction
    details: dict[str, t.Any]
    create_time: datetime.datetime


class ActivityListResponse(p.BaseModel):
    activity: list[ActivityResponse]
