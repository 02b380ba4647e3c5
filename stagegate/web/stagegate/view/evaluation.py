"""View models for evaluations."""

from __future__ import annotations

import datetime
import decimal

import pydantic as p

from stagegate.model import Decision, EvaluationID, ProjectID, ProjectStage, UserID


class EvaluationRequest(p.BaseModel):
    """Scores by criterion ID; range checks happen when they are applied to the matrix."""

    scores: dict[str, int] = {}
    comments: str = ""
    decision: Decision | None = None


class ValidationResponse(p.BaseModel):
    is_valid: bool
    errors: list[str]


class EvaluationPreviewResponse(p.BaseModel):
    weighted_score: decimal.Decimal
    total_score: decimal.Decimal
    validation: ValidationResponse


class EvaluationResponse(p.BaseModel):
    evaluation_id: EvaluationID
    project_id: ProjectID
    stage: ProjectStage
    review_round: int
    reviewer_id: UserID
    scores: dict[str, int]
    comments: str
    decision: Decision | None
    weighted_score: decimal.Decimal
    total_score: decimal.Decimal
    is_completed: bool
    submitted_at: datetime.datetime | None
    update_time: datetime.datetime
