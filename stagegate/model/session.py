import datetime
import decimal

from .base import BaseModel
from .enum import Decision, ProjectStage, ProjectStatus, SessionState
from .id import ProjectID, UserID


class SessionApproval(BaseModel):
    project_id: ProjectID
    stage: ProjectStage
    review_round: int = 1
    approved_by: UserID
    decision: Decision
    average_score: decimal.Decimal
    comments: str | None = None
    # project state the approval moved from / to
    from_status: ProjectStatus
    to_stage: ProjectStage
    to_status: ProjectStatus
    approved_at: datetime.datetime


class ReviewSession(BaseModel):
    """Aggregate view over all assignments for one round of a (project, stage) gate review."""

    project_id: ProjectID
    stage: ProjectStage
    review_round: int = 1
    total: int
    completed: int
    average_score: decimal.Decimal
    decisions: dict[Decision, int] = {}
    approval: SessionApproval | None = None

    @property
    def pending(self) -> int:
        return self.total - self.completed

    @property
    def completion_rate(self) -> decimal.Decimal:
        if self.total == 0:
            return decimal.Decimal("0.00")
        rate = decimal.Decimal(self.completed) / decimal.Decimal(self.total)
        # never show 1.00 before every review is in
        return rate.quantize(decimal.Decimal("0.01"), rounding=decimal.ROUND_DOWN)

    @property
    def state(self) -> SessionState:
        if self.approval is not None:
            return SessionState.Approved
        if self.total == 0:
            return SessionState.NoReviewers
        if self.completed < self.total:
            return SessionState.InProgress
        return SessionState.AllComplete
