import datetime
import decimal

from .base import WithTimestamps
from .criterion import ScoredCriterion
from .enum import Decision, ProjectStage
from .id import EvaluationID, ProjectID, UserID


class Evaluation(WithTimestamps):
    evaluation_id: EvaluationID
    project_id: ProjectID
    stage: ProjectStage
    review_round: int = 1
    reviewer_id: UserID

    scores: dict[str, int] = {}
    comments: str = ""
    decision: Decision | None = None
    weighted_score: decimal.Decimal = decimal.Decimal("0.00")
    total_score: decimal.Decimal = decimal.Decimal("0.00")

    is_completed: bool = False
    submitted_at: datetime.datetime | None = None

    @property
    def scored_criteria(self) -> list[ScoredCriterion]:
        return [ScoredCriterion(criterion_id=k, score=v) for k, v in self.scores.items()]
