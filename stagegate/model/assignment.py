import datetime

from .base import WithTimestamps
from .enum import AssignmentStatus, ProjectStage
from .id import AssignmentID, ProjectID, UserID


class ReviewAssignment(WithTimestamps):
    assignment_id: AssignmentID
    project_id: ProjectID
    stage: ProjectStage
    review_round: int = 1
    reviewer_id: UserID
    assigned_by: UserID
    due_date: datetime.datetime | None = None
    instructions: str | None = None
    # derived from the reviewer's evaluation, never stored
    status: AssignmentStatus = AssignmentStatus.Pending
