from .base import WithTimestamps
from .enum import ProjectStage, ProjectStatus
from .id import ProjectID, UserID


class Project(WithTimestamps):
    project_id: ProjectID
    name: str
    cluster: str | None = None
    lead_id: UserID
    stage: ProjectStage = ProjectStage.Stage0
    status: ProjectStatus = ProjectStatus.Active
    # the gate review open at the current stage; RECYCLE and HOLD approvals open the next one
    review_round: int = 1
