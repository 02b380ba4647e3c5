from __future__ import annotations

import enum


class DeploymentEnvironment(enum.Enum):
    Production = "production"
    Development = "development"
    Staging = "staging"
    Test = "test"
    Local = "local"


class Decision(enum.Enum):
    """Outcome a reviewer (and finally the session) records for a gate."""

    Go = "GO"
    Recycle = "RECYCLE"
    Hold = "HOLD"
    Stop = "STOP"

    @property
    def severity(self) -> int:
        return _DecisionSeverity[self]


# GO < RECYCLE < HOLD < STOP
_DecisionSeverity = {
    Decision.Go: 0,
    Decision.Recycle: 1,
    Decision.Hold: 2,
    Decision.Stop: 3,
}


class ProjectStage(enum.Enum):
    Stage0 = "STAGE_0"
    Stage1 = "STAGE_1"
    Stage2 = "STAGE_2"
    Stage3 = "STAGE_3"

    @property
    def index(self) -> int:
        return list(ProjectStage).index(self)

    @property
    def is_final(self) -> bool:
        return self is ProjectStage.Stage3

    def next(self) -> ProjectStage:
        if self.is_final:
            raise ValueError(f"{self.value} is the final stage")
        return list(ProjectStage)[self.index + 1]

    @property
    def label(self) -> str:
        return f"Stage {self.index}"


class ProjectStatus(enum.Enum):
    Active = "ACTIVE"
    PendingReview = "PENDING_REVIEW"
    OnHold = "ON_HOLD"
    Completed = "COMPLETED"
    Terminated = "TERMINATED"
    RedFlag = "RED_FLAG"

    @property
    def is_terminal(self) -> bool:
        return self in (ProjectStatus.Completed, ProjectStatus.Terminated)


class UserRole(enum.Enum):
    Admin = "ADMIN"
    Gatekeeper = "GATEKEEPER"
    ProjectLead = "PROJECT_LEAD"
    Researcher = "RESEARCHER"
    Reviewer = "REVIEWER"
    User = "USER"
    Custom = "CUSTOM"


class AssignmentStatus(enum.Enum):
    Pending = "PENDING"
    Completed = "COMPLETED"


class SessionState(enum.Enum):
    NoReviewers = "NO_REVIEWERS"
    InProgress = "IN_PROGRESS"
    AllComplete = "ALL_COMPLETE"
    Approved = "APPROVED"


class ActivityAction(enum.Enum):
    GateReviewCreated = "GATE_REVIEW_CREATED"
    ReviewersAssigned = "REVIEWERS_ASSIGNED"
    ReviewSubmitted = "REVIEW_SUBMITTED"
    ReviewSessionApproved = "REVIEW_SESSION_APPROVED"
    ProjectCreated = "PROJECT_CREATED"
    ProjectUpdated = "PROJECT_UPDATED"
    StageUpdated = "STAGE_UPDATED"
    RedFlagRaised = "RED_FLAG_RAISED"


class RedFlagSeverity(enum.Enum):
    Low = "LOW"
    Medium = "MEDIUM"
    High = "HIGH"
    Critical = "CRITICAL"


class NotificationEvent(enum.Enum):
    ReviewAssigned = "REVIEW_ASSIGNED"
    ReviewSubmitted = "REVIEW_SUBMITTED"
    ProjectStatusChanged = "PROJECT_STATUS_CHANGED"


class ExportFormat(enum.Enum):
    CSV = "csv"
    JSON = "json"
