"""View models for the Stagegate web application."""

__all__ = [
    # Auth views
    "LoginRequest",
    "LoginResponse",
    "TokenResponse",
    "UserResponse",
    # Criteria views
    "CriteriaListResponse",
    "CriterionResponse",
    "GuidelinesResponse",
    # Project views
    "ActivityListResponse",
    "ActivityResponse",
    "ProjectCreateRequest",
    "ProjectResponse",
    # Assignment views
    "AssignmentListResponse",
    "AssignmentResponse",
    "AssignReviewersRequest",
    # Evaluation views
    "EvaluationPreviewResponse",
    "EvaluationRequest",
    "EvaluationResponse",
    "ValidationResponse",
    # Session views
    "ApprovalResponse",
    "ApproveSessionRequest",
    "ReviewSessionResponse",
    # Notification views
    "NotificationListResponse",
    "NotificationResponse",
    "PreferencesRequest",
    "PreferencesResponse",
]

from .assignment import AssignmentListResponse, AssignmentResponse, AssignReviewersRequest
from .auth import LoginRequest, LoginResponse, TokenResponse, UserResponse
from .criteria import CriteriaListResponse, CriterionResponse, GuidelinesResponse
from .evaluation import EvaluationPreviewResponse, EvaluationRequest, EvaluationResponse, ValidationResponse
from .notification import NotificationListResponse, NotificationResponse, PreferencesRequest, PreferencesResponse
from .project import ActivityListResponse, ActivityResponse, ProjectCreateRequest, ProjectResponse
from .session import ApprovalResponse, ApproveSessionRequest, ReviewSessionResponse
