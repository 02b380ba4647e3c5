"""Review session routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from stagegate.auth.middleware import AuthContext, get_current_user
from stagegate.core import di
from stagegate.model import ProjectID, ProjectStage, ReviewSession
from stagegate.review import session as session_service
from stagegate.storage import Session

from ..view.session import ApprovalResponse, ApproveSessionRequest, ReviewSessionResponse

router = APIRouter(prefix="/api/projects/{project_id}/stages/{stage}/session", tags=["sessions"])


def _session_response(review_session: ReviewSession) -> ReviewSessionResponse:
    approval = review_session.approval
    return ReviewSessionResponse(
        project_id=review_session.project_id,
        stage=review_session.stage,
        review_round=review_session.review_round,
        state=review_session.state,
        total=review_session.total,
        completed=review_session.completed,
        pending=review_session.pending,
        completion_rate=review_session.completion_rate,
        average_score=review_session.average_score,
        decisions=review_session.decisions,
        approval=ApprovalResponse(
            review_round=approval.review_round,
            approved_by=approval.approved_by,
            decision=approval.decision,
            average_score=approval.average_score,
            comments=approval.comments,
            from_status=approval.from_status,
            to_stage=approval.to_stage,
            to_status=approval.to_status,
            approved_at=approval.approved_at,
        )
        if approval is not None
        else None,
    )


@router.get("", operation_id="get_review_session")
@di.inject
def get_session(
    project_id: ProjectID,
    stage: ProjectStage,
    review_round: int | None = Query(None, alias="round", ge=1),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ReviewSessionResponse:
    """The open round of the gate review, or with round, an earlier one."""
    return _session_response(session_service.get_session(project_id, stage, review_round, session=session))


@router.post("/approve", operation_id="approve_review_session")
@di.inject
def approve_session(
    project_id: ProjectID,
    stage: ProjectStage,
    request: ApproveSessionRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ReviewSessionResponse:
    """Approve the session and move the project; approving again returns the session unchanged."""
    review_session = session_service.approve_session(
        auth.user,
        project_id,
        stage,
        final_decision=request.final_decision,
        comments=request.comments,
        session=session,
    )
    return _session_response(review_session)
